from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Grid, Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, TabbedContent, TabPane

from db import addresses
from db.models import UserAddress
from utils.errors import AuthError, NotFoundError
from views.base_screen import BaseScreen, Sidebar
from views.modal_address import AddressModal
from views.modal_dialog import DialogModal

PROFILE_FIELDS = (
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("email", "Email"),
    ("phone", "Phone"),
)


class AccountScreen(BaseScreen):
    """
    Profile details and saved delivery addresses of the signed-in user.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-account-guest"):
            yield Label("Sign in to manage your profile and addresses.")
            yield Button("Sign in", id="btn-account-signin", variant="primary")
        with TabbedContent(id="super-tab-account"):
            with TabPane("Profile", id="tab-profile"):
                with Grid(id="grid-profile"):
                    for name, caption in PROFILE_FIELDS:
                        yield Label(caption)
                        yield Input(id=f"input-profile-{name}")
                yield Button("Save changes", id="btn-save-profile", variant="primary")
            with TabPane("Addresses", id="tab-addresses"):
                yield DataTable(id="table-addresses")
                with Horizontal(id="hort-address-ctrl"):
                    yield Button("Add", id="btn-addr-add", variant="primary")
                    yield Button("Edit", id="btn-addr-edit")
                    yield Button("Set as default", id="btn-addr-default")
                    yield Button("Delete", id="btn-addr-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("Name", key="label")
        table.add_columns("Recipient", "Address", "Phone", "Default")

    @on(ScreenResume)
    @work(exclusive=True, group="account")
    async def handle_refresh(self):
        user = self.app.state.user
        self.query_one("#div-account-guest").display = user is None
        self.query_one("#super-tab-account").display = user is not None
        if user is None:
            return

        for name, _ in PROFILE_FIELDS:
            self.query_one(f"#input-profile-{name}", Input).value = getattr(user, name) or ""
        await self._load_addresses()

    async def _load_addresses(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for a in await addresses.get_user_addresses(self.app.state.user_id):
            table.add_row(
                a.label,
                a.recipient,
                a.full_address,
                a.phone,
                "yes" if a.is_default else "",
                key=a.id,
            )

    async def _selected_address(self) -> Optional[UserAddress]:
        table = self.query_one(DataTable)
        if not table.row_count:
            self.notify("No address selected.", severity="warning")
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return await addresses.get_address(row_key.value, self.app.state.user_id)

    @on(Button.Pressed, "#btn-account-signin")
    def handle_signin(self):
        self.app.action_sign_in()

    @on(Button.Pressed, "#btn-save-profile")
    @work()
    async def handle_save_profile(self):
        changes = {
            name: self.query_one(f"#input-profile-{name}", Input).value.strip()
            for name, _ in PROFILE_FIELDS
        }
        if not changes["first_name"] or not changes["last_name"]:
            self.notify("First and last name are required.", severity="error")
            return
        changes["phone"] = changes["phone"] or None

        try:
            await self.app.state.update_profile(**changes)
        except AuthError as e:
            self.notify(str(e), severity="error")
            return

        self.notify("Profile updated.")
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_user_info()

    @on(Button.Pressed, "#btn-addr-add")
    @work()
    async def handle_add_address(self):
        if await self.app.push_screen_wait(AddressModal()):
            await self._load_addresses()

    @on(Button.Pressed, "#btn-addr-edit")
    @work()
    async def handle_edit_address(self):
        address = await self._selected_address()
        if address and await self.app.push_screen_wait(AddressModal(address)):
            await self._load_addresses()

    @on(Button.Pressed, "#btn-addr-default")
    @work()
    async def handle_default_address(self):
        address = await self._selected_address()
        if address is None:
            return
        try:
            await addresses.set_default_address(address.id, self.app.state.user_id)
        except NotFoundError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"{address.label} is now your default address.")
        await self._load_addresses()

    @on(Button.Pressed, "#btn-addr-delete")
    @work()
    async def handle_delete_address(self):
        address = await self._selected_address()
        if address is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete the address '{address.label}'?",
                primary_text="Delete",
                secondary_text="Keep",
                tone="warning",
            )
        ):
            return
        try:
            await addresses.delete_user_address(address.id, self.app.state.user_id)
        except NotFoundError as e:
            self.notify(str(e), severity="error")
            return
        self.notify("Address deleted.")
        await self._load_addresses()
