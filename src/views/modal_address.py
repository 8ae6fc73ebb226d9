from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Grid, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.suggester import SuggestFromList
from textual.widgets import Button, Checkbox, Input, Label, Select

from db import addresses
from db.models import UserAddress
from services.checkout import DELIVERY_ZONES
from utils.errors import NotFoundError

ADDRESS_TYPES = [("Home", "home"), ("Work", "work"), ("Other", "other")]

# (field, caption, placeholder)
TEXT_FIELDS = (
    ("label", "Address name", "Home, office..."),
    ("first_name", "First name", "Jean"),
    ("last_name", "Last name", "Dupont"),
    ("phone", "Phone", "+237 6XXXXXXXX"),
    ("address_line1", "Address", "123 Avenue Kennedy"),
    ("address_line2", "Address (more)", "Quartier Bastos"),
    ("city", "City", "Yaoundé"),
    ("region", "Region", "Centre"),
    ("postal_code", "Postal code", ""),
)


class AddressModal(ModalScreen[bool]):
    """
    Add or edit a saved address of the signed-in user.
    Dismissed with True once the address was saved.
    """

    def __init__(self, address: Optional[UserAddress] = None) -> None:
        super().__init__()
        self._address = address

    def compose(self) -> ComposeResult:
        title = "Edit address" if self._address else "New address"
        with Vertical(id="div-address"):
            yield Label(title, id="label-address-title")
            with Grid(id="grid-address"):
                for name, caption, placeholder in TEXT_FIELDS:
                    yield Label(caption)
                    yield Input(
                        value=getattr(self._address, name, None) or "",
                        placeholder=placeholder,
                        id=f"input-addr-{name}",
                        suggester=SuggestFromList(list(DELIVERY_ZONES), case_sensitive=False)
                        if name == "city"
                        else None,
                    )
                yield Label("Type")
                yield Select(
                    ADDRESS_TYPES,
                    value=self._address.address_type if self._address else "home",
                    allow_blank=False,
                    id="select-addr-type",
                )
            yield Checkbox(
                "Use as default delivery address",
                value=bool(self._address and self._address.is_default),
                id="check-addr-default",
            )
            with Horizontal(id="hort-address-btns"):
                yield Button("Go Back", id="btn-quit")
                yield Button("Save", id="btn-save", variant="primary")

    def on_mount(self) -> None:
        user = self.app.state.user
        if self._address is None and user:
            # a new address is usually for the account holder
            self.query_one("#input-addr-first_name", Input).value = user.first_name
            self.query_one("#input-addr-last_name", Input).value = user.last_name
            self.query_one("#input-addr-phone", Input).value = user.phone or ""
        self.query_one("#input-addr-label").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self):
        user_id = self.app.state.user_id
        data = {name: self.query_one(f"#input-addr-{name}", Input).value for name, _, _ in TEXT_FIELDS}
        data["address_type"] = str(self.query_one("#select-addr-type", Select).value)
        data["is_default"] = self.query_one("#check-addr-default", Checkbox).value

        try:
            if self._address:
                await addresses.update_user_address(self._address.id, user_id, data)
            else:
                await addresses.create_user_address(user_id, data)
        except (NotFoundError, ValueError) as e:
            self.notify(str(e), severity="error")
            return

        self.app.notify("Address saved.")
        self.dismiss(True)
