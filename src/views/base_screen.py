from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import ModeSwitchedMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal, ResizeScreenPromptModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("Account", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Button("Sign in", id="btn-signin", variant="primary")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.MENU_MODES.items()
            ]
        )
        await self.refresh_user_info()
        self.highlight_item(self.init_mode)

    async def refresh_user_info(self) -> None:
        user = self.app.state.user
        if user:
            rows = [["Name", user.full_name], ["Email", user.email]]
        else:
            rows = [["Name", "Guest"], ["Email", "-"]]
        await self.query_one(Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )
        self.query_one("#btn-logout").display = user is not None
        self.query_one("#btn-signin").display = user is None

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    @on(Button.Pressed, "#btn-signin")
    def handle_signin(self):
        self.app.action_sign_in()

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    MIN_WIDTH = 70
    MIN_HEIGHT = 20

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        set the header subtitle (defaults to the menu label of the screen's
        mode) and whether the sidebar is shown
        """
        self.app.title = "Xeption Store"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in self.app.MENU_MODES:
                self.sub_title = self.app.MENU_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        if event.size.width < self.MIN_WIDTH or event.size.height < self.MIN_HEIGHT:
            self.app.push_screen(
                ResizeScreenPromptModal(self.MIN_WIDTH, self.MIN_HEIGHT)
            )

    @on(ScreenResume)
    async def sync_sidebar(self) -> None:
        # the account may have changed while another screen was on top
        for sidebar in self.query(Sidebar):
            if sidebar.is_mounted:
                await sidebar.refresh_user_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
