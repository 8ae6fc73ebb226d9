from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

import db.accounts as accounts
from utils.errors import AuthError
from utils.messages import CartChangedMessage, UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal, SimpleDialogModal


class LoginScreen(BaseScreen):
    """
    Sign in, register, or keep browsing as a guest.
    Dismissed with True once a user signed in, False for guest browsing.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Sign in", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Sign in", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Continue as guest", id="btn-guest")
                        yield Button("Sign in", id="btn-login", variant="primary")

            with TabPane("Create account", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("First name")
                    yield Input(placeholder="Jean", id="input-reg-first")
                    yield Label("Last name")
                    yield Input(placeholder="Dupont", id="input-reg-last")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password (6 characters min.)")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    with Horizontal(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            user = await self.app.state.sign_in(email, pwd)
        except AuthError as e:
            self.notify(str(e), severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self.notify(f"Welcome back, {user.first_name}!")
        self.app.post_message(UserLoginMessage())
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        first = self.query_one("#input-reg-first", Input).value.strip()
        last = self.query_one("#input-reg-last", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        try:
            user = await accounts.register(first, last, email, pwd)
        except AuthError as e:
            self.notify(str(e), severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(f"Account created for {user.email}. You can now sign in.")
        )

        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = user.email
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = pwd
        input_login_pwd.focus()

    @on(Button.Pressed, "#btn-guest")
    def handle_guest(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
