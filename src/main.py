from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from services.payment import SimulatedGateway
from utils.config import settings
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_account import AccountScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_requests import RequestsScreen
from views.scr_tradein import TradeInScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "trade_in": TradeInScreen,
        "services": RequestsScreen,
        "account": AccountScreen,
    }

    MENU_MODES = {
        "catalog": "Shop",
        "cart": "Cart",
        "orders": "My Orders",
        "trade_in": "Trade-in",
        "services": "Business & Services",
        "account": "My Account",
    }

    CSS_PATH = "styles/storefront.tcss"

    state: GlobalState

    def __init__(self, payment_gateway=None):
        super().__init__()
        self.state = GlobalState()
        self.payment_gateway = payment_gateway or SimulatedGateway(
            site_id=settings.payment_site_id, api_key=settings.payment_api_key
        )

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        user = await self.state.restore()
        if user:
            _logger.info(f"Restored session of {user.email}")
        self.main_flow(ask_login=user is None)

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @work
    async def action_sign_in(self):
        await self.push_screen_wait(LoginScreen())

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.sign_out()
        self.notify("You have been logged out.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the signed-in user is remembered for the next run
        self.exit()

    @work
    async def main_flow(self, ask_login: bool = True):
        if ask_login:
            await self.push_screen_wait(LoginScreen())
        if self.current_mode != "catalog":
            self.post_message(ModeSwitchedMessage(self.current_mode, "catalog"))
            await self.switch_mode("catalog")


def run():
    app = StorefrontApp()
    app.run()


if __name__ == "__main__":
    run()
