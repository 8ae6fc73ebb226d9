from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.cart import (
    cart_count,
    cart_subtotal,
    clear_cart,
    load_cart,
    remove_from_cart,
    update_cart_item_quantity,
)
from db.models import CartItem
from utils.messages import CartChangedMessage, ModeSwitchedMessage, UserLoginMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal
from views.modal_product import ProductModal


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, action: str) -> None:
        super().__init__()
        self.action = action


class CartItemActionLabel(Label):
    def action_cart(self, action: str):
        self.post_message(CartItemActionMessage(action))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
                yield Label(
                    format_price(self.item.price * self.item.quantity),
                    id="label-item-price",
                )
            with Container(id="div-actions"):
                yield CartItemActionLabel("[@click=cart('dec')]-1[/]")
                yield CartItemActionLabel("[@click=cart('inc')]+1[/]")
                yield CartItemActionLabel("[@click=cart('edit')]Edit[/]")
                yield CartItemActionLabel("[@click=cart('remove')]Remove[/]")

    @on(CartItemActionMessage)
    @work()
    async def handle_action(self, message: CartItemActionMessage):
        message.stop()
        user_id = self.app.state.user_id

        if message.action in ("inc", "dec"):
            step = 1 if message.action == "inc" else -1
            # dropping to 0 removes the line
            await update_cart_item_quantity(
                self.item.id, self.item.quantity + step, user_id
            )
        elif message.action == "edit":
            if not await self.app.push_screen_wait(ProductModal(self.item.id)):
                return
        elif message.action == "remove":
            if not await self.app.push_screen_wait(
                DialogModal(
                    "Do you really want to remove this item from cart?",
                    primary_text="Yes",
                    secondary_text="No",
                    tone="warning",
                )
            ):
                return
            await remove_from_cart(self.item.id, user_id)
            self.notify("Item removed from cart.", severity="information")

        self.post_message(CartChangedMessage())


class CartScreen(BaseScreen):
    """
    Cart lines of the current user (or guest) with totals and checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Cart is empty", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(UserLoginMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # exclusive, or concurrent reloads mount duplicate lines
    async def handle_cart_change(self):
        cart_items = await load_cart(self.app.state.user_id)

        content = self.query_one("#vertscroll-content")
        if [c.item for c in content.children] != cart_items:
            await content.remove_children()
            await content.mount_all([CartItemWidget(item) for item in cart_items])

        content.set_class(not cart_items, "no-items")
        if cart_items:
            total = f"{cart_count(cart_items)} item(s), subtotal {format_price(cart_subtotal(cart_items))}"
        else:
            total = "Cart is empty"
        self.query_one("#label-cart-total", Label).update(total)

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not await load_cart(self.app.state.user_id):
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            await clear_cart(self.app.state.user_id)
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not await load_cart(self.app.state.user_id):
            self.app.notify("Cart is empty.", severity="warning")
            return

        await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
