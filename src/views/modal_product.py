from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.cart import add_to_cart, load_cart, update_cart_item_quantity
from db.models import CartItem, Product
from db.products import get_product
from utils.messages import CartChangedMessage
from utils.pure import format_price, generate_markdown_table


class ProductModal(ModalScreen[bool]):
    """
    Product sheet with a quantity picker.
    Dismissed with True if the cart changed.
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id

        self._prod: Product = None
        self._existing_cart_item: CartItem = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        self._prod = await get_product(self._product_id)
        if self._prod is None:
            self.notify("This product is no longer available.", severity="error")
            self.dismiss(False)
            return

        rows = [
            ["Brand", self._prod.brand],
            ["Category", self._prod.category],
            ["Price", format_price(self._prod.price)],
            ["In stock", str(self._prod.stock)],
        ]
        md = (
            f"### {self._prod.name}\n\n"
            + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
            + f"\n\n{self._prod.description}"
        )
        await self.query_one(MarkdownViewer).document.update(md)

        stock = self._prod.stock
        if stock < 1:
            order_btn = self.query_one("#btn-addcart")
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(stock, 1))
        ]

        cart = await load_cart(self.app.state.user_id)
        self._existing_cart_item = next(
            (item for item in cart if item.id == self._product_id), None
        )
        if self._existing_cart_item:
            self.order_qty = self._existing_cart_item.quantity
            self.query_one("#btn-addcart").label = "Update Cart"

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.value
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int) -> None:
        stock = self._prod.stock if self._prod else 1
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = qty >= stock
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        user_id = self.app.state.user_id
        if not self._existing_cart_item:
            await add_to_cart(
                CartItem(
                    id=self._prod.id,
                    name=self._prod.name,
                    price=self._prod.price,
                    quantity=self.order_qty,
                    image=self._prod.image,
                ),
                user_id,
            )
            self.app.notify(f"{self._prod.name} added to cart.")
        else:
            await update_cart_item_quantity(self._prod.id, self.order_qty, user_id)
            self.app.notify("Updated cart item quantity.")

        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
