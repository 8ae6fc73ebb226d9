import re
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, LoadingIndicator, MarkdownViewer, Select

from db.addresses import get_default_address
from db.cart import load_cart
from db.models import UserAddress
from services.checkout import DELIVERY_ZONES, new_order_id, place_order, summarize_order
from services.payment import order_payment_request, process_mobile_payment, verify_payment
from utils.config import settings
from utils.errors import StorefrontError
from utils.messages import NewOrderMessage
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import DialogModal

DELIVERY_METHODS = [
    ("Standard delivery", "standard"),
    ("Express delivery", "express"),
    ("Store pickup", "pickup"),
]
PAYMENT_METHODS = [
    ("Mobile Money (MTN / Orange)", "mobile_money"),
    ("Cash on delivery", "cash_on_delivery"),
]


def _local_number(phone: str) -> str:
    """Mobile Money number without the +237 country code."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("237") and len(digits) > 9:
        digits = digits[3:]
    return digits


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary, delivery options and payment.
    Dismissed with True when an order was placed.
    """

    def __init__(self) -> None:
        super().__init__()
        self._address: Optional[UserAddress] = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal(id="hort-checkout-options"):
                yield Select(
                    [(city, city) for city in DELIVERY_ZONES],
                    value=settings.default_city
                    if settings.default_city in DELIVERY_ZONES
                    else Select.BLANK,
                    prompt="City",
                    id="select-city",
                )
                yield Select(
                    DELIVERY_METHODS, value="standard", allow_blank=False, id="select-delivery"
                )
                yield Select(
                    PAYMENT_METHODS, value="mobile_money", allow_blank=False, id="select-payment"
                )
            yield Label("", id="label-delivery-address")
            yield Label("Mobile Money number")
            yield Input(placeholder="6XXXXXXXX", id="input-phone", type="integer")
            yield LoadingIndicator(id="loading-payment")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        self.query_one("#loading-payment").display = False
        user_id = self.app.state.user_id
        if user_id:
            self._address = await get_default_address(user_id)
        if self._address:
            if self._address.city in DELIVERY_ZONES:
                self.query_one("#select-city", Select).value = self._address.city
            self.query_one("#input-phone", Input).value = _local_number(self._address.phone)
        await self.render_summary()
        self.query_one("#input-phone").focus()

    def _delivery_address(self, city: str) -> Optional[str]:
        """The default address line, as long as the chosen city is its city."""
        if self._address and self._address.city == city:
            return self._address.full_address
        return None

    def _selected(self, select_id: str) -> str:
        value = self.query_one(select_id, Select).value
        return "" if value is Select.BLANK else str(value)

    @on(Select.Changed)
    async def render_summary(self) -> None:
        items = await load_cart(self.app.state.user_id)
        summary = summarize_order(
            items, self._selected("#select-city"), self._selected("#select-delivery") or "standard"
        )
        rows = [
            [i.name, format_price(i.price), i.quantity, format_price(i.price * i.quantity)]
            for i in items
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            ["Product", "Unit Price", "Quantity", "Total"], rows, ["l", "r", "c", "r"]
        )
        md += (
            f"\n\n**Subtotal:** {format_price(summary.subtotal)}  \n"
            f"**Delivery:** {format_price(summary.delivery_cost)}  \n"
            f"**VAT:** {format_price(summary.tax)}  \n"
            f"**Total:** {format_price(summary.total)}"
        )
        await self.query_one(MarkdownViewer).document.update(md)

        address = self._delivery_address(self._selected("#select-city"))
        self.query_one("#label-delivery-address", Label).update(
            f"Deliver to: {address}" if address else ""
        )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        city = self._selected("#select-city")
        method = self._selected("#select-delivery")
        payment_method = self._selected("#select-payment")
        phone_input = self.query_one("#input-phone", Input)
        phone = phone_input.value.strip()

        if not city:
            self.notify("Please choose a delivery city.", severity="error")
            return
        if payment_method == "mobile_money" and not phone:
            phone_input.focus()
            phone_input.add_class("-invalid")
            self.notify("A Mobile Money number is required.", severity="error")
            return

        items = await load_cart(self.app.state.user_id)
        summary = summarize_order(items, city, method)
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Place order for {format_price(summary.total)}?",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        self.query_one("#loading-payment").display = True
        self.query_one("#btn-submit", Button).disabled = True
        order_id = new_order_id()
        try:
            transaction_id, status = None, "pending"
            if payment_method == "mobile_money":
                transaction_id, status = await self._pay(order_id, summary.total, phone)
                if status is None:
                    return

            order = await place_order(
                self.app.state.user_id,
                items,
                city,
                method,
                payment_method,
                transaction_id,
                status,
                order_id=order_id,
                address=self._delivery_address(city),
            )
        except StorefrontError as e:
            self.notify(str(e), severity="error")
            return
        finally:
            self.query_one("#loading-payment").display = False
            self.query_one("#btn-submit", Button).disabled = False

        self.app.post_message(NewOrderMessage(order.id))
        self.notify(f"Order placed. Your order reference is {order.id}.")
        self.dismiss(True)

    async def _pay(self, order_id: str, amount: int, phone: str):
        """
        Run the mobile-money flow; returns (transaction_id, order status),
        status None if the payment was refused.
        """
        user = self.app.state.user
        request = order_payment_request(
            order_id,
            amount,
            customer_name=user.full_name if user else "Guest",
            customer_email=user.email if user else "",
            customer_phone=phone,
        )
        gateway = self.app.payment_gateway
        response = await process_mobile_payment(gateway, request)
        if response.status == "error":
            self.notify(response.message, severity="error")
            return None, None

        self.notify("Confirm the payment on your phone...")
        response = await verify_payment(gateway, request.transaction_id)
        if response.status == "error":
            self.notify(response.message, severity="error")
            return None, None
        return request.transaction_id, "paid" if response.status == "success" else "pending"

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
