from math import ceil
from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from db.models import Order
from services.checkout import list_orders
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen

PAGE_SIZE = 5


class OrdersScreen(BaseScreen):
    """
    Past orders of the current user (or guest), newest first, 5 per page,
    with the selected order's lines on top.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._by_id: Dict[str, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Label("1 / 1", id="label-page")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("Reference", key="id")
        table.add_columns("Date", "City", "Status", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    @work(exclusive=True, group="orders")
    async def handle_refresh(self):
        self._orders = await list_orders(self.app.state.user_id)
        self._by_id = {o.id: o for o in self._orders}
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.page_idx = 1
        self._render_page()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1
            self._render_page()

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1
            self._render_page()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self._render_detail(self._by_id.get(event.row_key.value))

    def _render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._orders[start : start + PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.id,
                o.created_at.strftime("%Y-%m-%d %H:%M"),
                o.city,
                o.status,
                format_price(o.total),
                key=o.id,
            )

        self.query_one("#label-page", Label).update(f"{self.page_idx} / {self.page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self._render_detail(page[0] if page else None)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### No orders yet.")
            return

        header = (
            f"### Order {order.id}\n"
            f"Date: {order.created_at:%Y-%m-%d %H:%M}  \n"
            f"Delivery: {order.delivery_method} to {order.address or order.city}  \n"
            f"Payment: {order.payment_method} ({order.status})\n\n"
        )
        rows = [
            [i.name, i.quantity, format_price(i.price), format_price(i.price * i.quantity)]
            for i in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "c", "r", "r"]
        )
        footer = (
            f"\n\nSubtotal: {format_price(order.subtotal)}  \n"
            f"Delivery: {format_price(order.delivery_cost)}  \n"
            f"VAT: {format_price(order.tax)}  \n"
            f"**Total: {format_price(order.total)}**"
        )
        viewer.document.update(header + table + footer)
