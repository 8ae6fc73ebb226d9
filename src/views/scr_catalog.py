from math import ceil

from textual import events, on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import DataTable, Input, Label, Select

from db.catalog import CategoryRepository
from db.products import search_products
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_product import ProductModal

PAGE_SIZE = 10


class CatalogScreen(BaseScreen):
    """
    Product catalog with free-text search, a category filter and pagination.
    Open a row to see the product sheet and add it to the cart.
    """

    # shown in the footer only, the table handles the keys itself
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
        Binding("escape", "noop", "Close Product", show=True),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)
    query_str = reactive("")
    category = reactive("")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-search"):
            yield Input(id="input-search", placeholder="Search phones, laptops, brands...")
            yield Select([], prompt="All categories", id="select-category")
        yield DataTable(id="table-search-result")
        with Horizontal(id="hort-table-control"):
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("Ref", key="id")
        table.add_columns("Product", "Brand", "Category", "Price", "Stock")

        categories = await CategoryRepository().find_many(is_active=True, limit=100)
        self.query_one("#select-category", Select).set_options(
            (c.name, c.name) for c in categories.items
        )

        self.update_search_result(self.query_str, self.category, 1)
        self.query_one("#input-search").focus()

    @on(Input.Changed, "#input-search")
    def handle_query_changed(self, message: Input.Changed) -> None:
        self.query_str = message.value
        self.page_idx = 1
        self.update_search_result(self.query_str, self.category, 1)

    @on(Select.Changed, "#select-category")
    def handle_category_changed(self, message: Select.Changed) -> None:
        self.category = "" if message.value is Select.BLANK else str(message.value)
        self.page_idx = 1
        self.update_search_result(self.query_str, self.category, 1)

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, message: Input.Changed) -> None:
        if message.value and message.value.isdigit():
            self.page_idx = int(message.value)

    @work()
    async def on_key(self, event: events.Key) -> None:
        table = self.query_one(DataTable)
        if event.key == "enter" and self.focused == table and table.row_count:
            row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
            await self.app.push_screen_wait(ProductModal(row_key.value))
            self.update_search_result(self.query_str, self.category, self.page_idx)

    def validate_page_idx(self, page_idx: int) -> int:
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, old: int, new: int) -> None:
        if old == new:
            return
        self.query_one("#input-page", Input).value = str(new)
        self.update_search_result(self.query_str, self.category, new)

    @work(exclusive=True)
    async def update_search_result(self, query: str, category: str, page: int) -> None:
        products, total = await search_products(query, category or None, page, PAGE_SIZE)

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.name,
                p.brand,
                p.category,
                format_price(p.price),
                str(p.stock) if p.stock else "Out of stock",
                key=p.id,
            )
        self.page_cnt = max(ceil(total / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]
