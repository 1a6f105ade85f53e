from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Rule, Select

from api.catalog import DebouncedSearch
from sales.cart import (
    SetComment,
    SetDiscountKind,
    SetDiscountValue,
    SetPrice,
    SetQuantity,
)
from sales.models import DiscountKind, OrderStatus, PersistedOrder, Product
from sales.receipt import format_discount
from utils.errors import NetworkError
from utils.logger import get_logger
from utils.messages import CartChangedMessage, OrderCreatedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_receipt import ReceiptModal

_logger = get_logger(__name__)

CART_COLUMNS = [
    ("Product", "product"),
    ("Qty", "qty"),
    ("Price", "price"),
    ("Discount", "discount"),
    ("Total", "total"),
]


def discount_kind_options(currency: str):
    return [
        (f"Fixed ({currency})", DiscountKind.FIXED),
        ("Percent (%)", DiscountKind.PERCENT),
    ]


class NewSaleScreen(BaseScreen):
    """
    Catalog search on the left, the cart and its line editor on the right.
    Selecting a search result adds it to the cart; scanning a barcode and
    pressing enter adds the exact match.
    """

    def __init__(self) -> None:
        super().__init__()
        self._candidates: List[Product] = []
        self._editing_pid: Optional[int] = None
        self._pending_select: Optional[int] = None
        self._search: Optional[DebouncedSearch[Product]] = None

    @property
    def cart(self):
        return self.app.state.cart

    @property
    def currency(self) -> str:
        return self.app.state.settings.currency

    def _money(self, amount) -> str:
        return format_money(amount, self.currency)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-sale"):
            with Vertical(id="div-catalog"):
                yield Input(
                    id="input-search", placeholder="Search products or scan a barcode..."
                )
                yield Label("", id="label-search-hint")
                yield DataTable(id="table-products")
            with Vertical(id="div-cart"):
                yield DataTable(id="table-cart")
                with Horizontal(id="div-line-editor"):
                    yield Button("-", id="btn-sub-qty")
                    yield Input(
                        "1",
                        id="input-line-qty",
                        type="integer",
                        validators=[Number(minimum=1)],
                    )
                    yield Button("+", id="btn-add-qty")
                    yield Input(id="input-line-price", type="number", placeholder="Price")
                    yield Input(
                        id="input-line-discount", type="number", placeholder="Discount"
                    )
                    yield Select(
                        discount_kind_options(self.currency),
                        id="select-line-discount-kind",
                        allow_blank=False,
                    )
                    yield Button("Remove", id="btn-remove-line", variant="error")
                yield Input(id="input-line-comment", placeholder="Line comment")
                yield Rule(line_style="dashed")
                with Horizontal(id="div-order-discount"):
                    yield Label("Order discount", id="label-order-discount")
                    yield Input(
                        "0", id="input-order-discount", type="number", placeholder="0"
                    )
                    yield Select(
                        discount_kind_options(self.currency),
                        id="select-order-discount-kind",
                        allow_blank=False,
                    )
                yield Label("", id="label-cart-subtotal")
                yield Label("", id="label-cart-total")
                with Horizontal(id="hort-buttons"):
                    yield Button("Cancel Sale", id="btn-cancel-sale", variant="error")
                    yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self) -> None:
        products = self.query_one("#table-products", DataTable)
        products.cursor_type = "row"
        products.zebra_stripes = True
        products.add_columns("ID", "Name", "Price", "Color")

        cart_table = self.query_one("#table-cart", DataTable)
        cart_table.cursor_type = "row"
        cart_table.zebra_stripes = True
        for label, key in CART_COLUMNS:
            cart_table.add_column(label, key=key)

        self._search = DebouncedSearch(
            self.app.state.catalog.search_products,
            self._show_candidates,
            delay=self.app.state.settings.search_debounce,
        )
        self._search.submit("")
        self._render_cart()
        self.query_one("#input-search").focus()

    # ---------------------------
    # Catalog search
    # ---------------------------

    @on(Input.Changed, "#input-search")
    def handle_search_changed(self, event: Input.Changed) -> None:
        if self._search is not None:
            self._search.submit(event.value)

    def _show_candidates(self, query: str, products: List[Product]) -> None:
        if not self.is_mounted:
            return
        self._candidates = products
        table = self.query_one("#table-products", DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.name,
                self._money(p.price),
                p.color_tag or "",
                key=str(p.id),
            )
        hint = self.query_one("#label-search-hint", Label)
        if not products and query.strip():
            hint.update("There is no product with this search value")
            hint.add_class("-empty")
        else:
            hint.update("")
            hint.remove_class("-empty")

    @on(Input.Submitted, "#input-search")
    @work(exclusive=True, group="barcode")
    async def handle_barcode(self, event: Input.Submitted) -> None:
        code = event.value.strip()
        if not code:
            return
        try:
            product = await self.app.state.catalog.find_by_barcode(code)
        except NetworkError as exc:
            _logger.warning(f"Barcode lookup failed: {exc}")
            product = None
        if product is None and len(self._candidates) == 1:
            product = self._candidates[0]
        if product is None:
            self.notify(f"No product for '{code}'.", severity="warning")
            return
        self._add_to_cart(product)
        event.input.value = ""

    @on(DataTable.RowSelected, "#table-products")
    def handle_product_selected(self, event: DataTable.RowSelected) -> None:
        pid = int(event.row_key.value)
        product = next((p for p in self._candidates if p.id == pid), None)
        if product is not None:
            self._add_to_cart(product)

    def _add_to_cart(self, product: Product) -> None:
        item = self.cart.add_item(product)
        self._editing_pid = None
        self._select_line(item.product_id)
        self.post_message(CartChangedMessage())

    # ---------------------------
    # Line editor
    # ---------------------------

    def _select_line(self, product_id: Optional[int]) -> None:
        self._pending_select = product_id

    @on(DataTable.RowHighlighted, "#table-cart")
    def handle_line_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        pid = int(event.row_key.value)
        if pid != self._editing_pid:
            self._load_editor(pid)

    def _load_editor(self, pid: Optional[int]) -> None:
        self._editing_pid = pid
        item = self.cart.get(pid) if pid is not None else None
        editor_ids = [
            "#btn-sub-qty",
            "#input-line-qty",
            "#btn-add-qty",
            "#input-line-price",
            "#input-line-discount",
            "#select-line-discount-kind",
            "#btn-remove-line",
            "#input-line-comment",
        ]
        for widget_id in editor_ids:
            self.query_one(widget_id).disabled = item is None
        if item is None:
            return

        self.query_one("#input-line-qty", Input).value = str(item.quantity)
        self.query_one("#input-line-price", Input).value = str(item.unit_price)
        # only products flagged for it accept a manual price
        self.query_one("#input-line-price", Input).disabled = not item.price_editable
        self.query_one("#input-line-discount", Input).value = str(item.discount_value)
        self.query_one("#select-line-discount-kind", Select).value = item.discount_kind
        self.query_one("#input-line-comment", Input).value = item.comment
        self.query_one("#btn-sub-qty", Button).disabled = item.quantity <= 1

    def _apply(self, update) -> None:
        if self.cart.apply(update):
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self) -> None:
        item = self.cart.get(self._editing_pid)
        if item is not None:
            self._apply(SetQuantity(item.product_id, item.quantity + 1))

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self) -> None:
        item = self.cart.get(self._editing_pid)
        if item is not None and item.quantity > 1:
            self._apply(SetQuantity(item.product_id, item.quantity - 1))

    @on(Button.Pressed, "#btn-remove-line")
    def handle_remove_line(self) -> None:
        if self._editing_pid is not None:
            self.cart.remove_item(self._editing_pid)
            self._editing_pid = None
            self.post_message(CartChangedMessage())

    @on(Input.Changed, "#input-line-qty")
    def handle_qty_input(self, event: Input.Changed) -> None:
        if self._editing_pid is not None and event.input.is_valid:
            self._apply(SetQuantity(self._editing_pid, event.value))

    @on(Input.Changed, "#input-line-price")
    def handle_price_input(self, event: Input.Changed) -> None:
        if self._editing_pid is not None and self.cart.can_edit_price(self._editing_pid):
            self._apply(SetPrice(self._editing_pid, event.value))

    @on(Input.Changed, "#input-line-discount")
    def handle_discount_input(self, event: Input.Changed) -> None:
        if self._editing_pid is not None:
            self._apply(SetDiscountValue(self._editing_pid, event.value or "0"))

    @on(Select.Changed, "#select-line-discount-kind")
    def handle_discount_kind(self, event: Select.Changed) -> None:
        if self._editing_pid is not None and isinstance(event.value, DiscountKind):
            self._apply(SetDiscountKind(self._editing_pid, event.value))

    @on(Input.Changed, "#input-line-comment")
    def handle_comment_input(self, event: Input.Changed) -> None:
        if self._editing_pid is not None:
            self._apply(SetComment(self._editing_pid, event.value))

    # ---------------------------
    # Order discount
    # ---------------------------

    @on(Input.Changed, "#input-order-discount")
    @on(Select.Changed, "#select-order-discount-kind")
    def handle_order_discount(self) -> None:
        value = self.query_one("#input-order-discount", Input).value or "0"
        kind = self.query_one("#select-order-discount-kind", Select).value
        if not isinstance(kind, DiscountKind):
            return
        if self.cart.set_order_discount(value, kind):
            self.post_message(CartChangedMessage())

    # ---------------------------
    # Rendering
    # ---------------------------

    @on(CartChangedMessage)
    @on(ScreenResume)
    def handle_cart_change(self) -> None:
        self._render_cart()

    def _render_cart(self) -> None:
        table = self.query_one("#table-cart", DataTable)
        wanted = {str(item.product_id): item for item in self.cart.items}
        for row_key in list(table.rows):
            if row_key.value not in wanted:
                table.remove_row(row_key)
        for key, item in wanted.items():
            cells = {
                "product": item.product.name,
                "qty": item.quantity,
                "price": self._money(item.unit_price),
                "discount": format_discount(
                    item.discount_value, item.discount_kind, self.currency
                )
                or "-",
                "total": self._money(self.cart.compute_line_total(item)),
            }
            if key in table.rows:
                for column, value in cells.items():
                    table.update_cell(key, column, value)
            else:
                table.add_row(*cells.values(), key=key)

        pending = self._pending_select
        if pending is not None and str(pending) in table.rows:
            table.move_cursor(row=table.get_row_index(str(pending)))
            self._pending_select = None
            self._load_editor(pending)
        elif self._editing_pid not in self.cart:
            self._load_editor(self.cart.items[0].product_id if self.cart else None)
        elif self._editing_pid is not None:
            item = self.cart.get(self._editing_pid)
            self.query_one("#btn-sub-qty", Button).disabled = item.quantity <= 1
            qty_input = self.query_one("#input-line-qty", Input)
            if qty_input.value != str(item.quantity):
                qty_input.value = str(item.quantity)

        self.query_one("#label-cart-subtotal", Label).update(
            f"Subtotal: {self._money(self.cart.compute_subtotal())}"
        )
        self.query_one("#label-cart-total", Label).update(
            f"Total: {self._money(self.cart.compute_grand_total())}"
        )
        self.query_one("#btn-checkout", Button).disabled = self.cart.is_empty
        self.query_one("#btn-cancel-sale", Button).disabled = self.cart.is_empty

    def _reset_discount_inputs(self) -> None:
        self.query_one("#input-order-discount", Input).value = "0"
        self.query_one("#select-order-discount-kind", Select).value = DiscountKind.FIXED

    # ---------------------------
    # Terminal actions
    # ---------------------------

    @on(Button.Pressed, "#btn-cancel-sale")
    def handle_cancel_sale(self) -> None:
        checkout = self.app.state.checkout
        if checkout is None:
            return
        checkout.cancel()
        self._editing_pid = None
        self._reset_discount_inputs()
        self.post_message(CartChangedMessage())
        self.notify("Sale cancelled.", severity="warning")

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="checkout")
    async def handle_checkout(self) -> None:
        if self.cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return

        order: Optional[PersistedOrder] = await self.app.push_screen_wait(
            CheckoutModal()
        )
        self.post_message(CartChangedMessage())
        if order is None:
            return

        self._editing_pid = None
        self._reset_discount_inputs()
        self.app.post_message(OrderCreatedMessage(order.id, order.number))
        if order.status.upper() == OrderStatus.DONE.value:
            await self.app.push_screen_wait(ReceiptModal(order))
