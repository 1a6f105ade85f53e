from typing import List, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api.catalog import DebouncedSearch
from sales.models import Customer, PersistedOrder
from sales.receipt import format_discount
from utils.errors import AuthenticationError, PosError
from utils.logger import get_logger
from utils.pure import format_money, generate_markdown_table

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[Optional[PersistedOrder]]):
    """
    Pick the customer, then confirm or save the sale for later.
    Dismisses with the persisted order, or None when the cashier goes back.
    """

    def __init__(self):
        super().__init__()
        self._customers: List[Customer] = []
        self._search: Optional[DebouncedSearch[Customer]] = None

    @property
    def checkout(self):
        return self.app.state.checkout

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Customer")
            yield Input(placeholder="Search customer by name, code, phone...", id="input-customer")
            yield DataTable(id="table-customers")
            yield Label("No customer selected", id="label-customer")
            with Horizontal(id="hort-checkout-btns"):
                yield Button("Go Back", id="btn-quit")
                yield Button("Save for Later", id="btn-save", variant="warning")
                yield Button("Confirm Order", id="btn-confirm", variant="primary")

    async def on_mount(self):
        table = self.query_one("#table-customers", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Code", "Name", "Phone", "City")

        # a fresh checkout starts without a customer
        self.checkout.start_new_sale()
        self._search = DebouncedSearch(
            self.app.state.catalog.search_customers,
            self._show_customers,
            delay=self.app.state.settings.search_debounce,
        )
        self._search.submit("")

        await self.query_one(MarkdownViewer).document.update(self._summary_markdown())
        self._refresh_actions()
        self.query_one("#input-customer").focus()

    def _summary_markdown(self) -> str:
        cart = self.app.state.cart
        currency = self.app.state.settings.currency
        rows = [
            [
                item.product.name,
                item.quantity,
                format_money(item.unit_price, currency),
                format_discount(item.discount_value, item.discount_kind, currency) or "-",
                format_money(cart.compute_line_total(item), currency),
            ]
            for item in cart.items
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Discount", "Total"],
            rows,
            ["l", "r", "r", "r", "r"],
        )
        md += f"\n\n**Subtotal:** {format_money(cart.compute_subtotal(), currency)}"
        order_discount = format_discount(
            cart.order_discount_value, cart.order_discount_kind, currency
        )
        if order_discount:
            md += f"  \n**Order Discount:** -{order_discount}"
        md += f"  \n**Total:** {format_money(cart.compute_grand_total(), currency)}"
        return md

    def _show_customers(self, query: str, customers: List[Customer]) -> None:
        if not self.is_mounted:
            return
        self._customers = customers
        table = self.query_one("#table-customers", DataTable)
        table.clear()
        for c in customers:
            table.add_row(c.code or "-", c.name, c.phone or "-", c.city or "-", key=str(c.id))

    def _refresh_actions(self) -> None:
        submitting = self.checkout.is_submitting
        can_submit = self.checkout.can_submit
        self.query_one("#btn-confirm", Button).disabled = not can_submit
        self.query_one("#btn-save", Button).disabled = not can_submit
        self.query_one("#btn-quit", Button).disabled = submitting
        self.query_one("#input-customer", Input).disabled = submitting
        self.query_one("#table-customers", DataTable).disabled = submitting

        customer = self.checkout.customer
        label = self.query_one("#label-customer", Label)
        if customer is None:
            label.update("No customer selected")
        else:
            label.update(f"Customer: {customer.name} ({customer.code or 'N/A'})")

    def _lock_form(self) -> None:
        for selector in ("#btn-confirm", "#btn-save", "#btn-quit", "#input-customer", "#table-customers"):
            self.query_one(selector).disabled = True

    @on(Input.Changed, "#input-customer")
    def handle_customer_search(self, event: Input.Changed) -> None:
        if self._search is not None:
            self._search.submit(event.value)

    @on(DataTable.RowSelected, "#table-customers")
    def handle_customer_selected(self, event: DataTable.RowSelected) -> None:
        cid = int(event.row_key.value)
        customer = next((c for c in self._customers if c.id == cid), None)
        self.checkout.select_customer(customer)
        self._refresh_actions()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" and not self.checkout.is_submitting:
            self.dismiss(None)

    @on(Button.Pressed, "#btn-confirm")
    @work(group="submit")
    async def handle_confirm(self) -> None:
        await self._submit(self.checkout.confirm, "Order confirmed")

    @on(Button.Pressed, "#btn-save")
    @work(group="submit")
    async def handle_save_for_later(self) -> None:
        await self._submit(self.checkout.save_for_later, "Order saved for later")

    async def _submit(self, action, success_text: str) -> None:
        if not self.checkout.can_submit:
            return
        self._lock_form()
        try:
            order = await action()
        except AuthenticationError as exc:
            self.notify(str(exc), severity="error")
            self._refresh_actions()
            return
        except PosError as exc:
            self.notify(f"Order failed: {exc}. You can retry.", severity="error", timeout=8)
            self._refresh_actions()
            return

        if order is None:
            self._refresh_actions()
            return
        self.notify(f"{success_text}. Order number {order.number}.")
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
