from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from sales.models import PersistedOrder
from utils.errors import DeviceError, NetworkError, UnsupportedCapabilityError
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    OrderCreatedMessage,
    PrinterStateChangedMessage,
)
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_dialog import AlertModal, DialogModal

_logger = get_logger(__name__)


class OrdersScreen(BaseScreen):
    """
    Orders persisted by the backend, newest first.

    Layout:
    - Receipt preview of the highlighted order at the top.
    - Orders table below, with reprint and complete actions.
    """

    BINDINGS = [
        Binding("f5", "refresh", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[PersistedOrder] = []

    @property
    def selected(self) -> Optional[PersistedOrder]:
        table = self.query_one("#table-orders", DataTable)
        if table.row_count == 0 or table.cursor_row is None:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        oid = int(row_key.value)
        return next((o for o in self._orders if o.id == oid), None)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Complete Order", id="btn-complete", variant="warning")
            yield Button("Print A4", id="btn-print-a4", variant="primary")
            yield Button("", id="btn-print-thermal", variant="success")
            yield Button("Reprint Last", id="btn-reprint-last")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Customer", "Status", "Total")
        self._refresh_buttons()

    def action_refresh(self) -> None:
        self._load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(OrderCreatedMessage)
    def handle_refresh(self) -> None:
        self._load_orders()

    @on(PrinterStateChangedMessage)
    def handle_printer_relabel(self) -> None:
        self._refresh_buttons()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        try:
            orders = await self.app.state.orders.list_orders()
        except NetworkError as exc:
            self.notify(f"Could not load orders: {exc}", severity="error")
            return

        currency = self.app.state.settings.currency
        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.number,
                o.date_created.strftime("%Y-%m-%d %H:%M") if o.date_created else "-",
                o.customer.name if o.customer else "-",
                o.status,
                format_money(o.total, currency),
                key=str(o.id),
            )
        self._orders = orders
        if orders:
            table.cursor_coordinate = (0, 0)
        self._render_detail()

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self) -> None:
        self._render_detail()

    def _refresh_buttons(self) -> None:
        order = self.selected
        printer = self.app.state.printer
        thermal = self.query_one("#btn-print-thermal", Button)
        thermal.label = printer.action_label
        thermal.disabled = order is None or not printer.is_supported or printer.busy
        self.query_one("#btn-print-a4", Button).disabled = order is None
        self.query_one("#btn-complete", Button).disabled = (
            order is None or not order.is_pending
        )

    @work(exclusive=True, group="detail")
    async def _render_detail(self) -> None:
        self._refresh_buttons()
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        order = self.selected
        if order is None:
            await viewer.document.update("### Select an order to view its receipt.")
            return
        receipts = self.app.state.receipts
        markdown = receipts.preview(order)
        history = await receipts.print_history(order.id)
        if history:
            printed = ", ".join(
                f"{p.channel} {p.printed_at:%Y-%m-%d %H:%M}" for p in history
            )
            markdown += f"\n\n_Printed: {printed}_\n"
        await viewer.document.update(markdown)

    @on(Button.Pressed, "#btn-complete")
    @work(exclusive=True, group="complete")
    async def handle_complete(self) -> None:
        order = self.selected
        if order is None or not order.is_pending:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Mark order {order.number} as done?",
                primary_text="Yes",
                secondary_text="No",
            )
        ):
            return
        try:
            done = await self.app.state.orders.complete_order(order.id)
        except NetworkError as exc:
            self.notify(f"Could not complete order: {exc}", severity="error")
            return
        self.notify(f"Order {done.number} is now {done.status}.")
        self._load_orders()

    @on(Button.Pressed, "#btn-print-a4")
    @work(exclusive=True, group="a4")
    async def handle_print_a4(self) -> None:
        order = self.selected
        if order is None:
            return
        if not await self.app.state.receipts.print_a4(order):
            self.notify(
                "Could not open the print page. Check the browser settings.",
                severity="warning",
            )

    @on(Button.Pressed, "#btn-print-thermal")
    @work(group="thermal")
    async def handle_print_thermal(self) -> None:
        order = self.selected
        if order is None:
            return
        self.query_one("#btn-print-thermal", Button).disabled = True
        try:
            await self.app.state.receipts.print_thermal(order)
        except UnsupportedCapabilityError as exc:
            self.notify(str(exc), severity="warning")
        except DeviceError as exc:
            _logger.error(f"Thermal reprint of {order.number} failed: {exc}")
            await self.app.push_screen_wait(AlertModal(f"Thermal print failed: {exc}"))
        else:
            self.notify(f"Receipt {order.number} sent to the printer.")
        finally:
            self._refresh_buttons()

    @on(Button.Pressed, "#btn-reprint-last")
    @work(exclusive=True, group="reprint")
    async def handle_reprint_last(self) -> None:
        last = await self.app.state.receipts.last_print()
        if last is None:
            self.notify("Nothing was printed yet.", severity="warning")
            return
        try:
            order = await self.app.state.orders.get_order(last.order_id)
        except NetworkError as exc:
            self.notify(f"Could not load order {last.order_number}: {exc}", severity="error")
            return

        if last.channel == "a4":
            if not await self.app.state.receipts.print_a4(order):
                self.notify(
                    "Could not open the print page. Check the browser settings.",
                    severity="warning",
                )
            return
        try:
            await self.app.state.receipts.print_thermal(order)
        except UnsupportedCapabilityError as exc:
            self.notify(str(exc), severity="warning")
        except DeviceError as exc:
            await self.app.push_screen_wait(AlertModal(f"Thermal print failed: {exc}"))
        else:
            self.notify(f"Receipt {order.number} sent to the printer again.")
        finally:
            self._refresh_buttons()
