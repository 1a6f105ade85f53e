from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from sales.models import PersistedOrder
from utils.errors import DeviceError, UnsupportedCapabilityError
from utils.logger import get_logger
from utils.messages import PrinterStateChangedMessage
from views.modal_dialog import AlertModal

_logger = get_logger(__name__)


class ReceiptModal(ModalScreen[None]):
    """
    Receipt preview of a persisted order, with the A4 and thermal print actions.
    """

    def __init__(self, order: PersistedOrder):
        super().__init__()
        self.order = order

    def compose(self) -> ComposeResult:
        with Vertical(id="div-receipt"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal(id="hort-receipt-btns"):
                yield Button("Close", id="btn-quit")
                yield Button("Print A4", id="btn-print-a4", variant="primary")
                yield Button("", id="btn-print-thermal", variant="success")

    async def on_mount(self):
        self._relabel_thermal()
        markdown = self.app.state.receipts.preview(self.order)
        await self.query_one(MarkdownViewer).document.update(markdown)

    def _relabel_thermal(self) -> None:
        printer = self.app.state.printer
        button = self.query_one("#btn-print-thermal", Button)
        button.label = printer.action_label
        button.disabled = not printer.is_supported or printer.busy

    @on(PrinterStateChangedMessage)
    def handle_printer_relabel(self) -> None:
        self._relabel_thermal()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-print-a4")
    @work(exclusive=True, group="a4")
    async def handle_print_a4(self) -> None:
        if not await self.app.state.receipts.print_a4(self.order):
            self.notify(
                "Could not open the print page. Check the browser settings.",
                severity="warning",
            )

    @on(Button.Pressed, "#btn-print-thermal")
    @work(group="thermal")
    async def handle_print_thermal(self) -> None:
        button = self.query_one("#btn-print-thermal", Button)
        button.disabled = True
        try:
            await self.app.state.receipts.print_thermal(self.order)
        except UnsupportedCapabilityError as exc:
            self.notify(str(exc), severity="warning")
        except DeviceError as exc:
            _logger.error(f"Thermal print of {self.order.number} failed: {exc}")
            await self.app.push_screen_wait(AlertModal(f"Thermal print failed: {exc}"))
        else:
            self.notify(f"Receipt {self.order.number} sent to the printer.")
        finally:
            self._relabel_thermal()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
