from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.client import ApiClient
from db import database
from printing.service import ReceiptService
from printing.thermal import PrinterState, ThermalPrinter
from printing.usb_transport import UsbBackend
from utils.config import Settings, load_settings
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    PrinterStateChangedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_login import LoginScreen
from views.scr_new_sale import NewSaleScreen
from views.scr_orders import OrdersScreen

_logger = get_logger(__name__)


class PosApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "new_sale": NewSaleScreen,
        "orders": OrdersScreen,
    }

    CASHIER_MODES = {"new_sale": "New Sale", "orders": "Orders"}

    CSS_PATH = [
        "views/styles/index.tcss",
        "views/styles/login.tcss",
        "views/styles/new_sale.tcss",
        "views/styles/checkout.tcss",
        "views/styles/orders.tcss",
    ]

    state: GlobalState

    def __init__(self, settings: Settings | None = None):
        super().__init__()
        settings = settings or load_settings()
        database.configure(settings.db_path)

        thermal = ThermalPrinter(
            UsbBackend(),
            settings.printer_vendor_ids,
            endpoint=settings.printer_endpoint,
            on_state_change=self._handle_printer_state,
        )
        self.state = GlobalState(
            settings=settings,
            api=ApiClient(settings.api_base_url, timeout=settings.api_timeout),
            receipts=ReceiptService(thermal, settings.shop_name, settings.currency),
        )

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.restore_printer()
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def _handle_printer_state(self, state: PrinterState) -> None:
        self.screen.post_message(PrinterStateChangedMessage(state.value))

    @work(exclusive=True, group="printer")
    async def restore_printer(self) -> None:
        if await self.state.receipts.restore_printer():
            self.notify(f"Thermal printer ready ({self.state.printer.device}).")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.state.end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.state.end_session()
        self.state.api.close()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        self.app.post_message(ModeSwitchedMessage(self.app.current_mode, "new_sale"))
        await self.switch_mode("new_sale")


def run() -> None:
    app = PosApp()
    app.run()


if __name__ == "__main__":
    run()
