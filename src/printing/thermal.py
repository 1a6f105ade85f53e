# thermal printer channel: pairing state machine and serialized prints
import asyncio
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from printing.escpos import encode_receipt
from printing.usb_transport import DeviceInfo, UsbBackend, UsbPrinterTransport
from sales.receipt import ReceiptDocument
from utils.errors import (
    DeviceError,
    PrinterBusyError,
    PrinterNotConnectedError,
    UnsupportedCapabilityError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


class PrinterState(Enum):
    UNSUPPORTED = "unsupported"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ThermalPrinter:
    """
    The one shared thermal printer connection of the process.

    Unsupported is terminal. Otherwise Disconnected -> Connecting -> Connected,
    and a failed transfer drops back to Disconnected; the failure is raised,
    never retried. Prints are serialized by a busy flag.
    """

    def __init__(
        self,
        backend: UsbBackend,
        vendor_ids: Iterable[int],
        endpoint: int = 0x01,
        on_state_change: Optional[Callable[[PrinterState], None]] = None,
    ) -> None:
        self._backend = backend
        self.vendor_ids = tuple(vendor_ids)
        self.endpoint = endpoint
        self._on_state_change = on_state_change
        self._transport: Optional[UsbPrinterTransport] = None
        self._busy = False
        self._state = (
            PrinterState.DISCONNECTED
            if backend.is_supported
            else PrinterState.UNSUPPORTED
        )
        if self._state is PrinterState.UNSUPPORTED:
            _logger.info("Thermal printing unsupported: no USB backend")

    @property
    def state(self) -> PrinterState:
        return self._state

    @property
    def is_supported(self) -> bool:
        return self._state is not PrinterState.UNSUPPORTED

    @property
    def connected(self) -> bool:
        return self._state is PrinterState.CONNECTED

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def device(self) -> Optional[DeviceInfo]:
        return self._transport.info if self._transport else None

    @property
    def action_label(self) -> str:
        if not self.is_supported:
            return "Thermal unsupported"
        if self.connected:
            return "Print Thermal"
        return "Connect & Print"

    def _set_state(self, state: PrinterState) -> None:
        if state is self._state:
            return
        _logger.debug(f"Printer {self._state.value} -> {state.value}")
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _require_supported(self) -> None:
        if not self.is_supported:
            raise UnsupportedCapabilityError(
                "Thermal printing is not supported on this machine."
            )

    async def reopen(self, known: Sequence[Tuple[int, int]]) -> bool:
        """
        Reopen a previously paired printer without user interaction.
        Returns True if one of `known` (vendor_id, product_id) could be opened.
        Never interferes with a pairing the user started meanwhile.
        """
        if self._state is not PrinterState.DISCONNECTED or not known:
            return self.connected
        for vendor_id, product_id in known:
            info = DeviceInfo(vendor_id, product_id)
            try:
                transport = await asyncio.to_thread(
                    self._backend.open, info, self.endpoint
                )
            except DeviceError as exc:
                _logger.debug(f"No pre-paired printer at {info}: {exc}")
                if self._state is not PrinterState.DISCONNECTED:
                    return self.connected
                continue
            if self._state is not PrinterState.DISCONNECTED:
                # an explicit pairing won the race, keep its connection
                await asyncio.to_thread(transport.close)
                return self.connected
            self._transport = transport
            self._set_state(PrinterState.CONNECTED)
            _logger.info(f"Reconnected to paired printer {info}")
            return True
        _logger.info("No printer pre-connected")
        return False

    async def available_devices(self) -> List[DeviceInfo]:
        self._require_supported()
        return await asyncio.to_thread(self._backend.find_devices, self.vendor_ids)

    async def connect(self, device: Optional[DeviceInfo] = None) -> DeviceInfo:
        """
        Pair with a printer. Only call this from an explicit user action.
        Without `device` the first printer matching the vendor filters is used.
        """
        self._require_supported()
        if self._state is PrinterState.CONNECTING:
            raise PrinterBusyError("Printer pairing already in progress.")

        previous = self._transport
        self._set_state(PrinterState.CONNECTING)
        try:
            if device is None:
                candidates = await self.available_devices()
                if not candidates:
                    raise DeviceError("No thermal printer found. Is it plugged in?")
                device = candidates[0]
            transport = await asyncio.to_thread(
                self._backend.open, device, self.endpoint
            )
        except DeviceError as exc:
            _logger.error(f"Printer connection failed: {exc}")
            self._transport = None
            self._set_state(PrinterState.DISCONNECTED)
            raise

        if previous is not None and previous is not transport:
            await asyncio.to_thread(previous.close)
        self._transport = transport
        self._set_state(PrinterState.CONNECTED)
        _logger.info(f"Paired with printer {device}")
        return device

    async def print(self, doc: ReceiptDocument) -> int:
        """Send the receipt. Returns the number of bytes written."""
        self._require_supported()
        if self._busy:
            raise PrinterBusyError("Printer is still busy with the previous receipt.")
        if not self.connected or self._transport is None:
            raise PrinterNotConnectedError("Printer not connected")

        data = encode_receipt(doc)
        self._busy = True
        try:
            written = await asyncio.to_thread(self._transport.write, data)
        except DeviceError as exc:
            _logger.error(f"Print of {doc.order_number} failed: {exc}")
            self._drop_connection()
            raise
        finally:
            self._busy = False
        _logger.info(f"Printed receipt {doc.order_number} ({written} bytes)")
        return written

    async def connect_and_print(self, doc: ReceiptDocument) -> int:
        """Pair first when needed, then print the same receipt."""
        self._require_supported()
        if not self.connected:
            await self.connect()
        return await self.print(doc)

    def disconnect(self) -> None:
        """Close the current printer, if any. The next print pairs again."""
        if self.is_supported:
            self._drop_connection()

    def _drop_connection(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                transport.close()
            except DeviceError as exc:
                _logger.debug(f"Closing lost printer failed: {exc}")
        self._set_state(PrinterState.DISCONNECTED)
