# one entry point per print channel: build the receipt, render, journal
from datetime import datetime
from typing import Callable, List, Optional

import aiosqlite

from db import crud
from db.models import PrintedReceipt
from printing.a4 import print_a4
from printing.preview import render_markdown
from printing.thermal import ThermalPrinter
from sales.models import PersistedOrder
from sales.receipt import ReceiptDocument, build_receipt
from utils.logger import get_logger

_logger = get_logger(__name__)

# the local store is bookkeeping only, losing it never fails a print
STORE_ERRORS = (aiosqlite.Error, OSError)


class ReceiptService:
    """
    Printing only ever happens after the order was persisted, so nothing
    here touches the cart or the order; failures stay with the caller.
    """

    def __init__(
        self,
        thermal: ThermalPrinter,
        shop_name: str,
        currency: str,
        opener: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self.thermal = thermal
        self.shop_name = shop_name
        self.currency = currency
        self._opener = opener

    def receipt_for(self, order: PersistedOrder) -> ReceiptDocument:
        doc = build_receipt(order, shop_name=self.shop_name, currency=self.currency)
        if not doc.is_consistent:
            _logger.warning(
                f"Order {order.number}: server total {doc.grand_total} != "
                f"recomputed {doc.recomputed_total}"
            )
        return doc

    def preview(self, order: PersistedOrder) -> str:
        """On-screen rendering only; previews are not journaled."""
        return render_markdown(self.receipt_for(order))

    async def _journal(self, order: PersistedOrder, channel: str) -> None:
        try:
            await crud.record_print(order.id, order.number, channel, datetime.now())
        except STORE_ERRORS as exc:
            _logger.warning(f"Could not journal {channel} print of {order.number}: {exc}")

    async def print_a4(self, order: PersistedOrder) -> bool:
        doc = self.receipt_for(order)
        if self._opener is not None:
            opened = print_a4(doc, opener=self._opener)
        else:
            opened = print_a4(doc)
        if opened:
            await self._journal(order, "a4")
        return opened

    async def print_thermal(self, order: PersistedOrder) -> int:
        """Pairs first if no printer is connected. Raises DeviceError on failure."""
        doc = self.receipt_for(order)
        was_connected = self.thermal.connected
        written = await self.thermal.connect_and_print(doc)
        if not was_connected and self.thermal.device is not None:
            device = self.thermal.device
            try:
                await crud.remember_printer(
                    device.vendor_id, device.product_id, device.description, datetime.now()
                )
            except STORE_ERRORS as exc:
                _logger.warning(f"Could not remember printer {device}: {exc}")
        await self._journal(order, "thermal")
        return written

    async def restore_printer(self) -> bool:
        """Reopen a printer paired in an earlier session, if it is still plugged in."""
        if not self.thermal.is_supported:
            return False
        try:
            known = await crud.paired_device_ids()
        except STORE_ERRORS as exc:
            _logger.warning(f"Paired printers unavailable: {exc}")
            return False
        return await self.thermal.reopen(known)

    async def forget_printer(self) -> bool:
        """
        Close the current printer and drop its pairing so it is not reopened
        on the next start. Returns True if a stored pairing was removed.
        """
        device = self.thermal.device
        self.thermal.disconnect()
        if device is None:
            return False
        try:
            removed = await crud.forget_printer(device.vendor_id, device.product_id)
        except STORE_ERRORS as exc:
            _logger.warning(f"Could not forget printer {device}: {exc}")
            return False
        _logger.info(f"Forgot printer {device}")
        return removed

    async def print_history(self, order_id: int) -> List[PrintedReceipt]:
        """Journal entries of one order, oldest first; empty if the store is unavailable."""
        try:
            return await crud.list_prints_for_order(order_id)
        except STORE_ERRORS as exc:
            _logger.warning(f"Print history of order {order_id} unavailable: {exc}")
            return []

    async def last_print(self) -> Optional[PrintedReceipt]:
        try:
            return await crud.last_printed()
        except STORE_ERRORS as exc:
            _logger.warning(f"Receipt journal unavailable: {exc}")
            return None
