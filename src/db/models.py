# provide dataclass models of the local store

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PairedPrinter:
    vendor_id: int
    product_id: int
    description: str
    paired_at: datetime


@dataclass(frozen=True)
class PrintedReceipt:
    pno: int
    order_id: int
    order_number: str
    channel: str  # "preview", "a4" or "thermal"
    printed_at: datetime
