# ESC/POS encoding of a receipt document
from typing import Literal

from sales.receipt import ReceiptDocument

ESC = b"\x1b"
GS = b"\x1d"

INIT = ESC + b"@"
BOLD_ON = ESC + b"E\x01"
BOLD_OFF = ESC + b"E\x00"
ALIGN_LEFT = ESC + b"a\x00"
ALIGN_CENTER = ESC + b"a\x01"
ALIGN_RIGHT = ESC + b"a\x02"
SIZE_NORMAL = ESC + b"!\x00"
SIZE_DOUBLE_HEIGHT = ESC + b"!\x10"
SIZE_DOUBLE_WIDTH = ESC + b"!\x20"
SIZE_DOUBLE_BOTH = ESC + b"!\x30"
CUT = GS + b"V\x41\x00"
FEED = b"\n"

SEPARATOR = "-" * 16

_ALIGN = {"left": ALIGN_LEFT, "center": ALIGN_CENTER, "right": ALIGN_RIGHT}
_SIZE = {
    "normal": SIZE_NORMAL,
    "double_height": SIZE_DOUBLE_HEIGHT,
    "double_width": SIZE_DOUBLE_WIDTH,
    "double": SIZE_DOUBLE_BOTH,
}


class EscPosBuilder:
    """Accumulates control codes and text lines into one byte string."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buf = bytearray()

    def raw(self, data: bytes) -> "EscPosBuilder":
        self._buf += data
        return self

    def init(self) -> "EscPosBuilder":
        return self.raw(INIT)

    def bold(self, on: bool = True) -> "EscPosBuilder":
        return self.raw(BOLD_ON if on else BOLD_OFF)

    def align(self, where: Literal["left", "center", "right"]) -> "EscPosBuilder":
        return self.raw(_ALIGN[where])

    def size(
        self, mode: Literal["normal", "double_height", "double_width", "double"]
    ) -> "EscPosBuilder":
        return self.raw(_SIZE[mode])

    def line(self, text: str = "") -> "EscPosBuilder":
        return self.raw(text.encode(self.encoding, errors="replace") + FEED)

    def feed(self, lines: int = 1) -> "EscPosBuilder":
        return self.raw(FEED * lines)

    def cut(self) -> "EscPosBuilder":
        return self.raw(CUT)

    def build(self) -> bytes:
        return bytes(self._buf)


def encode_receipt(doc: ReceiptDocument) -> bytes:
    p = EscPosBuilder()
    p.init()

    p.align("center").size("double").line(doc.shop_name)
    p.size("normal").line(SEPARATOR)
    p.align("left")

    p.line(f"Order: {doc.order_number}")
    p.line(f"Date: {doc.timestamp_display}")
    p.line(f"Cashier: {doc.cashier_name or '-'}")
    p.line(SEPARATOR)

    if doc.customer is not None:
        p.line(f"Customer: {doc.customer.name}")
        if doc.customer.code:
            p.line(f"Code: {doc.customer.code}")
        if doc.customer.phone:
            p.line(f"Phone: {doc.customer.phone}")
        p.line(SEPARATOR)

    p.bold().line("ITEMS:").bold(False)
    for line in doc.lines:
        p.line(line.product_name)
        qty = f"{line.quantity} x {doc.money(line.unit_price)}"
        if line.discount_display:
            qty += f" (Disc: {line.discount_display})"
        p.line(qty)
        if line.comment:
            p.line(f"Note: {line.comment}")
        p.line(f"= {doc.money(line.line_total)}")
        p.line(SEPARATOR)

    p.align("right").bold()
    p.line(f"Subtotal: {doc.money(doc.subtotal)}")
    if doc.order_discount_display:
        p.line(f"Order Disc: {doc.order_discount_display}")
    p.size("double_height").line(f"TOTAL: {doc.money(doc.grand_total)}")
    p.size("normal").bold(False).align("center")
    p.line("Thank you for shopping!")
    p.feed(3)
    p.cut()
    return p.build()
