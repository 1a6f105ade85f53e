"""
Receipt model: a persisted order turned into a channel-independent document.

Every print channel (preview, A4, thermal) renders a ReceiptDocument and
nothing else, so amounts and discount labels cannot drift between them.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sales.cart import apply_discount
from sales.models import DiscountKind, PersistedOrder
from utils.pure import CENT, format_money, format_plain_number

ZERO = Decimal("0")


def format_discount(value: Decimal, kind: DiscountKind, currency: str) -> Optional[str]:
    """
    `10.00 DH` for fixed, `10%` for percent. None when there is no discount.
    """
    if value is None or value <= 0:
        return None
    if kind is DiscountKind.PERCENT:
        return f"{format_plain_number(value)}%"
    return format_money(value, currency)


@dataclass(frozen=True)
class ReceiptCustomer:
    name: str
    code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class ReceiptLine:
    product_name: str
    quantity: int
    unit_price: Decimal
    gross: Decimal
    discount_display: Optional[str]
    line_total: Decimal
    comment: Optional[str] = None


@dataclass(frozen=True)
class ReceiptDocument:
    shop_name: str
    currency: str
    order_number: str
    cashier_name: str
    timestamp: Optional[datetime]
    status: str
    customer: Optional[ReceiptCustomer]
    lines: Tuple[ReceiptLine, ...]
    subtotal: Decimal
    order_discount_display: Optional[str]
    grand_total: Decimal
    recomputed_total: Decimal

    @property
    def is_consistent(self) -> bool:
        """Recomputed total agrees with the server total to the cent."""
        return abs(self.recomputed_total - self.grand_total) <= CENT

    @property
    def timestamp_display(self) -> str:
        if self.timestamp is None:
            return "-"
        return self.timestamp.strftime("%Y-%m-%d %H:%M")

    def money(self, amount: Decimal) -> str:
        return format_money(amount, self.currency)


def build_receipt(
    order: PersistedOrder, shop_name: str = "BOUMIA", currency: str = "DH"
) -> ReceiptDocument:
    """
    Build the receipt for a persisted order.

    Line totals and the subtotal are recomputed from price, quantity and
    discount. The grand total printed is the server's `total`; the client
    figure is kept in `recomputed_total` for a consistency check.
    """
    lines = []
    for item in order.items:
        gross = item.price * item.quantity
        lines.append(
            ReceiptLine(
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.price,
                gross=gross,
                discount_display=format_discount(
                    item.discount, item.discount_kind, currency
                ),
                line_total=apply_discount(gross, item.discount, item.discount_kind),
                comment=item.comment or None,
            )
        )
    subtotal = sum((line.line_total for line in lines), ZERO)

    customer = None
    if order.customer is not None:
        customer = ReceiptCustomer(
            name=order.customer.name or "N/A",
            code=order.customer.code,
            phone=order.customer.phone,
            email=order.customer.email,
        )

    return ReceiptDocument(
        shop_name=shop_name,
        currency=currency,
        order_number=order.number,
        cashier_name=order.user_name,
        timestamp=order.date_created,
        status=order.status,
        customer=customer,
        lines=tuple(lines),
        subtotal=subtotal,
        order_discount_display=format_discount(
            order.discount, order.discount_kind, currency
        ),
        grand_total=order.total,
        recomputed_total=apply_discount(subtotal, order.discount, order.discount_kind),
    )
