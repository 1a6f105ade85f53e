# the cart engine: line items, order discount and totals

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sales.models import DiscountKind, Product
from utils.logger import get_logger
from utils.pure import to_decimal, to_int

_logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass
class LineItem:
    product: Product
    quantity: int = 1
    unit_price: Decimal = ZERO
    discount_value: Decimal = ZERO
    discount_kind: DiscountKind = DiscountKind.FIXED
    comment: str = ""

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def price_editable(self) -> bool:
        return self.product.price_editable

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity


# explicit update operations, applied through Cart.apply


@dataclass(frozen=True)
class SetQuantity:
    product_id: int
    quantity: object


@dataclass(frozen=True)
class SetPrice:
    product_id: int
    price: object


@dataclass(frozen=True)
class SetDiscountValue:
    product_id: int
    value: object


@dataclass(frozen=True)
class SetDiscountKind:
    product_id: int
    kind: DiscountKind


@dataclass(frozen=True)
class SetComment:
    product_id: int
    comment: Optional[str]


CartUpdate = Union[SetQuantity, SetPrice, SetDiscountValue, SetDiscountKind, SetComment]


def apply_discount(amount: Decimal, value: Decimal, kind: DiscountKind) -> Decimal:
    """
    amount minus a fixed value, or minus value percent of amount.
    Not clamped: a large discount gives a negative result.
    """
    if kind is DiscountKind.PERCENT:
        return amount - amount * value / HUNDRED
    return amount - value


def compute_line_total(item: LineItem) -> Decimal:
    return apply_discount(item.gross, item.discount_value, item.discount_kind)


class Cart:
    """
    Ordered line items keyed by product id, plus one order-level discount.

    Line discounts apply first, the order discount then applies to the
    discounted subtotal. Quantities never drop below 1: setting 0 removes
    the line.
    """

    def __init__(self) -> None:
        self._items: Dict[int, LineItem] = {}
        self.order_discount_value: Decimal = ZERO
        self.order_discount_kind: DiscountKind = DiscountKind.FIXED

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, product_id: int) -> bool:
        return product_id in self._items

    @property
    def items(self) -> List[LineItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get(self, product_id: int) -> Optional[LineItem]:
        return self._items.get(product_id)

    def add_item(self, product: Product) -> LineItem:
        item = self._items.get(product.id)
        if item is not None:
            item.quantity += 1
            return item
        item = LineItem(product=product, quantity=1, unit_price=product.price)
        self._items[product.id] = item
        return item

    def remove_item(self, product_id: int) -> None:
        self._items.pop(product_id, None)

    def can_edit_price(self, product_id: int) -> bool:
        """Whether the user may override the price. Programmatic SetPrice ignores this."""
        item = self._items.get(product_id)
        return item is not None and item.price_editable

    def apply(self, update: CartUpdate) -> bool:
        """
        Apply one update operation. Returns True if the cart changed.
        Unparseable or out-of-range values leave the cart untouched.
        """
        item = self._items.get(update.product_id)
        if item is None:
            return False

        if isinstance(update, SetQuantity):
            quantity = to_int(update.quantity)
            if quantity is None or quantity < 0:
                _logger.debug(f"Ignoring quantity {update.quantity!r}")
                return False
            if quantity == 0:
                self.remove_item(item.product_id)
                return True
            if quantity == item.quantity:
                return False
            item.quantity = quantity
            return True

        if isinstance(update, SetPrice):
            price = to_decimal(update.price)
            if price is None or price < 0:
                _logger.debug(f"Ignoring price {update.price!r}")
                return False
            changed = price != item.unit_price
            item.unit_price = price
            return changed

        if isinstance(update, SetDiscountValue):
            value = to_decimal(update.value)
            if value is None or value < 0:
                _logger.debug(f"Ignoring discount {update.value!r}")
                return False
            changed = value != item.discount_value
            item.discount_value = value
            return changed

        if isinstance(update, SetDiscountKind):
            if not isinstance(update.kind, DiscountKind):
                return False
            changed = update.kind is not item.discount_kind
            item.discount_kind = update.kind
            return changed

        if isinstance(update, SetComment):
            comment = update.comment or ""
            changed = comment != item.comment
            item.comment = comment
            return changed

        raise TypeError(f"Unknown cart update: {update!r}")

    def set_order_discount(self, value, kind: DiscountKind) -> bool:
        amount = to_decimal(value)
        if amount is None or amount < 0:
            _logger.debug(f"Ignoring order discount {value!r}")
            return False
        self.order_discount_value = amount
        self.order_discount_kind = kind
        return True

    def compute_line_total(self, item: LineItem) -> Decimal:
        return compute_line_total(item)

    def compute_subtotal(self) -> Decimal:
        return sum((compute_line_total(item) for item in self._items.values()), ZERO)

    def compute_grand_total(self) -> Decimal:
        return apply_discount(
            self.compute_subtotal(),
            self.order_discount_value,
            self.order_discount_kind,
        )

    def clear(self) -> None:
        self._items.clear()
        self.order_discount_value = ZERO
        self.order_discount_kind = DiscountKind.FIXED
