# domain models for the sales pipeline: catalog entities, submissions, persisted orders

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from utils.pure import to_decimal, to_int


class DiscountKind(Enum):
    FIXED = "fixed"
    PERCENT = "percent"


# the only place the symbolic kind meets its wire form
_KIND_TO_CODE = {DiscountKind.FIXED: 0, DiscountKind.PERCENT: 1}
_CODE_TO_KIND = {code: kind for kind, code in _KIND_TO_CODE.items()}


def encode_discount_kind(kind: DiscountKind) -> int:
    """FIXED -> 0, PERCENT -> 1"""
    return _KIND_TO_CODE[kind]


def decode_discount_kind(code: Any) -> DiscountKind:
    """0 -> FIXED, 1 -> PERCENT. None counts as FIXED (no discount recorded)."""
    if code is None:
        return DiscountKind.FIXED
    value = to_int(code)
    if value not in _CODE_TO_KIND:
        raise ValueError(f"Unknown discount type code: {code!r}")
    return _CODE_TO_KIND[value]


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    DONE = "DONE"


def _money(val: Any) -> Decimal:
    amount = to_decimal(val)
    return amount if amount is not None else Decimal("0")


def _parse_datetime(val: Any) -> Optional[datetime]:
    if not val:
        return None
    if isinstance(val, datetime):
        return val
    text = str(val).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    price_editable: bool = False
    color_tag: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            price=_money(data.get("price")),
            price_editable=bool(data.get("isPriceChangeAllowed", False)),
            color_tag=data.get("color") or None,
            code=data.get("code") or None,
        )


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Customer":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            code=data.get("code") or None,
            phone=data.get("phoneNumber") or data.get("phone") or None,
            email=data.get("email") or None,
            city=data.get("city") or None,
        )


@dataclass(frozen=True)
class SubmissionItem:
    product_id: int
    quantity: int
    unit_price: Decimal
    discount_value: Decimal
    discount_kind: int  # 0 = fixed, 1 = percent
    comment: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": float(self.unit_price),
            "discount": float(self.discount_value),
            "discountType": self.discount_kind,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class OrderSubmission:
    """
    Payload for POST /api/posorders. Built fresh per attempt, never mutated.
    Discount kinds are already in their 0/1 wire form.
    """

    customer_id: int
    cashier_id: int
    discount_value: Decimal
    discount_kind: int
    status: OrderStatus
    items: Tuple[SubmissionItem, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "customerId": self.customer_id,
            "userId": self.cashier_id,
            "discount": float(self.discount_value),
            "discountType": self.discount_kind,
            "status": self.status.value,
            "items": [item.to_json() for item in self.items],
        }


@dataclass(frozen=True)
class PersistedOrderItem:
    id: Optional[int]
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    discount: Decimal
    discount_kind: DiscountKind
    comment: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PersistedOrderItem":
        product_id = int(data.get("productId") or 0)
        return cls(
            id=to_int(data.get("id")),
            product_id=product_id,
            product_name=str(data.get("productName") or f"Product #{product_id}"),
            quantity=to_int(data.get("quantity")) or 0,
            price=_money(data.get("price")),
            discount=_money(data.get("discount")),
            discount_kind=decode_discount_kind(data.get("discountType")),
            comment=data.get("comment") or None,
        )


@dataclass(frozen=True)
class PersistedOrder:
    """An order record as returned by the backend, server-assigned fields included."""

    id: int
    number: str
    total: Decimal
    status: str
    user_name: str
    discount: Decimal = Decimal("0")
    discount_kind: DiscountKind = DiscountKind.FIXED
    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None
    customer: Optional[Customer] = None
    items: Tuple[PersistedOrderItem, ...] = field(default_factory=tuple)

    @property
    def is_pending(self) -> bool:
        return self.status.upper() == OrderStatus.PENDING.value

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PersistedOrder":
        customer = data.get("customer")
        return cls(
            id=int(data["id"]),
            number=str(data.get("number") or data["id"]),
            total=_money(data.get("total")),
            status=str(data.get("status") or ""),
            user_name=str(data.get("userName") or ""),
            discount=_money(data.get("discount")),
            discount_kind=decode_discount_kind(data.get("discountType")),
            date_created=_parse_datetime(data.get("dateCreated")),
            date_updated=_parse_datetime(data.get("dateUpdated")),
            customer=Customer.from_json(customer) if customer else None,
            items=tuple(
                PersistedOrderItem.from_json(item) for item in data.get("items") or []
            ),
        )
