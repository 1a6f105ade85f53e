# checkout controller: binds a customer to the cart and submits orders
from enum import Enum
from typing import Awaitable, Callable, Optional

from sales.cart import Cart
from sales.models import (
    Customer,
    OrderStatus,
    OrderSubmission,
    PersistedOrder,
    SubmissionItem,
    encode_discount_kind,
)
from utils.errors import ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

SubmitOrder = Callable[[OrderSubmission], Awaitable[PersistedOrder]]


class CheckoutState(Enum):
    BUILDING = "building"
    CUSTOMER_SELECTED = "customer_selected"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


def build_submission(
    cart: Cart,
    customer_id: int,
    cashier_id: int,
    status: OrderStatus,
    keep_comments: bool = True,
) -> OrderSubmission:
    """Snapshot the cart into an immutable submission with 0/1 discount codes."""
    if customer_id is None:
        raise ValidationError("A customer must be selected before submitting.")
    if cart.is_empty:
        raise ValidationError("Cannot submit an empty cart.")
    items = tuple(
        SubmissionItem(
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            discount_value=item.discount_value,
            discount_kind=encode_discount_kind(item.discount_kind),
            comment=item.comment if keep_comments else "",
        )
        for item in cart.items
    )
    return OrderSubmission(
        customer_id=customer_id,
        cashier_id=cashier_id,
        discount_value=cart.order_discount_value,
        discount_kind=encode_discount_kind(cart.order_discount_kind),
        status=status,
        items=items,
    )


class CheckoutController:
    """
    Drives confirm / save for later / cancel for one cart.

    Building -> CustomerSelected -> Submitting -> Completed. A failed
    submission records `last_error` and returns to CustomerSelected with
    the cart left intact. Only one
    submission may be in flight, views read `can_submit` to enable actions.
    """

    def __init__(self, cart: Cart, submit_order: SubmitOrder, cashier_id: int) -> None:
        self.cart = cart
        self._submit_order = submit_order
        self.cashier_id = cashier_id
        self.customer: Optional[Customer] = None
        self.state = CheckoutState.BUILDING
        self.last_error: Optional[Exception] = None
        self.last_order: Optional[PersistedOrder] = None

    @property
    def can_submit(self) -> bool:
        return (
            self.state is CheckoutState.CUSTOMER_SELECTED
            and self.customer is not None
            and not self.cart.is_empty
        )

    @property
    def is_submitting(self) -> bool:
        return self.state is CheckoutState.SUBMITTING

    def select_customer(self, customer: Optional[Customer]) -> None:
        if self.is_submitting:
            return
        self.customer = customer
        self.state = (
            CheckoutState.CUSTOMER_SELECTED
            if customer is not None
            else CheckoutState.BUILDING
        )

    async def confirm(self) -> Optional[PersistedOrder]:
        return await self._submit(OrderStatus.DONE, keep_comments=True)

    async def save_for_later(self) -> Optional[PersistedOrder]:
        # pending orders go out without line comments
        return await self._submit(OrderStatus.PENDING, keep_comments=False)

    def cancel(self) -> None:
        """Drop every line and discount right away. No confirmation."""
        if self.is_submitting:
            return
        self.cart.clear()
        self.customer = None
        self.last_error = None
        self.state = CheckoutState.BUILDING

    def start_new_sale(self) -> None:
        if self.is_submitting:
            return
        self.customer = None
        self.state = CheckoutState.BUILDING

    async def _submit(
        self, status: OrderStatus, keep_comments: bool
    ) -> Optional[PersistedOrder]:
        if not self.can_submit:
            # actions are disabled in the UI when this happens
            _logger.warning(
                f"Ignoring {status.value} submission in state {self.state.value}"
            )
            return None

        submission = build_submission(
            self.cart, self.customer.id, self.cashier_id, status, keep_comments
        )
        self.state = CheckoutState.SUBMITTING
        self.last_error = None
        _logger.info(
            f"Submitting {status.value} order: customer={submission.customer_id} "
            f"items={len(submission.items)}"
        )
        try:
            order = await self._submit_order(submission)
        except Exception as exc:
            _logger.error(f"Order submission failed: {exc!r}")
            self.last_error = exc
            # failure keeps the cart and the customer for a retry
            self.state = CheckoutState.CUSTOMER_SELECTED
            raise

        _logger.info(f"Order {order.number} persisted ({status.value})")
        self.cart.clear()
        self.customer = None
        self.last_order = order
        self.state = CheckoutState.COMPLETED
        return order
