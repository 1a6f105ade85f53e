from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from api.catalog import CatalogLookup
from api.client import ApiClient
from api.orders import OrderApi
from printing.service import ReceiptService
from printing.thermal import ThermalPrinter
from sales.cart import Cart
from sales.checkout import CheckoutController
from utils.config import Settings


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - uid / user_name: the logged-in cashier (None before login)
      - cart: the one cart of the sale screen, handed to the checkout controller
      - checkout: created on login, bound to the cashier id
      - receipts: print channels sharing the process-wide thermal printer
    """

    settings: Settings
    api: ApiClient
    receipts: ReceiptService
    catalog: CatalogLookup = field(init=False)
    orders: OrderApi = field(init=False)
    cart: Cart = field(default_factory=Cart)
    checkout: Optional[CheckoutController] = None

    uid: Optional[int] = None
    user_name: Optional[str] = None

    def __post_init__(self) -> None:
        self.catalog = CatalogLookup(self.api)
        self.orders = OrderApi(self.api)

    @property
    def printer(self) -> ThermalPrinter:
        return self.receipts.thermal

    async def login(self, username: str, password: str) -> None:
        """Authenticate and bind a checkout controller to the cashier."""
        user = await self.api.login(username, password)
        self.uid = int(user.get("id") or 0)
        full_name = " ".join(
            part for part in (user.get("firstName"), user.get("lastName")) if part
        )
        self.user_name = full_name or user.get("username") or username
        self.checkout = CheckoutController(
            self.cart, self.orders.create_order, cashier_id=self.uid
        )

    def end_session(self) -> None:
        """
        Forget the cashier and drop the cart. The printer connection is kept,
        it lives for the whole process.
        """
        self.api.logout()
        self.cart.clear()
        self.checkout = None
        self.uid = None
        self.user_name = None
