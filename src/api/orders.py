# order endpoints: create, list, fetch, complete
from typing import Any, List

from api.client import ApiClient
from sales.models import OrderStatus, OrderSubmission, PersistedOrder
from utils.errors import NetworkError

ORDERS_PATH = "/api/posorders"


def _decode_order(data: Any) -> PersistedOrder:
    """Turn a malformed order body into a NetworkError like any other bad reply."""
    try:
        return PersistedOrder.from_json(data)
    except (ValueError, KeyError, TypeError) as exc:
        raise NetworkError(f"Server returned an unreadable order: {exc}") from exc


class OrderApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create_order(self, submission: OrderSubmission) -> PersistedOrder:
        """POST the submission, return the order record the server persisted."""
        data = await self._client.apost(ORDERS_PATH, submission.to_json())
        if not isinstance(data, dict) or "id" not in data:
            raise NetworkError("Server did not return the created order.")
        return _decode_order(data)

    async def list_orders(self) -> List[PersistedOrder]:
        rows = await self._client.aget(ORDERS_PATH)
        orders = [_decode_order(row) for row in rows or []]
        # newest first, undated orders last
        orders.sort(key=lambda o: (o.date_created is not None, o.id), reverse=True)
        return orders

    async def get_order(self, order_id: int) -> PersistedOrder:
        data = await self._client.aget(f"{ORDERS_PATH}/{order_id}")
        return _decode_order(data)

    async def complete_order(self, order_id: int) -> PersistedOrder:
        """Move a PENDING order to DONE."""
        data = await self._client.aput(
            f"{ORDERS_PATH}/{order_id}", {"status": OrderStatus.DONE.value}
        )
        if isinstance(data, dict) and "id" in data:
            return _decode_order(data)
        return await self.get_order(order_id)
