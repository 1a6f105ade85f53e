# catalog and customer lookup, plus the debounced search used by the sale screen
import asyncio
from typing import Awaitable, Callable, Generic, List, Optional, Set, TypeVar

from api.client import ApiClient
from sales.models import Customer, Product
from utils.errors import NetworkError
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


class CatalogLookup:
    """Read-only product and customer queries against the backend."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def search_products(self, term: str) -> List[Product]:
        """General search over code/PLU/name. Empty term returns the default listing."""
        term = (term or "").strip()
        if term:
            rows = await self._client.aget(
                "/api/products/search/general", {"searchTerm": term}
            )
        else:
            rows = await self._client.aget("/api/products")
        return [Product.from_json(row) for row in rows or []]

    async def get_product(self, product_id: int) -> Product:
        return Product.from_json(await self._client.aget(f"/api/products/{product_id}"))

    async def find_by_barcode(self, barcode: str) -> Optional[Product]:
        """Exact barcode match, None when the backend knows no such barcode."""
        barcode = (barcode or "").strip()
        if not barcode:
            return None
        try:
            row = await self._client.aget(f"/api/barcode/by-barcode/{barcode}")
        except NetworkError as exc:
            if exc.status_code == 404:
                return None
            raise
        if not row:
            return None
        # the barcode endpoint wraps the product on some deployments
        if isinstance(row, dict) and isinstance(row.get("product"), dict):
            row = row["product"]
        return Product.from_json(row)

    async def search_customers(self, term: str) -> List[Customer]:
        term = (term or "").strip()
        if term:
            rows = await self._client.aget(
                "/api/customers/search/general", {"searchTerm": term}
            )
        else:
            rows = await self._client.aget("/api/customers")
        return [Customer.from_json(row) for row in rows or []]

    async def get_customer(self, customer_id: int) -> Customer:
        return Customer.from_json(
            await self._client.aget(f"/api/customers/{customer_id}")
        )


class DebouncedSearch(Generic[T]):
    """
    Debounce a lookup and drop stale answers.

    Every submit() bumps a generation counter. A request only runs if no newer
    query arrived during the delay, and its result is only delivered if no
    newer query arrived while it was in flight.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[List[T]]],
        on_results: Callable[[str, List[T]], None],
        delay: float = 0.4,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ) -> None:
        self._fetch = fetch
        self._on_results = on_results
        self._on_error = on_error
        self.delay = delay
        self._generation = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, query: str) -> asyncio.Task:
        self._generation += 1
        task = asyncio.get_running_loop().create_task(
            self._run(query, self._generation)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, query: str, generation: int) -> bool:
        """Returns True when the result was delivered."""
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if not self._is_current(generation):
            return False

        try:
            results = await self._fetch(query)
        except NetworkError as exc:
            # lookup failures degrade quietly, the cashier can keep typing
            _logger.warning(f"Search for {query!r} failed: {exc}")
            if self._on_error is not None and self._is_current(generation):
                self._on_error(query, exc)
            return False

        if not self._is_current(generation):
            _logger.debug(f"Dropping stale results for {query!r}")
            return False
        self._on_results(query, results)
        return True

    async def drain(self) -> None:
        """Wait for every outstanding search to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
