"""In-memory billing client with provider-like semantics."""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeVar

from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.exceptions import RemoteError, RemoteErrorKind
from catalogsync.contracts.remote import PriceInput, ProductInput, RemotePrice, RemoteProduct, RemoteResult

T = TypeVar("T", RemoteProduct, RemotePrice)

MUTATING_OPERATIONS = frozenset({"create_product", "update_product", "create_price", "deactivate_price"})


@dataclass(frozen=True)
class ClientOperation:
    """Deterministic operation log entry."""

    sequence: int
    name: str
    target_id: str | None


class InMemoryBillingClient(BillingClient):
    """Billing client backed by dictionaries.

    Mirrors the provider rules the engine depends on: price amounts are
    immutable, prices are deactivated rather than deleted, and metadata
    updates merge with empty values clearing a key. A mutation repeated with
    the same idempotency key returns the first result without applying
    again. Failures can be queued per operation with ``fail``.
    """

    def __init__(self) -> None:
        self.products: dict[str, RemoteProduct] = {}
        self.prices: dict[str, RemotePrice] = {}
        self._counter = 0
        self._operations: list[ClientOperation] = []
        self._failures: defaultdict[str, deque[RemoteError]] = defaultdict(deque)
        self._replays: dict[str, RemoteProduct | RemotePrice] = {}

    @property
    def operations(self) -> tuple[ClientOperation, ...]:
        return tuple(self._operations)

    @property
    def mutations(self) -> tuple[ClientOperation, ...]:
        return tuple(op for op in self._operations if op.name in MUTATING_OPERATIONS)

    def fail(self, operation: str, error: RemoteError | None = None, *, times: int = 1) -> None:
        """Queue *times* failures for the next calls to *operation*."""
        failure = error or RemoteError(
            f"{operation} failed", kind=RemoteErrorKind.INVALID_REQUEST, operation=operation, status_code=400
        )
        for _ in range(times):
            self._failures[operation].append(failure)

    def remove_product(self, product_id: str) -> None:
        """Drop a product out-of-band, as if deleted on the provider dashboard."""
        self.products.pop(product_id, None)

    def remove_price(self, price_id: str) -> None:
        self.prices.pop(price_id, None)

    async def __aenter__(self) -> InMemoryBillingClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    async def ping(self) -> RemoteResult[None]:
        if (error := self._begin("ping", None)) is not None:
            return RemoteResult.failure(error)
        return RemoteResult.success(None)

    async def create_product(self, input: ProductInput) -> RemoteResult[RemoteProduct]:
        product_id = self._next_id("prod")
        if (error := self._begin("create_product", product_id)) is not None:
            return RemoteResult.failure(error)
        if (replayed := self._replay(input.idempotency_key)) is not None:
            return replayed
        product = RemoteProduct(
            id=product_id,
            name=input.name,
            description=input.description or None,
            metadata={key: value for key, value in input.metadata.items() if value != ""},
        )
        self.products[product_id] = product
        return self._remember(input.idempotency_key, product)

    async def retrieve_product(self, product_id: str) -> RemoteResult[RemoteProduct]:
        if (error := self._begin("retrieve_product", product_id)) is not None:
            return RemoteResult.failure(error)
        product = self.products.get(product_id)
        if product is None:
            return RemoteResult.failure(self._not_found("product", product_id, "retrieve_product"))
        return RemoteResult.success(product.model_copy(deep=True))

    async def update_product(self, product_id: str, input: ProductInput) -> RemoteResult[RemoteProduct]:
        if (error := self._begin("update_product", product_id)) is not None:
            return RemoteResult.failure(error)
        if (replayed := self._replay(input.idempotency_key)) is not None:
            return replayed
        product = self.products.get(product_id)
        if product is None:
            return RemoteResult.failure(self._not_found("product", product_id, "update_product"))
        metadata = dict(product.metadata)
        for key, value in input.metadata.items():
            if value == "":
                metadata.pop(key, None)
            else:
                metadata[key] = value
        updated = product.model_copy(
            update={"name": input.name, "description": input.description or None, "metadata": metadata}
        )
        self.products[product_id] = updated
        return self._remember(input.idempotency_key, updated)

    async def find_product_by_local_id(self, local_id: str) -> RemoteResult[RemoteProduct | None]:
        if (error := self._begin("find_product_by_local_id", local_id)) is not None:
            return RemoteResult.failure(error)
        for product in self.products.values():
            if product.active and product.metadata.get("local_id") == local_id:
                return RemoteResult.success(product.model_copy(deep=True))
        return RemoteResult.success(None)

    async def create_price(self, input: PriceInput) -> RemoteResult[RemotePrice]:
        price_id = self._next_id("price")
        if (error := self._begin("create_price", price_id)) is not None:
            return RemoteResult.failure(error)
        if (replayed := self._replay(input.idempotency_key)) is not None:
            return replayed
        if input.product_id not in self.products:
            return RemoteResult.failure(
                RemoteError(
                    f"No such product: '{input.product_id}'",
                    kind=RemoteErrorKind.INVALID_REQUEST,
                    operation="create_price",
                    status_code=400,
                )
            )
        price = RemotePrice(
            id=price_id,
            product_id=input.product_id,
            currency=input.currency,
            unit_amount=input.unit_amount,
            recurring_interval=input.recurring_interval,
            metadata=dict(input.metadata),
        )
        self.prices[price_id] = price
        return self._remember(input.idempotency_key, price)

    async def retrieve_price(self, price_id: str) -> RemoteResult[RemotePrice]:
        if (error := self._begin("retrieve_price", price_id)) is not None:
            return RemoteResult.failure(error)
        price = self.prices.get(price_id)
        if price is None:
            return RemoteResult.failure(self._not_found("price", price_id, "retrieve_price"))
        return RemoteResult.success(price.model_copy(deep=True))

    async def list_prices(self, product_id: str) -> RemoteResult[list[RemotePrice]]:
        if (error := self._begin("list_prices", product_id)) is not None:
            return RemoteResult.failure(error)
        return RemoteResult.success(
            [
                price.model_copy(deep=True)
                for price in self.prices.values()
                if price.product_id == product_id and price.active
            ]
        )

    async def deactivate_price(
        self, price_id: str, *, idempotency_key: str | None = None
    ) -> RemoteResult[RemotePrice]:
        if (error := self._begin("deactivate_price", price_id)) is not None:
            return RemoteResult.failure(error)
        if (replayed := self._replay(idempotency_key)) is not None:
            return replayed
        price = self.prices.get(price_id)
        if price is None:
            return RemoteResult.failure(self._not_found("price", price_id, "deactivate_price"))
        deactivated = price.model_copy(update={"active": False})
        self.prices[price_id] = deactivated
        return self._remember(idempotency_key, deactivated)

    def _begin(self, name: str, target_id: str | None) -> RemoteError | None:
        self._operations.append(ClientOperation(sequence=len(self._operations) + 1, name=name, target_id=target_id))
        queued = self._failures.get(name)
        if queued:
            return queued.popleft()
        return None

    def _replay(self, key: str | None) -> RemoteResult[Any] | None:
        stored = self._replays.get(key) if key else None
        if stored is None:
            return None
        return RemoteResult.success(stored.model_copy(deep=True))

    def _remember(self, key: str | None, entity: T) -> RemoteResult[T]:
        if key:
            self._replays[key] = entity.model_copy(deep=True)
        return RemoteResult.success(entity.model_copy(deep=True))

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    @staticmethod
    def _not_found(kind: str, entity_id: str, operation: str) -> RemoteError:
        return RemoteError(
            f"No such {kind}: '{entity_id}'", kind=RemoteErrorKind.NOT_FOUND, operation=operation, status_code=404
        )


__all__ = ["ClientOperation", "InMemoryBillingClient", "MUTATING_OPERATIONS"]
