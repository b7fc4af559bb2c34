"""Billing client contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from catalogsync.contracts.remote import PriceInput, ProductInput, RemotePrice, RemoteProduct, RemoteResult


class BillingClient(ABC):
    """Capability set of a billing provider.

    Every operation returns a ``RemoteResult``; remote failures are never raised.
    Implementations perform no retries. Mutations carry an optional
    idempotency key: a repeated request with the same key must not apply twice.
    """

    @abstractmethod
    async def __aenter__(self) -> BillingClient: ...  # pragma: no cover

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...  # pragma: no cover

    @abstractmethod
    async def ping(self) -> RemoteResult[None]: ...  # pragma: no cover

    @abstractmethod
    async def create_product(self, input: ProductInput) -> RemoteResult[RemoteProduct]: ...  # pragma: no cover

    @abstractmethod
    async def retrieve_product(self, product_id: str) -> RemoteResult[RemoteProduct]: ...  # pragma: no cover

    @abstractmethod
    async def update_product(
        self, product_id: str, input: ProductInput
    ) -> RemoteResult[RemoteProduct]: ...  # pragma: no cover

    @abstractmethod
    async def find_product_by_local_id(
        self, local_id: str
    ) -> RemoteResult[RemoteProduct | None]: ...  # pragma: no cover

    @abstractmethod
    async def create_price(self, input: PriceInput) -> RemoteResult[RemotePrice]: ...  # pragma: no cover

    @abstractmethod
    async def retrieve_price(self, price_id: str) -> RemoteResult[RemotePrice]: ...  # pragma: no cover

    @abstractmethod
    async def list_prices(self, product_id: str) -> RemoteResult[list[RemotePrice]]: ...  # pragma: no cover

    @abstractmethod
    async def deactivate_price(
        self, price_id: str, *, idempotency_key: str | None = None
    ) -> RemoteResult[RemotePrice]: ...  # pragma: no cover
