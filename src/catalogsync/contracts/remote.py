"""Billing provider entity contracts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from catalogsync.contracts.exceptions import RemoteError

T = TypeVar("T")


class RemoteProduct(BaseModel):
    id: str
    name: str
    description: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    active: bool = True


class RemotePrice(BaseModel):
    id: str
    product_id: str
    currency: str
    unit_amount: int
    recurring_interval: str | None = None
    active: bool = True
    metadata: dict[str, str] = Field(default_factory=dict)


class ProductInput(BaseModel):
    name: str
    description: str
    metadata: dict[str, str] = Field(default_factory=dict)
    idempotency_key: str | None = None


class PriceInput(BaseModel):
    product_id: str
    currency: str
    unit_amount: int = Field(ge=0)
    recurring_interval: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    idempotency_key: str | None = None


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    """Outcome of a billing client call: a value or a ``RemoteError``."""

    value: T | None = None
    error: RemoteError | None = None

    @classmethod
    def success(cls, value: T) -> RemoteResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: RemoteError) -> RemoteResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
