"""Stripe billing client over the REST API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

import httpx

from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.exceptions import RemoteError, RemoteErrorKind
from catalogsync.contracts.remote import PriceInput, ProductInput, RemotePrice, RemoteProduct, RemoteResult

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

_PAGE_LIMIT = 100


def _error_kind(status_code: int) -> RemoteErrorKind:
    if status_code in {401, 403}:
        return RemoteErrorKind.AUTHENTICATION
    if status_code == 404:
        return RemoteErrorKind.NOT_FOUND
    if status_code == 429:
        return RemoteErrorKind.RATE_LIMITED
    if status_code >= 500:
        return RemoteErrorKind.SERVER
    return RemoteErrorKind.INVALID_REQUEST


def _encode_form(fields: dict[str, Any]) -> dict[str, str]:
    """Flatten nested dicts into Stripe's bracketed form keys."""
    encoded: dict[str, str] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                encoded[f"{key}[{sub_key}]"] = "" if sub_value is None else str(sub_value)
        elif isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


def _search_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def product_from_payload(payload: dict[str, Any]) -> RemoteProduct:
    return RemoteProduct(
        id=payload["id"],
        name=payload.get("name") or "",
        description=payload.get("description"),
        metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
        active=bool(payload.get("active", True)),
    )


def price_from_payload(payload: dict[str, Any]) -> RemotePrice:
    product = payload.get("product")
    product_id = product.get("id") if isinstance(product, dict) else product
    recurring = payload.get("recurring") or {}
    return RemotePrice(
        id=payload["id"],
        product_id=str(product_id or ""),
        currency=str(payload.get("currency") or "").lower(),
        unit_amount=int(payload.get("unit_amount") or 0),
        recurring_interval=recurring.get("interval"),
        active=bool(payload.get("active", True)),
        metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
    )


class StripeClient(BillingClient):
    """Billing client for the Stripe API.

    Use as an async context manager; the underlying ``httpx.AsyncClient`` is
    opened on enter and closed on exit::

        async with StripeClient(api_key=key) as client:
            result = await client.retrieve_product("prod_123")
    """

    def __init__(
        self,
        *,
        api_key: str,
        api_base: str = "https://api.stripe.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> StripeClient:
        self._client = httpx.AsyncClient(
            base_url=self._api_base,
            headers={"Authorization": f"Bearer {self._api_key}", "User-Agent": "catalog-sync"},
            timeout=self._timeout_seconds,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> RemoteResult[None]:
        result = await self._request("ping", "GET", "/v1/products", params={"limit": "1"})
        if result.error is not None:
            return RemoteResult.failure(result.error)
        return RemoteResult.success(None)

    async def create_product(self, input: ProductInput) -> RemoteResult[RemoteProduct]:
        data = _encode_form({"name": input.name, "description": input.description or None, "metadata": input.metadata})
        result = await self._request(
            "create_product", "POST", "/v1/products", data=data, idempotency_key=input.idempotency_key
        )
        return self._map(result, product_from_payload)

    async def retrieve_product(self, product_id: str) -> RemoteResult[RemoteProduct]:
        result = await self._request("retrieve_product", "GET", f"/v1/products/{product_id}")
        if result.ok and (result.value or {}).get("deleted"):
            return RemoteResult.failure(
                RemoteError(
                    f"No such product: '{product_id}'",
                    kind=RemoteErrorKind.NOT_FOUND,
                    operation="retrieve_product",
                    status_code=404,
                )
            )
        return self._map(result, product_from_payload)

    async def update_product(self, product_id: str, input: ProductInput) -> RemoteResult[RemoteProduct]:
        data = _encode_form({"name": input.name, "description": input.description, "metadata": input.metadata})
        result = await self._request(
            "update_product",
            "POST",
            f"/v1/products/{product_id}",
            data=data,
            idempotency_key=input.idempotency_key,
        )
        return self._map(result, product_from_payload)

    async def find_product_by_local_id(self, local_id: str) -> RemoteResult[RemoteProduct | None]:
        query = f"metadata['local_id']:'{_search_literal(local_id)}' AND active:'true'"
        result = await self._request(
            "find_product_by_local_id", "GET", "/v1/products/search", params={"query": query, "limit": "10"}
        )
        if result.error is not None:
            return RemoteResult.failure(result.error)
        matches = [product_from_payload(item) for item in (result.value or {}).get("data", [])]
        matches = [product for product in matches if product.metadata.get("local_id") == local_id]
        if len(matches) > 1:
            _LOG.warning("Found %d remote products tagged local_id=%s; using %s", len(matches), local_id, matches[0].id)
        return RemoteResult.success(matches[0] if matches else None)

    async def create_price(self, input: PriceInput) -> RemoteResult[RemotePrice]:
        fields: dict[str, Any] = {
            "product": input.product_id,
            "currency": input.currency,
            "unit_amount": input.unit_amount,
            "metadata": input.metadata,
        }
        if input.recurring_interval is not None:
            fields["recurring"] = {"interval": input.recurring_interval}
        result = await self._request(
            "create_price", "POST", "/v1/prices", data=_encode_form(fields), idempotency_key=input.idempotency_key
        )
        return self._map(result, price_from_payload)

    async def retrieve_price(self, price_id: str) -> RemoteResult[RemotePrice]:
        return self._map(await self._request("retrieve_price", "GET", f"/v1/prices/{price_id}"), price_from_payload)

    async def list_prices(self, product_id: str) -> RemoteResult[list[RemotePrice]]:
        prices: list[RemotePrice] = []
        params = {"product": product_id, "active": "true", "limit": str(_PAGE_LIMIT)}
        while True:
            result = await self._request("list_prices", "GET", "/v1/prices", params=params)
            if result.error is not None:
                return RemoteResult.failure(result.error)
            page = result.value or {}
            data = page.get("data", [])
            prices.extend(price_from_payload(item) for item in data)
            if not page.get("has_more") or not data:
                return RemoteResult.success(prices)
            params = {**params, "starting_after": data[-1]["id"]}

    async def deactivate_price(
        self, price_id: str, *, idempotency_key: str | None = None
    ) -> RemoteResult[RemotePrice]:
        result = await self._request(
            "deactivate_price",
            "POST",
            f"/v1/prices/{price_id}",
            data={"active": "false"},
            idempotency_key=idempotency_key,
        )
        return self._map(result, price_from_payload)

    @staticmethod
    def _map(result: RemoteResult[dict[str, Any]], parse: Callable[[dict[str, Any]], T]) -> RemoteResult[T]:
        if result.error is not None:
            return RemoteResult.failure(result.error)
        return RemoteResult.success(parse(result.value or {}))

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> RemoteResult[dict[str, Any]]:
        if self._client is None:
            raise RuntimeError("StripeClient must be used as an async context manager")
        _LOG.debug("%s %s (%s)", method, path, operation)
        # Stripe answers a repeated key with the stored response of the first request.
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        try:
            response = await self._client.request(method, path, params=params, data=data, headers=headers)
        except httpx.TransportError as exc:
            detail = str(exc) or type(exc).__name__
            return RemoteResult.failure(
                RemoteError(f"{operation} failed: {detail}", kind=RemoteErrorKind.TRANSPORT, operation=operation)
            )

        if response.is_success:
            try:
                return RemoteResult.success(response.json())
            except ValueError:
                return RemoteResult.failure(
                    RemoteError(
                        f"{operation} returned a non-JSON body",
                        kind=RemoteErrorKind.SERVER,
                        operation=operation,
                        status_code=response.status_code,
                    )
                )
        return RemoteResult.failure(self._error_from_response(operation, response))

    @staticmethod
    def _error_from_response(operation: str, response: httpx.Response) -> RemoteError:
        message = f"HTTP {response.status_code}"
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = str(error["message"])
        return RemoteError(
            message,
            kind=_error_kind(response.status_code),
            operation=operation,
            status_code=response.status_code,
        )


__all__ = ["StripeClient", "price_from_payload", "product_from_payload"]
