"""Per-item reconciliation between a local product and the billing provider."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from catalogsync.contracts.catalog import LocalProduct
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.mapping import MappingRecord, SyncStatus
from catalogsync.contracts.remote import PriceInput, ProductInput, RemotePrice, RemoteProduct, RemoteResult
from catalogsync.contracts.sync import SyncAction, SyncedProduct
from catalogsync.engine.retry import RetryingCaller

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

LOCAL_ID_KEY = "local_id"


def new_idempotency_key() -> str:
    """Key shared by every attempt of one logical mutation."""
    return f"catalog-sync-{uuid.uuid4()}"


def _non_empty(metadata: dict[str, str]) -> dict[str, str]:
    # The provider treats an empty value as "unset", so it can never be stored.
    return {key: value for key, value in metadata.items() if value != ""}


def remote_metadata(product: LocalProduct) -> dict[str, str]:
    """Metadata the remote product should carry for *product*."""
    return _non_empty({**product.metadata, LOCAL_ID_KEY: product.local_id})


def price_metadata(product: LocalProduct) -> dict[str, str]:
    return _non_empty({**product.metadata, LOCAL_ID_KEY: product.local_id, "billing": product.billing.value})


def metadata_drifted(product: LocalProduct, remote: RemoteProduct) -> bool:
    return (
        remote.name != product.name
        or (remote.description or "") != product.description
        or remote.metadata != remote_metadata(product)
    )


def price_matches(price: RemotePrice, product: LocalProduct) -> bool:
    return (
        price.active
        and price.unit_amount == product.price
        and price.currency == product.currency
        and price.recurring_interval == product.billing.recurring_interval
    )


@dataclass(frozen=True)
class Decision:
    """The action chosen for one catalog item and the remote state it was based on."""

    action: SyncAction
    product: LocalProduct
    mapping: MappingRecord | None
    remote_product: RemoteProduct | None = None
    remote_price: RemotePrice | None = None
    reason: str = ""


class Reconciler:
    """Chooses and applies one of CREATE, UPDATE_METADATA, ROTATE_PRICE or NOOP.

    ``decide`` only reads from the billing client; all mutations happen in
    ``execute``. Within an item the order is always: product changes, new
    price, deactivation of the replaced price.
    """

    def __init__(self, client: BillingClient, caller: RetryingCaller | None = None) -> None:
        self._client = client
        self._caller = caller or RetryingCaller()

    async def decide(self, product: LocalProduct, mapping: MappingRecord | None, *, force: bool = False) -> Decision:
        if mapping is None or not mapping.active:
            return Decision(SyncAction.CREATE, product, mapping, reason="no active mapping")

        product_result = await self._call(
            "retrieve_product", lambda: self._client.retrieve_product(mapping.remote_product_id)
        )
        if product_result.error is not None:
            if not product_result.error.not_found:
                raise product_result.error
            _LOG.warning(
                "Remote product %s for %s no longer exists; recreating", mapping.remote_product_id, product.local_id
            )
            return Decision(SyncAction.CREATE, product, mapping, reason="remote product missing")
        remote_product = product_result.unwrap()
        if not remote_product.active:
            _LOG.warning("Remote product %s for %s is archived; recreating", remote_product.id, product.local_id)
            return Decision(SyncAction.CREATE, product, mapping, reason="remote product archived")

        remote_price: RemotePrice | None = None
        price_drifted = False
        if force:
            price_result = await self._call(
                "retrieve_price", lambda: self._client.retrieve_price(mapping.remote_price_id)
            )
            if price_result.error is not None:
                if not price_result.error.not_found:
                    raise price_result.error
                price_drifted = True
            else:
                remote_price = price_result.unwrap()
                price_drifted = remote_price.product_id != remote_product.id or not price_matches(remote_price, product)

        if price_drifted:
            return Decision(
                SyncAction.ROTATE_PRICE, product, mapping, remote_product, remote_price, reason="remote price drifted"
            )
        if mapping.price_amount != product.price:
            return Decision(
                SyncAction.ROTATE_PRICE,
                product,
                mapping,
                remote_product,
                remote_price,
                reason=f"price changed {mapping.price_amount} -> {product.price}",
            )
        if metadata_drifted(product, remote_product):
            return Decision(
                SyncAction.UPDATE_METADATA, product, mapping, remote_product, remote_price, reason="metadata changed"
            )
        return Decision(SyncAction.NOOP, product, mapping, remote_product, remote_price)

    async def execute(self, decision: Decision) -> SyncedProduct:
        """Apply *decision* remotely. Raises ``RemoteError`` on the first failed step."""
        if decision.action is SyncAction.CREATE:
            return await self._create(decision.product)
        if decision.action is SyncAction.UPDATE_METADATA:
            return await self._update_metadata(decision)
        if decision.action is SyncAction.ROTATE_PRICE:
            return await self._rotate_price(decision)

        mapping = decision.mapping
        assert mapping is not None
        return self._synced(
            decision.product, mapping.remote_product_id, mapping.remote_price_id, SyncStatus.SYNCED, SyncAction.NOOP
        )

    async def _create(self, product: LocalProduct) -> SyncedProduct:
        existing = (
            await self._call(
                "find_product_by_local_id", lambda: self._client.find_product_by_local_id(product.local_id)
            )
        ).unwrap()
        if existing is None:
            product_input = self._product_input(product)
            created = (
                await self._call("create_product", lambda: self._client.create_product(product_input))
            ).unwrap()
            _LOG.info("Created remote product %s for %s", created.id, product.local_id)
            price = await self._create_price(created.id, product)
            return self._synced(product, created.id, price.id, SyncStatus.CREATED, SyncAction.CREATE)

        # A previous run created the product but never recorded it; adopt it.
        _LOG.info("Adopting remote product %s tagged with %s", existing.id, product.local_id)
        changed = await self._refresh_metadata(existing, product)
        active_prices = await self._active_prices(existing.id)
        price = next((candidate for candidate in active_prices if price_matches(candidate, product)), None)
        if price is None:
            price = await self._create_price(existing.id, product)
            changed = True
        for stale in active_prices:
            if stale.id != price.id:
                await self._deactivate(stale.id)
                changed = True
        status = SyncStatus.UPDATED if changed else SyncStatus.SYNCED
        return self._synced(product, existing.id, price.id, status, SyncAction.CREATE)

    async def _update_metadata(self, decision: Decision) -> SyncedProduct:
        mapping = decision.mapping
        remote_product = decision.remote_product
        assert mapping is not None and remote_product is not None
        await self._refresh_metadata(remote_product, decision.product)
        return self._synced(
            decision.product,
            remote_product.id,
            mapping.remote_price_id,
            SyncStatus.UPDATED,
            SyncAction.UPDATE_METADATA,
        )

    async def _rotate_price(self, decision: Decision) -> SyncedProduct:
        mapping = decision.mapping
        remote_product = decision.remote_product
        assert mapping is not None and remote_product is not None
        product = decision.product

        await self._refresh_metadata(remote_product, product)

        active_prices = await self._active_prices(remote_product.id)
        new_price = next((candidate for candidate in active_prices if price_matches(candidate, product)), None)
        if new_price is None:
            new_price = await self._create_price(remote_product.id, product)
        else:
            _LOG.info("Reusing active price %s for %s", new_price.id, product.local_id)

        # Only prices listed under this item's product are retired.
        for stale in active_prices:
            if stale.id == new_price.id:
                continue
            if stale.id == mapping.remote_price_id or stale.metadata.get(LOCAL_ID_KEY) == product.local_id:
                await self._deactivate(stale.id)

        _LOG.info(
            "Rotated price for %s: %s -> %s (%d -> %d)",
            product.local_id,
            mapping.remote_price_id,
            new_price.id,
            mapping.price_amount,
            product.price,
        )
        return self._synced(product, remote_product.id, new_price.id, SyncStatus.UPDATED, SyncAction.ROTATE_PRICE)

    async def _refresh_metadata(self, remote_product: RemoteProduct, product: LocalProduct) -> bool:
        if not metadata_drifted(product, remote_product):
            return False
        update = self._product_input(product, current=remote_product)
        (await self._call("update_product", lambda: self._client.update_product(remote_product.id, update))).unwrap()
        _LOG.info("Updated remote product %s for %s", remote_product.id, product.local_id)
        return True

    async def _active_prices(self, product_id: str) -> list[RemotePrice]:
        return (await self._call("list_prices", lambda: self._client.list_prices(product_id))).unwrap()

    async def _create_price(self, product_id: str, product: LocalProduct) -> RemotePrice:
        price_input = PriceInput(
            product_id=product_id,
            currency=product.currency,
            unit_amount=product.price,
            recurring_interval=product.billing.recurring_interval,
            metadata=price_metadata(product),
            idempotency_key=new_idempotency_key(),
        )
        price = (await self._call("create_price", lambda: self._client.create_price(price_input))).unwrap()
        _LOG.info("Created price %s (%d %s) for %s", price.id, price.unit_amount, price.currency, product.local_id)
        return price

    async def _deactivate(self, price_id: str) -> None:
        key = new_idempotency_key()
        result = await self._call(
            "deactivate_price", lambda: self._client.deactivate_price(price_id, idempotency_key=key)
        )
        if result.error is not None and result.error.not_found:
            _LOG.debug("Price %s already gone; nothing to deactivate", price_id)
            return
        result.unwrap()

    async def _call(self, operation: str, request: Callable[[], Awaitable[RemoteResult[T]]]) -> RemoteResult[T]:
        return await self._caller.call(operation, request)

    @staticmethod
    def _product_input(product: LocalProduct, *, current: RemoteProduct | None = None) -> ProductInput:
        desired = remote_metadata(product)
        metadata = dict(desired)
        if current is not None:
            # Keys absent locally are cleared on the provider with an empty value.
            for key in current.metadata:
                if key not in desired:
                    metadata[key] = ""
        return ProductInput(
            name=product.name,
            description=product.description,
            metadata=metadata,
            idempotency_key=new_idempotency_key(),
        )

    @staticmethod
    def _synced(
        product: LocalProduct,
        remote_product_id: str,
        remote_price_id: str,
        status: SyncStatus,
        action: SyncAction,
    ) -> SyncedProduct:
        return SyncedProduct(
            local_id=product.local_id,
            local_name=product.name,
            remote_product_id=remote_product_id,
            remote_price_id=remote_price_id,
            price=product.price,
            status=status,
            action=action,
        )


__all__ = ["Decision", "Reconciler", "metadata_drifted", "price_matches", "remote_metadata"]
