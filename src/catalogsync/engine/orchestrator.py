"""Batch driver that reconciles the whole catalog."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from catalogsync.catalog.collector import CatalogCollector
from catalogsync.contracts.catalog import LocalProduct
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.config import RetryPolicy
from catalogsync.contracts.exceptions import GlobalSyncError, MappingConflictError, MappingStoreError, RemoteError
from catalogsync.contracts.mapping import MappingRecord, SyncStatus
from catalogsync.contracts.sync import SyncedProduct, SyncResult
from catalogsync.engine.progress import NullSyncProgress, SyncProgress
from catalogsync.engine.reconciler import Reconciler
from catalogsync.engine.retry import RetryingCaller, Sleep
from catalogsync.mapping.store import MappingStore

_LOG = logging.getLogger(__name__)

DRY_RUN_PRODUCT_ID = "dry_run_product_id"
DRY_RUN_PRICE_ID = "dry_run_price_id"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncOrchestrator:
    """Runs the reconciler over every catalog item.

    Items are processed one at a time. A mapping is written only after the
    item's remote mutations all succeeded. Per-item failures are collected
    and the loop continues; a failure that affects the provider as a whole
    aborts the run with a single fatal error. Overlapping runs against the
    same mapping store are not coordinated here and must be serialized by
    the caller.
    """

    def __init__(
        self,
        *,
        collector: CatalogCollector,
        store: MappingStore,
        client: BillingClient,
        retry: RetryPolicy | None = None,
        progress: SyncProgress | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._collector = collector
        self._store = store
        self._client = client
        self._caller = RetryingCaller(retry, sleep=sleep)
        self._reconciler = Reconciler(client, self._caller)
        self._progress: SyncProgress = progress or NullSyncProgress()
        self._clock = clock
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop the current run before the next catalog item."""
        self._cancel_requested = True

    async def run(self, *, dry_run: bool = False, force: bool = False) -> SyncResult:
        self._cancel_requested = False
        result = SyncResult(dry_run=dry_run, force=force)
        products = self._collect()
        _LOG.info("Syncing %d catalog products (dry_run=%s, force=%s)", len(products), dry_run, force)

        try:
            await self._preflight()
            self._progress.phase_start("Sync", total=len(products))
            for product in products:
                if self._cancel_requested:
                    _LOG.warning("Sync cancelled before %s", product.local_id)
                    result.cancelled = True
                    break
                await self._sync_item(product, result, dry_run=dry_run, force=force)
                self._progress.item_done("Sync")
            self._progress.phase_done("Sync")
        except GlobalSyncError as exc:
            self._progress.phase_error("Sync", exc)
            _LOG.error("Sync aborted: %s", exc)
            result.fatal_error = str(exc)
            result.errors.append(f"Global sync error: {exc}")

        _LOG.info(
            "Sync complete: %d created, %d updated, %d errors", result.created, result.updated, len(result.errors)
        )
        return result

    def _collect(self) -> list[LocalProduct]:
        self._progress.phase_start("Collect")
        try:
            products = self._collector.collect()
        except BaseException as exc:
            self._progress.phase_error("Collect", exc)
            raise
        self._progress.phase_done("Collect")
        return products

    async def _preflight(self) -> None:
        ping = await self._caller.call("ping", self._client.ping)
        if ping.error is not None:
            raise GlobalSyncError(f"billing provider unreachable: {ping.error}") from ping.error

    async def _sync_item(self, product: LocalProduct, result: SyncResult, *, dry_run: bool, force: bool) -> None:
        try:
            mapping = self._store.get(product.local_id)
        except MappingStoreError as exc:
            raise GlobalSyncError(str(exc)) from exc
        try:
            decision = await self._reconciler.decide(product, mapping, force=force)
            result.planned[decision.action] = result.planned.get(decision.action, 0) + 1
            if dry_run:
                _LOG.info("[dry-run] %s: would %s (%s)", product.local_id, decision.action.value, decision.reason)
                synced = SyncedProduct(
                    local_id=product.local_id,
                    local_name=product.name,
                    remote_product_id=DRY_RUN_PRODUCT_ID,
                    remote_price_id=DRY_RUN_PRICE_ID,
                    price=product.price,
                    status=SyncStatus.SYNCED,
                    action=decision.action,
                )
            else:
                _LOG.debug("%s: %s (%s)", product.local_id, decision.action.value, decision.reason)
                synced = await self._reconciler.execute(decision)
                self._persist(synced)
        except RemoteError as exc:
            if exc.fatal:
                raise GlobalSyncError(str(exc)) from exc
            self._record_failure(product, mapping, exc, result, dry_run=dry_run)
            return
        except MappingConflictError as exc:
            self._record_failure(product, mapping, exc, result, dry_run=dry_run)
            return
        except MappingStoreError as exc:
            raise GlobalSyncError(str(exc)) from exc

        result.synced_products.append(synced)
        if synced.status is SyncStatus.CREATED:
            result.created += 1
        elif synced.status is SyncStatus.UPDATED:
            result.updated += 1

    def _persist(self, synced: SyncedProduct) -> None:
        for record in self._store.list_active():
            if record.remote_product_id == synced.remote_product_id and record.local_id != synced.local_id:
                raise MappingConflictError(
                    f"remote product {synced.remote_product_id} is already mapped to {record.local_id}"
                )
        self._store.upsert(
            MappingRecord(
                local_id=synced.local_id,
                local_name=synced.local_name,
                remote_product_id=synced.remote_product_id,
                remote_price_id=synced.remote_price_id,
                price_amount=synced.price,
                sync_status=synced.status,
                last_synced_at=self._clock(),
                active=True,
            )
        )

    def _record_failure(
        self,
        product: LocalProduct,
        mapping: MappingRecord | None,
        error: Exception,
        result: SyncResult,
        *,
        dry_run: bool,
    ) -> None:
        message = f"{product.local_id}: {error}"
        _LOG.error("Error syncing %s", message)
        result.errors.append(message)
        result.synced_products.append(
            SyncedProduct(
                local_id=product.local_id,
                local_name=product.name,
                remote_product_id=mapping.remote_product_id if mapping is not None else "",
                remote_price_id=mapping.remote_price_id if mapping is not None else "",
                price=product.price,
                status=SyncStatus.ERROR,
                error=str(error),
            )
        )
        # Only the status changes; the ids and amount still describe the last successful sync.
        if not dry_run and mapping is not None and mapping.active:
            try:
                self._store.upsert(mapping.model_copy(update={"sync_status": SyncStatus.ERROR}))
            except MappingStoreError as exc:
                raise GlobalSyncError(str(exc)) from exc


__all__ = ["DRY_RUN_PRICE_ID", "DRY_RUN_PRODUCT_ID", "SyncOrchestrator"]
