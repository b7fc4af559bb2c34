"""Read-only check that every mapping still resolves on the billing provider."""

from __future__ import annotations

import asyncio
import logging

from catalogsync.catalog.collector import CatalogCollector
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.config import RetryPolicy
from catalogsync.contracts.exceptions import GlobalSyncError, RemoteError
from catalogsync.contracts.mapping import MappingRecord
from catalogsync.contracts.sync import ValidationReport
from catalogsync.engine.progress import NullSyncProgress, SyncProgress
from catalogsync.engine.retry import RetryingCaller, Sleep
from catalogsync.mapping.store import MappingStore

_LOG = logging.getLogger(__name__)


class SyncValidator:
    def __init__(
        self,
        *,
        collector: CatalogCollector,
        store: MappingStore,
        client: BillingClient,
        retry: RetryPolicy | None = None,
        progress: SyncProgress | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._collector = collector
        self._store = store
        self._client = client
        self._caller = RetryingCaller(retry, sleep=sleep)
        self._progress: SyncProgress = progress or NullSyncProgress()

    async def validate(self) -> ValidationReport:
        products = self._collector.collect()
        missing_syncs: list[str] = []
        invalid_syncs: list[str] = []

        self._progress.phase_start("Validate", total=len(products))
        try:
            for product in products:
                mapping = self._store.get(product.local_id)
                if mapping is None or not mapping.active:
                    missing_syncs.append(product.local_id)
                elif not await self._resolves(mapping):
                    invalid_syncs.append(product.local_id)
                self._progress.item_done("Validate")
        except BaseException as exc:
            self._progress.phase_error("Validate", exc)
            raise
        self._progress.phase_done("Validate")

        # Mappings left behind by catalog entries that were removed. Reported only.
        catalog_ids = {product.local_id for product in products}
        stale_mappings = [record.local_id for record in self._store.list_active() if record.local_id not in catalog_ids]

        report = ValidationReport(
            is_valid=not missing_syncs and not invalid_syncs,
            missing_syncs=missing_syncs,
            invalid_syncs=invalid_syncs,
            stale_mappings=stale_mappings,
        )
        _LOG.info(
            "Validation complete: %d missing, %d invalid, %d stale",
            len(missing_syncs),
            len(invalid_syncs),
            len(stale_mappings),
        )
        return report

    async def _resolves(self, mapping: MappingRecord) -> bool:
        product_result = await self._caller.call(
            "retrieve_product", lambda: self._client.retrieve_product(mapping.remote_product_id)
        )
        if product_result.error is not None:
            return self._unresolved(mapping, product_result.error)
        if not product_result.unwrap().active:
            _LOG.warning("%s: remote product %s is archived", mapping.local_id, mapping.remote_product_id)
            return False

        price_result = await self._caller.call(
            "retrieve_price", lambda: self._client.retrieve_price(mapping.remote_price_id)
        )
        if price_result.error is not None:
            return self._unresolved(mapping, price_result.error)
        if not price_result.unwrap().active:
            _LOG.warning("%s: remote price %s is inactive", mapping.local_id, mapping.remote_price_id)
            return False
        return True

    @staticmethod
    def _unresolved(mapping: MappingRecord, error: RemoteError) -> bool:
        if error.fatal:
            raise GlobalSyncError(str(error)) from error
        _LOG.warning("%s: %s", mapping.local_id, error)
        return False


__all__ = ["SyncValidator"]
