"""SDK composition root for catalogsync."""

from __future__ import annotations

from types import TracebackType

from catalogsync.auth import create_token_resolver
from catalogsync.catalog.collector import CatalogCollector
from catalogsync.clients.factory import create_client
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.config import CatalogSyncConfig, RetryPolicy
from catalogsync.contracts.mapping import MappingRecord
from catalogsync.contracts.sync import SyncResult, ValidationReport
from catalogsync.engine.orchestrator import SyncOrchestrator
from catalogsync.engine.progress import SyncProgress
from catalogsync.engine.validator import SyncValidator
from catalogsync.mapping.store import JsonMappingStore, MappingStore


class CatalogSync:
    """catalogsync SDK public API.

    The billing client is built once and shared by every operation. Use the
    instance as an async context manager so the client's connection is
    opened and closed around the work::

        async with await CatalogSync.from_config(config) as sync:
            result = await sync.sync(dry_run=True)
    """

    def __init__(
        self,
        *,
        client: BillingClient,
        store: MappingStore,
        collector: CatalogCollector,
        retry: RetryPolicy | None = None,
        progress: SyncProgress | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._collector = collector
        self._retry = retry or RetryPolicy()
        self._progress = progress
        self._orchestrator: SyncOrchestrator | None = None

    @classmethod
    async def from_config(cls, config: CatalogSyncConfig, *, progress: SyncProgress | None = None) -> CatalogSync:
        api_key = await create_token_resolver(config).resolve()
        return cls(
            client=create_client(config, api_key=api_key),
            store=JsonMappingStore(config.mapping_path),
            collector=CatalogCollector(config.catalog_paths, default_currency=config.default_currency),
            retry=config.retry,
            progress=progress,
        )

    async def __aenter__(self) -> CatalogSync:
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def sync(self, *, dry_run: bool = False, force: bool = False) -> SyncResult:
        self._orchestrator = SyncOrchestrator(
            collector=self._collector,
            store=self._store,
            client=self._client,
            retry=self._retry,
            progress=self._progress,
        )
        return await self._orchestrator.run(dry_run=dry_run, force=force)

    def cancel(self) -> None:
        """Stop a running ``sync`` at the next item boundary."""
        if self._orchestrator is not None:
            self._orchestrator.cancel()

    async def validate(self) -> ValidationReport:
        validator = SyncValidator(
            collector=self._collector,
            store=self._store,
            client=self._client,
            retry=self._retry,
            progress=self._progress,
        )
        return await validator.validate()

    def lookup(self, local_id: str) -> MappingRecord | None:
        """Active mapping for *local_id*, as used by checkout to find the price to charge."""
        record = self._store.get(local_id)
        if record is None or not record.active:
            return None
        return record

    def mappings(self) -> list[MappingRecord]:
        return self._store.list_all()


__all__ = ["CatalogSync"]
