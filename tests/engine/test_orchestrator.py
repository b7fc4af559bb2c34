from __future__ import annotations

from collections.abc import Callable

import pytest

from catalogsync.catalog.collector import CatalogCollector
from catalogsync.clients.memory import InMemoryBillingClient
from catalogsync.contracts.config import RetryPolicy
from catalogsync.contracts.exceptions import (
    DuplicateLocalIdError,
    MappingStoreError,
    RemoteError,
    RemoteErrorKind,
)
from catalogsync.contracts.mapping import MappingRecord, SyncStatus
from catalogsync.contracts.remote import ProductInput
from catalogsync.contracts.sync import SyncAction
from catalogsync.engine.orchestrator import DRY_RUN_PRICE_ID, DRY_RUN_PRODUCT_ID, SyncOrchestrator
from catalogsync.engine.progress import SyncProgress
from catalogsync.mapping.store import InMemoryMappingStore
from tests.fakes.builders import FIXED_NOW, NO_RETRY, make_record, no_sleep, plan_catalog

MakeOrchestrator = Callable[..., SyncOrchestrator]


class RecordingProgress(SyncProgress):
    def __init__(self, on_item_done: Callable[[], None] | None = None) -> None:
        self.events: list[tuple[str, str, int | None]] = []
        self._on_item_done = on_item_done

    def phase_start(self, phase: str, total: int | None = None) -> None:
        self.events.append(("start", phase, total))

    def item_done(self, phase: str) -> None:
        self.events.append(("item", phase, None))
        if self._on_item_done is not None:
            self._on_item_done()

    def phase_done(self, phase: str) -> None:
        self.events.append(("done", phase, None))

    def phase_error(self, phase: str, error: BaseException) -> None:
        self.events.append(("error", phase, None))


class FailingWriteStore(InMemoryMappingStore):
    def upsert(self, record: MappingRecord) -> None:
        raise MappingStoreError("failed to persist mapping store: /tmp/mappings.json")


def _mapping(store: InMemoryMappingStore, local_id: str = "plan_pro_monthly") -> MappingRecord:
    record = store.get(local_id)
    assert record is not None
    return record


@pytest.mark.asyncio
async def test_first_run_creates_products_and_records_mappings(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    result = await make_orchestrator(plan_catalog()).run()

    assert result.created == 2
    assert result.updated == 0
    assert result.errors == []
    assert result.success
    record = _mapping(store)
    assert record.active is True
    assert record.price_amount == 4900
    assert record.sync_status is SyncStatus.CREATED
    assert record.last_synced_at == FIXED_NOW
    assert client.prices[record.remote_price_id].unit_amount == 4900
    assert _mapping(store, "plan_pro_yearly").price_amount == 49000


@pytest.mark.asyncio
async def test_second_run_is_a_noop_without_mutations(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient
) -> None:
    orchestrator = make_orchestrator(plan_catalog())
    await orchestrator.run()
    mutations_after_first_run = len(client.mutations)

    result = await orchestrator.run()

    assert (result.created, result.updated, result.errors) == (0, 0, [])
    assert {product.action for product in result.synced_products} == {SyncAction.NOOP}
    assert len(client.mutations) == mutations_after_first_run


@pytest.mark.asyncio
async def test_price_change_rotates_price_and_updates_mapping(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    before = _mapping(store)

    result = await make_orchestrator(plan_catalog(monthly="59")).run()

    assert result.updated == 1
    after = _mapping(store)
    assert after.sync_status is SyncStatus.UPDATED
    assert after.remote_product_id == before.remote_product_id
    assert after.remote_price_id != before.remote_price_id
    assert after.price_amount == 5900
    assert client.prices[before.remote_price_id].active is False
    assert client.prices[before.remote_price_id].unit_amount == 4900


@pytest.mark.asyncio
async def test_dry_run_reports_rotation_without_touching_state(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    mutations_before = len(client.mutations)
    writes_before = store.writes

    result = await make_orchestrator(plan_catalog(monthly="59")).run(dry_run=True)

    assert result.dry_run is True
    assert result.planned == {SyncAction.ROTATE_PRICE: 1, SyncAction.NOOP: 1}
    monthly = next(product for product in result.synced_products if product.local_id == "plan_pro_monthly")
    assert monthly.action is SyncAction.ROTATE_PRICE
    assert monthly.remote_product_id == DRY_RUN_PRODUCT_ID
    assert monthly.remote_price_id == DRY_RUN_PRICE_ID
    assert _mapping(store).price_amount == 4900
    assert store.writes == writes_before
    assert len(client.mutations) == mutations_before


@pytest.mark.asyncio
async def test_dry_run_on_empty_state_plans_creates_only(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    result = await make_orchestrator(plan_catalog()).run(dry_run=True)

    assert result.planned == {SyncAction.CREATE: 2}
    assert result.created == 0
    assert client.mutations == ()
    assert store.writes == 0
    assert store.list_all() == []


@pytest.mark.asyncio
async def test_missing_remote_product_self_heals_with_new_product(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    original = _mapping(store)
    client.remove_product(original.remote_product_id)
    store.upsert(original.model_copy(update={"remote_product_id": "prod_does_not_exist"}))

    result = await make_orchestrator(plan_catalog()).run()

    assert result.created == 1
    healed = _mapping(store)
    assert healed.remote_product_id not in {"prod_does_not_exist", original.remote_product_id}
    assert healed.remote_product_id in client.products


@pytest.mark.asyncio
async def test_lost_mapping_adopts_tagged_remote_product(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient
) -> None:
    await make_orchestrator(plan_catalog()).run()
    product_count = len(client.products)

    # A fresh store simulates a crash between the remote writes and the mapping write.
    fresh_store = InMemoryMappingStore()
    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog()]),
        store=fresh_store,
        client=client,
        retry=NO_RETRY,
        sleep=no_sleep,
    )
    result = await orchestrator.run()

    assert result.errors == []
    assert len(client.products) == product_count
    assert {product.status for product in result.synced_products} == {SyncStatus.SYNCED}
    assert len(fresh_store.list_active()) == 2


@pytest.mark.asyncio
async def test_item_failure_is_recorded_and_loop_continues(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    client.fail("create_product")

    result = await make_orchestrator(plan_catalog()).run()

    assert result.errors == ["plan_pro_monthly: create_product failed"]
    assert result.created == 1
    assert not result.success
    assert [product.status for product in result.synced_products] == [SyncStatus.ERROR, SyncStatus.CREATED]
    assert result.synced_products[0].error == "create_product failed"
    assert store.get("plan_pro_monthly") is None
    assert store.get("plan_pro_yearly") is not None


@pytest.mark.asyncio
async def test_item_failure_marks_existing_mapping_as_error(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    before = _mapping(store)
    client.fail("create_price")

    result = await make_orchestrator(plan_catalog(monthly="59")).run()

    assert result.errors == ["plan_pro_monthly: create_price failed"]
    after = _mapping(store)
    assert after.sync_status is SyncStatus.ERROR
    assert after.remote_price_id == before.remote_price_id
    assert after.price_amount == 4900
    assert client.prices[before.remote_price_id].active is True


@pytest.mark.asyncio
async def test_unreachable_provider_aborts_before_any_item(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    client.fail("ping", RemoteError("connection refused", kind=RemoteErrorKind.TRANSPORT, operation="ping"))

    result = await make_orchestrator(plan_catalog()).run()

    assert result.fatal_error == "billing provider unreachable: connection refused"
    assert result.errors == ["Global sync error: billing provider unreachable: connection refused"]
    assert result.synced_products == []
    assert [op.name for op in client.operations] == ["ping"]
    assert store.writes == 0


@pytest.mark.asyncio
async def test_authentication_failure_mid_run_is_global(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    client.fail(
        "create_product",
        RemoteError("Invalid API Key provided", kind=RemoteErrorKind.AUTHENTICATION, status_code=401),
    )

    result = await make_orchestrator(plan_catalog()).run()

    assert result.fatal_error == "Invalid API Key provided"
    assert result.errors == ["Global sync error: Invalid API Key provided"]
    assert store.writes == 0
    assert "plan_pro_yearly" not in {op.target_id for op in client.operations}


@pytest.mark.asyncio
async def test_transient_failures_are_retried(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient
) -> None:
    client.fail(
        "create_product",
        RemoteError("Too many requests", kind=RemoteErrorKind.RATE_LIMITED, status_code=429),
        times=2,
    )

    result = await make_orchestrator(plan_catalog(), retry=RetryPolicy(max_attempts=3, jitter_seconds=0)).run()

    assert result.errors == []
    assert result.created == 2


@pytest.mark.asyncio
async def test_mapping_conflict_fails_only_that_item(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    tagged = (
        await client.create_product(
            ProductInput(name="Pro Plan (Monthly)", description="", metadata={"local_id": "plan_pro_monthly"})
        )
    ).unwrap()
    store.upsert(make_record("legacy_item", remote_product_id=tagged.id))

    result = await make_orchestrator(plan_catalog()).run()

    assert result.errors == [f"plan_pro_monthly: remote product {tagged.id} is already mapped to legacy_item"]
    assert store.get("plan_pro_monthly") is None
    product_ids = [record.remote_product_id for record in store.list_active()]
    assert len(product_ids) == len(set(product_ids))


@pytest.mark.asyncio
async def test_mapping_store_failure_aborts_run(client: InMemoryBillingClient) -> None:
    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog()]),
        store=FailingWriteStore(),
        client=client,
        retry=NO_RETRY,
        sleep=no_sleep,
    )

    result = await orchestrator.run()

    assert result.fatal_error == "failed to persist mapping store: /tmp/mappings.json"
    assert len(result.errors) == 1


@pytest.mark.asyncio
async def test_duplicate_local_ids_abort_before_remote_calls(client: InMemoryBillingClient) -> None:
    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog(), plan_catalog()]),
        store=InMemoryMappingStore(),
        client=client,
        retry=NO_RETRY,
        sleep=no_sleep,
    )

    with pytest.raises(DuplicateLocalIdError):
        await orchestrator.run()

    assert client.operations == ()


@pytest.mark.asyncio
async def test_cancel_stops_at_next_item_boundary(client: InMemoryBillingClient) -> None:
    store = InMemoryMappingStore()
    orchestrator: SyncOrchestrator

    def cancel() -> None:
        orchestrator.cancel()

    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog()]),
        store=store,
        client=client,
        retry=NO_RETRY,
        progress=RecordingProgress(on_item_done=cancel),
        sleep=no_sleep,
    )

    result = await orchestrator.run()

    assert result.cancelled is True
    assert [product.local_id for product in result.synced_products] == ["plan_pro_monthly"]
    assert [record.local_id for record in store.list_all()] == ["plan_pro_monthly"]


@pytest.mark.asyncio
async def test_progress_events_follow_phases(client: InMemoryBillingClient) -> None:
    progress = RecordingProgress()
    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog()]),
        store=InMemoryMappingStore(),
        client=client,
        retry=NO_RETRY,
        progress=progress,
        sleep=no_sleep,
    )

    await orchestrator.run()

    assert progress.events == [
        ("start", "Collect", None),
        ("done", "Collect", None),
        ("start", "Sync", 2),
        ("item", "Sync", None),
        ("item", "Sync", None),
        ("done", "Sync", None),
    ]


@pytest.mark.asyncio
async def test_store_failure_while_recording_item_error_aborts_run(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    client.fail("create_price")
    orchestrator = SyncOrchestrator(
        collector=CatalogCollector([plan_catalog(monthly="59")]),
        store=FailingWriteStore(store.list_all()),
        client=client,
        retry=NO_RETRY,
        sleep=no_sleep,
    )

    result = await orchestrator.run()

    assert result.fatal_error == "failed to persist mapping store: /tmp/mappings.json"
    assert result.errors == [
        "plan_pro_monthly: create_price failed",
        "Global sync error: failed to persist mapping store: /tmp/mappings.json",
    ]
    assert "plan_pro_yearly" not in {product.local_id for product in result.synced_products}


@pytest.mark.asyncio
async def test_force_repairs_price_linked_to_another_product_without_touching_it(
    make_orchestrator: MakeOrchestrator, client: InMemoryBillingClient, store: InMemoryMappingStore
) -> None:
    await make_orchestrator(plan_catalog()).run()
    monthly = _mapping(store)
    yearly = _mapping(store, "plan_pro_yearly")
    store.upsert(monthly.model_copy(update={"remote_price_id": yearly.remote_price_id}))

    result = await make_orchestrator(plan_catalog()).run(force=True)

    assert result.errors == []
    assert result.updated == 1
    assert client.prices[yearly.remote_price_id].active is True
    assert client.prices[monthly.remote_price_id].active is True
    assert _mapping(store).remote_price_id == monthly.remote_price_id
    assert _mapping(store, "plan_pro_yearly").remote_price_id == yearly.remote_price_id
    assert [product.action for product in result.synced_products] == [SyncAction.ROTATE_PRICE, SyncAction.NOOP]
