from __future__ import annotations

import json
from pathlib import Path

import pytest

from catalogsync.contracts.exceptions import MappingStoreError
from catalogsync.contracts.mapping import SyncStatus
from catalogsync.mapping.store import InMemoryMappingStore, JsonMappingStore
from tests.fakes.builders import FIXED_NOW, make_record


def test_in_memory_store_upsert_and_get() -> None:
    store = InMemoryMappingStore()

    store.upsert(make_record("plan_pro_monthly"))

    record = store.get("plan_pro_monthly")
    assert record is not None
    assert record.remote_product_id == "prod_plan_pro_monthly"
    assert store.writes == 1
    assert store.get("unknown") is None


def test_in_memory_store_upsert_replaces_existing_record() -> None:
    store = InMemoryMappingStore([make_record("addon_sms")])

    store.upsert(make_record("addon_sms", remote_price_id="price_new", price_amount=999))

    record = store.get("addon_sms")
    assert record is not None
    assert record.remote_price_id == "price_new"
    assert len(store.list_all()) == 1


def test_list_active_excludes_inactive_records() -> None:
    store = InMemoryMappingStore([make_record("b"), make_record("a"), make_record("c", active=False)])

    assert [record.local_id for record in store.list_all()] == ["a", "b", "c"]
    assert [record.local_id for record in store.list_active()] == ["a", "b"]


def test_json_store_missing_file_reads_as_empty(tmp_path: Path) -> None:
    store = JsonMappingStore(tmp_path / "mappings.json")

    assert store.list_all() == []
    assert store.get("anything") is None
    assert not (tmp_path / "mappings.json").exists()


def test_json_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "state" / "mappings.json"
    JsonMappingStore(path).upsert(make_record("plan_pro_monthly", sync_status=SyncStatus.CREATED))

    reloaded = JsonMappingStore(path).get("plan_pro_monthly")

    assert reloaded is not None
    assert reloaded.sync_status is SyncStatus.CREATED
    assert reloaded.last_synced_at == FIXED_NOW
    assert not path.with_name("mappings.json.tmp").exists()


def test_json_store_writes_records_keyed_by_local_id(tmp_path: Path) -> None:
    path = tmp_path / "mappings.json"
    store = JsonMappingStore(path)

    store.upsert(make_record("addon_sms", price_amount=999))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert list(payload["records"]) == ["addon_sms"]
    assert payload["records"]["addon_sms"]["price_amount"] == 999
    assert payload["records"]["addon_sms"]["active"] is True


def test_json_store_invalid_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "mappings.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(MappingStoreError, match="invalid mapping store file"):
        JsonMappingStore(path).list_all()


def test_json_store_write_failure_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonMappingStore(blocker / "mappings.json")

    with pytest.raises(MappingStoreError, match="failed to persist"):
        store.upsert(make_record("addon_sms"))
