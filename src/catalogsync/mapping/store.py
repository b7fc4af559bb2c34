"""Mapping store implementations."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from catalogsync.contracts.exceptions import MappingStoreError
from catalogsync.contracts.mapping import MappingRecord, MappingTable


class MappingStore(ABC):
    """Durable table of local-id to remote-id mappings. Holds no business logic."""

    @abstractmethod
    def get(self, local_id: str) -> MappingRecord | None: ...  # pragma: no cover

    @abstractmethod
    def upsert(self, record: MappingRecord) -> None: ...  # pragma: no cover

    @abstractmethod
    def list_all(self) -> list[MappingRecord]: ...  # pragma: no cover

    def list_active(self) -> list[MappingRecord]:
        return [record for record in self.list_all() if record.active]


class InMemoryMappingStore(MappingStore):
    def __init__(self, records: list[MappingRecord] | None = None) -> None:
        self._records: dict[str, MappingRecord] = {record.local_id: record for record in records or []}
        self.writes = 0

    def get(self, local_id: str) -> MappingRecord | None:
        return self._records.get(local_id)

    def upsert(self, record: MappingRecord) -> None:
        self._records[record.local_id] = record
        self.writes += 1

    def list_all(self) -> list[MappingRecord]:
        return sorted(self._records.values(), key=lambda record: record.local_id)


class JsonMappingStore(MappingStore):
    """Mapping table persisted as one JSON document.

    Every upsert rewrites the file through a temporary sibling and an atomic
    rename, so a crash never leaves a half-written table behind.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._table: MappingTable | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self, local_id: str) -> MappingRecord | None:
        return self._load().records.get(local_id)

    def upsert(self, record: MappingRecord) -> None:
        table = self._load()
        table.records[record.local_id] = record
        self._write(table)

    def list_all(self) -> list[MappingRecord]:
        return sorted(self._load().records.values(), key=lambda record: record.local_id)

    def _load(self) -> MappingTable:
        if self._table is not None:
            return self._table
        if not self._path.exists():
            self._table = MappingTable()
            return self._table
        try:
            payload: Any = json.loads(self._path.read_text(encoding="utf-8"))
            self._table = MappingTable.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise MappingStoreError(f"invalid mapping store file: {self._path}") from exc
        return self._table

    def _write(self, table: MappingTable) -> None:
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(table.model_dump_json(indent=2) + "\n", encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise MappingStoreError(f"failed to persist mapping store: {self._path}") from exc


__all__ = ["InMemoryMappingStore", "JsonMappingStore", "MappingStore"]
