"""Mapping store contracts."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class SyncStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    SYNCED = "synced"
    ERROR = "error"


class MappingRecord(BaseModel):
    local_id: str
    local_name: str
    remote_product_id: str
    remote_price_id: str
    price_amount: int = Field(ge=0)
    sync_status: SyncStatus
    last_synced_at: datetime
    active: bool = True


class MappingTable(BaseModel):
    """On-disk shape of the mapping store."""

    records: dict[str, MappingRecord] = Field(default_factory=dict)
