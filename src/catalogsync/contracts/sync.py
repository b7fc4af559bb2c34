"""Sync and validation result contracts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from catalogsync.contracts.mapping import SyncStatus


class SyncAction(StrEnum):
    CREATE = "create"
    UPDATE_METADATA = "update_metadata"
    ROTATE_PRICE = "rotate_price"
    NOOP = "noop"


class SyncedProduct(BaseModel):
    local_id: str
    local_name: str
    remote_product_id: str
    remote_price_id: str
    price: int
    status: SyncStatus
    action: SyncAction | None = None
    error: str | None = None


class SyncResult(BaseModel):
    created: int = 0
    updated: int = 0
    errors: list[str] = Field(default_factory=list)
    synced_products: list[SyncedProduct] = Field(default_factory=list)
    planned: dict[SyncAction, int] = Field(default_factory=dict)
    dry_run: bool = False
    force: bool = False
    fatal_error: str | None = None
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.errors and self.fatal_error is None


class ValidationReport(BaseModel):
    is_valid: bool
    missing_syncs: list[str] = Field(default_factory=list)
    invalid_syncs: list[str] = Field(default_factory=list)
    stale_mappings: list[str] = Field(default_factory=list)
