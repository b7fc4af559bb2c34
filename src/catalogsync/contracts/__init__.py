"""Contract exports."""

from catalogsync.contracts.catalog import BillingCadence, CatalogDefinition, LocalProduct, LocalProductSource
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.config import CatalogSyncConfig, RetryPolicy
from catalogsync.contracts.exceptions import (
    AuthenticationError,
    CatalogSyncError,
    ConfigurationError,
    DuplicateLocalIdError,
    GlobalSyncError,
    MappingConflictError,
    MappingStoreError,
    RemoteError,
    RemoteErrorKind,
)
from catalogsync.contracts.mapping import MappingRecord, SyncStatus
from catalogsync.contracts.remote import PriceInput, ProductInput, RemotePrice, RemoteProduct, RemoteResult
from catalogsync.contracts.sync import SyncAction, SyncedProduct, SyncResult, ValidationReport

__all__ = [
    "AuthenticationError",
    "BillingCadence",
    "BillingClient",
    "CatalogDefinition",
    "CatalogSyncConfig",
    "CatalogSyncError",
    "ConfigurationError",
    "DuplicateLocalIdError",
    "GlobalSyncError",
    "LocalProduct",
    "LocalProductSource",
    "MappingConflictError",
    "MappingRecord",
    "MappingStoreError",
    "PriceInput",
    "ProductInput",
    "RemoteError",
    "RemoteErrorKind",
    "RemotePrice",
    "RemoteProduct",
    "RemoteResult",
    "RetryPolicy",
    "SyncAction",
    "SyncResult",
    "SyncStatus",
    "SyncedProduct",
    "ValidationReport",
]
