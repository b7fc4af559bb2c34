"""Public API surface for catalogsync."""

__version__ = "0.1.0"

from catalogsync.catalog import CatalogCollector, load_catalog
from catalogsync.clients import InMemoryBillingClient, StripeClient, create_client
from catalogsync.config import load_config
from catalogsync.contracts import (
    AuthenticationError,
    BillingCadence,
    BillingClient,
    CatalogDefinition,
    CatalogSyncConfig,
    CatalogSyncError,
    ConfigurationError,
    DuplicateLocalIdError,
    GlobalSyncError,
    LocalProduct,
    MappingConflictError,
    MappingRecord,
    MappingStoreError,
    RemoteError,
    RemoteErrorKind,
    RemotePrice,
    RemoteProduct,
    RemoteResult,
    RetryPolicy,
    SyncAction,
    SyncedProduct,
    SyncResult,
    SyncStatus,
    ValidationReport,
)
from catalogsync.engine import Reconciler, SyncOrchestrator, SyncProgress, SyncValidator
from catalogsync.mapping import InMemoryMappingStore, JsonMappingStore, MappingStore
from catalogsync.sdk import CatalogSync

__all__ = [
    "AuthenticationError",
    "BillingCadence",
    "BillingClient",
    "CatalogCollector",
    "CatalogDefinition",
    "CatalogSync",
    "CatalogSyncConfig",
    "CatalogSyncError",
    "ConfigurationError",
    "DuplicateLocalIdError",
    "GlobalSyncError",
    "InMemoryBillingClient",
    "InMemoryMappingStore",
    "JsonMappingStore",
    "LocalProduct",
    "MappingConflictError",
    "MappingRecord",
    "MappingStore",
    "MappingStoreError",
    "Reconciler",
    "RemoteError",
    "RemoteErrorKind",
    "RemotePrice",
    "RemoteProduct",
    "RemoteResult",
    "RetryPolicy",
    "StripeClient",
    "SyncAction",
    "SyncOrchestrator",
    "SyncProgress",
    "SyncResult",
    "SyncStatus",
    "SyncValidator",
    "SyncedProduct",
    "ValidationReport",
    "__version__",
    "create_client",
    "load_catalog",
    "load_config",
]
