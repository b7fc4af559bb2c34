"""Sync engine."""

from catalogsync.engine.orchestrator import SyncOrchestrator
from catalogsync.engine.progress import NullSyncProgress, SyncProgress
from catalogsync.engine.reconciler import Decision, Reconciler
from catalogsync.engine.retry import RetryingCaller
from catalogsync.engine.validator import SyncValidator

__all__ = [
    "Decision",
    "NullSyncProgress",
    "Reconciler",
    "RetryingCaller",
    "SyncOrchestrator",
    "SyncProgress",
    "SyncValidator",
]
