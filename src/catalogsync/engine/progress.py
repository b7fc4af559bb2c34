"""Progress events emitted while a catalog is collected, synced or validated.

``Collect`` carries no item count. ``Sync`` and ``Validate`` report one
``item_done`` per catalog product.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class SyncProgress(ABC):
    @abstractmethod
    def phase_start(self, phase: str, total: int | None = None) -> None: ...  # pragma: no cover

    @abstractmethod
    def item_done(self, phase: str) -> None: ...  # pragma: no cover

    @abstractmethod
    def phase_done(self, phase: str) -> None: ...  # pragma: no cover

    @abstractmethod
    def phase_error(self, phase: str, error: BaseException) -> None:
        """*phase* stopped early because of *error*."""


class NullSyncProgress(SyncProgress):
    """Discards every event; used by the SDK and by ``--verbose`` runs."""

    def phase_start(self, phase: str, total: int | None = None) -> None:
        return None

    def item_done(self, phase: str) -> None:
        return None

    def phase_done(self, phase: str) -> None:
        return None

    def phase_error(self, phase: str, error: BaseException) -> None:
        return None
