"""Exception hierarchy for catalogsync."""

from __future__ import annotations

from enum import StrEnum


class CatalogSyncError(Exception):
    """Base exception for all catalogsync errors."""


class ConfigurationError(CatalogSyncError):
    """Configuration loading or validation failure."""


class DuplicateLocalIdError(ConfigurationError):
    """Two catalog sources produced the same local id."""

    def __init__(self, local_id: str, *, first_source: str, second_source: str) -> None:
        super().__init__(f"duplicate local_id '{local_id}' (defined by {first_source} and {second_source})")
        self.local_id = local_id
        self.first_source = first_source
        self.second_source = second_source


class AuthenticationError(ConfigurationError):
    """The billing provider API key could not be resolved."""


class MappingStoreError(CatalogSyncError):
    """Mapping store could not be read or written."""


class MappingConflictError(CatalogSyncError):
    """A mapping write would share a remote product with another active mapping."""


class GlobalSyncError(CatalogSyncError):
    """The billing provider is unreachable or rejects every request."""


class RemoteErrorKind(StrEnum):
    TRANSPORT = "transport"
    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"


_RETRYABLE_KINDS = frozenset({RemoteErrorKind.TRANSPORT, RemoteErrorKind.RATE_LIMITED, RemoteErrorKind.SERVER})
_FATAL_KINDS = frozenset({RemoteErrorKind.TRANSPORT, RemoteErrorKind.AUTHENTICATION})


class RemoteError(CatalogSyncError):
    """Typed failure returned by a billing client operation."""

    def __init__(
        self,
        message: str,
        *,
        kind: RemoteErrorKind,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.operation = operation
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Transient failures worth another attempt."""
        return self.kind in _RETRYABLE_KINDS

    @property
    def fatal(self) -> bool:
        """Failures that affect every item, not just the current one."""
        return self.kind in _FATAL_KINDS

    @property
    def not_found(self) -> bool:
        return self.kind is RemoteErrorKind.NOT_FOUND

    def __repr__(self) -> str:
        return f"RemoteError({self.message!r}, kind={self.kind.value!r}, operation={self.operation!r})"
