"""Auth resolver interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod

from catalogsync.contracts.exceptions import AuthenticationError

PUBLISHABLE_KEY_PREFIX = "pk_"


class TokenResolver(ABC):
    @abstractmethod
    async def resolve(self) -> str:
        """Resolve and return the billing provider API key."""


def require_secret_key(raw: str | None, *, source: str) -> str:
    """Strip *raw* and reject values that cannot write products and prices."""
    key = (raw or "").strip()
    if not key:
        raise AuthenticationError(f"{source} is not set or empty")
    if key.startswith(PUBLISHABLE_KEY_PREFIX):
        raise AuthenticationError(f"{source} holds a publishable key; a secret or restricted key is required")
    return key
