"""API key taken verbatim from the config file."""

from __future__ import annotations

from dataclasses import dataclass

from catalogsync.auth.base import TokenResolver, require_secret_key


@dataclass(frozen=True)
class StaticTokenResolver(TokenResolver):
    token: str

    async def resolve(self) -> str:
        return require_secret_key(self.token, source="Configured token")
