"""Environment token resolver."""

from __future__ import annotations

import os
from dataclasses import dataclass

from catalogsync.auth.base import TokenResolver, require_secret_key


@dataclass(frozen=True)
class EnvTokenResolver(TokenResolver):
    env_var: str = "STRIPE_API_KEY"

    async def resolve(self) -> str:
        return require_secret_key(os.getenv(self.env_var), source=self.env_var)
