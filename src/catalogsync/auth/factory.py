"""Token resolver factory."""

from __future__ import annotations

from catalogsync.auth.base import TokenResolver
from catalogsync.auth.resolvers.env import EnvTokenResolver
from catalogsync.auth.resolvers.static import StaticTokenResolver
from catalogsync.contracts.config import CatalogSyncConfig
from catalogsync.contracts.exceptions import ConfigurationError

RESOLVERS: dict[str, type[TokenResolver]] = {
    "env": EnvTokenResolver,
    "token": StaticTokenResolver,
}


def create_token_resolver(config: CatalogSyncConfig) -> TokenResolver:
    auth_mode = config.auth
    if auth_mode not in RESOLVERS:
        raise ConfigurationError(f"Unknown auth mode: {auth_mode}")

    if auth_mode == "env":
        return EnvTokenResolver(env_var=config.token_env)
    return StaticTokenResolver(token=config.token or "")
