"""Factory for creating billing client instances.

Decouples client selection from client implementation. The SDK uses this
factory to instantiate clients by configured provider name.
"""

from __future__ import annotations

from collections.abc import Callable

from catalogsync.clients.stripe import StripeClient
from catalogsync.contracts.client import BillingClient
from catalogsync.contracts.config import CatalogSyncConfig
from catalogsync.contracts.exceptions import ConfigurationError

ClientBuilder = Callable[[CatalogSyncConfig, str], BillingClient]


def _build_stripe(config: CatalogSyncConfig, api_key: str) -> BillingClient:
    return StripeClient(api_key=api_key, api_base=config.api_base, timeout_seconds=config.timeout_seconds)


_REGISTRY: dict[str, ClientBuilder] = {"stripe": _build_stripe}


def register(name: str, builder: ClientBuilder) -> None:
    """Register a client builder by provider name."""
    _REGISTRY[name] = builder


def create_client(config: CatalogSyncConfig, *, api_key: str) -> BillingClient:
    """Create the billing client named by ``config.provider``.

    Raises:
        ConfigurationError: If the provider name is not registered.
    """
    builder = _REGISTRY.get(config.provider)
    if builder is None:
        available = ", ".join(sorted(_REGISTRY)) or "(none registered)"
        raise ConfigurationError(f"Unknown provider: {config.provider!r}. Available: {available}")
    return builder(config, api_key)
