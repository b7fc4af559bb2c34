"""Billing client implementations."""

from catalogsync.clients.factory import create_client, register
from catalogsync.clients.memory import InMemoryBillingClient
from catalogsync.clients.stripe import StripeClient

__all__ = ["InMemoryBillingClient", "StripeClient", "create_client", "register"]
