"""Auth module public exports."""

from catalogsync.auth.base import TokenResolver
from catalogsync.auth.factory import create_token_resolver

__all__ = ["TokenResolver", "create_token_resolver"]
