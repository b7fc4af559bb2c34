"""Concrete token resolvers."""

from catalogsync.auth.resolvers.env import EnvTokenResolver
from catalogsync.auth.resolvers.static import StaticTokenResolver

__all__ = ["EnvTokenResolver", "StaticTokenResolver"]
