"""Mapping store."""

from catalogsync.mapping.store import InMemoryMappingStore, JsonMappingStore, MappingStore

__all__ = ["InMemoryMappingStore", "JsonMappingStore", "MappingStore"]
