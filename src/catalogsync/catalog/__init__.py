"""Local catalog collection."""

from catalogsync.catalog.collector import CatalogCollector, to_minor_units
from catalogsync.catalog.loader import load_catalog

__all__ = ["CatalogCollector", "load_catalog", "to_minor_units"]
