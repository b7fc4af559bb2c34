"""Load catalog definition files from disk."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from catalogsync.contracts.catalog import CatalogDefinition
from catalogsync.contracts.exceptions import ConfigurationError


def load_catalog(path: Path) -> CatalogDefinition:
    """Load and parse one catalog JSON file into a validated definition.

    Raises:
        ConfigurationError: If the file is missing, unreadable, contains invalid
                            JSON, or doesn't match the catalog schema.
    """
    if not path.exists():
        raise ConfigurationError(f"missing catalog file: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"invalid JSON in catalog file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"failed to read catalog file: {exc}") from exc

    try:
        return CatalogDefinition.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"catalog validation failed for {path}: {exc}") from exc


__all__ = ["load_catalog"]
