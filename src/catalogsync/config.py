"""Config loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from catalogsync.contracts.config import CatalogSyncConfig
from catalogsync.contracts.exceptions import ConfigurationError


def _resolve_path(value: Path, *, base_dir: Path) -> Path:
    if value.is_absolute():
        return value
    return (base_dir / value).resolve()


def load_config(path: str | Path) -> CatalogSyncConfig:
    """Load and validate config from JSON, resolving relative paths against the config directory."""
    config_path = Path(path).expanduser().resolve()
    config_dir = config_path.parent

    try:
        raw_payload: Any = json.loads(config_path.read_text(encoding="utf-8"))
        parsed = CatalogSyncConfig.model_validate(raw_payload)
    except OSError as exc:
        raise ConfigurationError(f"failed reading config file: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"invalid JSON in config file: {config_path}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config: {exc}") from exc

    return parsed.model_copy(
        update={
            "catalog_paths": [_resolve_path(p, base_dir=config_dir) for p in parsed.catalog_paths],
            "mapping_path": _resolve_path(parsed.mapping_path, base_dir=config_dir),
            "default_currency": parsed.default_currency.lower(),
        }
    )


__all__ = ["load_config"]
