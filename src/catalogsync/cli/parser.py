"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version

DEFAULT_CONFIG = "./catalog-sync.json"


def _package_version() -> str:
    try:
        return version("catalog-sync")
    except PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog-sync")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync the local catalog to the billing provider")
    sync_parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to catalog-sync.json")
    sync_parser.add_argument("--dry-run", action="store_true", help="Report actions without changing anything")
    sync_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-verify every mapping against live provider state, even when it looks fresh",
    )
    sync_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    validate_parser = subparsers.add_parser("validate", help="Check every mapping still resolves remotely")
    validate_parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to catalog-sync.json")
    validate_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    mappings_parser = subparsers.add_parser("mappings", help="Show the stored product mappings")
    mappings_parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to catalog-sync.json")
    mappings_parser.add_argument("--local-id", default=None, help="Show only the active mapping for this local id")
    mappings_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    return parser


__all__ = ["build_parser"]
