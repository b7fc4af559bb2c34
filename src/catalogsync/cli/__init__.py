"""Command-line interface for catalogsync."""

from __future__ import annotations

import asyncio
import logging as logging

from catalogsync import CatalogSync as CatalogSync
from catalogsync import load_config as load_config
from catalogsync.cli.app import main as main
from catalogsync.cli.commands import mappings as mappings_command
from catalogsync.cli.commands import sync as sync_command
from catalogsync.cli.commands import validate as validate_command
from catalogsync.cli.parser import build_parser as build_parser

_format_summary = sync_command.format_sync_summary
_format_validation_summary = validate_command.format_validation_summary
_format_mappings = mappings_command.format_mappings

sync_exit_code = sync_command.sync_exit_code

_run_sync = sync_command.run_sync
_run_validate = validate_command.run_validate
_run_mappings = mappings_command.run_mappings

__all__ = ["asyncio", "build_parser", "main"]
