"""Sync command formatting and execution."""

from __future__ import annotations

import argparse

from catalogsync import CatalogSyncConfig, SyncAction, SyncResult, SyncStatus
from catalogsync.cli.common import format_count
from catalogsync.cli.progress.rich import RichSyncProgress
from catalogsync.engine.progress import SyncProgress

_ACTION_LABELS = {
    SyncAction.CREATE: "create",
    SyncAction.UPDATE_METADATA: "update metadata",
    SyncAction.ROTATE_PRICE: "rotate price",
    SyncAction.NOOP: "unchanged",
}


def format_sync_summary(result: SyncResult) -> str:
    mode = "dry-run" if result.dry_run else "apply"
    if result.force:
        mode += ", force"
    errored = sum(1 for product in result.synced_products if product.status is SyncStatus.ERROR)
    lines = [
        "",
        f"catalog-sync - sync {'aborted' if result.fatal_error else 'complete'} ({mode})",
        "",
        f"  Products:  {len(result.synced_products)} processed",
        f"  Created:   {result.created}",
        f"  Updated:   {result.updated}",
        f"  Errors:    {errored}",
    ]

    if result.dry_run and result.planned:
        planned = ", ".join(
            f"{result.planned[action]} {_ACTION_LABELS[action]}" for action in SyncAction if action in result.planned
        )
        lines.append(f"  Planned:   {planned}")

    if result.errors:
        lines.append("")
        lines.append(f"  {format_count(len(result.errors), 'error')}:")
        lines.extend(f"    - {message}" for message in result.errors)
    elif result.created == 0 and result.updated == 0 and not result.dry_run:
        lines.append("  Status:    all products up to date")

    if result.cancelled:
        lines.append("")
        lines.append("  [cancelled] Remaining products were not processed")
    if result.dry_run:
        lines.append("")
        lines.append("  [dry-run] No changes were made")

    lines.append("")
    return "\n".join(lines)


def sync_exit_code(result: SyncResult) -> int:
    if result.dry_run:
        return 0
    if result.fatal_error is not None:
        return 2
    if result.errors:
        return 1
    return 0


async def _sync(config: CatalogSyncConfig, args: argparse.Namespace, progress: SyncProgress | None) -> SyncResult:
    import catalogsync.cli as cli

    sync = await cli.CatalogSync.from_config(config, progress=progress)
    async with sync:
        return await sync.sync(dry_run=args.dry_run, force=args.force)


async def run_sync(args: argparse.Namespace) -> SyncResult:
    import catalogsync.cli as cli

    config = cli.load_config(args.config)

    if not args.verbose:
        with RichSyncProgress() as progress:
            result = await _sync(config, args, progress)
    else:
        result = await _sync(config, args, None)

    print(cli._format_summary(result))
    return result


__all__ = ["format_sync_summary", "run_sync", "sync_exit_code"]
