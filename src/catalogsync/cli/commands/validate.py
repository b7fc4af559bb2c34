"""Validate command formatting and execution."""

from __future__ import annotations

import argparse

from catalogsync import ValidationReport
from catalogsync.cli.common import format_comma_or_none
from catalogsync.cli.progress.rich import RichSyncProgress


def format_validation_summary(report: ValidationReport) -> str:
    lines = [
        "",
        f"catalog-sync - validation {'passed' if report.is_valid else 'failed'}",
        "",
        f"  Missing:   {format_comma_or_none(report.missing_syncs)}",
        f"  Invalid:   {format_comma_or_none(report.invalid_syncs)}",
    ]
    if report.stale_mappings:
        lines.append(f"  Stale:     {format_comma_or_none(report.stale_mappings)}")
        lines.append("             (mapped but no longer in the catalog; review manually)")
    lines.append("")
    return "\n".join(lines)


async def run_validate(args: argparse.Namespace) -> ValidationReport:
    import catalogsync.cli as cli

    config = cli.load_config(args.config)

    if not args.verbose:
        with RichSyncProgress() as progress:
            sync = await cli.CatalogSync.from_config(config, progress=progress)
            async with sync:
                report = await sync.validate()
    else:
        sync = await cli.CatalogSync.from_config(config)
        async with sync:
            report = await sync.validate()

    print(cli._format_validation_summary(report))
    return report


__all__ = ["format_validation_summary", "run_validate"]
