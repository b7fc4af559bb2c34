"""Mappings command: print stored mapping rows."""

from __future__ import annotations

import argparse
import sys

from catalogsync import JsonMappingStore, MappingRecord

_COLUMNS = ("local_id", "remote_product_id", "remote_price_id", "price_amount", "sync_status", "last_synced_at")


def format_mappings(records: list[MappingRecord]) -> str:
    if not records:
        return "no mappings stored"
    rows = [list(_COLUMNS) + ["active"]]
    for record in records:
        rows.append(
            [
                record.local_id,
                record.remote_product_id,
                record.remote_price_id,
                str(record.price_amount),
                record.sync_status.value,
                record.last_synced_at.isoformat(timespec="seconds"),
                "yes" if record.active else "no",
            ]
        )
    widths = [max(len(row[index]) for row in rows) for index in range(len(rows[0]))]
    return "\n".join("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows)


def run_mappings(args: argparse.Namespace) -> int:
    import catalogsync.cli as cli

    config = cli.load_config(args.config)
    store = JsonMappingStore(config.mapping_path)

    if args.local_id is None:
        print(format_mappings(store.list_all()))
        return 0

    record = store.get(args.local_id)
    if record is None or not record.active:
        print(f"no active mapping for {args.local_id}", file=sys.stderr)
        return 1
    print(format_mappings([record]))
    return 0


__all__ = ["format_mappings", "run_mappings"]
