"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import sys

from catalogsync import CatalogSyncError

# Exit codes: 0 success, 1 per-item errors or failed validation, 2 fatal.
EXIT_FATAL = 2


def main(argv: list[str] | None = None) -> int:
    import catalogsync.cli as cli

    parser = cli.build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        cli.logging.basicConfig(level=cli.logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    try:
        if args.command == "sync":
            result = cli.asyncio.run(cli._run_sync(args))
            return cli.sync_exit_code(result)
        if args.command == "validate":
            report = cli.asyncio.run(cli._run_validate(args))
            return 0 if report.is_valid else 1
        return cli._run_mappings(args)
    except CatalogSyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FATAL


__all__ = ["main"]
