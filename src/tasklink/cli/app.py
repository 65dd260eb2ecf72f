"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import asyncio
import sys

from tasklink import AuthenticationError, ConfigError, PersistenceError, ProviderError, SyncError
from tasklink.cli.commands.init import run_init
from tasklink.cli.commands.insert import run_insert
from tasklink.cli.commands.status import run_status
from tasklink.cli.commands.sync import run_sync
from tasklink.cli.commands.watch import run_watch
from tasklink.cli.common import configure_logging
from tasklink.cli.parser import build_parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        return run_init(args)

    configure_logging(args.verbose)

    try:
        if args.command == "sync":
            return asyncio.run(run_sync(args))
        if args.command == "watch":
            asyncio.run(run_watch(args))
            return 0
        if args.command == "insert":
            return asyncio.run(run_insert(args))
        if args.command == "status":
            return run_status(args)
        print(f"error: unsupported command: {args.command}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nStopped.", file=sys.stderr)
        return 0
    except (ConfigError, PersistenceError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except (AuthenticationError, ProviderError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    except SyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except Exception as exc:  # pragma: no cover - defensive fallback
        print(f"error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main"]
