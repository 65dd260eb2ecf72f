"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version

from tasklink.config import DEFAULT_CONFIG_PATH


def _package_version() -> str:
    try:
        return version("tasklink")
    except PackageNotFoundError:
        return "0.0.0"


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasklink", description="Sync markdown checklists with Todoist")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Generate a tasklink.json config file")
    init_parser.add_argument(
        "--output",
        "-o",
        default=DEFAULT_CONFIG_PATH,
        help=f"Output file path (default: {DEFAULT_CONFIG_PATH})",
    )
    init_parser.add_argument("--defaults", action="store_true", help="Use defaults without prompting")

    sync_parser = subparsers.add_parser("sync", help="Create tracked tasks and resume pending retries, then exit")
    sync_parser.add_argument("paths", nargs="+", help="Markdown files or directories")
    sync_parser.add_argument("--config", default=f"./{DEFAULT_CONFIG_PATH}", help="Path to tasklink.json")
    sync_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    watch_parser = subparsers.add_parser("watch", help="Watch documents and sync changes until interrupted")
    watch_parser.add_argument("paths", nargs="+", help="Markdown files or directories")
    watch_parser.add_argument("--config", default=f"./{DEFAULT_CONFIG_PATH}", help="Path to tasklink.json")
    watch_parser.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help="Polling interval in seconds (default: poll_interval from config)",
    )
    watch_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    insert_parser = subparsers.add_parser("insert", help="Replace todoist blocks with matching open tasks")
    insert_parser.add_argument("paths", nargs="+", help="Markdown files or directories")
    insert_parser.add_argument("--config", default=f"./{DEFAULT_CONFIG_PATH}", help="Path to tasklink.json")
    insert_parser.add_argument(
        "--filter",
        default=None,
        help="Todoist filter for blocks without a filter: line (default: task_filter from config)",
    )
    insert_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    status_parser = subparsers.add_parser("status", help="Show tasks waiting for a retry")
    status_parser.add_argument("--config", default=f"./{DEFAULT_CONFIG_PATH}", help="Path to tasklink.json")
    status_parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    return parser


__all__ = ["build_parser"]
