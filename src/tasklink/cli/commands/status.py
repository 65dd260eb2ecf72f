"""Status command handlers."""

from __future__ import annotations

import argparse

from rich.console import Console
from rich.table import Table

from tasklink import RetryPolicy, load_config
from tasklink.contracts.state import compute_next_retry_delay
from tasklink.persistence import PluginData, PluginDataStore


def build_status_table(data: PluginData, retry: RetryPolicy | None = None) -> Table:
    retry = retry or RetryPolicy()
    table = Table(title="Pending Todoist sync")
    table.add_column("Task ID", style="cyan")
    table.add_column("Checked")
    table.add_column("Attempts", justify="right")
    table.add_column("Next delay", justify="right")
    for entry in data.pending:
        delay = compute_next_retry_delay(entry.retry_attempts, base=retry.base_delay, cap=retry.max_delay)
        table.add_row(
            entry.task_id,
            "yes" if entry.checkbox_state else "no",
            str(entry.retry_attempts),
            f"{delay:.0f}s",
        )
    return table


def run_status(args: argparse.Namespace, *, console: Console | None = None) -> int:
    config = load_config(args.config)
    data = PluginDataStore(config.data_path).load()
    console = console or Console()
    if not data.pending:
        console.print("Nothing pending; every tracked task is in sync.")
        return 0
    console.print(build_status_table(data, config.retry))
    return 0
