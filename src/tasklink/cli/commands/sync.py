"""Sync command handlers."""

from __future__ import annotations

import argparse

from tasklink import ShutdownReport, SyncError, TaskLink, load_config
from tasklink.cli.common import plural
from tasklink.cli.notices import RichNoticeSink
from tasklink.documents import DocumentWatcher


def format_sync_summary(report: ShutdownReport, *, documents: int) -> str:
    lines = [
        "",
        "tasklink - pass complete (tracked tasks created, pending retries resumed)",
        "",
        f"  Documents: {documents}",
        f"  Tracked:   {plural(report.tracked, 'task')}",
    ]
    if report.created:
        lines.append(f"  Created:   {len(report.created)} ({', '.join(report.created)})")
    if report.pending:
        lines.append(f"  Pending:   {plural(report.pending, 'task')} will be retried on the next run")
    if not report.persisted:
        lines.append("  Warning:   pending state could not be saved")
    lines.append("")
    lines.append("  Checkbox edits are synced while `tasklink watch` runs.")
    return "\n".join(lines)


async def run_sync(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    watcher = DocumentWatcher(args.paths)
    documents = watcher.poll()
    if not documents:
        raise SyncError(f"no markdown documents found in: {', '.join(args.paths)}")

    app = await TaskLink.from_config(config, notices=RichNoticeSink())
    async with app:
        for document in documents:
            await app.handle_document_changed(document)
        await app.wait_idle()
        report = app.shutdown()

    print(format_sync_summary(report, documents=len(documents)))
    return 0
