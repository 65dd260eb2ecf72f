"""Watch command handlers."""

from __future__ import annotations

import argparse
import asyncio
import logging

from tasklink import ShutdownReport, TaskLink, load_config
from tasklink.cli.common import plural
from tasklink.cli.notices import RichNoticeSink
from tasklink.documents import DocumentWatcher

_LOG = logging.getLogger(__name__)


async def run_watch(args: argparse.Namespace, *, stop: asyncio.Event | None = None) -> ShutdownReport:
    """Poll documents until *stop* is set or the run is cancelled (Ctrl-C)."""
    config = load_config(args.config)
    interval = args.interval or config.poll_interval
    watcher = DocumentWatcher(args.paths)
    stop = stop or asyncio.Event()

    app = await TaskLink.from_config(config, notices=RichNoticeSink())
    async with app:
        print(f"Watching {', '.join(args.paths)} (every {interval:g}s, Ctrl-C to stop)")
        while not stop.is_set():
            for document in watcher.poll():
                try:
                    await app.handle_document_changed(document)
                except OSError as exc:
                    _LOG.warning("Could not process %s: %s", document.path, exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                pass
        report = app.shutdown()

    print(f"Stopped. {plural(report.pending, 'task')} pending.")
    return report
