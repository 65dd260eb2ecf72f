"""Insert command handler."""

from __future__ import annotations

import argparse

from tasklink import SyncError, TaskLink, load_config
from tasklink.cli.common import plural
from tasklink.cli.notices import RichNoticeSink
from tasklink.documents import DocumentWatcher


async def run_insert(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    documents = DocumentWatcher(args.paths).poll()
    if not documents:
        raise SyncError(f"no markdown documents found in: {', '.join(args.paths)}")

    app = await TaskLink.from_config(config, notices=RichNoticeSink())
    inserted: dict[str, int] = {}
    async with app:
        for document in documents:
            count = await app.insert_tasks(document, query=args.filter)
            if count:
                inserted[document.path] = count
        await app.wait_idle()

    if not inserted:
        print("No todoist blocks were expanded.")
        return 0
    for path, count in inserted.items():
        print(f"{path}: inserted {plural(count, 'task')}")
    return 0
