"""Polling change detection for markdown files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from tasklink.documents.markdown import MarkdownFile

_LOG = logging.getLogger(__name__)


class DocumentWatcher:
    """Reports markdown files whose modification time or size changed.

    *paths* may name files or directories; directories are searched for
    ``*.md`` recursively on every poll so new notes are picked up. The first
    poll reports every file.
    """

    def __init__(self, paths: Iterable[str | Path]) -> None:
        self._roots = [Path(path) for path in paths]
        self._seen: dict[Path, tuple[int, int]] = {}

    def files(self) -> list[Path]:
        found: set[Path] = set()
        for root in self._roots:
            if root.is_dir():
                found.update(path for path in root.rglob("*.md") if path.is_file())
            elif root.is_file():
                found.add(root)
            else:
                _LOG.debug("Skipping missing path %s", root)
        return sorted(found)

    def poll(self) -> list[MarkdownFile]:
        changed: list[MarkdownFile] = []
        current: dict[Path, tuple[int, int]] = {}
        for path in self.files():
            try:
                stat = path.stat()
            except OSError:
                continue
            signature = (stat.st_mtime_ns, stat.st_size)
            current[path] = signature
            if self._seen.get(path) != signature:
                changed.append(MarkdownFile(path))
        self._seen = current
        return changed
