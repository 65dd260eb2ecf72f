"""File-backed markdown documents."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

_LOG = logging.getLogger(__name__)


@runtime_checkable
class Document(Protocol):
    """Read/write access to one document's full text."""

    @property
    def path(self) -> str: ...

    def read(self) -> str: ...

    def write(self, text: str) -> None: ...


class MarkdownFile:
    """A markdown file on disk, read and written as UTF-8."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def __repr__(self) -> str:
        return f"MarkdownFile({str(self._path)!r})"

    @property
    def path(self) -> str:
        return str(self._path)

    def read(self) -> str:
        with self._path.open(encoding="utf-8", newline="") as handle:
            return handle.read()

    def write(self, text: str) -> None:
        self._path.write_text(text, encoding="utf-8", newline="")


def replace_line(document: Document, old: str, new: str) -> bool:
    """Replace the first line equal to *old* with *new*.

    Line endings are preserved. Returns False when no line matches, e.g. the
    user edited it while a remote call was in flight.
    """
    text = document.read()
    lines = text.splitlines(keepends=True)
    for index, line in enumerate(lines):
        body = line.rstrip("\r\n")
        if body != old:
            continue
        lines[index] = new + line[len(body) :]
        document.write("".join(lines))
        return True
    _LOG.debug("Line not found in %s: %r", document.path, old)
    return False
