"""Rich-based notice display."""

from __future__ import annotations

from rich.console import Console

from tasklink.engine.notices import NoticeSink


class RichNoticeSink(NoticeSink):
    """Prints notices to stderr, styled, without interrupting the run."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def notify(self, message: str) -> None:
        self._console.print(f"[yellow]![/yellow] {message}", highlight=False)
