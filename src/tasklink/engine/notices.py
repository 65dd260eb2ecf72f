"""User-visible notice reporting.

Notices are transient, informational messages (the equivalent of a toast in
an editor). The engine and detector emit them; the CLI renders them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class NoticeSink(ABC):
    """Observer for transient user-visible notices."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """Show *message* to the user without blocking."""
        ...  # pragma: no cover


class NullNoticeSink(NoticeSink):
    """No-op implementation used when nobody is watching."""

    def notify(self, message: str) -> None:
        pass
