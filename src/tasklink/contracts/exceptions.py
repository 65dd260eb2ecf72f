"""Exception hierarchy for tasklink."""

from __future__ import annotations


class TaskLinkError(Exception):
    """Base exception for all tasklink errors."""


class ConfigError(TaskLinkError):
    """Configuration loading or validation failure."""


class PersistenceError(TaskLinkError):
    """Plugin data could not be read or written."""


class ProviderError(TaskLinkError):
    """Base remote task service failure."""


class AuthenticationError(ProviderError):
    """Authentication/authorization failure."""


class TaskNotFoundError(ProviderError):
    """The remote task no longer exists."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class SyncError(TaskLinkError):
    """Engine-level synchronization failure."""
