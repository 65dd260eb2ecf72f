"""Provider adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from tasklink.contracts.task import RemoteTask


class Provider(ABC):
    """Remote task service used by the sync engine and change detector.

    Every call is a suspension point. Implementations raise
    :class:`~tasklink.contracts.exceptions.TaskNotFoundError` when a task is
    gone and :class:`~tasklink.contracts.exceptions.ProviderError` for any
    other failure.
    """

    @abstractmethod
    async def __aenter__(self) -> Provider: ...

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...

    @abstractmethod
    async def fetch_task(self, task_id: str) -> RemoteTask: ...

    @abstractmethod
    async def close_task(self, task_id: str) -> None: ...

    @abstractmethod
    async def reopen_task(self, task_id: str) -> None: ...

    @abstractmethod
    async def create_task(self, content: str) -> RemoteTask: ...

    @abstractmethod
    async def fetch_project_name(self, project_id: str) -> str: ...

    @abstractmethod
    async def fetch_tasks_by_filter(self, query: str) -> list[RemoteTask]:
        """Return open tasks matching a filter query such as ``today | overdue``."""
