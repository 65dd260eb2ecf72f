"""Deferred retry scheduling."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

_LOG = logging.getLogger(__name__)

RetryCallback = Callable[[], Awaitable[None]]


class RetryScheduler(ABC):
    """Runs a callback once after a delay, one pending timer per key."""

    @abstractmethod
    def schedule(self, key: str, delay: float, callback: RetryCallback) -> None:
        """Schedule *callback* after *delay* seconds, replacing any timer for *key*."""

    @abstractmethod
    def cancel(self, key: str) -> None: ...

    @abstractmethod
    def cancel_all(self) -> None: ...

    @property
    @abstractmethod
    def pending(self) -> list[str]: ...


class AsyncioRetryScheduler(RetryScheduler):
    """Timer-per-key scheduler on top of ``loop.call_later``.

    Cancelled or abandoned timers never fire. Callbacks run as tasks on the
    loop; their exceptions are logged, not raised.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(self, key: str, delay: float, callback: RetryCallback) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self.cancel(key)
        self._timers[key] = loop.call_later(max(0.0, delay), self._fire, key, callback)

    def cancel(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    @property
    def pending(self) -> list[str]:
        return sorted(self._timers)

    def _fire(self, key: str, callback: RetryCallback) -> None:
        self._timers.pop(key, None)
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._run(key, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _run(key: str, callback: RetryCallback) -> None:
        try:
            await callback()
        except Exception:
            _LOG.exception("Scheduled retry failed key=%s", key)
