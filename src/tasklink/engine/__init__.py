"""Engine module exports."""

from tasklink.engine.engine import SyncEngine
from tasklink.engine.notices import NoticeSink, NullNoticeSink
from tasklink.engine.scheduler import AsyncioRetryScheduler, RetryScheduler
from tasklink.engine.store import StateStore

__all__ = [
    "AsyncioRetryScheduler",
    "NoticeSink",
    "NullNoticeSink",
    "RetryScheduler",
    "StateStore",
    "SyncEngine",
]
