"""Public contracts for tasklink."""

from tasklink.contracts.config import RetryPolicy, TaskLinkConfig
from tasklink.contracts.exceptions import (
    AuthenticationError,
    ConfigError,
    PersistenceError,
    ProviderError,
    SyncError,
    TaskLinkError,
    TaskNotFoundError,
)
from tasklink.contracts.provider import Provider
from tasklink.contracts.state import (
    PendingState,
    ReconciliationState,
    StateChangeDecision,
    compute_next_retry_delay,
)
from tasklink.contracts.task import RemoteTask

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "PendingState",
    "PersistenceError",
    "Provider",
    "ProviderError",
    "ReconciliationState",
    "RemoteTask",
    "RetryPolicy",
    "StateChangeDecision",
    "SyncError",
    "TaskLinkConfig",
    "TaskLinkError",
    "TaskNotFoundError",
    "compute_next_retry_delay",
]
