"""Public API surface for tasklink."""

__version__ = "0.3.0"

from tasklink.app import ShutdownReport, TaskLink
from tasklink.config import load_config, scaffold_config, write_config
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
from tasklink.contracts.state import PendingState, ReconciliationState, StateChangeDecision, compute_next_retry_delay
from tasklink.contracts.task import RemoteTask, TaskDue
from tasklink.detector import (
    ChangeDetector,
    ExistingTask,
    NewTaskRequest,
    TaskBlockExpander,
    Unmanaged,
    parse_checklist_line,
)
from tasklink.documents import Document, DocumentWatcher, MarkdownFile
from tasklink.engine import NoticeSink, StateStore, SyncEngine
from tasklink.persistence import PluginData, PluginDataStore
from tasklink.providers import create_provider

__all__ = [
    "AuthenticationError",
    "ChangeDetector",
    "ConfigError",
    "Document",
    "DocumentWatcher",
    "ExistingTask",
    "MarkdownFile",
    "NewTaskRequest",
    "NoticeSink",
    "PendingState",
    "PersistenceError",
    "PluginData",
    "PluginDataStore",
    "Provider",
    "ProviderError",
    "ReconciliationState",
    "RemoteTask",
    "RetryPolicy",
    "ShutdownReport",
    "StateChangeDecision",
    "StateStore",
    "SyncEngine",
    "SyncError",
    "TaskBlockExpander",
    "TaskDue",
    "TaskLink",
    "TaskLinkConfig",
    "TaskLinkError",
    "TaskNotFoundError",
    "Unmanaged",
    "__version__",
    "compute_next_retry_delay",
    "create_provider",
    "load_config",
    "parse_checklist_line",
    "scaffold_config",
    "write_config",
]
