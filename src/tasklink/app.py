"""Composition root: wires store, engine, detector and persistence."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import TracebackType

from tasklink.auth import create_token_resolver
from tasklink.contracts.config import TaskLinkConfig
from tasklink.contracts.exceptions import ConfigError, PersistenceError
from tasklink.contracts.provider import Provider
from tasklink.contracts.state import ReconciliationState
from tasklink.detector.detector import ChangeDetector
from tasklink.detector.inserter import TaskBlockExpander
from tasklink.documents.markdown import Document
from tasklink.engine.engine import SyncEngine
from tasklink.engine.notices import NoticeSink, NullNoticeSink
from tasklink.engine.scheduler import AsyncioRetryScheduler, RetryScheduler
from tasklink.engine.store import StateStore
from tasklink.persistence.snapshot import PluginDataStore, restore, save_snapshot
from tasklink.providers.factory import create_provider

_LOG = logging.getLogger(__name__)


@dataclass
class ShutdownReport:
    pending: int = 0
    tracked: int = 0
    created: list[str] = field(default_factory=list)
    persisted: bool = True


class TaskLink:
    """Long-lived sync session for one vault.

    Usage::

        async with await TaskLink.from_config(config) as app:
            await app.handle_document_changed(MarkdownFile("notes.md"))
    """

    def __init__(
        self,
        config: TaskLinkConfig,
        *,
        provider: Provider,
        data_store: PluginDataStore | None = None,
        scheduler: RetryScheduler | None = None,
        notices: NoticeSink | None = None,
    ) -> None:
        self._config = config
        self._provider = provider
        self._data_store = data_store or PluginDataStore(config.data_path)
        self._notices: NoticeSink = notices or NullNoticeSink()
        self.store = StateStore()
        self.engine = SyncEngine(
            provider,
            self.store,
            scheduler=scheduler or AsyncioRetryScheduler(),
            notices=self._notices,
            retry_policy=config.retry,
        )
        self.detector = ChangeDetector(
            self.store,
            self.engine,
            provider,
            tracked_tag=config.tracked_tag,
            tag_prefix=config.tag_prefix,
            retry_policy=config.retry,
            notices=self._notices,
        )
        self.expander = TaskBlockExpander(
            provider,
            tag_prefix=config.tag_prefix,
            default_query=config.task_filter,
            notices=self._notices,
        )
        self._started = False
        self._report: ShutdownReport | None = None

    @classmethod
    async def from_config(
        cls,
        config: TaskLinkConfig,
        *,
        notices: NoticeSink | None = None,
    ) -> TaskLink:
        token = await create_token_resolver(config).resolve()
        try:
            provider = create_provider(
                config.provider,
                token=token,
                api_url=config.api_url,
                timeout=config.request_timeout,
                max_retries=config.max_transport_retries,
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        return cls(config, provider=provider, notices=notices)

    @property
    def config(self) -> TaskLinkConfig:
        return self._config

    async def __aenter__(self) -> TaskLink:
        await self._provider.__aenter__()
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            self.shutdown()
        finally:
            await self._provider.__aexit__(exc_type, exc_val, exc_tb)

    async def start(self) -> list[ReconciliationState]:
        """Restore pending work from the last run and start reconciling it.

        Runs before any document is processed so outstanding divergences do
        not wait for the next edit.
        """
        if self._started:
            return []
        self._started = True
        data = self._data_store.load()
        return restore(data.pending, store=self.store, engine=self.engine)

    async def handle_document_changed(self, document: Document, lines: Iterable[str] | None = None) -> None:
        if lines is None:
            await self.detector.process_document(document)
        else:
            await self.detector.process_lines(document, lines)

    async def insert_tasks(self, document: Document, *, query: str | None = None) -> int:
        """Expand task blocks in *document*, then pick the new lines up as baselines."""
        inserted = await self.expander.expand(document, query=query)
        await self.detector.process_document(document)
        return inserted

    async def wait_idle(self) -> None:
        await self.engine.wait_idle()

    def shutdown(self) -> ShutdownReport:
        """Persist unsynced state and abandon timers. Never awaits network work."""
        if self._report is not None:
            return self._report
        self.engine.close()
        report = ShutdownReport(
            tracked=len(self.store),
            created=[task.id for task in self.detector.created],
        )
        try:
            report.pending = save_snapshot(self.store, self._data_store)
        except PersistenceError as exc:
            # Nothing left to recover with at shutdown.
            _LOG.error("%s", exc)
            report.persisted = False
            report.pending = len(self.store.list_unsynced())
        self._report = report
        return report
