"""Change detection: turns changed checklist lines into store and engine work."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tasklink.contracts.config import RetryPolicy
from tasklink.contracts.exceptions import ProviderError
from tasklink.contracts.provider import Provider
from tasklink.contracts.state import StateChangeDecision, compute_next_retry_delay
from tasklink.contracts.task import RemoteTask
from tasklink.detector.parser import (
    ExistingTask,
    NewTaskRequest,
    build_tags,
    iter_checklist_lines,
    parse_checklist_line,
    render_created_line,
)
from tasklink.documents.markdown import Document, replace_line
from tasklink.engine.engine import SyncEngine
from tasklink.engine.notices import NoticeSink, NullNoticeSink
from tasklink.engine.scheduler import RetryScheduler
from tasklink.engine.store import StateStore

_LOG = logging.getLogger(__name__)


async def fetch_project_name_or_none(provider: Provider, task: RemoteTask) -> str | None:
    """Project name for tag derivation; a failed lookup falls back to ``None``."""
    if not task.project_id:
        return None
    try:
        return await provider.fetch_project_name(task.project_id)
    except (ProviderError, OSError) as exc:
        _LOG.warning("Could not fetch project %s for task %s: %s", task.project_id, task.id, exc)
        return None


class ChangeDetector:
    """Feeds checklist lines from changed documents into the sync engine.

    Lines with an id marker are observed in the store and synced when the
    store says so. Lines with the tracked tag and no id become new remote
    tasks; the line is rewritten with derived tags and the new id.
    """

    def __init__(
        self,
        store: StateStore,
        engine: SyncEngine,
        provider: Provider,
        *,
        tracked_tag: str = "#tracked",
        tag_prefix: str = "#todoist",
        retry_policy: RetryPolicy | None = None,
        scheduler: RetryScheduler | None = None,
        notices: NoticeSink | None = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._provider = provider
        self._tracked_tag = tracked_tag
        self._tag_prefix = tag_prefix
        self._retry_policy = retry_policy or RetryPolicy()
        self._scheduler = scheduler or engine.scheduler
        self._notices: NoticeSink = notices or NullNoticeSink()
        self._creating: set[str] = set()
        self._create_attempts: dict[str, int] = {}
        self._unlinked: dict[str, RemoteTask] = {}
        self.created: list[RemoteTask] = []

    async def process_document(self, document: Document) -> None:
        lines = [line for _, line in iter_checklist_lines(document.read())]
        await self.process_lines(document, lines)

    async def process_lines(self, document: Document, lines: Iterable[str]) -> None:
        for line in lines:
            parsed = parse_checklist_line(line, tracked_tag=self._tracked_tag)
            if isinstance(parsed, ExistingTask):
                self._observe(parsed.task_id, parsed.checked)
            elif isinstance(parsed, NewTaskRequest):
                await self._create(document, line, parsed)

    def _observe(self, task_id: str, checked: bool) -> None:
        decision = self._store.observe(task_id, checked)
        if decision is StateChangeDecision.SYNC:
            state = self._store.get(task_id)
            if state is not None:
                self._engine.trigger(state)

    async def _create(self, document: Document, line: str, request: NewTaskRequest) -> None:
        key = self._creation_key(document, request)
        if key in self._creating:
            _LOG.debug("Creation already in flight for %r", request.content)
            return
        self._creating.add(key)
        try:
            await self._create_and_link(document, line, request, key)
        finally:
            self._creating.discard(key)

    async def _create_and_link(self, document: Document, line: str, request: NewTaskRequest, key: str) -> None:
        created = self._unlinked.get(key)
        if created is None:
            try:
                created = await self._provider.create_task(request.content)
            except (ProviderError, OSError) as exc:
                delay = self._schedule_create_retry(document, key, request)
                _LOG.warning("Creating %r failed: %s; retrying in %.0fs", request.content, exc, delay)
                self._notices.notify(
                    f"Could not create Todoist task {request.content!r} "
                    f"(attempt {self._create_attempts[key]}), retrying in {delay:.0f}s"
                )
                return
            self._create_attempts.pop(key, None)
            self._scheduler.cancel(key)
            self.created.append(created)
            _LOG.info("Created task %s for %r", created.id, request.content)
            # A new remote task starts open; an already checked line then
            # diverges and is closed through the normal sync path.
            self._store.seed(created.id, False)

        project_name = await fetch_project_name_or_none(self._provider, created)
        tags = build_tags(project_name, created.labels, tag_prefix=self._tag_prefix)
        new_line = render_created_line(line, tracked_tag=self._tracked_tag, tags=tags, task_id=created.id)
        try:
            replaced = replace_line(document, line, new_line)
        except OSError as exc:
            self._unlinked[key] = created
            delay = self._schedule_create_retry(document, key, request)
            _LOG.warning(
                "Could not write id of task %s to %s: %s; retrying in %.0fs", created.id, document.path, exc, delay
            )
            self._notices.notify(
                f"Created Todoist task {created.id}, but could not write its id to {document.path}; "
                f"retrying in {delay:.0f}s"
            )
            return

        self._unlinked.pop(key, None)
        self._create_attempts.pop(key, None)
        self._scheduler.cancel(key)
        if not replaced:
            _LOG.warning("Created task %s but its line changed in %s; id not written", created.id, document.path)
            self._notify_unlinked(created)
        if request.checked:
            self._observe(created.id, True)

    def _schedule_create_retry(self, document: Document, key: str, request: NewTaskRequest) -> float:
        attempts = self._create_attempts.get(key, 0)
        delay = compute_next_retry_delay(
            attempts,
            base=self._retry_policy.base_delay,
            cap=self._retry_policy.max_delay,
        )
        self._create_attempts[key] = attempts + 1

        async def retry() -> None:
            await self._retry_create(document, key, request)

        self._scheduler.schedule(key, delay, retry)
        return delay

    async def _retry_create(self, document: Document, key: str, request: NewTaskRequest) -> None:
        for _, line in iter_checklist_lines(document.read()):
            parsed = parse_checklist_line(line, tracked_tag=self._tracked_tag)
            if isinstance(parsed, NewTaskRequest) and parsed.content == request.content:
                await self._create(document, line, parsed)
                return
        _LOG.debug("Tracked line %r is gone; dropping creation retry", request.content)
        self._create_attempts.pop(key, None)
        created = self._unlinked.pop(key, None)
        if created is not None:
            self._notify_unlinked(created)

    def _notify_unlinked(self, created: RemoteTask) -> None:
        self._notices.notify(f"Created Todoist task {created.id}, but the line was edited before it could be linked")

    @staticmethod
    def _creation_key(document: Document, request: NewTaskRequest) -> str:
        return f"create:{document.path}:{request.content}"
