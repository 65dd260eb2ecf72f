"""Reconciliation engine: drives unsynced states toward the remote service."""

from __future__ import annotations

import asyncio
import logging

from tasklink.contracts.config import RetryPolicy
from tasklink.contracts.exceptions import TaskNotFoundError
from tasklink.contracts.provider import Provider
from tasklink.contracts.state import ReconciliationState
from tasklink.engine.notices import NoticeSink, NullNoticeSink
from tasklink.engine.scheduler import AsyncioRetryScheduler, RetryScheduler
from tasklink.engine.store import StateStore

_LOG = logging.getLogger(__name__)


class SyncEngine:
    """Fetch-then-decide-then-act reconciliation for one task at a time.

    A remote mutation is only issued when the fetched remote state disagrees
    with the local checkbox, so re-running :meth:`attempt_sync` on a
    consistent task costs one read and no writes.
    """

    def __init__(
        self,
        provider: Provider,
        store: StateStore,
        *,
        scheduler: RetryScheduler | None = None,
        notices: NoticeSink | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._scheduler: RetryScheduler = scheduler or AsyncioRetryScheduler()
        self._notices: NoticeSink = notices or NullNoticeSink()
        self._retry_policy = retry_policy or RetryPolicy()
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def scheduler(self) -> RetryScheduler:
        return self._scheduler

    async def attempt_sync(self, state: ReconciliationState) -> None:
        """Make the remote completion status match ``state.checkbox_state``.

        Never raises for remote failures: a vanished task orphans the state,
        anything else schedules a retry with exponential backoff.
        """
        if state.orphaned:
            return
        desired = state.checkbox_state
        mutated = False

        try:
            remote = await self._provider.fetch_task(state.task_id)
            if state.checkbox_state != desired:
                # A newer local change started its own attempt.
                _LOG.debug("Task %s changed while fetching; skipping stale attempt", state.task_id)
                return
            if desired and not remote.completed:
                _LOG.info("Closing task %s", state.task_id)
                mutated = True
                await self._provider.close_task(state.task_id)
            elif not desired and remote.completed:
                _LOG.info("Reopening task %s", state.task_id)
                mutated = True
                await self._provider.reopen_task(state.task_id)
            else:
                _LOG.debug("Task %s already consistent (completed=%s)", state.task_id, remote.completed)
        except TaskNotFoundError:
            _LOG.info("Task %s no longer exists remotely; dropping it", state.task_id)
            state.orphaned = True
            self._scheduler.cancel(state.task_id)
            return
        except Exception as exc:
            if state.checkbox_state != desired:
                if mutated:
                    self._resync_after_stale_mutation(state)
                else:
                    _LOG.debug("Discarding failed stale attempt for task %s: %s", state.task_id, exc)
                return
            self._schedule_retry(state, exc)
            return

        if state.checkbox_state != desired:
            if mutated:
                self._resync_after_stale_mutation(state)
            return
        state.mark_synced()
        self._scheduler.cancel(state.task_id)

    def trigger(self, state: ReconciliationState) -> asyncio.Task[None]:
        """Start :meth:`attempt_sync` in the background."""
        task = asyncio.get_running_loop().create_task(self._run_attempt(state))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every in-flight attempt. Scheduled retries are not awaited."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def close(self) -> None:
        """Abandon scheduled retries; their state survives via persistence."""
        pending = self._scheduler.pending
        self._scheduler.cancel_all()
        if pending:
            _LOG.debug("Abandoned %d scheduled retr(ies)", len(pending))

    async def _run_attempt(self, state: ReconciliationState) -> None:
        try:
            await self.attempt_sync(state)
        except Exception:  # pragma: no cover - attempt_sync handles remote failures
            _LOG.exception("Unexpected failure syncing task %s", state.task_id)

    def _resync_after_stale_mutation(self, state: ReconciliationState) -> None:
        # The remote may now hold the old value even if a newer attempt
        # already finished, so the state must be reconciled again.
        _LOG.debug("Task %s changed while a mutation was in flight; syncing again", state.task_id)
        state.synced = False
        self.trigger(state)

    def _schedule_retry(self, state: ReconciliationState, error: BaseException) -> None:
        delay = state.next_retry_delay(base=self._retry_policy.base_delay, cap=self._retry_policy.max_delay)
        state.synced = False
        state.retry_attempts += 1
        _LOG.warning(
            "Sync failed for task %s (attempt %d): %s; retrying in %.0fs",
            state.task_id,
            state.retry_attempts,
            error,
            delay,
        )
        self._notices.notify(
            f"Todoist sync failed for task {state.task_id} (attempt {state.retry_attempts}), retrying in {delay:.0f}s"
        )

        async def retry() -> None:
            current = self._store.get(state.task_id) or state
            if current.synced or current.orphaned:
                return
            await self.attempt_sync(current)

        self._scheduler.schedule(state.task_id, delay, retry)
