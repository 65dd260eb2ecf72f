"""In-memory store of reconciliation state, keyed by remote task id."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from tasklink.contracts.state import PendingState, ReconciliationState, StateChangeDecision

_LOG = logging.getLogger(__name__)


class StateStore:
    """Sole owner of :class:`ReconciliationState` records.

    One instance lives for the whole process and is passed explicitly to the
    engine, the change detector and the persistence adapter. All mutation
    happens on the event loop thread, so no locking is needed.
    """

    def __init__(self) -> None:
        self._states: dict[str, ReconciliationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._states

    def __iter__(self) -> Iterator[ReconciliationState]:
        return iter(list(self._states.values()))

    def get(self, task_id: str) -> ReconciliationState | None:
        return self._states.get(task_id)

    def observe(self, task_id: str, checkbox_state: bool) -> StateChangeDecision:
        """Record a checkbox value seen in a document and decide whether to sync.

        The first sighting of an id only establishes a baseline. A changed
        value marks the state unsynced and resets its retry count. An
        unchanged value asks for a sync only while the state is still
        pending, which resumes work that failed earlier.
        """
        state = self._states.get(task_id)
        if state is None:
            self._states[task_id] = ReconciliationState(task_id=task_id, checkbox_state=checkbox_state, synced=True)
            _LOG.debug("Tracking task %s (checked=%s)", task_id, checkbox_state)
            return StateChangeDecision.NO_SYNC

        if state.checkbox_state != checkbox_state:
            state.checkbox_state = checkbox_state
            state.synced = False
            state.retry_attempts = 0
            if state.orphaned:
                return StateChangeDecision.NO_SYNC
            _LOG.debug("Task %s changed locally (checked=%s)", task_id, checkbox_state)
            return StateChangeDecision.SYNC

        if state.synced or state.orphaned:
            return StateChangeDecision.NO_SYNC
        return StateChangeDecision.SYNC

    def seed(self, task_id: str, checkbox_state: bool) -> ReconciliationState:
        """Insert or overwrite *task_id* as already synced."""
        state = ReconciliationState(task_id=task_id, checkbox_state=checkbox_state, synced=True)
        self._states[task_id] = state
        return state

    def restore(self, entries: Iterable[PendingState]) -> list[ReconciliationState]:
        """Insert persisted pending entries as unsynced states."""
        restored: list[ReconciliationState] = []
        for entry in entries:
            state = ReconciliationState(
                task_id=entry.task_id,
                checkbox_state=entry.checkbox_state,
                synced=False,
                retry_attempts=entry.retry_attempts,
            )
            self._states[entry.task_id] = state
            restored.append(state)
        if restored:
            _LOG.info("Restored %d pending task(s)", len(restored))
        return restored

    def list_unsynced(self) -> list[ReconciliationState]:
        return [state for state in self._states.values() if not state.synced and not state.orphaned]
