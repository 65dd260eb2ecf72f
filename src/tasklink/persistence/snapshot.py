"""Persistence of unsynced reconciliation state across restarts."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from tasklink.contracts.exceptions import PersistenceError
from tasklink.contracts.state import PendingState, ReconciliationState
from tasklink.engine.engine import SyncEngine
from tasklink.engine.store import StateStore

_LOG = logging.getLogger(__name__)

DATA_VERSION = 1


class PluginData(BaseModel):
    """On-disk plugin data: the pending retry list."""

    version: int = DATA_VERSION
    pending: list[PendingState] = Field(default_factory=list)


class PluginDataStore:
    """JSON key-value file holding :class:`PluginData`.

    Reads and writes are synchronous so shutdown can persist without an
    event loop.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> PluginData:
        if not self._path.exists():
            return PluginData()
        try:
            payload: Any = json.loads(self._path.read_text(encoding="utf-8"))
            return PluginData.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise PersistenceError(f"invalid plugin data file: {self._path}") from exc

    def save(self, data: PluginData) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data.model_dump_json(indent=2, by_alias=True))
            os.replace(tmp_name, self._path)
        except OSError as exc:
            raise PersistenceError(f"failed to persist plugin data: {self._path}") from exc


def snapshot(store: StateStore) -> list[PendingState]:
    """Pending records for every unsynced, non-orphaned state."""
    return [PendingState.from_state(state) for state in store.list_unsynced()]


def restore(pending: Iterable[PendingState], *, store: StateStore, engine: SyncEngine) -> list[ReconciliationState]:
    """Re-insert persisted states and start reconciling them immediately.

    Must run inside the event loop, before any document is processed.
    """
    restored = store.restore(pending)
    for state in restored:
        engine.trigger(state)
    return restored


def save_snapshot(store: StateStore, data_store: PluginDataStore) -> int:
    """Synchronously write the pending list; returns the number of records."""
    pending = snapshot(store)
    data_store.save(PluginData(pending=pending))
    _LOG.debug("Persisted %d pending task(s) to %s", len(pending), data_store.path)
    return len(pending)
