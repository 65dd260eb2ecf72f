from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasklink.contracts.exceptions import PersistenceError
from tasklink.contracts.state import PendingState
from tasklink.engine.engine import SyncEngine
from tasklink.engine.store import StateStore
from tasklink.persistence.snapshot import PluginData, PluginDataStore, restore, save_snapshot, snapshot
from tests.fakes.provider import FakeProvider
from tests.fakes.scheduler import ManualScheduler


def make_pending_store() -> StateStore:
    store = StateStore()
    store.observe("synced", True)
    store.observe("pending", False)
    store.observe("pending", True)
    store.observe("orphan", False)
    store.observe("orphan", True)
    orphan = store.get("orphan")
    assert orphan is not None
    orphan.orphaned = True
    pending = store.get("pending")
    assert pending is not None
    pending.retry_attempts = 2
    return store


def test_snapshot_lists_only_unsynced_live_states() -> None:
    records = snapshot(make_pending_store())

    assert records == [PendingState(task_id="pending", checkbox_state=True, retry_attempts=2)]


def test_load_missing_file_returns_empty_data(tmp_path: Path) -> None:
    data = PluginDataStore(tmp_path / "data.json").load()

    assert data.pending == []
    assert data.version == 1


def test_save_writes_camel_case_records(tmp_path: Path) -> None:
    data_store = PluginDataStore(tmp_path / "nested" / "data.json")

    count = save_snapshot(make_pending_store(), data_store)

    assert count == 1
    payload = json.loads(data_store.path.read_text(encoding="utf-8"))
    assert payload == {
        "version": 1,
        "pending": [{"taskId": "pending", "checkboxState": True, "retryAttempts": 2}],
    }
    assert [path.name for path in data_store.path.parent.iterdir()] == ["data.json"]


def test_corrupt_file_raises_persistence_error(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError, match="invalid plugin data"):
        PluginDataStore(path).load()


def test_save_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(PersistenceError, match="failed to persist"):
        PluginDataStore(blocker / "data.json").save(PluginData())


@pytest.mark.asyncio
async def test_restore_reinserts_and_retries_each_record(tmp_path: Path) -> None:
    data_store = PluginDataStore(tmp_path / "data.json")
    save_snapshot(make_pending_store(), data_store)

    provider = FakeProvider()
    provider.add_task("pending", completed=False)
    store = StateStore()
    engine = SyncEngine(provider, store, scheduler=ManualScheduler())

    restored = restore(data_store.load().pending, store=store, engine=engine)
    await engine.wait_idle()

    assert [state.task_id for state in restored] == ["pending"]
    state = store.get("pending")
    assert state is not None
    assert state.synced is True
    assert state.retry_attempts == 0
    assert provider.close_calls == ["pending"]


@pytest.mark.asyncio
async def test_restore_of_snapshot_reproduces_unsynced_set() -> None:
    original = make_pending_store()
    provider = FakeProvider()
    provider.failures["fetch"] = 1
    store = StateStore()
    scheduler = ManualScheduler()
    engine = SyncEngine(provider, store, scheduler=scheduler)

    restore(snapshot(original), store=store, engine=engine)
    await engine.wait_idle()

    assert snapshot(store) == [PendingState(task_id="pending", checkbox_state=True, retry_attempts=3)]
    assert scheduler.delays == [20.0]
