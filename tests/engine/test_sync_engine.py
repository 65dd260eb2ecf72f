from __future__ import annotations

import asyncio

import pytest

from tasklink.contracts.config import RetryPolicy
from tasklink.contracts.exceptions import ProviderError
from tasklink.contracts.state import ReconciliationState
from tasklink.engine.engine import SyncEngine
from tasklink.engine.store import StateStore
from tests.fakes.notices import RecordingNoticeSink
from tests.fakes.provider import FakeProvider
from tests.fakes.scheduler import ManualScheduler


def make_engine(
    provider: FakeProvider,
    store: StateStore | None = None,
    *,
    retry_policy: RetryPolicy | None = None,
) -> tuple[SyncEngine, ManualScheduler, RecordingNoticeSink]:
    scheduler = ManualScheduler()
    notices = RecordingNoticeSink()
    engine = SyncEngine(
        provider,
        store or StateStore(),
        scheduler=scheduler,
        notices=notices,
        retry_policy=retry_policy,
    )
    return engine, scheduler, notices


def pending_state(store: StateStore, task_id: str, *, was: bool, now: bool) -> ReconciliationState:
    store.observe(task_id, was)
    store.observe(task_id, now)
    state = store.get(task_id)
    assert state is not None
    return state


@pytest.mark.asyncio
async def test_first_observation_makes_no_remote_call() -> None:
    provider = FakeProvider()
    store = StateStore()
    make_engine(provider, store)

    store.observe("123", True)

    state = store.get("123")
    assert state is not None
    assert state.synced is True
    assert provider.fetch_calls == []
    assert provider.mutation_count == 0


@pytest.mark.asyncio
async def test_checking_a_task_closes_it_remotely() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)
    assert (state.synced, state.retry_attempts) == (False, 0)

    await engine.attempt_sync(state)

    assert provider.fetch_calls == ["123"]
    assert provider.close_calls == ["123"]
    assert provider.tasks["123"].completed is True
    assert (state.synced, state.retry_attempts) == (True, 0)
    assert scheduler.pending == []


@pytest.mark.asyncio
async def test_unchecking_a_task_reopens_it_remotely() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=True)
    store = StateStore()
    engine, _, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=True, now=False)

    await engine.attempt_sync(state)

    assert provider.reopen_calls == ["123"]
    assert provider.close_calls == []
    assert provider.tasks["123"].completed is False
    assert state.synced is True


@pytest.mark.asyncio
@pytest.mark.parametrize("checked", [True, False])
async def test_consistent_task_needs_no_mutation(checked: bool) -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=checked)
    store = StateStore()
    engine, _, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=not checked, now=checked)

    await engine.attempt_sync(state)
    await engine.attempt_sync(state)

    assert provider.fetch_calls == ["123", "123"]
    assert provider.mutation_count == 0
    assert (state.synced, state.retry_attempts) == (True, 0)


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff_until_success() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    provider.failures["fetch"] = 3
    store = StateStore()
    engine, scheduler, notices = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    attempts: list[int] = []
    await engine.attempt_sync(state)
    attempts.append(state.retry_attempts)
    for _ in range(3):
        await scheduler.fire("123")
        attempts.append(state.retry_attempts)

    assert attempts == [1, 2, 3, 0]
    assert scheduler.delays == [5.0, 10.0, 20.0]
    assert state.synced is True
    assert provider.close_calls == ["123"]
    assert len(notices.messages) == 3
    assert "attempt 1" in notices.messages[0]
    assert "5s" in notices.messages[0]
    assert "attempt 3" in notices.messages[2]
    assert "20s" in notices.messages[2]


@pytest.mark.asyncio
async def test_failed_mutation_is_retried_and_stays_idempotent() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    provider.failures["close"] = 1
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    await engine.attempt_sync(state)
    assert state.retry_attempts == 1
    assert state.synced is False

    await scheduler.fire("123")

    assert provider.close_calls == ["123", "123"]
    assert state.synced is True


@pytest.mark.asyncio
async def test_unexpected_exceptions_take_the_retry_path() -> None:
    provider = FakeProvider()
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    def explode(task_id: str) -> None:
        raise ConnectionResetError("peer reset")

    provider.on_fetch = explode

    await engine.attempt_sync(state)

    assert state.retry_attempts == 1
    assert scheduler.pending == ["123"]


@pytest.mark.asyncio
async def test_backoff_honours_configured_policy() -> None:
    provider = FakeProvider()
    provider.failures["fetch"] = 3
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store, retry_policy=RetryPolicy(base_delay=1.0, max_delay=3.0))
    state = pending_state(store, "123", was=False, now=True)

    await engine.attempt_sync(state)
    await scheduler.fire("123")
    await scheduler.fire("123")

    assert scheduler.delays == [1.0, 2.0, 3.0]


@pytest.mark.asyncio
async def test_deleted_remote_task_orphans_state_without_retry() -> None:
    provider = FakeProvider()
    store = StateStore()
    engine, scheduler, notices = make_engine(provider, store)
    state = pending_state(store, "gone", was=False, now=True)

    await engine.attempt_sync(state)

    assert state.orphaned is True
    assert state.synced is False
    assert state.retry_attempts == 0
    assert scheduler.history == []
    assert notices.messages == []
    assert store.list_unsynced() == []


@pytest.mark.asyncio
async def test_task_deleted_between_fetch_and_close_is_orphaned() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    async def delete_then_close(task_id: str) -> None:
        provider.tasks.pop(task_id)
        await FakeProvider.close_task(provider, task_id)

    provider.close_task = delete_then_close  # type: ignore[method-assign]

    await engine.attempt_sync(state)

    assert state.orphaned is True
    assert scheduler.history == []


@pytest.mark.asyncio
async def test_stale_retry_is_a_no_op_once_synced() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    provider.failures["fetch"] = 1
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    await engine.attempt_sync(state)
    stale = scheduler.history[-1]
    await engine.attempt_sync(state)
    assert state.synced is True
    fetches = len(provider.fetch_calls)

    await stale.callback()

    assert len(provider.fetch_calls) == fetches
    assert state.synced is True


@pytest.mark.asyncio
async def test_local_change_during_fetch_skips_the_stale_mutation() -> None:
    provider = FakeProvider()
    provider.add_task("123", completed=False)
    store = StateStore()
    engine, _, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    def user_unchecks(task_id: str) -> None:
        provider.on_fetch = None
        store.observe(task_id, False)

    provider.on_fetch = user_unchecks

    await engine.attempt_sync(state)

    assert provider.close_calls == []
    assert state.checkbox_state is False
    assert state.synced is False

    await engine.attempt_sync(state)

    assert provider.mutation_count == 0
    assert state.synced is True


@pytest.mark.asyncio
async def test_failed_stale_attempt_does_not_schedule_retry() -> None:
    provider = FakeProvider()
    provider.failures["fetch"] = 1
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)
    provider.on_fetch = lambda task_id: store.observe(task_id, False)

    await engine.attempt_sync(state)

    assert scheduler.history == []
    assert state.retry_attempts == 0


@pytest.mark.asyncio
async def test_trigger_runs_in_background_and_wait_idle_drains() -> None:
    provider = FakeProvider()
    provider.add_task("1", completed=False)
    provider.add_task("2", completed=True)
    store = StateStore()
    engine, _, _ = make_engine(provider, store)
    first = pending_state(store, "1", was=False, now=True)
    second = pending_state(store, "2", was=True, now=False)

    engine.trigger(first)
    engine.trigger(second)
    await engine.wait_idle()

    assert first.synced is True
    assert second.synced is True
    assert provider.close_calls == ["1"]
    assert provider.reopen_calls == ["2"]


@pytest.mark.asyncio
async def test_close_abandons_scheduled_retries() -> None:
    provider = FakeProvider()
    provider.failures["fetch"] = 1
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)
    await engine.attempt_sync(state)
    assert scheduler.pending == ["123"]

    engine.close()

    assert scheduler.pending == []
    assert store.list_unsynced() == [state]


class GatedCloseProvider(FakeProvider):
    """Holds ``close_task`` in flight until the test releases it."""

    def __init__(self, *, fail: bool = False) -> None:
        super().__init__()
        self.close_started = asyncio.Event()
        self.release = asyncio.Event()
        self.fail_close = fail

    async def close_task(self, task_id: str) -> None:
        self.close_started.set()
        await self.release.wait()
        await super().close_task(task_id)
        if self.fail_close:
            raise ProviderError("response lost after close")


@pytest.mark.asyncio
async def test_concurrent_attempts_converge_when_stale_close_lands_late() -> None:
    provider = GatedCloseProvider()
    provider.add_task("123", completed=False)
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    engine.trigger(state)
    await provider.close_started.wait()
    store.observe("123", False)
    await engine.trigger(state)
    assert state.synced is True

    provider.release.set()
    await engine.wait_idle()

    assert provider.tasks["123"].completed is False
    assert provider.reopen_calls == ["123"]
    assert (state.checkbox_state, state.synced) == (False, True)
    assert scheduler.pending == []


@pytest.mark.asyncio
async def test_stale_close_with_unknown_outcome_is_reconciled() -> None:
    provider = GatedCloseProvider(fail=True)
    provider.add_task("123", completed=False)
    store = StateStore()
    engine, scheduler, _ = make_engine(provider, store)
    state = pending_state(store, "123", was=False, now=True)

    engine.trigger(state)
    await provider.close_started.wait()
    store.observe("123", False)
    await engine.trigger(state)

    provider.release.set()
    await engine.wait_idle()

    assert provider.tasks["123"].completed is False
    assert (state.checkbox_state, state.synced) == (False, True)
    assert scheduler.history == []
