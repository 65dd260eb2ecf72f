from __future__ import annotations

import asyncio

import pytest

from tasklink.engine.scheduler import AsyncioRetryScheduler


@pytest.mark.asyncio
async def test_callback_runs_after_delay() -> None:
    scheduler = AsyncioRetryScheduler()
    fired = asyncio.Event()

    async def callback() -> None:
        fired.set()

    scheduler.schedule("123", 0.01, callback)
    assert scheduler.pending == ["123"]

    await asyncio.wait_for(fired.wait(), timeout=1.0)
    assert scheduler.pending == []


@pytest.mark.asyncio
async def test_rescheduling_replaces_existing_timer() -> None:
    scheduler = AsyncioRetryScheduler()
    calls: list[str] = []
    done = asyncio.Event()

    async def first() -> None:
        calls.append("first")

    async def second() -> None:
        calls.append("second")
        done.set()

    scheduler.schedule("123", 0.01, first)
    scheduler.schedule("123", 0.02, second)

    await asyncio.wait_for(done.wait(), timeout=1.0)
    await asyncio.sleep(0.03)
    assert calls == ["second"]


@pytest.mark.asyncio
async def test_cancelled_timers_never_fire() -> None:
    scheduler = AsyncioRetryScheduler()
    calls: list[str] = []

    async def callback() -> None:
        calls.append("fired")

    scheduler.schedule("a", 0.01, callback)
    scheduler.schedule("b", 0.01, callback)
    scheduler.cancel("a")
    scheduler.cancel_all()
    scheduler.cancel("missing")

    await asyncio.sleep(0.05)
    assert calls == []
    assert scheduler.pending == []


@pytest.mark.asyncio
async def test_callback_errors_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    scheduler = AsyncioRetryScheduler()
    done = asyncio.Event()

    async def broken() -> None:
        done.set()
        raise RuntimeError("boom")

    scheduler.schedule("123", 0.0, broken)
    await asyncio.wait_for(done.wait(), timeout=1.0)
    await asyncio.sleep(0)

    assert "Scheduled retry failed key=123" in caplog.text
