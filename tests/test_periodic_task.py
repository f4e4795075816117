import asyncio
from unittest.mock import AsyncMock

import pytest

from chatwarden.scheduler.periodic_task import PeriodicTask


@pytest.mark.asyncio
async def test_run_once_counts_ticks():
    tick = AsyncMock()
    task = PeriodicTask("TEST", tick, lambda: 60)

    assert await task.run_once() is True
    assert task.ticks == 1
    assert task.failures == 0
    tick.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_once_survives_failing_tick():
    task = PeriodicTask("TEST", AsyncMock(side_effect=RuntimeError("boom")), lambda: 60)

    assert await task.run_once() is False
    assert await task.run_once() is False
    assert task.failures == 2


@pytest.mark.asyncio
async def test_loop_keeps_running_after_failures_until_shutdown():
    calls = []

    async def tick():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("first tick fails")

    task = PeriodicTask("TEST", tick, lambda: 0.01)
    task.start()
    assert task.running is True

    for _ in range(100):
        if len(calls) >= 3:
            break
        await asyncio.sleep(0.01)
    await task.shutdown()

    assert len(calls) >= 3
    assert task.failures == 1
    assert task.running is False


@pytest.mark.asyncio
async def test_start_twice_keeps_single_task():
    task = PeriodicTask("TEST", AsyncMock(), lambda: 60)

    task.start()
    first = task._task
    task.start()

    assert task._task is first
    await task.shutdown()


@pytest.mark.asyncio
async def test_shutdown_without_start_is_safe():
    task = PeriodicTask("TEST", AsyncMock(), lambda: 60)

    await task.shutdown()

    assert task.running is False
    assert task.name == "TEST"
