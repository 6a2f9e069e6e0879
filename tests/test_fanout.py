"""Tests for roundtable/fanout.py."""

import asyncio

import pytest

from roundtable.errors import DebateAborted
from roundtable.fanout import fan_out


async def test_results_follow_member_order_not_completion_order():
    finished: list[str] = []

    async def work(member: tuple[str, float]) -> str:
        name, delay = member
        await asyncio.sleep(delay)
        finished.append(name)
        return name

    members = [("slow", 0.05), ("medium", 0.02), ("fast", 0.0)]
    results = await fan_out(members, work, asyncio.Event())

    assert finished == ["fast", "medium", "slow"]
    assert results == ["slow", "medium", "fast"]


async def test_none_results_are_left_out():
    async def work(n: int) -> int | None:
        return None if n % 2 else n

    assert await fan_out([0, 1, 2, 3], work, asyncio.Event()) == [0, 2]


async def test_empty_roster():
    async def work(n: int) -> int:
        return n

    assert await fan_out([], work, asyncio.Event()) == []


async def test_tasks_run_concurrently():
    gate = asyncio.Event()
    arrived = 0

    async def work(n: int) -> int:
        nonlocal arrived
        arrived += 1
        if arrived == 3:
            gate.set()
        await gate.wait()
        return n

    results = await asyncio.wait_for(fan_out([1, 2, 3], work, asyncio.Event()), timeout=1)
    assert results == [1, 2, 3]


async def test_already_cancelled_raises_without_starting():
    started = False

    async def work(n: int) -> int:
        nonlocal started
        started = True
        return n

    cancel = asyncio.Event()
    cancel.set()
    with pytest.raises(DebateAborted):
        await fan_out([1], work, cancel)
    assert started is False


async def test_cancel_mid_flight_cancels_pending_tasks():
    cancel = asyncio.Event()
    cancelled: list[int] = []

    async def work(n: int) -> int:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(n)
            raise
        return n

    async def stop_soon() -> None:
        await asyncio.sleep(0.01)
        cancel.set()

    stopper = asyncio.create_task(stop_soon())
    with pytest.raises(DebateAborted):
        await fan_out([1, 2], work, cancel)
    await stopper
    assert sorted(cancelled) == [1, 2]


async def test_unexpected_exception_propagates_and_cancels_others():
    cancelled = False

    async def work(n: int) -> int:
        nonlocal cancelled
        if n == 1:
            raise ValueError("bad member")
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled = True
            raise
        return n

    with pytest.raises(ValueError, match="bad member"):
        await fan_out([1, 2], work, asyncio.Event())
    assert cancelled is True
