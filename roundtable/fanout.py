"""Parallel fan-out/join over a roster with debate-scoped cancellation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from roundtable.errors import DebateAborted

logger = logging.getLogger(__name__)

M = TypeVar("M")
R = TypeVar("R")


async def fan_out(
    members: Sequence[M],
    work: Callable[[M], Awaitable[R | None]],
    cancel_event: asyncio.Event,
) -> list[R]:
    """Run ``work`` for every member concurrently and join.

    Each task writes only its own slot, so results come back in roster
    order whatever order the tasks finish in. Members whose work returns
    None are left out.

    Raises:
        DebateAborted: If ``cancel_event`` is set before every task settles.
            All in-flight tasks are cancelled first.
        Exception: The first unexpected exception raised by a task; the
            remaining tasks are cancelled.
    """
    if cancel_event.is_set():
        raise DebateAborted("Debate aborted")

    slots: list[R | None] = [None] * len(members)

    async def _fill(index: int, member: M) -> None:
        slots[index] = await work(member)

    tasks = [asyncio.create_task(_fill(i, m)) for i, m in enumerate(members)]
    stop = asyncio.create_task(cancel_event.wait())
    try:
        pending: set[asyncio.Task] = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending | {stop}, return_when=asyncio.FIRST_COMPLETED)
            pending.discard(stop)
            if cancel_event.is_set():
                logger.info("Cancelling %d in-flight task(s)", len(pending))
                raise DebateAborted("Debate aborted")
            for task in done:
                if task is not stop and not task.cancelled() and task.exception() is not None:
                    raise task.exception()
    finally:
        stop.cancel()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, stop, return_exceptions=True)

    return [result for result in slots if result is not None]
