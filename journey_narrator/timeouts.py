"""Deadline guard for remote generation steps."""

import asyncio

from journey_narrator.errors import StepTimeoutError


def _expire(deadline: asyncio.Future) -> None:
    if not deadline.done():
        deadline.set_result(None)


def _consume_result(task: asyncio.Future) -> None:
    # The caller may have stopped waiting; retrieve the outcome so asyncio
    # doesn't report it as never retrieved.
    if not task.cancelled():
        task.exception()


async def with_timeout(
    awaitable,
    ms: float,
    message: str,
    step: str | None = None,
    index: int | None = None,
):
    """Await `awaitable`, failing with StepTimeoutError after `ms` milliseconds.

    Only the wait is abandoned on timeout; the operation itself keeps running.
    The deadline timer is cancelled exactly once whichever way this returns.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(awaitable)
    task.add_done_callback(_consume_result)
    deadline = loop.create_future()
    timer = loop.call_later(ms / 1000, _expire, deadline)
    try:
        await asyncio.wait({task, deadline}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        timer.cancel()
        deadline.cancel()

    if task.done():
        return task.result()
    raise StepTimeoutError(message, step=step, index=index)
