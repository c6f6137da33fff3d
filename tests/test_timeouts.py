"""Tests for the deadline guard."""

import asyncio
import time
from unittest.mock import patch

import pytest

from journey_narrator import timeouts
from journey_narrator.errors import StepTimeoutError
from journey_narrator.timeouts import with_timeout


async def _resolve_after(seconds, value):
    await asyncio.sleep(seconds)
    return value


async def _never():
    await asyncio.Event().wait()


def test_returns_value_before_deadline():
    """Fast operation returns its value; the deadline never fires."""
    async def scenario():
        with patch("journey_narrator.timeouts._expire") as expire:
            result = await with_timeout(_resolve_after(0.01, "done"), 100, "too slow")
            await asyncio.sleep(0.15)
        return result, expire

    result, expire = asyncio.run(scenario())
    assert result == "done"
    expire.assert_not_called()


def test_times_out_with_message():
    """Operation that never resolves fails at the deadline with the given message."""
    async def scenario():
        with patch("journey_narrator.timeouts._expire", wraps=timeouts._expire) as expire:
            start = time.monotonic()
            with pytest.raises(StepTimeoutError, match="outline took too long") as info:
                await with_timeout(_never(), 50, "outline took too long", step="outline")
            elapsed = time.monotonic() - start
            await asyncio.sleep(0.1)
        return elapsed, expire, info.value

    elapsed, expire, error = asyncio.run(scenario())
    assert 0.04 <= elapsed < 0.5
    expire.assert_called_once()
    assert error.step == "outline"
    assert isinstance(error, TimeoutError)


def test_timeout_does_not_cancel_operation():
    """Only the wait is abandoned; the operation finishes on its own."""
    finished = []

    async def slow():
        await asyncio.sleep(0.05)
        finished.append(True)
        return "late"

    async def scenario():
        with pytest.raises(StepTimeoutError):
            await with_timeout(slow(), 10, "slow")
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert finished == [True]


def test_operation_error_propagates():
    """Errors from the operation come through unchanged and the timer is cancelled."""
    async def broken():
        await asyncio.sleep(0)
        raise ValueError("bad response")

    async def scenario():
        with patch("journey_narrator.timeouts._expire") as expire:
            with pytest.raises(ValueError, match="bad response"):
                await with_timeout(broken(), 50, "slow")
            await asyncio.sleep(0.08)
        return expire

    expire = asyncio.run(scenario())
    expire.assert_not_called()


def test_timer_cancelled_exactly_once():
    """Deadline handle is cancelled once on success."""
    class HandleSpy:
        def __init__(self, handle):
            self.handle = handle
            self.cancels = 0

        def cancel(self):
            self.cancels += 1
            self.handle.cancel()

    async def scenario():
        loop = asyncio.get_running_loop()
        spies = []
        original = loop.call_later

        def tracking_call_later(delay, callback, *args):
            spy = HandleSpy(original(delay, callback, *args))
            spies.append(spy)
            return spy

        with patch.object(loop, "call_later", tracking_call_later):
            await with_timeout(_resolve_after(0, 1), 100, "slow")
        return spies

    spies = asyncio.run(scenario())
    assert [s.cancels for s in spies] == [1]
