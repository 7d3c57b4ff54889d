# Test suite for request cancellation

import asyncio

import pytest

from vibey.agent.core.cancellation import CancellationToken
from vibey.exceptions.agent import RequestCancelledError


class TestCancellationToken:
    """cancel(), raise_if_cancelled() and race()"""

    def test_first_reason_wins(self):
        token = CancellationToken()
        token.cancel("user pressed stop")
        token.cancel("second")
        assert token.cancelled
        assert token.reason == "user pressed stop"

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        with pytest.raises(RequestCancelledError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_race_returns_result(self):
        async def work():
            return 42

        assert await CancellationToken().race(work()) == 42

    @pytest.mark.asyncio
    async def test_race_propagates_errors(self):
        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await CancellationToken().race(work())

    @pytest.mark.asyncio
    async def test_cancel_interrupts_race(self):
        token = CancellationToken()
        started = asyncio.Event()
        finished = []

        async def slow():
            started.set()
            try:
                await asyncio.sleep(10)
            finally:
                finished.append("cleaned up")

        racer = asyncio.create_task(token.race(slow()))
        await started.wait()
        token.cancel("stop")

        with pytest.raises(RequestCancelledError) as exc_info:
            await asyncio.wait_for(racer, timeout=1)
        assert exc_info.value.message == "stop"
        assert finished == ["cleaned up"]

    @pytest.mark.asyncio
    async def test_already_cancelled_never_starts_work(self):
        token = CancellationToken()
        token.cancel()
        ran = []

        async def work():
            ran.append(True)

        coroutine = work()
        with pytest.raises(RequestCancelledError):
            await token.race(coroutine)
        coroutine.close()
        assert ran == []
