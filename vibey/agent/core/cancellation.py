import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from vibey.exceptions.agent import RequestCancelledError

T = TypeVar("T")

logger = logging.getLogger("Cancellation")


class CancellationToken:
    """
    One-shot cancellation signal for a single chat request.

    Checked at every suspension point of the agent loop. ``race`` lets a
    long await (the model call) end as soon as the token fires instead of
    waiting for the network.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Request cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError(self.reason or "Request cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token fires first.

        Raises:
            RequestCancelledError: If cancelled before the awaitable finished.
                The awaitable's task is cancelled in that case.
        """
        if self.cancelled and asyncio.iscoroutine(awaitable):
            awaitable.close()
        self.raise_if_cancelled()

        work = asyncio.ensure_future(awaitable)
        watcher = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {work, watcher}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            watcher.cancel()

        if work in done:
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug("Cancelled call finished with error: %s", e)
        raise RequestCancelledError(self.reason or "Request cancelled")
