"""
Cooperative cancellation for long-running jobs.
"""

import asyncio
from typing import Awaitable, TypeVar

from comment_analyzer.utils.error_handling import JobCancelledError

T = TypeVar("T")


class CancellationToken:
    """
    Cancellation flag observed at every suspension point of a job.

    Observing a cancelled token raises ``JobCancelledError``; nothing is
    emitted after that.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise JobCancelledError("Job was cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking up early on cancellation."""
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await an external call, abandoning it as soon as the token is cancelled."""
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
        if task in done:
            return task.result()
        raise JobCancelledError("Job was cancelled")
