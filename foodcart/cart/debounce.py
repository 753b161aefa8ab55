"""
Asyncio Debouncer

Coalesces bursts of calls into a single invocation of an async callback
once the caller has been quiet for `delay` seconds:

    schedule() -> (re)arm the timer; any pending timer is cancelled
    flush()    -> cancel the timer and run the callback right now
    cancel()   -> drop the pending invocation

The callback receives no arguments. It runs as its own task so the caller of
schedule() is never blocked by it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Timer that fires an async callback after a quiescence window."""

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired yet."""
        return self._handle is not None

    def schedule(self) -> None:
        """
        Arm (or re-arm) the timer.

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._callback())

    async def flush(self) -> None:
        """Run the callback immediately, cancelling any armed timer."""
        self.cancel()
        await self.wait()
        await self._callback()

    async def wait(self) -> None:
        """Wait for an in-flight callback task, if any, to finish."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            await task
