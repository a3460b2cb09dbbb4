"""
Global admission control for outbound model calls.

At most ``max_inflight`` submitted tasks execute at once; the rest wait in a
strict FIFO queue and are admitted as slots free.
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, TypeVar

import structlog

from ..config.settings import settings

logger = structlog.get_logger()

T = TypeVar("T")


class Dispatcher:
    """
    Bounded-concurrency dispatcher.

    A freed slot is handed directly to the oldest waiter, so admission order
    equals submission order. All bookkeeping happens on the event loop thread.
    """

    def __init__(self, max_inflight: int | None = None):
        """
        Initialize dispatcher.

        Args:
            max_inflight: Concurrent task limit (default from settings)
        """
        self.max_inflight = max_inflight if max_inflight is not None else settings.max_inflight
        if self.max_inflight < 1:
            raise ValueError("max_inflight must be at least 1")

        self._inflight = 0
        self._waiters: Deque[asyncio.Future[None]] = deque()
        self._peak_inflight = 0
        self._started: set[asyncio.Task] = set()

    @property
    def inflight(self) -> int:
        """Number of tasks currently executing."""
        return self._inflight

    @property
    def queued(self) -> int:
        """Number of tasks waiting for a slot."""
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def peak_inflight(self) -> int:
        """Highest concurrency observed since creation."""
        return self._peak_inflight

    def submit(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Task[T]":
        """
        Submit a unit of work.

        Must be called from a running event loop. The slot is claimed (or the
        place in the queue taken) before this returns.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Task resolving to the task's result or raising its error
        """
        loop = asyncio.get_running_loop()
        if self._inflight < self.max_inflight:
            self._acquired()
            admission = None
        else:
            admission = loop.create_future()
            self._waiters.append(admission)

        runner = loop.create_task(self._run(task, admission))
        runner.add_done_callback(lambda done: self._settle(done, admission))
        return runner

    async def _run(
        self,
        task: Callable[[], Awaitable[T]],
        admission: "asyncio.Future[None] | None",
    ) -> T:
        self._started.add(asyncio.current_task())
        if admission is not None:
            try:
                await admission
            except asyncio.CancelledError:
                # Slot may have been handed over right before cancellation
                if admission.done() and not admission.cancelled():
                    self._release()
                raise

        try:
            return await task()
        finally:
            self._release()

    def _settle(self, runner: asyncio.Task, admission: "asyncio.Future[None] | None") -> None:
        if runner in self._started:
            self._started.discard(runner)
            return

        # Cancelled before its first step: _run never got to release
        if admission is None or admission.done():
            self._release()
        else:
            admission.cancel()

    def _acquired(self) -> None:
        self._inflight += 1
        if self._inflight > self._peak_inflight:
            self._peak_inflight = self._inflight

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                # Hand the slot over without dropping the count
                waiter.set_result(None)
                return
        self._inflight -= 1
