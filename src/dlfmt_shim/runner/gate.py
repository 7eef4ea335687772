"""Bounded-concurrency admission gate with a FIFO wait queue."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from types import TracebackType

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 2


class ConcurrencyGate:
    """Counting semaphore that admits waiters strictly in arrival order.

    A released slot is handed directly to the head of the queue, so ``running``
    never dips below capacity while someone is waiting. All state is mutated on
    the event loop thread only.
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency!r}")
        self._max_concurrency = max_concurrency
        self._running = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def running(self) -> int:
        return self._running

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    def locked(self) -> bool:
        """Return True when a new ``acquire()`` would have to wait."""

        return self._running >= self._max_concurrency

    async def acquire(self) -> None:
        """Take a slot, suspending until one is handed over if the gate is full."""

        if self._running < self._max_concurrency:
            self._running += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug("Gate saturated (%d running), %d waiting", self._running, len(self._waiters))
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was already transferred to us; pass it on.
                self.release()
            else:
                self._remove_waiter(waiter)
            raise

    def release(self) -> None:
        """Give back a slot, transferring it to the oldest waiter if there is one."""

        if self._running <= 0:
            raise ValueError("ConcurrencyGate released more times than acquired")
        self._running -= 1
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._running += 1
            waiter.set_result(None)
            return

    def _remove_waiter(self, waiter: asyncio.Future[None]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass

    async def __aenter__(self) -> ConcurrencyGate:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"<ConcurrencyGate running={self._running}/{self._max_concurrency} "
            f"waiting={len(self._waiters)}>"
        )
