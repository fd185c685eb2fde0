"""Local fan-out bound and settle-all joining for download tasks."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Deque, Iterable, List, Optional

from ..config import ConfigError
from .queue import Operation, invoke


class ConcurrencyGate:
    """
    Admits at most ``max_concurrent`` tasks at once; the rest wait in FIFO order.

    A released slot is handed straight to the oldest waiter, so a task that
    arrives later can never take it first. The slot is released in a
    ``finally`` block so a failing task never leaks capacity. This bounds local
    work such as open files; remote throughput is still governed by the
    RateGate the tasks eventually reach.
    """

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ConfigError("ConcurrencyGate needs at least one slot.")
        self.max_concurrent = max_concurrent
        self.in_flight = 0
        self.peak = 0
        self._free = max_concurrent
        self._waiters: Deque["asyncio.Future[None]"] = deque()

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def _acquire(self) -> None:
        if self._free > 0 and not self._waiters:
            self._free -= 1
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was already handed over; pass it on.
                self._release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._free += 1

    async def run(self, task: Operation) -> Any:
        await self._acquire()
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            return await invoke(task)
        finally:
            self.in_flight -= 1
            self._release()


@dataclass(frozen=True)
class Outcome:
    """Settled result of one awaited task."""

    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(awaitables: Iterable[Awaitable[Any]]) -> List[Outcome]:
    """Wait for every awaitable and collect each outcome; one failure never cancels the others."""
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    outcomes: List[Outcome] = []
    for result in results:
        if isinstance(result, BaseException):
            outcomes.append(Outcome(error=result))
        else:
            outcomes.append(Outcome(value=result))
    return outcomes
