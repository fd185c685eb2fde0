"""Process-wide FIFO gate that throttles outbound API calls."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Optional, Protocol, Union

from ..config import ConfigError
from ..infra.monitoring import RateGateStats, RateWindow

logger = logging.getLogger(__name__)


class GateTask(Protocol):
    """Anything the gates can execute: a task variant exposing ``run()``."""

    async def run(self) -> Any:
        ...


Operation = Union[GateTask, Callable[[], Awaitable[Any]]]
Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[Any]]


def invoke(operation: Operation) -> Awaitable[Any]:
    run = getattr(operation, "run", None)
    if callable(run):
        return run()
    return operation()


def describe(operation: Operation) -> str:
    return str(getattr(operation, "kind", None) or getattr(operation, "__name__", type(operation).__name__))


@dataclass
class PendingCall:
    """An operation waiting for admission plus the future its caller awaits."""

    operation: Operation
    future: "asyncio.Future[Any]"

    @property
    def label(self) -> str:
        return describe(self.operation)


class RateGate:
    """
    Serializes every remote call against a sliding per-minute ceiling.

    Calls are admitted strictly in submission order. When the trailing window
    is full the whole queue waits ``stall_seconds`` before checking again; the
    ceiling is account-wide so no caller may overtake the stall. A failed
    operation still occupies a window slot because the remote service saw it.
    """

    def __init__(
        self,
        requests_per_minute: int = 300,
        spacing: float = 0.2,
        *,
        window_seconds: float = 60.0,
        stall_seconds: float = 60.0,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if requests_per_minute <= 0:
            raise ConfigError("RateGate ceiling must be positive; a zero ceiling would never admit a call.")
        if spacing < 0:
            raise ConfigError("RateGate spacing cannot be negative.")
        self.ceiling = requests_per_minute
        self.spacing = spacing
        self.stall_seconds = stall_seconds
        self._clock = clock
        self._sleep = sleep
        self._window = RateWindow(window_seconds)
        self._queue: Deque[PendingCall] = deque()
        self._processing = False
        self._worker_task: Optional[asyncio.Task[None]] = None
        self._last_admitted: Optional[float] = None

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def submit(self, operation: Operation) -> Any:
        """Queue ``operation`` and return its result once it has been admitted and run."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.append(PendingCall(operation=operation, future=future))
        self._ensure_worker()
        return await future

    def _ensure_worker(self) -> None:
        if self._processing:
            return
        self._processing = True
        self._worker_task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._queue:
                occupied = self._window.prune(self._clock())
                if occupied >= self.ceiling:
                    logger.warning(
                        "Rate limit reached (%d/%d); pausing %d queued call(s) for %.0fs",
                        occupied,
                        self.ceiling,
                        len(self._queue),
                        self.stall_seconds,
                    )
                    await self._sleep(self.stall_seconds)
                    continue

                call = self._queue.popleft()
                if call.future.done():
                    # Caller stopped waiting before admission.
                    continue

                if self._last_admitted is not None and self.spacing > 0:
                    remaining = self.spacing - (self._clock() - self._last_admitted)
                    if remaining > 0:
                        await self._sleep(remaining)
                self._last_admitted = self._clock()

                try:
                    result = await invoke(call.operation)
                except asyncio.CancelledError:
                    call.future.cancel()
                    raise
                except Exception as exc:
                    self._window.record(self._clock())
                    logger.warning("Rate-gated call %s failed: %s", call.label, exc)
                    if not call.future.done():
                        call.future.set_exception(exc)
                else:
                    self._window.record(self._clock())
                    logger.debug(
                        "Rate gate: %d/%d requests in window after %s",
                        len(self._window),
                        self.ceiling,
                        call.label,
                    )
                    if not call.future.done():
                        call.future.set_result(result)
        finally:
            self._processing = False
            self._worker_task = None

    def stats(self) -> RateGateStats:
        occupied = self._window.occupancy(self._clock())
        return RateGateStats(
            requests_in_window=occupied,
            ceiling=self.ceiling,
            queue_depth=len(self._queue),
            remaining_capacity=max(self.ceiling - occupied, 0),
        )

    async def aclose(self) -> None:
        """Stop draining and cancel every call still waiting for admission."""
        task = self._worker_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        while self._queue:
            self._queue.popleft().future.cancel()
        self._processing = False
        self._worker_task = None
