import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from docvault.config import ConfigError
from docvault.orchestrator import RateGate


@dataclass
class FakeClock:
    now: float = 0.0
    sleeps: List[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@dataclass
class RecordingCall:
    name: str
    log: List[str]
    duration: float = 0.0
    fail: bool = False

    kind = "recording"

    async def run(self) -> str:
        self.log.append(self.name)
        if self.duration:
            await asyncio.sleep(self.duration)
        if self.fail:
            raise ValueError(f"{self.name} failed")
        return self.name


def test_zero_ceiling_is_rejected_before_queueing():
    with pytest.raises(ConfigError):
        RateGate(0)
    with pytest.raises(ConfigError):
        RateGate(10, spacing=-1)


def test_gate_admits_calls_in_fifo_order():
    log: List[str] = []

    async def run_test():
        gate = RateGate(100, 0)
        return await asyncio.gather(
            gate.submit(RecordingCall("A", log, duration=0.03)),
            gate.submit(RecordingCall("B", log)),
            gate.submit(RecordingCall("C", log, duration=0.01)),
        )

    results = asyncio.run(run_test())
    assert results == ["A", "B", "C"]
    assert log == ["A", "B", "C"]


def test_trailing_window_never_exceeds_ceiling():
    clock = FakeClock()
    executed_at: List[float] = []

    async def operation():
        executed_at.append(clock.now)
        return len(executed_at)

    async def run_test():
        gate = RateGate(3, 1.0, clock=clock, sleep=clock.sleep)
        await asyncio.gather(*[gate.submit(operation) for _ in range(10)])

    asyncio.run(run_test())

    assert len(executed_at) == 10
    for stamp in executed_at:
        in_window = [other for other in executed_at if stamp - 60 < other <= stamp]
        assert len(in_window) <= 3
    assert 60.0 in clock.sleeps
    # First call is never delayed by the spacing.
    assert executed_at[0] == 0.0
    assert executed_at[1] == 1.0


def test_failed_call_is_delivered_and_still_occupies_a_slot():
    log: List[str] = []

    async def run_test():
        gate = RateGate(10, 0)
        with pytest.raises(ValueError):
            await gate.submit(RecordingCall("boom", log, fail=True))
        ok = await gate.submit(RecordingCall("after", log))
        return ok, gate.stats()

    result, stats = asyncio.run(run_test())
    assert result == "after"
    assert log == ["boom", "after"]
    assert stats.requests_in_window == 2
    assert stats.remaining_capacity == 8


def test_stats_expose_queue_depth_during_drain():
    snapshots = []
    gate_ref: List[Optional[RateGate]] = [None]

    async def inspecting():
        snapshots.append(gate_ref[0].stats())
        return "inspected"

    async def noop():
        return "noop"

    async def run_test():
        gate = RateGate(5, 0)
        gate_ref[0] = gate
        await asyncio.gather(gate.submit(inspecting), gate.submit(noop), gate.submit(noop))
        return gate.stats()

    final = asyncio.run(run_test())
    assert snapshots[0].queue_depth == 2
    assert snapshots[0].requests_in_window == 0
    assert snapshots[0].ceiling == 5
    assert final.queue_depth == 0
    assert final.requests_in_window == 3
    assert final.remaining_capacity == 2


def test_aclose_cancels_calls_waiting_on_a_stall():
    async def noop():
        return None

    async def run_test():
        gate = RateGate(1, 0, stall_seconds=60)
        await gate.submit(noop)
        pending = asyncio.create_task(gate.submit(noop))
        await asyncio.sleep(0.01)
        assert gate.stats().queue_depth == 1
        assert gate.is_processing
        await gate.aclose()
        with pytest.raises(asyncio.CancelledError):
            await pending
        assert not gate.is_processing

    asyncio.run(run_test())
