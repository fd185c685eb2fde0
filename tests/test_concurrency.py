import asyncio
from dataclasses import dataclass, field
from typing import List

import pytest

from docvault.config import ConfigError
from docvault.orchestrator import ConcurrencyGate, gather_settled


@dataclass
class Tracker:
    active: int = 0
    peak: int = 0
    started: List[str] = field(default_factory=list)


@dataclass
class SlowTask:
    name: str
    tracker: Tracker
    delay: float = 0.01
    fail: bool = False

    async def run(self) -> str:
        self.tracker.started.append(self.name)
        self.tracker.active += 1
        self.tracker.peak = max(self.tracker.peak, self.tracker.active)
        try:
            await asyncio.sleep(self.delay)
            if self.fail:
                raise RuntimeError(f"{self.name} failed")
            return self.name
        finally:
            self.tracker.active -= 1


def test_gate_rejects_zero_slots():
    with pytest.raises(ConfigError):
        ConcurrencyGate(0)


def test_running_tasks_never_exceed_limit():
    tracker = Tracker()
    gate = ConcurrencyGate(2)

    async def run_test():
        tasks = [SlowTask(f"t{i}", tracker) for i in range(6)]
        return await gather_settled(gate.run(task) for task in tasks)

    outcomes = asyncio.run(run_test())
    assert all(outcome.ok for outcome in outcomes)
    assert tracker.peak == 2
    assert gate.peak == 2
    assert gate.in_flight == 0


def test_failing_task_releases_its_slot():
    tracker = Tracker()
    gate = ConcurrencyGate(1)

    async def run_test():
        tasks = [SlowTask("bad", tracker, fail=True), SlowTask("good", tracker)]
        return await gather_settled(gate.run(task) for task in tasks)

    bad, good = asyncio.run(run_test())
    assert not bad.ok
    assert isinstance(bad.error, RuntimeError)
    assert good.ok and good.value == "good"
    assert gate.in_flight == 0


def test_waiting_tasks_are_admitted_in_order():
    tracker = Tracker()
    gate = ConcurrencyGate(1)

    async def run_test():
        tasks = [SlowTask(name, tracker, delay=0.001) for name in ("a", "b", "c", "d")]
        await gather_settled(gate.run(task) for task in tasks)

    asyncio.run(run_test())
    assert tracker.started == ["a", "b", "c", "d"]


def test_gate_accepts_plain_coroutine_functions():
    gate = ConcurrencyGate(3)

    async def answer():
        return 42

    assert asyncio.run(gate.run(answer)) == 42


def test_gather_settled_keeps_slow_siblings_running():
    finished: List[str] = []

    async def fails_fast():
        raise ValueError("fast failure")

    async def slow():
        await asyncio.sleep(0.02)
        finished.append("slow")
        return "done"

    outcomes = asyncio.run(gather_settled([fails_fast(), slow()]))
    assert [outcome.ok for outcome in outcomes] == [False, True]
    assert outcomes[1].value == "done"
    assert finished == ["slow"]


def test_freed_slot_goes_to_the_oldest_waiter_not_a_latecomer():
    gate = ConcurrencyGate(1)
    order: List[str] = []

    async def run_test():
        release = asyncio.Event()
        late_tasks = []

        def job(name):
            async def run():
                order.append(name)

            return run

        async def holder():
            order.append("holder")
            await release.wait()
            # Scheduled to start before "first" wakes up on the freed slot.
            late_tasks.append(asyncio.create_task(gate.run(job("late"))))

        held = asyncio.create_task(gate.run(holder))
        await asyncio.sleep(0)
        first = asyncio.create_task(gate.run(job("first")))
        second = asyncio.create_task(gate.run(job("second")))
        await asyncio.sleep(0)
        assert gate.waiting == 2

        release.set()
        await held
        await asyncio.gather(first, second, *late_tasks)

    asyncio.run(run_test())
    assert order == ["holder", "first", "second", "late"]
    assert gate.in_flight == 0
    assert gate.waiting == 0


def test_cancelled_waiter_does_not_leak_a_slot():
    gate = ConcurrencyGate(1)

    async def run_test():
        release = asyncio.Event()

        async def holder():
            await release.wait()

        async def answer():
            return "ran"

        held = asyncio.create_task(gate.run(holder))
        await asyncio.sleep(0)
        abandoned = asyncio.create_task(gate.run(answer))
        await asyncio.sleep(0)
        abandoned.cancel()
        release.set()
        await held
        with pytest.raises(asyncio.CancelledError):
            await abandoned
        return await asyncio.wait_for(gate.run(answer), timeout=1)

    assert asyncio.run(run_test()) == "ran"
    assert gate.in_flight == 0
