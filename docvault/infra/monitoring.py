"""Sliding-window bookkeeping and stats snapshots for the rate gate."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict


@dataclass(frozen=True)
class RateGateStats:
    requests_in_window: int
    ceiling: int
    queue_depth: int
    remaining_capacity: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "requests_in_window": self.requests_in_window,
            "ceiling": self.ceiling,
            "queue_depth": self.queue_depth,
            "remaining_capacity": self.remaining_capacity,
        }


class RateWindow:
    """Timestamps of completed calls inside a trailing window, oldest first."""

    def __init__(self, window_seconds: float = 60.0) -> None:
        self.window_seconds = window_seconds
        self.events: Deque[float] = deque()

    def prune(self, now: float) -> int:
        cutoff = now - self.window_seconds
        while self.events and self.events[0] <= cutoff:
            self.events.popleft()
        return len(self.events)

    def record(self, now: float) -> None:
        self.events.append(now)

    def occupancy(self, now: float) -> int:
        cutoff = now - self.window_seconds
        return sum(1 for stamp in self.events if stamp > cutoff)

    def __len__(self) -> int:
        return len(self.events)
