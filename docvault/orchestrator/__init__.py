"""
Gating primitives (rate gate, concurrency gate) for docvault.
"""

from .concurrency import ConcurrencyGate, Outcome, gather_settled
from .queue import GateTask, PendingCall, RateGate

__all__ = ["ConcurrencyGate", "GateTask", "Outcome", "PendingCall", "RateGate", "gather_settled"]
