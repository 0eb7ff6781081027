"""
Ledger Clock - Source of ledger sequence numbers.

Expiry of authorizations and retention of sessions are both expressed
as a future ledger sequence, never wall-clock time.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import threading
import time


class LedgerClock(ABC):
    """Anything that can report the current ledger sequence."""

    @property
    @abstractmethod
    def sequence(self) -> int:
        ...

    def ledgers_until(self, target: int) -> int:
        return target - self.sequence


class SystemLedgerClock(LedgerClock):
    """Derives the sequence from wall-clock time and a fixed close time."""

    def __init__(self, close_seconds: int = 5, genesis: float = 0.0):
        self.close_seconds = close_seconds
        self.genesis = genesis

    @property
    def sequence(self) -> int:
        return int((time.time() - self.genesis) // self.close_seconds)


class ManualLedgerClock(LedgerClock):
    """
    A clock that only moves when told to.

    Usage:
        clock = ManualLedgerClock(start=100)
        clock.advance(10)   # now 110
    """

    def __init__(self, start: int = 1):
        self._sequence = start
        self._lock = threading.Lock()

    @property
    def sequence(self) -> int:
        return self._sequence

    def advance(self, ledgers: int = 1) -> int:
        if ledgers < 0:
            raise ValueError("Ledger clock cannot move backwards")
        with self._lock:
            self._sequence += ledgers
            return self._sequence
