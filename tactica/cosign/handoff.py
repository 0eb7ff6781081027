"""
Hand-off Board - In-memory side channel for co-signing payloads.

The joiner posts its payload under (session id, joiner address); the
initiator consumes it exactly once. A slot only ever holds one joiner's
payload, so nobody can displace another joiner's pending hand-off.
Checking that the payload really comes from that joiner is the caller's
job (see verify_handoff); the board never looks inside a payload.

Entries vanish after their TTL. Every post also sweeps expired entries,
so the board never grows beyond what was posted within one TTL.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import threading
import time

logger = logging.getLogger(__name__)


@dataclass
class HandoffEntry:
    payload: str
    posted_at: float
    expires_at: float


class HandoffBoard:
    """
    Usage:
        board = HandoffBoard(ttl_seconds=3600)
        board.post(9, bob.address, blob)
        blob = board.consume(9, bob.address)   # None the second time
    """

    def __init__(self, ttl_seconds: float = 3600, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[int, str], HandoffEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def post(self, session_id: int, joiner: str, payload: str) -> HandoffEntry:
        """Publish a payload, replacing any earlier one from the same joiner."""
        now = self._clock()
        entry = HandoffEntry(payload=payload, posted_at=now, expires_at=now + self.ttl_seconds)
        with self._lock:
            self._sweep(now)
            self._entries[(session_id, joiner)] = entry
        return entry

    def peek(self, session_id: int, joiner: str) -> str | None:
        with self._lock:
            entry = self._live((session_id, joiner))
            return entry.payload if entry else None

    def consume(self, session_id: int, joiner: str) -> str | None:
        with self._lock:
            entry = self._live((session_id, joiner))
            if entry is None:
                return None
            del self._entries[(session_id, joiner)]
            return entry.payload

    def discard(self, session_id: int, joiner: str) -> bool:
        with self._lock:
            return self._entries.pop((session_id, joiner), None) is not None

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were dropped."""
        now = self._clock()
        with self._lock:
            return self._sweep(now)

    def _sweep(self, now: float) -> int:
        stale = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("handoff_swept", extra={"count": len(stale)})
        return len(stale)

    def _live(self, key: tuple[int, str]) -> HandoffEntry | None:
        entry = self._entries.get(key)
        if entry is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry
