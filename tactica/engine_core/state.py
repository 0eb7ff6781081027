"""
Session State - The canonical record of one two-party match.

Design principles:
- Phase is a closed enum with an explicit transition table
- Write-once slots: commitments, choices, scores and winner never change once set
- Read access goes through frozen snapshots, never the live record
- Sealed proofs stay inside the record and are never projected out
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidSessionId, InvalidTransition


# Session ids are u32 on the wire and inside every proof
MAX_SESSION_ID = 0xFFFFFFFF


class Phase(Enum):
    """Lifecycle of a session. Monotonic, no skips, no reversals."""
    CREATED = "created"
    ACTIVE = "active"
    AWAITING_BOTH = "awaiting_both"
    RESOLVED = "resolved"


PHASE_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.CREATED: frozenset({Phase.ACTIVE}),
    Phase.ACTIVE: frozenset({Phase.AWAITING_BOTH}),
    Phase.AWAITING_BOTH: frozenset({Phase.RESOLVED}),
    Phase.RESOLVED: frozenset(),
}


def can_transition(current: Phase, target: Phase) -> bool:
    return target in PHASE_TRANSITIONS[current]


def check_session_id(session_id: int) -> int:
    """Return ``session_id`` if it is an integer in 0..MAX_SESSION_ID, else raise InvalidSessionId."""
    if isinstance(session_id, bool) or not isinstance(session_id, int):
        raise InvalidSessionId(f"Session id must be an integer, got {session_id!r}")
    if not 0 <= session_id <= MAX_SESSION_ID:
        raise InvalidSessionId(
            f"Session id must be in 0..{MAX_SESSION_ID}, got {session_id}", session_id=session_id
        )
    return session_id


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Read-only projection of a Session.

    Pairs are ordered (player_a, player_b). Choices stay None until the
    session is resolved.
    """
    session_id: int
    player_a: str
    player_b: str
    stake_a: int
    stake_b: int
    phase: Phase
    commitment_a: bytes | None = None
    commitment_b: bytes | None = None
    choice_a: int | None = None
    choice_b: int | None = None
    score_a: int | None = None
    score_b: int | None = None
    winner: str | None = None
    created_at_ledger: int = 0
    expires_at_ledger: int = 0

    @property
    def players(self) -> tuple[str, str]:
        return (self.player_a, self.player_b)

    @property
    def stakes(self) -> tuple[int, int]:
        return (self.stake_a, self.stake_b)

    @property
    def commitments(self) -> tuple[bytes | None, bytes | None]:
        return (self.commitment_a, self.commitment_b)

    @property
    def scores(self) -> tuple[int | None, int | None]:
        return (self.score_a, self.score_b)

    @property
    def is_resolved(self) -> bool:
        return self.phase == Phase.RESOLVED


@dataclass
class Session:
    """
    Live session record, owned by the SessionLedger.

    Slots are indexed 0 for player_a and 1 for player_b. Only the ledger
    mutates this object, and only while holding the session's lock.
    """
    session_id: int
    player_a: str
    player_b: str
    stake_a: int
    stake_b: int
    created_at_ledger: int
    expires_at_ledger: int

    phase: Phase = Phase.CREATED
    commitments: list[bytes | None] = field(default_factory=lambda: [None, None])
    choices: list[int | None] = field(default_factory=lambda: [None, None])
    scores: list[int | None] = field(default_factory=lambda: [None, None])
    winner: str | None = None

    # Accepted proofs, opened only at resolution
    sealed_proofs: list[bytes | None] = field(default_factory=lambda: [None, None])

    @property
    def players(self) -> tuple[str, str]:
        return (self.player_a, self.player_b)

    def slot_of(self, player: str) -> int | None:
        """Slot index for a player, or None if not in this session."""
        if player == self.player_a:
            return 0
        if player == self.player_b:
            return 1
        return None

    @property
    def both_committed(self) -> bool:
        return all(c is not None for c in self.commitments)

    def is_expired(self, ledger_sequence: int) -> bool:
        return ledger_sequence >= self.expires_at_ledger

    def advance(self, target: Phase) -> None:
        """Move to ``target``, rejecting anything outside the transition table."""
        if not can_transition(self.phase, target):
            raise InvalidTransition(
                f"Illegal phase transition {self.phase.value} -> {target.value}",
                session_id=self.session_id,
            )
        self.phase = target

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            player_a=self.player_a,
            player_b=self.player_b,
            stake_a=self.stake_a,
            stake_b=self.stake_b,
            phase=self.phase,
            commitment_a=self.commitments[0],
            commitment_b=self.commitments[1],
            choice_a=self.choices[0],
            choice_b=self.choices[1],
            score_a=self.scores[0],
            score_b=self.scores[1],
            winner=self.winner,
            created_at_ledger=self.created_at_ledger,
            expires_at_ledger=self.expires_at_ledger,
        )
