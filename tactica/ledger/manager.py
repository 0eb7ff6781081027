"""
Session Ledger - The canonical authority for match state.

LIFECYCLE (Non-Negotiable):
1. create   -> both players and stakes fixed, phase ACTIVE
2. submit   -> each player commits once, proof checked by the verifier
3. (both committed) -> phase AWAITING_BOTH
4. resolve  -> tactics opened, payoff table applied, phase RESOLVED
5. retention window elapses -> record reclaimable regardless of phase

ATOMICITY:
- Every mutating operation runs check-and-mutate under the session's lock
- Racing resolve() calls: exactly one wins, the rest see GameAlreadyEnded
- A failed operation leaves the record untouched

The ledger never retries anything. Errors go straight back to the caller.
"""

from __future__ import annotations
import logging
import threading

from ..engine_core.errors import (
    AlreadySubmitted,
    BothPlayersNotSubmitted,
    DuplicateSession,
    GameAlreadyEnded,
    GameNotFound,
    InvalidProof,
    InvalidStake,
    NotPlayer,
    SelfPlay,
)
from ..engine_core.payoff import resolve as resolve_payoff
from ..engine_core.state import Phase, Session, SessionSnapshot, check_session_id
from ..verifier import CommitmentVerifier, HashOpeningVerifier
from .clock import LedgerClock, SystemLedgerClock
from .settlement import SettlementHook
from ..config import GAME_TTL_LEDGERS

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


class SessionLedger:
    """
    Keyed store of sessions with per-session atomic mutation.

    Usage:
        ledger = SessionLedger()
        ledger.create(7, "alice", "bob", 100, 100)
        ledger.submit(7, "alice", commitment_a, proof_a)
        ledger.submit(7, "bob", commitment_b, proof_b)
        winner = ledger.resolve(7)
    """

    def __init__(
        self,
        verifier: CommitmentVerifier | None = None,
        clock: LedgerClock | None = None,
        settlement: SettlementHook | None = None,
        retention_ledgers: int = GAME_TTL_LEDGERS,
    ):
        if retention_ledgers <= 0:
            raise ValueError("retention_ledgers must be positive")
        self.verifier = verifier or HashOpeningVerifier()
        self.clock = clock or SystemLedgerClock()
        self.settlement = settlement or SettlementHook()
        self.retention_ledgers = retention_ledgers

        self._sessions: dict[int, Session] = {}
        self._stripes = [threading.Lock() for _ in range(LOCK_STRIPES)]

    # =========================================================================
    # Operations
    # =========================================================================

    def create(
        self,
        session_id: int,
        player_a: str,
        player_b: str,
        stake_a: int,
        stake_b: int,
    ) -> None:
        """
        Store a new session in ACTIVE phase.

        Raises:
            SelfPlay: player_a == player_b
            InvalidStake: a stake is negative or not an integer
            DuplicateSession: a live session already holds session_id
        """
        check_session_id(session_id)
        if player_a == player_b:
            raise SelfPlay("Cannot play against yourself", session_id=session_id)
        for stake in (stake_a, stake_b):
            if isinstance(stake, bool) or not isinstance(stake, int) or stake < 0:
                raise InvalidStake(f"Stake must be a non-negative integer, got {stake!r}",
                                   session_id=session_id)

        with self._lock_for(session_id):
            now = self.clock.sequence
            existing = self._sessions.get(session_id)
            if existing is not None:
                if not existing.is_expired(now):
                    raise DuplicateSession(f"Session {session_id} already exists",
                                           session_id=session_id)
                logger.info("session_reclaimed", extra={"session_id": session_id})

            session = Session(
                session_id=session_id,
                player_a=player_a,
                player_b=player_b,
                stake_a=stake_a,
                stake_b=stake_b,
                created_at_ledger=now,
                expires_at_ledger=now + self.retention_ledgers,
            )
            session.advance(Phase.ACTIVE)

            # Hub locks stakes first; if it refuses, nothing is stored
            self.settlement.start_game(session_id, player_a, player_b, stake_a, stake_b)
            self._sessions[session_id] = session

        logger.info(
            "session_created",
            extra={"session_id": session_id, "player_a": player_a, "player_b": player_b},
        )

    def submit(
        self,
        session_id: int,
        player: str,
        commitment: bytes,
        proof: bytes,
    ) -> None:
        """
        Record a player's commitment after the verifier accepts its proof.

        Check order: GameNotFound, NotPlayer, GameAlreadyEnded,
        AlreadySubmitted, InvalidProof.
        """
        with self._lock_for(session_id):
            session = self._live(session_id)

            slot = session.slot_of(player)
            if slot is None:
                self._reject("submit", NotPlayer(
                    f"{player} is not a player in session {session_id}", session_id=session_id))
            if session.phase == Phase.RESOLVED:
                self._reject("submit", GameAlreadyEnded(
                    f"Session {session_id} is already resolved", session_id=session_id))
            if session.commitments[slot] is not None:
                self._reject("submit", AlreadySubmitted(
                    f"{player} already submitted for session {session_id}", session_id=session_id))
            if not self.verifier.verify(session_id, commitment, proof):
                self._reject("submit", InvalidProof(
                    f"Proof rejected for {player} in session {session_id}", session_id=session_id))

            session.commitments[slot] = bytes(commitment)
            session.sealed_proofs[slot] = bytes(proof)
            if session.both_committed:
                session.advance(Phase.AWAITING_BOTH)

        logger.info(
            "commitment_accepted",
            extra={"session_id": session_id, "player": player, "phase": session.phase.value},
        )

    def resolve(self, session_id: int) -> str:
        """
        Resolve a session whose players have both committed.

        Callable by anyone. The first successful caller resolves it; every
        later call raises GameAlreadyEnded.

        Returns:
            The winner's identifier
        """
        with self._lock_for(session_id):
            session = self._live(session_id)

            if session.phase == Phase.RESOLVED:
                self._reject("resolve", GameAlreadyEnded(
                    f"Session {session_id} is already resolved", session_id=session_id))
            if session.phase != Phase.AWAITING_BOTH:
                self._reject("resolve", BothPlayersNotSubmitted(
                    f"Session {session_id} is waiting for commitments", session_id=session_id))

            choices = [
                self.verifier.open(session_id, session.commitments[i], session.sealed_proofs[i])
                for i in (0, 1)
            ]
            outcome = resolve_payoff(choices[0], choices[1])
            winner = outcome.winner_of(session.player_a, session.player_b)

            self.settlement.end_game(session_id, winner, winner == session.player_a)

            session.choices = [outcome.choice_a, outcome.choice_b]
            session.scores = [outcome.score_a, outcome.score_b]
            session.winner = winner
            session.sealed_proofs = [None, None]
            session.advance(Phase.RESOLVED)

        logger.info(
            "session_resolved",
            extra={
                "session_id": session_id,
                "winner": winner,
                "score_a": outcome.score_a,
                "score_b": outcome.score_b,
            },
        )
        return winner

    def get(self, session_id: int) -> SessionSnapshot:
        """Read-only snapshot of a live session."""
        with self._lock_for(session_id):
            return self._live(session_id).snapshot()

    # =========================================================================
    # Housekeeping
    # =========================================================================

    def list_sessions(self) -> list[int]:
        """IDs of live (non-expired) sessions."""
        now = self.clock.sequence
        return sorted(
            sid for sid, session in list(self._sessions.items())
            if not session.is_expired(now)
        )

    def collect_expired(self) -> list[int]:
        """
        Drop every session past its retention window.

        Called periodically by whoever owns storage retention.
        Returns the reclaimed ids.
        """
        now = self.clock.sequence
        reclaimed = []
        for session_id in list(self._sessions):
            with self._lock_for(session_id):
                session = self._sessions.get(session_id)
                if session is not None and session.is_expired(now):
                    del self._sessions[session_id]
                    reclaimed.append(session_id)
        if reclaimed:
            logger.info("sessions_reclaimed", extra={"count": len(reclaimed)})
        return reclaimed

    def __contains__(self, session_id: int) -> bool:
        session = self._sessions.get(session_id)
        return session is not None and not session.is_expired(self.clock.sequence)

    def __len__(self) -> int:
        return len(self.list_sessions())

    @property
    def stored_count(self) -> int:
        """Records held in memory, expired ones included until collected."""
        return len(self._sessions)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lock_for(self, session_id: int) -> threading.Lock:
        return self._stripes[hash(session_id) % LOCK_STRIPES]

    def _live(self, session_id: int) -> Session:
        """Fetch a non-expired session. Caller must hold the session lock."""
        session = self._sessions.get(session_id)
        if session is None or session.is_expired(self.clock.sequence):
            raise GameNotFound(f"Session {session_id} not found", session_id=session_id)
        return session

    def _reject(self, operation: str, error: Exception):
        logger.warning(
            "%s_rejected",
            operation,
            extra={"error_code": getattr(error, "code", None), "session_id": getattr(error, "session_id", None)},
        )
        raise error
