"""
Tests for the session ledger.

Tests:
- Session creation and its validation
- Commitment submission and check ordering
- Resolution, winner selection and hub notifications
- Expiry and reclamation
- Concurrent resolution
"""

import threading

import pytest

from ..engine_core import (
    AlreadySubmitted,
    BothPlayersNotSubmitted,
    DuplicateSession,
    GameAlreadyEnded,
    GameNotFound,
    InvalidProof,
    InvalidSessionId,
    InvalidStake,
    MAX_SESSION_ID,
    MatchValidationError,
    NotPlayer,
    Phase,
    SelfPlay,
)
from ..ledger import ManualLedgerClock, RecordingSettlement, SessionLedger, SystemLedgerClock
from ..verifier import ProofHashVerifier, build_stub_proof, commit_tactic
from .conftest import commit_both


class TestCreate:
    """Tests for SessionLedger.create."""

    def test_create_stores_active_session(self, ledger, clock, settlement):
        ledger.create(7, "P1", "P2", 100, 100)

        snap = ledger.get(7)
        assert snap.phase == Phase.ACTIVE
        assert snap.players == ("P1", "P2")
        assert snap.stakes == (100, 100)
        assert snap.commitments == (None, None)
        assert snap.created_at_ledger == clock.sequence
        assert snap.expires_at_ledger == clock.sequence + 100
        assert settlement.started == [(7, "P1", "P2", 100, 100)]

    def test_self_play_rejected(self, ledger, settlement):
        with pytest.raises(SelfPlay):
            ledger.create(1, "alice", "alice", 10, 10)
        assert 1 not in ledger
        assert settlement.started == []

    @pytest.mark.parametrize("stake", [-1, 1.5, "10", True])
    def test_bad_stake_rejected(self, ledger, stake):
        with pytest.raises(InvalidStake):
            ledger.create(1, "alice", "bob", stake, 10)

    def test_zero_stake_allowed(self, ledger):
        ledger.create(1, "alice", "bob", 0, 0)
        assert ledger.get(1).stakes == (0, 0)

    @pytest.mark.parametrize("session_id", [-1, "7", True, MAX_SESSION_ID + 1, 2**64])
    def test_bad_session_id_rejected(self, ledger, settlement, session_id):
        with pytest.raises(InvalidSessionId) as exc_info:
            ledger.create(session_id, "alice", "bob", 1, 1)
        assert isinstance(exc_info.value, MatchValidationError)
        assert session_id not in ledger
        assert settlement.started == []

    def test_largest_session_id_commits_and_resolves(self, ledger):
        ledger.create(MAX_SESSION_ID, "alice", "bob", 1, 1)
        commit_both(ledger, MAX_SESSION_ID, 2, 1)
        assert ledger.resolve(MAX_SESSION_ID) == "alice"

    def test_duplicate_rejected(self, ledger, active_session):
        with pytest.raises(DuplicateSession):
            ledger.create(active_session, "carol", "dave", 1, 1)
        assert ledger.get(active_session).players == ("alice", "bob")

    def test_expired_id_can_be_reused(self, ledger, clock, active_session):
        clock.advance(100)
        ledger.create(active_session, "carol", "dave", 1, 1)
        assert ledger.get(active_session).players == ("carol", "dave")

    def test_hub_refusal_stores_nothing(self, clock):
        class RefusingHub(RecordingSettlement):
            def start_game(self, *args):
                raise RuntimeError("hub refused")

        ledger = SessionLedger(clock=clock, settlement=RefusingHub())
        with pytest.raises(RuntimeError):
            ledger.create(3, "alice", "bob", 1, 1)
        assert 3 not in ledger


class TestSubmit:
    """Tests for SessionLedger.submit."""

    def test_first_commitment_keeps_active(self, ledger, active_session):
        commitment, proof = commit_tactic(active_session, 2)
        ledger.submit(active_session, "alice", commitment, proof)

        snap = ledger.get(active_session)
        assert snap.phase == Phase.ACTIVE
        assert snap.commitment_a == commitment
        assert snap.commitment_b is None

    def test_second_commitment_awaits_resolution(self, ledger, active_session):
        commit_both(ledger, active_session, 2, 1)
        assert ledger.get(active_session).phase == Phase.AWAITING_BOTH

    def test_order_of_submission_does_not_matter(self, ledger, active_session):
        commitment_b, proof_b = commit_tactic(active_session, 1)
        commitment_a, proof_a = commit_tactic(active_session, 2)
        ledger.submit(active_session, "bob", commitment_b, proof_b)
        ledger.submit(active_session, "alice", commitment_a, proof_a)
        assert ledger.resolve(active_session) == "alice"

    def test_unknown_session(self, ledger):
        commitment, proof = commit_tactic(99, 0)
        with pytest.raises(GameNotFound):
            ledger.submit(99, "alice", commitment, proof)

    def test_outsider_rejected(self, ledger, active_session):
        commitment, proof = commit_tactic(active_session, 0)
        with pytest.raises(NotPlayer):
            ledger.submit(active_session, "mallory", commitment, proof)

    def test_second_submission_rejected(self, ledger, active_session):
        commitment, proof = commit_tactic(active_session, 0)
        ledger.submit(active_session, "alice", commitment, proof)

        other, other_proof = commit_tactic(active_session, 3)
        with pytest.raises(AlreadySubmitted):
            ledger.submit(active_session, "alice", other, other_proof)
        assert ledger.get(active_session).commitment_a == commitment

    def test_invalid_proof_leaves_slot_empty(self, ledger, active_session):
        commitment, _ = commit_tactic(active_session, 0)
        with pytest.raises(InvalidProof):
            ledger.submit(active_session, "alice", commitment, b"\x00" * 42)
        assert ledger.get(active_session).commitment_a is None

    def test_proof_for_other_session_rejected(self, ledger, active_session):
        commitment, proof = commit_tactic(active_session + 1, 0)
        with pytest.raises(InvalidProof):
            ledger.submit(active_session, "alice", commitment, proof)

    def test_not_player_checked_before_proof(self, ledger, active_session):
        with pytest.raises(NotPlayer):
            ledger.submit(active_session, "mallory", b"", b"")

    def test_already_submitted_checked_before_proof(self, ledger, active_session):
        commitment, proof = commit_tactic(active_session, 0)
        ledger.submit(active_session, "alice", commitment, proof)
        with pytest.raises(AlreadySubmitted):
            ledger.submit(active_session, "alice", b"", b"")

    def test_submit_after_resolution(self, ledger, active_session):
        commit_both(ledger, active_session, 0, 0)
        ledger.resolve(active_session)
        with pytest.raises(GameAlreadyEnded):
            ledger.submit(active_session, "alice", b"", b"")


class TestResolve:
    """Tests for SessionLedger.resolve."""

    def test_aggressive_beats_balanced(self, ledger, settlement):
        ledger.create(7, "P1", "P2", 100, 100)
        commit_both(ledger, 7, 2, 1, player_a="P1", player_b="P2")

        assert ledger.resolve(7) == "P1"
        snap = ledger.get(7)
        assert snap.phase == Phase.RESOLVED
        assert (snap.choice_a, snap.choice_b) == (2, 1)
        assert snap.scores == (3, 2)
        assert snap.winner == "P1"
        assert settlement.ended == [(7, "P1")]

    def test_tie_goes_to_player_a(self, ledger, active_session):
        commit_both(ledger, active_session, 0, 0)
        assert ledger.resolve(active_session) == "alice"
        assert ledger.get(active_session).scores == (0, 0)

    def test_player_b_wins(self, ledger, active_session):
        commit_both(ledger, active_session, 1, 2)
        assert ledger.resolve(active_session) == "bob"
        assert ledger.get(active_session).scores == (2, 3)

    def test_unknown_session(self, ledger):
        with pytest.raises(GameNotFound):
            ledger.resolve(42)

    def test_needs_both_commitments(self, ledger, active_session):
        with pytest.raises(BothPlayersNotSubmitted):
            ledger.resolve(active_session)

        commitment, proof = commit_tactic(active_session, 1)
        ledger.submit(active_session, "alice", commitment, proof)
        with pytest.raises(BothPlayersNotSubmitted):
            ledger.resolve(active_session)
        assert ledger.get(active_session).phase == Phase.ACTIVE

    def test_second_resolve_rejected(self, ledger, settlement, active_session):
        commit_both(ledger, active_session, 3, 3)
        ledger.resolve(active_session)
        with pytest.raises(GameAlreadyEnded):
            ledger.resolve(active_session)
        assert len(settlement.ended) == 1

    def test_choices_hidden_until_resolved(self, ledger, active_session):
        commit_both(ledger, active_session, 3, 0)
        snap = ledger.get(active_session)
        assert snap.choice_a is None and snap.choice_b is None

    def test_hub_refusal_leaves_session_unresolved(self, clock):
        class RefusingHub(RecordingSettlement):
            def end_game(self, *args):
                raise RuntimeError("hub refused")

        ledger = SessionLedger(clock=clock, settlement=RefusingHub())
        ledger.create(1, "alice", "bob", 1, 1)
        commit_both(ledger, 1, 2, 1)
        with pytest.raises(RuntimeError):
            ledger.resolve(1)
        assert ledger.get(1).phase == Phase.AWAITING_BOTH

    def test_pluggable_verifier(self, clock):
        ledger = SessionLedger(verifier=ProofHashVerifier(), clock=clock)
        ledger.create(5, "alice", "bob", 1, 1)
        for player, tactic in (("alice", 3), ("bob", 2)):
            commitment, proof = build_stub_proof(5, tactic)
            ledger.submit(5, player, commitment, proof)
        assert ledger.resolve(5) == "alice"
        assert ledger.get(5).scores == (3, 3)

    def test_concurrent_resolve_has_single_winner(self, ledger, settlement, active_session):
        """Exactly one racing resolver succeeds, the rest see GameAlreadyEnded."""
        commit_both(ledger, active_session, 2, 1)

        barrier = threading.Barrier(8)
        results = []
        errors = []

        def worker():
            barrier.wait()
            try:
                results.append(ledger.resolve(active_session))
            except GameAlreadyEnded as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == ["alice"]
        assert len(errors) == 7
        assert settlement.ended == [(active_session, "alice")]


class TestExpiry:
    """Tests for retention and reclamation."""

    def test_expired_session_is_not_found(self, ledger, clock, active_session):
        clock.advance(99)
        assert ledger.get(active_session).phase == Phase.ACTIVE
        clock.advance(1)
        with pytest.raises(GameNotFound):
            ledger.get(active_session)
        assert active_session not in ledger

    def test_resolved_sessions_also_expire(self, ledger, clock, active_session):
        commit_both(ledger, active_session, 0, 1)
        ledger.resolve(active_session)
        clock.advance(100)
        with pytest.raises(GameNotFound):
            ledger.get(active_session)

    def test_collect_expired(self, ledger, clock):
        ledger.create(1, "alice", "bob", 1, 1)
        clock.advance(50)
        ledger.create(2, "alice", "bob", 1, 1)
        clock.advance(50)

        assert ledger.collect_expired() == [1]
        assert ledger.list_sessions() == [2]
        assert len(ledger) == 1
        assert ledger.collect_expired() == []


class TestClock:
    """Tests for ledger clocks."""

    def test_manual_clock(self):
        clock = ManualLedgerClock(start=10)
        assert clock.advance(5) == 15
        assert clock.sequence == 15
        assert clock.ledgers_until(20) == 5

    def test_manual_clock_never_goes_back(self):
        with pytest.raises(ValueError):
            ManualLedgerClock().advance(-1)

    def test_system_clock(self, monkeypatch):
        monkeypatch.setattr("tactica.ledger.clock.time.time", lambda: 1000.0)
        assert SystemLedgerClock(close_seconds=5).sequence == 200
        assert SystemLedgerClock(close_seconds=5, genesis=500.0).sequence == 100

    def test_retention_must_be_positive(self):
        with pytest.raises(ValueError):
            SessionLedger(retention_ledgers=0)
