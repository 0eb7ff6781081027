"""
Tests for session state and the phase machine.
"""

import pytest

from ..engine_core import InvalidTransition, Phase, Session
from ..engine_core.state import PHASE_TRANSITIONS, can_transition


def make_session(**overrides) -> Session:
    fields = dict(
        session_id=1,
        player_a="alice",
        player_b="bob",
        stake_a=10,
        stake_b=20,
        created_at_ledger=100,
        expires_at_ledger=200,
    )
    fields.update(overrides)
    return Session(**fields)


class TestPhaseMachine:
    """Tests for the transition table."""

    def test_forward_only(self):
        assert can_transition(Phase.CREATED, Phase.ACTIVE)
        assert can_transition(Phase.ACTIVE, Phase.AWAITING_BOTH)
        assert can_transition(Phase.AWAITING_BOTH, Phase.RESOLVED)

    def test_no_skips_or_reversals(self):
        assert not can_transition(Phase.ACTIVE, Phase.RESOLVED)
        assert not can_transition(Phase.AWAITING_BOTH, Phase.ACTIVE)
        assert not can_transition(Phase.CREATED, Phase.AWAITING_BOTH)

    def test_resolved_is_terminal(self):
        assert PHASE_TRANSITIONS[Phase.RESOLVED] == frozenset()

    def test_advance_rejects_illegal_move(self):
        session = make_session()
        with pytest.raises(InvalidTransition):
            session.advance(Phase.RESOLVED)
        assert session.phase == Phase.CREATED


class TestSession:
    """Tests for the live record."""

    def test_slot_of(self):
        session = make_session()
        assert session.slot_of("alice") == 0
        assert session.slot_of("bob") == 1
        assert session.slot_of("carol") is None

    def test_both_committed(self):
        session = make_session()
        assert not session.both_committed
        session.commitments[0] = b"\x00" * 32
        assert not session.both_committed
        session.commitments[1] = b"\x01" * 32
        assert session.both_committed

    def test_expiry_boundary(self):
        session = make_session()
        assert not session.is_expired(199)
        assert session.is_expired(200)

    def test_snapshot_is_detached(self):
        """Mutating the session after snapshot() does not touch the snapshot."""
        session = make_session()
        session.advance(Phase.ACTIVE)
        snap = session.snapshot()
        session.commitments[0] = b"\x00" * 32

        assert snap.commitment_a is None
        assert snap.phase == Phase.ACTIVE
        assert snap.players == ("alice", "bob")
        assert snap.stakes == (10, 20)
        assert not snap.is_resolved

    def test_snapshot_hides_sealed_proofs(self):
        session = make_session()
        session.sealed_proofs[0] = b"secret"
        snap = session.snapshot()
        assert not hasattr(snap, "sealed_proofs")
        assert b"secret" not in repr(snap).encode()
