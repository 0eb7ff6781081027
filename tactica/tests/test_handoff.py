"""
Tests for the hand-off board.
"""

from ..cosign import HandoffBoard


class FakeTime:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestHandoffBoard:
    """Tests for HandoffBoard."""

    def test_consume_once(self, board):
        board.post(9, "bob", "blob")
        assert board.consume(9, "bob") == "blob"
        assert board.consume(9, "bob") is None

    def test_peek_does_not_consume(self, board):
        board.post(9, "bob", "blob")
        assert board.peek(9, "bob") == "blob"
        assert board.peek(9, "bob") == "blob"
        assert board.consume(9, "bob") == "blob"

    def test_joiner_replaces_own_payload(self, board):
        board.post(9, "bob", "first")
        board.post(9, "bob", "second")
        assert board.consume(9, "bob") == "second"

    def test_other_joiner_cannot_displace(self, board):
        board.post(9, "bob", "from bob")
        board.post(9, "mallory", "from mallory")
        assert board.consume(9, "bob") == "from bob"
        assert board.peek(9, "mallory") == "from mallory"

    def test_entries_expire(self):
        fake = FakeTime()
        board = HandoffBoard(ttl_seconds=10, clock=fake)
        entry = board.post(9, "bob", "blob")
        assert entry.expires_at == 10

        fake.now = 9.9
        assert board.peek(9, "bob") == "blob"
        fake.now = 10
        assert board.peek(9, "bob") is None
        assert board.consume(9, "bob") is None

    def test_post_sweeps_expired_entries(self):
        """Unread payloads do not pile up once their TTL has passed."""
        fake = FakeTime()
        board = HandoffBoard(ttl_seconds=10, clock=fake)
        for session_id in range(50):
            board.post(session_id, "bob", "blob")
        assert len(board) == 50

        fake.now = 10
        board.post(100, "bob", "fresh")
        assert len(board) == 1
        assert board.peek(100, "bob") == "fresh"

    def test_sweep(self):
        fake = FakeTime()
        board = HandoffBoard(ttl_seconds=10, clock=fake)
        board.post(1, "bob", "old")
        fake.now = 5
        board.post(2, "bob", "new")

        fake.now = 12
        assert board.sweep() == 1
        assert len(board) == 1
        assert board.sweep() == 0

    def test_discard(self, board):
        board.post(9, "bob", "blob")
        assert board.discard(9, "bob")
        assert not board.discard(9, "bob")
        assert board.peek(9, "bob") is None

    def test_sessions_are_independent(self, board):
        board.post(1, "bob", "one")
        board.post(2, "bob", "two")
        assert board.consume(2, "bob") == "two"
        assert board.peek(1, "bob") == "one"
