"""
Pytest fixtures for Tactica tests.
"""

import pytest

from ..config import Settings
from ..cosign import (
    AuthorizationGateway,
    CoSigningCoordinator,
    HandoffBoard,
    Keypair,
    LedgerUnavailable,
)
from ..ledger import ManualLedgerClock, RecordingSettlement, SessionLedger
from ..verifier import commit_tactic


class FlakyGateway(AuthorizationGateway):
    """Gateway whose submit() fails transiently a fixed number of times."""

    def __init__(self, ledger, network_id, failures=1):
        super().__init__(ledger, network_id)
        self.failures = failures
        self.submit_calls = 0

    def submit(self, tx):
        self.submit_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise LedgerUnavailable("Ledger temporarily unavailable")
        return super().submit(tx)


@pytest.fixture
def settings() -> Settings:
    """Default settings with a short co-signing window for expiry tests."""
    return Settings(ledger_close_seconds=5, auth_ttl_minutes=1, multisig_auth_ttl_minutes=10)


@pytest.fixture
def clock() -> ManualLedgerClock:
    return ManualLedgerClock(start=1000)


@pytest.fixture
def settlement() -> RecordingSettlement:
    return RecordingSettlement()


@pytest.fixture
def ledger(clock, settlement) -> SessionLedger:
    """Ledger on a manual clock with a small retention window."""
    return SessionLedger(clock=clock, settlement=settlement, retention_ledgers=100)


@pytest.fixture
def alice() -> Keypair:
    return Keypair.from_seed(b"\x01" * 32)


@pytest.fixture
def bob() -> Keypair:
    return Keypair.from_seed(b"\x02" * 32)


@pytest.fixture
def mallory() -> Keypair:
    return Keypair.from_seed(b"\x03" * 32)


@pytest.fixture
def gateway(ledger, settings) -> AuthorizationGateway:
    return AuthorizationGateway(ledger, network_id=settings.network_id)


@pytest.fixture
def coordinator(gateway, settings) -> CoSigningCoordinator:
    return CoSigningCoordinator(gateway, settings=settings)


@pytest.fixture
def board() -> HandoffBoard:
    return HandoffBoard(ttl_seconds=60)


@pytest.fixture
def flaky_factory(ledger, settings):
    """Build a coordinator over a gateway that fails ``failures`` times."""
    def make(failures: int, max_attempts: int = 3):
        gateway = FlakyGateway(ledger, settings.network_id, failures=failures)
        coordinator = CoSigningCoordinator(
            gateway,
            settings=Settings(
                multisig_auth_ttl_minutes=settings.multisig_auth_ttl_minutes,
                auth_ttl_minutes=settings.auth_ttl_minutes,
                finalize_max_attempts=max_attempts,
            ),
        )
        return gateway, coordinator
    return make


@pytest.fixture
def active_session(ledger):
    """Session 7 between alice and bob with stakes 100/100."""
    ledger.create(7, "alice", "bob", 100, 100)
    return 7


def commit_both(ledger, session_id, tactic_a, tactic_b, player_a="alice", player_b="bob"):
    """Submit valid commitments for both players."""
    commitment_a, proof_a = commit_tactic(session_id, tactic_a)
    commitment_b, proof_b = commit_tactic(session_id, tactic_b)
    ledger.submit(session_id, player_a, commitment_a, proof_a)
    ledger.submit(session_id, player_b, commitment_b, proof_b)
