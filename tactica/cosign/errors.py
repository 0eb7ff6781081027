"""
Co-Signing Errors - Failures of the two-party authorization handshake.

Local causes (retryable=False) abort the handshake: a missing stub, a
field that does not match what the initiator expects, a tampered or
replayed entry. Transient causes (retryable=True) may be retried by
re-running Phase 2 alone while the joiner's signature is still valid.
AuthorizationExpired is neither: Phase 1 has to start over.
"""

from __future__ import annotations


class CoSignError(Exception):
    """Base class for co-signing failures."""
    code = "COSIGN_ERROR"
    retryable = False

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class MissingAuthStub(CoSignError):
    """Simulation produced no authorization stub for the expected party."""
    code = "MISSING_AUTH_STUB"


class ForeignStubError(CoSignError):
    """Attempt to sign a stub addressed to someone else."""
    code = "FOREIGN_STUB"


class PayloadMalformed(CoSignError):
    code = "PAYLOAD_MALFORMED"


class FieldMismatch(CoSignError):
    """A field in the received payload differs from what the initiator expects."""
    code = "FIELD_MISMATCH"


class PartyMismatch(FieldMismatch):
    code = "PARTY_MISMATCH"


class SessionMismatch(FieldMismatch):
    code = "SESSION_MISMATCH"


class StakeMismatch(FieldMismatch):
    code = "STAKE_MISMATCH"


class DigestMismatch(CoSignError):
    """A signed entry does not cover the request it is being merged into."""
    code = "DIGEST_MISMATCH"


class SignatureInvalid(CoSignError):
    code = "SIGNATURE_INVALID"


class ReplayRejected(CoSignError):
    code = "REPLAY_REJECTED"


class AuthorizationExpired(CoSignError):
    """The entry's validity window has passed. Phase 1 must restart."""
    code = "AUTHORIZATION_EXPIRED"


class LedgerUnavailable(CoSignError):
    """Submission or simulation failed for a transient reason."""
    code = "LEDGER_UNAVAILABLE"
    retryable = True
