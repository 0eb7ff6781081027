"""
Hash-Opening Verifier - Default verifier plus the prover-side helper.

Commitment:
    SHA-256(DOMAIN | session_id:u32be | tactic:u8 | salt:32)

Proof blob (42 bytes):
    MAGIC:4 | version:u8 | session_id:u32be | tactic:u8 | salt:32

The proof carries the opening of the commitment. The ledger keeps the
proof sealed until both players have committed, so neither player can
read the other's tactic through the ledger before resolution.
"""

from __future__ import annotations
import hashlib
import hmac
import secrets
import struct

from ..engine_core.errors import InvalidProof
from ..engine_core.state import MAX_SESSION_ID, check_session_id
from ..engine_core.payoff import TACTIC_COUNT, validate_tactic
from .base import CommitmentVerifier, is_commitment


COMMIT_DOMAIN = b"tactica/commit/v1"
PROOF_MAGIC = b"TCP\x00"
PROOF_VERSION = 1
SALT_SIZE = 32

_HEADER = struct.Struct(">4sBIB")
PROOF_SIZE = _HEADER.size + SALT_SIZE


def compute_commitment(session_id: int, tactic: int, salt: bytes) -> bytes:
    """Commitment for a tactic under a salt, bound to one session."""
    check_session_id(session_id)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")
    return hashlib.sha256(
        COMMIT_DOMAIN + struct.pack(">IB", session_id, tactic) + salt
    ).digest()


def encode_proof(session_id: int, tactic: int, salt: bytes) -> bytes:
    return _HEADER.pack(PROOF_MAGIC, PROOF_VERSION, session_id, tactic) + salt


def commit_tactic(
    session_id: int,
    tactic: int,
    salt: bytes | None = None,
) -> tuple[bytes, bytes]:
    """
    Build a (commitment, proof) pair for a tactic.

    Usage:
        commitment, proof = commit_tactic(7, Tactic.AGGRESSIVE)
        ledger.submit(7, "alice", commitment, proof)

    Args:
        session_id: Session to bind the commitment to
        tactic: Tactic in 0..3
        salt: Optional 32-byte salt (random if omitted)

    Returns:
        Tuple of (commitment, proof)
    """
    check_session_id(session_id)
    tactic = int(validate_tactic(tactic))
    if salt is None:
        salt = secrets.token_bytes(SALT_SIZE)
    commitment = compute_commitment(session_id, tactic, salt)
    return commitment, encode_proof(session_id, tactic, salt)


class HashOpeningVerifier(CommitmentVerifier):
    """Verifies proofs that open a SHA-256 commitment."""

    name = "hash-opening"

    def verify(self, session_id: int, commitment: bytes, proof: bytes) -> bool:
        return self._parse(session_id, commitment, proof) is not None

    def open(self, session_id: int, commitment: bytes, proof: bytes) -> int:
        tactic = self._parse(session_id, commitment, proof)
        if tactic is None:
            raise InvalidProof("Proof does not open the commitment", session_id=session_id)
        return tactic

    def _parse(self, session_id: int, commitment: bytes, proof: bytes) -> int | None:
        if not isinstance(proof, (bytes, bytearray)) or len(proof) != PROOF_SIZE:
            return None
        if not is_commitment(commitment):
            return None
        if not isinstance(session_id, int) or not 0 <= session_id <= MAX_SESSION_ID:
            return None

        magic, version, bound_session, tactic = _HEADER.unpack_from(proof)
        if magic != PROOF_MAGIC or version != PROOF_VERSION:
            return None
        if bound_session != session_id:
            return None
        if tactic >= TACTIC_COUNT:
            return None

        salt = bytes(proof[_HEADER.size:])
        expected = compute_commitment(session_id, tactic, salt)
        if not hmac.compare_digest(expected, bytes(commitment)):
            return None
        return tactic
