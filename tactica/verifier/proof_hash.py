"""
Proof-Hash Verifier - Lightweight stub verifier.

The commitment is simply SHA-256 of the proof blob, and the blob starts
with tactic:u32be | session_id:u32be. Useful for local play and tests
where a real proving backend is not wired in. Anything after the first
8 bytes (e.g. a real backend's proof bytes) is carried along untouched.
"""

from __future__ import annotations
import hashlib
import hmac
import struct

from ..engine_core.errors import InvalidProof
from ..engine_core.payoff import TACTIC_COUNT, validate_tactic
from ..engine_core.state import check_session_id
from .base import CommitmentVerifier, is_commitment


_PREFIX = struct.Struct(">II")
MIN_PROOF_SIZE = _PREFIX.size


def build_stub_proof(session_id: int, tactic: int, padding: bytes = b"") -> tuple[bytes, bytes]:
    """Return (commitment, proof) for the stub scheme."""
    check_session_id(session_id)
    tactic = int(validate_tactic(tactic))
    proof = _PREFIX.pack(tactic, session_id) + padding
    return hashlib.sha256(proof).digest(), proof


class ProofHashVerifier(CommitmentVerifier):
    """Accepts proofs whose hash equals the commitment and whose prefix is well-formed."""

    name = "proof-hash"

    def verify(self, session_id: int, commitment: bytes, proof: bytes) -> bool:
        return self._parse(session_id, commitment, proof) is not None

    def open(self, session_id: int, commitment: bytes, proof: bytes) -> int:
        tactic = self._parse(session_id, commitment, proof)
        if tactic is None:
            raise InvalidProof("Proof hash does not match commitment", session_id=session_id)
        return tactic

    def _parse(self, session_id: int, commitment: bytes, proof: bytes) -> int | None:
        if not isinstance(proof, (bytes, bytearray)) or len(proof) < MIN_PROOF_SIZE:
            return None
        if not is_commitment(commitment):
            return None
        tactic, bound_session = _PREFIX.unpack_from(proof)
        if bound_session != session_id or tactic >= TACTIC_COUNT:
            return None
        if not hmac.compare_digest(hashlib.sha256(bytes(proof)).digest(), bytes(commitment)):
            return None
        return tactic
