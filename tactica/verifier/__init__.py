"""
Verifier Module - Pluggable commitment verification.

The ledger depends only on CommitmentVerifier. Two implementations ship:
- HashOpeningVerifier: salted SHA-256 commitment, proof carries the opening (default)
- ProofHashVerifier: commitment is the hash of the proof blob (stub scheme)

Provers use commit_tactic() / build_stub_proof() to produce matching
(commitment, proof) pairs.
"""

from .base import CommitmentVerifier, COMMITMENT_SIZE, is_commitment
from .hash_opening import (
    HashOpeningVerifier,
    commit_tactic,
    compute_commitment,
    PROOF_SIZE,
)
from .proof_hash import ProofHashVerifier, build_stub_proof

__all__ = [
    "CommitmentVerifier",
    "COMMITMENT_SIZE",
    "is_commitment",
    "HashOpeningVerifier",
    "commit_tactic",
    "compute_commitment",
    "PROOF_SIZE",
    "ProofHashVerifier",
    "build_stub_proof",
]
