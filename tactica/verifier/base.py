"""
Commitment Verifier - Interface for checking a committed tactic.

A verifier answers one question deterministically:
"does this proof attest that the committed private tactic lies in the
four-value domain, bound to this exact session id and commitment?"

Implementations are swappable behind the SessionLedger. The ledger only
ever calls verify() at submission time and open() at resolution time.
"""

from __future__ import annotations
from abc import ABC, abstractmethod


COMMITMENT_SIZE = 32


class CommitmentVerifier(ABC):
    """
    Abstract base class for commitment verifiers.

    verify() must be total: garbage input returns False, it never raises.
    """

    name: str = "abstract"

    @abstractmethod
    def verify(self, session_id: int, commitment: bytes, proof: bytes) -> bool:
        """
        Accept or reject a (commitment, proof) pair for a session.

        Args:
            session_id: Session the commitment must be bound to
            commitment: Public commitment value stored by the ledger
            proof: Opaque proof blob supplied by the player

        Returns:
            True only if the proof genuinely attests the commitment
        """
        ...

    @abstractmethod
    def open(self, session_id: int, commitment: bytes, proof: bytes) -> int:
        """
        Recover the committed tactic from an accepted proof.

        Only called by the ledger at resolution, once both commitments
        are locked in. Raises InvalidProof if the proof does not verify.
        """
        ...


def is_commitment(value: object) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == COMMITMENT_SIZE
