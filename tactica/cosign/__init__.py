"""
Co-Signing Module - Getting two distrusting players into a session.

Two signers jointly authorize one creation request; only the initiator
submits it. Nothing reaches the ledger until both signatures are in
place, so neither stake is ever committed on its own.
"""

from .auth import (
    Keypair,
    CreationRequest,
    AuthorizationEntry,
    CreationTransaction,
    public_key_from_address,
    verify_signature,
)
from .errors import (
    CoSignError,
    MissingAuthStub,
    ForeignStubError,
    PayloadMalformed,
    FieldMismatch,
    PartyMismatch,
    SessionMismatch,
    StakeMismatch,
    DigestMismatch,
    SignatureInvalid,
    ReplayRejected,
    AuthorizationExpired,
    LedgerUnavailable,
)
from .payload import HandoffPayload, encode_payload, decode_payload, verify_handoff
from .gateway import AuthorizationGateway, CreationReceipt
from .coordinator import CoSigningCoordinator
from .handoff import HandoffBoard

__all__ = [
    "Keypair",
    "CreationRequest",
    "AuthorizationEntry",
    "CreationTransaction",
    "public_key_from_address",
    "verify_signature",
    "CoSignError",
    "MissingAuthStub",
    "ForeignStubError",
    "PayloadMalformed",
    "FieldMismatch",
    "PartyMismatch",
    "SessionMismatch",
    "StakeMismatch",
    "DigestMismatch",
    "SignatureInvalid",
    "ReplayRejected",
    "AuthorizationExpired",
    "LedgerUnavailable",
    "HandoffPayload",
    "encode_payload",
    "decode_payload",
    "verify_handoff",
    "AuthorizationGateway",
    "CreationReceipt",
    "CoSigningCoordinator",
    "HandoffBoard",
]
