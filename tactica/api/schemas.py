"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Binary values travel as text:
- commitments, digests, signatures: lowercase hex
- proofs: standard base64

Error Codes:
- GAME_NOT_FOUND: Session does not exist or has expired
- NOT_PLAYER: Caller is not one of the session's players
- ALREADY_SUBMITTED / BOTH_PLAYERS_NOT_SUBMITTED / GAME_ALREADY_ENDED: out of sequence
- INVALID_PROOF / INVALID_TACTIC / SELF_PLAY / INVALID_STAKE / INVALID_SESSION_ID: validation
- *_MISMATCH / SIGNATURE_INVALID / REPLAY_REJECTED: co-signing rejected
- AUTHORIZATION_EXPIRED: co-signing window elapsed, restart Phase 1
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import MAX_SESSION_ID


# =============================================================================
# Enums
# =============================================================================

class SessionPhase(str, Enum):
    """Session phase values."""
    CREATED = "created"
    ACTIVE = "active"
    AWAITING_BOTH = "awaiting_both"
    RESOLVED = "resolved"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    NOT_PLAYER = "NOT_PLAYER"
    ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
    BOTH_PLAYERS_NOT_SUBMITTED = "BOTH_PLAYERS_NOT_SUBMITTED"
    GAME_ALREADY_ENDED = "GAME_ALREADY_ENDED"
    DUPLICATE_SESSION = "DUPLICATE_SESSION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_PROOF = "INVALID_PROOF"
    INVALID_TACTIC = "INVALID_TACTIC"
    SELF_PLAY = "SELF_PLAY"
    INVALID_STAKE = "INVALID_STAKE"
    INVALID_SESSION_ID = "INVALID_SESSION_ID"
    MISSING_AUTH_STUB = "MISSING_AUTH_STUB"
    FOREIGN_STUB = "FOREIGN_STUB"
    PAYLOAD_MALFORMED = "PAYLOAD_MALFORMED"
    PARTY_MISMATCH = "PARTY_MISMATCH"
    SESSION_MISMATCH = "SESSION_MISMATCH"
    STAKE_MISMATCH = "STAKE_MISMATCH"
    DIGEST_MISMATCH = "DIGEST_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    REPLAY_REJECTED = "REPLAY_REJECTED"
    AUTHORIZATION_EXPIRED = "AUTHORIZATION_EXPIRED"
    LEDGER_UNAVAILABLE = "LEDGER_UNAVAILABLE"
    HANDOFF_NOT_FOUND = "HANDOFF_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CreationRequestSchema(BaseModel):
    """Arguments of a session-creation call."""
    session_id: int = Field(ge=0, le=MAX_SESSION_ID)
    player_a: str = Field(description="Initiator address")
    player_b: str = Field(description="Joiner address")
    stake_a: int = Field(ge=0)
    stake_b: int = Field(ge=0)
    submitter: Optional[str] = Field(None, description="Defaults to player_a")


class AuthEntrySchema(BaseModel):
    """An authorization entry; stubs have no expiry or signature."""
    address: str
    request_digest: str
    nonce: int
    expiry: Optional[int] = None
    signature: Optional[str] = None


# =============================================================================
# Sessions
# =============================================================================

class SessionResponse(BaseModel):
    """Snapshot of one session."""
    session_id: int
    phase: SessionPhase
    player_a: str
    player_b: str
    stake_a: int
    stake_b: int
    commitment_a: Optional[str] = None
    commitment_b: Optional[str] = None
    choice_a: Optional[int] = None
    choice_b: Optional[int] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    winner: Optional[str] = None
    expires_at_ledger: int


class SessionListResponse(BaseModel):
    sessions: list[int]
    count: int


class SimulateResponse(BaseModel):
    """A simulated creation request with one unsigned stub per player."""
    request: CreationRequestSchema
    request_digest: str
    entries: list[AuthEntrySchema]
    current_ledger: int
    ttl_extended_ledgers: int


class SubmitCreationRequest(BaseModel):
    """A fully authorized creation request, as sent by the submitter."""
    request: CreationRequestSchema
    entries: list[AuthEntrySchema]
    envelope_signature: str


class CreationResponse(BaseModel):
    session_id: int
    submitter: str
    tx_hash: str
    ledger_sequence: int


class CommitmentRequest(BaseModel):
    """A player's commitment with its proof."""
    player: str
    commitment: str = Field(description="32-byte commitment, hex")
    proof: str = Field(description="Proof blob, base64")


class CommitmentResponse(BaseModel):
    session_id: int
    player: str
    phase: SessionPhase


class ResolveResponse(BaseModel):
    session_id: int
    winner: str
    choice_a: int
    choice_b: int
    score_a: int
    score_b: int


# =============================================================================
# Hand-off
# =============================================================================

class HandoffRequest(BaseModel):
    payload: str = Field(min_length=1)


class HandoffResponse(BaseModel):
    session_id: int
    joiner: str
    payload: str


# =============================================================================
# Misc
# =============================================================================

class PayoffTableResponse(BaseModel):
    """The static payoff table, rows are player_a's tactic."""
    tactics: list[str]
    table: list[list[list[int]]]
    tie_break: str = "player_a"


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    ledger: int
