"""
API Module - HTTP interface to the session ledger.

Clients:
1. Co-sign a creation request and submit it
2. Submit commitments with proofs
3. Resolve the match and read the outcome

All state lives in the ledger. The API holds nothing but a reference to it.
"""

from .schemas import (
    SessionPhase,
    ErrorCode,
    CreationRequestSchema,
    AuthEntrySchema,
    SessionResponse,
    SessionListResponse,
    SimulateResponse,
    SubmitCreationRequest,
    CreationResponse,
    CommitmentRequest,
    CommitmentResponse,
    ResolveResponse,
    HandoffRequest,
    HandoffResponse,
    PayoffTableResponse,
    ErrorResponse,
    HealthResponse,
)
from .service import APIService, HandoffNotFound
from .app import create_app

__all__ = [
    "SessionPhase",
    "ErrorCode",
    "CreationRequestSchema",
    "AuthEntrySchema",
    "SessionResponse",
    "SessionListResponse",
    "SimulateResponse",
    "SubmitCreationRequest",
    "CreationResponse",
    "CommitmentRequest",
    "CommitmentResponse",
    "ResolveResponse",
    "HandoffRequest",
    "HandoffResponse",
    "PayoffTableResponse",
    "ErrorResponse",
    "HealthResponse",
    "APIService",
    "HandoffNotFound",
    "create_app",
]
