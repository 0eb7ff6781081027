"""
FastAPI Application - REST API for match clients.

Endpoints:
    GET    /health                              Health check
    GET    /api/v1/payoffs                      Static payoff table
    POST   /api/v1/sessions/simulate            Build creation request, get stubs to sign
    POST   /api/v1/sessions                     Submit a co-signed creation request
    GET    /api/v1/sessions                     List live sessions
    GET    /api/v1/sessions/{id}                Session snapshot
    POST   /api/v1/sessions/{id}/commitments    Submit commitment + proof
    POST   /api/v1/sessions/{id}/resolve        Resolve the match
    PUT    /api/v1/handoff/{id}/{joiner}        Post a joiner-signed hand-off payload
    GET    /api/v1/handoff/{id}/{joiner}        Take (or peek at) a hand-off payload
    DELETE /api/v1/handoff/{id}/{joiner}        Discard a hand-off payload

Co-signing flow:
    1. Joiner: POST /sessions/simulate, sign own stub, PUT /handoff/{id}/{joiner}
    2. Initiator: GET /handoff/{id}/{joiner}, verify fields, sign own stub and envelope
    3. Initiator: POST /sessions

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional
import logging

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Settings
from ..cosign.errors import (
    AuthorizationExpired,
    CoSignError,
    LedgerUnavailable,
    ReplayRejected,
)
from ..engine_core.errors import (
    AuthorizationError,
    MatchError,
    NotFoundError,
    SequencingError,
)
from .schemas import (
    CommitmentRequest,
    CommitmentResponse,
    CreationRequestSchema,
    CreationResponse,
    ErrorCode,
    ErrorResponse,
    HandoffRequest,
    HandoffResponse,
    HealthResponse,
    PayoffTableResponse,
    ResolveResponse,
    SessionListResponse,
    SessionResponse,
    SimulateResponse,
    SubmitCreationRequest,
)
from .service import APIService, HandoffNotFound

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def status_for(error: Exception) -> int:
    """HTTP status for a domain error, by category."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, SequencingError):
        return 409
    if isinstance(error, AuthorizationExpired):
        return 410
    if isinstance(error, LedgerUnavailable):
        return 503
    if isinstance(error, ReplayRejected):
        return 409
    return 400


def error_code_for(error: Exception) -> ErrorCode:
    try:
        return ErrorCode(getattr(error, "code", ""))
    except ValueError:
        return ErrorCode.VALIDATION_ERROR


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    if service is None:
        service = APIService(settings=settings or Settings.from_env())
    api_service = service

    app = FastAPI(
        title="Tactica Match API",
        description="""
Two-party committed tactical matches.

## Match Flow

1. Both players co-sign the creation request (see `/sessions/simulate`)
2. Each player submits a commitment and proof
3. Anyone resolves the match once both commitments are in

## Tactics

`0` Defensive, `1` Balanced, `2` Aggressive, `3` All Out.
Ties go to player A.
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_service.settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(MatchError)
    async def match_error_handler(request: Request, exc: MatchError) -> JSONResponse:
        return make_error_response(
            error_code_for(exc),
            exc.message,
            status_code=status_for(exc),
            details={"session_id": exc.session_id} if exc.session_id is not None else None,
        )

    @app.exception_handler(CoSignError)
    async def cosign_error_handler(request: Request, exc: CoSignError) -> JSONResponse:
        details = {"retryable": exc.retryable}
        if exc.field:
            details["field"] = exc.field
        return make_error_response(
            error_code_for(exc),
            exc.message,
            status_code=status_for(exc),
            details=details,
        )

    @app.exception_handler(HandoffNotFound)
    async def handoff_error_handler(request: Request, exc: HandoffNotFound) -> JSONResponse:
        return make_error_response(ErrorCode.HANDOFF_NOT_FOUND, str(exc), status_code=404)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/simulate",
        response_model=SimulateResponse,
        responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Simulate a creation request",
    )
    async def simulate_session(body: CreationRequestSchema) -> SimulateResponse:
        """Return the request digest and one unsigned authorization stub per player."""
        return api_service.simulate_creation(body)

    @app.post(
        "/api/v1/sessions",
        response_model=CreationResponse,
        status_code=201,
        responses={
            400: {"model": ErrorResponse, "description": "Authorization rejected"},
            409: {"model": ErrorResponse, "description": "Duplicate session or replay"},
            410: {"model": ErrorResponse, "description": "Authorization expired"},
        },
        tags=["Sessions"],
        summary="Create a session from a co-signed request",
    )
    async def create_session(body: SubmitCreationRequest) -> CreationResponse:
        return api_service.submit_creation(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List live sessions",
    )
    async def list_sessions() -> SessionListResponse:
        return api_service.list_sessions()

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session snapshot",
    )
    async def get_session(session_id: int) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/commitments",
        response_model=CommitmentResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid proof"},
            403: {"model": ErrorResponse, "description": "Not a player"},
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Already submitted or ended"},
        },
        tags=["Match"],
        summary="Submit a commitment with its proof",
    )
    async def submit_commitment(session_id: int, body: CommitmentRequest) -> CommitmentResponse:
        """
        Submit a player's hidden tactic.

        **Request Body:**
        ```json
        {"player": "G...", "commitment": "<64 hex chars>", "proof": "<base64>"}
        ```
        """
        return api_service.submit_commitment(session_id, body)

    @app.post(
        "/api/v1/sessions/{session_id}/resolve",
        response_model=ResolveResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Match"],
        summary="Resolve a match",
    )
    async def resolve_session(session_id: int) -> ResolveResponse:
        return api_service.resolve(session_id)

    # =========================================================================
    # Hand-off Endpoints
    # =========================================================================

    @app.put(
        "/api/v1/handoff/{session_id}/{joiner}",
        response_model=HandoffResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Payload malformed or not signed by the joiner"},
        },
        tags=["Co-signing"],
        summary="Post a joiner's signed payload",
    )
    async def post_handoff(session_id: int, joiner: str, body: HandoffRequest) -> HandoffResponse:
        """Only a payload signed by ``joiner`` for this session is accepted."""
        return api_service.post_handoff(session_id, joiner, body.payload)

    @app.get(
        "/api/v1/handoff/{session_id}/{joiner}",
        response_model=HandoffResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Co-signing"],
        summary="Take a joiner's signed payload",
    )
    async def get_handoff(
        session_id: int,
        joiner: str,
        consume: Annotated[bool, Query(description="Remove the payload once read")] = True,
    ) -> HandoffResponse:
        return api_service.take_handoff(session_id, joiner, consume=consume)

    @app.delete(
        "/api/v1/handoff/{session_id}/{joiner}",
        tags=["Co-signing"],
        summary="Discard a hand-off payload",
    )
    async def delete_handoff(session_id: int, joiner: str) -> dict:
        return {
            "session_id": session_id,
            "joiner": joiner,
            "discarded": api_service.discard_handoff(session_id, joiner),
        }

    # =========================================================================
    # Static data & Health
    # =========================================================================

    @app.get(
        "/api/v1/payoffs",
        response_model=PayoffTableResponse,
        tags=["Match"],
        summary="Payoff table",
    )
    async def payoffs() -> PayoffTableResponse:
        return api_service.payoff_table()

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="tactica",
            version=API_VERSION,
            ledger=api_service.current_ledger,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Tactica Match API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.info("app_created", extra={"env": api_service.settings.env})
    return app
