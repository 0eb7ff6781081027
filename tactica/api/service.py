"""
API Service - Business logic layer between the HTTP API and the ledger.

The service:
1. Decodes wire formats (hex, base64) into ledger types
2. Runs ledger and gateway operations
3. Formats responses

Expired state (sessions, consumed authorizations, hand-off payloads) is
swept whenever a creation comes in on a newer ledger, and on demand via
collect_expired().

Domain errors (MatchError, CoSignError) propagate unchanged; the app
turns them into ErrorResponses. This layer is framework-agnostic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import base64
import binascii
import logging

from ..config import Settings
from ..cosign import (
    AuthorizationEntry,
    AuthorizationGateway,
    CreationRequest,
    CreationTransaction,
    HandoffBoard,
    verify_handoff,
)
from ..engine_core.errors import MatchValidationError
from ..engine_core.payoff import PAYOFF_TABLE, Tactic
from ..engine_core.state import SessionSnapshot
from ..ledger import SessionLedger, SystemLedgerClock
from .schemas import (
    AuthEntrySchema,
    CommitmentRequest,
    CommitmentResponse,
    CreationRequestSchema,
    CreationResponse,
    HandoffResponse,
    PayoffTableResponse,
    ResolveResponse,
    SessionListResponse,
    SessionPhase,
    SessionResponse,
    SimulateResponse,
    SubmitCreationRequest,
)


logger = logging.getLogger(__name__)


class HandoffNotFound(LookupError):
    """No hand-off payload is waiting for the session and joiner."""


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        sim = service.simulate_creation(request)
        ...  # players sign their stubs off-server
        service.submit_creation(signed)
        service.submit_commitment(session_id, commitment_request)
        service.resolve(session_id)
    """
    settings: Settings = field(default_factory=Settings.from_env)
    ledger: SessionLedger | None = None
    gateway: AuthorizationGateway | None = None
    handoff_board: HandoffBoard | None = None
    _swept_at_ledger: int = field(default=-1, init=False, repr=False)

    def __post_init__(self):
        if self.ledger is None:
            self.ledger = SessionLedger(
                clock=SystemLedgerClock(self.settings.ledger_close_seconds),
                retention_ledgers=self.settings.retention_ledgers,
            )
        if self.gateway is None:
            self.gateway = AuthorizationGateway(self.ledger, network_id=self.settings.network_id)
        if self.handoff_board is None:
            self.handoff_board = HandoffBoard(ttl_seconds=self.settings.handoff_ttl_seconds)

    @property
    def current_ledger(self) -> int:
        return self.ledger.clock.sequence

    # =========================================================================
    # Creation (co-signed)
    # =========================================================================

    def simulate_creation(self, request: CreationRequestSchema) -> SimulateResponse:
        """Build the creation request and return the stubs each player must sign."""
        tx = self.gateway.simulate(self._to_request(request))
        return SimulateResponse(
            request=self._request_to_schema(tx.request),
            request_digest=tx.digest.hex(),
            entries=[self._entry_to_schema(e) for e in tx.entries],
            current_ledger=self.current_ledger,
            ttl_extended_ledgers=self.settings.ttl_extended_ledgers,
        )

    def submit_creation(self, body: SubmitCreationRequest) -> CreationResponse:
        """Submit a fully authorized creation transaction."""
        tx = CreationTransaction(
            request=self._to_request(body.request),
            network_id=self.settings.network_id,
            entries=tuple(self._schema_to_entry(e) for e in body.entries),
            envelope_signature=_decode_hex(body.envelope_signature, "envelope_signature"),
        )
        if self.current_ledger > self._swept_at_ledger:
            self.collect_expired()
        receipt = self.gateway.submit(tx)
        return CreationResponse(
            session_id=receipt.session_id,
            submitter=receipt.submitter,
            tx_hash=receipt.tx_hash,
            ledger_sequence=receipt.ledger_sequence,
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def get_session(self, session_id: int) -> SessionResponse:
        return self._snapshot_to_response(self.ledger.get(session_id))

    def list_sessions(self) -> SessionListResponse:
        sessions = self.ledger.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    def submit_commitment(self, session_id: int, body: CommitmentRequest) -> CommitmentResponse:
        commitment = _decode_hex(body.commitment, "commitment")
        proof = _decode_base64(body.proof, "proof")
        self.ledger.submit(session_id, body.player, commitment, proof)
        snapshot = self.ledger.get(session_id)
        return CommitmentResponse(
            session_id=session_id,
            player=body.player,
            phase=SessionPhase(snapshot.phase.value),
        )

    def resolve(self, session_id: int) -> ResolveResponse:
        winner = self.ledger.resolve(session_id)
        snapshot = self.ledger.get(session_id)
        return ResolveResponse(
            session_id=session_id,
            winner=winner,
            choice_a=snapshot.choice_a,
            choice_b=snapshot.choice_b,
            score_a=snapshot.score_a,
            score_b=snapshot.score_b,
        )

    def collect_expired(self) -> list[int]:
        """
        Reclaim expired sessions, consumed authorizations and hand-off payloads.

        Returns the reclaimed session ids.
        """
        self._swept_at_ledger = self.current_ledger
        reclaimed = self.ledger.collect_expired()
        pruned = self.gateway.prune_consumed()
        swept = self.handoff_board.sweep()
        if reclaimed or pruned or swept:
            logger.info(
                "expired_collected",
                extra={"sessions": len(reclaimed), "authorizations": pruned, "handoffs": swept},
            )
        return reclaimed

    # =========================================================================
    # Hand-off board
    # =========================================================================

    def post_handoff(self, session_id: int, joiner: str, payload: str) -> HandoffResponse:
        """Publish a joiner's payload after checking the joiner really signed it."""
        verify_handoff(payload, session_id, joiner, self.settings.network_id)
        self.handoff_board.post(session_id, joiner, payload)
        return HandoffResponse(session_id=session_id, joiner=joiner, payload=payload)

    def take_handoff(self, session_id: int, joiner: str, consume: bool = True) -> HandoffResponse:
        if consume:
            payload = self.handoff_board.consume(session_id, joiner)
        else:
            payload = self.handoff_board.peek(session_id, joiner)
        if payload is None:
            raise HandoffNotFound(f"No hand-off payload from {joiner} for session {session_id}")
        return HandoffResponse(session_id=session_id, joiner=joiner, payload=payload)

    def discard_handoff(self, session_id: int, joiner: str) -> bool:
        return self.handoff_board.discard(session_id, joiner)

    # =========================================================================
    # Static data
    # =========================================================================

    @staticmethod
    def payoff_table() -> PayoffTableResponse:
        return PayoffTableResponse(
            tactics=[t.label for t in Tactic],
            table=[[list(cell) for cell in row] for row in PAYOFF_TABLE],
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    @staticmethod
    def _to_request(schema: CreationRequestSchema) -> CreationRequest:
        return CreationRequest(
            session_id=schema.session_id,
            player_a=schema.player_a,
            player_b=schema.player_b,
            stake_a=schema.stake_a,
            stake_b=schema.stake_b,
            submitter=schema.submitter or schema.player_a,
        )

    @staticmethod
    def _request_to_schema(request: CreationRequest) -> CreationRequestSchema:
        return CreationRequestSchema(
            session_id=request.session_id,
            player_a=request.player_a,
            player_b=request.player_b,
            stake_a=request.stake_a,
            stake_b=request.stake_b,
            submitter=request.submitter,
        )

    @staticmethod
    def _entry_to_schema(entry: AuthorizationEntry) -> AuthEntrySchema:
        return AuthEntrySchema(
            address=entry.address,
            request_digest=entry.request_digest.hex(),
            nonce=entry.nonce,
            expiry=entry.expiry,
            signature=entry.signature.hex() if entry.signature is not None else None,
        )

    @staticmethod
    def _schema_to_entry(schema: AuthEntrySchema) -> AuthorizationEntry:
        return AuthorizationEntry(
            address=schema.address,
            request_digest=_decode_hex(schema.request_digest, "request_digest"),
            nonce=schema.nonce,
            expiry=schema.expiry,
            signature=(
                _decode_hex(schema.signature, "signature")
                if schema.signature is not None else None
            ),
        )

    @staticmethod
    def _snapshot_to_response(snapshot: SessionSnapshot) -> SessionResponse:
        return SessionResponse(
            session_id=snapshot.session_id,
            phase=SessionPhase(snapshot.phase.value),
            player_a=snapshot.player_a,
            player_b=snapshot.player_b,
            stake_a=snapshot.stake_a,
            stake_b=snapshot.stake_b,
            commitment_a=snapshot.commitment_a.hex() if snapshot.commitment_a else None,
            commitment_b=snapshot.commitment_b.hex() if snapshot.commitment_b else None,
            choice_a=snapshot.choice_a,
            choice_b=snapshot.choice_b,
            score_a=snapshot.score_a,
            score_b=snapshot.score_b,
            winner=snapshot.winner,
            expires_at_ledger=snapshot.expires_at_ledger,
        )


def _decode_hex(value: str, name: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise MatchValidationError(f"{name} is not valid hex") from None


def _decode_base64(value: str, name: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise MatchValidationError(f"{name} is not valid base64") from None
