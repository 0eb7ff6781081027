"""
Co-Signing Coordinator - Two-phase asymmetric authorization of a new session.

Only the initiator (player_a) ever submits. The joiner (player_b) never
hands over anything but its own signature, bound to the exact request it
checked.

PHASE 1 (joiner):
    build request with the initiator as submitter -> simulate ->
    find own stub -> sign with extended TTL -> export payload

HAND-OFF:
    payload travels through any side channel (see HandoffBoard)

PHASE 2 (initiator):
    parse payload -> check joiner / session / stakes field by field ->
    check expiry -> rebuild identical request -> merge joiner entry ->
    sign own entry -> sign envelope -> submit

Phase 2 may be re-run after a transient failure as long as the joiner's
entry has not expired. Each run gets a fresh TTL for the initiator's own
entry.
"""

from __future__ import annotations
import logging
import time

from ..config import Settings
from .auth import CreationRequest, Keypair
from .errors import (
    AuthorizationExpired,
    CoSignError,
    PartyMismatch,
    SessionMismatch,
    StakeMismatch,
)
from .gateway import AuthorizationGateway, CreationReceipt
from .payload import HandoffPayload, decode_payload, encode_payload

logger = logging.getLogger(__name__)


class CoSigningCoordinator:
    """
    Runs either side of the co-signing handshake.

    Usage:
        # joiner's client
        blob = coordinator.prepare_as_joiner(9, alice.address, bob, 50, 50)
        board.post(9, bob.address, blob)

        # initiator's client
        receipt = coordinator.finalize_as_initiator(board.consume(9, bob.address), 9, alice, bob.address, 50, 50)
    """

    def __init__(
        self,
        gateway: AuthorizationGateway,
        settings: Settings | None = None,
        retry_delay_seconds: float = 0.0,
    ):
        self.gateway = gateway
        self.settings = settings or Settings()
        self.retry_delay_seconds = retry_delay_seconds

    @property
    def clock(self):
        return self.gateway.clock

    # =========================================================================
    # Phase 1 - joiner
    # =========================================================================

    def prepare_as_joiner(
        self,
        session_id: int,
        initiator: str,
        joiner: Keypair,
        stake_a: int,
        stake_b: int,
    ) -> str:
        """
        Sign the joiner's authorization for a creation request.

        Args:
            session_id: Session to create
            initiator: Initiator's address (player_a, the submitter)
            joiner: Joiner's keypair (player_b)
            stake_a: Initiator's stake
            stake_b: Joiner's stake

        Returns:
            Opaque hand-off payload for the initiator
        """
        request = CreationRequest(
            session_id=session_id,
            player_a=initiator,
            player_b=joiner.address,
            stake_a=stake_a,
            stake_b=stake_b,
            submitter=initiator,
        )
        tx = self.gateway.simulate(request)

        stub = tx.entry_for(joiner.address)

        expiry = self.clock.sequence + self.settings.ttl_extended_ledgers
        signed = stub.sign(joiner, expiry=expiry, network_id=self.gateway.network_id)

        logger.info(
            "joiner_signed",
            extra={"session_id": session_id, "joiner": joiner.address, "expiry": expiry},
        )
        return encode_payload(HandoffPayload.from_entry(
            signed,
            session_id=session_id,
            player_a=initiator,
            player_b=joiner.address,
            stake_a=stake_a,
            stake_b=stake_b,
        ))

    # =========================================================================
    # Phase 2 - initiator
    # =========================================================================

    def finalize_as_initiator(
        self,
        payload: str,
        session_id: int,
        initiator: Keypair,
        joiner: str,
        stake_a: int,
        stake_b: int,
        max_attempts: int | None = None,
    ) -> CreationReceipt:
        """
        Validate the joiner's payload, complete the transaction and submit it.

        Field checks run before anything is simulated or submitted, so a
        mismatched payload never reaches the ledger.

        Raises:
            PayloadMalformed, PartyMismatch, SessionMismatch, StakeMismatch:
                local causes, never retried
            AuthorizationExpired: the joiner's entry is no longer valid
            LedgerUnavailable: still failing after max_attempts
        """
        parsed = decode_payload(payload)
        self._check_fields(parsed, session_id, initiator.address, joiner, stake_a, stake_b)
        joiner_entry = parsed.to_entry()

        attempts = max_attempts or self.settings.finalize_max_attempts
        attempt = 1
        while True:
            try:
                return self._finalize_once(joiner_entry, session_id, initiator, joiner,
                                           stake_a, stake_b)
            except CoSignError as e:
                if not e.retryable or attempt >= attempts:
                    raise
                logger.warning(
                    "finalize_retry",
                    extra={"session_id": session_id, "attempt": attempt, "error_code": e.code},
                )
                attempt += 1
                if self.retry_delay_seconds:
                    time.sleep(self.retry_delay_seconds)

    def _finalize_once(self, joiner_entry, session_id, initiator, joiner, stake_a, stake_b):
        now = self.clock.sequence
        if joiner_entry.is_expired(now):
            raise AuthorizationExpired(
                f"Joiner authorization expired at ledger {joiner_entry.expiry} (now {now})",
                field="expiry",
            )

        request = CreationRequest(
            session_id=session_id,
            player_a=initiator.address,
            player_b=joiner,
            stake_a=stake_a,
            stake_b=stake_b,
            submitter=initiator.address,
        )
        tx = self.gateway.simulate(request).merge(joiner_entry)

        own_stub = tx.entry_for(initiator.address)
        own_expiry = now + self.settings.ttl_extended_ledgers
        tx = tx.merge(own_stub.sign(initiator, expiry=own_expiry, network_id=self.gateway.network_id))
        tx = tx.sign_envelope(initiator)

        receipt = self.gateway.submit(tx)
        logger.info(
            "initiator_finalized",
            extra={"session_id": session_id, "tx_hash": receipt.tx_hash},
        )
        return receipt

    @staticmethod
    def _check_fields(
        parsed: HandoffPayload,
        session_id: int,
        initiator: str,
        joiner: str,
        stake_a: int,
        stake_b: int,
    ) -> None:
        if parsed.entry.address != joiner or parsed.player_b != joiner:
            raise PartyMismatch("Authorization is not from the expected joiner", field="joiner")
        if parsed.player_a != initiator:
            raise PartyMismatch("Authorization names a different initiator", field="initiator")
        if parsed.session_id != session_id:
            raise SessionMismatch(
                f"Authorization is for session {parsed.session_id}, expected {session_id}",
                field="session_id",
            )
        if parsed.stake_a != stake_a:
            raise StakeMismatch(
                f"Initiator stake {parsed.stake_a} does not match expected {stake_a}",
                field="stake_a",
            )
        if parsed.stake_b != stake_b:
            raise StakeMismatch(
                f"Joiner stake {parsed.stake_b} does not match expected {stake_b}",
                field="stake_b",
            )
