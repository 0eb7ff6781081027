"""
Authorization Gateway - The ledger's authorization layer for session creation.

The gateway stands between co-signed transactions and SessionLedger.create:
1. simulate() turns a CreationRequest into a transaction with one stub per player
2. submit() checks the merged transaction and, only if everything holds,
   calls SessionLedger.create

submit() rejects:
- a session id outside the u32 range
- an envelope not signed by the named submitter
- any unsigned, expired, tampered or foreign entry
- any entry whose digest does not cover the submitted request
- any (address, nonce) pair already consumed by an earlier submission

Consumed pairs are remembered until their entry's expiry ledger passes.
After that the entry is refused as expired anyway, so the pair is pruned.

Either both players' authorizations are consumed together with the
create, or nothing happens.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import secrets
import threading

from ..engine_core.errors import DuplicateSession, SelfPlay
from ..engine_core.state import check_session_id
from ..ledger import SessionLedger
from .auth import CreationRequest, CreationTransaction, AuthorizationEntry, verify_signature
from .errors import (
    AuthorizationExpired,
    DigestMismatch,
    MissingAuthStub,
    PartyMismatch,
    ReplayRejected,
    SignatureInvalid,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreationReceipt:
    """Result of a successful co-signed creation."""
    session_id: int
    submitter: str
    tx_hash: str
    ledger_sequence: int


class AuthorizationGateway:
    """
    Usage:
        gateway = AuthorizationGateway(ledger, network_id="...")
        tx = gateway.simulate(request)
        ...  # both players sign their stubs, submitter signs the envelope
        receipt = gateway.submit(tx)
    """

    def __init__(self, ledger: SessionLedger, network_id: str):
        self.ledger = ledger
        self.network_id = network_id
        # (address, nonce) -> expiry ledger of the consumed entry
        self._consumed: dict[tuple[str, int], int] = {}
        self._lock = threading.Lock()

    @property
    def clock(self):
        return self.ledger.clock

    def simulate(self, request: CreationRequest) -> CreationTransaction:
        """
        Dry-run a creation request and emit one unsigned stub per player.

        Fails fast on requests the ledger would refuse anyway.
        """
        check_session_id(request.session_id)
        if request.player_a == request.player_b:
            raise SelfPlay("Cannot play against yourself", session_id=request.session_id)
        if request.session_id in self.ledger:
            raise DuplicateSession(
                f"Session {request.session_id} already exists", session_id=request.session_id
            )

        digest = request.digest(self.network_id)
        stubs = tuple(
            AuthorizationEntry(address=player, request_digest=digest, nonce=secrets.randbits(63))
            for player in request.players
        )
        return CreationTransaction(request=request, network_id=self.network_id, entries=stubs)

    def submit(self, tx: CreationTransaction) -> CreationReceipt:
        """Verify every authorization and create the session atomically."""
        if tx.network_id != self.network_id:
            raise DigestMismatch("Transaction built for another network", field="network_id")

        request = tx.request
        check_session_id(request.session_id)
        if request.submitter not in request.players:
            raise PartyMismatch("Submitter must be one of the players", field="submitter")
        if tx.envelope_signature is None or not verify_signature(
            request.submitter, tx.envelope_signature, tx.envelope_payload()
        ):
            raise SignatureInvalid("Envelope is not signed by the submitter", field="submitter")

        now = self.clock.sequence
        digest = request.digest(self.network_id)
        entries = [tx.entry_for(player) for player in request.players]
        if len(tx.entries) != len(entries):
            raise MissingAuthStub("Transaction carries unexpected authorization entries")

        for entry in entries:
            self._check_entry(entry, digest, now)

        with self._lock:
            self._prune_consumed(now)
            keys = [(e.address, e.nonce) for e in entries]
            if any(key in self._consumed for key in keys):
                raise ReplayRejected("Authorization entry already used")
            self.ledger.create(
                request.session_id,
                request.player_a,
                request.player_b,
                request.stake_a,
                request.stake_b,
            )
            for entry in entries:
                self._consumed[(entry.address, entry.nonce)] = entry.expiry

        logger.info(
            "creation_submitted",
            extra={"session_id": request.session_id, "submitter": request.submitter},
        )
        return CreationReceipt(
            session_id=request.session_id,
            submitter=request.submitter,
            tx_hash=tx.tx_hash,
            ledger_sequence=now,
        )

    @property
    def consumed_count(self) -> int:
        """Number of (address, nonce) pairs currently held for replay checks."""
        with self._lock:
            return len(self._consumed)

    def prune_consumed(self) -> int:
        """Drop replay records whose entries have expired. Returns how many were dropped."""
        now = self.clock.sequence
        with self._lock:
            return self._prune_consumed(now)

    def _prune_consumed(self, now: int) -> int:
        stale = [key for key, expiry in self._consumed.items() if now > expiry]
        for key in stale:
            del self._consumed[key]
        if stale:
            logger.debug("consumed_pruned", extra={"count": len(stale), "ledger": now})
        return len(stale)

    def _check_entry(self, entry: AuthorizationEntry, digest: bytes, now: int) -> None:
        if not entry.is_signed:
            raise SignatureInvalid(f"Authorization from {entry.address} is not signed",
                                   field="signature")
        if entry.request_digest != digest:
            raise DigestMismatch(f"Authorization from {entry.address} covers a different request",
                                 field="request_digest")
        if entry.is_expired(now):
            raise AuthorizationExpired(
                f"Authorization from {entry.address} expired at ledger {entry.expiry}",
                field="expiry",
            )
        if not entry.has_valid_signature(self.network_id):
            raise SignatureInvalid(f"Bad signature from {entry.address}", field="signature")
