"""
Authorization Entries - Partial signatures over a session-creation request.

A creation request names both players and both stakes. Simulating it
yields one unsigned stub per player. Each player signs only their own
stub, over a payload that binds:
- the request digest (session id, both players, both stakes, network)
- a one-time nonce
- an expiry ledger

Changing any bound argument changes the digest, so a signature can
never be carried over to a different request.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
import base64
import binascii
import hashlib
import json

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .errors import DigestMismatch, ForeignStubError, MissingAuthStub


ADDRESS_PREFIX = "G"
CREATE_FUNCTION = "create"


def _canonical(data: dict) -> bytes:
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


# =============================================================================
# Keys and addresses
# =============================================================================

def address_from_public_bytes(public_bytes: bytes) -> str:
    return ADDRESS_PREFIX + base64.b32encode(public_bytes).decode("ascii").rstrip("=")


def public_key_from_address(address: str) -> Ed25519PublicKey:
    """Decode an address back to its public key. Raises ValueError if malformed."""
    if not isinstance(address, str) or not address.startswith(ADDRESS_PREFIX):
        raise ValueError(f"Not an account address: {address!r}")
    body = address[len(ADDRESS_PREFIX):]
    try:
        raw = base64.b32decode(body + "=" * (-len(body) % 8))
    except (binascii.Error, ValueError):
        raise ValueError(f"Not an account address: {address!r}") from None
    if len(raw) != 32:
        raise ValueError(f"Not an account address: {address!r}")
    return Ed25519PublicKey.from_public_bytes(raw)


def verify_signature(address: str, signature: bytes, message: bytes) -> bool:
    try:
        public_key_from_address(address).verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True


class Keypair:
    """
    An Ed25519 signing identity.

    Usage:
        alice = Keypair.random()
        alice.address      # "G..."
        alice.sign(b"msg")
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        public_bytes = private_key.public_key().public_bytes(
            encoding=Encoding.Raw, format=PublicFormat.Raw
        )
        self.address = address_from_public_bytes(public_bytes)

    @classmethod
    def random(cls) -> Keypair:
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> Keypair:
        if len(seed) != 32:
            raise ValueError("Seed must be 32 bytes")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)

    def __repr__(self) -> str:
        return f"Keypair({self.address})"


# =============================================================================
# Requests and entries
# =============================================================================

@dataclass(frozen=True)
class CreationRequest:
    """
    A not-yet-submitted call to SessionLedger.create.

    ``submitter`` is the account that pays for and sends the transaction.
    It is not part of the bound argument set.
    """
    session_id: int
    player_a: str
    player_b: str
    stake_a: int
    stake_b: int
    submitter: str
    function: str = CREATE_FUNCTION

    def bound_args(self) -> dict:
        return {
            "function": self.function,
            "session_id": self.session_id,
            "player_a": self.player_a,
            "player_b": self.player_b,
            "stake_a": self.stake_a,
            "stake_b": self.stake_b,
        }

    def digest(self, network_id: str) -> bytes:
        return hashlib.sha256(
            _canonical({"network_id": network_id, "args": self.bound_args()})
        ).digest()

    @property
    def players(self) -> tuple[str, str]:
        return (self.player_a, self.player_b)


@dataclass(frozen=True)
class AuthorizationEntry:
    """
    One party's authorization over a request digest.

    A stub has neither expiry nor signature.
    """
    address: str
    request_digest: bytes
    nonce: int
    expiry: int | None = None
    signature: bytes | None = None

    @property
    def is_signed(self) -> bool:
        return self.signature is not None and self.expiry is not None

    def signing_payload(self, network_id: str) -> bytes:
        return hashlib.sha256(_canonical({
            "network_id": network_id,
            "address": self.address,
            "request_digest": self.request_digest.hex(),
            "nonce": self.nonce,
            "expiry": self.expiry,
        })).digest()

    def sign(self, keypair: Keypair, expiry: int, network_id: str) -> AuthorizationEntry:
        """Return a signed copy, valid up to and including ledger ``expiry``."""
        if keypair.address != self.address:
            raise ForeignStubError(
                f"Stub is addressed to {self.address}, not {keypair.address}",
                field="address",
            )
        unsigned = replace(self, expiry=expiry, signature=None)
        return replace(unsigned, signature=keypair.sign(unsigned.signing_payload(network_id)))

    def has_valid_signature(self, network_id: str) -> bool:
        if not self.is_signed:
            return False
        return verify_signature(self.address, self.signature, self.signing_payload(network_id))

    def is_expired(self, ledger_sequence: int) -> bool:
        return self.expiry is None or ledger_sequence > self.expiry


@dataclass(frozen=True)
class CreationTransaction:
    """
    A simulated creation request plus its authorization entries.

    Entries are immutable; merge() returns a new transaction.
    """
    request: CreationRequest
    network_id: str
    entries: tuple[AuthorizationEntry, ...] = field(default_factory=tuple)
    envelope_signature: bytes | None = None

    @property
    def digest(self) -> bytes:
        return self.request.digest(self.network_id)

    def entry_for(self, address: str) -> AuthorizationEntry:
        for entry in self.entries:
            if entry.address == address:
                return entry
        raise MissingAuthStub(f"No authorization stub for {address}", field="address")

    def merge(self, signed: AuthorizationEntry) -> CreationTransaction:
        """Swap the stub for ``signed.address`` with the signed entry."""
        stub = self.entry_for(signed.address)
        if signed.request_digest != self.digest:
            raise DigestMismatch(
                "Signed entry does not cover this request", field="request_digest"
            )
        entries = tuple(signed if e is stub else e for e in self.entries)
        return replace(self, entries=entries, envelope_signature=None)

    def unsigned_parties(self) -> list[str]:
        return [e.address for e in self.entries if not e.is_signed]

    def envelope_payload(self) -> bytes:
        return hashlib.sha256(_canonical({
            "network_id": self.network_id,
            "submitter": self.request.submitter,
            "request_digest": self.digest.hex(),
            "entries": [
                [e.address, e.nonce, e.expiry, (e.signature or b"").hex()]
                for e in self.entries
            ],
        })).digest()

    def sign_envelope(self, keypair: Keypair) -> CreationTransaction:
        if keypair.address != self.request.submitter:
            raise ForeignStubError(
                f"Only the submitter {self.request.submitter} can sign the envelope",
                field="submitter",
            )
        return replace(self, envelope_signature=keypair.sign(self.envelope_payload()))

    @property
    def tx_hash(self) -> str:
        return self.envelope_payload().hex()
