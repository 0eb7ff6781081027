"""
Hand-off Payload - The sealed artifact passed from joiner to initiator.

Wire format:
    "tactica-auth:v1:" + base64url(JSON)

The JSON holds the session id, both players, both stakes and the
joiner's signed authorization entry. The initiator only extracts fields
from it; the signature itself is checked again by the gateway.
verify_handoff() lets a relay refuse payloads the named joiner never signed.
"""

from __future__ import annotations
import base64
import binascii

from pydantic import BaseModel, Field, ValidationError

from .auth import AuthorizationEntry, CreationRequest
from .errors import (
    DigestMismatch,
    PartyMismatch,
    PayloadMalformed,
    SessionMismatch,
    SignatureInvalid,
)


PAYLOAD_VERSION = 1
PAYLOAD_PREFIX = f"tactica-auth:v{PAYLOAD_VERSION}:"


class SignedEntryModel(BaseModel):
    address: str
    request_digest: str = Field(description="hex")
    nonce: int
    expiry: int
    signature: str = Field(description="hex")

    model_config = {"extra": "forbid"}


class HandoffPayload(BaseModel):
    """Fields the joiner bound its signature to, plus the signed entry."""
    version: int = PAYLOAD_VERSION
    session_id: int
    player_a: str
    player_b: str
    stake_a: int
    stake_b: int
    entry: SignedEntryModel

    model_config = {"extra": "forbid"}

    @classmethod
    def from_entry(
        cls,
        entry: AuthorizationEntry,
        session_id: int,
        player_a: str,
        player_b: str,
        stake_a: int,
        stake_b: int,
    ) -> HandoffPayload:
        return cls(
            session_id=session_id,
            player_a=player_a,
            player_b=player_b,
            stake_a=stake_a,
            stake_b=stake_b,
            entry=SignedEntryModel(
                address=entry.address,
                request_digest=entry.request_digest.hex(),
                nonce=entry.nonce,
                expiry=entry.expiry,
                signature=entry.signature.hex(),
            ),
        )

    def to_entry(self) -> AuthorizationEntry:
        try:
            return AuthorizationEntry(
                address=self.entry.address,
                request_digest=bytes.fromhex(self.entry.request_digest),
                nonce=self.entry.nonce,
                expiry=self.entry.expiry,
                signature=bytes.fromhex(self.entry.signature),
            )
        except ValueError as e:
            raise PayloadMalformed(f"Bad hex in signed entry: {e}") from e


def encode_payload(payload: HandoffPayload) -> str:
    raw = payload.model_dump_json().encode("utf-8")
    return PAYLOAD_PREFIX + base64.urlsafe_b64encode(raw).decode("ascii")


def decode_payload(blob: str) -> HandoffPayload:
    """Parse a hand-off blob. Any defect raises PayloadMalformed."""
    if not isinstance(blob, str) or not blob.startswith(PAYLOAD_PREFIX):
        raise PayloadMalformed("Unrecognized hand-off payload prefix")
    try:
        raw = base64.urlsafe_b64decode(blob[len(PAYLOAD_PREFIX):].encode("ascii"))
        payload = HandoffPayload.model_validate_json(raw)
    except (binascii.Error, UnicodeEncodeError, ValidationError) as e:
        raise PayloadMalformed(f"Hand-off payload could not be parsed: {e}") from e
    if payload.version != PAYLOAD_VERSION:
        raise PayloadMalformed(f"Unsupported payload version {payload.version}")
    return payload


def verify_handoff(blob: str, session_id: int, joiner: str, network_id: str) -> HandoffPayload:
    """
    Decode a hand-off blob and check it was signed by ``joiner`` for ``session_id``.

    The signed entry must cover the request rebuilt from the payload's own
    fields, with player_a as submitter. Expiry is not checked here.

    Raises:
        PayloadMalformed, SessionMismatch, PartyMismatch, DigestMismatch,
        SignatureInvalid
    """
    payload = decode_payload(blob)
    if payload.session_id != session_id:
        raise SessionMismatch(
            f"Payload is for session {payload.session_id}, not {session_id}", field="session_id"
        )
    if payload.player_b != joiner or payload.entry.address != joiner:
        raise PartyMismatch("Payload was not signed by the named joiner", field="player_b")

    entry = payload.to_entry()
    request = CreationRequest(
        session_id=payload.session_id,
        player_a=payload.player_a,
        player_b=payload.player_b,
        stake_a=payload.stake_a,
        stake_b=payload.stake_b,
        submitter=payload.player_a,
    )
    if entry.request_digest != request.digest(network_id):
        raise DigestMismatch("Signed entry covers a different request", field="request_digest")
    if not entry.has_valid_signature(network_id):
        raise SignatureInvalid(f"Bad signature from {joiner}", field="signature")
    return payload
