"""
Configuration - Environment-driven settings.

All knobs are read from TACTICA_* environment variables:

    TACTICA_ENV                         development | production
    TACTICA_NETWORK_ID                  network passphrase bound into every request digest
    TACTICA_LEDGER_CLOSE_SECONDS        seconds per ledger (expiry arithmetic)
    TACTICA_RETENTION_LEDGERS           how long a session record stays live
    TACTICA_AUTH_TTL_MINUTES            single-party authorization window
    TACTICA_MULTISIG_AUTH_TTL_MINUTES   co-signing window (needs a round trip)
    TACTICA_FINALIZE_MAX_ATTEMPTS       Phase 2 retries on transient failures
    TACTICA_HANDOFF_TTL_SECONDS         lifetime of a hand-off board entry
    TACTICA_ALLOWED_ORIGINS             comma-separated CORS origins
    TACTICA_LOG_LEVEL                   logging level name
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math
import os


DEFAULT_NETWORK_ID = "Tactica Local Network ; 2026"

# ~30 days at 5s per ledger
GAME_TTL_LEDGERS = 518_400


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings. Immutable once loaded."""
    env: str = "development"
    network_id: str = DEFAULT_NETWORK_ID
    ledger_close_seconds: int = 5
    retention_ledgers: int = GAME_TTL_LEDGERS
    auth_ttl_minutes: int = 5
    multisig_auth_ttl_minutes: int = 60
    finalize_max_attempts: int = 3
    handoff_ttl_seconds: int = 3600
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def __post_init__(self):
        if self.ledger_close_seconds <= 0:
            raise ValueError("ledger_close_seconds must be positive")
        if self.multisig_auth_ttl_minutes < self.auth_ttl_minutes:
            raise ValueError("multisig_auth_ttl_minutes must not be shorter than auth_ttl_minutes")
        if self.finalize_max_attempts < 1:
            raise ValueError("finalize_max_attempts must be at least 1")

    @property
    def ttl_ledgers(self) -> int:
        """Validity window of a normal single-party authorization, in ledgers."""
        return self._minutes_to_ledgers(self.auth_ttl_minutes)

    @property
    def ttl_extended_ledgers(self) -> int:
        """Validity window of a co-signed authorization, in ledgers."""
        return self._minutes_to_ledgers(self.multisig_auth_ttl_minutes)

    def _minutes_to_ledgers(self, minutes: int) -> int:
        return max(1, math.ceil(minutes * 60 / self.ledger_close_seconds))

    @classmethod
    def from_env(cls) -> Settings:
        origins = os.getenv("TACTICA_ALLOWED_ORIGINS", "*")
        return cls(
            env=os.getenv("TACTICA_ENV", "development"),
            network_id=os.getenv("TACTICA_NETWORK_ID", DEFAULT_NETWORK_ID),
            ledger_close_seconds=_env_int("TACTICA_LEDGER_CLOSE_SECONDS", 5),
            retention_ledgers=_env_int("TACTICA_RETENTION_LEDGERS", GAME_TTL_LEDGERS),
            auth_ttl_minutes=_env_int("TACTICA_AUTH_TTL_MINUTES", 5),
            multisig_auth_ttl_minutes=_env_int("TACTICA_MULTISIG_AUTH_TTL_MINUTES", 60),
            finalize_max_attempts=_env_int("TACTICA_FINALIZE_MAX_ATTEMPTS", 3),
            handoff_ttl_seconds=_env_int("TACTICA_HANDOFF_TTL_SECONDS", 3600),
            allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("TACTICA_LOG_LEVEL", "INFO").upper(),
        )
