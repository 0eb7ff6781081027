"""
Match Errors - Typed failures raised by the session ledger.

Taxonomy:
- not-found: unknown session id
- authorization: caller is not one of the session's players
- sequencing: duplicate submission, early resolution, acting on a resolved session
- validation: bad proof, bad tactic, self-play, bad stake

Every error carries a stable ``code`` so the API layer can map it to a
response without string matching. Nothing here is retried internally;
retry policy belongs to the caller.
"""

from __future__ import annotations


class MatchError(Exception):
    """Base class for all session ledger errors."""
    code = "MATCH_ERROR"

    def __init__(self, message: str, session_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.session_id = session_id


# =============================================================================
# Categories
# =============================================================================

class NotFoundError(MatchError):
    code = "NOT_FOUND"


class AuthorizationError(MatchError):
    code = "NOT_AUTHORIZED"


class SequencingError(MatchError):
    code = "OUT_OF_SEQUENCE"


class MatchValidationError(MatchError):
    code = "VALIDATION_ERROR"


# =============================================================================
# Concrete errors
# =============================================================================

class GameNotFound(NotFoundError):
    code = "GAME_NOT_FOUND"


class NotPlayer(AuthorizationError):
    code = "NOT_PLAYER"


class AlreadySubmitted(SequencingError):
    code = "ALREADY_SUBMITTED"


class BothPlayersNotSubmitted(SequencingError):
    code = "BOTH_PLAYERS_NOT_SUBMITTED"


class GameAlreadyEnded(SequencingError):
    code = "GAME_ALREADY_ENDED"


class DuplicateSession(SequencingError):
    code = "DUPLICATE_SESSION"


class InvalidTransition(SequencingError):
    """A phase change outside the transition table. Indicates a ledger bug."""
    code = "INVALID_TRANSITION"


class InvalidProof(MatchValidationError):
    code = "INVALID_PROOF"


class InvalidTactic(MatchValidationError):
    code = "INVALID_TACTIC"


class SelfPlay(MatchValidationError):
    code = "SELF_PLAY"


class InvalidStake(MatchValidationError):
    code = "INVALID_STAKE"


class InvalidSessionId(MatchValidationError):
    """Session ids are unsigned 32-bit integers."""
    code = "INVALID_SESSION_ID"
