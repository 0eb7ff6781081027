"""
Engine Core - Session record, phase machine, payoff resolution and errors.

Everything here is deterministic and free of I/O:
1. Session / SessionSnapshot hold the canonical match state
2. Phase and PHASE_TRANSITIONS define the only legal lifecycle
3. resolve() turns two tactics into scores and a winner
"""

from .errors import (
    MatchError,
    NotFoundError,
    AuthorizationError,
    SequencingError,
    MatchValidationError,
    GameNotFound,
    NotPlayer,
    AlreadySubmitted,
    BothPlayersNotSubmitted,
    GameAlreadyEnded,
    DuplicateSession,
    InvalidTransition,
    InvalidProof,
    InvalidTactic,
    SelfPlay,
    InvalidStake,
    InvalidSessionId,
)
from .state import (
    MAX_SESSION_ID,
    Phase,
    PHASE_TRANSITIONS,
    Session,
    SessionSnapshot,
    can_transition,
    check_session_id,
)
from .payoff import Tactic, PAYOFF_TABLE, Resolution, resolve, score, validate_tactic

__all__ = [
    "MatchError",
    "NotFoundError",
    "AuthorizationError",
    "SequencingError",
    "MatchValidationError",
    "GameNotFound",
    "NotPlayer",
    "AlreadySubmitted",
    "BothPlayersNotSubmitted",
    "GameAlreadyEnded",
    "DuplicateSession",
    "InvalidTransition",
    "InvalidProof",
    "InvalidTactic",
    "SelfPlay",
    "InvalidStake",
    "InvalidSessionId",
    "MAX_SESSION_ID",
    "check_session_id",
    "Phase",
    "PHASE_TRANSITIONS",
    "Session",
    "SessionSnapshot",
    "can_transition",
    "Tactic",
    "PAYOFF_TABLE",
    "Resolution",
    "resolve",
    "score",
    "validate_tactic",
]
