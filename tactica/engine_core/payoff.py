"""
Payoff Table - Resolution of two revealed tactics into scores and a winner.

Pure function, no state. The table is static configuration:
[player_a tactic][player_b tactic] = (score_a, score_b)

The table is mirror-symmetric: swapping both the indices and the two
scores yields the mirrored entry. Ties (including the whole diagonal)
go to player_a.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum

from .errors import InvalidTactic


class Tactic(IntEnum):
    """Tactical formations a player can commit to."""
    DEFENSIVE = 0
    BALANCED = 1
    AGGRESSIVE = 2
    ALL_OUT = 3

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


TACTIC_COUNT = len(Tactic)

PAYOFF_TABLE: tuple[tuple[tuple[int, int], ...], ...] = (
    # vs Defensive, Balanced, Aggressive, AllOut
    ((0, 0), (0, 1), (1, 1), (2, 2)),  # Defensive
    ((1, 0), (1, 1), (2, 3), (2, 3)),  # Balanced
    ((1, 1), (3, 2), (2, 2), (3, 3)),  # Aggressive
    ((2, 2), (3, 2), (3, 3), (4, 4)),  # AllOut
)


@dataclass(frozen=True)
class Resolution:
    """Outcome of one match. winner_index is 0 for player_a, 1 for player_b."""
    choice_a: int
    choice_b: int
    score_a: int
    score_b: int
    winner_index: int

    @property
    def is_draw(self) -> bool:
        return self.score_a == self.score_b

    def winner_of(self, player_a: str, player_b: str) -> str:
        return player_a if self.winner_index == 0 else player_b


def validate_tactic(choice: int) -> Tactic:
    """Coerce ``choice`` into a Tactic or raise InvalidTactic."""
    if isinstance(choice, bool) or not isinstance(choice, int):
        raise InvalidTactic(f"Tactic must be an integer, got {choice!r}")
    try:
        return Tactic(choice)
    except ValueError:
        raise InvalidTactic(f"Tactic must be in 0..{TACTIC_COUNT - 1}, got {choice}") from None


def score(choice_a: int, choice_b: int) -> tuple[int, int]:
    a = validate_tactic(choice_a)
    b = validate_tactic(choice_b)
    return PAYOFF_TABLE[a][b]


def resolve(choice_a: int, choice_b: int) -> Resolution:
    """
    Resolve two tactics into scores and a winner.

    Strictly higher score wins; equal scores go to player_a.
    """
    score_a, score_b = score(choice_a, choice_b)
    winner_index = 0 if score_a >= score_b else 1
    return Resolution(
        choice_a=int(choice_a),
        choice_b=int(choice_b),
        score_a=score_a,
        score_b=score_b,
        winner_index=winner_index,
    )


def is_mirror_symmetric(table=PAYOFF_TABLE) -> bool:
    """Check table[a][b] == reversed(table[b][a]) for every cell."""
    size = len(table)
    for a in range(size):
        for b in range(size):
            sa, sb = table[a][b]
            if table[b][a] != (sb, sa):
                return False
    return True
