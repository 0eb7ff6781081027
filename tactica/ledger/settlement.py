"""
Settlement Hook - Notifications to the external game hub.

The hub locks stakes when a session starts and pays out when it ends.
Settlement itself is outside this package; the ledger only tells the hub
what happened.
"""

from __future__ import annotations
from dataclasses import dataclass, field


class SettlementHook:
    """Default hook: does nothing. Subclass to forward to a real hub."""

    def start_game(
        self,
        session_id: int,
        player_a: str,
        player_b: str,
        stake_a: int,
        stake_b: int,
    ) -> None:
        pass

    def end_game(self, session_id: int, winner: str, player_a_won: bool) -> None:
        pass


@dataclass
class RecordingSettlement(SettlementHook):
    """Keeps every notification in memory, in arrival order."""
    started: list[tuple[int, str, str, int, int]] = field(default_factory=list)
    ended: list[tuple[int, str]] = field(default_factory=list)

    def start_game(self, session_id, player_a, player_b, stake_a, stake_b) -> None:
        self.started.append((session_id, player_a, player_b, stake_a, stake_b))

    def end_game(self, session_id, winner, player_a_won) -> None:
        self.ended.append((session_id, winner))
