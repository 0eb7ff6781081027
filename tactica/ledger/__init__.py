"""
Ledger Module - Owns the canonical session state.

A session represents one tactical match between two players:
- Created by a fully co-signed creation request
- Holds both commitments until both players have submitted
- Resolved exactly once, then kept until its retention window ends

The ledger is the only place session state is mutated.
"""

from .manager import SessionLedger
from .clock import LedgerClock, SystemLedgerClock, ManualLedgerClock
from .settlement import SettlementHook, RecordingSettlement

__all__ = [
    "SessionLedger",
    "LedgerClock",
    "SystemLedgerClock",
    "ManualLedgerClock",
    "SettlementHook",
    "RecordingSettlement",
]
