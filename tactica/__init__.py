"""
Tactica - Two-player committed tactical matches.

Two players each commit to a hidden tactic, prove their commitment,
and a static payoff table decides the winner once both are in.
The package provides:
- Session ledger with per-session atomic state transitions
- Pluggable commitment verifiers
- Two-party co-signed session creation
- HTTP API and CLI
"""

__version__ = "0.1.0"
