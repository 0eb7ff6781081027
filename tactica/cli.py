"""
Tactica CLI - Command-line interface for the match ledger.

Usage:
    tactica table                  Print the payoff table
    tactica demo [--a N --b N]     Run a co-signed match in-process
    tactica serve [--port N]       Run the HTTP API
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tactica - Two-player committed tactical matches",
        prog="tactica",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Table command
    subparsers.add_parser("table", help="Print the payoff table")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run a co-signed match in-process")
    demo_parser.add_argument("--a", type=int, default=2, help="Initiator's tactic (0-3)")
    demo_parser.add_argument("--b", type=int, default=1, help="Joiner's tactic (0-3)")
    demo_parser.add_argument("--session", type=int, default=7, help="Session id")
    demo_parser.add_argument("--stake", type=int, default=100, help="Stake for each player")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    if args.command == "table":
        cmd_table(args)
    elif args.command == "demo":
        cmd_demo(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_table(args):
    """Print the payoff table."""
    from .engine_core import PAYOFF_TABLE, Tactic

    width = max(len(t.label) for t in Tactic) + 2
    print("A \\ B".ljust(width) + "".join(t.label.ljust(width) for t in Tactic))
    for a in Tactic:
        cells = "".join(f"{PAYOFF_TABLE[a][b][0]}-{PAYOFF_TABLE[a][b][1]}".ljust(width) for b in Tactic)
        print(a.label.ljust(width) + cells)
    print("\nTies go to player A.")


def cmd_demo(args):
    """Run the full flow: co-sign, commit, resolve."""
    from .config import Settings
    from .cosign import (
        AuthorizationGateway,
        CoSignError,
        CoSigningCoordinator,
        HandoffBoard,
        Keypair,
    )
    from .engine_core import MatchError, check_session_id, validate_tactic
    from .ledger import ManualLedgerClock, RecordingSettlement, SessionLedger
    from .verifier import commit_tactic

    try:
        tactic_a = validate_tactic(args.a)
        tactic_b = validate_tactic(args.b)
        check_session_id(args.session)
    except MatchError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    settings = Settings()
    settlement = RecordingSettlement()
    ledger = SessionLedger(clock=ManualLedgerClock(), settlement=settlement)
    gateway = AuthorizationGateway(ledger, network_id=settings.network_id)
    coordinator = CoSigningCoordinator(gateway, settings=settings)
    board = HandoffBoard(ttl_seconds=settings.handoff_ttl_seconds)

    alice = Keypair.random()
    bob = Keypair.random()
    sid = args.session

    print(f"Initiator: {alice.address}")
    print(f"Joiner:    {bob.address}")

    try:
        board.post(
            sid, bob.address,
            coordinator.prepare_as_joiner(sid, alice.address, bob, args.stake, args.stake),
        )
        receipt = coordinator.finalize_as_initiator(
            board.consume(sid, bob.address), sid, alice, bob.address, args.stake, args.stake
        )
        print(f"\nSession {receipt.session_id} created (tx {receipt.tx_hash[:16]}...)")

        for player, tactic in ((alice.address, tactic_a), (bob.address, tactic_b)):
            commitment, proof = commit_tactic(sid, tactic)
            ledger.submit(sid, player, commitment, proof)
        winner = ledger.resolve(sid)
    except (MatchError, CoSignError) as e:
        print(f"Error [{e.code}]: {e.message}")
        sys.exit(1)

    snapshot = ledger.get(sid)
    print(f"A plays {tactic_a.label}, B plays {tactic_b.label}")
    print(f"Score: {snapshot.score_a} - {snapshot.score_b}")
    print(f"Winner: {'A' if winner == alice.address else 'B'} ({winner})")
    print(f"Hub notified: {len(settlement.started)} start, {len(settlement.ended)} end")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from .api import APIService, create_app
    from .config import Settings

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = create_app(APIService(settings=settings))
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
