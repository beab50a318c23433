"""Oracle command line interface."""

import argparse
import asyncio
import sys

from post_oracle.core.config import settings
from post_oracle.core.events import OracleInitError, create_ledger
from post_oracle.core.logging import configure_logging
from post_oracle.ledger.base import BaseLedger, LedgerDecision, LedgerError


def format_decision(decision: LedgerDecision) -> str:
    """One-line summary of a ledger record."""
    when = decision.timestamp.isoformat() if decision.timestamp else "-"
    return (
        f"#{decision.id} {decision.status.name} | user={decision.username or '-'} "
        f"| score={decision.similarity_score}% "
        f"| similar={decision.most_similar_post_id or '-'} "
        f"| cid={decision.ipfs_cid or 'None'} | at={when}"
    )


async def show_status(ledger: BaseLedger, submission_id: str) -> None:
    threshold = await ledger.similarity_threshold()
    decision = await ledger.get_decision(submission_id)
    print(f"Threshold: {threshold}%")
    print(format_decision(decision))
    if decision.ipfs_cid:
        print(f"View at: https://gateway.pinata.cloud/ipfs/{decision.ipfs_cid}")


async def list_approved(ledger: BaseLedger, offset: int, limit: int) -> None:
    decisions = await ledger.get_approved(offset, limit)
    if not decisions:
        print("No approved posts")
        return
    for decision in decisions:
        print(format_decision(decision))


async def monitor(ledger: BaseLedger, poll_interval: float) -> None:
    """Print lifecycle events as they are mined, until interrupted."""
    next_block = await ledger.latest_block() + 1
    print(f"Monitoring contract events from block {next_block}...")
    while True:
        latest = await ledger.latest_block()
        if latest >= next_block:
            for event in await ledger.poll_outcomes(next_block, latest):
                details = " ".join(f"{key}={value}" for key, value in event.args.items())
                print(f"[{event.block_number}] {event.name} post={event.submission_id} {details}")
            next_block = latest + 1
        await asyncio.sleep(poll_interval)


async def set_oracle(ledger: BaseLedger, address: str | None) -> None:
    tx_hash = await ledger.set_oracle(address)
    print(f"Oracle address set, transaction {tx_hash}")


async def run_ledger_command(args: argparse.Namespace) -> None:
    ledger = create_ledger(settings)
    try:
        if args.command == "status":
            await show_status(ledger, args.submission_id)
        elif args.command == "approved":
            await list_approved(ledger, args.offset, args.limit)
        elif args.command == "monitor":
            await monitor(ledger, args.interval)
        elif args.command == "set-oracle":
            await set_oracle(ledger, args.address)
    finally:
        await ledger.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="post_oracle",
        description="Similarity oracle for the post manager contract",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the oracle (intake API + ledger listener)
  python -m post_oracle serve

  # Inspect a submission on the ledger
  python -m post_oracle status 5

  # Watch approvals, rejections and failures
  python -m post_oracle monitor
""",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the oracle service")
    serve_parser.add_argument("--host", default=settings.ORACLE_HOST, help="Host to bind to")
    serve_parser.add_argument(
        "--port", type=int, default=settings.ORACLE_PORT, help="Port to bind to"
    )

    status_parser = subparsers.add_parser("status", help="Show a submission's ledger record")
    status_parser.add_argument("submission_id", help="Submission id")

    approved_parser = subparsers.add_parser("approved", help="List approved submissions")
    approved_parser.add_argument("--offset", type=int, default=0)
    approved_parser.add_argument("--limit", type=int, default=20)

    monitor_parser = subparsers.add_parser("monitor", help="Stream lifecycle events")
    monitor_parser.add_argument(
        "--interval",
        type=float,
        default=settings.LEDGER_POLL_INTERVAL,
        help="Seconds between polls",
    )

    oracle_parser = subparsers.add_parser(
        "set-oracle", help="Register the oracle wallet on the contract"
    )
    oracle_parser.add_argument(
        "--address", default=None, help="Address to register (default: oracle key)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "post_oracle.main:app",
            host=args.host,
            port=args.port,
            log_config=None,
        )
        return 0

    configure_logging(level=settings.LOG_LEVEL, json_logs=False)
    try:
        asyncio.run(run_ledger_command(args))
    except KeyboardInterrupt:
        return 0
    except (OracleInitError, LedgerError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
