"""Entry point: reconcile one symbol's earnings or build the earnings calendar."""

import argparse
import asyncio
import json
import sys
import structlog
from config.logging_config import setup_logging
from data.manager import EarningsDataManager
from earnings.errors import EarningsError

log = structlog.get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Multi-source earnings reconciliation")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL from the environment")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Reconciled EPS/revenue history for one symbol")
    lookup.add_argument("symbol")

    sub.add_parser("calendar", help="Earnings calendar grouped by date")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> dict:
    manager = EarningsDataManager()
    try:
        if args.command == "lookup":
            report = await manager.get_earnings_report(args.symbol)
            return report.to_dict()
        calendar = await manager.get_earnings_calendar()
        return {day: [entry.to_dict() for entry in entries] for day, entries in calendar.items()}
    finally:
        await manager.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs)
    log.info("starting_earnings_reconciler", command=args.command)

    try:
        result = asyncio.run(run(args))
    except EarningsError as e:
        log.error("earnings_request_failed", command=args.command, error=str(e))
        print(json.dumps({"error": str(e)}))
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
