"""Command-line interface for the market data vignette.

This module provides CLI commands for resolving tickers, fetching bars and
reference data, and printing per-ticker summaries.
"""

import argparse
import asyncio
import json
import sys
from typing import Any

import structlog

from stock_vignette.config import Settings
from stock_vignette.data.errors import MarketDataError
from stock_vignette.data.models import SortOrder, Timespan
from stock_vignette.data.polygon import PolygonClient
from stock_vignette.data.resolver import resolve_ticker
from stock_vignette.log_config import configure_logging
from stock_vignette.vignette import fetch_companies, summarize_bars

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_MARKET_DATA_ERROR = 1
EXIT_CONFIG_ERROR = 2


def print_json(data: Any) -> None:
    """Write data to stdout as indented JSON."""
    print(json.dumps(data, indent=2, default=str))


async def bars_command(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the 'bars' command."""
    async with PolygonClient(
        api_key=settings.POLYGON_API_KEY, base_url=settings.POLYGON_BASE_URL
    ) as client:
        query = client.bars_query(
            args.name,
            args.start,
            args.end,
            multiplier=args.multiplier,
            timespan=args.timespan,
            adjusted=not args.unadjusted,
            sort_order=args.sort,
            limit=args.limit,
        )
        bars = await client.fetch_bars(query)

    print_json([bar.model_dump() for bar in bars])
    return EXIT_OK


async def details_command(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the 'details' command."""
    async with PolygonClient(
        api_key=settings.POLYGON_API_KEY, base_url=settings.POLYGON_BASE_URL
    ) as client:
        details = await client.fetch_details(client.details_query(args.name, args.date))

    print_json(details.record)
    return EXIT_OK


async def summary_command(args: argparse.Namespace, settings: Settings) -> int:
    """Execute the 'summary' command."""
    async with PolygonClient(
        api_key=settings.POLYGON_API_KEY, base_url=settings.POLYGON_BASE_URL
    ) as client:
        by_symbol = await fetch_companies(
            client, args.names, args.start, args.end, timespan=args.timespan
        )

    bars = [bar for rows in by_symbol.values() for bar in rows]
    summaries = summarize_bars(bars)
    empty = [symbol for symbol, rows in by_symbol.items() if not rows]
    if empty:
        logger.warning("no_bars_returned", tickers=empty)

    print_json([summary.model_dump() for summary in summaries])
    return EXIT_OK


def resolve_command(args: argparse.Namespace) -> int:
    """Execute the 'resolve' command."""
    print_json({name: resolve_ticker(name) for name in args.names})
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stock-vignette",
        description="Polygon.io market data vignette",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    timespans = [t.value for t in Timespan]

    bars_parser = subparsers.add_parser("bars", help="Fetch aggregate bars")
    bars_parser.add_argument("name", help="Company name or ticker symbol")
    bars_parser.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    bars_parser.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    bars_parser.add_argument("--multiplier", type=int, default=1, help="Timespans per bar")
    bars_parser.add_argument("--timespan", choices=timespans, default="day")
    bars_parser.add_argument(
        "--sort", choices=[s.value for s in SortOrder], default="asc"
    )
    bars_parser.add_argument(
        "--unadjusted", action="store_true", help="Do not adjust for splits"
    )
    bars_parser.add_argument("--limit", type=int, default=5000)

    details_parser = subparsers.add_parser("details", help="Fetch ticker reference data")
    details_parser.add_argument("name", help="Company name or ticker symbol")
    details_parser.add_argument("--date", help="Point in time (YYYY-MM-DD)")

    summary_parser = subparsers.add_parser("summary", help="Summarize bars per company")
    summary_parser.add_argument("names", nargs="+", help="Company names or symbols")
    summary_parser.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    summary_parser.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    summary_parser.add_argument("--timespan", choices=timespans, default="day")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve company names")
    resolve_parser.add_argument("names", nargs="+", help="Company names")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_MARKET_DATA_ERROR

    settings = Settings.from_env()
    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)

    if args.command == "resolve":
        return resolve_command(args)

    if not settings.has_api_key:
        logger.error("missing_api_key", variable="POLYGON_API_KEY")
        print("POLYGON_API_KEY is not set", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    commands = {
        "bars": bars_command,
        "details": details_command,
        "summary": summary_command,
    }

    try:
        return asyncio.run(commands[args.command](args, settings))
    except MarketDataError as e:
        logger.error("command_failed", command=args.command, **e.to_dict())
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_MARKET_DATA_ERROR


if __name__ == "__main__":
    sys.exit(main())
