#!/usr/bin/env python3
"""
Command line entry point for the stock screener.

Fetches (or serves from fallback data) the requested symbols, applies
screening filters and prints a table.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog
from pydantic import SecretStr
from rich import box
from rich.console import Console
from rich.table import Table

from stock_screener.config import get_settings, set_log_level
from stock_screener.data.models import FetchResult, SearchResult
from stock_screener.data.service import StockDataService
from stock_screener.errors import ValidationError, user_friendly_message
from stock_screener.screening import (
    ScreenCriteria,
    format_large_number,
    records_to_frame,
)

logger = structlog.get_logger(__name__)
console = Console()


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Stock screener powered by the Twelve Data API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default stock list
  python -m stock_screener.main

  # Specific symbols, value screen
  python -m stock_screener.main --symbols AAPL MSFT JPM --max-pe 25 --min-roe 15

  # Offline demo data
  python -m stock_screener.main --demo --sector Technology

  # Symbol search
  python -m stock_screener.main --search apple
        """,
    )

    parser.add_argument(
        "--symbols",
        nargs="+",
        default=None,
        help="Ticker symbols to fetch (default: DEFAULT_STOCKS)",
    )
    parser.add_argument("--search", type=str, default=None, help="Search symbols instead of fetching quotes")
    parser.add_argument("--watch", nargs="+", default=[], help="Symbols to pin in the cache (watchlist)")

    filters = parser.add_argument_group("filters")
    filters.add_argument("--query", type=str, default=None, help="Match symbol or company name")
    filters.add_argument("--market-cap", choices=["small", "mid", "large"], default=None)
    filters.add_argument("--max-pe", type=float, default=None)
    filters.add_argument("--min-pe", type=float, default=None)
    filters.add_argument("--max-pb", type=float, default=None)
    filters.add_argument("--max-de", type=float, default=None, help="Maximum debt/equity")
    filters.add_argument("--min-roe", type=float, default=None, help="Minimum ROE (percent)")
    filters.add_argument("--min-growth", type=float, default=None, help="Minimum revenue growth (percent)")
    filters.add_argument("--min-growth-years", type=int, default=None)
    filters.add_argument("--sector", type=str, default=None)

    parser.add_argument("--sort-by", type=str, default=None, help="Column to sort by (e.g. marketCap, peRatio)")
    parser.add_argument("--csv", type=Path, default=None, help="Also write results to this CSV file")

    parser.add_argument("--api-key", type=str, default=None, help="Twelve Data API key (overrides TWELVE_DATA_API_KEY)")
    parser.add_argument("--demo", action="store_true", help="Use static demo data, no network calls")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", action="store_true", help="Only log errors")

    return parser.parse_args(argv)


def build_criteria(args: argparse.Namespace) -> ScreenCriteria:
    return ScreenCriteria(
        query=args.query,
        market_cap=args.market_cap,
        max_pe=args.max_pe,
        min_pe=args.min_pe,
        max_pb=args.max_pb,
        max_debt_to_equity=args.max_de,
        min_roe=args.min_roe,
        min_revenue_growth=args.min_growth,
        min_revenue_growth_years=args.min_growth_years,
        sector=args.sector,
    )


def display_stocks(results: list[FetchResult], sort_by: str | None = None):
    """Render stock records as a table; fallback rows are marked with *."""
    frame = records_to_frame(result.record for result in results)
    fallback = {result.record.symbol for result in results if result.used_fallback}

    if sort_by and sort_by in frame.columns:
        frame = frame.sort_values(sort_by, ascending=False, kind="stable")

    table = Table(show_header=True, box=box.ROUNDED)
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Market Cap", justify="right")
    table.add_column("P/E", justify="right")
    table.add_column("P/B", justify="right")
    table.add_column("D/E", justify="right")
    table.add_column("ROE %", justify="right")
    table.add_column("Growth %", justify="right")
    table.add_column("Years", justify="right")
    table.add_column("Sector", style="blue")

    for row in frame.itertuples(index=False):
        marker = "*" if row.symbol in fallback else ""
        table.add_row(
            f"{row.symbol}{marker}",
            row.name,
            f"${row.price:,.2f}",
            format_large_number(row.marketCap),
            f"{row.peRatio:.1f}",
            f"{row.pbRatio:.1f}",
            f"{row.debtToEquity:.2f}",
            f"{row.roe:.1f}",
            f"{row.revenueGrowth:.1f}",
            str(row.revenueGrowthYears),
            row.sector,
        )

    console.print(table)
    if fallback:
        console.print("[dim]* static fallback data (API unavailable, rate limited or no data)[/dim]")


def display_search_results(query: str, results: list[SearchResult]):
    if not results:
        console.print(f"[yellow]No symbols found for '{query}'[/yellow]")
        return

    table = Table(show_header=True, box=box.ROUNDED)
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Exchange", style="yellow")
    table.add_column("Type", style="blue")
    for result in results:
        table.add_row(result.symbol, result.name, result.exchange, result.type)
    console.print(table)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    api_key = args.api_key
    if args.demo:
        # Blank key resolves to the demo sentinel regardless of the environment
        settings = settings.model_copy(update={"twelve_data_api_key": SecretStr("")})
        api_key = None

    try:
        criteria = build_criteria(args).validate_bounds()
    except ValidationError as e:
        console.print(f"[red]{user_friendly_message(e)}[/red]")
        return 2

    async with StockDataService(settings=settings, api_key=api_key) as service:
        if service.demo_mode:
            console.print("[yellow]Demo mode: showing static data (set TWELVE_DATA_API_KEY for live data)[/yellow]")

        if args.search is not None:
            results = await service.search_symbols(args.search)
            display_search_results(args.search, results)
            return 0

        for symbol in args.watch:
            service.add_to_watchlist(symbol)

        requested = [*(args.symbols or settings.get_default_symbols()), *args.watch]
        symbols = list(dict.fromkeys(s.strip().upper() for s in requested))
        results = await service.fetch_multiple_with_diagnostics(symbols)

        shown = [r for r in results if criteria.matches(r.record)]
        display_stocks(shown, sort_by=args.sort_by)
        console.print(f"{len(shown)} of {len(results)} stocks match")

        if args.csv:
            records_to_frame(r.record for r in shown).to_csv(args.csv, index=False)
            console.print(f"Saved to {args.csv}")

        logger.debug("run_complete", stats=service.get_stats())

    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_arguments(argv)
    if args.quiet:
        set_log_level(logging.ERROR)
    elif args.verbose:
        set_log_level(logging.DEBUG)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
