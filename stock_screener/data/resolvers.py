"""Market cap and sector resolution over the three upstream payloads."""

from typing import Any

from stock_screener.data.extractors import extract_number, extract_text

DEFAULT_SECTOR = "Technology"

# Basic symbol -> sector mapping used when the profile has neither sector nor industry
SECTOR_MAP = {
    "AAPL": "Technology",
    "GOOGL": "Technology",
    "MSFT": "Technology",
    "TSLA": "Consumer",
    "JNJ": "Healthcare",
    "JPM": "Financial",
    "V": "Financial",
    "PG": "Consumer",
    "XOM": "Energy",
    "HD": "Consumer",
    "NVDA": "Technology",
}

PRICE_PATHS = ("close", "price", "regularMarketPrice", "last_price")


def price_candidates(quote: Any) -> list[tuple[Any, str]]:
    return [(quote, path) for path in PRICE_PATHS]


def shares_outstanding_candidates(
    quote: Any, statistics: Any, profile: Any
) -> list[tuple[Any, str]]:
    return [
        (statistics, "statistics.shares_outstanding"),
        (statistics, "shares_outstanding"),
        (profile, "shares_outstanding"),
        (quote, "shares_outstanding"),
        (statistics, "statistics.stock_statistics.shares_outstanding"),
    ]


def market_cap_candidates(
    quote: Any, statistics: Any, profile: Any
) -> list[tuple[Any, str]]:
    return [
        (statistics, "market_cap"),
        (statistics, "statistics.market_cap"),
        (profile, "market_cap"),
        (quote, "market_cap"),
        (statistics, "statistics.valuations_metrics.market_capitalization"),
    ]


def resolve_market_cap(quote: Any, statistics: Any, profile: Any) -> float:
    """
    Market capitalization for a symbol.

    price * shares outstanding wins when both are positive; otherwise the
    first directly reported market cap, else 0.
    """
    price = extract_number(price_candidates(quote))
    shares = extract_number(shares_outstanding_candidates(quote, statistics, profile))

    if price > 0 and shares > 0:
        return price * shares

    return extract_number(market_cap_candidates(quote, statistics, profile))


def resolve_sector(profile: Any, symbol: str) -> str:
    """Profile sector or industry, else the static map, else DEFAULT_SECTOR. Never empty."""
    sector = extract_text([(profile, "sector"), (profile, "industry")])
    if sector:
        return sector
    return SECTOR_MAP.get(symbol.upper(), DEFAULT_SECTOR)
