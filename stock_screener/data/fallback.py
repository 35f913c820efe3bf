"""
Static fallback data used when the API is unavailable, rate limited,
returns degenerate data, or the app runs with the demo key.

Known symbols get hand-curated realistic values. Anything else gets a
generic zero-valued record named "<symbol> Inc." - degenerate by
construction, which callers should read as "no data for this symbol".
"""

from stock_screener.data.models import SearchResult, StockRecord, unresolved_name
from stock_screener.data.resolvers import DEFAULT_SECTOR

MAX_SEARCH_RESULTS = 10

FALLBACK_STOCKS: dict[str, StockRecord] = {
    record.symbol: record
    for record in (
        StockRecord(symbol="AAPL", name="Apple Inc.", price=175.43, market_cap=2_800_000_000_000, pe_ratio=28.5, pb_ratio=39.8, debt_to_equity=1.73, roe=26.4, sector="Technology", revenue_growth=8.1, revenue_growth_years=4),
        StockRecord(symbol="GOOGL", name="Alphabet Inc.", price=132.76, market_cap=1_650_000_000_000, pe_ratio=22.1, pb_ratio=5.2, debt_to_equity=0.12, roe=18.7, sector="Technology", revenue_growth=12.5, revenue_growth_years=3),
        StockRecord(symbol="MSFT", name="Microsoft Corporation", price=378.85, market_cap=2_820_000_000_000, pe_ratio=32.4, pb_ratio=12.1, debt_to_equity=0.37, roe=35.1, sector="Technology", revenue_growth=11.2, revenue_growth_years=5),
        StockRecord(symbol="TSLA", name="Tesla Inc.", price=248.50, market_cap=790_000_000_000, pe_ratio=65.7, pb_ratio=9.8, debt_to_equity=0.17, roe=19.3, sector="Consumer", revenue_growth=47.2, revenue_growth_years=6),
        StockRecord(symbol="JNJ", name="Johnson & Johnson", price=160.32, market_cap=421_000_000_000, pe_ratio=15.6, pb_ratio=5.1, debt_to_equity=0.46, roe=25.8, sector="Healthcare", revenue_growth=6.8, revenue_growth_years=2),
        StockRecord(symbol="JPM", name="JPMorgan Chase & Co.", price=147.92, market_cap=434_000_000_000, pe_ratio=10.8, pb_ratio=1.6, debt_to_equity=1.21, roe=15.2, sector="Financial", revenue_growth=4.3, revenue_growth_years=1),
        StockRecord(symbol="V", name="Visa Inc.", price=258.73, market_cap=544_000_000_000, pe_ratio=31.2, pb_ratio=13.4, debt_to_equity=0.36, roe=38.7, sector="Financial", revenue_growth=9.7, revenue_growth_years=3),
        StockRecord(symbol="PG", name="Procter & Gamble", price=155.21, market_cap=369_000_000_000, pe_ratio=26.1, pb_ratio=7.8, debt_to_equity=0.54, roe=29.9, sector="Consumer", revenue_growth=5.2, revenue_growth_years=2),
        StockRecord(symbol="XOM", name="Exxon Mobil Corporation", price=104.65, market_cap=441_000_000_000, pe_ratio=14.3, pb_ratio=1.9, debt_to_equity=0.25, roe=17.5, sector="Energy", revenue_growth=15.8, revenue_growth_years=1),
        StockRecord(symbol="HD", name="The Home Depot Inc.", price=327.89, market_cap=333_000_000_000, pe_ratio=24.7, pb_ratio=45.2, debt_to_equity=14.8, roe=132.4, sector="Consumer", revenue_growth=7.4, revenue_growth_years=4),
        StockRecord(symbol="NVDA", name="NVIDIA Corporation", price=487.84, market_cap=1_200_000_000_000, pe_ratio=67.8, pb_ratio=47.3, debt_to_equity=0.42, roe=71.2, sector="Technology", revenue_growth=125.9, revenue_growth_years=5),
    )
}

FALLBACK_SEARCH_SYMBOLS: tuple[SearchResult, ...] = tuple(
    SearchResult(symbol=symbol, name=name, exchange=exchange)
    for symbol, name, exchange in (
        ("AAPL", "Apple Inc.", "NASDAQ"),
        ("GOOGL", "Alphabet Inc. Class A", "NASDAQ"),
        ("GOOG", "Alphabet Inc. Class C", "NASDAQ"),
        ("MSFT", "Microsoft Corporation", "NASDAQ"),
        ("TSLA", "Tesla Inc.", "NASDAQ"),
        ("JNJ", "Johnson & Johnson", "NYSE"),
        ("JPM", "JPMorgan Chase & Co.", "NYSE"),
        ("V", "Visa Inc.", "NYSE"),
        ("PG", "Procter & Gamble Company", "NYSE"),
        ("XOM", "Exxon Mobil Corporation", "NYSE"),
        ("HD", "The Home Depot Inc.", "NYSE"),
        ("AMZN", "Amazon.com Inc.", "NASDAQ"),
        ("META", "Meta Platforms Inc.", "NASDAQ"),
        ("NVDA", "NVIDIA Corporation", "NASDAQ"),
        ("NFLX", "Netflix Inc.", "NASDAQ"),
        ("AMD", "Advanced Micro Devices Inc.", "NASDAQ"),
        ("INTC", "Intel Corporation", "NASDAQ"),
        ("CRM", "Salesforce Inc.", "NYSE"),
        ("ORCL", "Oracle Corporation", "NYSE"),
        ("ADBE", "Adobe Inc.", "NASDAQ"),
        ("DIS", "The Walt Disney Company", "NYSE"),
        ("KO", "The Coca-Cola Company", "NYSE"),
        ("PEP", "PepsiCo Inc.", "NASDAQ"),
        ("WMT", "Walmart Inc.", "NYSE"),
        ("CVX", "Chevron Corporation", "NYSE"),
    )
)


def fallback_record(symbol: str) -> StockRecord:
    """Curated record for a known symbol, else the generic zero-valued record."""
    known = FALLBACK_STOCKS.get(symbol.upper())
    if known is not None:
        return known

    return StockRecord(
        symbol=symbol,
        name=unresolved_name(symbol),
        price=0.0,
        market_cap=0.0,
        pe_ratio=0.0,
        pb_ratio=0.0,
        debt_to_equity=0.0,
        roe=0.0,
        sector=DEFAULT_SECTOR,
        revenue_growth=0.0,
        revenue_growth_years=1,
    )


def fallback_search(query: str, limit: int = MAX_SEARCH_RESULTS) -> list[SearchResult]:
    """Case-insensitive substring match on symbol or name, table order, capped."""
    needle = (query or "").strip().lower()
    if not needle:
        return []

    matches = [
        result
        for result in FALLBACK_SEARCH_SYMBOLS
        if needle in result.symbol.lower() or needle in result.name.lower()
    ]
    return matches[: min(limit, MAX_SEARCH_RESULTS)]
