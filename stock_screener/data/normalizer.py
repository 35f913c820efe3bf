"""
Response normalizer: quote + statistics + profile -> StockRecord.

Pure function of its inputs. It reports merged values only; whether a
degenerate result gets replaced by fallback data is the caller's call
(see StockDataService).
"""

from typing import Any

from stock_screener.data.extractors import extract_int, extract_number, extract_text
from stock_screener.data.models import StockRecord, unresolved_name
from stock_screener.data.resolvers import (
    price_candidates,
    resolve_market_cap,
    resolve_sector,
)

# Candidate paths inside the statistics payload, most specific first.
# The trailing "statistics.*" entries are the layout the live endpoint uses.
PE_RATIO_PATHS = (
    "valuations_metrics.pe_ratio",
    "valuation.pe_ratio",
    "pe_ratio",
    "statistics.valuation.trailingPE",
)
PE_RATIO_TAIL_PATHS = ("statistics.valuations_metrics.trailing_pe",)

PB_RATIO_PATHS = (
    "valuations_metrics.pb_ratio",
    "valuation.pb_ratio",
    "pb_ratio",
    "statistics.valuation.priceToBook",
    "statistics.valuations_metrics.price_to_book_mrq",
)

DEBT_TO_EQUITY_PATHS = (
    "balance_sheet.debt_to_equity",
    "financials.balance_sheet.debt_to_equity",
    "debt_to_equity",
    "statistics.financial_data.debtToEquity",
    "statistics.financials.balance_sheet.total_debt_to_equity_mrq",
)

ROE_PATHS = (
    "income_statement.roe",
    "financials.income_statement.roe",
    "roe",
    "statistics.financial_data.returnOnEquity",
    "statistics.financials.return_on_equity_ttm",
)

REVENUE_GROWTH_PATHS = (
    "income_statement.revenue_growth",
    "financials.income_statement.revenue_growth",
    "revenue_growth",
    "statistics.earnings.revenueGrowth",
    "statistics.financials.income_statement.quarterly_revenue_growth",
)

GROWTH_YEARS_PATHS = (
    "income_statement.consistent_growth_years",
    "consistent_growth_years",
)


def _from(source: Any, paths: tuple[str, ...]) -> list[tuple[Any, str]]:
    return [(source, path) for path in paths]


def normalize_stock_data(
    symbol: str, quote: Any, statistics: Any, profile: Any
) -> StockRecord:
    """
    Merge the three raw payloads into one record.

    Any payload may be None, a dict of unexpected shape, or an upstream
    error body; missing fields fall back to 0 (numbers), "<symbol> Inc."
    (name) and the sector resolver (sector).
    """
    price = extract_number(price_candidates(quote))

    # P/E may also be reported on the quote, after the statistics layouts
    pe_ratio = extract_number(
        _from(statistics, PE_RATIO_PATHS)
        + [(quote, "pe_ratio")]
        + _from(statistics, PE_RATIO_TAIL_PATHS)
    )

    name = extract_text(
        [(profile, "name"), (quote, "name"), (profile, "longName")],
        default=unresolved_name(symbol),
    )

    growth_years = extract_int(_from(statistics, GROWTH_YEARS_PATHS), default=1)

    return StockRecord(
        symbol=symbol,
        name=name,
        price=max(price, 0.0),
        market_cap=max(resolve_market_cap(quote, statistics, profile), 0.0),
        pe_ratio=max(pe_ratio, 0.0),
        pb_ratio=max(extract_number(_from(statistics, PB_RATIO_PATHS)), 0.0),
        debt_to_equity=extract_number(_from(statistics, DEBT_TO_EQUITY_PATHS)),
        roe=extract_number(_from(statistics, ROE_PATHS)),
        revenue_growth=extract_number(_from(statistics, REVENUE_GROWTH_PATHS)),
        revenue_growth_years=max(growth_years, 1),
        sector=resolve_sector(profile, symbol),
    )
