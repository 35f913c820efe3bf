"""
Screening filters and display formatting for stock records.

Pure functions over StockRecord lists; front ends (the CLI, or any UI)
collect criteria from the user and call apply_filters().
"""

import math
from collections.abc import Iterable
from typing import Literal

import pandas as pd
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from stock_screener.data.models import StockRecord
from stock_screener.data.search import sanitize_search_query
from stock_screener.errors import ValidationError

SMALL_CAP_LIMIT = 2_000_000_000  # $2B
MID_CAP_LIMIT = 10_000_000_000  # $10B

TRILLION = 1_000_000_000_000
BILLION = 1_000_000_000
MILLION = 1_000_000

MarketCapCategory = Literal["small", "mid", "large"]

# criteria field -> (min, max) accepted range
CRITERIA_BOUNDS = {
    "max_pe": (0, math.inf),
    "min_pe": (0, math.inf),
    "max_pb": (0, math.inf),
    "max_debt_to_equity": (0, math.inf),
    "min_roe": (-100, 1000),
    "min_revenue_growth": (-100, 1000),
    "min_revenue_growth_years": (1, 10),
}


def market_cap_category(market_cap: float) -> MarketCapCategory:
    if market_cap < SMALL_CAP_LIMIT:
        return "small"
    if market_cap < MID_CAP_LIMIT:
        return "mid"
    return "large"


def format_large_number(value: float, decimals: int = 2) -> str:
    """$1.23T / $4.56B / $7.89M, or plain dollars below a million."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return "$0.00"

    magnitude = abs(value)
    if magnitude >= TRILLION:
        formatted = f"${magnitude / TRILLION:.{decimals}f}T"
    elif magnitude >= BILLION:
        formatted = f"${magnitude / BILLION:.{decimals}f}B"
    elif magnitude >= MILLION:
        formatted = f"${magnitude / MILLION:.{decimals}f}M"
    else:
        places = 0 if magnitude == int(magnitude) else decimals
        formatted = f"${magnitude:,.{places}f}"

    return f"-{formatted}" if value < 0 else formatted


class ScreenCriteria(BaseModel):
    """Filter settings. None means "don't filter on this"."""

    query: str | None = None
    market_cap: MarketCapCategory | None = None
    max_pe: float | None = None
    min_pe: float | None = None
    max_pb: float | None = None
    max_debt_to_equity: float | None = None
    min_roe: float | None = None
    min_revenue_growth: float | None = None
    min_revenue_growth_years: int | None = None
    sector: str | None = None

    def validate_bounds(self) -> "ScreenCriteria":
        """Raise ValidationError on an out-of-range bound or min P/E above max P/E."""
        for field, (low, high) in CRITERIA_BOUNDS.items():
            value = getattr(self, field)
            if value is None:
                continue
            if not math.isfinite(value) or not low <= value <= high:
                upper = "infinity" if high == math.inf else high
                raise ValidationError(
                    f"{field} must be between {low} and {upper}", field=field
                )

        if self.min_pe is not None and self.max_pe is not None and self.min_pe > self.max_pe:
            raise ValidationError("min_pe cannot be greater than max_pe", field="min_pe")

        return self

    def search_term(self) -> str:
        """Lowercased query; "SYMBOL - Company" (an autocomplete pick) narrows to the symbol."""
        term = sanitize_search_query(self.query).lower()
        if " - " in term:
            term = term.split(" - ")[0].strip()
        return term

    def matches(self, stock: StockRecord) -> bool:
        term = self.search_term()
        if term and term not in stock.name.lower() and term not in stock.symbol.lower():
            return False
        if self.market_cap and market_cap_category(stock.market_cap) != self.market_cap:
            return False
        if self.max_pe is not None and stock.pe_ratio > self.max_pe:
            return False
        if self.min_pe is not None and stock.pe_ratio < self.min_pe:
            return False
        if self.max_pb is not None and stock.pb_ratio > self.max_pb:
            return False
        if self.max_debt_to_equity is not None and stock.debt_to_equity > self.max_debt_to_equity:
            return False
        if self.min_roe is not None and stock.roe < self.min_roe:
            return False
        if self.min_revenue_growth is not None and stock.revenue_growth < self.min_revenue_growth:
            return False
        if (
            self.min_revenue_growth_years is not None
            and stock.revenue_growth_years < self.min_revenue_growth_years
        ):
            return False
        if self.sector and stock.sector != self.sector:
            return False
        return True


def apply_filters(
    records: Iterable[StockRecord], criteria: ScreenCriteria
) -> list[StockRecord]:
    """Records matching every criterion, input order preserved."""
    criteria.validate_bounds()
    return [record for record in records if criteria.matches(record)]


def records_to_frame(records: Iterable[StockRecord]) -> pd.DataFrame:
    """One row per record, camelCase columns (symbol, name, price, marketCap, ...)."""
    rows = [record.to_dict() for record in records]
    columns = [to_camel(name) for name in StockRecord.model_fields]
    return pd.DataFrame(rows, columns=columns)
