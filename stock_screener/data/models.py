"""
Pydantic models for the stock screener data layer.

Typed data contracts for stock records, search results and cache entries.
Records are frozen: values handed to callers are immutable snapshots of
what the cache holds.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StockRecord(BaseModel):
    """Canonical per-symbol record merged from quote, statistics and profile."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    symbol: str
    name: str
    price: float = 0.0
    market_cap: float = 0.0
    pe_ratio: float = 0.0
    pb_ratio: float = 0.0
    debt_to_equity: float = 0.0
    roe: float = 0.0  # signed, percent
    revenue_growth: float = 0.0  # signed, percent
    revenue_growth_years: int = Field(default=1, ge=1)
    sector: str = Field(default="Technology", min_length=1)

    @property
    def is_degenerate(self) -> bool:
        """All-zero price, market cap and P/E: upstream failure, not a real security."""
        return self.price == 0 and self.market_cap == 0 and self.pe_ratio == 0

    @property
    def has_unresolved_name(self) -> bool:
        return self.name == unresolved_name(self.symbol)

    def to_dict(self) -> dict:
        """camelCase dict (marketCap, peRatio, ...) for UI consumers."""
        return self.model_dump(by_alias=True)


class SearchResult(BaseModel):
    """A single symbol search hit."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    exchange: str = "N/A"
    type: str = "Common Stock"


class CacheEntry(BaseModel):
    """A cached record with the time it was fetched (or substituted)."""

    model_config = ConfigDict(frozen=True)

    record: StockRecord
    fetched_at: float
    used_fallback: bool = False
    reason: str | None = None


class FetchResult(BaseModel):
    """Record plus how it was obtained, for callers that need to tell real from substituted data."""

    model_config = ConfigDict(frozen=True)

    record: StockRecord
    used_fallback: bool = False
    reason: str | None = None
    from_cache: bool = False


def unresolved_name(symbol: str) -> str:
    """Synthesized name used when the company name could not be resolved."""
    return f"{symbol} Inc."
