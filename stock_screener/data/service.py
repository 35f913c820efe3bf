"""
Stock data service: cache, fallback policy and batch fetching.

Strategy per symbol:
1. Demo key -> static fallback, no cache, no network
2. Fresh cache entry -> return it
3. Fetch quote/statistics/profile in parallel and normalize
4. Degenerate result (price, market cap and P/E all zero) or any failure
   -> static fallback, cached like a real result

get_stock_data, fetch_multiple_stocks and search_symbols never raise.
Use get_stock_data_with_diagnostics (or last_error) to tell real data
from substituted data.

The cache is bounded by max_cache_entries. When full, the oldest entries
are evicted first, skipping watchlisted (pinned) symbols; if everything
is pinned the cache is allowed to grow past its nominal size.
"""

import asyncio
import time
from collections.abc import Callable, Iterable

import structlog

from stock_screener.config import Settings, get_settings
from stock_screener.data.fallback import fallback_record
from stock_screener.data.interfaces import MarketDataSource
from stock_screener.data.models import CacheEntry, FetchResult, SearchResult, StockRecord
from stock_screener.data.normalizer import normalize_stock_data
from stock_screener.data.search import SymbolSearch
from stock_screener.data.twelve_data import TwelveDataFetcher
from stock_screener.errors import error_kind

logger = structlog.get_logger(__name__)

PLACEHOLDER_SYMBOL = "UNKNOWN"


def normalize_symbol(symbol: str | None) -> str:
    return (symbol or "").strip().upper()


class StockDataService:
    """Cache-backed entry point for stock records, symbol search and pins."""

    def __init__(
        self,
        settings: Settings | None = None,
        source: MarketDataSource | None = None,
        api_key: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            settings: Injected configuration (defaults to get_settings())
            source: Remote data source (defaults to a TwelveDataFetcher)
            api_key: Explicit key override, passed to the default source
            clock: Returns "now" in seconds; injectable for tests
        """
        self.settings = settings or get_settings()
        self.source = source or TwelveDataFetcher(api_key=api_key, settings=self.settings)
        self.cache_duration = self.settings.cache_duration
        self.max_cache_entries = self.settings.max_cache_entries
        self.searcher = SymbolSearch(self.source, self.settings.search_max_results)
        self._clock = clock

        self._cache: dict[str, CacheEntry] = {}
        self._watchlist: set[str] = set()
        self.last_error: Exception | None = None

        self.stats = {
            "fetches": 0,
            "cache_hits": 0,
            "cache_misses": 0,
            "fallbacks": 0,
            "degenerate_responses": 0,
            "evictions": 0,
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        await self.source.close()

    @property
    def demo_mode(self) -> bool:
        """True when the source has no real API key: everything is served from fallback data."""
        return not self.source.is_available()

    # --- Cache inspection ---

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    @property
    def watchlist_symbols(self) -> frozenset[str]:
        return frozenset(self._watchlist)

    def is_cache_valid(self, symbol: str) -> bool:
        entry = self._cache.get(normalize_symbol(symbol))
        if entry is None:
            return False
        return (self._clock() - entry.fetched_at) < self.cache_duration

    def get_cached(self, symbol: str) -> CacheEntry | None:
        """Cache entry for symbol regardless of age, or None."""
        return self._cache.get(normalize_symbol(symbol))

    def clear_cache(self) -> None:
        """Drop every cached entry. Watchlist pins are kept."""
        self._cache.clear()
        logger.info("cache_cleared")

    # --- Watchlist pins ---

    def add_to_watchlist(self, symbol: str) -> None:
        symbol = normalize_symbol(symbol)
        if symbol:
            self._watchlist.add(symbol)

    def remove_from_watchlist(self, symbol: str) -> None:
        self._watchlist.discard(normalize_symbol(symbol))

    # --- Capacity policy ---

    def _evict_for(self, incoming: int) -> int:
        """Evict oldest unpinned entries so that `incoming` new entries fit."""
        overflow = len(self._cache) + incoming - self.max_cache_entries
        if overflow <= 0:
            return 0

        candidates = sorted(
            (symbol for symbol in self._cache if symbol not in self._watchlist),
            key=lambda symbol: self._cache[symbol].fetched_at,
        )
        evicted = candidates[:overflow]
        for symbol in evicted:
            del self._cache[symbol]
            logger.debug("cache_evicted", symbol=symbol)

        if len(evicted) < overflow:
            logger.info(
                "cache_over_capacity",
                size=len(self._cache) + incoming,
                capacity=self.max_cache_entries,
                pinned=len(self._watchlist),
            )

        self.stats["evictions"] += len(evicted)
        return len(evicted)

    def cleanup_cache(self) -> int:
        """Trim the cache down to capacity now. Returns the number of evicted entries."""
        return self._evict_for(0)

    def _store(
        self, symbol: str, record: StockRecord, reason: str | None = None
    ) -> FetchResult:
        used_fallback = reason is not None
        if used_fallback:
            self.stats["fallbacks"] += 1

        if symbol not in self._cache:
            self._evict_for(1)

        self._cache[symbol] = CacheEntry(
            record=record,
            fetched_at=self._clock(),
            used_fallback=used_fallback,
            reason=reason,
        )
        return FetchResult(record=record, used_fallback=used_fallback, reason=reason)

    # --- Data operations ---

    async def get_stock_data_with_diagnostics(self, symbol: str) -> FetchResult:
        """Record for symbol plus whether it is substituted fallback data and why."""
        symbol = normalize_symbol(symbol)
        if not symbol:
            return FetchResult(
                record=fallback_record(PLACEHOLDER_SYMBOL),
                used_fallback=True,
                reason="invalid_symbol",
            )

        if self.demo_mode:
            logger.debug("demo_mode_fallback", symbol=symbol)
            return FetchResult(
                record=fallback_record(symbol), used_fallback=True, reason="demo_mode"
            )

        if self.is_cache_valid(symbol):
            self.stats["cache_hits"] += 1
            entry = self._cache[symbol]
            logger.debug("cache_hit", symbol=symbol)
            return FetchResult(
                record=entry.record,
                used_fallback=entry.used_fallback,
                reason=entry.reason,
                from_cache=True,
            )

        self.stats["cache_misses"] += 1
        self.stats["fetches"] += 1
        logger.info("fetching_fresh_data", symbol=symbol)

        try:
            quote, statistics, profile = await self.source.fetch_raw(symbol)
            record = normalize_stock_data(symbol, quote, statistics, profile)
        except Exception as e:
            self.last_error = e
            logger.warning(
                "fetch_failed_using_fallback",
                symbol=symbol,
                kind=error_kind(e),
                error=str(e),
            )
            return self._store(symbol, fallback_record(symbol), reason=error_kind(e))

        if record.is_degenerate:
            self.stats["degenerate_responses"] += 1
            logger.warning(
                "degenerate_response",
                symbol=symbol,
                likely_causes="rate limiting (8 calls/min, 800/day), unknown symbol, response format mismatch",
            )
            return self._store(
                symbol, fallback_record(symbol), reason="degenerate_response"
            )

        return self._store(symbol, record)

    async def get_stock_data(self, symbol: str) -> StockRecord:
        """Record for symbol: cached, freshly fetched, or fallback. Never raises."""
        result = await self.get_stock_data_with_diagnostics(symbol)
        return result.record

    async def fetch_multiple_with_diagnostics(
        self, symbols: Iterable[str] | None = None
    ) -> list[FetchResult]:
        """Fetch every symbol concurrently; one slot per input symbol, in input order."""
        symbols = (
            list(symbols) if symbols is not None else self.settings.get_default_symbols()
        )
        outcomes = await asyncio.gather(
            *(self.get_stock_data_with_diagnostics(symbol) for symbol in symbols),
            return_exceptions=True,
        )

        results = []
        for symbol, outcome in zip(symbols, outcomes):
            if isinstance(outcome, BaseException):
                self.last_error = outcome
                logger.warning(
                    "batch_fetch_failed",
                    symbol=symbol,
                    kind=error_kind(outcome),
                    error=str(outcome),
                )
                outcome = FetchResult(
                    record=fallback_record(normalize_symbol(symbol) or PLACEHOLDER_SYMBOL),
                    used_fallback=True,
                    reason=error_kind(outcome),
                )
            results.append(outcome)
        return results

    async def fetch_multiple_stocks(
        self, symbols: Iterable[str] | None = None
    ) -> list[StockRecord]:
        """Records for every symbol (default: configured default stocks). Never raises."""
        results = await self.fetch_multiple_with_diagnostics(symbols)
        return [result.record for result in results]

    async def search_symbols(self, query: str) -> list[SearchResult]:
        """Symbol search with static fallback. Never raises."""
        return await self.searcher.search(query)

    def get_stats(self) -> dict:
        """Counters for fetches, cache behaviour, fallbacks and searches."""
        return {
            **self.stats,
            "searches": self.searcher.stats["searches"],
            "search_fallbacks": self.searcher.stats["fallbacks"],
            "cache_size": len(self._cache),
            "pinned": len(self._watchlist),
        }
