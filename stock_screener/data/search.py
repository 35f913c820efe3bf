"""
Symbol search with local fallback.

The search endpoint is inconsistent about its response shape: sometimes
a bare list, sometimes wrapped under "data" or "result", with varying
field names per item. SymbolSearch normalizes all of them and never
raises; any failure yields the static fallback search instead.
"""

from typing import Any

import structlog

from stock_screener.data.extractors import extract_text
from stock_screener.data.fallback import MAX_SEARCH_RESULTS, fallback_search
from stock_screener.data.interfaces import MarketDataSource
from stock_screener.data.models import SearchResult
from stock_screener.errors import error_kind

logger = structlog.get_logger(__name__)


def sanitize_search_query(query: Any) -> str:
    """Trim and drop characters that have no place in a ticker/name query."""
    if not isinstance(query, str):
        return ""
    return query.strip().translate(str.maketrans("", "", "<>\"'"))


def find_result_list(raw: Any) -> list | None:
    """First list among raw, raw["data"], raw["result"]."""
    candidates = [raw]
    if isinstance(raw, dict):
        candidates += [raw.get("data"), raw.get("result")]
    for candidate in candidates:
        if isinstance(candidate, list):
            return candidate
    return None


def normalize_search_item(item: Any) -> SearchResult | None:
    """Map one upstream item onto SearchResult. Items without a symbol are dropped."""
    if not isinstance(item, dict):
        return None

    symbol = extract_text([(item, "symbol"), (item, "ticker"), (item, "code")])
    if not symbol:
        return None

    return SearchResult(
        symbol=symbol,
        name=extract_text(
            [(item, "instrument_name"), (item, "name"), (item, "company_name")],
            default=symbol,
        ),
        exchange=extract_text([(item, "exchange"), (item, "market")], default="N/A"),
        type=extract_text(
            [(item, "instrument_type"), (item, "type")], default="Common Stock"
        ),
    )


class SymbolSearch:
    """Remote symbol search with static fallback."""

    def __init__(
        self,
        source: MarketDataSource,
        max_results: int = MAX_SEARCH_RESULTS,
    ):
        self.source = source
        self.max_results = min(max_results, MAX_SEARCH_RESULTS)
        self.last_error: Exception | None = None
        self.stats = {"searches": 0, "fallbacks": 0}

    def _fallback(self, query: str) -> list[SearchResult]:
        self.stats["fallbacks"] += 1
        return fallback_search(query, self.max_results)

    async def search(self, query: str) -> list[SearchResult]:
        """
        Search for symbols matching query.

        Empty queries return [] without a network call. Demo mode and any
        failure (network, HTTP, parse, unexpected shape) return the
        static fallback results.
        """
        query = sanitize_search_query(query)
        if not query:
            return []

        self.stats["searches"] += 1

        if not self.source.is_available():
            logger.debug("search_demo_mode", query=query)
            return self._fallback(query)

        try:
            raw = await self.source.search_raw(query)
            items = find_result_list(raw)
            if items is None:
                raise ValueError(f"Unexpected search response shape: {type(raw).__name__}")

            results = []
            for item in items:
                result = normalize_search_item(item)
                if result is not None:
                    results.append(result)
                if len(results) >= self.max_results:
                    break
            return results

        except Exception as e:
            self.last_error = e
            logger.warning(
                "symbol_search_failed",
                query=query,
                kind=error_kind(e),
                error=str(e),
            )
            return self._fallback(query)


class LatestSearch:
    """
    Request-id fencing for type-ahead callers.

    Each call takes a new id; a response is returned only if no newer call
    was issued while it was in flight. Superseded calls return None.
    """

    def __init__(self, search: SymbolSearch):
        self.search = search
        self._latest_id = 0

    @property
    def latest_id(self) -> int:
        return self._latest_id

    async def __call__(self, query: str) -> list[SearchResult] | None:
        self._latest_id += 1
        request_id = self._latest_id

        results = await self.search.search(query)

        if request_id != self._latest_id:
            logger.debug("search_superseded", query=query, request_id=request_id)
            return None
        return results
