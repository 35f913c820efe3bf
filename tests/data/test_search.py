"""
Tests for symbol search.

Covers response shape handling, field-name variants, defaults, the result
cap, fallback on failure and demo mode, and request-id fencing for
type-ahead callers.
"""

import asyncio

import pytest

from stock_screener.data.models import SearchResult
from stock_screener.data.search import (
    LatestSearch,
    SymbolSearch,
    find_result_list,
    normalize_search_item,
    sanitize_search_query,
)
from stock_screener.errors import NetworkFailure, UpstreamAPIError


class TestHelpers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  aapl ", "aapl"),
            ("<script>", "script"),
            ("O'Reilly \"Auto\"", "OReilly Auto"),
            (None, ""),
            (123, ""),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_search_query(raw) == expected

    def test_find_bare_list(self):
        assert find_result_list([{"symbol": "A"}]) == [{"symbol": "A"}]

    def test_find_data_wrapper(self):
        assert find_result_list({"data": [1], "result": [2]}) == [1]

    def test_find_result_wrapper(self):
        assert find_result_list({"data": None, "result": [2]}) == [2]

    @pytest.mark.parametrize("raw", [None, "text", {"data": "x"}, {"status": "error"}])
    def test_find_nothing(self, raw):
        assert find_result_list(raw) is None

    def test_normalize_twelve_data_fields(self):
        item = {
            "symbol": "AAPL",
            "instrument_name": "Apple Inc",
            "exchange": "NASDAQ",
            "instrument_type": "Common Stock",
        }
        assert normalize_search_item(item) == SearchResult(
            symbol="AAPL", name="Apple Inc", exchange="NASDAQ", type="Common Stock"
        )

    def test_normalize_alternate_fields(self):
        item = {"ticker": "SPY", "company_name": "SPDR S&P 500", "market": "NYSE ARCA", "type": "ETF"}
        assert normalize_search_item(item) == SearchResult(
            symbol="SPY", name="SPDR S&P 500", exchange="NYSE ARCA", type="ETF"
        )

    def test_normalize_code_and_defaults(self):
        result = normalize_search_item({"code": "XYZ"})

        assert result.symbol == "XYZ"
        assert result.name == "XYZ"
        assert result.exchange == "N/A"
        assert result.type == "Common Stock"

    @pytest.mark.parametrize("item", [{}, {"name": "No Symbol"}, {"symbol": ""}, "AAPL", None])
    def test_normalize_drops_items_without_symbol(self, item):
        assert normalize_search_item(item) is None


class TestSymbolSearch:
    @pytest.mark.asyncio
    async def test_empty_query_makes_no_call(self, fake_source):
        search = SymbolSearch(fake_source)

        assert await search.search("") == []
        assert await search.search("   ") == []
        assert await search.search("<>") == []
        assert fake_source.search_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        [
            [{"symbol": "AAPL", "instrument_name": "Apple Inc"}],
            {"data": [{"symbol": "AAPL", "instrument_name": "Apple Inc"}], "status": "ok"},
            {"result": [{"symbol": "AAPL", "instrument_name": "Apple Inc"}]},
        ],
    )
    async def test_response_shapes(self, fake_source_cls, raw):
        source = fake_source_cls(search_response=raw)
        search = SymbolSearch(source)

        results = await search.search("apple")

        assert [r.symbol for r in results] == ["AAPL"]
        assert results[0].name == "Apple Inc"
        assert source.search_calls == ["apple"]

    @pytest.mark.asyncio
    async def test_query_sanitized_before_call(self, fake_source_cls):
        source = fake_source_cls(search_response=[])
        await SymbolSearch(source).search("  <msft> ")

        assert source.search_calls == ["msft"]

    @pytest.mark.asyncio
    async def test_items_without_symbol_dropped(self, fake_source_cls):
        raw = {"data": [{"name": "ghost"}, {"symbol": "IBM"}, "junk"]}
        results = await SymbolSearch(fake_source_cls(search_response=raw)).search("ibm")

        assert [r.symbol for r in results] == ["IBM"]

    @pytest.mark.asyncio
    async def test_empty_list_is_a_valid_answer(self, fake_source_cls):
        search = SymbolSearch(fake_source_cls(search_response={"data": []}))

        assert await search.search("apple") == []
        assert search.stats["fallbacks"] == 0

    @pytest.mark.asyncio
    async def test_capped_at_ten(self, fake_source_cls):
        raw = [{"symbol": f"SYM{i}"} for i in range(25)]
        results = await SymbolSearch(fake_source_cls(search_response=raw)).search("sym")

        assert len(results) == 10
        assert results[0].symbol == "SYM0"
        assert results[-1].symbol == "SYM9"

    @pytest.mark.asyncio
    async def test_configured_max_results(self, fake_source_cls):
        raw = [{"symbol": f"SYM{i}"} for i in range(25)]
        results = await SymbolSearch(fake_source_cls(search_response=raw), max_results=3).search("sym")

        assert len(results) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            NetworkFailure("Connection refused"),
            UpstreamAPIError("Rate limit exceeded", status_code=429),
            RuntimeError("boom"),
        ],
    )
    async def test_failure_falls_back(self, fake_source_cls, error):
        search = SymbolSearch(fake_source_cls(search_response=error))

        results = await search.search("apple")

        assert [r.symbol for r in results] == ["AAPL"]
        assert search.last_error is error
        assert search.stats["fallbacks"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_shape_falls_back(self, fake_source_cls):
        search = SymbolSearch(fake_source_cls(search_response={"status": "error", "code": 401}))

        results = await search.search("micro")

        assert [r.symbol for r in results] == ["MSFT", "AMD"]
        assert isinstance(search.last_error, ValueError)

    @pytest.mark.asyncio
    async def test_demo_mode_uses_fallback_without_call(self, fake_source_cls):
        source = fake_source_cls(available=False, search_response=[{"symbol": "REMOTE"}])
        search = SymbolSearch(source)

        results = await search.search("tesla")

        assert [r.symbol for r in results] == ["TSLA"]
        assert source.search_calls == []
        assert search.stats == {"searches": 1, "fallbacks": 1}


class ControlledSearch:
    """SymbolSearch stand-in whose responses are released by the test."""

    def __init__(self):
        self.pending = {}

    async def search(self, query):
        future = asyncio.get_running_loop().create_future()
        self.pending[query] = future
        return await future


class TestLatestSearch:
    @pytest.mark.asyncio
    async def test_single_call_returns_results(self, fake_source_cls):
        latest = LatestSearch(SymbolSearch(fake_source_cls(search_response=[{"symbol": "AAPL"}])))

        results = await latest("aapl")

        assert [r.symbol for r in results] == ["AAPL"]
        assert latest.latest_id == 1

    @pytest.mark.asyncio
    async def test_superseded_response_discarded(self):
        controlled = ControlledSearch()
        latest = LatestSearch(controlled)

        first = asyncio.create_task(latest("ap"))
        await asyncio.sleep(0)
        second = asyncio.create_task(latest("apple"))
        await asyncio.sleep(0)

        # Newer request answers first, older one arrives late
        controlled.pending["apple"].set_result(["apple-results"])
        assert await second == ["apple-results"]

        controlled.pending["ap"].set_result(["stale"])
        assert await first is None
        assert latest.latest_id == 2

    @pytest.mark.asyncio
    async def test_older_response_discarded_even_if_it_arrives_first(self):
        controlled = ControlledSearch()
        latest = LatestSearch(controlled)

        first = asyncio.create_task(latest("m"))
        await asyncio.sleep(0)
        second = asyncio.create_task(latest("ms"))
        await asyncio.sleep(0)

        controlled.pending["m"].set_result(["stale"])
        assert await first is None

        controlled.pending["ms"].set_result(["fresh"])
        assert await second == ["fresh"]
