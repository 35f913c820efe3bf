"""Pytest configuration for stock screener tests."""

import logging
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stock_screener.config import Settings  # noqa: E402
from stock_screener.data.interfaces import MarketDataSource  # noqa: E402
from stock_screener.data.service import StockDataService  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """
    Set up test environment variables.
    Applies a dummy API key so nothing runs in demo mode by accident;
    tests that need demo mode build their own Settings.
    """
    test_env = {
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "ERROR",
        "TWELVE_DATA_API_KEY": "test-key",
    }
    with patch.dict(os.environ, test_env, clear=False):
        yield


@pytest.fixture(autouse=True)
def configure_structlog_for_tests():
    """Configure structlog for test environment."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.root.setLevel(logging.WARNING)
    yield


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeSource(MarketDataSource):
    """
    Scripted market data source.

    responses maps symbol -> (quote, statistics, profile) or an exception
    to raise. Unknown symbols get empty payloads (a degenerate record).
    """

    def __init__(self, responses=None, available=True, search_response=None):
        self.responses = responses or {}
        self.available = available
        self.search_response = search_response
        self.calls = []
        self.search_calls = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    async def fetch_raw(self, symbol):
        self.calls.append(symbol)
        response = self.responses.get(symbol, ({}, {}, {}))
        if isinstance(response, Exception):
            raise response
        return response

    async def search_raw(self, query):
        self.search_calls.append(query)
        if isinstance(self.search_response, Exception):
            raise self.search_response
        return self.search_response

    async def close(self):
        self.closed = True


def payload(price=100.0, pe=20.0, name=None, sector="Technology", shares=None, **statistics):
    """Build a well-formed (quote, statistics, profile) triple."""
    quote = {"close": str(price)}
    stats = {"valuations_metrics": {"pe_ratio": pe}, **statistics}
    if shares is not None:
        stats["shares_outstanding"] = shares
    profile = {"sector": sector}
    if name:
        profile["name"] = name
    return quote, stats, profile


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_settings():
    def _make(**overrides):
        values = {
            "twelve_data_api_key": "test-key",
            "cache_duration": 300.0,
            "max_cache_entries": 50,
            "_env_file": None,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def make_service(make_settings, clock):
    """Build a StockDataService around a FakeSource with a fake clock."""

    def _make(source=None, **settings_overrides):
        return StockDataService(
            settings=make_settings(**settings_overrides),
            source=source if source is not None else FakeSource(),
            clock=clock,
        )

    return _make


@pytest.fixture
def fake_source_cls():
    return FakeSource


@pytest.fixture
def payload_factory():
    return payload
