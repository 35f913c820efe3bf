"""
Twelve Data API Fetcher
Remote source for quotes, fundamentals, company profiles and symbol search.

Endpoints used:
    /quote          - latest quote (price, name, sometimes shares/market cap)
    /statistics     - valuation and financial statistics
    /profile        - company profile (name, sector, industry)
    /symbol_search  - symbol lookup for autocomplete

Rate limits (free tier): 8 calls/min, 800 calls/day. A stock fetch costs
3 calls (quote, statistics, profile are requested in parallel).

Error Handling:
    - Timeout: raises TimeoutFailure
    - Transport errors (DNS, refused, TLS): raises NetworkFailure
    - Non-2xx status or unreadable body: raises UpstreamAPIError
    - {"status": "error"} bodies sent with HTTP 200: logged, returned as-is

Usage:
    async with TwelveDataFetcher(settings=settings) as source:
        quote, statistics, profile = await source.fetch_raw("AAPL")
"""

import asyncio
from typing import Any

import aiohttp
import structlog

from stock_screener.config import DEMO_API_KEY, Settings, get_settings
from stock_screener.data.interfaces import MarketDataSource
from stock_screener.errors import (
    NetworkFailure,
    ScreenerError,
    TimeoutFailure,
    UpstreamAPIError,
)

logger = structlog.get_logger(__name__)

STOCK_ENDPOINTS = ("quote", "statistics", "profile")
SEARCH_ENDPOINT = "symbol_search"

# Specific guidance for common Twelve Data error codes
STATUS_MESSAGES = {
    400: "Bad request. Please check the symbol or parameters.",
    401: "Invalid API key. Please check your Twelve Data API key.",
    404: "Symbol not found or endpoint not available.",
    429: "Rate limit exceeded. Free tier allows 8 calls/min, 800 calls/day.",
}


class TwelveDataFetcher(MarketDataSource):
    """
    Minimal Twelve Data API client.

    Every request carries the API key and an independent timeout. One
    aiohttp session is shared by all requests until close().
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the fetcher.

        Args:
            api_key: Explicit key override (highest precedence)
            settings: Injected settings (defaults to get_settings())
            base_url: Override of settings.twelve_data_base_url
            timeout: Override of settings.request_timeout, in seconds
        """
        settings = settings or get_settings()
        self.api_key = settings.get_api_key(api_key)
        self.base_url = (base_url or settings.twelve_data_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.user_agent = settings.user_agent
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the aiohttp session. Safe to call multiple times."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def is_available(self) -> bool:
        """True unless running on the demo key."""
        return bool(self.api_key) and self.api_key != DEMO_API_KEY

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json", "User-Agent": self.user_agent}
            )
        return self._session

    async def _api_error(self, response, endpoint: str) -> UpstreamAPIError:
        """Build an UpstreamAPIError from a non-2xx response, keeping the body message if any."""
        status = response.status
        upstream_message = None
        try:
            body = await response.json(content_type=None)
            if isinstance(body, dict):
                upstream_message = body.get("message") or body.get("error")
        except (ValueError, aiohttp.ClientError) as e:
            logger.debug("error_body_not_json", endpoint=endpoint, status=status, error=str(e))

        if status in STATUS_MESSAGES:
            message = STATUS_MESSAGES[status]
        elif upstream_message:
            message = str(upstream_message)
        else:
            message = f"HTTP {status}: {response.reason}"

        if status == 429:
            logger.warning("rate_limit_exceeded", endpoint=endpoint)

        return UpstreamAPIError(
            message,
            status_code=status,
            upstream_message=str(upstream_message) if upstream_message else None,
        )

    async def _get(self, endpoint: str, params: dict[str, Any]) -> Any:
        """
        Make one API request.

        Args:
            endpoint: API endpoint (e.g., 'quote', 'statistics')
            params: Query parameters (the API key is added here)

        Returns:
            Decoded JSON body

        Raises:
            TimeoutFailure, NetworkFailure, UpstreamAPIError
        """
        url = f"{self.base_url}/{endpoint}"
        query = {**params, "apikey": self.api_key}
        session = self._get_session()

        try:
            async with session.get(
                url, params=query, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if not 200 <= response.status < 300:
                    raise await self._api_error(response, endpoint)

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamAPIError(
                        "Malformed JSON response", status_code=response.status
                    ) from e

                if isinstance(data, dict) and data.get("status") == "error":
                    logger.warning(
                        "upstream_error_payload",
                        endpoint=endpoint,
                        symbol=params.get("symbol"),
                        code=data.get("code"),
                        message=data.get("message"),
                    )
                return data

        except ScreenerError:
            raise
        except asyncio.TimeoutError as e:
            # Checked before ClientError: aiohttp's ServerTimeoutError is both
            raise TimeoutFailure(
                f"Request to {endpoint} timed out after {self.timeout}s", e
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkFailure(f"Network request to {endpoint} failed: {e}", e) from e

    async def fetch_raw(self, symbol: str) -> tuple[Any, Any, Any]:
        """
        Fetch quote, statistics and profile concurrently.

        All-or-nothing: the first failure cancels the remaining requests
        and propagates.
        """
        logger.debug("fetching_raw", symbol=symbol, endpoints=STOCK_ENDPOINTS)
        tasks = [
            asyncio.create_task(self._get(endpoint, {"symbol": symbol}))
            for endpoint in STOCK_ENDPOINTS
        ]
        try:
            quote, statistics, profile = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            # Drain so sibling failures don't surface as "never retrieved"
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return quote, statistics, profile

    async def search_raw(self, query: str) -> Any:
        """Raw /symbol_search payload for a query."""
        return await self._get(SEARCH_ENDPOINT, {"symbol": query})
