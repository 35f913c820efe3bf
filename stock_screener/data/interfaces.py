from abc import ABC, abstractmethod
from typing import Any


class MarketDataSource(ABC):
    """
    Abstract Base Class for remote market data providers.

    StockDataService depends only on this interface, so tests and
    alternative providers can be swapped in without touching the cache
    and fallback logic.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this source is configured for network access.
        Returns False in demo mode (no real API key).
        """
        pass

    @abstractmethod
    async def fetch_raw(self, symbol: str) -> tuple[Any, Any, Any]:
        """
        Returns the raw (quote, statistics, profile) payloads for a symbol.
        All-or-nothing: raises a ScreenerError subclass if any call fails.
        """
        pass

    @abstractmethod
    async def search_raw(self, query: str) -> Any:
        """
        Returns the raw symbol search payload (list or wrapped list).
        Raises a ScreenerError subclass on failure.
        """
        pass

    async def close(self) -> None:
        """Release network resources. Safe to call multiple times."""
        return None
