"""Market-data provider interface."""

from datetime import date
from typing import Protocol

from divwatch.models import DividendEvent, Quote


class MarketDataProvider(Protocol):
    """
    🎭 Protocol for market-data providers.

    Any class exposing these three coroutines can serve quotes, dividend
    history and baseline prices. Implementations raise ProviderError (or
    RateLimitError) when the upstream service can't deliver.

    Example:
        class MyProvider:
            name = "mine"

            async def fetch_quote(self, ticker: str) -> Quote: ...
            async def fetch_dividends(self, ticker: str) -> list[DividendEvent]: ...
            async def fetch_baseline(self, ticker: str, start_date: date) -> float | None: ...
    """

    name: str

    async def fetch_quote(self, ticker: str) -> Quote:
        """Current price, currency and display name."""
        ...

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        """Positive per-share dividends, roughly the last twelve years."""
        ...

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        """Close of the first trading day on or after ``start_date``."""
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the provider."""
        ...
