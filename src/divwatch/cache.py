"""Expiring in-memory caches in front of market-data providers."""

import time
from collections.abc import Callable, Hashable
from datetime import date
from typing import Any

from divwatch.logging import logger
from divwatch.models import DividendEvent, Quote
from divwatch.providers.base import MarketDataProvider

Clock = Callable[[], float]


class TTLCache:
    """Keyed store whose entries expire ``ttl_seconds`` after being written."""

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None on a miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CachedMarketDataProvider:
    """
    💾 Memoizes each provider operation with its own TTL.

    Quotes change by the minute, dividend history a few times a year, and
    the baseline price never, so each gets an independent cache keyed by
    ticker. Failed fetches are not cached. Concurrent misses for the same
    key each hit the provider.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        quote_ttl: float = 60,
        dividends_ttl: float = 12 * 60 * 60,
        baseline_ttl: float = 30 * 24 * 60 * 60,
        clock: Clock = time.monotonic,
    ) -> None:
        self.provider = provider
        self.name = f"cached({provider.name})"
        self.quotes = TTLCache(quote_ttl, clock)
        self.dividends = TTLCache(dividends_ttl, clock)
        self.baselines = TTLCache(baseline_ttl, clock)

    async def fetch_quote(self, ticker: str) -> Quote:
        cached = self.quotes.get(ticker)
        if cached is not None:
            logger.debug("Cache hit kind=quote ticker={ticker}", ticker=ticker)
            return cached

        quote = await self.provider.fetch_quote(ticker)
        self.quotes.set(ticker, quote)
        return quote

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        cached = self.dividends.get(ticker)
        if cached is not None:
            logger.debug("Cache hit kind=dividends ticker={ticker}", ticker=ticker)
            return cached

        events = await self.provider.fetch_dividends(ticker)
        self.dividends.set(ticker, events)
        return events

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        # Stored as a 1-tuple so a missing (None) baseline is cached as well
        cached = self.baselines.get(ticker)
        if cached is not None:
            logger.debug("Cache hit kind=baseline ticker={ticker}", ticker=ticker)
            return cached[0]

        price = await self.provider.fetch_baseline(ticker, start_date)
        self.baselines.set(ticker, (price,))
        return price

    def clear(self) -> None:
        self.quotes.clear()
        self.dividends.clear()
        self.baselines.clear()

    async def aclose(self) -> None:
        """Drop cached entries and close the wrapped provider."""
        self.clear()
        await self.provider.aclose()
