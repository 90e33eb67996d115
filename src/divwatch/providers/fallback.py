"""Provider chain with fixed-order failover."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date
from typing import TypeVar

import structlog

from divwatch.cache import CachedMarketDataProvider
from divwatch.config import Settings
from divwatch.exceptions import ConfigurationError, ProviderError
from divwatch.models import DividendEvent, Quote
from divwatch.providers.base import MarketDataProvider
from divwatch.providers.fmp import FMPProvider
from divwatch.providers.polygon import PolygonProvider

logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

T = TypeVar("T")


class FallbackMarketDataProvider:
    """
    🪜 Tries each provider in order until one answers.

    Only ProviderError (rate limits included) moves on to the next provider;
    anything else propagates. There is no retry of the same provider.
    """

    def __init__(self, providers: Sequence[MarketDataProvider]) -> None:
        if not providers:
            raise ConfigurationError("No market data provider configured")
        self.providers = list(providers)
        self.name = "+".join(p.name for p in self.providers)

    async def _first_success(
        self,
        operation: str,
        ticker: str,
        call: Callable[[MarketDataProvider], Awaitable[T]],
    ) -> T:
        last_error: ProviderError | None = None
        for provider in self.providers:
            try:
                return await call(provider)
            except ProviderError as e:
                logger.warning(
                    "Provider failed, trying next",
                    provider=provider.name,
                    operation=operation,
                    ticker=ticker,
                    error=str(e),
                )
                last_error = e

        if last_error is None:
            raise ProviderError(self.name, f"no provider answered {operation} {ticker}")
        raise last_error

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.aclose()

    async def fetch_quote(self, ticker: str) -> Quote:
        return await self._first_success(
            "quote", ticker, lambda p: p.fetch_quote(ticker)
        )

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        return await self._first_success(
            "dividends", ticker, lambda p: p.fetch_dividends(ticker)
        )

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        return await self._first_success(
            "baseline", ticker, lambda p: p.fetch_baseline(ticker, start_date)
        )


def configured_provider_names(settings: Settings) -> list[str]:
    """
    Providers to use, in DATA_PROVIDERS order, skipping any without a credential.

    Raises:
        ConfigurationError: for an unknown provider name, or when no
            configured provider has credentials
    """
    credentials = {
        "fmp": settings.fmp_api_key,
        "polygon": settings.polygon_api_key,
    }
    names = []
    for name in settings.get_provider_names():
        if name not in credentials:
            raise ConfigurationError(f"Unknown data provider: {name}")
        if credentials[name]:
            names.append(name)

    if not names:
        raise ConfigurationError(
            "No market data provider credentials (set FMP_API_KEY or POLYGON_API_KEY)"
        )
    return names


def build_provider(settings: Settings) -> CachedMarketDataProvider:
    """
    Assemble the cached provider chain from settings.

    Raises:
        ConfigurationError: see ``configured_provider_names``
    """
    providers: list[MarketDataProvider] = []
    for name in configured_provider_names(settings):
        if name == "fmp":
            providers.append(
                FMPProvider(settings.fmp_api_key, timeout=settings.http_timeout)
            )
        else:
            providers.append(PolygonProvider(settings.polygon_api_key))

    logger.info("Market data providers configured", providers=[p.name for p in providers])
    return CachedMarketDataProvider(
        FallbackMarketDataProvider(providers),
        quote_ttl=settings.quote_cache_ttl,
        dividends_ttl=settings.dividends_cache_ttl,
        baseline_ttl=settings.baseline_cache_ttl,
    )
