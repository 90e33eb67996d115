"""Shared pytest fixtures for divwatch tests."""

import asyncio
from datetime import date, datetime

import pytest
import pytz
from loguru import logger

from divwatch.exceptions import ProviderError
from divwatch.models import DividendEvent, Position, Quote


@pytest.fixture(autouse=True)
def disable_loguru():
    """Disable loguru output during tests for cleaner output."""
    logger.disable("divwatch")
    yield
    logger.enable("divwatch")


def run(coro):
    """Run a coroutine to completion in a fresh event loop."""
    return asyncio.run(coro)


class FakeProvider:
    """In-memory MarketDataProvider that records every call."""

    def __init__(
        self,
        quotes: dict[str, Quote] | None = None,
        dividends: dict[str, list[DividendEvent]] | None = None,
        baselines: dict[str, float | None] | None = None,
        failing: dict[str, Exception] | None = None,
        name: str = "fake",
    ) -> None:
        self.name = name
        self.quotes = quotes or {}
        self.dividends = dividends or {}
        self.baselines = baselines or {}
        self.failing = failing or {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def _check(self, operation: str, ticker: str) -> None:
        self.calls.append((operation, ticker))
        if ticker in self.failing:
            raise self.failing[ticker]

    async def fetch_quote(self, ticker: str) -> Quote:
        self._check("quote", ticker)
        return self.quotes.get(ticker, Quote(price=None, name=ticker))

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        self._check("dividends", ticker)
        return self.dividends.get(ticker, [])

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        self._check("baseline", ticker)
        return self.baselines.get(ticker)

    async def aclose(self) -> None:
        self.closed = True


# 2024-06-15 08:00 in New York
FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=pytz.UTC)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW.astimezone(pytz.timezone("America/New_York"))


@pytest.fixture
def quarterly_dividends() -> list[DividendEvent]:
    """Four 0.50 payments inside the trailing year plus one just outside it."""
    return [
        DividendEvent(date=date(2023, 6, 1), dividend=0.50),
        DividendEvent(date=date(2023, 9, 1), dividend=0.50),
        DividendEvent(date=date(2023, 12, 1), dividend=0.50),
        DividendEvent(date=date(2024, 3, 1), dividend=0.50),
        DividendEvent(date=date(2024, 6, 1), dividend=0.50),
    ]


@pytest.fixture
def three_ticker_provider(quarterly_dividends) -> FakeProvider:
    """KO and PEP succeed, MSFT fails with a provider error."""
    return FakeProvider(
        quotes={
            "KO": Quote(price=150.0, name="Coca-Cola", currency="USD"),
            "PEP": Quote(price=80.0, name="PepsiCo", currency="USD"),
        },
        dividends={"KO": quarterly_dividends},
        baselines={"KO": 100.0, "PEP": 100.0},
        failing={"MSFT": ProviderError("fake", "MSFT quote 500")},
    )


@pytest.fixture
def three_positions() -> list[Position]:
    return [
        Position(ticker="KO", shares=50, avg_price=120.50),
        Position(ticker="MSFT", shares=10, avg_price=300.0),
        Position(ticker="PEP", shares=20, avg_price=90.0),
    ]
