"""Build portfolio metrics reports from live market data."""

import asyncio
from collections.abc import Callable, Sequence
from datetime import date, datetime

import pytz
import sentry_sdk

from divwatch.logging import logger
from divwatch.metrics import aggregate_totals, analyze_position
from divwatch.models import MetricsReport, Position, TickerError, TickerMetrics
from divwatch.providers.base import MarketDataProvider


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


class PortfolioService:
    """
    🧮 Computes the full portfolio snapshot on every call.

    Args:
        provider: Market-data provider (normally the cached fallback chain)
        start_date: Baseline date for price return
        timezone: Reporting timezone for "now" and calendar years
        clock: Returns the current aware datetime; override in tests
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        start_date: date,
        timezone: str = "America/New_York",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.provider = provider
        self.start_date = start_date
        self.timezone = pytz.timezone(timezone)
        self._clock = clock

    def now(self) -> datetime:
        """Current time in the reporting timezone."""
        return self._clock().astimezone(self.timezone)

    async def analyze_ticker(self, position: Position, now: datetime) -> TickerMetrics:
        """Fetch quote, dividends and baseline concurrently, then derive metrics."""
        quote, dividends, start_price = await asyncio.gather(
            self.provider.fetch_quote(position.ticker),
            self.provider.fetch_dividends(position.ticker),
            self.provider.fetch_baseline(position.ticker, self.start_date),
        )
        return analyze_position(position, quote, dividends, start_price, now)

    async def _analyze_isolated(
        self, position: Position, now: datetime
    ) -> TickerMetrics | TickerError:
        try:
            return await self.analyze_ticker(position, now)
        except Exception as e:
            logger.error(
                "Failed to analyze ticker={ticker} error={error}",
                ticker=position.ticker,
                error=str(e),
            )
            sentry_sdk.capture_exception(e)
            return TickerError(ticker=position.ticker, error=str(e))

    async def build_report(self, positions: Sequence[Position]) -> MetricsReport:
        """
        Analyze every position and fold the successes into totals.

        A failing ticker becomes a TickerError row; the rest of the batch is
        unaffected. Rows keep the configured position order.
        """
        now = self.now()
        logger.info(
            "Building metrics report tickers={count} start_date={start_date}",
            count=len(positions),
            start_date=str(self.start_date),
        )

        rows = await asyncio.gather(
            *(self._analyze_isolated(position, now) for position in positions)
        )
        successes = [row for row in rows if isinstance(row, TickerMetrics)]
        failures = len(rows) - len(successes)
        if failures:
            logger.warning(
                "Metrics report has failed tickers failed={failed} total={total}",
                failed=failures,
                total=len(rows),
            )

        return MetricsReport(
            generated_at=now,
            start_date=self.start_date,
            per_ticker=list(rows),
            totals=aggregate_totals(successes),
        )
