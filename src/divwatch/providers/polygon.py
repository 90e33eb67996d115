"""Polygon.io market-data provider."""

import asyncio
import logging
from datetime import date, timedelta

import polars as pl
import sentry_sdk
import structlog
from polygon import RESTClient

from divwatch.exceptions import ConfigurationError, ProviderError
from divwatch.metrics import to_num
from divwatch.models import DividendEvent, Quote

logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

DIVIDEND_HISTORY_YEARS = 12
BASELINE_LOOKAHEAD_DAYS = 20
MARKET_TIMEZONE = "America/New_York"


class PolygonProvider:
    """
    🔁 Polygon.io provider, used as the fallback source.

    The polygon client is synchronous, so every call runs in a worker thread.
    The quote price is the previous session's close.
    """

    name = "polygon"

    def __init__(self, api_key: str | None) -> None:
        if not api_key:
            raise ConfigurationError("POLYGON_API_KEY missing")
        self.api_key = api_key

    def _client(self) -> RESTClient:
        return RESTClient(api_key=self.api_key)

    async def aclose(self) -> None:
        # Clients are created per call and hold no pooled connections
        return None

    async def _call(self, description: str, func, *args, **kwargs):
        """Run a blocking client call in a thread, normalizing failures."""
        sentry_sdk.add_breadcrumb(
            category="provider",
            message=f"Polygon request {description}",
            level="info",
        )
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except Exception as e:
            raise ProviderError(self.name, f"{description} failed: {e}") from e

    async def fetch_quote(self, ticker: str) -> Quote:
        logger.info("Fetching quote", provider=self.name, ticker=ticker)
        return await self._call(f"quote {ticker}", self._get_quote, ticker)

    def _get_quote(self, ticker: str) -> Quote:
        client = self._client()

        prev = client.get_previous_close_agg(ticker)
        if isinstance(prev, list):
            prev = prev[0] if prev else None
        price = to_num(getattr(prev, "close", None))

        details = client.get_ticker_details(ticker)
        currency = getattr(details, "currency_name", None) or ""

        return Quote(
            price=price,
            name=getattr(details, "name", None) or ticker,
            currency=currency.upper(),
        )

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        logger.info("Fetching dividends", provider=self.name, ticker=ticker)
        events = await self._call(f"dividends {ticker}", self._get_dividends, ticker)
        logger.info(
            "Dividends fetched", provider=self.name, ticker=ticker, count=len(events)
        )
        return events

    def _get_dividends(self, ticker: str) -> list[DividendEvent]:
        client = self._client()
        since = date.today() - timedelta(days=365 * DIVIDEND_HISTORY_YEARS)

        events = []
        for div in client.list_dividends(
            ticker=ticker, ex_dividend_date_gte=since.isoformat(), limit=1000
        ):
            amount = to_num(getattr(div, "cash_amount", None))
            ex_date = getattr(div, "ex_dividend_date", None)
            if amount is None or amount <= 0 or not ex_date:
                continue
            events.append(
                DividendEvent(date=date.fromisoformat(str(ex_date)[:10]), dividend=amount)
            )
        return events

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        logger.info(
            "Fetching baseline price",
            provider=self.name,
            ticker=ticker,
            start_date=str(start_date),
        )
        return await self._call(
            f"baseline {ticker}", self._get_baseline, ticker, start_date
        )

    def _get_baseline(self, ticker: str, start_date: date) -> float | None:
        client = self._client()
        end_date = start_date + timedelta(days=BASELINE_LOOKAHEAD_DAYS)

        aggs = [
            {"timestamp": a.timestamp, "close": a.close}
            for a in client.list_aggs(
                ticker,
                1,
                "day",
                start_date.isoformat(),
                end_date.isoformat(),
                adjusted=True,
                sort="asc",
            )
        ]
        if not aggs:
            return None

        # Daily bar timestamps are New York midnights expressed in UTC ms
        df = (
            pl.DataFrame(aggs)
            .with_columns(
                pl.from_epoch("timestamp", time_unit="ms")
                .dt.replace_time_zone("UTC")
                .dt.convert_time_zone(MARKET_TIMEZONE)
                .dt.date()
                .alias("date")
            )
            .filter(pl.col("date") >= start_date)
            .sort("date")
        )
        if df.is_empty():
            return None

        return to_num(df["close"][0])
