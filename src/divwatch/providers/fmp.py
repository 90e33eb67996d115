"""Financial Modeling Prep market-data provider."""

import logging
from datetime import date, timedelta
from typing import Any
from urllib.parse import quote as url_quote

import httpx
import sentry_sdk
import structlog

from divwatch.exceptions import ConfigurationError, ProviderError, RateLimitError
from divwatch.metrics import to_num
from divwatch.models import DividendEvent, Quote

logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

FMP_BASE_URL = "https://financialmodelingprep.com/api/v3"
DIVIDEND_HISTORY_YEARS = 12
BASELINE_LOOKBEHIND_DAYS = 10
BASELINE_LOOKAHEAD_DAYS = 20


class FMPProvider:
    """
    📈 Financial Modeling Prep provider.

    Quotes come from ``/quote``, dividends from
    ``/historical-price-full/stock_dividend`` and the baseline price from the
    daily ``/historical-price-full`` series. FMP reports most failures as a
    200 response carrying an ``"Error Message"`` envelope, so bodies are
    checked as well as status codes.
    """

    name = "fmp"

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        base_url: str = FMP_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ConfigurationError("FMP_API_KEY missing")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, **params: Any) -> Any:
        """GET an FMP endpoint and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        sentry_sdk.add_breadcrumb(
            category="provider",
            message=f"FMP request {path}",
            level="info",
            data={"path": path},
        )

        try:
            response = await self.client.get(url, params={**params, "apikey": self.api_key})
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"{path} request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError(self.name, f"{path} rate limited (429)")
        if response.is_error:
            raise ProviderError(self.name, f"{path} {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"{path} returned invalid JSON") from e

        if isinstance(body, dict) and "Error Message" in body:
            message = str(body["Error Message"])
            if "limit" in message.lower():
                raise RateLimitError(self.name, message)
            raise ProviderError(self.name, message)

        return body

    async def fetch_quote(self, ticker: str) -> Quote:
        logger.info("Fetching quote", provider=self.name, ticker=ticker)
        body = await self._get(f"/quote/{url_quote(ticker, safe='')}")

        quote = body[0] if isinstance(body, list) and body else {}
        if not isinstance(quote, dict):
            raise ProviderError(self.name, f"unexpected quote payload for {ticker}")

        return Quote(
            price=to_num(quote.get("price")),
            name=quote.get("name") or ticker,
            currency=quote.get("currency") or "",
        )

    async def fetch_dividends(self, ticker: str) -> list[DividendEvent]:
        logger.info("Fetching dividends", provider=self.name, ticker=ticker)
        since = date.today() - timedelta(days=365 * DIVIDEND_HISTORY_YEARS)
        body = await self._get(
            f"/historical-price-full/stock_dividend/{url_quote(ticker, safe='')}",
            **{"from": since.isoformat()},
        )

        events = []
        for item in _historical(body):
            # Prefer the split-adjusted amount
            amount = to_num(item.get("adjDividend"))
            if amount is None:
                amount = to_num(item.get("dividend"))
            event_date = _parse_date(item.get("date"))
            if amount is None or amount <= 0 or event_date is None:
                continue
            events.append(DividendEvent(date=event_date, dividend=amount))

        logger.info(
            "Dividends fetched", provider=self.name, ticker=ticker, count=len(events)
        )
        return events

    async def fetch_baseline(self, ticker: str, start_date: date) -> float | None:
        logger.info(
            "Fetching baseline price",
            provider=self.name,
            ticker=ticker,
            start_date=str(start_date),
        )
        body = await self._get(
            f"/historical-price-full/{url_quote(ticker, safe='')}",
            **{
                "from": (start_date - timedelta(days=BASELINE_LOOKBEHIND_DAYS)).isoformat(),
                "to": (start_date + timedelta(days=BASELINE_LOOKAHEAD_DAYS)).isoformat(),
                "serietype": "line",
            },
        )

        bars = []
        for item in _historical(body):
            bar_date = _parse_date(item.get("date"))
            if bar_date is not None:
                bars.append((bar_date, item))

        for bar_date, item in sorted(bars, key=lambda bar: bar[0]):
            if bar_date >= start_date:
                price = to_num(item.get("adjClose"))
                return price if price is not None else to_num(item.get("close"))

        return None


def _historical(body: Any) -> list[dict]:
    """Extract the ``historical`` list from an FMP series response."""
    if not isinstance(body, dict):
        return []
    items = body.get("historical") or []
    return [item for item in items if isinstance(item, dict)]


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None
