"""Data models for divwatch."""

from datetime import date as Date
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Position(BaseModel):
    """
    💼 One configured holding.

    Supplied by the static portfolio configuration and immutable for the
    lifetime of a request.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,  # Allow both 'avg_price' and 'avgPrice'
    )

    ticker: str = Field(..., description="Ticker symbol (e.g., 'KO')")
    shares: float = Field(..., gt=0, description="Number of shares held")
    avg_price: float = Field(..., gt=0, description="Average cost basis per share")


class Quote(BaseModel):
    """Current price and display data for a ticker."""

    price: float | None = Field(None, description="Current price (None if unknown)")
    currency: str = Field("", description="Currency code (blank if the provider omits it)")
    name: str = Field(..., description="Display name (falls back to the ticker)")


class DividendEvent(BaseModel):
    """A single cash dividend, per share."""

    date: Date = Field(..., description="Dividend (ex-)date")
    dividend: float = Field(..., description="Cash amount per share")


class TickerMetrics(BaseModel):
    """
    📊 Derived metrics for one position.

    Every derived field is None when one of its inputs is unavailable.
    Serialized with camelCase keys (``avgPrice``, ``ttmDivPS``, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ticker: str
    name: str
    currency: str
    shares: float
    avg_price: float
    current_price: float | None = None
    start_price: float | None = Field(None, description="Baseline price")
    market_value: float | None = None
    ttm_div_ps: float | None = Field(None, alias="ttmDivPS")
    current_yield: float | None = None
    yield_on_cost: float | None = None
    dgr3: float | None = None
    dgr5: float | None = None
    dgr10: float | None = None
    price_return_abs: float | None = None
    price_return_pct: float | None = None
    annual_div_income: float | None = None
    monthly_div_income: float | None = None


class TickerError(BaseModel):
    """Row emitted in place of TickerMetrics when a ticker could not be analyzed."""

    ticker: str
    error: str


class PortfolioTotals(BaseModel):
    """Portfolio-level sums over the successfully analyzed positions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    currency: str = ""
    tickers: int = 0
    market_value: float = 0.0
    price_pnl: float = Field(0.0, alias="pricePnL")
    annual_div_income: float = 0.0
    monthly_div_income: float = 0.0
    start_value: float = 0.0
    price_return_pct: float | None = None


class MetricsReport(BaseModel):
    """Full response of the metrics endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    generated_at: datetime
    start_date: Date
    per_ticker: list[TickerMetrics | TickerError]
    totals: PortfolioTotals

    @property
    def rows(self) -> list[TickerMetrics]:
        """Successfully analyzed rows only."""
        return [row for row in self.per_ticker if isinstance(row, TickerMetrics)]

    @property
    def errors(self) -> list[TickerError]:
        return [row for row in self.per_ticker if isinstance(row, TickerError)]
