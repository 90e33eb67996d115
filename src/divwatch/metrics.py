"""
Dividend and price-return calculations.

Everything in this module is pure: callers pass in fetched data and an
explicit ``now`` so results never depend on the wall clock.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from divwatch.models import (
    DividendEvent,
    PortfolioTotals,
    Position,
    Quote,
    TickerMetrics,
)

DGR_WINDOWS = (3, 5, 10)
TTM_DAYS = 365


def to_num(value: object) -> float | None:
    """Coerce a provider value to a finite float, or None."""
    if value is None or isinstance(value, (list, dict)):
        return None
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def safe_divide(a: float | None, b: float | None) -> float | None:
    """Divide a by b; None if either is missing, b is zero, or the result isn't finite."""
    if a is None or b is None or b == 0:
        return None
    result = a / b
    return result if math.isfinite(result) else None


def _finite(value: float | None) -> float | None:
    return value if value is not None and math.isfinite(value) else None


def last_full_calendar_year(now: datetime) -> int:
    return now.year - 1


@dataclass
class DividendSummary:
    """Annual per-share totals plus the trailing-twelve-month sum."""

    by_year: dict[int, float] = field(default_factory=dict)
    ttm: float = 0.0


def aggregate_dividends(events: Iterable[DividendEvent], now: datetime) -> DividendSummary:
    """
    Bucket dividends by calendar year and sum the trailing twelve months.

    Args:
        events: Dividend events in any order
        now: Current time in the reporting timezone

    Returns:
        DividendSummary with per-year totals and the TTM amount

    Dates are calendar dates and are bucketed by their own year. An event
    counts toward TTM when its date falls strictly after ``now - 365 days``.
    Non-positive amounts are ignored entirely.
    """
    summary = DividendSummary()
    ttm_start = (now - timedelta(days=TTM_DAYS)).date()

    for event in sorted(events, key=lambda e: e.date):
        amount = to_num(event.dividend)
        if not amount or amount <= 0:
            continue
        year = event.date.year
        summary.by_year[year] = summary.by_year.get(year, 0.0) + amount
        if event.date > ttm_start:
            summary.ttm += amount

    return summary


def dividend_growth_rate(
    by_year: dict[int, float], years: int, now: datetime
) -> float | None:
    """
    Compound annual dividend growth over ``years`` full calendar years.

    Compares the last completed year against the year ``years`` before it.
    A missing boundary year, or a non-positive total on either end, makes
    the whole window unavailable.
    """
    end_year = last_full_calendar_year(now)
    end = by_year.get(end_year)
    start = by_year.get(end_year - years)
    if end is None or start is None or start <= 0 or end <= 0:
        return None
    rate = (end / start) ** (1 / years) - 1
    return rate if math.isfinite(rate) else None


def analyze_position(
    position: Position,
    quote: Quote,
    dividends: Iterable[DividendEvent],
    start_price: float | None,
    now: datetime,
) -> TickerMetrics:
    """Combine fetched market data with a position into one metrics row."""
    summary = aggregate_dividends(dividends, now)
    ttm = summary.ttm
    price = to_num(quote.price)
    start_price = to_num(start_price)
    shares = position.shares

    market_value = _finite(price * shares) if price is not None else None
    current_yield = safe_divide(ttm, price) if price is not None and price > 0 else None
    yield_on_cost = safe_divide(ttm, position.avg_price)

    price_return_abs = None
    price_return_pct = None
    if price is not None and start_price is not None and start_price > 0:
        price_return_abs = _finite((price - start_price) * shares)
        price_return_pct = safe_divide(price - start_price, start_price)

    annual_div_income = _finite(ttm * shares)
    monthly_div_income = safe_divide(annual_div_income, 12)

    dgr3, dgr5, dgr10 = (
        dividend_growth_rate(summary.by_year, years, now) for years in DGR_WINDOWS
    )

    return TickerMetrics(
        ticker=position.ticker,
        name=quote.name,
        currency=quote.currency,
        shares=shares,
        avg_price=position.avg_price,
        current_price=price,
        start_price=start_price,
        market_value=market_value,
        ttm_div_ps=ttm,
        current_yield=current_yield,
        yield_on_cost=yield_on_cost,
        dgr3=dgr3,
        dgr5=dgr5,
        dgr10=dgr10,
        price_return_abs=price_return_abs,
        price_return_pct=price_return_pct,
        annual_div_income=annual_div_income,
        monthly_div_income=monthly_div_income,
    )


def aggregate_totals(rows: Iterable[TickerMetrics]) -> PortfolioTotals:
    """
    Fold metrics rows into portfolio totals.

    Unavailable fields count as zero so one incomplete position never blanks
    the portfolio figures. The portfolio price return is only reported when
    the summed baseline value is positive.
    """
    rows = list(rows)
    totals = PortfolioTotals(
        currency=next((row.currency for row in rows if row.currency), ""),
        tickers=len(rows),
    )

    for row in rows:
        totals.market_value += row.market_value or 0.0
        totals.price_pnl += row.price_return_abs or 0.0
        totals.annual_div_income += row.annual_div_income or 0.0
        totals.start_value += (row.start_price or 0.0) * row.shares

    totals.price_return_pct = (
        safe_divide(totals.price_pnl, totals.start_value)
        if totals.start_value > 0
        else None
    )
    totals.monthly_div_income = totals.annual_div_income / 12
    return totals
