"""Tests for the metrics calculations."""

import math
from datetime import date, datetime

import pytest
import pytz

from divwatch.metrics import (
    aggregate_dividends,
    aggregate_totals,
    analyze_position,
    dividend_growth_rate,
    last_full_calendar_year,
    safe_divide,
    to_num,
)
from divwatch.models import DividendEvent, Position, Quote, TickerMetrics

NY = pytz.timezone("America/New_York")


def ny(*args) -> datetime:
    return NY.localize(datetime(*args))


def make_row(**overrides) -> TickerMetrics:
    data = {
        "ticker": "KO",
        "name": "Coca-Cola",
        "currency": "USD",
        "shares": 10.0,
        "avg_price": 50.0,
    }
    data.update(overrides)
    return TickerMetrics(**data)


class TestToNum:
    """Test cases for to_num."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1, 1.0),
            (2.5, 2.5),
            ("3.25", 3.25),
            (0, 0.0),
            (None, None),
            ("abc", None),
            (float("nan"), None),
            (float("inf"), None),
            ([], None),
            ({}, None),
        ],
    )
    def test_to_num(self, value, expected):
        assert to_num(value) == expected


class TestSafeDivide:
    """Test cases for safe_divide."""

    @pytest.mark.parametrize("a", [0.0, 1.0, -3.5, 1e9])
    def test_divide_by_zero_is_unavailable(self, a):
        assert safe_divide(a, 0) is None

    @pytest.mark.parametrize("b", [1.0, -2.0, 0.001, 1e9])
    def test_zero_numerator_is_zero(self, b):
        assert safe_divide(0, b) == 0

    def test_regular_division(self):
        assert safe_divide(3, 4) == 0.75

    def test_missing_operand(self):
        assert safe_divide(None, 4) is None
        assert safe_divide(4, None) is None

    def test_overflow_is_unavailable(self):
        assert safe_divide(1e308, 1e-308) is None


class TestAggregateDividends:
    """Test cases for aggregate_dividends."""

    def test_buckets_by_calendar_year(self, fixed_now):
        events = [
            DividendEvent(date=date(2022, 3, 1), dividend=0.25),
            DividendEvent(date=date(2022, 12, 31), dividend=0.25),
            DividendEvent(date=date(2023, 1, 1), dividend=0.30),
        ]

        summary = aggregate_dividends(events, fixed_now)

        assert summary.by_year == {2022: 0.5, 2023: 0.3}

    def test_ttm_counts_last_365_days(self, fixed_now, quarterly_dividends):
        summary = aggregate_dividends(quarterly_dividends, fixed_now)

        assert summary.ttm == pytest.approx(2.0)
        assert summary.by_year == {2023: pytest.approx(1.5), 2024: pytest.approx(1.0)}

    def test_ttm_boundary_is_exclusive(self):
        now = ny(2023, 6, 15, 8, 0)
        events = [
            DividendEvent(date=date(2022, 6, 15), dividend=1.0),  # exactly 365 days ago
            DividendEvent(date=date(2022, 6, 16), dividend=2.0),
        ]

        assert aggregate_dividends(events, now).ttm == 2.0

    def test_non_positive_amounts_are_ignored(self, fixed_now):
        events = [
            DividendEvent(date=date(2024, 1, 10), dividend=0.0),
            DividendEvent(date=date(2024, 2, 10), dividend=-0.5),
            DividendEvent(date=date(2023, 2, 10), dividend=-1.0),
            DividendEvent(date=date(2024, 3, 10), dividend=0.4),
        ]

        summary = aggregate_dividends(events, fixed_now)

        assert summary.by_year == {2024: 0.4}
        assert summary.ttm == 0.4

    def test_unordered_input(self, fixed_now, quarterly_dividends):
        ordered = aggregate_dividends(quarterly_dividends, fixed_now)
        shuffled = aggregate_dividends(list(reversed(quarterly_dividends)), fixed_now)

        assert shuffled.by_year == ordered.by_year
        assert shuffled.ttm == pytest.approx(ordered.ttm)

    def test_empty_history(self, fixed_now):
        summary = aggregate_dividends([], fixed_now)

        assert summary.by_year == {}
        assert summary.ttm == 0.0


class TestDividendGrowthRate:
    """Test cases for dividend_growth_rate."""

    def test_three_year_growth(self):
        now = ny(2024, 5, 1, 12, 0)

        rate = dividend_growth_rate({2020: 1.00, 2023: 1.331}, 3, now)

        assert rate == pytest.approx(0.10)

    def test_missing_start_year(self):
        now = ny(2024, 5, 1, 12, 0)

        assert dividend_growth_rate({2023: 1.331}, 3, now) is None

    def test_missing_end_year(self):
        now = ny(2024, 5, 1, 12, 0)

        assert dividend_growth_rate({2020: 1.0, 2024: 2.0}, 3, now) is None

    def test_non_positive_start(self):
        now = ny(2024, 5, 1, 12, 0)

        assert dividend_growth_rate({2020: 0.0, 2023: 1.0}, 3, now) is None

    def test_shrinking_dividend_is_negative(self):
        now = ny(2024, 5, 1, 12, 0)

        rate = dividend_growth_rate({2018: 2.0, 2023: 1.0}, 5, now)

        assert rate == pytest.approx(0.5 ** (1 / 5) - 1)
        assert rate < 0

    def test_current_partial_year_is_not_the_end_year(self):
        now = ny(2024, 12, 31, 23, 0)

        # 2024 is still in progress, so the window ends in 2023
        assert dividend_growth_rate({2021: 1.0, 2024: 2.0}, 3, now) is None

    def test_last_full_calendar_year_uses_local_date(self):
        # 2024-01-01 03:00 UTC is still New Year's Eve in New York
        now = datetime(2024, 1, 1, 3, 0, tzinfo=pytz.UTC).astimezone(NY)

        assert last_full_calendar_year(now) == 2022


class TestAnalyzePosition:
    """Test cases for analyze_position."""

    def test_reference_scenario(self, fixed_now, quarterly_dividends):
        """✅ 50 shares @ 120.50, price 150, TTM 2.00, baseline 100."""
        position = Position(ticker="KO", shares=50, avg_price=120.50)
        quote = Quote(price=150.0, name="Coca-Cola", currency="USD")

        row = analyze_position(position, quote, quarterly_dividends, 100.0, fixed_now)

        assert row.market_value == pytest.approx(7500.0)
        assert row.ttm_div_ps == pytest.approx(2.0)
        assert row.current_yield == pytest.approx(0.0133333, rel=1e-5)
        assert row.yield_on_cost == pytest.approx(0.016598, rel=1e-4)
        assert row.price_return_abs == pytest.approx(2500.0)
        assert row.price_return_pct == pytest.approx(0.50)
        assert row.annual_div_income == pytest.approx(100.0)
        assert row.monthly_div_income == pytest.approx(8.333333, rel=1e-6)
        assert row.name == "Coca-Cola"
        assert row.currency == "USD"
        assert row.start_price == 100.0

    def test_missing_baseline_blanks_price_return(self, fixed_now):
        position = Position(ticker="KO", shares=10, avg_price=50.0)
        quote = Quote(price=60.0, name="KO")

        row = analyze_position(position, quote, [], None, fixed_now)

        assert row.price_return_abs is None
        assert row.price_return_pct is None
        assert row.market_value == pytest.approx(600.0)

    @pytest.mark.parametrize("baseline", [0.0, -5.0])
    def test_non_positive_baseline_blanks_price_return(self, fixed_now, baseline):
        position = Position(ticker="KO", shares=10, avg_price=50.0)
        quote = Quote(price=60.0, name="KO")

        row = analyze_position(position, quote, [], baseline, fixed_now)

        assert row.price_return_abs is None
        assert row.price_return_pct is None

    def test_missing_price(self, fixed_now, quarterly_dividends):
        position = Position(ticker="KO", shares=10, avg_price=50.0)
        quote = Quote(price=None, name="KO")

        row = analyze_position(position, quote, quarterly_dividends, 40.0, fixed_now)

        assert row.current_price is None
        assert row.market_value is None
        assert row.current_yield is None
        assert row.price_return_abs is None
        assert row.price_return_pct is None
        # Income and yield on cost don't depend on the price
        assert row.yield_on_cost == pytest.approx(0.04)
        assert row.annual_div_income == pytest.approx(20.0)

    def test_zero_price_has_no_yield(self, fixed_now, quarterly_dividends):
        position = Position(ticker="KO", shares=10, avg_price=50.0)
        quote = Quote(price=0.0, name="KO")

        row = analyze_position(position, quote, quarterly_dividends, 40.0, fixed_now)

        assert row.current_yield is None
        assert row.market_value == 0.0

    def test_no_dividends(self, fixed_now):
        position = Position(ticker="BRK.B", shares=2, avg_price=300.0)
        quote = Quote(price=400.0, name="Berkshire")

        row = analyze_position(position, quote, [], 350.0, fixed_now)

        assert row.ttm_div_ps == 0.0
        assert row.current_yield == 0.0
        assert row.yield_on_cost == 0.0
        assert row.annual_div_income == 0.0
        assert row.monthly_div_income == 0.0
        assert (row.dgr3, row.dgr5, row.dgr10) == (None, None, None)

    def test_growth_rates(self, fixed_now):
        events = [
            DividendEvent(date=date(2013, 6, 1), dividend=1.0),
            DividendEvent(date=date(2018, 6, 1), dividend=1.5),
            DividendEvent(date=date(2020, 6, 1), dividend=1.8),
            DividendEvent(date=date(2023, 6, 1), dividend=2.0),
        ]
        position = Position(ticker="KO", shares=1, avg_price=50.0)

        row = analyze_position(position, Quote(price=60.0, name="KO"), events, None, fixed_now)

        assert row.dgr3 == pytest.approx((2.0 / 1.8) ** (1 / 3) - 1)
        assert row.dgr5 == pytest.approx((2.0 / 1.5) ** (1 / 5) - 1)
        assert row.dgr10 == pytest.approx((2.0 / 1.0) ** (1 / 10) - 1)

    def test_all_fields_finite_or_none(self, fixed_now, quarterly_dividends):
        position = Position(ticker="KO", shares=3, avg_price=1.0)
        quote = Quote(price=1e300, name="KO")

        row = analyze_position(position, quote, quarterly_dividends, 1e-300, fixed_now)

        assert row.price_return_pct is None

        for value in row.model_dump().values():
            if isinstance(value, float):
                assert math.isfinite(value)


class TestAggregateTotals:
    """Test cases for aggregate_totals."""

    def test_sums_rows(self):
        rows = [
            make_row(
                market_value=1000.0,
                price_return_abs=200.0,
                annual_div_income=40.0,
                start_price=80.0,
                shares=10.0,
            ),
            make_row(
                ticker="PEP",
                market_value=500.0,
                price_return_abs=-100.0,
                annual_div_income=20.0,
                start_price=60.0,
                shares=10.0,
            ),
        ]

        totals = aggregate_totals(rows)

        assert totals.tickers == 2
        assert totals.currency == "USD"
        assert totals.market_value == pytest.approx(1500.0)
        assert totals.price_pnl == pytest.approx(100.0)
        assert totals.annual_div_income == pytest.approx(60.0)
        assert totals.monthly_div_income == pytest.approx(5.0)
        assert totals.start_value == pytest.approx(1400.0)
        assert totals.price_return_pct == pytest.approx(100.0 / 1400.0)

    def test_unavailable_market_value_counts_as_zero(self):
        rows = [
            make_row(market_value=1000.0, annual_div_income=10.0),
            make_row(ticker="XYZ", market_value=None, annual_div_income=None),
        ]

        totals = aggregate_totals(rows)

        assert totals.market_value == pytest.approx(1000.0)
        assert totals.annual_div_income == pytest.approx(10.0)

    def test_no_baseline_value_leaves_return_unavailable(self):
        rows = [make_row(market_value=100.0, start_price=None)]

        totals = aggregate_totals(rows)

        assert totals.start_value == 0.0
        assert totals.price_return_pct is None

    def test_currency_from_first_row_that_has_one(self):
        rows = [make_row(currency=""), make_row(ticker="SAP", currency="EUR")]

        assert aggregate_totals(rows).currency == "EUR"

    def test_empty(self):
        totals = aggregate_totals([])

        assert totals.tickers == 0
        assert totals.market_value == 0.0
        assert totals.price_return_pct is None
        assert totals.currency == ""
