# backend/tests/services/analytics/test_periods.py
"""
Unit tests for period windows and differencing.

Test Coverage:
- period_windows: current/previous windows for each period
- comparison_range: covering range
- percent_difference: zero handling and sign
- sum_period: bucketing daily records
"""

from datetime import date

import pytest

from gateway.services.analytics import (
    PeriodWindow,
    comparison_range,
    percent_difference,
    period_windows,
    sum_period,
    week_start,
)
from gateway.services.upstream.types import DailyRecord


def _windows(today: date) -> dict:
    return {pair.name: pair for pair in period_windows(today)}


class TestPeriodWindows:
    """Tests for period_windows function."""

    def test_mid_march_windows(self):
        """For 2024-03-15: week 2024-03-11, month 2024-03-01, year 2024-01-01."""
        windows = _windows(date(2024, 3, 15))

        assert windows["today_vs_yesterday"].current == PeriodWindow(date(2024, 3, 15), date(2024, 3, 15))
        assert windows["today_vs_yesterday"].previous == PeriodWindow(date(2024, 3, 14), date(2024, 3, 14))
        assert windows["this_week_vs_previous_week"].current.start == date(2024, 3, 11)
        assert windows["this_week_vs_previous_week"].previous == PeriodWindow(
            date(2024, 3, 4), date(2024, 3, 10)
        )
        assert windows["this_month_vs_previous_month"].current.start == date(2024, 3, 1)
        assert windows["this_month_vs_previous_month"].previous == PeriodWindow(
            date(2024, 2, 1), date(2024, 2, 29)
        )
        assert windows["this_year_vs_previous_year"].current.start == date(2024, 1, 1)
        assert windows["this_year_vs_previous_year"].previous == PeriodWindow(
            date(2023, 1, 1), date(2023, 12, 31)
        )

    def test_current_windows_end_today(self):
        today = date(2024, 3, 15)

        assert all(pair.current.end == today for pair in period_windows(today))

    def test_sunday_belongs_to_week_starting_monday(self):
        assert week_start(date(2024, 3, 17)) == date(2024, 3, 11)

    def test_january_previous_month_is_december(self):
        windows = _windows(date(2024, 1, 10))

        assert windows["this_month_vs_previous_month"].previous == PeriodWindow(
            date(2023, 12, 1), date(2023, 12, 31)
        )

    def test_comparison_range_covers_previous_year(self):
        assert comparison_range(date(2024, 3, 15)) == PeriodWindow(date(2023, 1, 1), date(2024, 3, 15))


class TestPercentDifference:
    """Tests for percent_difference function."""

    def test_increase(self):
        assert percent_difference(150, 100) == pytest.approx(50.0)

    def test_negative_previous_uses_magnitude(self):
        assert percent_difference(50, -100) == pytest.approx(150.0)

    def test_zero_previous_returns_zero(self):
        assert percent_difference(10, 0) == 0.0


class TestSumPeriod:
    """Tests for sum_period function."""

    def test_only_records_inside_window(self):
        records = [
            DailyRecord(date="03/10/2024", day=date(2024, 3, 10), balance=0, profit=5, pips=1),
            DailyRecord(date="03/11/2024", day=date(2024, 3, 11), balance=0, profit=10, pips=2),
            DailyRecord(date="03/15/2024", day=date(2024, 3, 15), balance=0, profit=-3, pips=4),
            DailyRecord(date="bad", day=None, balance=0, profit=100, pips=100),
        ]

        totals = sum_period(records, PeriodWindow(date(2024, 3, 11), date(2024, 3, 15)))

        assert totals.total_profit == 7
        assert totals.total_pips == 6
