# backend/tests/services/analytics/test_drawdown.py
"""
Unit tests for drawdown and cumulative profit calculations.

All tests use known values that can be verified by hand.

Test Coverage:
- calculate_peak_trough_drawdown: peak detection, trough freezing, edge cases
- cumulative_profit_series: running totals
"""

from datetime import date

import pytest

from gateway.services.analytics import calculate_peak_trough_drawdown, cumulative_profit_series
from gateway.services.upstream.types import DailyRecord


# =============================================================================
# DRAWDOWN TESTS
# =============================================================================

class TestPeakTroughDrawdown:
    """Tests for calculate_peak_trough_drawdown function."""

    def test_drop_after_peak(self):
        """[100, 150, 90, 120]: peak 150 at index 1, trough 90, drawdown 40%."""
        result = calculate_peak_trough_drawdown([100, 150, 90, 120])

        assert result.peak == 150
        assert result.peak_index == 1
        assert result.trough == 90
        assert result.trough_index == 2
        assert result.drawdown == pytest.approx(0.4)
        assert result.drawdown_percent == pytest.approx(40.0)
        assert result.recovered is True

    def test_non_decreasing_series_has_no_drawdown(self):
        result = calculate_peak_trough_drawdown([100, 110, 110, 120])

        assert result.drawdown == 0
        assert result.peak == 120
        assert result.trough == result.peak
        assert result.trough_index is None

    def test_no_recovery_uses_lowest_after_peak(self):
        result = calculate_peak_trough_drawdown([100, 80, 60])

        assert result.trough == 60
        assert result.trough_index == 2
        assert result.drawdown == pytest.approx(0.4)
        assert result.recovered is False

    def test_only_first_cycle_after_peak_is_measured(self):
        """A deeper drop after the first recovery is not reported."""
        result = calculate_peak_trough_drawdown([100, 90, 95, 50])

        assert result.trough == 90
        assert result.drawdown == pytest.approx(0.1)

    def test_first_peak_wins_on_ties(self):
        result = calculate_peak_trough_drawdown([150, 100, 150, 120])

        assert result.peak_index == 0
        assert result.trough == 100

    def test_empty_series(self):
        result = calculate_peak_trough_drawdown([])

        assert result.drawdown == 0
        assert result.peak_index is None

    def test_non_positive_peak_reports_zero(self):
        result = calculate_peak_trough_drawdown([-10, -20])

        assert result.drawdown == 0
        assert result.trough == -10


# =============================================================================
# CUMULATIVE SERIES TESTS
# =============================================================================

def _record(day: int, profit: float) -> DailyRecord:
    return DailyRecord(
        date=f"01/{day:02d}/2024",
        day=date(2024, 1, day),
        balance=1000 + profit,
        profit=profit,
        pips=0.0,
    )


class TestCumulativeProfitSeries:
    """Tests for cumulative_profit_series function."""

    def test_running_totals(self):
        """Deltas [10, 5, -3, 8] become [10, 15, 12, 20]."""
        records = [_record(i + 1, p) for i, p in enumerate([10, 5, -3, 8])]

        result = cumulative_profit_series(records)

        assert [r.profit for r in result] == [10, 15, 12, 20]

    def test_other_fields_untouched(self):
        records = [_record(1, 10), _record(2, 5)]

        result = cumulative_profit_series(records)

        assert [r.balance for r in result] == [1010, 1005]
        assert [r.day for r in result] == [date(2024, 1, 1), date(2024, 1, 2)]

    def test_input_not_mutated(self):
        records = [_record(1, 10), _record(2, 5)]

        cumulative_profit_series(records)

        assert [r.profit for r in records] == [10, 5]

    def test_empty(self):
        assert cumulative_profit_series([]) == []
