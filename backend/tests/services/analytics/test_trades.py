# backend/tests/services/analytics/test_trades.py
"""
Unit tests for trade duration statistics.

Test Coverage:
- calculate_trade_durations: valid/invalid trades, averaging
- format_duration: component formatting
"""

import pytest

from gateway.services.analytics import calculate_trade_durations, format_duration
from gateway.services.upstream.types import TradeRecord

HOUR_MS = 3_600_000


def _trade(open_time, close_time) -> TradeRecord:
    return TradeRecord(open_time=open_time, close_time=close_time)


class TestCalculateTradeDurations:
    """Tests for calculate_trade_durations function."""

    def test_invalid_trade_counted_but_not_averaged(self):
        """A trade closing before it opens counts in total_trades only."""
        trades = [
            _trade("01/01/2024 10:00", "01/01/2024 12:00"),
            _trade("01/01/2024 09:00", "01/01/2024 08:00"),
        ]

        stats = calculate_trade_durations(trades)

        assert stats.total_trades == 2
        assert stats.valid_trades == 1
        assert stats.average_ms == 2 * HOUR_MS

    def test_average_of_several_trades(self):
        trades = [
            _trade("01/01/2024 10:00", "01/01/2024 11:00"),
            _trade("01/01/2024 10:00", "01/01/2024 13:00"),
        ]

        stats = calculate_trade_durations(trades)

        assert stats.total_duration_ms == 4 * HOUR_MS
        assert stats.average_ms == 2 * HOUR_MS

    def test_missing_or_malformed_times_skipped(self):
        trades = [
            _trade(None, "01/01/2024 11:00"),
            _trade("2024-01-01T10:00", "01/01/2024 11:00"),
            _trade("01/01/2024 10:00", ""),
        ]

        stats = calculate_trade_durations(trades)

        assert stats.total_trades == 3
        assert stats.valid_trades == 0
        assert stats.average_ms == 0

    def test_zero_length_trade_is_valid(self):
        stats = calculate_trade_durations([_trade("01/01/2024 10:00", "01/01/2024 10:00")])

        assert stats.valid_trades == 1
        assert stats.average_ms == 0

    def test_empty_history(self):
        stats = calculate_trade_durations([])

        assert stats.total_trades == 0
        assert stats.average_ms == 0


class TestFormatDuration:
    """Tests for format_duration function."""

    @pytest.mark.parametrize(
        "ms, expected",
        [
            (93_784_000, "1d 2h 3m 4s"),
            (2 * HOUR_MS, "2h"),
            (90_000, "1m 30s"),
            (86_400_000, "1d"),
            (999, "0s"),
            (0, "0s"),
        ],
    )
    def test_format(self, ms, expected):
        assert format_duration(ms) == expected
