"""
Analytics functions.

Pure, upstream-agnostic computations over normalized records:
- drawdown: Peak/trough drawdown of a balance series
- series: Cumulative profit series
- trades: Average trade duration and duration formatting
- periods: Calendar comparison windows, period sums and differencing

Usage:
    from gateway.services.analytics import (
        calculate_peak_trough_drawdown,
        cumulative_profit_series,
        period_windows,
    )
"""

from gateway.services.analytics.drawdown import calculate_peak_trough_drawdown
from gateway.services.analytics.periods import (
    comparison_range,
    percent_difference,
    period_windows,
    sum_period,
    week_start,
)
from gateway.services.analytics.series import cumulative_profit_series
from gateway.services.analytics.trades import calculate_trade_durations, format_duration
from gateway.services.analytics.types import (
    DrawdownResult,
    PeriodPair,
    PeriodTotals,
    PeriodWindow,
    TradeDurationStats,
)

__all__ = [
    # Functions
    "calculate_peak_trough_drawdown",
    "cumulative_profit_series",
    "calculate_trade_durations",
    "format_duration",
    "period_windows",
    "comparison_range",
    "percent_difference",
    "sum_period",
    "week_start",
    # Types
    "DrawdownResult",
    "TradeDurationStats",
    "PeriodWindow",
    "PeriodPair",
    "PeriodTotals",
]
