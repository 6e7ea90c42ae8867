# backend/gateway/services/analytics/types.py
"""
Data types for the analytics functions.

Architecture:
    - DrawdownResult: Peak/trough drawdown of a balance series
    - TradeDurationStats: Average holding time over a trade history
    - PeriodWindow: Inclusive calendar date range
    - PeriodPair: A named current/previous window pair
    - PeriodTotals: Profit and pips summed over one window

Values are plain floats; rounding for output happens in the gateway facade.
"""

from dataclasses import dataclass
from datetime import date


# =============================================================================
# DRAWDOWN
# =============================================================================

@dataclass(frozen=True)
class DrawdownResult:
    """
    First drawdown cycle after the global peak of a balance series.

    Attributes:
        peak: Highest balance (first occurrence)
        peak_index: Position of the peak in the series
        trough: Lowest balance after the peak before the first recovery
            (equal to peak when the balance never drops)
        trough_index: Position of the trough, None when there is no drop
        drawdown: (peak - trough) / peak as a ratio, 0 when no drop or peak <= 0
        recovered: True if the balance rose again after the trough
    """
    peak: float = 0.0
    peak_index: int | None = None
    trough: float = 0.0
    trough_index: int | None = None
    drawdown: float = 0.0
    recovered: bool = False

    @property
    def drawdown_percent(self) -> float:
        return self.drawdown * 100


# =============================================================================
# TRADES
# =============================================================================

@dataclass(frozen=True)
class TradeDurationStats:
    """
    Average trade duration.

    Attributes:
        total_trades: Every record in the history, valid or not
        valid_trades: Records with parseable times and close >= open
        total_duration_ms: Sum of valid durations
        average_ms: total_duration_ms / valid_trades, rounded; 0 if none valid
    """
    total_trades: int = 0
    valid_trades: int = 0
    total_duration_ms: int = 0
    average_ms: int = 0


# =============================================================================
# PERIODS
# =============================================================================

@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive date range [start, end]."""
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class PeriodPair:
    """
    A comparison between a current window and the matching previous one.

    Attributes:
        name: Result key, e.g. "this_week_vs_previous_week"
        current: Window ending today
        previous: The full preceding window of the same kind
    """
    name: str
    current: PeriodWindow
    previous: PeriodWindow


@dataclass(frozen=True)
class PeriodTotals:
    """Raw daily profit and pips deltas summed over one window."""
    total_profit: float = 0.0
    total_pips: float = 0.0
