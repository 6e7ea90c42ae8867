# backend/gateway/services/analytics/periods.py
"""
Calendar period windows and period-over-period differencing.

Windows are derived from "today":

    today     [today, today]                 vs  yesterday
    week      [Monday of this week, today]   vs  previous Monday..Sunday
    month     [1st of this month, today]     vs  previous full month
    year      [Jan 1 of this year, today]    vs  previous full year

Formulas:
    percent_difference = (current - previous) / |previous| * 100
                         (0 when previous == 0)
"""

from datetime import date, timedelta
from typing import Iterable

from gateway.services.analytics.types import PeriodPair, PeriodTotals, PeriodWindow
from gateway.services.upstream.types import DailyRecord

TODAY_VS_YESTERDAY = "today_vs_yesterday"
WEEK_VS_PREVIOUS_WEEK = "this_week_vs_previous_week"
MONTH_VS_PREVIOUS_MONTH = "this_month_vs_previous_month"
YEAR_VS_PREVIOUS_YEAR = "this_year_vs_previous_year"


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day`` (Sunday maps back six days)."""
    return day - timedelta(days=day.weekday())


def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month_window(day: date) -> PeriodWindow:
    """The full calendar month before the one containing ``day``."""
    last_day = month_start(day) - timedelta(days=1)
    return PeriodWindow(start=month_start(last_day), end=last_day)


def period_windows(today: date) -> list[PeriodPair]:
    """
    Build the four comparison window pairs for ``today``.

    Examples:
        For 2024-03-15: week starts 2024-03-11, month 2024-03-01,
        year 2024-01-01.
    """
    yesterday = today - timedelta(days=1)
    this_week = week_start(today)
    this_year = date(today.year, 1, 1)

    return [
        PeriodPair(
            name=TODAY_VS_YESTERDAY,
            current=PeriodWindow(today, today),
            previous=PeriodWindow(yesterday, yesterday),
        ),
        PeriodPair(
            name=WEEK_VS_PREVIOUS_WEEK,
            current=PeriodWindow(this_week, today),
            previous=PeriodWindow(this_week - timedelta(days=7), this_week - timedelta(days=1)),
        ),
        PeriodPair(
            name=MONTH_VS_PREVIOUS_MONTH,
            current=PeriodWindow(month_start(today), today),
            previous=previous_month_window(today),
        ),
        PeriodPair(
            name=YEAR_VS_PREVIOUS_YEAR,
            current=PeriodWindow(this_year, today),
            previous=PeriodWindow(date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)),
        ),
    ]


def comparison_range(today: date) -> PeriodWindow:
    """Smallest range covering every window of period_windows(today)."""
    return PeriodWindow(start=date(today.year - 1, 1, 1), end=today)


def percent_difference(current: float, previous: float) -> float:
    """Relative change from ``previous`` to ``current`` in percent."""
    if previous == 0:
        return 0.0
    return (current - previous) / abs(previous) * 100


def sum_period(records: Iterable[DailyRecord], window: PeriodWindow) -> PeriodTotals:
    """
    Sum raw profit and pips of records dated inside ``window``.

    Records without a parseable date are ignored.
    """
    profit = 0.0
    pips = 0.0
    for record in records:
        if record.day is not None and window.contains(record.day):
            profit += record.profit
            pips += record.pips
    return PeriodTotals(total_profit=profit, total_pips=pips)
