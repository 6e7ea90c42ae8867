# backend/gateway/services/analytics/series.py
"""Cumulative profit series over daily records."""

from dataclasses import replace
from typing import Sequence

from gateway.services.upstream.types import DailyRecord


def cumulative_profit_series(records: Sequence[DailyRecord]) -> list[DailyRecord]:
    """
    Replace each record's profit delta with the running total up to it.

    The first record keeps its own profit. The input is not mutated.

    Examples:
        deltas [10, 5, -3, 8] -> profits [10, 15, 12, 20]
    """
    result = []
    running = 0.0
    for record in records:
        running += record.profit
        result.append(replace(record, profit=running))
    return result
