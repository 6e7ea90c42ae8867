# backend/gateway/services/analytics/trades.py
"""
Average trade duration over a trade history.

A trade counts toward the average only if both open and close times parse
("MM/DD/YYYY HH:mm") and close >= open. Every record counts toward the
total, so callers can see how many were skipped.
"""

import logging
from typing import Sequence

from gateway.services.analytics.types import TradeDurationStats
from gateway.services.upstream.types import TradeRecord
from gateway.utils.date_utils import parse_trade_timestamp

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000


def calculate_trade_durations(trades: Sequence[TradeRecord]) -> TradeDurationStats:
    """
    Average the holding time of valid trades.

    Args:
        trades: Closed trades, any order

    Returns:
        TradeDurationStats with average_ms = 0 when no trade is valid
    """
    valid = 0
    total_ms = 0
    for trade in trades:
        opened = parse_trade_timestamp(trade.open_time)
        closed = parse_trade_timestamp(trade.close_time)
        if opened is None or closed is None or closed < opened:
            continue
        valid += 1
        total_ms += int((closed - opened).total_seconds() * MS_PER_SECOND)

    skipped = len(trades) - valid
    if skipped:
        logger.debug(f"Skipped {skipped} of {len(trades)} trades with missing or invalid times")

    return TradeDurationStats(
        total_trades=len(trades),
        valid_trades=valid,
        total_duration_ms=total_ms,
        average_ms=round(total_ms / valid) if valid else 0,
    )


def format_duration(ms: int | float) -> str:
    """
    Format milliseconds as "1d 2h 3m 4s".

    Zero components are omitted; a zero duration is "0s".

    Examples:
        >>> format_duration(93_784_000)
        '1d 2h 3m 4s'
        >>> format_duration(3_600_000)
        '1h'
        >>> format_duration(0)
        '0s'
    """
    seconds = int(ms // MS_PER_SECOND)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)
