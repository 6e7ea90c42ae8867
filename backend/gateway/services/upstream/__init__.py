"""
Upstream provider access.

Usage:
    from gateway.services.upstream import UpstreamClient, parse_accounts
"""

from gateway.services.upstream.client import UpstreamClient, is_session_expired_message
from gateway.services.upstream.normalize import (
    ResponseShape,
    extract_items,
    parse_accounts,
    parse_daily_records,
    parse_gain,
    parse_trades,
    to_float,
    unwrap,
)
from gateway.services.upstream.types import Account, DailyRecord, TradeRecord

__all__ = [
    # Client
    "UpstreamClient",
    "is_session_expired_message",
    # Normalization
    "ResponseShape",
    "extract_items",
    "parse_accounts",
    "parse_daily_records",
    "parse_gain",
    "parse_trades",
    "to_float",
    "unwrap",
    # Types
    "Account",
    "DailyRecord",
    "TradeRecord",
]
