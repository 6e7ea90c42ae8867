# backend/gateway/utils/date_utils.py
"""
Date parsing helpers shared by the upstream normalizer and analytics.

The upstream provider is inconsistent about date formats: daily records
use "MM/DD/YYYY", trades use "MM/DD/YYYY HH:mm", and our own API uses
ISO "YYYY-MM-DD". Centralizing the parsing keeps those rules in one place.

Usage:
    from gateway.utils.date_utils import parse_iso_date, parse_upstream_date

    start = parse_iso_date("2024-03-01")
    day = parse_upstream_date("03/01/2024")
"""

from datetime import date, datetime

ISO_DATE_FORMAT = "%Y-%m-%d"
UPSTREAM_DATE_FORMAT = "%m/%d/%Y"
TRADE_TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M"

# Tried in order by parse_upstream_date()
_UPSTREAM_DATE_FORMATS = (
    UPSTREAM_DATE_FORMAT,
    TRADE_TIMESTAMP_FORMAT,
    ISO_DATE_FORMAT,
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
)


def parse_iso_date(value: str) -> date:
    """
    Parse a strict ISO date (YYYY-MM-DD).

    Args:
        value: Date string

    Returns:
        Parsed date

    Raises:
        ValueError: If the string is not a valid YYYY-MM-DD date
    """
    return datetime.strptime(value.strip(), ISO_DATE_FORMAT).date()


def format_iso_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(ISO_DATE_FORMAT)


def parse_upstream_date(value: object) -> date | None:
    """
    Parse a date from an upstream record, trying every known format.

    Returns:
        The parsed date, or None if the value is missing or unparseable
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    for fmt in _UPSTREAM_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_trade_timestamp(value: object) -> datetime | None:
    """
    Parse a trade open/close timestamp ("MM/DD/YYYY HH:mm").

    Returns:
        The parsed datetime, or None if missing or malformed
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), TRADE_TIMESTAMP_FORMAT)
    except ValueError:
        return None
