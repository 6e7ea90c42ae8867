# backend/gateway/services/upstream/normalize.py
"""
Normalization of upstream payloads into typed records.

The provider is structurally inconsistent: the same logical list may sit
under different keys depending on the endpoint or API version, individual
items are sometimes wrapped in singleton arrays, numbers arrive as strings
and some field names vary ("profit" / "profite", "pips" / "pip").

All of that probing lives here. Each ResponseShape declares an ordered
tuple of candidate keys; the first key holding a list wins.

Usage:
    from gateway.services.upstream.normalize import parse_daily_records

    records = parse_daily_records(payload)
"""

import logging
from enum import Enum
from typing import Any, Iterable, Mapping

from gateway.services.upstream.types import Account, DailyRecord, TradeRecord
from gateway.utils.date_utils import parse_upstream_date

logger = logging.getLogger(__name__)


class ResponseShape(Enum):
    """Per-endpoint list location, as an ordered tuple of candidate keys."""

    ACCOUNTS = ("accounts",)
    HISTORY = ("history", "data", "trades")
    DAILY_DATA = ("dataDaily", "data", "daily")

    @property
    def candidate_keys(self) -> tuple[str, ...]:
        return self.value


# Scalar gain value, probed in order
GAIN_VALUE_KEYS: tuple[str, ...] = ("value", "gain")

# Field name variants inside items
PROFIT_KEYS: tuple[str, ...] = ("profit", "profite")
PIPS_KEYS: tuple[str, ...] = ("pips", "pip")
OPEN_TIME_KEYS: tuple[str, ...] = ("openTime", "open_time")
CLOSE_TIME_KEYS: tuple[str, ...] = ("closeTime", "close_time")


# =============================================================================
# PRIMITIVES
# =============================================================================


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce an upstream number (int, float or numeric string) to float.

    Missing, empty, boolean or unparseable values return ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return default
        try:
            return float(text)
        except ValueError:
            return default
    return default


def unwrap(item: Any) -> Any:
    """Unwrap singleton arrays, e.g. ``[[{...}]]`` becomes ``{...}``."""
    while isinstance(item, list) and len(item) == 1:
        item = item[0]
    return item


def first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value of the first key that is present and not None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def extract_items(payload: Any, shape: ResponseShape) -> list[dict[str, Any]]:
    """
    Return the list of item dicts for a shape.

    A bare list payload is accepted as-is. Items are unwrapped from
    singleton arrays; anything that is still not a dict is dropped.
    """
    items: Any = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, Mapping):
        for key in shape.candidate_keys:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                items = candidate
                break

    if items is None:
        logger.debug(f"No {shape.name} list found in upstream payload")
        return []

    result = []
    for item in items:
        item = unwrap(item)
        if isinstance(item, Mapping):
            result.append(dict(item))
    return result


# =============================================================================
# RECORD PARSERS
# =============================================================================


def parse_accounts(payload: Any) -> list[Account]:
    """Parse the accounts listing. Accounts without an id are skipped."""
    accounts = []
    for item in extract_items(payload, ResponseShape.ACCOUNTS):
        account_id = item.get("id")
        if account_id is None or str(account_id).strip() == "":
            continue
        monthly = item.get("monthly")
        gain = item.get("gain")
        accounts.append(
            Account(
                id=str(account_id).strip(),
                name=item.get("name"),
                balance=to_float(item.get("balance")),
                profit=to_float(item.get("profit")),
                equity=to_float(item.get("equity")),
                monthly=None if monthly is None else to_float(monthly),
                gain=None if gain is None else to_float(gain),
                raw=item,
            )
        )
    return accounts


def parse_daily_records(payload: Any) -> list[DailyRecord]:
    """Parse daily data, keeping upstream order."""
    records = []
    for item in extract_items(payload, ResponseShape.DAILY_DATA):
        raw_date = item.get("date")
        records.append(
            DailyRecord(
                date=str(raw_date) if raw_date is not None else None,
                day=parse_upstream_date(raw_date),
                balance=to_float(item.get("balance")),
                profit=to_float(first_present(item, PROFIT_KEYS)),
                pips=to_float(first_present(item, PIPS_KEYS)),
            )
        )
    return records


def parse_trades(payload: Any) -> list[TradeRecord]:
    """Parse trade history, keeping the raw trade dicts."""
    trades = []
    for item in extract_items(payload, ResponseShape.HISTORY):
        open_time = first_present(item, OPEN_TIME_KEYS)
        close_time = first_present(item, CLOSE_TIME_KEYS)
        trades.append(
            TradeRecord(
                open_time=str(open_time) if open_time is not None else None,
                close_time=str(close_time) if close_time is not None else None,
                raw=item,
            )
        )
    return trades


def parse_gain(payload: Any) -> float:
    """Read the scalar gain of a get-gain response (0.0 when absent)."""
    if not isinstance(payload, Mapping):
        return 0.0
    return to_float(unwrap(first_present(payload, GAIN_VALUE_KEYS)))
