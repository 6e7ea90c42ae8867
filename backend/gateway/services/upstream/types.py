# backend/gateway/services/upstream/types.py
"""
Typed records produced from upstream payloads.

Every record keeps the raw upstream dict so fields the gateway does not
interpret are passed through untouched.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Account:
    """
    One trading account from the accounts listing.

    Only id, balance, profit and monthly are interpreted by the gateway;
    equity and gain feed the synthetic default entry.
    """
    id: str
    name: str | None
    balance: float
    profit: float
    equity: float
    monthly: float | None
    gain: float | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True)
class DailyRecord:
    """
    One calendar day of account data.

    ``day`` is None when the upstream date could not be parsed; such records
    still take part in drawdown and cumulative calculations.
    """
    date: str | None
    day: datetime.date | None
    balance: float
    profit: float
    pips: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "balance": self.balance,
            "profit": self.profit,
            "pips": self.pips,
        }


@dataclass(frozen=True)
class TradeRecord:
    """One closed trade. Times are the raw "MM/DD/YYYY HH:mm" strings."""
    open_time: str | None
    close_time: str | None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)
