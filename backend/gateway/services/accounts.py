# backend/gateway/services/accounts.py
"""
Account resolution, fan-out and listing.

The logical account id "default" is not an upstream account: it stands for
a configured set of real accounts (EXNESS_ACCOUNT_IDS). Requests for it are
fanned out to every account in the set concurrently and the per-account
results are merged by the caller.

Fan-out is fault-tolerant per account: a failing call is logged as a
TransientFanoutError and replaced by a placeholder, so one broken account
never fails the aggregate. Session expiry is the exception; it propagates
so the whole request takes the session refresh path.

Usage:
    resolver = AccountResolver.from_settings(settings)

    ids = resolver.resolve_account_ids("default")
    result = await resolver.fan_out(ids, fetch_gain, placeholder=0.0)
    total = sum(result.values())
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, Sequence, TypeVar

from gateway.config import Settings
from gateway.services.constants import (
    DEFAULT_ACCOUNT_ID,
    PRIORITY_DEFAULT,
    PRIORITY_HIGH_RISK,
    PRIORITY_LOW_RISK,
    PRIORITY_MEDIUM_RISK,
    PRIORITY_UNRANKED,
    RESULT_DECIMAL_PLACES,
)
from gateway.services.exceptions import (
    ServiceError,
    SessionExpiredError,
    TransientFanoutError,
    ValidationError,
)
from gateway.services.upstream.types import Account

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FanoutResult(Generic[T]):
    """
    Outcome of a fan-out across accounts.

    Attributes:
        account_ids: Requested ids, in configured order
        placeholder: Value substituted for failed accounts
        successful: Dict of account_id -> fetched value
        failed: Dict of account_id -> TransientFanoutError
    """
    account_ids: list[str]
    placeholder: T
    successful: dict[str, T] = field(default_factory=dict)
    failed: dict[str, TransientFanoutError] = field(default_factory=dict)

    @property
    def all_failed(self) -> bool:
        """True when accounts were requested and none succeeded."""
        return bool(self.account_ids) and not self.successful

    def values(self) -> list[T]:
        """Per-account values in id order, placeholders for failures."""
        return [self.successful.get(account_id, self.placeholder) for account_id in self.account_ids]


def summarize_accounts(accounts: Sequence[Account]) -> dict[str, Any]:
    """
    Sum balances and profits and average the monthly return.

    The monthly average only counts accounts that report a monthly value.
    Values are not rounded.
    """
    monthly = [account.monthly for account in accounts if account.monthly is not None]
    return {
        "total_balance": sum(account.balance for account in accounts),
        "total_profit": sum(account.profit for account in accounts),
        "average_monthly_return": sum(monthly) / len(monthly) if monthly else 0.0,
        "total_accounts": len(accounts),
    }


class AccountResolver:
    """
    Maps account selectors to upstream account ids and builds the listing.

    Listing order follows a fixed priority table (low-risk, medium-risk,
    high-risk, default, everything else); ties keep upstream order.
    """

    def __init__(
            self,
            default_account_ids: Iterable[str] = (),
            low_risk_account_ids: Iterable[str] = (),
            medium_risk_account_ids: Iterable[str] = (),
            high_risk_account_ids: Iterable[str] = (),
            low_risk_account_name: str | None = None,
            default_account_name: str = "Combined Portfolio",
            default_account_currency: str = "USD",
    ) -> None:
        self.default_account_ids = [str(i).strip() for i in default_account_ids if str(i).strip()]
        self._low_risk = {str(i).strip() for i in low_risk_account_ids}
        self._medium_risk = {str(i).strip() for i in medium_risk_account_ids}
        self._high_risk = {str(i).strip() for i in high_risk_account_ids}
        self._low_risk_name = low_risk_account_name
        self._default_name = default_account_name
        self._default_currency = default_account_currency

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccountResolver":
        return cls(
            default_account_ids=settings.exness_account_ids,
            low_risk_account_ids=settings.low_risk_account_ids,
            medium_risk_account_ids=settings.medium_risk_account_ids,
            high_risk_account_ids=settings.high_risk_account_ids,
            low_risk_account_name=settings.low_risk_account_name,
            default_account_name=settings.default_account_name,
            default_account_currency=settings.default_account_currency,
        )

    # =========================================================================
    # SELECTORS
    # =========================================================================

    @staticmethod
    def is_default(account_id: str) -> bool:
        """Case-insensitive match against "default", ignoring whitespace."""
        return account_id.strip().lower() == DEFAULT_ACCOUNT_ID

    def normalize_account_id(self, account_id: str | None) -> str:
        """
        Validate and normalize an account selector.

        Raises:
            ValidationError: If the id is missing or blank
        """
        if account_id is None or not str(account_id).strip():
            raise ValidationError("Account ID is required", field="account_id")
        account_id = str(account_id).strip()
        return DEFAULT_ACCOUNT_ID if self.is_default(account_id) else account_id

    def resolve_account_ids(self, account_id: str) -> list[str]:
        """
        The configured id set for "default", else just the id itself.

        An empty list for "default" means no set is configured.
        """
        if self.is_default(account_id):
            return list(self.default_account_ids)
        return [account_id.strip()]

    # =========================================================================
    # FAN-OUT
    # =========================================================================

    async def fan_out(
            self,
            account_ids: Sequence[str],
            fetch: Callable[[str], Awaitable[T]],
            placeholder: T,
    ) -> FanoutResult[T]:
        """
        Call ``fetch`` for every account concurrently.

        Failures are recorded and logged, never raised, except
        SessionExpiredError which propagates to the caller.
        """
        result: FanoutResult[T] = FanoutResult(account_ids=list(account_ids), placeholder=placeholder)

        async def _guarded(account_id: str) -> None:
            try:
                result.successful[account_id] = await fetch(account_id)
            except SessionExpiredError:
                raise
            except ServiceError as e:
                failure = TransientFanoutError(account_id, e)
                result.failed[account_id] = failure
                logger.warning(f"{failure}; using placeholder")

        await asyncio.gather(*(_guarded(account_id) for account_id in result.account_ids))

        if result.failed:
            logger.warning(
                f"Fan-out finished with {len(result.failed)}/{len(result.account_ids)} failed accounts"
            )
        return result

    # =========================================================================
    # LISTING
    # =========================================================================

    def build_listing(self, accounts: Sequence[Account]) -> list[dict[str, Any]]:
        """
        Build the ordered account listing including the "default" entry.

        1. Keep only configured accounts (all accounts if none configured)
        2. Append the synthetic default entry aggregated over them
        3. Apply the low-risk display name
        4. Stable-sort by priority
        """
        configured = set(self.default_account_ids)
        included = [a for a in accounts if not configured or a.id in configured]

        entries = [account.to_dict() for account in included]
        for entry in entries:
            entry["id"] = str(entry["id"]).strip()
        entries.append(self._default_entry(included))

        if self._low_risk_name:
            for entry in entries:
                if entry["id"] in self._low_risk:
                    entry["name"] = self._low_risk_name

        return sorted(entries, key=lambda entry: self.priority(entry["id"]))

    def priority(self, account_id: str) -> int:
        if account_id in self._low_risk:
            return PRIORITY_LOW_RISK
        if account_id in self._medium_risk:
            return PRIORITY_MEDIUM_RISK
        if account_id in self._high_risk:
            return PRIORITY_HIGH_RISK
        if account_id == DEFAULT_ACCOUNT_ID:
            return PRIORITY_DEFAULT
        return PRIORITY_UNRANKED

    def _default_entry(self, accounts: Sequence[Account]) -> dict[str, Any]:
        monthly = [a.monthly for a in accounts if a.monthly is not None]
        gains = [a.gain for a in accounts if a.gain is not None]
        places = RESULT_DECIMAL_PLACES
        return {
            "id": DEFAULT_ACCOUNT_ID,
            "name": self._default_name,
            "currency": self._default_currency,
            "balance": round(sum(a.balance for a in accounts), places),
            "profit": round(sum(a.profit for a in accounts), places),
            "equity": round(sum(a.equity for a in accounts), places),
            "monthly": round(sum(monthly) / len(monthly), places) if monthly else 0.0,
            "gain": round(sum(gains) / len(gains), places) if gains else 0.0,
            "accounts": len(accounts),
        }
