# backend/gateway/services/gateway.py
"""
Account Gateway Service - the public operations of the gateway.

Every read operation follows the same template:

    validate input
      -> resolve session (explicit token or managed session)
      -> cache check (hit: return immediately)
      -> fetch from upstream (fan-out when the account is "default")
      -> transform with the analytics functions
      -> write result to cache
      -> on session expiry: refresh the managed session, re-run once

Cache keys are built from the operation prefix and its normalized
parameters (account id stripped, "default" lower-cased, ISO dates).
Operations whose windows depend on "today" include today's date.

Aggregates where every fan-out call failed are returned (as zeros) but
not cached, so the next request goes back to the upstream.

Money and percentage outputs are rounded to 2 decimals here; the
analytics functions themselves never round.

Usage:
    service = AccountGatewayService(client, sessions, cache, resolver)

    accounts = await service.get_accounts()
    daily = await service.get_daily_data("default", "2024-01-01", "2024-01-31")
    comparisons = await service.get_gain_comparisons("12345", session=token)
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, TypeVar

from gateway.services.accounts import AccountResolver, FanoutResult, summarize_accounts
from gateway.services.analytics import (
    calculate_peak_trough_drawdown,
    calculate_trade_durations,
    comparison_range,
    cumulative_profit_series,
    format_duration,
    percent_difference,
    period_windows,
    sum_period,
)
from gateway.services.cache import CacheStore, generate_key
from gateway.services.constants import (
    CACHE_PREFIX_ACCOUNTS,
    CACHE_PREFIX_DAILY_COMPARISONS,
    CACHE_PREFIX_DAILY_DATA,
    CACHE_PREFIX_GAIN_COMPARISONS,
    CACHE_PREFIX_HISTORY,
    CACHE_PREFIX_PROFITABILITY,
    CACHE_PREFIX_TOTALS,
    CACHE_PREFIX_TRADE_LENGTH,
    DEFAULT_ACCOUNT_ID,
    ENDPOINT_GET_ACCOUNTS,
    ENDPOINT_GET_DAILY_DATA,
    ENDPOINT_GET_GAIN,
    ENDPOINT_GET_HISTORY,
    RATIO_DECIMAL_PLACES,
    RESULT_DECIMAL_PLACES,
)
from gateway.services.exceptions import (
    AuthenticationError,
    ServiceError,
    SessionExpiredError,
    ValidationError,
)
from gateway.services.protocols import UpstreamClientProtocol
from gateway.services.session import (
    Credentials,
    SessionManager,
    call_with_session_retry,
    validate_explicit_token,
)
from gateway.services.upstream import (
    Account,
    DailyRecord,
    TradeRecord,
    parse_accounts,
    parse_daily_records,
    parse_gain,
    parse_trades,
)
from gateway.utils.date_utils import format_iso_date, parse_iso_date

logger = logging.getLogger(__name__)

T = TypeVar("T")

# compute(token) -> (value, cacheable)
Computation = Callable[[str], Awaitable[tuple[Any, bool]]]


def _money(value: float) -> float:
    return round(value, RESULT_DECIMAL_PLACES)


def _parse_date_param(value: str | date | None, field: str) -> date:
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required (YYYY-MM-DD)", field=field)
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format, got '{value}'", field=field)


def validate_date_range(start: str | date | None, end: str | date | None) -> tuple[date, date]:
    """
    Parse and check a start/end pair.

    Raises:
        ValidationError: Missing or malformed date, or start after end
    """
    start_date = _parse_date_param(start, "start")
    end_date = _parse_date_param(end, "end")
    if start_date > end_date:
        raise ValidationError(
            f"start ({format_iso_date(start_date)}) must not be after end ({format_iso_date(end_date)})",
            field="start",
        )
    return start_date, end_date


class AccountGatewayService:
    """
    Session-cached aggregation over the upstream provider.

    Collaborators:
        client: Upstream HTTP client
        sessions: Owner of the backend-managed session
        cache: Cache-aside store (also holds the session)
        resolver: "default" account resolution and fan-out

    Configuration:
        today: Clock for period windows (injectable for tests)
        trade_length_ttl: TTL of the pre-computed default trade length
    """

    def __init__(
            self,
            client: UpstreamClientProtocol,
            sessions: SessionManager,
            cache: CacheStore,
            resolver: AccountResolver,
            today: Callable[[], date] = date.today,
            trade_length_ttl: int = 600,
    ) -> None:
        self.client = client
        self.sessions = sessions
        self.cache = cache
        self.resolver = resolver
        self._today = today
        self.trade_length_ttl = trade_length_ttl

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def get_accounts(self, session: str | None = None) -> list[dict[str, Any]]:
        """Ordered account listing including the synthetic "default" entry."""

        async def compute(token: str) -> tuple[Any, bool]:
            accounts = await self._fetch_accounts(token)
            return self.resolver.build_listing(accounts), True

        return await self._cached(generate_key(CACHE_PREFIX_ACCOUNTS), compute, session)

    async def get_aggregated_totals(
            self,
            account_id: str,
            session: str | None = None,
    ) -> dict[str, Any]:
        """
        Total balance, total profit and average monthly return.

        For "default" the totals cover every configured account (every
        upstream account when none are configured).
        """
        account_id = self.resolver.normalize_account_id(account_id)

        async def compute(token: str) -> tuple[Any, bool]:
            accounts = await self._fetch_accounts(token)
            if self.resolver.is_default(account_id):
                ids = set(self.resolver.resolve_account_ids(account_id))
                selected = [a for a in accounts if not ids or a.id in ids]
            else:
                selected = [a for a in accounts if a.id == account_id]

            totals = summarize_accounts(selected)
            return {
                "total_balance": _money(totals["total_balance"]),
                "total_profit": _money(totals["total_profit"]),
                "average_monthly_return": _money(totals["average_monthly_return"]),
                "total_accounts": totals["total_accounts"],
            }, True

        return await self._cached(generate_key(CACHE_PREFIX_TOTALS, account_id), compute, session)

    # =========================================================================
    # TRADES
    # =========================================================================

    async def get_history(
            self,
            account_id: str,
            session: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Raw trade history.

        For "default" the per-account histories are concatenated in
        configured account order.
        """
        account_id = self.resolver.normalize_account_id(account_id)

        async def compute(token: str) -> tuple[Any, bool]:
            result = await self._collect(
                account_id, token, lambda aid: self._fetch_trades(token, aid), []
            )
            trades = [trade.to_dict() for trades in result.values() for trade in trades]
            return trades, not result.all_failed

        return await self._cached(generate_key(CACHE_PREFIX_HISTORY, account_id), compute, session)

    async def get_average_trade_duration(
            self,
            account_id: str,
            session: str | None = None,
    ) -> dict[str, Any]:
        """Average holding time of closed trades, in ms and as "1d 2h 3m 4s"."""
        account_id = self.resolver.normalize_account_id(account_id)
        return await self._cached(
            generate_key(CACHE_PREFIX_TRADE_LENGTH, account_id),
            lambda token: self._compute_trade_duration(account_id, token),
            session,
        )

    async def refresh_default_trade_duration(self) -> dict[str, Any]:
        """
        Recompute the "default" trade duration and cache it.

        Uses the managed session and writes under the same key that
        get_average_trade_duration("default") reads, with trade_length_ttl.
        """
        value, cacheable = await call_with_session_retry(
            self.sessions,
            lambda token: self._compute_trade_duration(DEFAULT_ACCOUNT_ID, token),
        )
        if cacheable:
            await self.cache.set(
                generate_key(CACHE_PREFIX_TRADE_LENGTH, DEFAULT_ACCOUNT_ID),
                value,
                self.trade_length_ttl,
            )
        return value

    async def _compute_trade_duration(self, account_id: str, token: str) -> tuple[Any, bool]:
        result = await self._collect(
            account_id, token, lambda aid: self._fetch_trades(token, aid), []
        )
        trades = [trade for trades in result.values() for trade in trades]
        stats = calculate_trade_durations(trades)
        return {
            "average_trade_length_ms": stats.average_ms,
            "average_trade_length_formatted": format_duration(stats.average_ms),
            "total_trades": stats.total_trades,
            "valid_trades": stats.valid_trades,
        }, not result.all_failed

    # =========================================================================
    # DAILY DATA
    # =========================================================================

    async def get_balance_profitability(
            self,
            account_id: str,
            start: str | date,
            end: str | date,
            session: str | None = None,
    ) -> dict[str, Any]:
        """
        Balance change between the first and last day of the range.

        profitability = (end_balance - start_balance) / start_balance
        For "default" start and end balances are summed across accounts.
        """
        account_id = self.resolver.normalize_account_id(account_id)
        start_date, end_date = validate_date_range(start, end)

        async def fetch(token: str, aid: str) -> tuple[float, float]:
            records = await self._fetch_daily(token, aid, start_date, end_date)
            if not records:
                return 0.0, 0.0
            return records[0].balance, records[-1].balance

        async def compute(token: str) -> tuple[Any, bool]:
            result = await self._collect(account_id, token, lambda aid: fetch(token, aid), (0.0, 0.0))
            start_balance = sum(pair[0] for pair in result.values())
            end_balance = sum(pair[1] for pair in result.values())
            profitability = (end_balance - start_balance) / start_balance if start_balance else 0.0
            return {
                "start_balance": _money(start_balance),
                "end_balance": _money(end_balance),
                "profitability": round(profitability, RATIO_DECIMAL_PLACES),
                "profitability_percent": _money(profitability * 100),
            }, not result.all_failed

        key = generate_key(
            CACHE_PREFIX_PROFITABILITY, account_id, format_iso_date(start_date), format_iso_date(end_date)
        )
        return await self._cached(key, compute, session)

    async def get_daily_data(
            self,
            account_id: str,
            start: str | date,
            end: str | date,
            session: str | None = None,
    ) -> dict[str, Any]:
        """
        Daily records with cumulative profit, drawdown and range totals.

        For "default" the per-account records are concatenated and the
        cumulative transform runs over the merged sequence. Records are not
        merged by date, so drawdown over "default" is an approximation.
        """
        account_id = self.resolver.normalize_account_id(account_id)
        start_date, end_date = validate_date_range(start, end)

        async def compute(token: str) -> tuple[Any, bool]:
            result = await self._collect(
                account_id, token, lambda aid: self._fetch_daily(token, aid, start_date, end_date), []
            )
            records: list[DailyRecord] = [r for records in result.values() for r in records]
            cumulative = cumulative_profit_series(records)
            drawdown = calculate_peak_trough_drawdown([r.balance for r in records])

            return {
                "account_id": account_id,
                "start_date": format_iso_date(start_date),
                "end_date": format_iso_date(end_date),
                "records": [
                    {
                        "date": r.date,
                        "balance": _money(r.balance),
                        "profit": _money(r.profit),
                        "pips": _money(r.pips),
                    }
                    for r in cumulative
                ],
                "total_profit": _money(sum(r.profit for r in records)),
                "total_pips": _money(sum(r.pips for r in records)),
                "drawdown": {
                    "peak": _money(drawdown.peak),
                    "peak_index": drawdown.peak_index,
                    "trough": _money(drawdown.trough),
                    "trough_index": drawdown.trough_index,
                    "drawdown_percent": _money(drawdown.drawdown_percent),
                    "recovered": drawdown.recovered,
                },
            }, not result.all_failed

        key = generate_key(
            CACHE_PREFIX_DAILY_DATA, account_id, format_iso_date(start_date), format_iso_date(end_date)
        )
        return await self._cached(key, compute, session)

    # =========================================================================
    # PERIOD COMPARISONS
    # =========================================================================

    async def get_gain_comparisons(
            self,
            account_id: str,
            session: str | None = None,
    ) -> dict[str, Any]:
        """
        Gain for today/week/month/year against the previous period.

        Each account needs one get-gain call per window (8 in total), all
        issued concurrently. For "default" gains are summed across accounts.
        """
        account_id = self.resolver.normalize_account_id(account_id)
        today = self._today()
        pairs = period_windows(today)

        async def fetch(token: str, aid: str) -> dict[str, dict[str, float]]:
            windows = [(pair.name, "current", pair.current) for pair in pairs]
            windows += [(pair.name, "previous", pair.previous) for pair in pairs]
            gains = await asyncio.gather(
                *(self._fetch_gain(token, aid, window.start, window.end) for _, _, window in windows)
            )
            by_period: dict[str, dict[str, float]] = {pair.name: {} for pair in pairs}
            for (name, which, _), gain in zip(windows, gains):
                by_period[name][which] = gain
            return by_period

        async def compute(token: str) -> tuple[Any, bool]:
            placeholder = {pair.name: {"current": 0.0, "previous": 0.0} for pair in pairs}
            result = await self._collect(account_id, token, lambda aid: fetch(token, aid), placeholder)

            comparisons = {}
            for pair in pairs:
                current = sum(values[pair.name]["current"] for values in result.values())
                previous = sum(values[pair.name]["previous"] for values in result.values())
                comparisons[pair.name] = {
                    "current": {
                        "gain": _money(current),
                        "start_date": format_iso_date(pair.current.start),
                        "end_date": format_iso_date(pair.current.end),
                    },
                    "previous": {
                        "gain": _money(previous),
                        "start_date": format_iso_date(pair.previous.start),
                        "end_date": format_iso_date(pair.previous.end),
                    },
                    "difference": _money(current - previous),
                    "difference_percent": _money(percent_difference(current, previous)),
                }
            return comparisons, not result.all_failed

        key = generate_key(CACHE_PREFIX_GAIN_COMPARISONS, account_id, format_iso_date(today))
        return await self._cached(key, compute, session)

    async def get_daily_data_comparisons(
            self,
            account_id: str,
            session: str | None = None,
    ) -> dict[str, Any]:
        """
        Profit and pips for today/week/month/year against the previous period.

        Fetches one daily-data range per account (Jan 1 of last year through
        today) and buckets the raw daily deltas locally.
        """
        account_id = self.resolver.normalize_account_id(account_id)
        today = self._today()
        pairs = period_windows(today)
        span = comparison_range(today)

        async def compute(token: str) -> tuple[Any, bool]:
            result = await self._collect(
                account_id, token, lambda aid: self._fetch_daily(token, aid, span.start, span.end), []
            )
            records = [r for records in result.values() for r in records]

            comparisons = {}
            for pair in pairs:
                current = sum_period(records, pair.current)
                previous = sum_period(records, pair.previous)
                comparisons[pair.name] = {
                    "current": {
                        "total_profit": _money(current.total_profit),
                        "total_pips": _money(current.total_pips),
                        "start_date": format_iso_date(pair.current.start),
                        "end_date": format_iso_date(pair.current.end),
                    },
                    "previous": {
                        "total_profit": _money(previous.total_profit),
                        "total_pips": _money(previous.total_pips),
                        "start_date": format_iso_date(pair.previous.start),
                        "end_date": format_iso_date(pair.previous.end),
                    },
                    "profit_difference": _money(current.total_profit - previous.total_profit),
                    "pips_difference": _money(current.total_pips - previous.total_pips),
                    "profit_difference_percent": _money(
                        percent_difference(current.total_profit, previous.total_profit)
                    ),
                }
            return comparisons, not result.all_failed

        key = generate_key(CACHE_PREFIX_DAILY_COMPARISONS, account_id, format_iso_date(today))
        return await self._cached(key, compute, session)

    # =========================================================================
    # COMPOSED
    # =========================================================================

    async def get_performance_summary(
            self,
            account_id: str,
            start: str | date,
            end: str | date,
            session: str | None = None,
    ) -> dict[str, Any]:
        """Profitability and trade duration, fetched concurrently."""
        account_id = self.resolver.normalize_account_id(account_id)
        start_date, end_date = validate_date_range(start, end)

        profitability, trade_length = await asyncio.gather(
            self.get_balance_profitability(account_id, start_date, end_date, session=session),
            self.get_average_trade_duration(account_id, session=session),
        )
        return {
            "account_id": account_id,
            "start_date": format_iso_date(start_date),
            "end_date": format_iso_date(end_date),
            "profitability": profitability,
            "trade_length": trade_length,
        }

    async def get_all_comparisons(
            self,
            account_id: str,
            session: str | None = None,
    ) -> dict[str, Any]:
        """Gain and daily-data comparisons, fetched concurrently."""
        account_id = self.resolver.normalize_account_id(account_id)

        gain, daily_data = await asyncio.gather(
            self.get_gain_comparisons(account_id, session=session),
            self.get_daily_data_comparisons(account_id, session=session),
        )
        return {"account_id": account_id, "gain": gain, "daily_data": daily_data}

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    async def login(self, credentials: Credentials | None = None) -> str:
        """
        Return a session token.

        Without credentials this is the managed session (logging in only if
        none is stored). With credentials a fresh login is performed and its
        token is returned without being stored.
        """
        if credentials is None:
            return await self.sessions.resolve()
        return await self.sessions.fresh_login(credentials)

    async def test_authentication(self, credentials: Credentials | None = None) -> dict[str, Any]:
        """
        Attempt a fresh login and report the outcome instead of raising.

        The managed session is left untouched.
        """
        try:
            token = await self.sessions.fresh_login(credentials)
        except ServiceError as e:
            logger.warning(f"Authentication test failed: {e}")
            return {"success": False, "message": str(e)}

        return {"success": True, "session": token, "message": "Upstream authentication successful"}

    async def logout(self, token: str | None) -> dict[str, Any]:
        """
        End an upstream session.

        If the token is the stored managed session, it is also forgotten.

        Raises:
            ValidationError: Token missing or blank
            AuthenticationError: Upstream reports the token as already invalid
        """
        token = validate_explicit_token(token)
        stored = await self.sessions.current_token()
        try:
            return await self.client.logout(token)
        except SessionExpiredError as e:
            raise AuthenticationError(f"Session token is invalid or expired: {e.message}")
        finally:
            if stored == token:
                await self.sessions.invalidate()

    async def reset_cache(self) -> None:
        """Drop every cached result and the stored session."""
        await self.cache.reset()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _cached(
            self,
            key: str,
            compute: Computation,
            session: str | None,
    ) -> Any:
        """Run ``compute`` behind the cache and the session retry wrapper."""

        async def operation(token: str) -> Any:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

            value, cacheable = await compute(token)
            if cacheable:
                await self.cache.set(key, value)
            else:
                logger.warning(f"Every account call failed for {key}; result not cached")
            return value

        return await call_with_session_retry(self.sessions, operation, session)

    async def _collect(
            self,
            account_id: str,
            token: str,
            fetch: Callable[[str], Awaitable[T]],
            placeholder: T,
    ) -> FanoutResult[T]:
        """
        Fetch per-account values for a selector.

        A regular account id is fetched directly and its errors propagate.
        "default" fans out over the configured set, or over every upstream
        account when no set is configured.
        """
        if not self.resolver.is_default(account_id):
            value = await fetch(account_id)
            return FanoutResult(account_ids=[account_id], placeholder=placeholder, successful={account_id: value})

        account_ids = self.resolver.resolve_account_ids(account_id)
        if not account_ids:
            account_ids = [account.id for account in await self._fetch_accounts(token)]
        return await self.resolver.fan_out(account_ids, fetch, placeholder)

    async def _fetch_accounts(self, token: str) -> list[Account]:
        payload = await self.client.call(ENDPOINT_GET_ACCOUNTS, token)
        return parse_accounts(payload)

    async def _fetch_trades(self, token: str, account_id: str) -> list[TradeRecord]:
        payload = await self.client.call(ENDPOINT_GET_HISTORY, token, {"id": account_id})
        return parse_trades(payload)

    async def _fetch_daily(
            self,
            token: str,
            account_id: str,
            start: date,
            end: date,
    ) -> list[DailyRecord]:
        payload = await self.client.call(
            ENDPOINT_GET_DAILY_DATA,
            token,
            {"id": account_id, "start": format_iso_date(start), "end": format_iso_date(end)},
        )
        return parse_daily_records(payload)

    async def _fetch_gain(self, token: str, account_id: str, start: date, end: date) -> float:
        payload = await self.client.call(
            ENDPOINT_GET_GAIN,
            token,
            {"id": account_id, "start": format_iso_date(start), "end": format_iso_date(end)},
        )
        return parse_gain(payload)
