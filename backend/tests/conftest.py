# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- A scripted fake of the upstream provider (no network)
- In-memory cache store
- A fully wired AccountGatewayService with a fixed "today"
- Sample payload factories
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("TRADE_LENGTH_REFRESH_ENABLED", "false")

from datetime import date
from typing import Any, Mapping

import pytest

from gateway.services.accounts import AccountResolver
from gateway.services.cache import CacheStore, InMemoryCacheBackend
from gateway.services.constants import (
    ENDPOINT_GET_ACCOUNTS,
    ENDPOINT_GET_DAILY_DATA,
    ENDPOINT_GET_GAIN,
    ENDPOINT_GET_HISTORY,
    ENDPOINT_LOGOUT,
)
from gateway.services.exceptions import AuthenticationError, SessionExpiredError
from gateway.services.gateway import AccountGatewayService
from gateway.services.session import SessionManager

TEST_EMAIL = "trader@example.com"
TEST_PASSWORD = "secret"
TODAY = date(2024, 3, 15)


# =============================================================================
# FAKE UPSTREAM PROVIDER
# =============================================================================

class FakeUpstreamClient:
    """
    Scripted implementation of UpstreamClientProtocol.

    Responses are registered per (endpoint, account id); an Exception
    registered as a response is raised instead. Tokens listed in
    ``expired_tokens`` make every call raise SessionExpiredError.
    """

    def __init__(self):
        self.responses: dict[tuple[str, str | None], Any] = {}
        self.gains: dict[str, Any] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.logins: list[tuple[str, str]] = []
        self.logouts: list[str] = []
        self.expired_tokens: set[str] = set()
        self.valid_credentials: tuple[str, str] | None = (TEST_EMAIL, TEST_PASSWORD)
        self._token_counter = 0

    # ----- configuration helpers -----

    def set_accounts(self, accounts: list[dict[str, Any]]) -> None:
        self.responses[(ENDPOINT_GET_ACCOUNTS, None)] = {"error": False, "accounts": accounts}

    def set_history(self, account_id: str, trades: list[dict[str, Any]] | Exception) -> None:
        if isinstance(trades, Exception):
            self.responses[(ENDPOINT_GET_HISTORY, account_id)] = trades
        else:
            self.responses[(ENDPOINT_GET_HISTORY, account_id)] = {"error": False, "history": trades}

    def set_daily(self, account_id: str, records: list[dict[str, Any]] | Exception) -> None:
        if isinstance(records, Exception):
            self.responses[(ENDPOINT_GET_DAILY_DATA, account_id)] = records
        else:
            self.responses[(ENDPOINT_GET_DAILY_DATA, account_id)] = {"error": False, "dataDaily": records}

    def set_gain(self, account_id: str, value: float | Exception) -> None:
        self.gains[account_id] = value

    def calls_to(self, endpoint: str) -> list[tuple[str, str, dict[str, Any]]]:
        return [call for call in self.calls if call[0] == endpoint]

    # ----- protocol -----

    async def login(self, email: str, password: str) -> str:
        self.logins.append((email, password))
        if self.valid_credentials is not None and (email, password) != self.valid_credentials:
            raise AuthenticationError("Upstream authentication failed: Invalid email or password")
        self._token_counter += 1
        return f"token-{self._token_counter}"

    async def logout(self, token: str) -> dict[str, Any]:
        self.logouts.append(token)
        if token in self.expired_tokens:
            raise SessionExpiredError(ENDPOINT_LOGOUT, "Invalid session.")
        return {"error": False, "message": ""}

    async def call(
        self,
        endpoint: str,
        token: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        params = dict(params or {})
        self.calls.append((endpoint, token, params))
        if token in self.expired_tokens:
            raise SessionExpiredError(endpoint, "Invalid session.")

        if endpoint == ENDPOINT_GET_GAIN:
            value = self.gains.get(params.get("id"), 0.0)
            if isinstance(value, Exception):
                raise value
            return {"error": False, "value": value}

        response = self.responses.get((endpoint, params.get("id")))
        if response is None:
            response = self.responses.get((endpoint, None), {"error": False})
        if isinstance(response, Exception):
            raise response
        return response


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def fake_upstream() -> FakeUpstreamClient:
    return FakeUpstreamClient()


@pytest.fixture
def cache_store() -> CacheStore:
    """Fresh in-memory cache store per test."""
    return CacheStore(InMemoryCacheBackend(max_entries=100), default_ttl=30)


@pytest.fixture
def session_manager(fake_upstream, cache_store) -> SessionManager:
    return SessionManager(fake_upstream, cache_store, TEST_EMAIL, TEST_PASSWORD)


@pytest.fixture
def resolver() -> AccountResolver:
    """Resolver with "default" = accounts 1 and 2."""
    return AccountResolver(
        default_account_ids=["1", "2"],
        low_risk_account_ids=["2"],
        high_risk_account_ids=["1"],
        low_risk_account_name="Low Risk Fund",
        default_account_name="Combined Portfolio",
    )


@pytest.fixture
def gateway_service(fake_upstream, session_manager, cache_store, resolver) -> AccountGatewayService:
    """Fully wired service with "today" fixed at 2024-03-15."""
    return AccountGatewayService(
        client=fake_upstream,
        sessions=session_manager,
        cache=cache_store,
        resolver=resolver,
        today=lambda: TODAY,
        trade_length_ttl=600,
    )


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_account(
    account_id: str,
    balance: float = 1000.0,
    profit: float = 100.0,
    equity: float | None = None,
    monthly: float | None = 2.0,
    gain: float | None = 10.0,
    name: str | None = None,
) -> dict[str, Any]:
    """Build an upstream account item."""
    return {
        "id": account_id,
        "name": name or f"Account {account_id}",
        "balance": balance,
        "profit": profit,
        "equity": equity if equity is not None else balance,
        "monthly": monthly,
        "gain": gain,
    }


def make_daily(day: str, balance: float, profit: float = 0.0, pips: float = 0.0) -> list[dict[str, Any]]:
    """Build an upstream daily record (wrapped in a singleton array, as the provider does)."""
    return [{"date": day, "balance": balance, "profit": profit, "pips": pips}]


def make_trade(open_time: str, close_time: str, **extra: Any) -> dict[str, Any]:
    return {"openTime": open_time, "closeTime": close_time, **extra}
