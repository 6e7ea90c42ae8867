# backend/gateway/services/session.py
"""
Backend-managed upstream session.

Exactly one upstream session is shared by the whole process. It is stored
in the CacheStore under SESSION_CACHE_KEY without expiry and is only
replaced when an upstream call reports that it is no longer valid.

Lifecycle:
    resolve()      -> stored token, or log in and store a new one
    invalidate()   -> delete the stored token
    refresh()      -> invalidate() + resolve()

Stored tokens are reused without any validation call. Expiry is detected
by the calling layer: call_with_session_retry() catches SessionExpiredError,
refreshes the session once and re-runs the operation.

Callers may also pass their own ("explicit") token. Explicit tokens are
validated, trimmed and URL-decoded, never stored, and never refreshed.

Usage:
    sessions = SessionManager(client, cache, email, password)

    accounts = await call_with_session_retry(
        sessions,
        lambda token: client.call("get-my-accounts.json", token),
    )
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar
from urllib.parse import unquote

from gateway.services.cache import CacheStore
from gateway.services.constants import (
    EMPTY_TOKEN_VALUES,
    SESSION_CACHE_KEY,
    SESSION_RETRY_LIMIT,
)
from gateway.services.exceptions import (
    AuthenticationError,
    SessionExpiredError,
    UpstreamError,
    ValidationError,
)
from gateway.services.protocols import UpstreamClientProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_CREDENTIALS_MESSAGE = (
    "Upstream credentials are required. Set UPSTREAM_EMAIL and UPSTREAM_PASSWORD "
    "in the environment or provide them in the request."
)


@dataclass(frozen=True)
class Credentials:
    """Caller-supplied upstream login; empty fields fall back to configuration."""
    email: str | None = None
    password: str | None = None


def validate_explicit_token(token: str | None) -> str:
    """
    Validate, trim and URL-decode a caller-supplied session token.

    Raises:
        ValidationError: If the token is missing, blank, "undefined" or "null"
    """
    if token is None or token.strip() in EMPTY_TOKEN_VALUES:
        raise ValidationError("Session token is required", field="session")
    return unquote(token.strip())


class SessionManager:
    """
    Owns the single backend-managed upstream session.

    Concurrent misses within the process are collapsed by an asyncio.Lock
    so only one login runs at a time. Separate processes sharing a Redis
    cache can still race and log in twice; the last write wins.
    """

    def __init__(
            self,
            client: UpstreamClientProtocol,
            cache: CacheStore,
            email: str | None = None,
            password: str | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._email = email
        self._password = password
        self._login_lock = asyncio.Lock()

    @property
    def has_credentials(self) -> bool:
        return bool(self._email and self._password)

    async def resolve(self, explicit_token: str | None = None) -> str:
        """
        Return a usable session token.

        An explicit token is returned (validated) as-is. Otherwise the stored
        session is returned, logging in only when none is stored.

        Raises:
            ValidationError: Explicit token is empty, or no credentials configured
            AuthenticationError: Upstream rejected the configured credentials
        """
        if explicit_token is not None:
            return validate_explicit_token(explicit_token)

        token = await self.current_token()
        if token:
            return token

        async with self._login_lock:
            # Another coroutine may have logged in while we waited
            token = await self.current_token()
            if token:
                return token
            return await self._login_and_store()

    async def invalidate(self) -> None:
        """Forget the stored session."""
        await self._cache.delete(SESSION_CACHE_KEY)
        logger.info("Stored upstream session invalidated")

    async def refresh(self) -> str:
        """Replace the stored session with a fresh login."""
        await self.invalidate()
        return await self.resolve()

    async def current_token(self) -> str | None:
        """Return the stored token without logging in."""
        stored = await self._cache.get(SESSION_CACHE_KEY)
        if isinstance(stored, dict) and stored.get("token"):
            return str(stored["token"])
        return None

    async def fresh_login(self, credentials: Credentials | None = None) -> str:
        """
        Log in without touching the stored session.

        Missing credential fields fall back to the configured ones. The
        returned token is never persisted.

        Raises:
            ValidationError: No usable email/password
            AuthenticationError: Upstream rejected the credentials
        """
        email = (credentials.email if credentials and credentials.email else self._email) or ""
        password = (credentials.password if credentials and credentials.password else self._password) or ""
        if not email.strip() or not password.strip():
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE, field="credentials")
        return await self._client.login(email, password)

    async def _login_and_store(self) -> str:
        if not self.has_credentials:
            raise ValidationError(MISSING_CREDENTIALS_MESSAGE, field="credentials")

        token = await self._client.login(self._email, self._password)
        await self._cache.set_permanent(
            SESSION_CACHE_KEY,
            {"token": token, "created_at": datetime.now(timezone.utc).isoformat()},
        )
        logger.info("New upstream session stored")
        return token


async def call_with_session_retry(
        sessions: SessionManager,
        operation: Callable[[str], Awaitable[T]],
        explicit_token: str | None = None,
) -> T:
    """
    Run ``operation(token)``, refreshing the managed session on expiry.

    The refresh-and-retry happens at most SESSION_RETRY_LIMIT times. An
    expiry that survives the retry surfaces as UpstreamError. An explicit
    token is never refreshed: its expiry surfaces as AuthenticationError.
    """
    token = await sessions.resolve(explicit_token)
    attempt = 0
    while True:
        try:
            return await operation(token)
        except SessionExpiredError as e:
            if explicit_token is not None:
                raise AuthenticationError(f"Session token is invalid or expired: {e.message}")
            if attempt >= SESSION_RETRY_LIMIT:
                raise UpstreamError(e.endpoint, f"session still invalid after refresh ({e.message})")
            attempt += 1
            logger.warning(f"Upstream session expired at '{e.endpoint}', refreshing and retrying")
            token = await sessions.refresh()
