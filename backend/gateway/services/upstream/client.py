# backend/gateway/services/upstream/client.py
"""
HTTP client for the trading-account provider.

The provider is treated as ``call(endpoint, session, params) -> JSON``.
This client knows nothing about caching or session storage; it only
issues read-only GET requests and classifies failures:

- HTTP 401, or an error payload whose message names an invalid/expired
  session: SessionExpiredError (the caller refreshes and retries once)
- timeout: UpstreamTimeoutError (never treated as session expiry)
- transport errors and 429/502/503/504: retried with exponential backoff,
  then UpstreamError
- any other error payload or status: UpstreamError

Usage:
    client = UpstreamClient(api_url="https://www.myfxbook.com/api", timeout=30)
    token = await client.login(email, password)
    payload = await client.call("get-history.json", token, {"id": "12345"})
    await client.aclose()
"""

import logging
from typing import Any, Mapping

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gateway.services.constants import (
    ENDPOINT_LOGIN,
    ENDPOINT_LOGOUT,
    RETRYABLE_STATUS_CODES,
    RETRY_WAIT_MAX_SECONDS,
    RETRY_WAIT_MIN_SECONDS,
    SESSION_EXPIRED_MARKERS,
)
from gateway.services.exceptions import (
    AuthenticationError,
    SessionExpiredError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)


class _TransientUpstreamError(UpstreamError):
    """Failure worth retrying (connection problems, 429, 5xx gateway errors)."""


def is_session_expired_message(message: str | None) -> bool:
    """Check an upstream error message against the known expiry phrases."""
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in SESSION_EXPIRED_MARKERS)


class UpstreamClient:
    """
    Async client for the provider API over a shared ``httpx.AsyncClient``.

    Configuration:
        api_url: Base URL, e.g. "https://www.myfxbook.com/api"
        timeout: Per-call timeout in seconds
        max_attempts: Total attempts for transient failures

    Retry Behavior:
        - Retries transport errors and 429/502/503/504 responses
        - Does NOT retry timeouts, session expiry or error payloads
        - Exponential backoff between RETRY_WAIT_MIN/MAX_SECONDS
    """

    def __init__(
            self,
            api_url: str,
            timeout: float = 30.0,
            max_attempts: int = 3,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._http = httpx.AsyncClient(
            base_url=api_url.rstrip("/") + "/",
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def login(self, email: str, password: str) -> str:
        """
        Log in with credentials and return the session token.

        Raises:
            AuthenticationError: Provider rejected the credentials
            UpstreamError: Provider unreachable or returned garbage
        """
        response = await self._get(
            ENDPOINT_LOGIN,
            {"email": email.strip(), "password": password.strip()},
        )
        if response.status_code == 401:
            raise AuthenticationError("Upstream authentication failed: unauthorized")
        if response.status_code >= 400:
            raise UpstreamError(ENDPOINT_LOGIN, f"HTTP {response.status_code}", response.status_code)

        payload = self._decode(ENDPOINT_LOGIN, response)
        session = payload.get("session")
        if payload.get("error") or not session:
            message = payload.get("message") or "Authentication failed"
            raise AuthenticationError(f"Upstream authentication failed: {message}")

        logger.info("Upstream login succeeded")
        return str(session)

    async def logout(self, token: str) -> dict[str, Any]:
        """End an upstream session."""
        return await self.call(ENDPOINT_LOGOUT, token)

    async def call(
            self,
            endpoint: str,
            token: str,
            params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make an authenticated call and return the decoded payload.

        Raises:
            SessionExpiredError: The session token is no longer valid
            UpstreamTimeoutError: The call timed out
            UpstreamError: Any other failure
        """
        query = {"session": token, **(params or {})}
        response = await self._get(endpoint, query)

        if response.status_code == 401:
            raise SessionExpiredError(endpoint)
        if response.status_code >= 400:
            raise UpstreamError(endpoint, f"HTTP {response.status_code}", response.status_code)

        payload = self._decode(endpoint, response)
        if payload.get("error"):
            message = str(payload.get("message") or "Unknown upstream error")
            if is_session_expired_message(message):
                raise SessionExpiredError(endpoint, message)
            raise UpstreamError(endpoint, message, response.status_code)

        return payload

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _get(self, endpoint: str, params: Mapping[str, Any]) -> httpx.Response:
        """GET an endpoint, retrying transient failures."""

        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=RETRY_WAIT_MIN_SECONDS, max=RETRY_WAIT_MAX_SECONDS),
            retry=retry_if_exception_type(_TransientUpstreamError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _inner() -> httpx.Response:
            logger.debug(f"Upstream GET {endpoint}")
            try:
                response = await self._http.get(endpoint, params=dict(params))
            except httpx.TimeoutException:
                raise UpstreamTimeoutError(endpoint, self.timeout)
            except httpx.TransportError as e:
                raise _TransientUpstreamError(endpoint, f"{type(e).__name__}: {e}")

            if response.status_code in RETRYABLE_STATUS_CODES:
                raise _TransientUpstreamError(
                    endpoint, f"HTTP {response.status_code}", response.status_code
                )
            return response

        return await _inner()

    @staticmethod
    def _decode(endpoint: str, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            raise UpstreamError(endpoint, "response is not valid JSON", response.status_code)
        if not isinstance(payload, dict):
            raise UpstreamError(endpoint, "unexpected response shape", response.status_code)
        return payload
