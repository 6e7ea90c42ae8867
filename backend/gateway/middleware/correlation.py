# backend/gateway/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

For each request this middleware:
1. Takes the caller's X-Correlation-ID (or X-Request-ID), or generates one
2. Stores it in context so every log line of the request carries it,
   including logs from concurrent per-account upstream calls
3. Echoes it in the X-Correlation-ID response header
4. Logs one access line with status and duration

Incoming IDs are truncated to MAX_CORRELATION_ID_LENGTH and restricted to
[A-Za-z0-9._-]; anything else is replaced by a generated UUID.

Usage:
    from gateway.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

import logging
import re
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gateway.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CORRELATION_ID_LENGTH = 64

_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]+$")


def resolve_correlation_id(request: Request) -> str:
    """Return a safe incoming correlation ID or a new UUID."""
    for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
        candidate = (request.headers.get(header) or "").strip()[:MAX_CORRELATION_ID_LENGTH]
        if candidate and _SAFE_ID.match(candidate):
            return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Sets, propagates and echoes the request correlation ID."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = resolve_correlation_id(request)
        set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
            )
            return response
        finally:
            clear_correlation_id()
