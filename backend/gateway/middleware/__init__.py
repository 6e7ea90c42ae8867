# backend/gateway/middleware/__init__.py
"""
Middleware components for the Account Analytics Gateway.

- Correlation ID tracking for request tracing

Usage:
    from gateway.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

from gateway.middleware.correlation import (
    CORRELATION_ID_HEADER,
    CorrelationIdMiddleware,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "CorrelationIdMiddleware",
]
