# backend/gateway/utils/context.py
"""
Request context for log correlation.

The correlation ID lives in a ContextVar so it propagates through
await chains and into tasks spawned by asyncio.gather during account
fan-out, which lets every upstream call of one request share an ID.

Usage:
    from gateway.utils.context import get_correlation_id, set_correlation_id

    # In middleware
    set_correlation_id("abc-123")

    # In any service/handler
    correlation_id = get_correlation_id()  # Returns "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    Called by the correlation middleware at the start of each request and
    by background jobs at the start of each run.

    Args:
        correlation_id: Unique identifier for this request
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request or job run."""
    _correlation_id_var.set(None)
