"""
Utility modules for the Account Analytics Gateway.

Cross-cutting utilities used throughout the application:
- logging: Logging configuration and setup with correlation ID support
- context: Request context management for correlation IDs
- date_utils: Parsing of ISO and upstream date/timestamp formats

Usage:
    from gateway.utils import setup_logging
    from gateway.utils import get_correlation_id, set_correlation_id
    from gateway.utils.date_utils import parse_iso_date
"""

from gateway.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from gateway.utils.logging import redact_secrets, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "redact_secrets",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
