# backend/gateway/services/constants.py
"""
Centralized constants for the gateway services.

Single source of truth for upstream endpoint names, cache key prefixes and
the rules used to classify upstream failures.

Usage:
    from gateway.services.constants import (
        ENDPOINT_GET_HISTORY,
        CACHE_PREFIX_TRADE_LENGTH,
        SESSION_CACHE_KEY,
    )
"""


# =============================================================================
# UPSTREAM ENDPOINTS
# =============================================================================

ENDPOINT_LOGIN: str = "login.json"
ENDPOINT_LOGOUT: str = "logout.json"
ENDPOINT_GET_ACCOUNTS: str = "get-my-accounts.json"
ENDPOINT_GET_HISTORY: str = "get-history.json"
ENDPOINT_GET_DAILY_DATA: str = "get-data-daily.json"
ENDPOINT_GET_GAIN: str = "get-gain.json"


# =============================================================================
# SESSION
# =============================================================================

# Fixed key of the single backend-managed session; stored without expiry
SESSION_CACHE_KEY: str = "upstream:session"

# Lower-cased substrings of an upstream error message that mean the
# session token is no longer valid
SESSION_EXPIRED_MARKERS: tuple[str, ...] = (
    "invalid session",
    "session expired",
    "unauthorized",
    "authentication failed",
)

# Refresh-and-retry attempts per logical call after a session expiry
SESSION_RETRY_LIMIT: int = 1

# Explicit token values treated as "no token supplied"
EMPTY_TOKEN_VALUES: frozenset[str] = frozenset({"", "undefined", "null"})


# =============================================================================
# TRANSIENT UPSTREAM FAILURES
# =============================================================================

# HTTP statuses retried with exponential backoff before giving up
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 502, 503, 504})

# Backoff bounds for transient failures (seconds)
RETRY_WAIT_MIN_SECONDS: float = 0.5
RETRY_WAIT_MAX_SECONDS: float = 8.0


# =============================================================================
# ACCOUNTS
# =============================================================================

DEFAULT_ACCOUNT_ID: str = "default"

# Listing order: lower sorts first; ties keep upstream order
PRIORITY_LOW_RISK: int = 0
PRIORITY_MEDIUM_RISK: int = 1
PRIORITY_HIGH_RISK: int = 2
PRIORITY_DEFAULT: int = 3
PRIORITY_UNRANKED: int = 4


# =============================================================================
# CACHE KEY PREFIXES
# =============================================================================

CACHE_PREFIX_ACCOUNTS: str = "accounts"
CACHE_PREFIX_TOTALS: str = "totals"
CACHE_PREFIX_HISTORY: str = "history"
CACHE_PREFIX_TRADE_LENGTH: str = "trade-length"
CACHE_PREFIX_PROFITABILITY: str = "profitability"
CACHE_PREFIX_DAILY_DATA: str = "daily-data"
CACHE_PREFIX_GAIN_COMPARISONS: str = "gain-comparisons"
CACHE_PREFIX_DAILY_COMPARISONS: str = "daily-comparisons"


# =============================================================================
# OUTPUT
# =============================================================================

# Decimal places for money and percentage values returned to callers
RESULT_DECIMAL_PLACES: int = 2

# Decimal places for plain ratios such as profitability (0.0525 = 5.25%)
RATIO_DECIMAL_PLACES: int = 4
