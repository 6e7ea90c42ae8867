# backend/gateway/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError            - caller's fault, raised before any upstream call
    ├── AuthenticationError        - upstream rejected credentials or an explicit token
    ├── SessionExpiredError        - internal signal, triggers one session refresh
    ├── UpstreamError              - non-auth failure from the provider
    │   └── UpstreamTimeoutError   - per-call timeout elapsed
    └── TransientFanoutError       - one account failed during a "default" fan-out
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when operation input is missing or malformed.

    Validation always happens before a session is resolved, so a
    ValidationError never costs an upstream call.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# AUTHENTICATION / SESSION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """
    Raised when the upstream rejects a login or an explicit session token.

    This is fatal for the request and surfaced as-is.
    """


class SessionExpiredError(ServiceError):
    """
    Raised by the upstream client when a call reports an invalid session.

    Never surfaced to API callers: the session retry wrapper catches it,
    refreshes the managed session once and re-runs the operation.

    Attributes:
        endpoint: Upstream endpoint that reported the expiry
    """

    def __init__(self, endpoint: str, message: str | None = None) -> None:
        self.endpoint = endpoint
        super().__init__(message or f"Upstream session expired while calling '{endpoint}'")


# =============================================================================
# UPSTREAM ERRORS
# =============================================================================


class UpstreamError(ServiceError):
    """
    Raised when the upstream provider fails for a non-auth reason.

    Attributes:
        endpoint: Upstream endpoint that failed
        status_code: HTTP status from the provider, if one was received
    """

    def __init__(
            self,
            endpoint: str,
            message: str,
            status_code: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"Upstream request to '{endpoint}' failed: {message}")


class UpstreamTimeoutError(UpstreamError):
    """
    Raised when an upstream call exceeds the configured timeout.

    Timeouts are generic failures; they never count as session expiry.
    """

    def __init__(self, endpoint: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(endpoint, f"timed out after {timeout:g}s")


# =============================================================================
# FAN-OUT ERRORS
# =============================================================================


class TransientFanoutError(ServiceError):
    """
    Wraps a single account's failure during a "default" fan-out.

    Recorded on the FanoutResult and logged; the account's contribution is
    replaced by a zero-valued placeholder and the aggregate still succeeds.

    Attributes:
        account_id: The account whose call failed
        cause: The underlying exception
    """

    def __init__(self, account_id: str, cause: Exception) -> None:
        self.account_id = account_id
        self.cause = cause
        super().__init__(f"Call for account {account_id} failed: {cause}")
