"""
Authentication request/response schemas.

Defines Pydantic models for:
- Upstream login (credentials optional, fall back to configuration)
- Logout
- Login and authentication-test results
"""

from pydantic import BaseModel, EmailStr, Field

from gateway.services.session import Credentials


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class LoginRequest(BaseModel):
    """
    Request body for upstream login.

    Both fields are optional; when omitted the configured
    UPSTREAM_EMAIL / UPSTREAM_PASSWORD are used.
    """

    email: EmailStr | None = Field(
        None,
        description="Upstream account email address",
        examples=["user@example.com"],
    )
    password: str | None = Field(
        None,
        min_length=1,
        description="Upstream account password",
        examples=["your-password"],
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.email or self.password)

    def to_credentials(self) -> Credentials:
        return Credentials(email=self.email, password=self.password)


class LogoutRequest(BaseModel):
    """Request body for logout. Falls back to the X-Session-Token header."""

    session: str | None = Field(
        None,
        description="Upstream session token to end",
    )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class AuthResult(BaseModel):
    """Outcome of a login or authentication test."""

    success: bool
    session: str | None = Field(
        None,
        description="Upstream session token (only on success)",
    )
    message: str
