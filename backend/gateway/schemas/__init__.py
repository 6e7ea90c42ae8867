# backend/gateway/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- responses: The uniform success/failure envelope
- auth: Login/logout requests and authentication results

Usage:
    from gateway.schemas import ApiResponse, LoginRequest
"""

from gateway.schemas.auth import AuthResult, LoginRequest, LogoutRequest
from gateway.schemas.responses import ApiResponse

__all__ = [
    "ApiResponse",
    "AuthResult",
    "LoginRequest",
    "LogoutRequest",
]
