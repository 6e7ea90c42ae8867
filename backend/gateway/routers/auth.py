"""
Upstream authentication endpoints.

Provides:
- POST /auth/login - Get an upstream session token
- POST /auth/logout - End an upstream session
- GET /auth/test - Check that the configured credentials are accepted

Session handling:
- Without a body, login returns the backend-managed session (logging in
  only when none is stored)
- With credentials, login performs a fresh upstream login; that token is
  returned to the caller and never stored
- Logging out the managed session also forgets it, so the next request
  logs in again
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.dependencies import get_gateway_service, get_session_token
from gateway.schemas.auth import AuthResult, LoginRequest, LogoutRequest
from gateway.schemas.responses import ApiResponse
from gateway.services.gateway import AccountGatewayService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_unset=True,
    summary="Login to the upstream provider",
    description="Return the managed session, or a fresh session for the given credentials.",
)
async def login(
    service: Annotated[AccountGatewayService, Depends(get_gateway_service)],
    data: LoginRequest | None = None,
) -> ApiResponse:
    """Login with the request credentials or the configured ones."""
    credentials = data.to_credentials() if data and data.has_credentials else None
    token = await service.login(credentials)

    result = AuthResult(success=True, session=token, message="Login successful")
    return ApiResponse.ok(data=result, message=result.message)


@router.post(
    "/logout",
    response_model=ApiResponse[dict],
    response_model_exclude_unset=True,
    summary="Logout from the upstream provider",
    description="End the session given in the body or in the X-Session-Token header.",
)
async def logout(
    service: Annotated[AccountGatewayService, Depends(get_gateway_service)],
    header_token: Annotated[str | None, Depends(get_session_token)] = None,
    data: LogoutRequest | None = None,
) -> ApiResponse:
    """End an upstream session. The body token wins over the header."""
    token = data.session if data and data.session is not None else header_token
    upstream = await service.logout(token)
    return ApiResponse.ok(data=upstream, message="Logout successful")


@router.get(
    "/test",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_unset=True,
    summary="Test upstream authentication",
    description="Attempt a login with the configured credentials without touching the managed session.",
)
async def test_authentication(
    service: Annotated[AccountGatewayService, Depends(get_gateway_service)],
) -> ApiResponse:
    outcome = await service.test_authentication()
    result = AuthResult(**outcome)
    return ApiResponse(success=result.success, message=result.message, data=result)
