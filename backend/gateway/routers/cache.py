"""
Cache administration endpoint.

- DELETE /cache - Drop every cached result and the stored upstream session
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.dependencies import get_gateway_service
from gateway.schemas.responses import ApiResponse
from gateway.services.gateway import AccountGatewayService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.delete(
    "",
    response_model=ApiResponse,
    response_model_exclude_unset=True,
    summary="Reset the cache",
)
async def reset_cache(
    service: Annotated[AccountGatewayService, Depends(get_gateway_service)],
) -> ApiResponse:
    """
    Clear all cached results.

    The managed upstream session is cleared too; the next request logs in
    again.
    """
    await service.reset_cache()
    logger.info("Cache reset requested")
    return ApiResponse.ok(message="Cache cleared")
