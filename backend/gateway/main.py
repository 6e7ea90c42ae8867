# backend/gateway/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application and its lifespan (cache check, scheduler)
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)

Every response, success or failure, uses the ApiResponse envelope.
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.config import settings
from gateway.dependencies import (
    close_dependencies,
    get_cache_store,
    get_trade_length_job,
    verify_cache_backend,
)
from gateway.middleware import CorrelationIdMiddleware
from gateway.routers import accounts_router, auth_router, cache_router
from gateway.schemas.responses import ApiResponse
from gateway.services.cache import CacheStore
from gateway.services.exceptions import (
    AuthenticationError,
    ServiceError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from gateway.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Check the cache backend, run the refresh job, release connections."""
    store = await verify_cache_backend()
    logger.info(f"{settings.app_name} starting ({settings.environment}, cache: {type(store.backend).__name__})")

    if settings.trade_length_refresh_enabled:
        get_trade_length_job().start()

    try:
        yield
    finally:
        if settings.trade_length_refresh_enabled:
            get_trade_length_job().stop()
        await close_dependencies()
        logger.info(f"{settings.app_name} stopped")


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Session-cached analytics gateway for trading accounts",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Outermost, so the correlation ID is set before anything else logs
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service exceptions carry no HTTP knowledge; the status codes live here.
# Handlers are matched on the most specific class first.
# =============================================================================


def _error_response(status_code: int, error: str, message: str, details: object = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.fail(error=error, message=message, details=details).to_content(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(
        400,
        "ValidationError",
        str(exc),
        {"field": exc.field} if exc.field else None,
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle rejected credentials or expired explicit tokens (401)."""
    logger.warning(f"Authentication error: {exc}")
    return _error_response(401, "AuthenticationError", str(exc))


@app.exception_handler(UpstreamTimeoutError)
async def upstream_timeout_handler(request: Request, exc: UpstreamTimeoutError) -> JSONResponse:
    """Handle upstream call timeouts (504)."""
    logger.error(f"Upstream timeout: {exc}")
    return _error_response(
        504,
        "UpstreamTimeoutError",
        str(exc),
        {"endpoint": exc.endpoint, "timeout": exc.timeout},
    )


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Handle upstream failures (502)."""
    logger.error(f"Upstream error: {exc}")
    details = {"endpoint": exc.endpoint}
    if exc.status_code is not None:
        details["status_code"] = exc.status_code
    return _error_response(502, "UpstreamError", str(exc), details)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with the envelope format.

    Covers unknown routes (404) and unsupported methods (405) as well.
    """
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        403: "ForbiddenError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.fail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
        ).to_content(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies/parameters (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _error_response(422, "ValidationError", "Request validation failed", errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: log it, return a generic 500 without internals."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return _error_response(500, "InternalServerError", "An unexpected error occurred")


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(accounts_router)  # /accounts/*
app.include_router(auth_router)  # /auth/*
app.include_router(cache_router)  # /cache


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================


@app.get("/health", tags=["Health"], response_model=ApiResponse[dict], response_model_exclude_unset=True)
async def health_check(
    store: Annotated[CacheStore, Depends(get_cache_store)],
) -> ApiResponse:
    """
    Health of the gateway's own dependencies.

    The upstream provider is not called. A cache that does not answer is
    reported as "degraded": the gateway keeps serving, uncached.
    """
    cache_ok = await store.backend.ping()
    checks = {
        "cache": {
            "status": "healthy" if cache_ok else "unhealthy",
            "backend": type(store.backend).__name__,
            "enabled": store.enabled,
        },
    }
    if settings.trade_length_refresh_enabled:
        checks["trade_length_refresh"] = get_trade_length_job().get_status()
    else:
        checks["trade_length_refresh"] = {"is_running": False, "enabled": False}

    return ApiResponse.ok(data={
        "status": "healthy" if cache_ok else "degraded",
        "checks": checks,
    })


@app.get("/health/live", tags=["Health"], response_model=ApiResponse[dict], response_model_exclude_unset=True)
async def liveness_check() -> ApiResponse:
    """
    Liveness probe.

    Returns 200 whenever the process is up; no dependency is checked.
    """
    return ApiResponse.ok(data={"status": "alive"})
