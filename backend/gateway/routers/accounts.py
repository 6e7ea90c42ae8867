# backend/gateway/routers/accounts.py
"""
Account analytics endpoints.

Endpoints:
- GET /accounts: Account listing including the synthetic "default" entry
- GET /accounts/{account_id}/totals: Aggregated balance, profit, monthly return
- GET /accounts/{account_id}/history: Raw trade history
- GET /accounts/{account_id}/trade-length: Average trade duration
- GET /accounts/{account_id}/profitability: Balance change over a date range
- GET /accounts/{account_id}/daily: Daily records with cumulative profit and drawdown
- GET /accounts/{account_id}/comparisons/gain: Gain vs previous periods
- GET /accounts/{account_id}/comparisons/daily: Profit/pips vs previous periods
- GET /accounts/{account_id}/comparisons: Both comparison sets
- GET /accounts/{account_id}/summary: Profitability and trade duration together

Use account_id "default" for the configured aggregate account. Every
endpoint accepts an optional X-Session-Token header; without it the
backend-managed upstream session is used.

Date parameters are plain strings here and validated by the service, so
a bad date yields the same 400 envelope as any other validation error.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from gateway.dependencies import get_gateway_service, get_session_token
from gateway.schemas.responses import ApiResponse
from gateway.services.gateway import AccountGatewayService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])

StartDate = Annotated[str | None, Query(description="Range start (YYYY-MM-DD)", examples=["2024-01-01"])]
EndDate = Annotated[str | None, Query(description="Range end, inclusive (YYYY-MM-DD)", examples=["2024-01-31"])]


# =============================================================================
# ACCOUNTS
# =============================================================================


@router.get(
    "",
    response_model=ApiResponse[list[dict[str, Any]]],
    response_model_exclude_unset=True,
    summary="List accounts",
)
async def list_accounts(
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """
    List upstream accounts.

    The "default" aggregate entry is always included. Accounts are ordered
    by their configured risk group.
    """
    accounts = await service.get_accounts(session=session)
    return ApiResponse.ok(data=accounts)


@router.get(
    "/{account_id}/totals",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get aggregated totals",
)
async def get_totals(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """Total balance, total profit and average monthly return."""
    totals = await service.get_aggregated_totals(account_id, session=session)
    return ApiResponse.ok(data=totals)


# =============================================================================
# TRADES
# =============================================================================


@router.get(
    "/{account_id}/history",
    response_model=ApiResponse[list[dict[str, Any]]],
    response_model_exclude_unset=True,
    summary="Get trade history",
)
async def get_history(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    history = await service.get_history(account_id, session=session)
    return ApiResponse.ok(data=history)


@router.get(
    "/{account_id}/trade-length",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get average trade duration",
)
async def get_trade_length(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """
    Average holding time of closed trades.

    Trades with missing or unparseable timestamps, or closing before they
    open, count towards `total_trades` but not `valid_trades`.
    """
    trade_length = await service.get_average_trade_duration(account_id, session=session)
    return ApiResponse.ok(data=trade_length)


# =============================================================================
# DAILY DATA
# =============================================================================


@router.get(
    "/{account_id}/profitability",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get balance profitability",
)
async def get_profitability(
        account_id: str,
        start: StartDate = None,
        end: EndDate = None,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """
    Balance change between the first and last day of the range.

    `profitability` is a ratio (0.05 = 5%), `profitability_percent` the
    same value in percent.
    """
    result = await service.get_balance_profitability(account_id, start, end, session=session)
    return ApiResponse.ok(data=result)


@router.get(
    "/{account_id}/daily",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get daily data",
)
async def get_daily(
        account_id: str,
        start: StartDate = None,
        end: EndDate = None,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """
    Daily records for the range.

    Each record's `profit` is the running total from the start of the
    range. Also returns the range totals and the peak-to-trough drawdown
    of the balance series.
    """
    result = await service.get_daily_data(account_id, start, end, session=session)
    return ApiResponse.ok(data=result)


# =============================================================================
# PERIOD COMPARISONS
# =============================================================================


@router.get(
    "/{account_id}/comparisons/gain",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Compare gain with previous periods",
)
async def get_gain_comparisons(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    result = await service.get_gain_comparisons(account_id, session=session)
    return ApiResponse.ok(data=result)


@router.get(
    "/{account_id}/comparisons/daily",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Compare profit and pips with previous periods",
)
async def get_daily_comparisons(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    result = await service.get_daily_data_comparisons(account_id, session=session)
    return ApiResponse.ok(data=result)


@router.get(
    "/{account_id}/comparisons",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get all period comparisons",
)
async def get_all_comparisons(
        account_id: str,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """Gain and daily-data comparisons in one response."""
    result = await service.get_all_comparisons(account_id, session=session)
    return ApiResponse.ok(data=result)


@router.get(
    "/{account_id}/summary",
    response_model=ApiResponse[dict[str, Any]],
    response_model_exclude_unset=True,
    summary="Get performance summary",
)
async def get_summary(
        account_id: str,
        start: StartDate = None,
        end: EndDate = None,
        service: AccountGatewayService = Depends(get_gateway_service),
        session: str | None = Depends(get_session_token),
) -> ApiResponse:
    """Profitability for the range together with the average trade duration."""
    result = await service.get_performance_summary(account_id, start, end, session=session)
    return ApiResponse.ok(data=result)
