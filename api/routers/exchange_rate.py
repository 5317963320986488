"""
api.routers.exchange_rate - Current USD -> BRL rate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from api.models import ExchangeRateResponse
from api.dependencies import get_app_context

if TYPE_CHECKING:
    from core.interfaces import IAppContext

router = APIRouter()


@router.get("/exchange-rate", response_model=ExchangeRateResponse)
async def get_exchange_rate(
    ctx: "IAppContext" = Depends(get_app_context),
) -> ExchangeRateResponse:
    """Latest known rate; the configured default until the first refresh succeeds."""
    rate = ctx.exchange_rate()
    return ExchangeRateResponse(value=float(rate.value), last_updated=rate.last_updated)
