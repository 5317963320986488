"""
api.routers.skins - Skin search, history and price endpoints.

The engine calls are blocking HTTP fan-outs, so these handlers are plain
functions and run in FastAPI's threadpool.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Query

from api.models import (
    HistoryResponse,
    ItemDetailsResponse,
    PricePointResponse,
    ProviderIds,
    ProviderPrices,
    SkinResponse,
    SteamPriceResponse,
    to_float,
)
from api.dependencies import get_app_context
from core.models import CanonicalItem, Currency, ExchangeRate, Provider
from core.price_normalizer import convert, parse_currency
from data_sources.base_api import APIError

if TYPE_CHECKING:
    from core.interfaces import IAppContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/skins")


def _parse_currency(value: Optional[str]) -> Currency:
    try:
        return parse_currency(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _parse_provider(value: Optional[str]) -> Optional[Provider]:
    try:
        return Provider.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _present(amount: Optional[Decimal], currency: Currency, rate: ExchangeRate) -> Optional[float]:
    if amount is None:
        return None
    return to_float(convert(amount, currency, rate))


def _skin_response(item: CanonicalItem, currency: Currency, rate: ExchangeRate) -> SkinResponse:
    prices = {p.value: _present(v, currency, rate) for p, v in item.prices.items()}
    ids = {p.value: v for p, v in item.provider_ids.items()}
    return SkinResponse(
        name=item.name,
        image_url=item.image_url,
        currency=currency.value,
        prices=ProviderPrices(**prices),
        ids=ProviderIds(**ids),
        best_price=_present(item.best_price, currency, rate),
    )


@router.get("/search", response_model=list[SkinResponse])
def search_skins(
    ctx: "IAppContext" = Depends(get_app_context),
    q: str = Query(..., description="Free-text skin name (3+ characters)"),
    currency: Optional[str] = Query(None, description="USD (default) or BRL"),
) -> list[SkinResponse]:
    """
    Search every marketplace and return merged items, cheapest first.

    Queries shorter than three characters return an empty list. A failure
    of the primary marketplace is reported as 503.
    """
    target = _parse_currency(currency)
    items = ctx.search_items(q)
    rate = ctx.exchange_rate()
    return [_skin_response(item, target, rate) for item in items]


@router.get("/history/{skin_id}", response_model=HistoryResponse)
def get_history(
    skin_id: str,
    ctx: "IAppContext" = Depends(get_app_context),
    source: Optional[str] = Query(
        Provider.BITSKINS.value, description="Provider that issued skin_id"
    ),
    name: Optional[str] = Query(None, description="Exact market name, enables name-based sources"),
    forced: Optional[str] = Query(None, description="Only try this provider"),
    currency: Optional[str] = Query(None, description="USD (default) or BRL"),
) -> HistoryResponse:
    """
    Resolve a price series, falling back from the primary marketplace to
    Steam by name. ``source`` is ``none`` with an empty history when no
    provider produced data.
    """
    target = _parse_currency(currency)
    preferred = _parse_provider(source)
    forced_source = _parse_provider(forced)

    result = ctx.get_history(skin_id, name, preferred, forced_source)
    rate = ctx.exchange_rate()

    return HistoryResponse(
        source=result.source.value,
        currency=target.value,
        history=[
            PricePointResponse(date=point.date, price=_present(point.price, target, rate))
            for point in result.series
        ],
    )


@router.get("/price/steam", response_model=SteamPriceResponse)
def get_steam_price(
    ctx: "IAppContext" = Depends(get_app_context),
    name: str = Query(..., min_length=1, description="Exact market name"),
    currency: Optional[str] = Query(None, description="USD (default) or BRL"),
) -> SteamPriceResponse:
    """Latest Steam price, or null when Steam has none."""
    target = _parse_currency(currency)
    price = ctx.get_current_price(Provider.STEAM, name)
    return SteamPriceResponse(
        price=_present(price, target, ctx.exchange_rate()),
        currency=target.value,
    )


@router.get("/details/{item_id}", response_model=ItemDetailsResponse)
def get_item_details(
    item_id: str,
    ctx: "IAppContext" = Depends(get_app_context),
) -> ItemDetailsResponse:
    """Raw listing details from the primary marketplace."""
    try:
        details = ctx.get_item_details(item_id)
    except APIError as e:
        logger.warning(f"Details for {item_id} failed: {e}")
        raise HTTPException(status_code=502, detail=f"bitskins details unavailable: {e}")
    return ItemDetailsResponse(item_id=item_id, details=details)
