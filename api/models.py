"""
api.models - Pydantic models for API request/response schemas.

Prices leave the engine as Decimal in the primary currency; the routers
convert them for presentation before building these models.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ==============================================================================
# Enums
# ==============================================================================


class CurrencyCode(str, Enum):
    """Presentation currencies."""

    USD = "USD"
    BRL = "BRL"


# ==============================================================================
# Search Models
# ==============================================================================


class ProviderPrices(BaseModel):
    """One value per marketplace; null when that marketplace had no offer."""

    bitskins: Optional[float] = Field(None, ge=0, examples=[12.5])
    csfloat: Optional[float] = Field(None, ge=0, examples=[11.98])
    steam: Optional[float] = Field(None, ge=0, examples=[None])


class ProviderIds(BaseModel):
    """Provider-specific identifiers for follow-up requests."""

    bitskins: Optional[str] = Field(None, examples=["1234"])
    csfloat: Optional[str] = Field(None, examples=["78234561234"])
    steam: Optional[str] = Field(None, examples=[None])


class SkinResponse(BaseModel):
    """A single merged search result."""

    name: str = Field(..., description="Exact market name", examples=["AK-47 | Redline (Field-Tested)"])
    image_url: str = Field(..., description="Catalog image or placeholder URL")
    currency: CurrencyCode = Field(default=CurrencyCode.USD)
    prices: ProviderPrices
    ids: ProviderIds
    best_price: Optional[float] = Field(None, ge=0, description="Lowest known price")


# ==============================================================================
# History Models
# ==============================================================================


class PricePointResponse(BaseModel):
    """One point of a price series."""

    date: dt.date
    price: float = Field(..., ge=0)


class HistoryResponse(BaseModel):
    """Resolved price series and the provider that produced it."""

    source: str = Field(..., description="bitskins, csfloat, steam or none", examples=["bitskins"])
    currency: CurrencyCode = Field(default=CurrencyCode.USD)
    history: list[PricePointResponse] = Field(default_factory=list)


class SteamPriceResponse(BaseModel):
    """Latest consumer marketplace price."""

    price: Optional[float] = Field(None, ge=0, description="Null when no price could be found")
    currency: CurrencyCode = Field(default=CurrencyCode.USD)


class ItemDetailsResponse(BaseModel):
    """Raw listing details from the primary provider."""

    item_id: str
    details: dict[str, Any] = Field(default_factory=dict)


# ==============================================================================
# Exchange Rate / Health Models
# ==============================================================================


class ExchangeRateResponse(BaseModel):
    """Current USD -> BRL rate."""

    value: float = Field(..., gt=0, examples=[5.5])
    last_updated: dt.datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status", examples=["healthy"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
    services: dict[str, str] = Field(
        default_factory=dict, description="Status of individual providers"
    )


def to_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None
