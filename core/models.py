"""
Core data model for the price aggregation engine.

Everything here is transient: built per request, returned, discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple


class Provider(str, Enum):
    """Marketplace tags. NONE marks a history result nothing produced."""

    BITSKINS = "bitskins"
    CSFLOAT = "csfloat"
    STEAM = "steam"
    NONE = "none"

    @classmethod
    def parse(cls, value: "str | Provider | None") -> Optional["Provider"]:
        """Parse a provider tag (case-insensitive). Empty input gives None."""
        if value is None or isinstance(value, Provider):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unknown provider: {value!r}") from None


# Providers that can hold a price/id slot on a CanonicalItem
MARKET_PROVIDERS: Tuple[Provider, ...] = (Provider.BITSKINS, Provider.CSFLOAT, Provider.STEAM)


class Currency(str, Enum):
    """USD is the primary (storage) currency, BRL the presentation one."""

    USD = "USD"
    BRL = "BRL"

    @classmethod
    def parse(cls, value: "str | Currency | None") -> "Currency":
        if value is None or value == "":
            return cls.USD
        if isinstance(value, Currency):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported currency: {value!r}") from None


PRIMARY_CURRENCY = Currency.USD
SECONDARY_CURRENCY = Currency.BRL

# Ranking key for items without any price; larger than any real price
UNPRICED_SENTINEL = Decimal("Infinity")


def _empty_slots() -> Dict[Provider, None]:
    return {p: None for p in MARKET_PROVIDERS}


@dataclass
class CanonicalItem:
    """One tradable item, keyed by exact display name, merged across providers."""

    name: str
    image_url: str = ""
    prices: Dict[Provider, Optional[Decimal]] = field(default_factory=_empty_slots)
    provider_ids: Dict[Provider, Optional[str]] = field(default_factory=_empty_slots)

    def set_offer(self, provider: Provider, provider_id: Optional[str], price: Optional[Decimal]) -> None:
        """Write one provider's slot. Never touches another provider's data."""
        if provider not in MARKET_PROVIDERS:
            raise ValueError(f"{provider} cannot hold an offer")
        self.provider_ids[provider] = provider_id
        self.prices[provider] = price

    @property
    def has_price(self) -> bool:
        return any(p is not None for p in self.prices.values())

    @property
    def best_price(self) -> Optional[Decimal]:
        known = [p for p in self.prices.values() if p is not None]
        return min(known) if known else None

    @property
    def ranking_key(self) -> Decimal:
        best = self.best_price
        return best if best is not None else UNPRICED_SENTINEL


@dataclass(frozen=True)
class PricePoint:
    date: date
    price: Decimal

    def __post_init__(self) -> None:
        if self.price < 0:
            raise ValueError(f"Negative price point: {self.price}")


@dataclass(frozen=True)
class ExchangeRate:
    """Primary -> secondary currency rate. Always positive."""

    value: Decimal
    last_updated: datetime

    def __post_init__(self) -> None:
        if not self.value or self.value <= 0:
            raise ValueError(f"Exchange rate must be positive, got {self.value!r}")


@dataclass(frozen=True)
class HistoryResult:
    """A resolved price series tagged with the provider that produced it."""

    source: Provider
    series: Tuple[PricePoint, ...] = ()

    @classmethod
    def empty(cls) -> "HistoryResult":
        return cls(source=Provider.NONE, series=())

    @property
    def is_empty(self) -> bool:
        return not self.series

    @property
    def latest(self) -> Optional[PricePoint]:
        return self.series[-1] if self.series else None
