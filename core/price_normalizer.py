"""
Price normalization and currency conversion.

The primary provider reports amounts either as integer "minor units"
(x1000) or as plain decimals, without saying which. We treat anything above
MINOR_UNITS_THRESHOLD as minor units. A genuine unit price above that
threshold is indistinguishable and will be scaled down; no field in the
provider payload can disambiguate, so the heuristic is kept as-is.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from core.models import Currency, ExchangeRate, SECONDARY_CURRENCY

MINOR_UNITS_THRESHOLD = Decimal(1000)
MINOR_UNITS_DIVISOR = Decimal(1000)
CENTS_DIVISOR = Decimal(100)

_PRESENTATION_QUANTUM = Decimal("0.01")


def to_decimal(raw: Any) -> Decimal:
    """Coerce a JSON number or numeric string to Decimal."""
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, bool) or raw is None:
        raise ValueError(f"Not a price: {raw!r}")
    else:
        try:
            value = Decimal(str(raw).strip())
        except InvalidOperation:
            raise ValueError(f"Not a price: {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not a price: {raw!r}")
    return value


def normalize_amount(raw: Any) -> Decimal:
    """Primary-provider amount -> decimal currency units."""
    value = to_decimal(raw)
    if value > MINOR_UNITS_THRESHOLD:
        return value / MINOR_UNITS_DIVISOR
    return value


def cents_to_amount(raw: Any) -> Decimal:
    """Peer-listing provider integer cents -> decimal currency units."""
    return to_decimal(raw) / CENTS_DIVISOR


def parse_currency(value: Any) -> Currency:
    """'brl', 'BRL', None (primary) -> Currency. Unknown codes raise ValueError."""
    return Currency.parse(value)


def convert(amount: Decimal, target: Currency, rate: ExchangeRate) -> Decimal:
    """
    Convert a primary-currency amount for presentation.

    Full precision is kept through the multiplication; rounding to cents
    is the last step.
    """
    value = to_decimal(amount)
    if parse_currency(target) is SECONDARY_CURRENCY:
        value = value * rate.value
    return value.quantize(_PRESENTATION_QUANTUM, rounding=ROUND_HALF_UP)


def to_primary(amount: Decimal, rate: ExchangeRate) -> Decimal:
    """Secondary-currency amount -> primary currency, unrounded."""
    return to_decimal(amount) / rate.value
