from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.models import Currency, ExchangeRate
from core.price_normalizer import (
    cents_to_amount,
    convert,
    normalize_amount,
    to_decimal,
    to_primary,
)


pytestmark = pytest.mark.unit

RATE = ExchangeRate(value=Decimal("5.50"), last_updated=datetime(2025, 1, 1, tzinfo=timezone.utc))


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1500, Decimal("1.5")),
        (12500, Decimal("12.5")),
        (1000, Decimal("1000")),
        (999, Decimal("999")),
        ("12.50", Decimal("12.50")),
        (0, Decimal("0")),
    ],
)
def test_normalize_amount_threshold(raw, expected):
    assert normalize_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, True, "abc", "NaN", "Infinity", ""])
def test_to_decimal_rejects_non_prices(raw):
    with pytest.raises(ValueError):
        to_decimal(raw)


def test_cents_to_amount():
    assert cents_to_amount(1234) == Decimal("12.34")


def test_convert_primary_only_rounds():
    assert convert(Decimal("12.345"), Currency.USD, RATE) == Decimal("12.35")


def test_convert_to_secondary_multiplies_before_rounding():
    # 1.005 * 5.5 = 5.5275 -> 5.53; rounding first would give 1.01 * 5.5 = 5.555 -> 5.56
    assert convert(Decimal("1.005"), Currency.BRL, RATE) == Decimal("5.53")
    assert convert(Decimal("10"), "BRL", RATE) == Decimal("55.00")


def test_to_primary_divides_by_rate():
    assert to_primary(Decimal("55"), RATE) == Decimal("10")
