from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from core.models import (
    CanonicalItem,
    Currency,
    ExchangeRate,
    HistoryResult,
    PricePoint,
    Provider,
    UNPRICED_SENTINEL,
)


pytestmark = pytest.mark.unit


def test_provider_parse():
    assert Provider.parse("BitSkins") is Provider.BITSKINS
    assert Provider.parse(" steam ") is Provider.STEAM
    assert Provider.parse("") is None
    assert Provider.parse(None) is None
    with pytest.raises(ValueError):
        Provider.parse("skinport")


def test_currency_parse_defaults_to_primary():
    assert Currency.parse(None) is Currency.USD
    assert Currency.parse("brl") is Currency.BRL
    with pytest.raises(ValueError):
        Currency.parse("EUR")


def test_new_item_has_every_slot_empty():
    item = CanonicalItem(name="X")
    assert set(item.prices) == {Provider.BITSKINS, Provider.CSFLOAT, Provider.STEAM}
    assert all(v is None for v in item.prices.values())
    assert item.ranking_key == UNPRICED_SENTINEL
    assert item.has_price is False


def test_set_offer_only_touches_its_own_slot():
    item = CanonicalItem(name="X")
    item.set_offer(Provider.BITSKINS, "1", Decimal("12.50"))
    item.set_offer(Provider.CSFLOAT, "L9", Decimal("10.00"))

    assert item.prices[Provider.BITSKINS] == Decimal("12.50")
    assert item.provider_ids[Provider.BITSKINS] == "1"
    assert item.prices[Provider.STEAM] is None
    assert item.ranking_key == Decimal("10.00")

    with pytest.raises(ValueError):
        item.set_offer(Provider.NONE, None, None)


def test_price_point_rejects_negative():
    with pytest.raises(ValueError):
        PricePoint(date=date(2025, 1, 1), price=Decimal("-1"))


def test_exchange_rate_must_be_positive():
    now = datetime.now(timezone.utc)
    with pytest.raises(ValueError):
        ExchangeRate(value=Decimal("0"), last_updated=now)


def test_history_result_helpers():
    empty = HistoryResult.empty()
    assert empty.source is Provider.NONE
    assert empty.is_empty and empty.latest is None

    p1 = PricePoint(date(2025, 1, 1), Decimal("1"))
    p2 = PricePoint(date(2025, 1, 2), Decimal("2"))
    result = HistoryResult(Provider.STEAM, (p1, p2))
    assert result.latest == p2
