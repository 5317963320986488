from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import threading

import pytest

from core.errors import ProviderUnavailable
from core.image_resolver import ImageResolver
from core.models import Provider
from core.search_aggregator import ProviderSearchAggregator, sanitize_query
from data_sources.base_api import APIError
from data_sources.pricing.bitskins import BitSkinsClient
from data_sources.pricing.csfloat import CSFloatListing


pytestmark = pytest.mark.unit

REDLINE = "AK-47 | Redline (Field-Tested)"
ASIIMOV = "AWP | Asiimov (Field-Tested)"


def make_aggregator(raw_items=None, listings=None, catalog=None, csfloat=True):
    bitskins = MagicMock()
    bitskins.search_skins.return_value = raw_items or []

    peer = None
    if csfloat:
        peer = MagicMock()
        listings = listings or {}

        def cheapest(name):
            result = listings.get(name)
            if isinstance(result, Exception):
                raise result
            return result

        peer.get_cheapest_listing.side_effect = cheapest

    aggregator = ProviderSearchAggregator(
        bitskins=bitskins,
        csfloat=peer,
        image_resolver=ImageResolver(),
        catalog=lambda: catalog or {},
        max_workers=4,
    )
    return aggregator, bitskins, peer


def test_sanitize_query():
    assert sanitize_query("AK-47 | Redline") == "%AK%47%Redline%"
    assert sanitize_query("  m4a1_s  ") == "%m4a1%s%"
    assert sanitize_query("|||") == ""


@pytest.mark.parametrize("query", ["", "ak", "  a  ", "|||"])
def test_short_or_empty_query_makes_no_calls(query):
    aggregator, bitskins, peer = make_aggregator()

    assert aggregator.search(query) == []
    bitskins.search_skins.assert_not_called()
    peer.get_cheapest_listing.assert_not_called()


def test_merge_attributes_each_price_to_its_provider():
    aggregator, bitskins, peer = make_aggregator(
        raw_items=[{"name": REDLINE, "price": 12500, "id": 1}],
        listings={REDLINE: CSFloatListing("L9", Decimal("10.00"), REDLINE)},
    )

    [item] = aggregator.search("AK-47 Redline")

    assert item.prices[Provider.BITSKINS] == Decimal("12.5")
    assert item.prices[Provider.CSFLOAT] == Decimal("10.00")
    assert item.prices[Provider.STEAM] is None
    assert item.provider_ids[Provider.BITSKINS] == "1"
    assert item.provider_ids[Provider.CSFLOAT] == "L9"
    assert item.ranking_key == Decimal("10.00")

    bitskins.search_skins.assert_called_once_with("%AK%47%Redline%", limit=10, epoch_shift=0)


def test_primary_failure_raises_provider_unavailable():
    aggregator, bitskins, peer = make_aggregator()
    bitskins.search_skins.side_effect = APIError("boom", status_code=502)

    with pytest.raises(ProviderUnavailable) as exc_info:
        aggregator.search("redline")

    assert exc_info.value.provider == "bitskins"
    peer.get_cheapest_listing.assert_not_called()


def test_empty_primary_result_is_not_an_error():
    aggregator, _, peer = make_aggregator(raw_items=[])
    assert aggregator.search("redline") == []
    peer.get_cheapest_listing.assert_not_called()


def test_peer_failure_only_blanks_that_slot():
    aggregator, _, _ = make_aggregator(
        raw_items=[
            {"name": REDLINE, "price": "12.00", "id": 1},
            {"name": ASIIMOV, "price": "40.00", "id": 2},
        ],
        listings={
            REDLINE: APIError("timeout"),
            ASIIMOV: CSFloatListing("L2", Decimal("38.00"), ASIIMOV),
        },
    )

    items = {item.name: item for item in aggregator.search("field tested")}

    assert items[REDLINE].prices[Provider.CSFLOAT] is None
    assert items[REDLINE].prices[Provider.BITSKINS] == Decimal("12.00")
    assert items[ASIIMOV].prices[Provider.CSFLOAT] == Decimal("38.00")


def test_unusable_primary_rows_are_dropped():
    aggregator, _, peer = make_aggregator(
        raw_items=[
            {"price": 100, "id": 1},
            {"name": "Zero", "price": 0, "id": 2},
            {"name": "Garbage", "price": "n/a", "id": 3},
            {"name": REDLINE, "price": 5, "id": 4},
        ],
    )

    items = aggregator.search("anything")

    assert [i.name for i in items] == [REDLINE]
    peer.get_cheapest_listing.assert_called_once_with(REDLINE)


def test_duplicate_names_keep_lowest_primary_price():
    aggregator, _, _ = make_aggregator(
        raw_items=[
            {"name": REDLINE, "price": 15000, "id": 1},
            {"name": REDLINE, "price": 12000, "id": 2},
            {"name": REDLINE, "price": 13000, "id": 3},
        ],
    )

    [item] = aggregator.search("redline")

    assert item.prices[Provider.BITSKINS] == Decimal("12")
    assert item.provider_ids[Provider.BITSKINS] == "2"


def test_results_ordered_by_cheapest_known_price():
    aggregator, _, _ = make_aggregator(
        raw_items=[
            {"name": "A", "price": "30", "id": 1},
            {"name": "B", "price": "20", "id": 2},
            {"name": "C", "price": "25", "id": 3},
        ],
        listings={"A": CSFloatListing("LA", Decimal("5"), "A")},
    )

    assert [i.name for i in aggregator.search("abc")] == ["A", "B", "C"]


def test_zero_priced_peer_listing_is_ignored():
    aggregator, _, _ = make_aggregator(
        raw_items=[{"name": REDLINE, "price": "12", "id": 1}],
        listings={REDLINE: CSFloatListing("L0", Decimal("0"), REDLINE)},
    )

    [item] = aggregator.search("redline")
    assert item.prices[Provider.CSFLOAT] is None
    assert item.provider_ids[Provider.CSFLOAT] is None


def test_without_peer_client_only_primary_prices():
    aggregator, _, _ = make_aggregator(raw_items=[{"name": REDLINE, "price": "12", "id": 1}], csfloat=False)
    [item] = aggregator.search("redline")
    assert item.prices[Provider.CSFLOAT] is None


def test_images_resolved_from_catalog():
    aggregator, _, _ = make_aggregator(
        raw_items=[{"name": REDLINE, "price": "12", "id": 1}],
        catalog={"AK-47 | Redline": "https://img/redline.png"},
    )
    [item] = aggregator.search("redline")
    assert item.image_url == "https://img/redline.png"


def test_peer_lookups_run_concurrently_and_join_before_return():
    names = [f"Skin {n} (Field-Tested)" for n in range(4)]
    barrier = threading.Barrier(len(names), timeout=5)
    aggregator, _, peer = make_aggregator(
        raw_items=[{"name": name, "price": "10.00", "id": n} for n, name in enumerate(names)],
    )

    def cheapest(name):
        # Every lookup must be in flight at once for the barrier to release
        barrier.wait()
        return CSFloatListing(f"L-{name}", Decimal("9.00"), name)

    peer.get_cheapest_listing.side_effect = cheapest

    items = aggregator.search("field tested")

    assert len(items) == len(names)
    assert all(item.prices[Provider.CSFLOAT] == Decimal("9.00") for item in items)
    assert all(item.provider_ids[Provider.CSFLOAT] == f"L-{item.name}" for item in items)
    assert not barrier.broken


def test_malformed_secret_surfaces_as_provider_unavailable(fake_session):
    session = fake_session({"data": {"items": []}})
    aggregator = ProviderSearchAggregator(
        bitskins=BitSkinsClient("key", "not base32 !!", session=session),
        csfloat=None,
        image_resolver=ImageResolver(),
        catalog=dict,
    )

    with pytest.raises(ProviderUnavailable):
        aggregator.search("redline")

    assert session.calls == []
