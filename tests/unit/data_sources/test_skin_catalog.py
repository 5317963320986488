from __future__ import annotations

import pytest

from data_sources.base_api import APIError
from data_sources.skin_catalog import SkinCatalog, SkinCatalogClient


pytestmark = pytest.mark.unit


def test_fetch_images_builds_name_mapping(fake_session):
    payload = [
        {"name": "AK-47 | Redline", "image": "https://img/ak.png"},
        {"name": "No image"},
        "junk",
    ]
    session = fake_session(payload)
    client = SkinCatalogClient(base_url="https://catalog.test/en", session=session)

    assert client.fetch_images() == {"AK-47 | Redline": "https://img/ak.png"}
    assert session.calls[0]["url"] == "https://catalog.test/en/skins.json"


def test_fetch_images_rejects_non_list(fake_session):
    client = SkinCatalogClient(session=fake_session({"skins": []}))
    with pytest.raises(APIError):
        client.fetch_images()


def test_refresh_replaces_mapping_wholesale(fake_session):
    client = SkinCatalogClient(session=fake_session([{"name": "New", "image": "n.png"}]))
    catalog = SkinCatalog(client, initial={"Old": "o.png"})

    before = catalog.snapshot()
    assert catalog.refresh() is True

    assert dict(catalog.snapshot()) == {"New": "n.png"}
    assert dict(before) == {"Old": "o.png"}
    assert len(catalog) == 1


def test_failed_refresh_keeps_previous_mapping(fake_session, fake_response):
    client = SkinCatalogClient(session=fake_session(fake_response(503, {})))
    catalog = SkinCatalog(client, initial={"Old": "o.png"})

    assert catalog.refresh() is False
    assert dict(catalog.snapshot()) == {"Old": "o.png"}


def test_snapshot_is_read_only():
    catalog = SkinCatalog(initial={"A": "a.png"})
    with pytest.raises(TypeError):
        catalog.snapshot()["B"] = "b.png"
    assert catalog.refresh() is False
