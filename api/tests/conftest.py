"""
api.tests.conftest - Pytest fixtures for API tests.

Provides test client and a mocked engine for testing API endpoints.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from core.models import CanonicalItem, ExchangeRate, HistoryResult, PricePoint, Provider

REDLINE = "AK-47 | Redline (Field-Tested)"


@pytest.fixture
def sample_items() -> list[CanonicalItem]:
    """Two merged search results, cheapest first."""
    redline = CanonicalItem(name=REDLINE, image_url="https://img/redline.png")
    redline.set_offer(Provider.BITSKINS, "1", Decimal("12.5"))
    redline.set_offer(Provider.CSFLOAT, "L9", Decimal("10.00"))

    asiimov = CanonicalItem(name="AWP | Asiimov (Field-Tested)", image_url="https://img/asiimov.png")
    asiimov.set_offer(Provider.BITSKINS, "2", Decimal("40"))
    return [redline, asiimov]


@pytest.fixture
def sample_history() -> HistoryResult:
    return HistoryResult(
        source=Provider.BITSKINS,
        series=(
            PricePoint(date(2025, 3, 1), Decimal("11")),
            PricePoint(date(2025, 3, 2), Decimal("12.345")),
        ),
    )


@pytest.fixture
def mock_config() -> MagicMock:
    """Create a mock config with every provider configured."""
    config = MagicMock()
    config.csfloat_api_key = "float"
    config.steam_login_secure = "cookie"
    return config


@pytest.fixture
def mock_app_context(
    mock_config: MagicMock,
    sample_items: list[CanonicalItem],
    sample_history: HistoryResult,
) -> MagicMock:
    """Create a mock engine facade."""
    ctx = MagicMock()
    ctx.config = mock_config
    ctx.search_items.return_value = sample_items
    ctx.get_history.return_value = sample_history
    ctx.get_current_price.return_value = Decimal("13.10")
    ctx.get_item_details.return_value = {"id": "1", "float_value": 0.21}
    ctx.exchange_rate.return_value = ExchangeRate(
        value=Decimal("5.50"),
        last_updated=datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc),
    )
    ctx.close = MagicMock()
    return ctx


@pytest.fixture
def client(mock_app_context: MagicMock) -> Generator[TestClient, None, None]:
    """Create a test client with mocked dependencies."""
    # Import here to avoid circular imports
    from api.main import app
    from api import dependencies

    # Override the get_app_context function in dependencies module
    original_get_ctx = dependencies.get_app_context

    def mock_get_ctx():
        return mock_app_context

    dependencies.get_app_context = mock_get_ctx

    # Also patch the global context in main; lifespan reuses it
    import api.main
    original_context = api.main._app_context
    api.main._app_context = mock_app_context

    # Override in FastAPI dependency system
    app.dependency_overrides[original_get_ctx] = mock_get_ctx

    with TestClient(app) as test_client:
        yield test_client

    # Restore
    dependencies.get_app_context = original_get_ctx
    api.main._app_context = original_context
    app.dependency_overrides.clear()
