"""
CSFloat API client (secondary, peer-listing marketplace).

Simple key auth. Prices are integer cents.

Reference: https://docs.csfloat.com/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from core.constants import API_TIMEOUT_MARKET
from core.models import PricePoint
from core.price_normalizer import cents_to_amount
from data_sources.base_api import BaseAPIClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CSFloatListing:
    listing_id: str
    price: Decimal
    market_hash_name: str


def _listing_rows(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        rows = payload["data"]
    else:
        return []
    return [r for r in rows if isinstance(r, dict)]


class CSFloatClient(BaseAPIClient):
    """Client for CSFloat listings and sale history."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = API_TIMEOUT_MARKET,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(
            base_url="https://csfloat.com/api/v1",
            timeout=timeout,
            session=session,
        )
        self.api_key = api_key

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.api_key}

    def get_cheapest_listing(self, market_hash_name: str) -> Optional[CSFloatListing]:
        """
        Cheapest buy-now listing for an exact item name.

        Returns:
            The listing, or None when nothing with that exact name is listed.

        Raises:
            APIError: On any transport or API failure.
        """
        params = {
            "market_hash_name": market_hash_name,
            "sort_by": "lowest_price",
            "limit": 1,
            "type": "buy_now",
        }
        data = self.get("listings", params=params, headers=self._headers())

        for row in _listing_rows(data):
            item = row.get("item") or {}
            listed_name = item.get("market_hash_name", market_hash_name)
            if listed_name != market_hash_name:
                continue
            if row.get("id") is None or row.get("price") is None:
                continue
            return CSFloatListing(
                listing_id=str(row["id"]),
                price=cents_to_amount(row["price"]),
                market_hash_name=listed_name,
            )
        return None

    def get_price_history(self, market_hash_name: str) -> List[PricePoint]:
        """
        Daily average sale prices, oldest first.

        Raises:
            APIError: On any transport or API failure.
        """
        data = self.get(f"history/{quote(market_hash_name, safe='')}/graph", headers=self._headers())

        points: List[PricePoint] = []
        for row in _listing_rows(data):
            day = row.get("day")
            avg = row.get("avg_price")
            if not day or avg is None:
                continue
            try:
                when = datetime.fromisoformat(str(day).replace("Z", "+00:00")).date()
                points.append(PricePoint(date=when, price=cents_to_amount(avg)))
            except ValueError:
                logger.debug(f"[csfloat] skipping history row {row!r}")
        points.sort(key=lambda p: p.date)
        return points
