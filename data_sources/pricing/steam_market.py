"""
Steam Community Market price history (consumer marketplace, no official API).

The pricehistory endpoint requires a logged-in session cookie and reports
prices in the wallet currency of that account, signalled only through the
price_prefix/price_suffix strings of the response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple

import requests

from core.constants import API_TIMEOUT_MARKET, APP_ID_CS2, RATE_LIMIT_STEAM
from core.models import Currency
from core.price_normalizer import to_decimal
from data_sources.base_api import APIError, BaseAPIClient

logger = logging.getLogger(__name__)

# Currency markers seen in price_prefix / price_suffix
BRL_MARKER = "R$"


def parse_steam_date(text: str) -> date:
    """Parse 'Nov 27 2013 01: +0' into a calendar date."""
    parts = str(text).split()
    if len(parts) < 3:
        raise ValueError(f"Unrecognized Steam date: {text!r}")
    return datetime.strptime(" ".join(parts[:3]), "%b %d %Y").date()


@dataclass
class SteamPriceHistory:
    price_prefix: str = ""
    price_suffix: str = ""
    prices: List[Tuple[date, Decimal]] = field(default_factory=list)

    @property
    def currency(self) -> Currency:
        if BRL_MARKER in self.price_prefix or BRL_MARKER in self.price_suffix:
            return Currency.BRL
        return Currency.USD


class SteamMarketClient(BaseAPIClient):
    """
    Client for steamcommunity.com/market.

    Args:
        login_secure: Value of the steamLoginSecure cookie. Without it the
            history endpoint is unusable.
    """

    def __init__(
        self,
        login_secure: Optional[str] = None,
        *,
        rate_limit: float = RATE_LIMIT_STEAM,
        timeout: float = API_TIMEOUT_MARKET,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(
            base_url="https://steamcommunity.com/market",
            rate_limit=rate_limit,
            timeout=timeout,
            session=session,
        )
        self.login_secure = (login_secure or "").strip()

    @property
    def has_session(self) -> bool:
        return bool(self.login_secure)

    def get_price_history(self, market_hash_name: str) -> SteamPriceHistory:
        """
        Full price history for an item, oldest first.

        Raises:
            APIError: No session, transport failure, or ``success: false``.
        """
        if not self.has_session:
            raise APIError("Steam session cookie not configured")

        params = {"appid": APP_ID_CS2, "market_hash_name": market_hash_name}
        data = self.get(
            "pricehistory/",
            params=params,
            cookies={"steamLoginSecure": self.login_secure},
        )
        if not isinstance(data, dict) or not data.get("success"):
            raise APIError(f"Steam price history unavailable for {market_hash_name!r}", payload=data)

        history = SteamPriceHistory(
            price_prefix=str(data.get("price_prefix") or ""),
            price_suffix=str(data.get("price_suffix") or ""),
        )
        for row in data.get("prices") or []:
            point = _parse_row(row)
            if point is not None:
                history.prices.append(point)

        logger.debug(
            f"[steam] {len(history.prices)} history rows for {market_hash_name!r} ({history.currency.value})"
        )
        return history


def _parse_row(row: Any) -> Optional[Tuple[date, Decimal]]:
    if not isinstance(row, (list, tuple)) or len(row) < 2:
        return None
    try:
        return parse_steam_date(row[0]), to_decimal(row[1])
    except ValueError:
        logger.debug(f"[steam] skipping history row {row!r}")
        return None
