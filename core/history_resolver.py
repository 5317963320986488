"""
Price history resolution with source selection and fallback.

One request walks SELECT_SOURCE -> FETCH -> (SUCCESS | FALLBACK | EMPTY):
a plan of candidate providers is chosen from the request, each is fetched in
turn, and the first non-empty series wins. A forced source produces a
single-entry plan, so there is nothing to fall back to.

The only retry in the engine lives here: when BitSkins rejects a token with a
clock-skew code, the token is regenerated for the neighbouring time windows
(AUTH_RETRY_SHIFTS) before the provider is given up on.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.constants import AUTH_RETRY_SHIFTS, HISTORY_MAX_POINTS
from core.exchange_rate import ExchangeRateCache
from core.models import PRIMARY_CURRENCY, HistoryResult, PricePoint, Provider
from core.price_normalizer import normalize_amount, to_primary
from data_sources.base_api import APIError, AuthSkewError
from data_sources.pricing.bitskins import BitSkinsClient
from data_sources.pricing.csfloat import CSFloatClient
from data_sources.pricing.steam_market import SteamMarketClient

logger = logging.getLogger(__name__)


class HistoryState(str, Enum):
    SELECT_SOURCE = "select_source"
    FETCH = "fetch"
    SUCCESS = "success"
    FALLBACK = "fallback"
    EMPTY = "empty"


def is_numeric_id(item_id: Optional[str]) -> bool:
    """ASCII digits only; other Unicode digits are not valid ids."""
    if item_id is None:
        return False
    value = str(item_id).strip()
    return value.isascii() and value.isdecimal()


def parse_sale_date(value: Any) -> Optional[datetime]:
    """ISO timestamp ('2025-11-28T12:00:00.000Z') -> datetime, or None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class HistoryResolver:
    """
    Resolves a price series for one item.

    Args:
        bitskins: Primary provider client.
        steam: Consumer marketplace client (fallback by name).
        exchange_rates: Rate cache used to undo BRL-denominated Steam prices.
        csfloat: Peer-listing client, only used when forced.
    """

    def __init__(
        self,
        bitskins: BitSkinsClient,
        steam: SteamMarketClient,
        exchange_rates: ExchangeRateCache,
        csfloat: Optional[CSFloatClient] = None,
        token_shifts: Sequence[int] = AUTH_RETRY_SHIFTS,
        max_points: int = HISTORY_MAX_POINTS,
    ) -> None:
        self.bitskins = bitskins
        self.steam = steam
        self.exchange_rates = exchange_rates
        self.csfloat = csfloat
        self.token_shifts = tuple(token_shifts)
        self.max_points = max_points

    def resolve_history(
        self,
        item_id: Optional[str],
        item_name: Optional[str],
        preferred_source: Provider | str,
        forced_source: Provider | str | None = None,
    ) -> HistoryResult:
        """
        Args:
            item_id: Identifier the caller holds for ``preferred_source``.
            item_name: Exact market name (needed for Steam/CSFloat).
            preferred_source: Provider that issued ``item_id``.
            forced_source: Only try this provider.

        Returns:
            The first non-empty series and its provider, or an empty
            result tagged ``none``.
        """
        preferred = Provider.parse(preferred_source)
        forced = Provider.parse(forced_source)
        item_name = (item_name or "").strip() or None

        plan = self._select_sources(item_id, item_name, preferred, forced)
        logger.debug(f"History {HistoryState.SELECT_SOURCE.value}: {[p.value for p in plan]} for {item_name!r}")

        for index, provider in enumerate(plan):
            logger.debug(f"History {HistoryState.FETCH.value}: {provider.value}")
            series = self._fetch(provider, item_id, item_name)
            if series:
                logger.debug(
                    "history_resolved",
                    extra={"state": HistoryState.SUCCESS.value, "source": provider.value, "points": len(series)},
                )
                return HistoryResult(source=provider, series=tuple(series))
            if index + 1 < len(plan):
                logger.info(f"History {HistoryState.FALLBACK.value}: {provider.value} -> {plan[index + 1].value}")

        logger.debug("history_resolved", extra={"state": HistoryState.EMPTY.value, "source": Provider.NONE.value})
        return HistoryResult.empty()

    def current_price(self, item_name: str) -> Optional[Decimal]:
        """Most recent Steam price for ``item_name`` (primary currency), or None."""
        result = self.resolve_history(None, item_name, Provider.STEAM, forced_source=Provider.STEAM)
        latest = result.latest
        return latest.price if latest else None

    # ------------------------------------------------------------------ #
    # SELECT_SOURCE
    # ------------------------------------------------------------------ #

    def _select_sources(
        self,
        item_id: Optional[str],
        item_name: Optional[str],
        preferred: Optional[Provider],
        forced: Optional[Provider],
    ) -> List[Provider]:
        if forced is not None:
            return [forced] if self._can_fetch(forced, item_id, item_name, preferred) else []

        plan: List[Provider] = []
        if preferred is Provider.BITSKINS and self._can_fetch(Provider.BITSKINS, item_id, item_name, preferred):
            plan.append(Provider.BITSKINS)
        if self._can_fetch(Provider.STEAM, item_id, item_name, preferred):
            plan.append(Provider.STEAM)
        return plan

    def _can_fetch(
        self,
        provider: Provider,
        item_id: Optional[str],
        item_name: Optional[str],
        preferred: Optional[Provider],
    ) -> bool:
        owned_id = item_id if preferred is provider else None
        if provider is Provider.BITSKINS:
            return is_numeric_id(owned_id)
        if provider is Provider.CSFLOAT:
            return bool(owned_id) and bool(item_name) and self.csfloat is not None
        if provider is Provider.STEAM:
            return bool(item_name) and self.steam.has_session
        return False

    # ------------------------------------------------------------------ #
    # FETCH
    # ------------------------------------------------------------------ #

    def _fetch(self, provider: Provider, item_id: Optional[str], item_name: Optional[str]) -> List[PricePoint]:
        if provider is Provider.BITSKINS:
            return self._fetch_bitskins(int(str(item_id).strip()))
        if provider is Provider.CSFLOAT:
            return self._fetch_csfloat(item_name)
        if provider is Provider.STEAM:
            return self._fetch_steam(item_name)
        return []

    def _fetch_bitskins(self, skin_id: int) -> List[PricePoint]:
        for shift in self.token_shifts:
            try:
                sales = self.bitskins.get_sales(skin_id, epoch_shift=shift)
            except AuthSkewError:
                logger.info(f"[bitskins] clock skew at shift {shift:+d}, trying next window")
                continue
            except APIError as e:
                logger.warning(f"[bitskins] history for {skin_id} failed: {e}")
                return []
            return self._bitskins_series(sales)

        logger.warning(f"[bitskins] history for {skin_id}: all token windows {self.token_shifts} rejected")
        return []

    def _bitskins_series(self, sales: List[Dict[str, Any]]) -> List[PricePoint]:
        points: List[PricePoint] = []
        for sale in sales:
            when = parse_sale_date(sale.get("created_at"))
            if when is None:
                continue
            try:
                price = normalize_amount(sale.get("price") or 0)
                points.append(PricePoint(date=when.date(), price=price))
            except ValueError:
                logger.debug(f"[bitskins] skipping sale {sale!r}")
        # Provider lists newest first
        points.reverse()
        return points

    def _fetch_csfloat(self, item_name: str) -> List[PricePoint]:
        try:
            return self.csfloat.get_price_history(item_name)
        except APIError as e:
            logger.warning(f"[csfloat] history for {item_name!r} failed: {e}")
            return []

    def _fetch_steam(self, item_name: str) -> List[PricePoint]:
        try:
            history = self.steam.get_price_history(item_name)
        except APIError as e:
            logger.warning(f"[steam] history for {item_name!r} failed: {e}")
            return []

        rate = self.exchange_rates.get()
        foreign = history.currency is not PRIMARY_CURRENCY
        points: List[PricePoint] = []
        for when, price in history.prices[-self.max_points:]:
            if price < 0:
                continue
            amount = to_primary(price, rate) if foreign else price
            points.append(PricePoint(date=when, price=amount))
        return points
