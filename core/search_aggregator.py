"""
Cross-provider skin search.

The primary marketplace is searched first; each distinct name it returns is
then priced on the peer-listing marketplace in parallel, and the merged items
are ranked by their cheapest known price.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Mapping, Optional

from core.constants import SEARCH_MAX_WORKERS, SEARCH_MIN_QUERY_LENGTH, SEARCH_RESULT_LIMIT
from core.errors import ProviderUnavailable
from core.image_resolver import ImageResolver
from core.models import CanonicalItem, Provider
from core.price_normalizer import normalize_amount
from data_sources.base_api import APIError
from data_sources.pricing.bitskins import BitSkinsClient, raw_item_id, raw_item_name, raw_item_price
from data_sources.pricing.csfloat import CSFloatClient

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]|_")


def sanitize_query(query: str) -> str:
    """
    Free text -> primary provider search pattern.

    'AK-47 | Redline' -> '%AK%47%Redline%'. Returns '' when nothing is left.
    """
    words = _NON_WORD.sub(" ", query or "").split()
    if not words:
        return ""
    return "%" + "%".join(words) + "%"


class ProviderSearchAggregator:
    """
    Searches the primary provider and enriches each hit with the peer-listing
    provider's cheapest offer.

    - The primary call is mandatory; its failure raises ProviderUnavailable.
    - Peer lookups run in parallel (one per distinct name) using
      ThreadPoolExecutor and are joined before returning. A failed lookup only
      leaves that item's csfloat slot empty.
    """

    def __init__(
        self,
        bitskins: BitSkinsClient,
        csfloat: Optional[CSFloatClient],
        image_resolver: ImageResolver,
        catalog: Callable[[], Mapping[str, str]],
        max_workers: int = SEARCH_MAX_WORKERS,
        result_limit: int = SEARCH_RESULT_LIMIT,
    ) -> None:
        self.bitskins = bitskins
        self.csfloat = csfloat
        self.image_resolver = image_resolver
        # Called once per search so a catalog refresh is picked up wholesale
        self._catalog = catalog
        self._max_workers = max(1, max_workers)
        self._result_limit = result_limit

    def search(self, query: str) -> List[CanonicalItem]:
        """
        Search all providers for ``query``.

        Returns:
            Items ordered by their cheapest known price, unpriced last.

        Raises:
            ProviderUnavailable: The primary provider call failed.
        """
        if len((query or "").strip()) < SEARCH_MIN_QUERY_LENGTH:
            return []

        pattern = sanitize_query(query)
        if not pattern:
            return []

        try:
            raw_items = self.bitskins.search_skins(pattern, limit=self._result_limit, epoch_shift=0)
        except APIError as e:
            logger.warning(f"Primary search failed for {query!r}: {e}")
            raise ProviderUnavailable(Provider.BITSKINS.value, str(e), cause=e) from e

        merged = self._merge_primary(raw_items)
        if merged and self.csfloat is not None:
            self._attach_peer_offers(merged)

        items = sorted(merged.values(), key=lambda item: item.ranking_key)
        logger.info(f"Search {query!r}: {len(items)} items ({len(raw_items)} raw)")
        return items

    # ------------------------------------------------------------------ #
    # Merge
    # ------------------------------------------------------------------ #

    def _merge_primary(self, raw_items: List[Dict[str, Any]]) -> Dict[str, CanonicalItem]:
        catalog = self._catalog()
        merged: Dict[str, CanonicalItem] = {}

        for raw in raw_items:
            name = raw_item_name(raw)
            if not name:
                continue
            try:
                price = normalize_amount(raw_item_price(raw))
            except ValueError:
                logger.debug(f"Dropping {name!r}: unparseable price {raw_item_price(raw)!r}")
                continue
            if price <= 0:
                continue

            item = merged.get(name)
            if item is None:
                item = CanonicalItem(name=name, image_url=self.image_resolver.resolve(name, catalog))
                merged[name] = item

            current = item.prices[Provider.BITSKINS]
            if current is None or price < current:
                item.set_offer(Provider.BITSKINS, raw_item_id(raw), price)

        return merged

    def _attach_peer_offers(self, merged: Dict[str, CanonicalItem]) -> None:
        workers = min(self._max_workers, len(merged))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="csfloat-lookup") as executor:
            future_to_name = {
                executor.submit(self.csfloat.get_cheapest_listing, name): name
                for name in merged
            }

            for future in as_completed(future_to_name):
                name = future_to_name[future]
                try:
                    listing = future.result()
                    ok = True
                except Exception as e:
                    logger.warning(f"Peer lookup for {name!r} failed: {e}")
                    listing = None
                    ok = False

                if listing is not None and listing.price > 0:
                    merged[name].set_offer(Provider.CSFLOAT, listing.listing_id, listing.price)

                logger.debug(
                    "provider_lookup_done",
                    extra={
                        "source": Provider.CSFLOAT.value,
                        "item_name": name,
                        "ok": ok,
                        "found": listing is not None,
                    },
                )
