# core/app_context.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from core.auth_token import TokenGenerator
from core.config import Config
from core.exchange_rate import ExchangeRateCache
from core.history_resolver import HistoryResolver
from core.image_resolver import ImageResolver
from core.models import CanonicalItem, ExchangeRate, HistoryResult, Provider
from core.search_aggregator import ProviderSearchAggregator
from data_sources.exchange_rates import AwesomeApiClient
from data_sources.pricing.bitskins import BitSkinsClient
from data_sources.pricing.csfloat import CSFloatClient
from data_sources.pricing.steam_market import SteamMarketClient
from data_sources.skin_catalog import SkinCatalog, SkinCatalogClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """
    Aggregates the engine's services for the API (or any other caller).

    Keeps wiring in one place:
    - config: tunables and credentials
    - bitskins / csfloat / steam: marketplace clients (csfloat optional)
    - exchange_rates: refreshed USD -> BRL rate
    - catalog: image mapping used at search time
    - aggregator / history: the search and history engines

    Call close() when the application exits to release resources.
    """
    config: Config
    bitskins: BitSkinsClient
    csfloat: Optional[CSFloatClient]
    steam: SteamMarketClient
    fx_client: Optional[AwesomeApiClient]
    exchange_rates: ExchangeRateCache
    catalog: SkinCatalog
    aggregator: ProviderSearchAggregator
    history: HistoryResolver

    # ------------------------------------------------------------------ #
    # Engine operations
    # ------------------------------------------------------------------ #

    def search_items(self, query: str) -> List[CanonicalItem]:
        return self.aggregator.search(query)

    def get_history(
        self,
        item_id: Optional[str],
        item_name: Optional[str],
        preferred_source: Provider | str,
        forced_source: Provider | str | None = None,
    ) -> HistoryResult:
        return self.history.resolve_history(item_id, item_name, preferred_source, forced_source)

    def get_current_price(self, provider: Provider | str, item_name: str) -> Optional[Decimal]:
        """
        Latest price for ``item_name``.

        Only the consumer marketplace (steam) is supported.

        Raises:
            ValueError: Any other provider.
        """
        if Provider.parse(provider) is not Provider.STEAM:
            raise ValueError(f"Current price is only available from steam, not {provider!r}")
        return self.history.current_price(item_name)

    def get_item_details(self, item_id: str) -> Dict[str, Any]:
        return self.bitskins.get_item(item_id)

    def exchange_rate(self) -> ExchangeRate:
        return self.exchange_rates.get()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """
        Stop the rate refresher and close every HTTP session.
        """
        logger.info("Closing AppContext resources...")

        self.exchange_rates.stop()

        clients = [self.bitskins, self.csfloat, self.steam, self.fx_client, self.catalog]
        for client in clients:
            if client is None:
                continue
            try:
                client.close()
            except Exception as e:
                logger.error(f"Error closing {type(client).__name__}: {e}")

        logger.info("AppContext resources closed")


def create_app_context(config: Optional[Config] = None, start_background: bool = True) -> AppContext:
    """
    Build the engine from configuration.

    Raises:
        ConfigurationError: Mandatory BitSkins credentials are missing.
    """
    config = config or Config()
    disabled = config.validate()
    timeout = config.api_timeout

    bitskins = BitSkinsClient(
        api_key=config.bitskins_api_key,
        secret=config.bitskins_secret,
        token_generator=TokenGenerator(),
        timeout=timeout,
    )
    csfloat = CSFloatClient(config.csfloat_api_key, timeout=timeout) if config.csfloat_api_key else None
    steam = SteamMarketClient(config.steam_login_secure, timeout=timeout)

    fx_client = AwesomeApiClient()
    exchange_rates = ExchangeRateCache(
        fetcher=fx_client.get_usd_brl,
        default=config.default_exchange_rate,
        interval=config.exchange_rate_refresh_interval,
    )

    catalog = SkinCatalog(SkinCatalogClient(base_url=config.catalog_url))

    aggregator = ProviderSearchAggregator(
        bitskins=bitskins,
        csfloat=csfloat,
        image_resolver=ImageResolver(),
        catalog=catalog.snapshot,
        max_workers=config.search_max_workers,
    )
    history = HistoryResolver(
        bitskins=bitskins,
        steam=steam,
        exchange_rates=exchange_rates,
        csfloat=csfloat,
        max_points=config.history_max_points,
    )

    if start_background:
        if config.load_catalog_on_startup:
            catalog.refresh()
        exchange_rates.start()

    logger.info(
        "Engine ready (disabled providers: %s, catalog images: %d)",
        ", ".join(disabled) or "none",
        len(catalog),
    )

    return AppContext(
        config=config,
        bitskins=bitskins,
        csfloat=csfloat,
        steam=steam,
        fx_client=fx_client,
        exchange_rates=exchange_rates,
        catalog=catalog,
        aggregator=aggregator,
        history=history,
    )
