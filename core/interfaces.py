"""
Service interfaces for dependency injection.

Provides Protocol definitions so the HTTP layer (and tests) can depend on
the engine's operations without importing the concrete AppContext and
its HTTP clients.

Usage:
    from core.interfaces import IAppContext

    async def search(ctx: IAppContext = Depends(get_app_context)): ...
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from core.config import Config
from core.models import CanonicalItem, ExchangeRate, HistoryResult, Provider


@runtime_checkable
class IAppContext(Protocol):
    """Interface for the engine facade consumed by the API layer."""

    config: Config

    def search_items(self, query: str) -> List[CanonicalItem]:
        """Search all providers.

        Raises:
            ProviderUnavailable: The primary provider failed.
        """
        ...

    def get_history(
        self,
        item_id: Optional[str],
        item_name: Optional[str],
        preferred_source: Provider | str,
        forced_source: Provider | str | None = None,
    ) -> HistoryResult:
        """Resolve a price series with source fallback."""
        ...

    def get_current_price(self, provider: Provider | str, item_name: str) -> Optional[Decimal]:
        """Latest price for an item from a history-capable provider."""
        ...

    def get_item_details(self, item_id: str) -> Dict[str, Any]:
        """Raw primary-provider listing details."""
        ...

    def exchange_rate(self) -> ExchangeRate:
        """Current USD -> BRL rate."""
        ...

    def close(self) -> None:
        """Release resources."""
        ...
