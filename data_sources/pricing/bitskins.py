"""
BitSkins API client (primary, commission-trading marketplace).

Every call is authenticated with the API key plus a TOTP code derived from
the account's shared secret. Response envelopes vary between endpoints and
API revisions, so list payloads are unwrapped by trying a short ordered list
of known shapes.

Reference: https://bitskins.com/docs/api
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from core.auth_token import TokenGenerator
from core.constants import (
    API_TIMEOUT_MARKET,
    APP_ID_CS2,
    CLOCK_SKEW_CODES,
    HISTORY_SALES_LIMIT,
    SEARCH_RESULT_LIMIT,
)
from data_sources.base_api import APIError, AuthSkewError, BaseAPIClient

logger = logging.getLogger(__name__)

ShapeMatcher = Tuple[str, Callable[[Any], Optional[list]]]


def _bare_list(payload: Any) -> Optional[list]:
    return payload if isinstance(payload, list) else None


def _key_path(*keys: str) -> Callable[[Any], Optional[list]]:
    def match(payload: Any) -> Optional[list]:
        node = payload
        for key in keys:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node if isinstance(node, list) else None
    return match


SEARCH_SHAPES: Sequence[ShapeMatcher] = (
    ("list", _bare_list),
    ("data.items", _key_path("data", "items")),
    ("items", _key_path("items")),
)

HISTORY_SHAPES: Sequence[ShapeMatcher] = (
    ("list", _bare_list),
    ("list", _key_path("list")),
    ("sales", _key_path("sales")),
    ("prices", _key_path("prices")),
)


def extract_list(payload: Any, shapes: Sequence[ShapeMatcher], context: str = "") -> List[Any]:
    """
    Return the first list found by ``shapes``, or [] for an unknown shape.
    """
    for label, matcher in shapes:
        found = matcher(payload)
        if found is not None:
            logger.debug(f"[bitskins] {context} payload matched shape '{label}' ({len(found)} entries)")
            return found
    logger.info(f"[bitskins] {context} payload has unknown shape: {str(payload)[:200]}")
    return []


# ---------------------------------------------------------------------------
# Raw item accessors
# ---------------------------------------------------------------------------

def raw_item_name(item: Dict[str, Any]) -> Optional[str]:
    name = item.get("name") or item.get("market_hash_name")
    return str(name).strip() if name else None


def raw_item_price(item: Dict[str, Any]) -> Any:
    """Raw price in provider encoding: suggested price first, then listing price."""
    return item.get("suggested_price") or item.get("price") or 0


def raw_item_id(item: Dict[str, Any]) -> Optional[str]:
    value = item.get("id", item.get("skin_id"))
    return str(value) if value is not None else None


class BitSkinsClient(BaseAPIClient):
    """
    Client for the BitSkins market API.

    Args:
        api_key: Account API key (x-apikey header).
        secret: Base32 TOTP secret for x-auth-token.
        token_generator: Produces the TOTP code for a given epoch shift.
    """

    def __init__(
        self,
        api_key: str,
        secret: str,
        token_generator: Optional[TokenGenerator] = None,
        *,
        timeout: float = API_TIMEOUT_MARKET,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(
            base_url="https://api.bitskins.com",
            timeout=timeout,
            session=session,
        )
        self.api_key = api_key
        self._secret = secret
        self.token_generator = token_generator or TokenGenerator()

    def _auth_headers(self, epoch_shift: int) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "x-apikey": self.api_key,
            "x-auth-token": self.token_generator.generate(self._secret, epoch_shift),
        }

    def _post_authenticated(self, endpoint: str, body: Dict[str, Any], epoch_shift: int) -> Any:
        """
        POST with a fresh token for ``epoch_shift``.

        Raises:
            AuthSkewError: Token rejected with a clock-skew code.
            APIError: Any other failure, including a token that cannot be
                generated from the configured secret.
        """
        try:
            headers = self._auth_headers(epoch_shift)
        except (TypeError, ValueError) as e:
            logger.error(f"[bitskins] cannot generate auth token: {e}")
            raise APIError(f"Cannot generate auth token: {e}") from e

        try:
            return self.post(endpoint, data=body, headers=headers)
        except APIError as e:
            if e.error_code in CLOCK_SKEW_CODES:
                logger.warning(
                    f"[bitskins] {endpoint} rejected token ({e.error_code}) at shift {epoch_shift:+d}"
                )
                raise AuthSkewError(str(e), status_code=e.status_code, payload=e.payload) from e
            raise

    def search_skins(self, pattern: str, limit: int = SEARCH_RESULT_LIMIT, epoch_shift: int = 0) -> List[Dict[str, Any]]:
        """
        Search skins by name pattern (SQL LIKE-style, ``%`` wildcards).

        Returns:
            Raw item dicts; [] when the envelope shape is not recognized.
        """
        body = {"where": {"app_id": APP_ID_CS2, "skin_name": pattern}, "limit": limit}
        data = self._post_authenticated("market/search/skin_name", body, epoch_shift)
        items = extract_list(data, SEARCH_SHAPES, context="search")
        return [i for i in items if isinstance(i, dict)]

    def get_sales(self, skin_id: int, limit: int = HISTORY_SALES_LIMIT, epoch_shift: int = 0) -> List[Dict[str, Any]]:
        """
        Recent sales for a skin, newest first.

        Returns:
            Raw sale dicts with ``created_at`` and ``price``.
        """
        body = {"app_id": APP_ID_CS2, "skin_id": int(skin_id), "limit": limit}
        data = self._post_authenticated("market/pricing/list", body, epoch_shift)
        sales = extract_list(data, HISTORY_SHAPES, context="history")
        return [s for s in sales if isinstance(s, dict)]

    def get_item(self, item_id: str, epoch_shift: int = 0) -> Dict[str, Any]:
        """Raw listing details for one market item."""
        body = {"app_id": APP_ID_CS2, "id": str(item_id)}
        data = self._post_authenticated("market/search/get", body, epoch_shift)
        if not isinstance(data, dict):
            raise APIError("Unexpected item details payload", payload=data)
        return data
