"""
Skin image catalog.

Downloads the community-maintained skin list (ByMykel/CSGO-API) and keeps
a {name: image_url} mapping for the image resolver. The mapping is
replaced wholesale on refresh and treated as read-only by readers.

Reference: https://github.com/ByMykel/CSGO-API
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import requests

from core.constants import API_TIMEOUT_EXTENDED, SKIN_CATALOG_URL
from data_sources.base_api import APIError, BaseAPIClient

logger = logging.getLogger(__name__)


class SkinCatalogClient(BaseAPIClient):
    """Downloads skins.json."""

    def __init__(self, base_url: str = SKIN_CATALOG_URL, session: Optional[requests.Session] = None):
        super().__init__(
            base_url=base_url,
            timeout=API_TIMEOUT_EXTENDED,
            session=session,
        )

    def fetch_images(self) -> Dict[str, str]:
        """
        Returns:
            Mapping of skin name -> image URL. Entries without both are skipped.
        """
        data = self.get("skins.json")
        if not isinstance(data, list):
            raise APIError("Unexpected skin catalog payload", payload=None)

        images: Dict[str, str] = {}
        for entry in data:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            image = entry.get("image")
            if name and image:
                images[str(name)] = str(image)

        logger.info(f"Fetched {len(images)} catalog images")
        return images


class SkinCatalog:
    """Owns the current image mapping."""

    def __init__(self, client: Optional[SkinCatalogClient] = None, initial: Optional[Mapping[str, Any]] = None):
        self._client = client
        self._images: Mapping[str, str] = MappingProxyType(dict(initial or {}))

    def snapshot(self) -> Mapping[str, str]:
        """Current mapping (read-only view)."""
        return self._images

    def __len__(self) -> int:
        return len(self._images)

    def refresh(self) -> bool:
        """
        Download and install a new mapping.

        Returns:
            True on success. On failure the previous mapping is kept.
        """
        if self._client is None:
            return False
        try:
            images = self._client.fetch_images()
        except APIError as e:
            logger.warning(f"Skin catalog refresh failed, keeping {len(self._images)} entries: {e}")
            return False

        self._images = MappingProxyType(images)
        return True

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
