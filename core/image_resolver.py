"""
Item name -> display image.

Provider names carry details the image catalog does not: a wear condition
in parentheses, and cosmetic markers such as StatTrak or the knife star.
Resolution peels those off step by step and falls back to a generated
placeholder, so a URL is always returned.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional
from urllib.parse import quote

from core.constants import PLACEHOLDER_IMAGE_URL, PLACEHOLDER_NAME_LENGTH

logger = logging.getLogger(__name__)

# Trailing "(Field-Tested)", "(Factory New)", ...
_CONDITION_SUFFIX = re.compile(r"\s*\([^()]*\)\s*$")
_WHITESPACE = re.compile(r"\s+")

COSMETIC_MARKERS = ("★", "StatTrak™", "Souvenir")


def strip_condition(name: str) -> str:
    return _CONDITION_SUFFIX.sub("", name).strip()


def strip_markers(name: str) -> str:
    for marker in COSMETIC_MARKERS:
        name = name.replace(marker, " ")
    return _WHITESPACE.sub(" ", name).strip()


class ImageResolver:
    """Resolves catalog images; the catalog itself is read-only here."""

    def __init__(
        self,
        placeholder_base: str = PLACEHOLDER_IMAGE_URL,
        placeholder_length: int = PLACEHOLDER_NAME_LENGTH,
    ) -> None:
        self.placeholder_base = placeholder_base
        self.placeholder_length = placeholder_length

    def resolve(self, item_name: str, catalog: Mapping[str, str]) -> str:
        name = (item_name or "").strip()
        if name:
            found = self._lookup(name, catalog)
            if found:
                return found
        return self.placeholder(name)

    def _lookup(self, name: str, catalog: Mapping[str, str]) -> Optional[str]:
        if name in catalog:
            return catalog[name]

        stem = strip_condition(name)
        if stem in catalog:
            return catalog[stem]

        cleaned = strip_markers(stem)
        if cleaned in catalog:
            return catalog[cleaned]

        # Unordered scan: whichever key the mapping yields first wins
        if cleaned:
            for key, url in catalog.items():
                if cleaned in key:
                    logger.debug("Image fuzzy match: %r -> %r", name, key)
                    return url

        return None

    def placeholder(self, item_name: str) -> str:
        text = (item_name or "Skin")[: self.placeholder_length]
        return f"{self.placeholder_base}{quote(text, safe='')}"
