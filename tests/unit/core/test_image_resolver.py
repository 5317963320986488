from __future__ import annotations

import pytest

from core.image_resolver import ImageResolver, strip_condition, strip_markers


pytestmark = pytest.mark.unit

PLACEHOLDER = "https://placehold.co/600x400/1a1a1f/FFF?text="


def test_strip_helpers():
    assert strip_condition("AK-47 | Redline (Field-Tested)") == "AK-47 | Redline"
    assert strip_condition("Sticker | Crown (Foil)") == "Sticker | Crown"
    assert strip_markers("★ StatTrak™ Karambit | Fade") == "Karambit | Fade"
    assert strip_markers("Souvenir AWP | Dragon Lore") == "AWP | Dragon Lore"


def test_exact_name_wins():
    catalog = {
        "AK-47 | Redline (Field-Tested)": "exact.png",
        "AK-47 | Redline": "stem.png",
    }
    assert ImageResolver().resolve("AK-47 | Redline (Field-Tested)", catalog) == "exact.png"


def test_condition_suffix_is_removed():
    catalog = {"AK-47 | Redline": "stem.png"}
    assert ImageResolver().resolve("AK-47 | Redline (Field-Tested)", catalog) == "stem.png"


def test_markers_are_removed():
    catalog = {"Karambit | Fade": "karambit.png"}
    assert ImageResolver().resolve("★ StatTrak™ Karambit | Fade (Factory New)", catalog) == "karambit.png"


def test_substring_scan_as_last_step():
    catalog = {"★ Karambit | Fade": "star.png"}
    assert ImageResolver().resolve("Karambit | Fade (Minimal Wear)", catalog) == "star.png"


def test_placeholder_uses_escaped_prefix_of_name():
    url = ImageResolver().resolve("AK-47 | Redline (Field-Tested)", {})
    # First 20 characters: "AK-47 | Redline (Fie"
    assert url == PLACEHOLDER + "AK-47%20%7C%20Redline%20%28Fie"


def test_placeholder_for_empty_name():
    assert ImageResolver().resolve("", {"x": "y"}) == PLACEHOLDER + "Skin"
