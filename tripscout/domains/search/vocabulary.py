"""
Search Vocabulary - Canonical tag forms and activity synonyms.
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "ACTIVITY_SYNONYMS",
    "activity_matches",
    "canonical_tag",
    "location_key",
    "split_location",
    "synonyms_for",
]

ACTIVITY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "atv": ("quad", "four wheeler", "off road", "off-road", "4x4", "all terrain vehicle", "dirt bike", "trail riding"),
    "hot springs": ("thermal", "spa", "mineral springs", "geothermal", "natural springs", "thermal baths"),
    "gold mine": ("mining", "mine tour", "historical mine", "gold rush", "underground tour", "mining history"),
    "hiking": ("trail", "trek", "walking", "nature walk", "mountain", "wilderness"),
    "skiing": ("slope", "mountain resort", "powder", "alpine"),
    "rafting": ("river", "whitewater", "rapids", "float"),
    "climbing": ("rock climbing", "bouldering", "mountaineering"),
    "fishing": ("angling", "fly fishing"),
    "biking": ("bicycle", "mountain bike", "cycling"),
    "kayaking": ("paddle", "paddling", "water sports"),
    "camping": ("campground", "tent", "rv"),
    "wildlife": ("animals", "safari", "nature viewing", "bird watching"),
}

# Spellings travellers actually type, folded onto the keys above.
_ALIASES: dict[str, str] = {
    "atving": "atv",
    "atvs": "atv",
    "hotsprings": "hot springs",
    "hot spring": "hot springs",
    "goldminetours": "gold mine",
    "gold mine tours": "gold mine",
    "goldmine": "gold mine",
    "hike": "hiking",
    "hikes": "hiking",
    "ski": "skiing",
    "raft": "rafting",
    "climb": "climbing",
    "fish": "fishing",
    "bike": "biking",
    "cycling": "biking",
    "kayak": "kayaking",
    "camp": "camping",
}


def canonical_tag(value: str) -> str:
    """Strip, collapse whitespace and lower-case a tag."""
    return " ".join(value.split()).lower()


def split_location(name: str) -> tuple[str, str]:
    """Split "City, State" into lower-cased (city, state)."""
    parts = [p.strip().lower() for p in name.split(",")]
    city = parts[0] if parts else ""
    state = parts[1] if len(parts) > 1 else ""
    return city, state


def location_key(name: str) -> str:
    """Matching key for a location name: its lower-cased city part."""
    return split_location(name)[0]


def synonyms_for(tag: str) -> tuple[str, ...]:
    key = canonical_tag(tag)
    key = _ALIASES.get(key, key)
    return ACTIVITY_SYNONYMS.get(key, ())


def activity_matches(requested: str, texts: Iterable[str]) -> bool:
    """True when the requested activity (or a synonym) appears in any text."""
    wanted = canonical_tag(requested)
    terms = (wanted, *synonyms_for(wanted))
    for text in texts:
        haystack = canonical_tag(text)
        if any(term in haystack for term in terms):
            return True
    return False
