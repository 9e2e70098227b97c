"""Classify operator input into the lookup strategy it calls for."""

import re
from typing import Callable, List, Optional, Pattern, Tuple

from reviews_connect.models import Empty, InputClass, MapsUrl, PlaceId, ShoppingUrl, Unrecognized

PLACE_ID_PREFIX = "ChIJ"
PLACE_ID_MIN_LENGTH = 20
URL_PREFIXES = ("http://", "https://", "www.")

_URL_HEAD = r"^(www\.|https?://)(www\.)?"

SHOPPING_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(_URL_HEAD + r"google\.[^/]+/shopping/"),
    re.compile(r"customerreviews\.google\.com/v/merchant"),
)

MAPS_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(_URL_HEAD + r"google\.[^/]+/maps"),
    re.compile(_URL_HEAD + r"g\.page/[^/]+/(?:review|share)"),
    re.compile(_URL_HEAD + r"maps\.google\.[^/]+/maps\?cid=\d+$"),
    re.compile(_URL_HEAD + r"maps\.app\.goo\.[^/]+/[^?#]*$"),
)

# Checked in order against URL-looking input; first match wins.
URL_RULES: List[Tuple[Tuple[Pattern[str], ...], Callable[[str], InputClass]]] = [
    (SHOPPING_PATTERNS, ShoppingUrl),
    (MAPS_PATTERNS, MapsUrl),
]


def is_url(value: str) -> bool:
    return value.startswith(URL_PREFIXES)


def is_place_id(value: str) -> bool:
    return (
        value.startswith(PLACE_ID_PREFIX)
        and len(value) >= PLACE_ID_MIN_LENGTH
        and " " not in value
        and "." not in value
    )


def _match_url(value: str) -> Optional[InputClass]:
    for patterns, tag in URL_RULES:
        if any(pattern.search(value) for pattern in patterns):
            return tag(value)
    return None


def classify(raw: Optional[str]) -> InputClass:
    """Return the input class for ``raw``; never raises."""
    value = (raw or "").strip()
    if not value:
        return Empty()
    if is_url(value):
        return _match_url(value) or Unrecognized(value, invalid_link=True)
    if is_place_id(value):
        return PlaceId(value)
    return Unrecognized(value)
