"""Client utilities for the review aggregation provider API."""

import logging
from typing import Any, Dict, Optional

import requests

from reviews_connect.core.config import get_settings

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
PLATFORM = "google"


class ReviewProviderError(RuntimeError):
    """Raised when the provider answers with something other than a JSON object."""


def _base_url(base_url: Optional[str]) -> str:
    return (base_url or get_settings().provider_base_url).rstrip("/")


def _decode(response: requests.Response, endpoint: str) -> Dict[str, Any]:
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        logger.error("%s returned a non-JSON body", endpoint)
        raise ReviewProviderError(f"{endpoint} returned a non-JSON body") from exc
    if not isinstance(payload, dict):
        logger.error("%s returned unexpected payload type %s", endpoint, type(payload).__name__)
        raise ReviewProviderError(f"{endpoint} returned an unexpected payload")
    return payload


def get_page_details(page_id: str, reviews: int, base_url: Optional[str] = None) -> Dict[str, Any]:
    params = {"page_id": page_id, "platform": PLATFORM, "reviews": reviews}
    logger.debug("getPageDetails page_id=%s reviews=%s", page_id, reviews)
    response = _SESSION.get(f"{_base_url(base_url)}/getPageDetails", params=params, timeout=10)
    return _decode(response, "getPageDetails")


def find_place_id(url: str, reviews: int, base_url: Optional[str] = None) -> Dict[str, Any]:
    """Look up a place by Google Maps URL or free text search query."""
    data = {"url": url, "reviews": reviews}
    logger.debug("findPlaceId url=%s reviews=%s", url, reviews)
    response = _SESSION.post(f"{_base_url(base_url)}/findPlaceId", data=data, timeout=10)
    return _decode(response, "findPlaceId")
