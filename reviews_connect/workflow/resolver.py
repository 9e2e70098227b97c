"""Resolve classified input into a place through the review provider."""

import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from reviews_connect.etl.transform import to_candidates, to_place
from reviews_connect.models import (
    Candidates,
    DisambiguationCandidate,
    Empty,
    InputClass,
    InvalidLink,
    MapsUrl,
    NotFound,
    Place,
    PlaceId,
    ResolveOutcome,
    Resolved,
    ShoppingUrl,
    TransportFailure,
    Unrecognized,
)
from reviews_connect.vendors import review_provider
from reviews_connect.vendors.review_provider import ReviewProviderError
from reviews_connect.workflow.cache import ResultCache

logger = logging.getLogger(__name__)

PROVIDER_BRAND = "trustindex"
PAGE_ID_LEAD = "C"
SHOPPING_MARKER = "&v="

SHOPPING_TOKEN_REGEX = re.compile(
    r"(?:shopping/ratings/account/metrics\?q=|customerreviews\.google\.com/v/merchant\?q=)([^&]+&c=\w+&v=\d+)"
)
_LANGUAGE_SUFFIX = re.compile(r"&hl=([a-z_-]+)")


def extract_shopping_token(url: str) -> Optional[str]:
    """Pull the ``<query>&c=<account>&v=<version>`` token out of a merchant review link."""
    match = SHOPPING_TOKEN_REGEX.search(url)
    if not match or not match.group(1):
        return None
    return _LANGUAGE_SUFFIX.sub("", match.group(1))


def is_acceptable_place(name: str, page_id: str) -> bool:
    """Reject the provider's own listing and ids that are neither place ids nor shopping tokens."""
    if name and PROVIDER_BRAND in name.lower():
        return False
    if not page_id:
        return False
    return page_id.startswith(PAGE_ID_LEAD) or SHOPPING_MARKER in page_id


class PlaceResolver:
    """Turns input classes into resolve outcomes, one provider call per uncached token."""

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        *,
        review_limit: int = 10,
        max_reviews: int = 50,
        get_page_details: Optional[Callable[..., Dict[str, Any]]] = None,
        find_place_id: Optional[Callable[..., Dict[str, Any]]] = None,
    ) -> None:
        self.cache = cache if cache is not None else ResultCache()
        self.review_limit = review_limit
        self.max_reviews = max_reviews
        self._get_page_details = get_page_details or review_provider.get_page_details
        self._find_place_id = find_place_id or review_provider.find_place_id

    def resolve(self, input_class: InputClass) -> ResolveOutcome:
        if isinstance(input_class, Empty):
            return NotFound("")
        if isinstance(input_class, PlaceId):
            return self.lookup_page(input_class.value)
        if isinstance(input_class, ShoppingUrl):
            token = extract_shopping_token(input_class.value)
            if token is None:
                logger.info("No merchant token in shopping link %s", input_class.value)
                return InvalidLink(input_class.value)
            return self.lookup_page(token)
        if isinstance(input_class, Unrecognized) and input_class.invalid_link:
            return InvalidLink(input_class.value)
        if isinstance(input_class, (MapsUrl, Unrecognized)):
            return self.find_place(input_class.value)
        raise TypeError(f"unsupported input class: {input_class!r}")

    def resolve_candidate(self, candidate: DisambiguationCandidate) -> ResolveOutcome:
        return self.find_place(candidate.url)

    def lookup_page(self, page_id: str) -> ResolveOutcome:
        return self._cached(page_id, lambda: self._get_page_details(page_id, self.review_limit))

    def find_place(self, url_or_query: str) -> ResolveOutcome:
        return self._cached(url_or_query, lambda: self._find_place_id(url_or_query, self.review_limit))

    def _cached(self, token: str, fetch: Callable[[], Dict[str, Any]]) -> ResolveOutcome:
        cached = self.cache.get(token)
        if cached is not None:
            logger.debug("Cache hit for %s", token)
            return cached

        try:
            payload = fetch()
        except (requests.RequestException, ReviewProviderError) as exc:
            logger.error("Provider lookup failed for %s: %s", token, exc)
            return TransportFailure(token, str(exc))

        outcome = self.to_outcome(token, payload)
        self.cache.put(token, outcome)
        return outcome

    def to_outcome(self, token: str, payload: Mapping[str, Any]) -> ResolveOutcome:
        result = payload.get("result")
        if payload.get("success") and isinstance(result, Mapping) and result.get("name"):
            place = to_place(result, self.max_reviews)
            if place is not None and self.accept(place):
                return Resolved(place)
            return NotFound(token)

        candidates = to_candidates(payload.get("possible_places") or [])
        if candidates:
            return Candidates(candidates)
        return NotFound(token)

    @staticmethod
    def accept(place: Place) -> bool:
        if is_acceptable_place(place.name, place.page_id):
            return True
        logger.info("Dropping place %r (%s): failed listing guard", place.name, place.page_id)
        return False
