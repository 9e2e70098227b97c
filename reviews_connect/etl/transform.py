"""Utilities for transforming provider responses into places and connect payloads."""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from reviews_connect.core.sanitize import sanitize_text_field, sanitize_url
from reviews_connect.models import ConnectedProfileRecord, DisambiguationCandidate, Place, Review

logger = logging.getLogger(__name__)

_STARS = range(1, 6)
_IGNORE_TYPES = {"point_of_interest", "establishment"}


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        digits = "".join(ch for ch in value if ch.isdigit())
        if digits:
            return int(digits)
    return None


def _whole_number(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def parse_histogram(raw: Any) -> Dict[int, int]:
    """Accept ``{"5": 10, ...}`` or a five item list ordered from 1 to 5 stars."""
    histogram: Dict[int, int] = {}
    if isinstance(raw, Mapping):
        for key, count in raw.items():
            star = _safe_int(key)
            if star in _STARS:
                histogram[star] = max(_safe_int(count) or 0, 0)
    elif isinstance(raw, (list, tuple)):
        for star, count in zip(_STARS, raw):
            histogram[star] = max(_safe_int(count) or 0, 0)
    return histogram


def parse_review(raw: Any) -> Optional[Review]:
    if not isinstance(raw, Mapping):
        return None
    rating = _whole_number(raw.get("rating"))
    if rating is None or rating not in _STARS:
        return None
    author = _strip_or_none(raw.get("user") or raw.get("author") or raw.get("name")) or "Anonymous"
    timestamp = max(_whole_number(raw.get("time") or raw.get("timestamp")) or 0, 0)
    return Review(
        author=author,
        rating=rating,
        timestamp=timestamp,
        text=_strip_or_none(raw.get("text")),
        reply=_strip_or_none(raw.get("reply")),
    )


def _parse_reviews(raw: Any, max_reviews: int) -> Tuple[Review, ...]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except ValueError:
            logger.debug("Discarding undecodable review list")
            raw = []
    if not isinstance(raw, list):
        return ()
    parsed = [review for review in (parse_review(item) for item in raw) if review is not None]
    return tuple(parsed[:max_reviews])


def _categories(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item)
    return _strip_or_none(value) or ""


def to_place(result: Mapping[str, Any], max_reviews: int) -> Optional[Place]:
    """Normalize a provider ``result`` object, or return None when it lacks an id or name."""
    page_id = _strip_or_none(result.get("page_id"))
    name = _strip_or_none(result.get("name"))
    if not page_id or not name:
        return None

    stats = result.get("reviews") or {}
    if not isinstance(stats, Mapping):
        stats = {}
    details = stats.get("details") or {}
    if isinstance(details, str):
        details = _decode_json_object(details)
    if not isinstance(details, Mapping):
        details = {}

    score = _safe_float(stats.get("score")) or 0.0
    return Place(
        page_id=page_id,
        name=name,
        avatar_url=_strip_or_none(result.get("avatar_url")),
        description=_strip_or_none(result.get("address")) or _strip_or_none(result.get("website")),
        categories=_categories(result.get("type")),
        review_url=_strip_or_none(result.get("review_url")),
        write_review_url=_strip_or_none(result.get("write_review_url")),
        rating_score=min(max(score, 0.0), 5.0),
        rating_count=max(_safe_int(stats.get("count")) or 0, 0),
        rating_histogram=parse_histogram(details.get("count-by-rating")),
        rating_histogram_previous=parse_histogram(details.get("count-by-rating-last")),
        reviews=_parse_reviews(stats.get("list"), max_reviews),
    )


def to_candidates(possible_places: Iterable[Any]) -> Tuple[DisambiguationCandidate, ...]:
    candidates: List[DisambiguationCandidate] = []
    for raw in possible_places or []:
        if not isinstance(raw, Mapping):
            continue
        url = _strip_or_none(raw.get("url"))
        name = _strip_or_none(raw.get("name"))
        if not url or not name:
            logger.debug("Skipping candidate without url or name: %s", raw)
            continue
        candidates.append(
            DisambiguationCandidate(
                url=url,
                name=name,
                avatar_url=_strip_or_none(raw.get("avatar_url")),
                address=_strip_or_none(raw.get("address")),
                categories=_categories(raw.get("type")) or None,
            )
        )
    return tuple(candidates)


def place_from_autocomplete(details: Mapping[str, Any], photo_url: Optional[str] = None) -> Optional[Place]:
    """Convert a Places Details answer for an autocomplete pick into a Place."""
    page_id = _strip_or_none(details.get("place_id"))
    name = _strip_or_none(details.get("name"))
    if not page_id or not name:
        return None
    types = [t for t in details.get("types") or [] if t not in _IGNORE_TYPES] or details.get("types") or []
    return Place(
        page_id=page_id,
        name=name,
        avatar_url=photo_url or _strip_or_none(details.get("icon")),
        description=_strip_or_none(details.get("formatted_address")) or "",
        categories=_categories(types),
        rating_count=max(_safe_int(details.get("user_ratings_total")) or 0, 0),
    )


# ---------- Connect payloads ----------


def review_to_dict(review: Review) -> Dict[str, Any]:
    return {
        "user": review.author,
        "rating": review.rating,
        "time": review.timestamp,
        "text": review.text,
        "reply": review.reply,
    }


def _histogram_to_json(histogram: Mapping[int, int]) -> Dict[str, int]:
    return {str(star): count for star, count in sorted(histogram.items())}


def to_connect_form(place: Place, nonce: str) -> Dict[str, str]:
    """Flatten a place into the form fields accepted by the host connect endpoint."""
    details = {
        "count-by-rating": _histogram_to_json(place.rating_histogram),
        "count-by-rating-last": _histogram_to_json(place.rating_histogram_previous),
    }
    return {
        "_wpnonce": nonce,
        "source[name]": place.name,
        "source[description]": place.description or "",
        "source[page_id]": place.page_id,
        "source[id]": place.page_id,
        "avatar_url": place.avatar_url or "",
        "review_url": place.review_url or "",
        "write_review_url": place.write_review_url or "",
        "stat[count]": str(place.rating_count),
        "stat[score]": str(place.rating_score),
        "stat[details]": json.dumps(details),
        "reviews": json.dumps([review_to_dict(review) for review in place.reviews]),
        "categories": place.categories,
    }


def _decode_json_object(raw: Any) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _decode_json_list(raw: Any) -> List[Any]:
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return decoded if isinstance(decoded, list) else []


def to_place_data(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Sanitize a submitted connect form into the stored profile shape."""
    details = _decode_json_object(form.get("stat[details]"))
    return {
        "id": sanitize_text_field(form.get("source[page_id]")),
        "name": sanitize_text_field(form.get("source[name]")),
        "avatar_url": sanitize_url(form.get("avatar_url")),
        "review_url": sanitize_url(form.get("review_url")),
        "write_review_url": sanitize_url(form.get("write_review_url")),
        "address": sanitize_text_field(form.get("source[description]")),
        "rating_number": _safe_int(form.get("stat[count]")) or 0,
        "rating_score": _safe_float(form.get("stat[score]")) or 0.0,
        "categories": sanitize_text_field(form.get("categories")),
        "reviews": _decode_json_list(form.get("reviews")),
        "rating_numbers": details.get("count-by-rating") or {},
        "rating_numbers_last": details.get("count-by-rating-last") or {},
    }


def to_message(record: ConnectedProfileRecord) -> Dict[str, Any]:
    """Structured message delivered to whoever is waiting for the connection."""
    place = record.place
    return {
        "id": place.page_id,
        "name": place.name,
        "avatar_url": place.avatar_url or "",
        "review_url": place.review_url or "",
        "write_review_url": place.write_review_url or "",
        "address": place.description or "",
        "rating_number": place.rating_count,
        "rating_numbers": _histogram_to_json(place.rating_histogram),
        "rating_numbers_last": _histogram_to_json(place.rating_histogram_previous),
        "rating_score": place.rating_score,
        "request_id": record.request_id,
        "timestamp": record.connected_at,
        "reviews": [review_to_dict(review) for review in place.reviews],
    }


# ---------- Dashboard stats ----------


def average_rating(reviews: Iterable[Mapping[str, Any]]) -> float:
    ratings = [_safe_float(review.get("rating")) or 0.0 for review in reviews or []]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def count_positive_reviews(reviews: Iterable[Mapping[str, Any]]) -> int:
    return sum(1 for review in reviews or [] if (_safe_float(review.get("rating")) or 0.0) >= 4)
