"""CLI job that resolves a Google Business Profile and connects it to the host."""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from reviews_connect.core.config import ConfigError, get_settings
from reviews_connect.etl.transform import place_from_autocomplete
from reviews_connect.models import (
    Candidates,
    FinalizeError,
    InvalidLink,
    NotFound,
    Resolved,
    TransportFailure,
)
from reviews_connect.vendors import google_places
from reviews_connect.workflow.finalizer import ConnectionFinalizer, HttpHostBoundary
from reviews_connect.workflow.resolver import PlaceResolver
from reviews_connect.workflow.session import ConnectionSession

logger = logging.getLogger(__name__)


def _autocomplete_place(text: str, api_key: str):
    predictions = google_places.autocomplete(text, api_key)
    if not predictions:
        logger.info("No autocomplete predictions for %s", text)
        return None
    details = google_places.place_details(predictions[0]["place_id"], api_key)
    photos = details.get("photos") or []
    photo = google_places.photo_url(photos[0]["photo_reference"], api_key) if photos else None
    return place_from_autocomplete(details, photo)


def run_connect(
    *,
    text: str,
    nonce: Optional[str],
    choose: Optional[int] = None,
    use_autocomplete: bool = False,
    host_url: Optional[str] = None,
    max_reviews: int = 50,
) -> Optional[Dict[str, Any]]:
    """Run the workflow end to end and return the connected profile message, or None."""
    settings = get_settings()
    if not nonce:
        raise ConfigError("A connect nonce is required (--nonce or CONNECT_NONCE)")

    messages: List[Dict[str, Any]] = []
    finalizer = ConnectionFinalizer(HttpHostBoundary(host_url or settings.host_url), nonce, listener=messages.append)
    resolver = PlaceResolver(review_limit=settings.review_limit, max_reviews=max_reviews)
    session = ConnectionSession(resolver, finalizer)

    if use_autocomplete:
        if not settings.google_api_key:
            raise ConfigError("GOOGLE_API_KEY is required for autocomplete lookups")
        place = _autocomplete_place(text, settings.google_api_key)
        if place is not None and session.select_autocomplete(place, text):
            logger.info("Autocomplete matched %s (%s)", place.name, place.page_id)

    outcome = session.check_value(text)

    if isinstance(outcome, Candidates):
        for index, candidate in enumerate(outcome.items, start=1):
            print(f"{index}. {candidate.name} | {candidate.address or ''} | {candidate.url}")
        if choose is None:
            logger.info("%d possible places found; rerun with --choose N", len(outcome.items))
            return None
        if not 1 <= choose <= len(outcome.items):
            raise ValueError(f"--choose must be between 1 and {len(outcome.items)}")
        outcome = session.choose_candidate(choose - 1)

    if isinstance(outcome, InvalidLink):
        logger.error("%s is not a valid Google Maps or Google Shopping link", outcome.token)
        return None
    if isinstance(outcome, NotFound):
        logger.error("No Google page found for %s; try the Google Maps link of the business", text)
        return None
    if isinstance(outcome, TransportFailure):
        logger.error("Review provider unreachable for %s: %s", outcome.token, outcome.reason)
        return None
    if not isinstance(outcome, Resolved):
        logger.error("Lookup for %s did not resolve a place", text)
        return None

    logger.info("Resolved %s (%s)", outcome.place.name, outcome.place.page_id)
    result = session.connect()
    if isinstance(result, FinalizeError):
        hint = " (retry later)" if result.retryable else ""
        logger.error("Connecting %s failed: %s %s%s", outcome.place.page_id, result.kind, result.message, hint)
        return None
    return messages[-1] if messages else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Connect a Google Business Profile")
    parser.add_argument("text", help="Place ID, Google Maps / Shopping link, or business name")
    parser.add_argument("--choose", type=int, help="1-based index of the possible place to connect")
    parser.add_argument(
        "--autocomplete",
        dest="use_autocomplete",
        action="store_true",
        help="Match the text with Google Places autocomplete first",
    )
    parser.add_argument("--nonce", default=os.getenv("CONNECT_NONCE"), help="Host anti-forgery token")
    parser.add_argument("--host-url", dest="host_url", help="Host base URL (defaults to HOST_URL)")
    parser.add_argument("--max-reviews", dest="max_reviews", type=int, default=50, help="Reviews kept per profile")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        message = run_connect(
            text=args.text,
            nonce=args.nonce,
            choose=args.choose,
            use_autocomplete=args.use_autocomplete,
            host_url=args.host_url,
            max_reviews=args.max_reviews,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except Exception as exc:  # pragma: no cover - CLI fallback
        logger.error("Connect job failed: %s", exc, exc_info=True)
        return 1

    if message is None:
        return 1
    print(json.dumps(message, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
