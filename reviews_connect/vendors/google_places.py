"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
# Sydney office listing used by Google's own documentation.
PROBE_PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"
AUTOCOMPLETE_DETAIL_FIELDS = "formatted_address,icon,name,photos,place_id,types,user_ratings_total"


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def autocomplete(text: str, api_key: str) -> List[Dict[str, Any]]:
    params = {"input": text, "types": "establishment", "key": api_key}
    response = _SESSION.get(f"{_BASE_URL}/autocomplete/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("autocomplete failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload.get("predictions", [])


def place_details(place_id: str, api_key: str, fields: str = AUTOCOMPLETE_DETAIL_FIELDS) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("place_details failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload.get("result", {})


def photo_url(photo_reference: str, api_key: str, max_width: int = 400) -> str:
    return f"{_BASE_URL}/photo?maxwidth={max_width}&photo_reference={photo_reference}&key={api_key}"


def check_api_key(api_key: str) -> Dict[str, Any]:
    """Probe the Places API with ``api_key`` and report the status it answers with."""
    if not api_key:
        return {"ok": False, "status": "MISSING_KEY"}
    params = {"place_id": PROBE_PLACE_ID, "fields": "name", "key": api_key}
    try:
        response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=10)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("API key check could not reach Google: %s", exc)
        return {"ok": False, "status": "CONNECTION_FAILED"}
    status = payload.get("status") or "UNKNOWN"
    return {"ok": status == "OK", "status": status}
