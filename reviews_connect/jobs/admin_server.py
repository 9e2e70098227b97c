"""HTTP host boundary: settings, profile connection and dashboard endpoints."""

from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from reviews_connect.core import db
from reviews_connect.core.config import AdminSettings, get_settings
from reviews_connect.core.db import CONNECTED_PROFILE_OPTION, SETTINGS_OPTION
from reviews_connect.core.nonce import CONNECT_ACTION, SETTINGS_ACTION, create_nonce, verify_nonce
from reviews_connect.etl.transform import average_rating, count_positive_reviews, to_place_data
from reviews_connect.providers import PageDataProvider, build_page_data_provider
from reviews_connect.vendors import google_places

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & collaborators ----------
app = Flask(__name__)
_store = db
_page_data: Optional[PageDataProvider] = None

RECENT_REVIEWS = 5

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "page_data_provider": _get_page_data().name,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/settings")
def read_settings() -> Any:
    admin_settings = _load_admin_settings()
    return jsonify({"data": {**admin_settings.to_record(), "nonce": create_nonce(SETTINGS_ACTION)}}), 200


@app.post("/settings")
def save_settings() -> Any:
    if not verify_nonce(request.form.get("_wpnonce"), SETTINGS_ACTION):
        return jsonify({"error": "Security check failed"}), 403

    admin_settings = AdminSettings.from_form(request.form)
    _store.update_option(SETTINGS_OPTION, admin_settings.to_record())
    _apply_debug_mode(admin_settings)
    logger.info("Admin settings saved (max_reviews=%s)", admin_settings.max_reviews)
    return jsonify({"data": admin_settings.to_record(), "message": "Settings saved successfully!"}), 200


@app.post("/settings/test-api")
def test_api_key() -> Any:
    """Check a Google Maps API key; the submitted key wins over the stored one."""
    api_key = (request.form.get("google_maps_api_key") or "").strip()
    if not api_key:
        api_key = _google_maps_api_key()
    if not api_key:
        return jsonify({"error": "Please enter an API key first."}), 400

    result = google_places.check_api_key(api_key)
    return jsonify({"data": result}), 200


@app.get("/admin/connect")
def connect_page() -> Any:
    profile = _connected_profile()
    return (
        jsonify(
            {
                "data": {
                    "nonce": create_nonce(CONNECT_ACTION),
                    "connect_url": "/ajax/connect",
                    "connected": bool(profile and profile.get("name")),
                    "name": (profile or {}).get("name"),
                }
            }
        ),
        200,
    )


@app.post("/ajax/connect")
def connect_profile() -> Any:
    if not verify_nonce(request.form.get("_wpnonce"), CONNECT_ACTION):
        return jsonify({"success": False, "data": "Invalid nonce"}), 403

    place_data = to_place_data(request.form)
    if not place_data["id"] or not place_data["name"]:
        return jsonify({"success": False, "data": "page id and name are required"}), 400

    request_id = f"req_{uuid.uuid4().hex}"
    timestamp = int(time.time())
    record = {**place_data, "request_id": request_id, "timestamp": timestamp}

    try:
        _store.update_option(CONNECTED_PROFILE_OPTION, record)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to store connected profile %s: %s", place_data["id"], exc)
        return jsonify({"success": False, "data": "could not store profile"}), 500

    logger.info("Connected profile %s (%s) request_id=%s", place_data["name"], place_data["id"], request_id)
    return jsonify({"success": True, "request_id": request_id, "timestamp": timestamp, "place_data": place_data}), 200


@app.post("/ajax/get-reviews")
def get_reviews() -> Any:
    if not verify_nonce(request.form.get("_wpnonce"), CONNECT_ACTION):
        return jsonify({"success": False, "data": "Invalid nonce"}), 403

    reviews = _profile_reviews()
    return jsonify({"success": True, "reviews": reviews, "message": "Reviews retrieved successfully"}), 200


@app.get("/dashboard")
def dashboard() -> Any:
    """Summary of the connected profile, review stats and system information."""
    admin_settings = _load_admin_settings()
    profile = _connected_profile()
    reviews = _profile_reviews(profile)
    page_data = _get_page_data()

    connected: Optional[Dict[str, Any]] = None
    if profile:
        connected = {
            "name": profile.get("name") or "Unknown",
            "rating_score": round(float(profile.get("rating_score") or 0), 1),
            "rating_number": int(profile.get("rating_number") or 0),
        }

    recent = [
        {
            "user": review.get("user") or "Anonymous",
            "rating": review.get("rating") or 0,
            "time": review.get("time") or int(time.time()),
        }
        for review in reviews[:RECENT_REVIEWS]
    ]

    return (
        jsonify(
            {
                "data": {
                    "connected": connected,
                    "stats": {
                        "total_reviews": len(reviews),
                        "average_rating": round(average_rating(reviews), 1),
                        "positive_reviews": count_positive_reviews(reviews),
                    },
                    "recent_reviews": recent,
                    "system": {
                        "page_data_provider": page_data.name,
                        "api_key_configured": bool(admin_settings.google_maps_api_key),
                        "cache_time": admin_settings.cache_time,
                        "max_reviews": admin_settings.max_reviews,
                    },
                }
            }
        ),
        200,
    )


# ---------- Internals ----------


def _get_page_data() -> PageDataProvider:
    global _page_data
    if _page_data is None:
        _page_data = build_page_data_provider(get_settings().sibling_provider)
    return _page_data


def _load_admin_settings() -> AdminSettings:
    return AdminSettings.from_record(_store.get_option(SETTINGS_OPTION))


def _google_maps_api_key() -> str:
    return _load_admin_settings().google_maps_api_key or get_settings().google_api_key


def _connected_profile() -> Optional[Dict[str, Any]]:
    details = _get_page_data().get_page_details()
    if details:
        return details
    stored = _store.get_option(CONNECTED_PROFILE_OPTION)
    return stored if isinstance(stored, dict) and stored else None


def _profile_reviews(profile: Optional[Dict[str, Any]] = None) -> list:
    reviews: Any = _get_page_data().get_reviews()
    if not reviews:
        if profile is None:
            profile = _connected_profile()
        reviews = (profile or {}).get("reviews")
    return [review for review in reviews if isinstance(review, dict)] if isinstance(reviews, list) else []


def _apply_debug_mode(admin_settings: AdminSettings) -> None:
    level = logging.DEBUG if admin_settings.debug_mode else logging.INFO
    logging.getLogger("reviews_connect").setLevel(level)


def main() -> None:
    settings = get_settings()
    port = int(os.getenv("PORT") or settings.worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    try:
        _apply_debug_mode(_load_admin_settings())
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not read stored admin settings at boot: %s", exc)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
