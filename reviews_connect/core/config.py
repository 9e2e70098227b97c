"""Application configuration helpers."""

import logging
import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict, Mapping

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_BASE_URL = "https://admin.trustindex.io/api"
MAX_REVIEWS_LIMIT = 500


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    provider_base_url: str = DEFAULT_PROVIDER_BASE_URL
    google_api_key: str = ""
    database_url: str = ""
    worker_port: int = 9000
    review_limit: int = 10
    nonce_secret: str = ""
    nonce_max_age: int = 86400
    host_url: str = "http://localhost:9000"
    sibling_provider: str = ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    provider_base_url = os.getenv("PROVIDER_BASE_URL", DEFAULT_PROVIDER_BASE_URL).rstrip("/")
    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    review_limit = int(os.getenv("REVIEW_LIMIT", "10"))
    nonce_secret = os.getenv("NONCE_SECRET", "")
    nonce_max_age = int(os.getenv("NONCE_MAX_AGE", "86400"))
    host_url = os.getenv("HOST_URL", "http://localhost:9000").rstrip("/")
    sibling_provider = os.getenv("SIBLING_PROVIDER", "").strip()

    if not database_url:
        logger.warning("DATABASE_URL is not set; settings and profiles cannot be stored.")
    if not nonce_secret:
        logger.warning("NONCE_SECRET is not configured; anti-forgery tokens will be rejected.")

    return Settings(
        provider_base_url=provider_base_url,
        google_api_key=google_api_key,
        database_url=database_url,
        worker_port=worker_port,
        review_limit=max(1, review_limit),
        nonce_secret=nonce_secret,
        nonce_max_age=nonce_max_age,
        host_url=host_url,
        sibling_provider=sibling_provider,
    )


@dataclass(frozen=True)
class AdminSettings:
    """The single settings record the host keeps for the admin panel."""

    google_maps_api_key: str = ""
    debug_mode: bool = False
    cache_time: int = 3600
    max_reviews: int = 50
    enable_replies: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> "AdminSettings":
        """Build settings from a stored record, falling back to defaults per field."""
        if not record:
            return cls()
        defaults = cls()
        return cls(
            google_maps_api_key=str(record.get("google_maps_api_key") or ""),
            debug_mode=bool(record.get("debug_mode", defaults.debug_mode)),
            cache_time=_to_int(record.get("cache_time"), defaults.cache_time),
            max_reviews=_clamp_reviews(_to_int(record.get("max_reviews"), defaults.max_reviews)),
            enable_replies=bool(record.get("enable_replies", defaults.enable_replies)),
        )

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "AdminSettings":
        """Parse a submitted settings form; unchecked checkboxes are simply absent."""
        return cls(
            google_maps_api_key=str(form.get("google_maps_api_key") or "").strip(),
            debug_mode="debug_mode" in form,
            cache_time=max(0, _to_int(form.get("cache_time"), 3600)),
            max_reviews=_clamp_reviews(_to_int(form.get("max_reviews"), 50)),
            enable_replies="enable_replies" in form,
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


def _to_int(value: Any, default: int) -> int:
    try:
        if value is None or value == "":
            return default
        return int(value)
    except (TypeError, ValueError):
        return default


def _clamp_reviews(value: int) -> int:
    return min(max(value, 1), MAX_REVIEWS_LIMIT)
