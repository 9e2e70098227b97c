"""Anti-forgery tokens scoped to a named admin action."""

import logging
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from reviews_connect.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SETTINGS_ACTION = "reviews_connect_settings"
CONNECT_ACTION = "reviews_connect_nonce"


def _serializer(action: str, settings: Settings) -> URLSafeTimedSerializer:
    if not settings.nonce_secret:
        raise RuntimeError("NONCE_SECRET is required to sign anti-forgery tokens")
    return URLSafeTimedSerializer(settings.nonce_secret, salt=action)


def create_nonce(action: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return _serializer(action, settings).dumps(action)


def verify_nonce(token: Optional[str], action: str, settings: Optional[Settings] = None) -> bool:
    """Return True when ``token`` was issued for ``action`` and has not expired."""
    settings = settings or get_settings()
    if not token or not settings.nonce_secret:
        return False
    try:
        value = _serializer(action, settings).loads(token, max_age=settings.nonce_max_age)
    except SignatureExpired:
        logger.info("Expired nonce for action=%s", action)
        return False
    except BadSignature:
        logger.warning("Invalid nonce for action=%s", action)
        return False
    return value == action
