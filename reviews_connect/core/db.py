"""Options storage backed by a PostgreSQL key/value table."""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from psycopg2 import extras, pool

from reviews_connect.core.config import get_settings

logger = logging.getLogger(__name__)

SETTINGS_OPTION = "reviews_connect_settings"
CONNECTED_PROFILE_OPTION = "reviews_connect_profile"

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SELECT_OPTION = """
SELECT option_value FROM options WHERE option_name = %(option_name)s
"""

_UPSERT_OPTION = """
INSERT INTO options (
    option_name,
    option_value,
    updated_at
) VALUES (
    %(option_name)s,
    %(option_value)s,
    NOW()
)
ON CONFLICT (option_name) DO UPDATE SET
    option_value = EXCLUDED.option_value,
    updated_at = NOW();
"""


def get_option(name: str, default: Any = None) -> Any:
    """Return the stored JSON value for ``name`` or ``default`` when unset."""
    if not name:
        raise ValueError("option name is required")

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_SELECT_OPTION, {"option_name": name})
            row = cur.fetchone()
    if row is None:
        return default
    return row[0]


def update_option(name: str, value: Any) -> None:
    """Persist ``value`` under ``name``, replacing any previous value."""
    if not name:
        raise ValueError("option name is required")

    params = {"option_name": name, "option_value": extras.Json(value)}
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_UPSERT_OPTION, params)
        conn.commit()
        logger.debug("Updated option %s", name)
