"""Database helpers for the location finder."""

import logging
from contextlib import contextmanager
from typing import Optional

from psycopg2 import pool

from locator.core.config import get_settings

logger = logging.getLogger(__name__)

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


def close_pool() -> None:
    global _connection_pool
    if _connection_pool is not None:
        _connection_pool.closeall()
        _connection_pool = None
        logger.info("Database connection pool closed")


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


# Postal codes are stored as text up to ZIP+4 length; validation warns on
# anything that is not a 5-digit code.
SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS postal_codes (
        id SERIAL PRIMARY KEY,
        code VARCHAR(10) NOT NULL UNIQUE,
        latitude NUMERIC(10, 8) NOT NULL,
        longitude NUMERIC(11, 8) NOT NULL,
        city VARCHAR(100),
        region VARCHAR(50)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS points_of_interest (
        id SERIAL PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        address VARCHAR(255) NOT NULL,
        city VARCHAR(100),
        region VARCHAR(50),
        postal_code VARCHAR(10),
        phone VARCHAR(20),
        latitude NUMERIC(10, 8) NOT NULL,
        longitude NUMERIC(11, 8) NOT NULL,
        hours VARCHAR(500),
        active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (name, address)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_points_of_interest_active ON points_of_interest (active)",
    "CREATE INDEX IF NOT EXISTS ix_points_of_interest_postal_code ON points_of_interest (postal_code)",
)


def ensure_schema() -> None:
    """Create the tables and indexes if they don't exist."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()
    logger.info("Database schema ensured")
