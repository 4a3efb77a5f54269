"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    database_url: str
    server_port: int = 8080
    default_search_limit: int = 10
    max_search_limit: int = 100
    import_batch_size: int = 1000
    log_level: str = "INFO"


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %d.", name, raw, default)
        return default
    if value < 1:
        logger.warning("%s must be positive, got %d; using %d.", name, value, default)
        return default
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    server_port = _get_int_env("PORT", 8080)
    max_search_limit = _get_int_env("SEARCH_MAX_LIMIT", 100)
    default_search_limit = _get_int_env("SEARCH_DEFAULT_LIMIT", 10)
    import_batch_size = _get_int_env("IMPORT_BATCH_SIZE", 1000)
    log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if default_search_limit > max_search_limit:
        logger.warning(
            "SEARCH_DEFAULT_LIMIT (%d) exceeds SEARCH_MAX_LIMIT (%d); clamping.",
            default_search_limit,
            max_search_limit,
        )
        default_search_limit = max_search_limit

    return Settings(
        database_url=database_url,
        server_port=server_port,
        default_search_limit=default_search_limit,
        max_search_limit=max_search_limit,
        import_batch_size=import_batch_size,
        log_level=log_level,
    )
