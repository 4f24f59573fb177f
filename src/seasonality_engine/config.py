from __future__ import annotations

"""Simple settings loader with environment variables.

``get_settings`` reads environment variables once and caches the resulting
``Settings`` object.  Tests may call ``reset_settings_cache`` to force a
reload when they modify environment variables at runtime.
"""

from dataclasses import dataclass
import logging
import os
from functools import lru_cache


@dataclass
class Settings:
    db_dsn: str | None = None
    db_echo: bool = False
    dataset_path: str | None = None
    cache_url: str | None = None
    cache_ttl_seconds: int = 86400
    scanner_cache_ttl_seconds: int = 1800
    election_country: str = "INDIA"
    max_symbols: int = 50
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


@lru_cache()
def get_settings() -> Settings:
    """Return settings loaded from environment variables."""

    return Settings(
        db_dsn=os.getenv("DB_DSN"),
        db_echo=os.getenv("DB_ECHO", "false").lower() == "true",
        dataset_path=os.getenv("SEASONALITY_DATASET"),
        cache_url=os.getenv("CACHE_URL"),
        cache_ttl_seconds=_int_env("CACHE_TTL_SECONDS", 86400),
        scanner_cache_ttl_seconds=_int_env("SCANNER_CACHE_TTL_SECONDS", 1800),
        election_country=os.getenv("ELECTION_COUNTRY", "INDIA").upper(),
        max_symbols=_int_env("MAX_SYMBOLS", 50),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def reset_settings_cache() -> None:
    """Clear the settings cache (mainly for tests)."""

    get_settings.cache_clear()


def configure_logging(level: str | None = None) -> None:
    """Install a basic root handler at ``level`` (defaults to ``LOG_LEVEL``)."""

    logging.basicConfig(
        level=(level or get_settings().log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
