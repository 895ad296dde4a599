"""
Configuration helpers for the task API.

Routers, services and the database layer read their settings through
get_settings() so that os.environ is only touched here.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    session_ttl_seconds: int
    log_level: str
    log_file: str
    cors_origins: tuple[str, ...]
    auto_create_tables: bool
    auth_rate_limit: int
    auth_rate_window_seconds: int
    trust_forwarded_for: bool


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    origins = tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "").split(",")
        if origin.strip()
    )
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./tasks.db").strip(),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "86400"), 86400),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_file=os.getenv("LOG_FILE", ""),
        cors_origins=origins,
        auto_create_tables=_bool(os.getenv("AUTO_CREATE_TABLES"), True),
        auth_rate_limit=_int(os.getenv("AUTH_RATE_LIMIT", "10"), 10),
        auth_rate_window_seconds=_int(os.getenv("AUTH_RATE_WINDOW_SECONDS", "60"), 60),
        trust_forwarded_for=_bool(os.getenv("TRUST_FORWARDED_FOR"), False),
    )
