from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

_BACKENDS = {"memory", "sqlite", "postgrest"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'postgrest'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - STORE_URL: base URL of the remote PostgREST/Supabase store
    - STORE_API_KEY: API key sent to the remote store
    - STORE_TIMEOUT: request timeout against the remote store, in seconds (default 10)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    store_url: Optional[str]
    store_api_key: Optional[str]
    store_timeout: float
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in _BACKENDS:
        logger.warning("Unsupported PERSISTENCE_BACKEND %r, using memory", backend)
        backend = "memory"

    store_url = os.getenv("STORE_URL") or None
    store_key = os.getenv("STORE_API_KEY") or None
    if backend == "postgrest" and not (store_url and store_key):
        logger.warning("STORE_URL/STORE_API_KEY not set, using memory backend")
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        store_url=store_url.strip().rstrip("/") if store_url else None,
        store_api_key=store_key.strip() if store_key else None,
        store_timeout=_parse_float(_get_env("STORE_TIMEOUT", "10"), 10.0),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
