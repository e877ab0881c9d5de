from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Service settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/taskpad.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SESSION_TTL_SECONDS: lifetime of an access token in seconds (default: 3600)
    - SERVICE_HOST / SERVICE_PORT: bind address used by the uvicorn entrypoint
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    session_ttl_seconds: int
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, minimum: int = 1) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


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
    """Return service settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/taskpad.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        session_ttl_seconds=_parse_int(_get_env("SESSION_TTL_SECONDS", "3600"), 3600),
        host=_get_env("SERVICE_HOST", "127.0.0.1").strip(),
        port=_parse_int(_get_env("SERVICE_PORT", "8000"), 8000),
    )
