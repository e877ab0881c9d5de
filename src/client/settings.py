from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    """
    Client settings loaded from environment variables.

    Env vars:
    - TASKPAD_API_URL: base URL of the service (default: http://127.0.0.1:8000)
    - TASKPAD_SESSION_FILE: where the session token is persisted (default: ~/.taskpad/session.json)
    - TASKPAD_LOG_DIR: directory for the log file (default: ~/.taskpad)
    - TASKPAD_LOG_LEVEL: console log level name (default: WARNING)
    """

    api_url: str
    session_file: Path
    log_dir: Path
    log_level: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_level(value: str, default: int = logging.WARNING) -> int:
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return client settings loaded from environment variables."""
    home = Path.home() / ".taskpad"
    return Settings(
        api_url=_get_env("TASKPAD_API_URL", "http://127.0.0.1:8000").strip().rstrip("/"),
        session_file=Path(_get_env("TASKPAD_SESSION_FILE", str(home / "session.json"))).expanduser(),
        log_dir=Path(_get_env("TASKPAD_LOG_DIR", str(home))).expanduser(),
        log_level=_parse_level(_get_env("TASKPAD_LOG_LEVEL", "WARNING")),
    )
