from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .models import Session

logger = logging.getLogger(__name__)


class SessionStorage:
    """
    Persists the current session as a JSON file.

    The session token is the only client state that survives a restart;
    tasks and drafts are always rebuilt from the service.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[Session]:
        """Return the stored session, or None if there is none or the file is unreadable."""
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
            return Session.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError):
            logger.warning("Ignoring unreadable session file %s", self._path, exc_info=True)
            return None

    def save(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        try:
            self._path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class MemorySessionStorage(SessionStorage):
    """Session storage that lives only as long as the process."""

    def __init__(self, session: Optional[Session] = None) -> None:
        super().__init__(Path("<memory>"))
        self._session = session

    def load(self) -> Optional[Session]:
        return self._session

    def save(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None
