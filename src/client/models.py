from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


# PUBLIC_INTERFACE
class Identity(BaseModel):
    """An authenticated account. Never mutated by the client."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str


# PUBLIC_INTERFACE
class Session(BaseModel):
    """Token-backed proof of an Identity, valid until expires_at."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    expires_at: datetime
    user: Identity

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


# PUBLIC_INTERFACE
class Task(BaseModel):
    """
    A task row exactly as the service returned it.

    Instances are snapshots; the client never patches them locally.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    owner: str
    title: str
    description: Optional[str] = None
    is_complete: bool = False
    created_at: datetime
    updated_at: datetime


class SessionStatus(str, Enum):
    ABSENT = "absent"
    ESTABLISHED = "established"


# PUBLIC_INTERFACE
class SessionState(BaseModel):
    """What the guard knows about the current session."""

    model_config = ConfigDict(frozen=True)

    status: SessionStatus = SessionStatus.ABSENT
    session: Optional[Session] = None

    @property
    def established(self) -> bool:
        return self.status is SessionStatus.ESTABLISHED

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.user if self.session is not None else None

    @classmethod
    def absent(cls) -> "SessionState":
        return cls()

    @classmethod
    def of(cls, session: Session) -> "SessionState":
        return cls(status=SessionStatus.ESTABLISHED, session=session)


# PUBLIC_INTERFACE
class EditingSession(BaseModel):
    """Unsaved draft of the one task being edited."""

    id: str
    title: str
    description: str = ""

    @classmethod
    def of(cls, task: Task) -> "EditingSession":
        return cls(id=task.id, title=task.title, description=task.description or "")


# PUBLIC_INTERFACE
class ComposeDraft(BaseModel):
    """The fields of the new-task form."""

    title: str = ""
    description: str = ""

    def clear(self) -> None:
        self.title = ""
        self.description = ""
