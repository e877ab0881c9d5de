from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List, Optional

from .models import SessionEntity, TaskEntity, UserEntity
from .schemas import TaskCreate, TaskUpdate
from .settings import get_settings


def new_id() -> str:
    """Return an opaque identifier for a new row."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for the storage backends.

    Task operations are always scoped by owner: a row that belongs to another
    account behaves exactly like a missing row.
    """

    # Accounts

    @abstractmethod
    def create_user(self, email: str, username: str, password_hash: str) -> Optional[UserEntity]:
        """Create an account. Return None if the email is already registered."""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserEntity]:
        """Return an account by id, or None if not found."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        """Return an account by (normalized) email, or None if not found."""

    # Sessions

    @abstractmethod
    def create_session(self, user_id: str, token: str, expires_at: datetime) -> SessionEntity:
        """Store a newly issued bearer token."""

    @abstractmethod
    def get_session(self, token: str) -> Optional[SessionEntity]:
        """Return the session for a token, or None. Expiry is checked by the caller."""

    @abstractmethod
    def delete_session(self, token: str) -> bool:
        """Revoke a token. Return True if it existed."""

    # Tasks

    @abstractmethod
    def create_task(self, owner: str, data: TaskCreate) -> TaskEntity:
        """Create and return a new task owned by `owner`."""

    @abstractmethod
    def get_task(self, owner: str, task_id: str) -> Optional[TaskEntity]:
        """Return one of owner's tasks by id, or None if not found."""

    @abstractmethod
    def update_task(self, owner: str, task_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        """Update fields of one of owner's tasks. Return updated entity or None if not found."""

    @abstractmethod
    def delete_task(self, owner: str, task_id: str) -> bool:
        """Delete one of owner's tasks. Return True if deleted, False if not found."""

    @abstractmethod
    def list_tasks(self, owner: str) -> List[TaskEntity]:
        """Return all of owner's tasks, newest first by created_at."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[str, UserEntity] = {}
        self._sessions: Dict[str, SessionEntity] = {}
        self._tasks: Dict[str, TaskEntity] = {}

    def _now(self) -> datetime:
        return utcnow()

    def create_user(self, email: str, username: str, password_hash: str) -> Optional[UserEntity]:
        with self._lock:
            if self.get_user_by_email(email) is not None:
                return None
            user: UserEntity = {
                "id": new_id(),
                "email": email,
                "username": username,
                "password_hash": password_hash,
                "created_at": self._now(),
            }
            self._users[user["id"]] = user
            return user.copy()

    def get_user(self, user_id: str) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(user_id)
            return None if user is None else user.copy()

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            for user in self._users.values():
                if user["email"] == email:
                    return user.copy()
            return None

    def create_session(self, user_id: str, token: str, expires_at: datetime) -> SessionEntity:
        session: SessionEntity = {"token": token, "user_id": user_id, "expires_at": expires_at}
        with self._lock:
            self._sessions[token] = session
        return session.copy()

    def get_session(self, token: str) -> Optional[SessionEntity]:
        with self._lock:
            session = self._sessions.get(token)
            return None if session is None else session.copy()

    def delete_session(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def create_task(self, owner: str, data: TaskCreate) -> TaskEntity:
        now = self._now()
        entity: TaskEntity = {
            "id": new_id(),
            "owner": owner,
            "title": data.title,
            "description": data.description,
            "is_complete": False,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._tasks[entity["id"]] = entity
        return entity.copy()

    def _owned(self, owner: str, task_id: str) -> Optional[TaskEntity]:
        item = self._tasks.get(task_id)
        if item is None or item["owner"] != owner:
            return None
        return item

    def get_task(self, owner: str, task_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._owned(owner, task_id)
            return None if item is None else item.copy()

    def update_task(self, owner: str, task_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._owned(owner, task_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            if data.title is not None:
                updated["title"] = data.title
            if "description" in data.model_fields_set:
                updated["description"] = data.description
            if data.is_complete is not None:
                updated["is_complete"] = data.is_complete
            updated["updated_at"] = data.updated_at or self._now()

            self._tasks[task_id] = updated
            return updated.copy()

    def delete_task(self, owner: str, task_id: str) -> bool:
        with self._lock:
            if self._owned(owner, task_id) is None:
                return False
            del self._tasks[task_id]
            return True

    def list_tasks(self, owner: str) -> List[TaskEntity]:
        with self._lock:
            items = [t for t in self._tasks.values() if t["owner"] == owner]
            items_sorted = sorted(items, key=lambda t: t["created_at"], reverse=True)
            # Return copies to avoid external mutation
            return [t.copy() for t in items_sorted]


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
