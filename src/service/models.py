from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered account as held by the storage backends.

    Fields:
    - id: Opaque identifier (uuid4 hex)
    - email: Contact address, stored lower-cased
    - username: Display handle
    - password_hash: Salted PBKDF2 hash (see auth.hash_password)
    - created_at: Registration timestamp (UTC)
    """

    id: str
    email: str
    username: str
    password_hash: str
    created_at: datetime


# PUBLIC_INTERFACE
class SessionEntity(TypedDict):
    """A bearer token issued at sign-in and the account it authenticates."""

    token: str
    user_id: str
    expires_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A single task row.

    Fields:
    - id: Opaque identifier assigned on insert (uuid4 hex)
    - owner: Id of the account the task belongs to; never changes
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description
    - is_complete: Boolean completion flag
    - created_at: UTC creation timestamp
    - updated_at: UTC timestamp of the last field mutation
    """

    id: str
    owner: str
    title: str
    description: Optional[str]
    is_complete: bool
    created_at: datetime
    updated_at: datetime
