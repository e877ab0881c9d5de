from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_title(value: str) -> str:
    s = value.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so ordering never mixes naive and aware values."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# PUBLIC_INTERFACE
class SignUpIn(BaseModel):
    """
    Schema for registering a new account. Registration does not sign the user in.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "alice@example.com", "password": "secret1", "username": "alice"}
        }
    )

    email: str = Field(..., description="Contact address, used as the sign-in name")
    password: str = Field(..., description="Password (at least 6 characters)", min_length=6)
    username: str = Field(..., description="Display handle (at least 3 characters)")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """
        Strip whitespace and enforce a minimum length of 3.
        """
        s = v.strip()
        if len(s) < 3:
            raise ValueError("username must be at least 3 characters long")
        return s

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """
        Strip and lower-case; the address must not be empty.
        """
        s = v.strip().lower()
        if not s:
            raise ValueError("email is required")
        return s


# PUBLIC_INTERFACE
class SignInIn(BaseModel):
    """Schema for a password sign-in."""

    email: str = Field(..., description="Contact address given at registration")
    password: str = Field(..., description="Account password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# PUBLIC_INTERFACE
class IdentityOut(BaseModel):
    """
    Public view of an account.
    """

    id: str = Field(..., description="Opaque account identifier")
    email: str = Field(..., description="Contact address")
    username: str = Field(..., description="Display handle")


# PUBLIC_INTERFACE
class SessionOut(BaseModel):
    """
    Schema returned by a successful sign-in.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "x1Yz...",
                "token_type": "bearer",
                "expires_at": "2025-01-25T11:15:30.123456Z",
                "user": {"id": "7f0c...", "email": "alice@example.com", "username": "alice"},
            }
        }
    )

    access_token: str = Field(..., description="Bearer token for authenticated requests")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_at: datetime = Field(..., description="Expiry of the access token (UTC)")
    user: IdentityOut = Field(..., description="The authenticated account")


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    owner: Optional[str] = Field(
        default=None,
        description="Owner of the new row; when given it must be the authenticated account",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _normalize_title(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating an existing task.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "description": "Milk, eggs, bread, and paper towels",
                "is_complete": True,
                "updated_at": "2025-02-02T09:30:00Z",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    is_complete: Optional[bool] = Field(default=None, description="Completion status flag")
    updated_at: Optional[datetime] = Field(
        default=None,
        description="Client-side stamp of the mutation; the service clock is used when omitted",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        if v is None:
            return v
        return _normalize_title(v)

    @field_validator("updated_at")
    @classmethod
    def normalize_updated_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "4b1f0d6e9a2c4c67b1b0f0f8d1e2a3c4",
                "owner": "7f0c2a9b5e3d4f1a8c6b0d2e4f6a8c0e",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "is_complete": False,
                "created_at": "2025-01-25T10:15:30.123456Z",
                "updated_at": "2025-01-26T09:00:00.000001Z",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task")
    owner: str = Field(..., description="Account the task belongs to")
    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    is_complete: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
