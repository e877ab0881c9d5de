from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .models import UserEntity
from .repositories import Repository, utcnow

_security = HTTPBearer(auto_error=False)

_PBKDF2_ITERATIONS = 120_000


# PUBLIC_INTERFACE
def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """
    Return a salted PBKDF2-SHA256 hash in the form '<iterations>$<salt hex>$<hash hex>'.
    """
    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"{_PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


# PUBLIC_INTERFACE
def verify_password(password: str, stored: str) -> bool:
    """Check a password against a hash produced by hash_password, in constant time."""
    try:
        iterations, salt_hex, digest_hex = stored.split("$")
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), digest_hex)


# PUBLIC_INTERFACE
def new_access_token() -> str:
    """Return a fresh random bearer token."""
    return secrets.token_urlsafe(32)


# PUBLIC_INTERFACE
def get_repo(request: Request) -> Repository:
    """Dependency returning the repository bound to the running app."""
    return request.app.state.repository


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# PUBLIC_INTERFACE
def get_access_token(creds: Optional[HTTPAuthorizationCredentials] = Depends(_security)) -> str:
    """
    Extract the bearer token from the Authorization header.

    Raises:
        HTTPException(401) if no bearer credentials were sent.
    """
    if creds is None or not creds.credentials:
        raise _unauthorized("Not authenticated")
    return creds.credentials


# PUBLIC_INTERFACE
def get_current_user(
    token: str = Depends(get_access_token),
    repo: Repository = Depends(get_repo),
) -> UserEntity:
    """
    Resolve the account behind a bearer token.

    Expired tokens are revoked on sight. Raises HTTPException(401) when the token
    is unknown, expired, or refers to an account that no longer exists.
    """
    session = repo.get_session(token)
    if session is None:
        raise _unauthorized("Invalid or expired session")

    if session["expires_at"] <= utcnow():
        repo.delete_session(token)
        raise _unauthorized("Invalid or expired session")

    user = repo.get_user(session["user_id"])
    if user is None:
        raise _unauthorized("Invalid or expired session")
    return user
