from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..auth import (
    get_access_token,
    get_current_user,
    get_repo,
    hash_password,
    new_access_token,
    verify_password,
)
from ..models import UserEntity
from ..repositories import Repository, utcnow
from ..schemas import IdentityOut, SessionOut, SignInIn, SignUpIn

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth/v1",
    tags=["auth"],
)


def _identity(user: UserEntity) -> IdentityOut:
    return IdentityOut(id=user["id"], email=user["email"], username=user["username"])


# PUBLIC_INTERFACE
@router.post(
    "/signup",
    response_model=IdentityOut,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    description="Register a new account. No session is issued; sign in afterwards.",
    responses={
        201: {"description": "Account created"},
        400: {"description": "Email already registered"},
    },
)
def sign_up(payload: SignUpIn, repo: Repository = Depends(get_repo)) -> IdentityOut:
    """
    Create an account.
    """
    user = repo.create_user(payload.email, payload.username, hash_password(payload.password))
    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already registered")
    logger.info("Registered user id=%s", user["id"])
    return _identity(user)


# PUBLIC_INTERFACE
@router.post(
    "/token",
    response_model=SessionOut,
    summary="Sign In",
    description="Exchange email and password for a bearer token.",
    responses={
        200: {"description": "Session established"},
        400: {"description": "Invalid login credentials"},
    },
)
def sign_in(payload: SignInIn, request: Request, repo: Repository = Depends(get_repo)) -> SessionOut:
    """
    Password sign-in. The same message is returned for an unknown email and a wrong password.
    """
    user = repo.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid login credentials")

    ttl = request.app.state.settings.session_ttl_seconds
    session = repo.create_session(user["id"], new_access_token(), utcnow() + timedelta(seconds=ttl))
    return SessionOut(
        access_token=session["token"],
        expires_at=session["expires_at"],
        user=_identity(user),
    )


# PUBLIC_INTERFACE
@router.get(
    "/user",
    response_model=IdentityOut,
    summary="Current User",
    description="Return the account behind the bearer token; 401 when the session is not valid.",
)
def current_user(user: UserEntity = Depends(get_current_user)) -> IdentityOut:
    """
    Session validation endpoint.
    """
    return _identity(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign Out",
    description="Revoke the bearer token.",
)
def sign_out(
    token: str = Depends(get_access_token),
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> None:
    """
    Revoke the current session.
    """
    repo.delete_session(token)
    logger.info("Signed out user id=%s", user["id"])
    return None
