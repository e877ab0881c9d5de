from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ClientError, ErrorKind, decode_body, from_response, from_transport
from .models import Identity, Session
from .storage import SessionStorage

logger = logging.getLogger(__name__)


class AuthGateway:
    """
    HTTP adapter for the service's /auth/v1 routes.

    Owns the session lifecycle (sign-up, sign-in, sign-out, validation) and the
    persisted token. Every failure is raised as a ClientError of kind AUTH, or
    NETWORK when the service could not be reached.
    """

    def __init__(self, http: httpx.AsyncClient, storage: SessionStorage) -> None:
        self._http = http
        self._storage = storage

    @property
    def access_token(self) -> Optional[str]:
        session = self._storage.load()
        return session.access_token if session is not None else None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            return await self._http.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Auth request %s %s failed: %s", method, url, e)
            raise from_transport(e) from e

    async def get_current_session(self) -> Optional[Session]:
        """
        Return the stored session if the service still honours it, else None.

        An expired or rejected session is discarded from storage. Other failures
        raise ClientError so the caller can decide how to treat them.
        """
        session = self._storage.load()
        if session is None:
            return None
        if session.is_expired():
            logger.info("Stored session expired; discarding")
            self._storage.clear()
            return None

        response = await self._request("GET", "/auth/v1/user", token=session.access_token)
        if response.status_code == 401:
            logger.info("Service rejected stored session; discarding")
            self._storage.clear()
            return None
        if response.status_code != 200:
            raise from_response(ErrorKind.AUTH, response, "Unable to validate session")

        user = decode_body(ErrorKind.AUTH, response, "Unable to validate session", Identity.model_validate)
        if user != session.user:
            session = session.model_copy(update={"user": user})
            self._storage.save(session)
        return session

    async def sign_up(self, email: str, password: str, username: str) -> Identity:
        """Register an account. Does not establish a session."""
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "username": username},
        )
        if response.status_code != 201:
            raise from_response(ErrorKind.AUTH, response, "Failed to create account")
        return decode_body(ErrorKind.AUTH, response, "Failed to create account", Identity.model_validate)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Exchange credentials for a session and persist it."""
        response = await self._request(
            "POST",
            "/auth/v1/token",
            json={"email": email, "password": password},
        )
        if response.status_code != 200:
            raise from_response(ErrorKind.AUTH, response, "Failed to sign in")
        session = decode_body(ErrorKind.AUTH, response, "Failed to sign in", Session.model_validate)
        self._storage.save(session)
        logger.info("Signed in user id=%s", session.user.id)
        return session

    async def sign_out(self) -> None:
        """
        Revoke the current session.

        The stored session is cleared before the remote call, so the client is
        signed out locally even when the revoke itself fails.
        """
        token = self.access_token
        self._storage.clear()
        if token is None:
            return

        response = await self._request("POST", "/auth/v1/logout", token=token)
        # 401: the token was already gone on the service side
        if response.status_code not in (204, 401):
            raise from_response(ErrorKind.AUTH, response, "Error signing out")


def require_token(gateway: AuthGateway) -> str:
    """Return the current bearer token or raise an AUTH error."""
    token = gateway.access_token
    if token is None:
        raise ClientError(ErrorKind.AUTH, "Not authenticated", status=401)
    return token
