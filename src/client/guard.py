from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Union

from .errors import ClientError, validation_error
from .gateway import AuthGateway
from .models import Identity, Session, SessionState

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/login"

Navigate = Callable[[str], Union[None, Awaitable[None]]]


def validate_registration(email: str, password: str, username: str) -> None:
    """
    Check registration fields in a fixed order and raise on the first violation.

    Order: username (present, then length), email, password.
    """
    name = username.strip()
    if not name:
        raise validation_error("username", "Username is required")
    if len(name) < 3:
        raise validation_error("username", "Username must be at least 3 characters long")
    if not email.strip():
        raise validation_error("email", "Email is required")
    if len(password) < 6:
        raise validation_error("password", "Password must be at least 6 characters long")


class SessionGuard:
    """
    Gates protected views on the presence of a valid session.

    Holds a single read-through cache of the session state over the auth
    gateway. The cache is refreshed on every check and dropped on sign-out;
    views observe it but never create or destroy sessions themselves.
    """

    def __init__(self, gateway: AuthGateway) -> None:
        self._gateway = gateway
        self._state = SessionState.absent()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._state.identity

    async def check_session(self) -> SessionState:
        """
        Ask the gateway whether a valid session exists.

        Never raises: any gateway failure yields the absent state.
        """
        try:
            session = await self._gateway.get_current_session()
        except ClientError as e:
            logger.warning("Session check failed (%s): %s", e.kind.value, e.message)
            session = None
        except Exception:
            logger.exception("Unexpected error while checking session")
            session = None

        self._state = SessionState.of(session) if session is not None else SessionState.absent()
        return self._state

    async def require_session(self, navigate: Navigate) -> bool:
        """
        Redirect to the sign-in view when there is no session.

        Returns True when the protected view may render.
        """
        state = await self.check_session()
        if not state.established:
            logger.info("No session; redirecting to %s", SIGN_IN_PATH)
            result = navigate(SIGN_IN_PATH)
            if result is not None:
                await result
            return False
        return True

    async def sign_up(self, email: str, password: str, username: str) -> Identity:
        """
        Register an account after local validation.

        Raises ClientError(VALIDATION) without contacting the gateway when a
        field is invalid, ClientError(AUTH) when the gateway refuses. Does not
        establish a session.
        """
        validate_registration(email, password, username)
        return await self._gateway.sign_up(email, password, username)

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in; the gateway's error message is surfaced verbatim."""
        session = await self._gateway.sign_in_with_password(email, password)
        self._state = SessionState.of(session)
        return session

    async def sign_out(self) -> None:
        """
        Revoke the session. The guard is absent afterwards even if the
        remote revoke failed; that failure is re-raised for reporting.
        """
        try:
            await self._gateway.sign_out()
        finally:
            self._state = SessionState.absent()
