from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from .errors import ClientError
from .guard import SessionGuard
from .navigation import LOGIN, REGISTER, TASKS
from .notify import Notifier
from .store import TaskStore
from .sync import TaskSyncEngine

logger = logging.getLogger(__name__)

Navigate = Callable[[str], Awaitable[None]]


class SignInView:
    path = LOGIN

    def __init__(self, guard: SessionGuard, notifier: Notifier, navigate: Navigate) -> None:
        self._guard = guard
        self._notifier = notifier
        self._navigate = navigate

    async def enter(self) -> bool:
        return True

    async def submit(self, email: str, password: str) -> bool:
        try:
            await self._guard.sign_in(email, password)
        except ClientError as e:
            self._notifier.error(e.message or "Failed to sign in")
            return False
        await self._navigate(TASKS)
        return True


class RegisterView:
    path = REGISTER

    def __init__(self, guard: SessionGuard, notifier: Notifier, navigate: Navigate) -> None:
        self._guard = guard
        self._notifier = notifier
        self._navigate = navigate

    async def enter(self) -> bool:
        return True

    async def submit(self, email: str, password: str, username: str) -> bool:
        """
        Register, then send the user to sign in. Local validation failures and
        gateway refusals each produce one error notification.
        """
        try:
            await self._guard.sign_up(email, password, username)
        except ClientError as e:
            self._notifier.error(e.message or "Failed to create account")
            return False
        self._notifier.success("Registration successful! Please sign in.")
        await self._navigate(LOGIN)
        return True


class TaskListView:
    """
    The protected task list. Rendering is gated by the session guard; once
    allowed, a fresh sync engine is built for the signed-in identity and the
    list is loaded from the store.
    """

    path = TASKS

    def __init__(
        self,
        guard: SessionGuard,
        store: TaskStore,
        notifier: Notifier,
        navigate: Navigate,
    ) -> None:
        self._guard = guard
        self._store = store
        self._notifier = notifier
        self._navigate = navigate
        self.engine: Optional[TaskSyncEngine] = None

    async def enter(self) -> bool:
        self.engine = None
        if not await self._guard.require_session(self._navigate):
            return False

        identity = self._guard.identity
        if identity is None:
            logger.warning("Session established without an identity; redirecting to %s", LOGIN)
            await self._navigate(LOGIN)
            return False
        self.engine = TaskSyncEngine(self._store, identity, self._notifier)
        await self.engine.load()
        return True

    async def sign_out(self) -> None:
        """Sign out and leave the view, even when the remote revoke failed."""
        try:
            await self._guard.sign_out()
        except ClientError as e:
            logger.warning("Sign-out failed (%s): %s", e.kind.value, e.message)
            self._notifier.error("Error signing out")
        self.engine = None
        await self._navigate(LOGIN)
