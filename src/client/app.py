from __future__ import annotations

from typing import Optional

import httpx

from .gateway import AuthGateway
from .guard import SessionGuard
from .navigation import Router
from .notify import LogNotifier, Notifier
from .settings import Settings
from .storage import SessionStorage
from .store import TaskStore
from .views import RegisterView, SignInView, TaskListView


class TaskpadApp:
    """
    Wires the client together: one HTTP client, one gateway, one guard and
    the three views behind a router.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        storage: SessionStorage,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.http = http
        self.notifier: Notifier = notifier or LogNotifier()
        self.gateway = AuthGateway(http, storage)
        self.store = TaskStore(http, self.gateway)
        self.guard = SessionGuard(self.gateway)

        self.router = Router()
        self.sign_in = SignInView(self.guard, self.notifier, self.router.navigate)
        self.register = RegisterView(self.guard, self.notifier, self.router.navigate)
        self.tasks = TaskListView(self.guard, self.store, self.notifier, self.router.navigate)
        for view in (self.sign_in, self.register, self.tasks):
            self.router.register(view)

    @classmethod
    def from_settings(cls, settings: Settings, notifier: Optional[Notifier] = None) -> "TaskpadApp":
        # No timeout: remote calls are always awaited to completion
        http = httpx.AsyncClient(base_url=settings.api_url, timeout=None)
        return cls(http, SessionStorage(settings.session_file), notifier)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "TaskpadApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
