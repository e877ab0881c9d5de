from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

LOGIN = "/login"
REGISTER = "/register"
TASKS = "/tasks"
HOME = TASKS


class View(Protocol):
    path: str

    async def enter(self) -> bool:
        """Prepare the view. Return False when it redirected elsewhere instead of rendering."""
        ...


class Router:
    """
    Maps paths to views and records what was actually rendered.

    A view only becomes current once its enter() succeeds, so a guarded view
    that redirects never shows up as current, not even briefly. '/' and
    unknown paths go to the task list.
    """

    def __init__(self) -> None:
        self._views: Dict[str, View] = {}
        self.current: Optional[str] = None
        self.history: List[str] = []

    def register(self, view: View) -> None:
        self._views[view.path] = view

    def resolve(self, path: str) -> str:
        normalized = path.rstrip("/") or "/"
        if normalized in self._views:
            return normalized
        return HOME

    async def navigate(self, path: str) -> None:
        target = self.resolve(path)
        if target != path:
            logger.debug("Redirecting %s -> %s", path, target)
        if await self._views[target].enter():
            self.current = target
            self.history.append(target)
