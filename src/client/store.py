from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter

from .errors import ErrorKind, decode_body, from_response, from_transport
from .gateway import AuthGateway, require_token
from .models import Task

logger = logging.getLogger(__name__)

TASKS_URL = "/api/v1/tasks"

_TASK_LIST = TypeAdapter(List[Task])


class TaskStore:
    """
    HTTP adapter for the service's task rows.

    Every call is scoped to the signed-in account through its bearer token.
    Failures raise ClientError of kind STORE (status 404 for a row that is
    missing or not owned by the caller) or NETWORK.
    """

    def __init__(self, http: httpx.AsyncClient, gateway: AuthGateway) -> None:
        self._http = http
        self._gateway = gateway

    async def _request(
        self,
        method: str,
        url: str,
        fallback: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        expected: int = 200,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {require_token(self._gateway)}"}
        try:
            response = await self._http.request(method, url, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Store request %s %s failed: %s", method, url, e)
            raise from_transport(e) from e
        if response.status_code != expected:
            raise from_response(ErrorKind.STORE, response, fallback)
        return response

    async def list_tasks(self) -> List[Task]:
        """All of the caller's tasks, newest first by created_at."""
        response = await self._request("GET", TASKS_URL, "Error fetching tasks")
        return decode_body(ErrorKind.STORE, response, "Error fetching tasks", _TASK_LIST.validate_python)

    async def insert_task(self, title: str, description: Optional[str], owner: str) -> Task:
        response = await self._request(
            "POST",
            TASKS_URL,
            "Error creating task",
            json={"title": title, "description": description, "owner": owner},
            expected=201,
        )
        return decode_body(ErrorKind.STORE, response, "Error creating task", Task.model_validate)

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> None:
        await self._request("PATCH", f"{TASKS_URL}/{task_id}", "Error updating task", json=fields)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"{TASKS_URL}/{task_id}", "Error deleting task", expected=204)
