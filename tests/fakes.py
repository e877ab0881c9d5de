from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

from src.client.errors import ClientError, ErrorKind
from src.client.models import Identity, Session, Task

ALICE = Identity(id="u-alice", username="alice", email="a@x.com")
BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_session(user: Identity = ALICE, expires_in: timedelta = timedelta(hours=1)) -> Session:
    return Session(
        access_token=f"token-{user.id}",
        expires_at=datetime.now(timezone.utc) + expires_in,
        user=user,
    )


class RecordingNotifier:
    """Notifier that keeps every message for assertions."""

    def __init__(self) -> None:
        self.successes: List[str] = []
        self.errors: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeGateway:
    """
    Scriptable stand-in for AuthGateway.

    - `session` is what get_current_session returns
    - `error` is raised by every call when set
    - `sign_out_error` is raised by sign_out only
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.session = session
        self.error = error
        self.sign_out_error: Optional[BaseException] = None
        self.calls: List[str] = []

    async def get_current_session(self) -> Optional[Session]:
        self.calls.append("get_current_session")
        if self.error is not None:
            raise self.error
        return self.session

    async def sign_up(self, email: str, password: str, username: str) -> Identity:
        self.calls.append("sign_up")
        if self.error is not None:
            raise self.error
        return Identity(id="u-new", username=username, email=email)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        self.calls.append("sign_in_with_password")
        if self.error is not None:
            raise self.error
        self.session = make_session(Identity(id="u-alice", username="alice", email=email))
        return self.session

    async def sign_out(self) -> None:
        self.calls.append("sign_out")
        self.session = None
        if self.sign_out_error is not None:
            raise self.sign_out_error


class FakeTaskStore:
    """
    In-memory TaskStore used for sync engine unit tests.

    Every call is recorded in `calls`. Method names put into `fail` raise a
    STORE error. With `hold_lists` set, list_tasks takes its snapshot
    immediately but only returns once the test resolves the matching future
    in `pending_lists`, which lets a test choose the order reloads land in.
    """

    def __init__(self, owner: str = ALICE.id) -> None:
        self.owner = owner
        self.rows: Dict[str, Task] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self.fail: Set[str] = set()
        self.hold_lists = False
        self.pending_lists: List[asyncio.Future] = []
        self._seq = 0

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise ClientError(ErrorKind.STORE, f"{name} failed", status=500)

    def seed(self, title: str, description: Optional[str] = None, is_complete: bool = False) -> Task:
        self._seq += 1
        stamp = BASE_TIME + timedelta(seconds=self._seq)
        task = Task(
            id=f"t{self._seq}",
            owner=self.owner,
            title=title.strip(),
            description=description,
            is_complete=is_complete,
            created_at=stamp,
            updated_at=stamp,
        )
        self.rows[task.id] = task
        return task

    def snapshot(self) -> List[Task]:
        return sorted(self.rows.values(), key=lambda t: t.created_at, reverse=True)

    async def list_tasks(self) -> List[Task]:
        self.calls.append(("list_tasks",))
        self._maybe_fail("list_tasks")
        snapshot = self.snapshot()
        if self.hold_lists:
            waiter = asyncio.get_running_loop().create_future()
            self.pending_lists.append(waiter)
            await waiter
        return snapshot

    async def insert_task(self, title: str, description: Optional[str], owner: str) -> Task:
        self.calls.append(("insert_task", title, description, owner))
        self._maybe_fail("insert_task")
        return self.seed(title, description)

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> None:
        self.calls.append(("update_task", task_id, dict(fields)))
        self._maybe_fail("update_task")
        if task_id not in self.rows:
            raise ClientError(ErrorKind.STORE, "Task not found", status=404)
        changes = dict(fields)
        if "updated_at" in changes:
            changes["updated_at"] = datetime.fromisoformat(changes["updated_at"])
        self.rows[task_id] = self.rows[task_id].model_copy(update=changes)

    async def delete_task(self, task_id: str) -> None:
        self.calls.append(("delete_task", task_id))
        self._maybe_fail("delete_task")
        if self.rows.pop(task_id, None) is None:
            raise ClientError(ErrorKind.STORE, "Task not found", status=404)

    def remote_calls(self, name: str) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]


async def settle(rounds: int = 10) -> None:
    """Let scheduled coroutines run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)
