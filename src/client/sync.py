from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .errors import ClientError
from .models import ComposeDraft, EditingSession, Identity, Task
from .notify import Notifier
from .store import TaskStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskSyncEngine:
    """
    The single path through which the task list is mutated.

    Every mutation is a round trip to the store followed by a full reload;
    the local list is replaced wholesale by what the store returns and is
    never patched in place. Operations are not queued against each other:
    when two are in flight, whichever reload resolves last is what stays
    displayed.

    Remote failures never escape: each one is logged and turns into exactly
    one error notification, and the user's input (compose fields, edit
    draft) is kept so nothing typed is lost.

    State:
        tasks: the last successfully fetched snapshot, newest first.
        loading: True until the first load settles.
        compose: fields of the new-task form.
        editing: the one task being edited, if any.
    """

    def __init__(
        self,
        store: TaskStore,
        owner: Identity,
        notifier: Notifier,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._owner = owner
        self._notifier = notifier
        self._clock = clock

        self.tasks: List[Task] = []
        self.loading = True
        self.compose = ComposeDraft()
        self.editing: Optional[EditingSession] = None

    @property
    def owner(self) -> Identity:
        return self._owner

    def find(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _stamp(self) -> str:
        return self._clock().isoformat()

    def _report(self, message: str, exc: ClientError) -> None:
        logger.warning("%s (%s): %s", message, exc.kind.value, exc.message)
        self._notifier.error(message)

    async def load(self) -> List[Task]:
        """
        Replace the local list with the store's current rows.

        On failure the previous list stays as it was. The loading flag is
        cleared either way.
        """
        try:
            tasks = await self._store.list_tasks()
        except ClientError as e:
            self._report("Error fetching tasks", e)
            return self.tasks
        finally:
            self.loading = False

        self.tasks = tasks
        if self.editing is not None and self.find(self.editing.id) is None:
            logger.debug("Dropping draft for vanished task id=%s", self.editing.id)
            self.editing = None
        return self.tasks

    async def create(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        """
        Submit the compose fields as a new task.

        Arguments, when given, overwrite the compose fields first. A blank
        title is ignored without a remote call or a notification.
        """
        if title is not None:
            self.compose.title = title
        if description is not None:
            self.compose.description = description
        if not self.compose.title.strip():
            return

        try:
            await self._store.insert_task(self.compose.title, self.compose.description, self._owner.id)
        except ClientError as e:
            self._report("Error creating task", e)
            return

        self.compose.clear()
        self._notifier.success("Task created")
        await self.load()

    async def update(self, task_id: str, title: str, description: Optional[str]) -> None:
        """Write title and description, stamped with the current time."""
        fields = {"title": title, "description": description, "updated_at": self._stamp()}
        try:
            await self._store.update_task(task_id, fields)
        except ClientError as e:
            self._report("Error updating task", e)
            return

        if self.editing is not None and self.editing.id == task_id:
            self.editing = None
        self._notifier.success("Task updated")
        await self.load()

    async def save_edit(self) -> None:
        """Commit the current draft, if there is one."""
        draft = self.editing
        if draft is None:
            return
        await self.update(draft.id, draft.title, draft.description)

    async def toggle_complete(self, task: Task) -> None:
        """
        Flip the completion flag of `task`.

        Known race: the new value is computed from the flag on the local
        snapshot, not re-read from the store. Two toggles issued before the
        first one's reload lands both write the same value, so the second
        is lost.
        """
        fields = {"is_complete": not task.is_complete, "updated_at": self._stamp()}
        try:
            await self._store.update_task(task.id, fields)
        except ClientError as e:
            self._report("Error updating task", e)
            return
        await self.load()

    async def remove(self, task_id: str) -> None:
        """
        Delete a task.

        A draft for the same task is dropped as soon as the delete is issued,
        whatever its outcome.
        """
        if self.editing is not None and self.editing.id == task_id:
            self.editing = None

        try:
            await self._store.delete_task(task_id)
        except ClientError as e:
            self._report("Error deleting task", e)
            return

        self._notifier.success("Task deleted")
        await self.load()

    def start_edit(self, task: Task) -> None:
        """Open a draft for `task`, silently discarding any other unsaved draft."""
        if self.find(task.id) is None:
            logger.warning("Refusing to edit task id=%s: not in the current list", task.id)
            return
        self.editing = EditingSession.of(task)

    def edit_draft(self, title: Optional[str] = None, description: Optional[str] = None) -> None:
        if self.editing is None:
            return
        if title is not None:
            self.editing.title = title
        if description is not None:
            self.editing.description = description

    def cancel_edit(self) -> None:
        self.editing = None
