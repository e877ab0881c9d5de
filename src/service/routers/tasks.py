from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..auth import get_current_user, get_repo
from ..models import UserEntity
from ..repositories import Repository
from ..schemas import TaskCreate, TaskOut, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="List every task owned by the authenticated account, newest first by created_at.",
    responses={
        200: {"description": "List retrieved successfully"},
        401: {"description": "Not authenticated"},
    },
)
def list_tasks(
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> List[TaskOut]:
    """
    List the caller's tasks.
    """
    return [TaskOut(**it) for it in repo.list_tasks(user["id"])]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task owned by the authenticated account and return it.",
    responses={
        201: {"description": "Task created successfully"},
        403: {"description": "Owner is not the authenticated account"},
    },
)
def create_task(
    payload: TaskCreate,
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> TaskOut:
    """
    Create a new task. A row may only be inserted for the caller itself.
    """
    if payload.owner is not None and payload.owner != user["id"]:
        logger.warning("Rejected insert for owner=%s by user=%s", payload.owner, user["id"])
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="new row violates row-level security policy for table \"tasks\"",
        )
    created = repo.create_task(user["id"], payload)
    return TaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(
    task_id: str,
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> TaskOut:
    """
    Retrieve a single task by its ID.
    """
    item = repo.get_task(user["id"], task_id)
    if not item:
        raise _not_found()
    return TaskOut(**item)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Partially update fields of a task.",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def patch_task(
    task_id: str,
    payload: TaskUpdate,
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> TaskOut:
    """
    Partial update of a task.
    """
    updated = repo.update_task(user["id"], task_id, payload)
    if not updated:
        raise _not_found()
    return TaskOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: str,
    user: UserEntity = Depends(get_current_user),
    repo: Repository = Depends(get_repo),
) -> None:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    if not repo.delete_task(user["id"], task_id):
        raise _not_found()
    return None
