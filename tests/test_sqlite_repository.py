from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.service.db import SQLiteRepository
from src.service.schemas import TaskCreate, TaskUpdate


@pytest.fixture()
def repo(tmp_path) -> SQLiteRepository:
    return SQLiteRepository(str(tmp_path / "nested" / "taskpad.db"))


def test_users_are_unique_by_email(repo: SQLiteRepository) -> None:
    user = repo.create_user("a@x.com", "alice", "hash")
    assert user is not None
    assert repo.create_user("a@x.com", "other", "hash") is None
    assert repo.get_user_by_email("a@x.com")["id"] == user["id"]
    assert repo.get_user(user["id"])["username"] == "alice"


def test_sessions_round_trip_and_revoke(repo: SQLiteRepository) -> None:
    expires = datetime.now(timezone.utc) + timedelta(hours=1)
    repo.create_session("u1", "tok", expires)
    session = repo.get_session("tok")
    assert session is not None
    assert session["user_id"] == "u1"
    assert session["expires_at"] == expires
    assert repo.delete_session("tok") is True
    assert repo.get_session("tok") is None
    assert repo.delete_session("tok") is False


def test_tasks_are_scoped_and_ordered(repo: SQLiteRepository) -> None:
    first = repo.create_task("u1", TaskCreate(title="first"))
    second = repo.create_task("u1", TaskCreate(title="second", description="d"))
    repo.create_task("u2", TaskCreate(title="not mine"))

    listed = repo.list_tasks("u1")
    assert [t["id"] for t in listed] == [second["id"], first["id"]]
    assert repo.get_task("u2", first["id"]) is None
    assert repo.delete_task("u2", first["id"]) is False
    assert repo.update_task("u2", first["id"], TaskUpdate(title="x")) is None


def test_update_changes_only_given_fields(repo: SQLiteRepository) -> None:
    task = repo.create_task("u1", TaskCreate(title="t", description="keep"))
    stamp = datetime(2030, 1, 1, tzinfo=timezone.utc)
    updated = repo.update_task("u1", task["id"], TaskUpdate(is_complete=True, updated_at=stamp))
    assert updated is not None
    assert updated["is_complete"] is True
    assert updated["description"] == "keep"
    assert updated["title"] == "t"
    assert updated["updated_at"] == stamp
    assert updated["created_at"] == task["created_at"]

    cleared = repo.update_task("u1", task["id"], TaskUpdate(description=None))
    assert cleared["description"] is None


def test_delete(repo: SQLiteRepository) -> None:
    task = repo.create_task("u1", TaskCreate(title="gone"))
    assert repo.delete_task("u1", task["id"]) is True
    assert repo.list_tasks("u1") == []
