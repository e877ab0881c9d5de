from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .models import SessionEntity, TaskEntity, UserEntity
from .repositories import Repository, new_id, utcnow
from .schemas import TaskCreate, TaskUpdate


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    owner: str = "owner"
    title: str = "title"
    description: str = "description"
    is_complete: str = "is_complete"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


def _ts(value: datetime) -> str:
    # Fixed-width text keeps lexical order equal to chronological order
    return value.isoformat(timespec="microseconds")


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    username TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    token TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.owner} TEXT NOT NULL,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.is_complete} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_owner_created_at "
                f"ON {_COLS.table}({_COLS.owner}, {_COLS.created_at})"
            )

    def _row_to_user(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": str(row["id"]),
            "email": str(row["email"]),
            "username": str(row["username"]),
            "password_hash": str(row["password_hash"]),
            "created_at": _parse_ts(row["created_at"]),
        }

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_COLS.id]),
            "owner": str(row[_COLS.owner]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description] if row[_COLS.description] is not None else None,
            "is_complete": bool(row[_COLS.is_complete]),
            "created_at": _parse_ts(row[_COLS.created_at]),
            "updated_at": _parse_ts(row[_COLS.updated_at]),
        }

    # Accounts

    def create_user(self, email: str, username: str, password_hash: str) -> Optional[UserEntity]:
        user_id = new_id()
        with self._conn() as conn:
            try:
                conn.execute(
                    "INSERT INTO users (id, email, username, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
                    (user_id, email, username, password_hash, _ts(utcnow())),
                )
            except sqlite3.IntegrityError:
                return None
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            assert row is not None
            return self._row_to_user(row)

    def get_user(self, user_id: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
            return self._row_to_user(row) if row else None

    # Sessions

    def create_session(self, user_id: str, token: str, expires_at: datetime) -> SessionEntity:
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
                (token, user_id, _ts(expires_at)),
            )
        return {"token": token, "user_id": user_id, "expires_at": expires_at}

    def get_session(self, token: str) -> Optional[SessionEntity]:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE token = ?", (token,)).fetchone()
            if not row:
                return None
            return {
                "token": str(row["token"]),
                "user_id": str(row["user_id"]),
                "expires_at": _parse_ts(row["expires_at"]),
            }

    def delete_session(self, token: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
            return cur.rowcount > 0

    # Tasks

    def _select_owned(self, conn: sqlite3.Connection, owner: str, task_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.owner} = ?",
            (task_id, owner),
        ).fetchone()

    def create_task(self, owner: str, data: TaskCreate) -> TaskEntity:
        now = _ts(utcnow())
        task_id = new_id()
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.owner}, {_COLS.title}, {_COLS.description},
                    {_COLS.is_complete}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (task_id, owner, data.title, data.description, now, now),
            )
            row = self._select_owned(conn, owner, task_id)
            assert row is not None
            return self._row_to_entity(row)

    def get_task(self, owner: str, task_id: str) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = self._select_owned(conn, owner, task_id)
            return self._row_to_entity(row) if row else None

    def update_task(self, owner: str, task_id: str, data: TaskUpdate) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = self._select_owned(conn, owner, task_id)
            if not row:
                return None
            current = self._row_to_entity(row)

            title = data.title if data.title is not None else current["title"]
            description = data.description if "description" in data.model_fields_set else current["description"]
            is_complete = data.is_complete if data.is_complete is not None else current["is_complete"]
            updated_at = data.updated_at or utcnow()
            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.is_complete} = ?,
                    {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ? AND {_COLS.owner} = ?
                """,
                (title, description, 1 if is_complete else 0, _ts(updated_at), task_id, owner),
            )
            row2 = self._select_owned(conn, owner, task_id)
            assert row2 is not None
            return self._row_to_entity(row2)

    def delete_task(self, owner: str, task_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.owner} = ?",
                (task_id, owner),
            )
            return cur.rowcount > 0

    def list_tasks(self, owner: str) -> List[TaskEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                WHERE {_COLS.owner} = ?
                ORDER BY {_COLS.created_at} DESC
                """,
                (owner,),
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
