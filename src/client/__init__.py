"""
Taskpad client.

A session guard that gates the protected task list, and a sync engine that
keeps the local task list equal to the service's rows by reloading after
every mutation.
"""

from .errors import ClientError, ErrorKind
from .guard import SessionGuard
from .models import EditingSession, Identity, Session, SessionState, SessionStatus, Task
from .sync import TaskSyncEngine

__all__ = [
    "ClientError",
    "EditingSession",
    "ErrorKind",
    "Identity",
    "Session",
    "SessionGuard",
    "SessionState",
    "SessionStatus",
    "Task",
    "TaskSyncEngine",
]
