from __future__ import annotations

import os
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.client.app import TaskpadApp  # noqa: E402
from src.client.storage import SessionStorage  # noqa: E402
from src.service.main import create_app  # noqa: E402
from src.service.repositories import InMemoryRepository  # noqa: E402
from src.service.settings import Settings  # noqa: E402

from .fakes import RecordingNotifier  # noqa: E402


@pytest.fixture()
def service_settings() -> Settings:
    return Settings(
        persistence_backend="memory",
        sqlite_db_path="",
        cors_allow_origins=["*"],
        session_ttl_seconds=3600,
        host="127.0.0.1",
        port=8000,
    )


@pytest.fixture()
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def service(repository: InMemoryRepository, service_settings: Settings) -> FastAPI:
    """A fresh in-process service per test."""
    return create_app(repository=repository, settings=service_settings)


@pytest_asyncio.fixture()
async def http(service: FastAPI):
    """httpx client talking to the in-process service over ASGI."""
    transport = httpx.ASGITransport(app=service)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def session_file(tmp_path: Path) -> Path:
    return tmp_path / "session.json"


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def client_app(http: httpx.AsyncClient, session_file: Path, notifier: RecordingNotifier) -> TaskpadApp:
    """The full client wired to the in-process service."""
    return TaskpadApp(http, SessionStorage(session_file), notifier)
