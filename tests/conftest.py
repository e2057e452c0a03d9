from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tasklist.cache import MemoryTaskCache
from tasklist.db import TaskDatabase
from tasklist.main import app
from tasklist.service import TaskService

from .fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db(tmp_path: Path) -> TaskDatabase:
    database = TaskDatabase(tmp_path / "tasks.sqlite3")
    asyncio.run(database.init())
    return database


@pytest.fixture
def cache(clock: FakeClock) -> MemoryTaskCache:
    return MemoryTaskCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def service(db: TaskDatabase, cache: MemoryTaskCache) -> TaskService:
    return TaskService(db, cache, max_page_size=100)


@pytest.fixture
def client(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TASKS_DB_PATH", str(tmp_path / "api.sqlite3"))
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.delenv("USER_SERVICE_BASE", raising=False)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
