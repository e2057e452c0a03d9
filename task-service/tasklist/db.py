from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from .errors import StoreError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tasks (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    description TEXT,
    completed   INTEGER NOT NULL DEFAULT 0,
    priority    TEXT NOT NULL,
    category    TEXT,
    tags        TEXT,
    userId      TEXT NOT NULL,
    createdAt   TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(userId, createdAt);
"""

Params = Sequence[Any]


class TaskDatabase:
    """
    SQLite task store reached only through parameterized statements.

    Each call opens its own connection and runs on the thread pool,
    so the event loop suspends once per statement.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)

    @property
    def path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_sync(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        finally:
            conn.close()

    def _execute_sync(self, sql: str, params: Params) -> int:
        conn = self._connect()
        try:
            cur = conn.execute(sql, tuple(params))
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    def _query_one_sync(self, sql: str, params: Params) -> Optional[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(sql, tuple(params)).fetchone()
        finally:
            conn.close()

    def _query_many_sync(self, sql: str, params: Params) -> list[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(sql, tuple(params)).fetchall()
        finally:
            conn.close()

    async def init(self) -> None:
        await self._run(self._init_sync)
        logger.info("TaskDatabase ready db=%s", self._db_path)

    async def execute(self, sql: str, params: Params = ()) -> int:
        """Run a write statement, return the number of rows affected."""
        return await self._run(self._execute_sync, sql, params)

    async def query_one(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return await self._run(self._query_one_sync, sql, params)

    async def query_many(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return await self._run(self._query_many_sync, sql, params)

    @staticmethod
    async def _run(func, *args):
        try:
            return await run_in_threadpool(func, *args)
        except sqlite3.Error as e:
            raise StoreError(f"task store failure: {e}", cause=e) from e
