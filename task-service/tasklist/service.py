from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from pydantic import ValidationError

from .cache import TaskCache
from .db import TaskDatabase
from .errors import CacheError, OperationResult, StoreError
from .filters import TASK_COLUMNS, FilterCriteria, compile_filter
from .models import TaskCreate, TaskResponse, TaskStats, TaskUpdate
from .pagination import PageRequest

logger = logging.getLogger(__name__)

SELECT_OWNED = f"SELECT {TASK_COLUMNS} FROM tasks WHERE id = ? AND userId = ?"


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class TaskService:
    """
    Owner-scoped task operations over the store and the entity cache.

    Every operation returns an OperationResult; store failures and failed
    cache invalidations are logged and reported as internal errors.
    """

    def __init__(self, db: TaskDatabase, cache: TaskCache, *, max_page_size: int = 100) -> None:
        self.db = db
        self.cache = cache
        self.max_page_size = max_page_size

    async def list_tasks(
        self,
        user_id: str,
        criteria: FilterCriteria,
        page: Any = None,
        limit: Any = None,
    ) -> OperationResult:
        compiled = compile_filter(criteria, user_id)
        bounds = PageRequest.from_query(page, limit, max_limit=self.max_page_size)
        try:
            count_sql, count_params = compiled.count_query()
            row = await self.db.query_one(count_sql, count_params)
            total_items = int(row["count"]) if row else 0

            page_sql, page_params = compiled.page_query(limit=bounds.limit, offset=bounds.offset)
            rows = await self.db.query_many(page_sql, page_params)
        except StoreError:
            logger.exception("list failed user=%s", user_id)
            return OperationResult.internal_error()

        tasks = [TaskResponse.from_row(r).model_dump() for r in rows]
        return OperationResult.ok(tasks, meta=bounds.meta(total_items))

    async def create_task(self, user_id: str, payload: Mapping[str, Any]) -> OperationResult:
        try:
            task = TaskCreate.model_validate(payload)
        except ValidationError as e:
            return OperationResult.invalid(_describe(e))

        task_id = str(uuid.uuid4())
        try:
            await self.db.execute(
                """
                INSERT INTO tasks (id, title, description, completed, priority, category, tags, userId)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    task.title,
                    task.description,
                    1 if task.completed else 0,
                    task.priority,
                    task.category,
                    task.tags,
                    user_id,
                ),
            )
            await self.cache.invalidate_all()
            row = await self.db.query_one(SELECT_OWNED, (task_id, user_id))
        except (StoreError, CacheError):
            logger.exception("create failed user=%s", user_id)
            return OperationResult.internal_error()

        if row is None:
            logger.error("created task vanished id=%s user=%s", task_id, user_id)
            return OperationResult.internal_error()
        logger.info("task created id=%s user=%s", task_id, user_id)
        return OperationResult.ok(TaskResponse.from_row(row).model_dump(), message="Task created")

    async def get_task(self, user_id: str, task_id: str) -> OperationResult:
        cached = await self.cache.lookup(user_id, task_id)
        if cached is not None:
            return OperationResult.ok(cached.model_dump())

        try:
            row = await self.db.query_one(SELECT_OWNED, (task_id, user_id))
        except StoreError:
            logger.exception("read failed id=%s user=%s", task_id, user_id)
            return OperationResult.internal_error()

        # someone else's task looks exactly like a missing one
        if row is None:
            return OperationResult.not_found()

        task = TaskResponse.from_row(row)
        await self.cache.store(user_id, task_id, task)
        return OperationResult.ok(task.model_dump())

    async def update_task(
        self, user_id: str, task_id: str, payload: Mapping[str, Any]
    ) -> OperationResult:
        try:
            changes = TaskUpdate.model_validate(payload).changes()
        except ValidationError as e:
            return OperationResult.invalid(_describe(e))
        if not changes:
            return OperationResult.invalid("no fields to update")

        if "completed" in changes:
            changes["completed"] = 1 if changes["completed"] else 0
        assignments = ", ".join(f"{column} = ?" for column in changes)
        params = (*changes.values(), task_id, user_id)

        try:
            affected = await self.db.execute(
                f"UPDATE tasks SET {assignments} WHERE id = ? AND userId = ?", params
            )
            if affected == 0:
                return OperationResult.not_found()
            await self.cache.invalidate(user_id, task_id)
            await self.cache.invalidate_all()
            row = await self.db.query_one(SELECT_OWNED, (task_id, user_id))
        except (StoreError, CacheError):
            logger.exception("update failed id=%s user=%s", task_id, user_id)
            return OperationResult.internal_error()

        # deleted between the write and the re-read
        if row is None:
            return OperationResult.not_found()
        logger.info("task updated id=%s user=%s fields=%s", task_id, user_id, sorted(changes))
        return OperationResult.ok(TaskResponse.from_row(row).model_dump(), message="Task updated")

    async def delete_task(self, user_id: str, task_id: str) -> OperationResult:
        try:
            affected = await self.db.execute(
                "DELETE FROM tasks WHERE id = ? AND userId = ?", (task_id, user_id)
            )
        except StoreError:
            logger.exception("delete failed id=%s user=%s", task_id, user_id)
            return OperationResult.internal_error()

        if affected == 0:
            return OperationResult.not_found()
        try:
            await self.cache.invalidate(user_id, task_id)
            await self.cache.invalidate_all()
        except CacheError:
            logger.exception("cache invalidation after delete failed id=%s user=%s", task_id, user_id)
            return OperationResult.internal_error()
        logger.info("task deleted id=%s user=%s", task_id, user_id)
        return OperationResult.ok(message="Task deleted")

    async def summary(self, user_id: str) -> OperationResult:
        """Total, completed and pending counts with the completion rate in percent."""
        try:
            row = await self.db.query_one(
                "SELECT COUNT(*) AS total, COALESCE(SUM(completed), 0) AS completed "
                "FROM tasks WHERE userId = ?",
                (user_id,),
            )
        except StoreError:
            logger.exception("summary failed user=%s", user_id)
            return OperationResult.internal_error()

        total = int(row["total"]) if row else 0
        completed = int(row["completed"]) if row else 0
        return OperationResult.ok(TaskStats.from_counts(total, completed).model_dump())
