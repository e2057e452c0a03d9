import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import redis.asyncio as aioredis
import uvicorn
from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .cache import MemoryTaskCache, RedisTaskCache, TaskCache
from .config import Settings, load_settings
from .db import TaskDatabase
from .errors import INTERNAL_ERROR_MESSAGE, OperationResult, ResultKind
from .filters import FilterCriteria
from .identity import IdentityError, UserDirectory
from .logging_config import configure_logging
from .service import TaskService

SERVICE_NAME = "Task List API"
VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> TaskCache:
    if settings.cache_backend == "redis":
        client = aioredis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        return RedisTaskCache(client, settings.cache_ttl_seconds, prefix=settings.cache_prefix)
    return MemoryTaskCache(settings.cache_ttl_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    configure_logging(settings.log_level)

    db = TaskDatabase(settings.db_path)
    await db.init()
    cache = build_cache(settings)
    app.state.service = TaskService(db, cache, max_page_size=settings.max_page_size)
    app.state.users = UserDirectory(
        settings.user_service_base, timeout=settings.user_service_timeout
    )
    logger.info("%s started cache=%s", SERVICE_NAME, settings.cache_backend)
    try:
        yield
    finally:
        await cache.close()


app = FastAPI(title=SERVICE_NAME, version=VERSION, lifespan=lifespan)


def _respond(result: OperationResult, ok_status: int = 200) -> JSONResponse:
    status = ok_status if result.kind is ResultKind.OK else result.kind.status_code
    return JSONResponse(status_code=status, content=result.to_body())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(IdentityError)
async def identity_error_handler(request: Request, exc: IdentityError):
    return _error(401, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid data")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return _error(exc.status_code, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s", request.url.path)
    return _error(500, INTERNAL_ERROR_MESSAGE)


def get_service(request: Request) -> TaskService:
    return request.app.state.service


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.users


async def current_user(
    x_user_id: Optional[str] = Header(default=None),
    users: UserDirectory = Depends(get_user_directory),
) -> str:
    return await users.resolve(x_user_id)


@app.get("/")
async def root():
    return {"service": SERVICE_NAME, "version": VERSION}


@app.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/tasks")
async def list_tasks(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    completed: Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    tags: Optional[str] = Query(default=None),
    startDate: Optional[str] = Query(default=None),
    endDate: Optional[str] = Query(default=None),
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    criteria = FilterCriteria.from_query(
        completed=completed,
        priority=priority,
        category=category,
        tags=tags,
        start_date=startDate,
        end_date=endDate,
    )
    return _respond(await service.list_tasks(user_id, criteria, page, limit))


@app.post("/tasks", status_code=201)
async def create_task(
    payload: Any = Body(default=None),
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    return _respond(await service.create_task(user_id, payload), ok_status=201)


@app.get("/tasks/stats/summary")
async def stats_summary(
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    return _respond(await service.summary(user_id))


@app.get("/tasks/{task_id}")
async def get_task(
    task_id: str,
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    return _respond(await service.get_task(user_id, task_id))


@app.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    payload: Any = Body(default=None),
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    return _respond(await service.update_task(user_id, task_id, payload))


@app.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    user_id: str = Depends(current_user),
    service: TaskService = Depends(get_service),
):
    return _respond(await service.delete_task(user_id, task_id))


def run() -> None:
    uvicorn.run("tasklist.main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
