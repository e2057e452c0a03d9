"""Service settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    db_path: str = "tasks.sqlite3"
    cache_backend: str = "memory"  # "memory" | "redis"
    cache_ttl_seconds: float = 60.0
    cache_prefix: str = "tasklist"
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    user_service_base: Optional[str] = None
    user_service_timeout: float = 5.0
    max_page_size: int = 100
    log_level: str = "INFO"


def load_settings() -> Settings:
    backend = os.getenv("CACHE_BACKEND", "memory").strip().lower()
    if backend not in ("memory", "redis"):
        backend = "memory"
    return Settings(
        db_path=os.getenv("TASKS_DB_PATH", "tasks.sqlite3"),
        cache_backend=backend,
        cache_ttl_seconds=_env_float("CACHE_TTL_SECONDS", 60.0),
        cache_prefix=os.getenv("CACHE_PREFIX", "tasklist"),
        redis_host=os.getenv("REDIS_HOST", "redis"),
        redis_port=_env_int("REDIS_PORT", 6379),
        redis_db=_env_int("REDIS_DB", 0),
        user_service_base=os.getenv("USER_SERVICE_BASE") or None,
        user_service_timeout=_env_float("USER_SERVICE_TIMEOUT", 5.0),
        max_page_size=max(1, _env_int("MAX_PAGE_SIZE", 100)),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
