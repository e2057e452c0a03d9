from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResultKind(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    INTERNAL_ERROR = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ResultKind.OK: 200,
    ResultKind.NOT_FOUND: 404,
    ResultKind.INVALID_INPUT: 400,
    ResultKind.INTERNAL_ERROR: 500,
}

NOT_FOUND_MESSAGE = "Task not found"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class StoreError(Exception):
    """Raised when the underlying task store fails to run a statement."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class CacheError(Exception):
    """Raised when the cache cannot drop an entry after a write."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


@dataclass
class OperationResult:
    """Outcome of one task operation, ready for the transport layer."""

    kind: ResultKind
    message: Optional[str] = None
    data: Any = None
    meta: Optional[dict] = None

    @property
    def success(self) -> bool:
        return self.kind is ResultKind.OK

    def to_body(self) -> dict:
        body: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            body["message"] = self.message
        if self.data is not None:
            body["data"] = self.data
        if self.meta is not None:
            body["meta"] = self.meta
        return body

    @classmethod
    def ok(cls, data: Any = None, *, message: Optional[str] = None, meta: Optional[dict] = None):
        return cls(ResultKind.OK, message=message, data=data, meta=meta)

    @classmethod
    def not_found(cls):
        return cls(ResultKind.NOT_FOUND, message=NOT_FOUND_MESSAGE)

    @classmethod
    def invalid(cls, detail: str):
        return cls(ResultKind.INVALID_INPUT, message=f"Invalid data: {detail}")

    @classmethod
    def internal_error(cls):
        return cls(ResultKind.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)
