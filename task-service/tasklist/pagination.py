from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# largest OFFSET SQLite can bind
MAX_OFFSET = 2**63 - 1


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_query(cls, page: Any = None, limit: Any = None, *, max_limit: int = 100) -> "PageRequest":
        limit = min(_positive_int(limit, DEFAULT_LIMIT), max_limit)
        page = min(_positive_int(page, DEFAULT_PAGE), MAX_OFFSET // limit + 1)
        return cls(page=page, limit=limit)

    def meta(self, total_items: int) -> dict:
        return {
            "totalItems": total_items,
            "totalPages": total_pages(total_items, self.limit),
            "currentPage": self.page,
            "itemsPerPage": self.limit,
        }


def total_pages(total_items: int, limit: int) -> int:
    if total_items <= 0:
        return 0
    return math.ceil(total_items / limit)
