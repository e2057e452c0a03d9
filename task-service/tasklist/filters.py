from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from .models import PRIORITIES, normalize_priority

TASK_COLUMNS = "id, title, description, completed, priority, category, tags, userId, createdAt"

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


@dataclass(frozen=True)
class FilterCriteria:
    """Optional constraints narrowing a task listing. All set fields are ANDed."""

    completed: Optional[bool] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_query(
        cls,
        *,
        completed: Any = None,
        priority: Any = None,
        category: Any = None,
        tags: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> "FilterCriteria":
        """
        Build criteria from raw query-string values.

        Values that cannot be coerced are dropped instead of rejected,
        so a malformed filter widens the listing rather than failing it.
        """
        return cls(
            completed=_parse_bool(completed),
            priority=_parse_priority(priority),
            category=_parse_text(category),
            tags=_parse_text(tags),
            start_date=_parse_date(start_date),
            end_date=_parse_date(end_date),
        )


def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return None


def _parse_priority(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    v = normalize_priority(value)
    return v if v in PRIORITIES else None


def _parse_text(value: Any) -> Optional[str]:
    if not isinstance(value, str) or value == "":
        return None
    return value


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class CompiledFilter:
    """
    An owner-scoped predicate as ordered (condition, parameter) pairs.

    The same conditions feed both the page query and the count query,
    so the two always agree on which rows match.
    """

    conditions: tuple[tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def where(self) -> str:
        return " AND ".join(cond for cond, _ in self.conditions)

    @property
    def params(self) -> tuple[Any, ...]:
        return tuple(param for _, param in self.conditions)

    def count_query(self) -> tuple[str, tuple[Any, ...]]:
        return f"SELECT COUNT(*) AS count FROM tasks WHERE {self.where}", self.params

    def page_query(self, *, limit: int, offset: int) -> tuple[str, tuple[Any, ...]]:
        sql = (
            f"SELECT {TASK_COLUMNS} FROM tasks WHERE {self.where} "
            "ORDER BY createdAt DESC, rowid DESC LIMIT ? OFFSET ?"
        )
        return sql, self.params + (limit, offset)


def compile_filter(criteria: FilterCriteria, user_id: str) -> CompiledFilter:
    conditions: list[tuple[str, Any]] = [("userId = ?", user_id)]

    if criteria.completed is not None:
        conditions.append(("completed = ?", 1 if criteria.completed else 0))
    if criteria.priority is not None:
        conditions.append(("priority = ?", criteria.priority))
    if criteria.category is not None:
        conditions.append(("category = ?", criteria.category))
    if criteria.tags is not None:
        # plain substring containment, no LIKE wildcards
        conditions.append(("instr(tags, ?) > 0", criteria.tags))
    if criteria.start_date is not None:
        conditions.append(("date(createdAt) >= date(?)", criteria.start_date.isoformat()))
    if criteria.end_date is not None:
        conditions.append(("date(createdAt) <= date(?)", criteria.end_date.isoformat()))

    return CompiledFilter(tuple(conditions))
