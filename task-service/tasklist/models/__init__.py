from .TasksCreate import PRIORITIES, Priority, TaskCreate, normalize_priority
from .TaskUpdate import TaskUpdate
from .TaskResponse import TaskResponse
from .TaskStats import TaskStats

__all__ = [
    "PRIORITIES",
    "Priority",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskStats",
    "normalize_priority",
]
