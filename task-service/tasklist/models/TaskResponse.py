from pydantic import BaseModel
from typing import Optional
from .TasksCreate import Priority


class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    priority: Priority
    category: Optional[str] = None
    tags: Optional[str] = None
    userId: str
    createdAt: str

    @classmethod
    def from_row(cls, row) -> "TaskResponse":
        return cls(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            completed=bool(row["completed"]),
            priority=row["priority"],
            category=row["category"],
            tags=row["tags"],
            userId=row["userId"],
            createdAt=str(row["createdAt"]),
        )
