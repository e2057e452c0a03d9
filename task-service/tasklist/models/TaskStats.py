from pydantic import BaseModel


class TaskStats(BaseModel):
    total: int
    completed: int
    pending: int
    completionRate: float

    @classmethod
    def from_counts(cls, total: int, completed: int) -> "TaskStats":
        rate = round(completed / total * 100, 2) if total else 0
        return cls(
            total=total,
            completed=completed,
            pending=total - completed,
            completionRate=rate,
        )
