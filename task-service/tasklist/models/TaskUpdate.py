from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from .TasksCreate import Priority


class TaskUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    tags: Optional[str] = None

    @field_validator("title", "completed", "priority")
    @classmethod
    def not_null(cls, value):
        # description/category/tags may be cleared, these columns may not
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
