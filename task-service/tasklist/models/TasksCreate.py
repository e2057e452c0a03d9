from typing import Annotated, Optional, Literal
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def normalize_priority(value):
    # "High", " high " and "high" are the same priority everywhere
    if isinstance(value, str):
        return value.strip().lower()
    return value


PRIORITIES = ("low", "medium", "high")
Priority = Annotated[Literal["low", "medium", "high"], BeforeValidator(normalize_priority)]


class TaskCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: Optional[str] = None
    completed: bool = False
    priority: Priority
    category: Optional[str] = None
    tags: Optional[str] = None
