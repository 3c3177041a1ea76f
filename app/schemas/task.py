"""Pydantic schemas for task request/response validation."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ConfigDict, field_validator

from app.models.task import TITLE_MAX_LENGTH, TaskPriority, TaskStatus
from app.schemas.common import CamelModel


def decode_completed(value: Any) -> bool:
    """The frontend sends completion as "Yes"/"No" or a boolean."""
    return value is True or value == "Yes"


def clean_title(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        if len(value) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # due dates are stored as naive UTC, naive input is taken as UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TaskCreate(CamelModel):
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.LOW
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, value):
        return clean_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value):
        return "" if value is None else value

    @field_validator("completed", mode="before")
    @classmethod
    def _decode_completed(cls, value):
        return decode_completed(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value):
        return to_naive_utc(value)


class TaskUpdate(CamelModel):
    """Partial update: only the fields actually sent are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    @field_validator("title", "priority", "status", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, value):
        return clean_title(value)

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, value):
        return "" if value is None else value

    @field_validator("completed", mode="before")
    @classmethod
    def _decode_completed(cls, value):
        return decode_completed(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value):
        return to_naive_utc(value)


class TaskResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    completed: bool
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class TaskEnvelope(CamelModel):
    success: bool = True
    task: TaskResponse


class TaskListEnvelope(CamelModel):
    success: bool = True
    tasks: List[TaskResponse]


class TitleCheckRequest(CamelModel):
    title: Optional[str] = None
    task_id: Optional[int] = None


class TitleCheckResponse(CamelModel):
    success: bool = True
    is_unique: bool


class TaskStats(CamelModel):
    total: int
    completed: int
    pending: int
    completion_percentage: int


class TaskStatsResponse(CamelModel):
    success: bool = True
    stats: TaskStats
