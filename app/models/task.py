"""Task model"""

from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import validates

from app.core.database import Base
from app.models.common import utcnow


class TaskStatus(str, PyEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TaskPriority(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


TITLE_MAX_LENGTH = 255


def normalize_title(title: str) -> str:
    """Key used for the per-owner, case-insensitive title uniqueness."""
    return title.strip().lower()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("user_id", "title_key", name="uq_tasks_owner_title"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    title_key = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(
        Enum(TaskPriority, name="task_priority", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=TaskPriority.LOW,
    )
    status = Column(
        Enum(TaskStatus, name="task_status", native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    completed = Column(Boolean, nullable=False, default=False)
    due_date = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @validates("title")
    def _sync_title_key(self, key, value):
        self.title_key = normalize_title(value)
        return value
