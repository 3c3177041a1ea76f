"""Task service

Every function takes the owner's ``user_id`` right after the session and
filters on it: a task that belongs to someone else is reported exactly like
a task that does not exist.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.task import Task, TaskPriority, TaskStatus, normalize_title
from app.schemas.task import TaskCreate, decode_completed

logger = logging.getLogger(__name__)

DUPLICATE_TITLE_MESSAGE = "A task with this title already exists."
OPEN_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


def reconcile_completion(changes: dict) -> dict:
    """Keep ``completed`` consistent with ``status`` for one set of changes.

    Applied in this order:
      1. a supplied ``completed`` is decoded ("Yes"/True -> True, anything else -> False)
      2. status COMPLETED forces completed=True
      3. status PENDING/IN_PROGRESS forces completed=False, unless
         ``completed`` was supplied in the same changes
    """
    changes = dict(changes)
    if "completed" in changes:
        changes["completed"] = decode_completed(changes["completed"])

    status = changes.get("status")
    if status == TaskStatus.COMPLETED:
        changes["completed"] = True
    elif status in OPEN_STATUSES and "completed" not in changes:
        changes["completed"] = False
    return changes


def _owned(db: Session, user_id: int):
    return db.query(Task).filter(Task.user_id == user_id)


def _commit_or_conflict(db: Session, user_id: int, title: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Duplicate task title for user {user_id}: {title!r}")
        raise ConflictError(DUPLICATE_TITLE_MESSAGE)


def create_task(db: Session, user_id: int, data: TaskCreate) -> Task:
    fields = data.model_dump()
    if "completed" not in data.model_fields_set:
        fields.pop("completed")
    fields = reconcile_completion(fields)

    task = Task(user_id=user_id, **fields)
    db.add(task)
    _commit_or_conflict(db, user_id, task.title)
    db.refresh(task)
    return task


def list_tasks(
    db: Session,
    user_id: int,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
) -> List[Task]:
    query = _owned(db, user_id)
    if status is not None:
        query = query.filter(Task.status == status)
    if priority is not None:
        query = query.filter(Task.priority == priority)
    # newest first; id breaks ties between tasks created in the same instant
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_task(db: Session, user_id: int, task_id: int) -> Task:
    task = _owned(db, user_id).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError("Task not found")
    return task


def update_task(db: Session, user_id: int, task_id: int, changes: dict) -> Task:
    """Merge ``changes`` (only the fields the client sent) into an owned task."""
    task = get_task(db, user_id, task_id)

    for field, value in reconcile_completion(changes).items():
        setattr(task, field, value)

    _commit_or_conflict(db, user_id, task.title)
    db.refresh(task)
    return task


def delete_task(db: Session, user_id: int, task_id: int) -> None:
    task = get_task(db, user_id, task_id)
    db.delete(task)
    db.commit()


def is_title_taken(
    db: Session,
    user_id: int,
    title: Optional[str],
    exclude_task_id: Optional[int] = None,
) -> bool:
    """Read-only probe used for live validation; reserves nothing."""
    if not title or not title.strip():
        raise BadRequestError("Title is required")

    query = _owned(db, user_id).filter(Task.title_key == normalize_title(title))
    if exclude_task_id is not None:
        query = query.filter(Task.id != exclude_task_id)
    return db.query(query.exists()).scalar()


def _zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def _local_today() -> date:
    return datetime.now(_zone()).date()


def _day_start(day: date) -> datetime:
    """Midnight of ``day`` in the configured zone, as naive UTC like ``due_date``."""
    start = datetime.combine(day, time.min, tzinfo=_zone())
    return start.astimezone(timezone.utc).replace(tzinfo=None)


def get_today_tasks(db: Session, user_id: int, today: date = None) -> List[Task]:
    today = today or _local_today()

    return _owned(db, user_id).filter(
        Task.due_date >= _day_start(today),
        Task.due_date < _day_start(today + timedelta(days=1))
    ).order_by(Task.due_date).all()


def get_overdue_tasks(db: Session, user_id: int, today: date = None) -> List[Task]:
    today = today or _local_today()

    return _owned(db, user_id).filter(
        Task.due_date < _day_start(today),
        Task.completed.is_(False)
    ).order_by(Task.due_date).all()


def get_this_week_tasks(db: Session, user_id: int, today: date = None) -> List[Task]:
    """Tasks due from today up to and including the coming Sunday."""
    today = today or _local_today()
    days_until_end = (6 - today.weekday()) % 7
    if days_until_end == 0:
        days_until_end = 7

    week_end = today + timedelta(days=days_until_end)
    return _owned(db, user_id).filter(
        Task.due_date >= _day_start(today),
        Task.due_date < _day_start(week_end + timedelta(days=1))
    ).order_by(Task.due_date).all()


def get_task_stats(db: Session, user_id: int) -> dict:
    total = db.query(func.count(Task.id)).filter(Task.user_id == user_id).scalar()
    completed = db.query(func.count(Task.id)).filter(
        Task.user_id == user_id,
        Task.completed.is_(True)
    ).scalar()
    percentage = round(completed / total * 100) if total else 0

    return {
        "total": total,
        "completed": completed,
        "pending": total - completed,
        "completion_percentage": percentage,
    }
