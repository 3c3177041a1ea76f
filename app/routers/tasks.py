from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.task import TaskPriority, TaskStatus
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.task import (
    TaskCreate,
    TaskEnvelope,
    TaskListEnvelope,
    TaskStatsResponse,
    TaskUpdate,
    TitleCheckRequest,
    TitleCheckResponse,
)
from app.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # owner always comes from the token, never from the body
    task = task_service.create_task(db, current_user.id, task_data)
    return {"success": True, "task": task}


@router.get("", response_model=TaskListEnvelope)
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[TaskStatus] = Query(None),
    priority_filter: Optional[TaskPriority] = Query(None)
):
    tasks = task_service.list_tasks(db, current_user.id, status=status_filter, priority=priority_filter)
    return {"success": True, "tasks": tasks}


@router.post("/check-title", response_model=TitleCheckResponse)
def check_title_unique(
    request: TitleCheckRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    taken = task_service.is_title_taken(db, current_user.id, request.title, exclude_task_id=request.task_id)
    return {"success": True, "is_unique": not taken}


@router.get("/today", response_model=TaskListEnvelope)
def today(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "tasks": task_service.get_today_tasks(db, current_user.id)}


@router.get("/overdue", response_model=TaskListEnvelope)
def overdue(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "tasks": task_service.get_overdue_tasks(db, current_user.id)}


@router.get("/this-week", response_model=TaskListEnvelope)
def this_week(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "tasks": task_service.get_this_week_tasks(db, current_user.id)}


@router.get("/stats", response_model=TaskStatsResponse)
def stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "stats": task_service.get_task_stats(db, current_user.id)}


@router.get("/{task_id}", response_model=TaskEnvelope)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "task": task_service.get_task(db, current_user.id, task_id)}


@router.put("/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    changes = task_data.model_dump(exclude_unset=True)
    task = task_service.update_task(db, current_user.id, task_id, changes)
    return {"success": True, "task": task}


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task_service.delete_task(db, current_user.id, task_id)
    return {"success": True, "message": "Task deleted"}
