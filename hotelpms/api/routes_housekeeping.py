from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hotelpms.api.deps import Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import (
    HousekeepingStatus,
    HousekeepingTask,
    HousekeepingTaskType,
    Priority,
    User,
    UserRole,
)
from hotelpms.services import housekeeping as housekeeping_service

router = APIRouter(prefix="/housekeeping", tags=["housekeeping"])
require_housekeeping = require_roles(
    UserRole.ADMIN, UserRole.MANAGER, UserRole.RECEPTIONIST, UserRole.HOUSEKEEPER
)


class TaskCreate(BaseModel):
    room_id: int
    task_type: HousekeepingTaskType
    priority: Priority = Priority.MEDIUM
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    estimated_duration: int = Field(default=30, ge=1)


class TaskUpdate(BaseModel):
    status: Optional[HousekeepingStatus] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    estimated_duration: Optional[int] = Field(default=None, ge=1)
    actual_duration: Optional[int] = Field(default=None, ge=0)


def serialize_task(task: HousekeepingTask) -> dict:
    return {
        "id": task.id,
        "room": {"id": task.room.id, "number": task.room.number, "status": task.room.status.value},
        "reservation_id": task.reservation_id,
        "task_type": task.task_type.value,
        "status": task.status.value,
        "priority": task.priority.value,
        "assigned_to": task.assigned_to,
        "notes": task.notes,
        "estimated_duration": task.estimated_duration,
        "actual_duration": task.actual_duration,
        "started_at": task.started_at.isoformat() if task.started_at else None,
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
        "created_at": task.created_at.isoformat() if task.created_at else None,
    }


@router.get("")
def list_tasks(
    status: Optional[HousekeepingStatus] = None,
    task_type: Optional[HousekeepingTaskType] = None,
    priority: Optional[Priority] = None,
    room_id: Optional[int] = None,
    assigned_to: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    query = db.query(HousekeepingTask)
    if status:
        query = query.filter(HousekeepingTask.status == status)
    if task_type:
        query = query.filter(HousekeepingTask.task_type == task_type)
    if priority:
        query = query.filter(HousekeepingTask.priority == priority)
    if room_id:
        query = query.filter(HousekeepingTask.room_id == room_id)
    if assigned_to:
        query = query.filter(HousekeepingTask.assigned_to == assigned_to)
    tasks, meta = pagination.apply(query.order_by(HousekeepingTask.id.desc()))
    return {"tasks": [serialize_task(t) for t in tasks], "pagination": meta}


@router.get("/{task_id}")
def get_task(task_id: int, db: Session = Depends(get_db), _user: User = Depends(require_staff)):
    return serialize_task(get_or_404(db, HousekeepingTask, task_id, "Task"))


@router.post("", status_code=201)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_housekeeping),
):
    return serialize_task(housekeeping_service.create_task(db, **payload.model_dump()))


@router.put("/{task_id}")
def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_housekeeping),
):
    task = get_or_404(db, HousekeepingTask, task_id, "Task")
    task = housekeeping_service.update_task(db, task, **payload.model_dump(exclude_unset=True))
    return serialize_task(task)


@router.delete("/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db), _user: User = Depends(require_housekeeping)):
    task = get_or_404(db, HousekeepingTask, task_id, "Task")
    housekeeping_service.delete_task(db, task)
    return {"success": True}
