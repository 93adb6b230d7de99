import logging
from typing import Optional

from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError, NotFoundError
from hotelpms.models import (
    HousekeepingStatus,
    HousekeepingTask,
    HousekeepingTaskType,
    Priority,
    Room,
    RoomStatus,
)
from hotelpms.utils.dates import as_utc, utcnow

logger = logging.getLogger("hotelpms.housekeeping")

# Allowed status moves; completed tasks are final
TRANSITIONS = {
    HousekeepingStatus.PENDING: {HousekeepingStatus.IN_PROGRESS, HousekeepingStatus.COMPLETED},
    HousekeepingStatus.IN_PROGRESS: {HousekeepingStatus.PENDING, HousekeepingStatus.COMPLETED},
    HousekeepingStatus.COMPLETED: set(),
}


def create_task(
    db: Session,
    *,
    room_id: int,
    task_type: HousekeepingTaskType,
    priority: Priority = Priority.MEDIUM,
    assigned_to: Optional[str] = None,
    notes: Optional[str] = None,
    estimated_duration: int = 30,
) -> HousekeepingTask:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise NotFoundError("Room not found")
    task = HousekeepingTask(
        room=room,
        task_type=task_type,
        priority=priority,
        assigned_to=assigned_to,
        notes=notes,
        estimated_duration=estimated_duration,
        status=HousekeepingStatus.PENDING,
    )
    if task_type == HousekeepingTaskType.MAINTENANCE and room.status == RoomStatus.AVAILABLE:
        room.status = RoomStatus.MAINTENANCE
        db.add(room)
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Housekeeping task %s (%s) created for room %s", task.id, task_type.value, room.number)
    return task


def update_task(
    db: Session,
    task: HousekeepingTask,
    *,
    status: Optional[HousekeepingStatus] = None,
    actual_duration: Optional[int] = None,
    **changes,
) -> HousekeepingTask:
    if task.status == HousekeepingStatus.COMPLETED and (changes or status):
        raise DomainError("Completed tasks cannot be modified")

    for field, value in changes.items():
        setattr(task, field, value)
    if actual_duration is not None:
        task.actual_duration = actual_duration

    if status is not None and status != task.status:
        if status not in TRANSITIONS[task.status]:
            raise DomainError(f"Cannot move task from {task.status.value} to {status.value}")
        now = utcnow()
        if status == HousekeepingStatus.IN_PROGRESS:
            task.started_at = now
        elif status == HousekeepingStatus.COMPLETED:
            task.completed_at = now
            if task.actual_duration is None and task.started_at:
                elapsed = now - as_utc(task.started_at)
                task.actual_duration = max(1, int(elapsed.total_seconds() // 60))
            _release_room(task, now)
        task.status = status

    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def _release_room(task: HousekeepingTask, now) -> None:
    room = task.room
    if task.task_type == HousekeepingTaskType.CLEANING:
        room.last_cleaned = now
        if room.status == RoomStatus.CLEANING:
            room.status = RoomStatus.AVAILABLE
    elif task.task_type == HousekeepingTaskType.MAINTENANCE:
        if room.status == RoomStatus.MAINTENANCE:
            room.status = RoomStatus.AVAILABLE
    logger.info("Room %s released after %s task %s", room.number, task.task_type.value, task.id)


def delete_task(db: Session, task: HousekeepingTask) -> None:
    if task.status == HousekeepingStatus.IN_PROGRESS:
        raise DomainError("Cannot delete a task that is in progress")
    db.delete(task)
    db.commit()
