import pytest

from hotelpms.core.exceptions import DomainError
from hotelpms.models import HousekeepingStatus, HousekeepingTaskType, RoomStatus, UserRole
from hotelpms.services import housekeeping


def test_maintenance_task_blocks_and_releases_room(db_session, room):
    task = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.MAINTENANCE)
    db_session.refresh(room)
    assert room.status == RoomStatus.MAINTENANCE

    housekeeping.update_task(db_session, task, status=HousekeepingStatus.IN_PROGRESS)
    assert task.started_at is not None
    housekeeping.update_task(db_session, task, status=HousekeepingStatus.COMPLETED)
    db_session.refresh(room)
    assert task.completed_at is not None
    assert task.actual_duration >= 1
    assert room.status == RoomStatus.AVAILABLE


def test_cleaning_does_not_free_an_occupied_room(db_session, room):
    room.status = RoomStatus.OCCUPIED
    db_session.commit()
    task = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.CLEANING)
    housekeeping.update_task(db_session, task, status=HousekeepingStatus.COMPLETED)
    db_session.refresh(room)
    assert room.status == RoomStatus.OCCUPIED
    assert room.last_cleaned is not None


def test_completed_tasks_are_final(db_session, room):
    task = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.INSPECTION)
    housekeeping.update_task(db_session, task, status=HousekeepingStatus.COMPLETED)
    with pytest.raises(DomainError):
        housekeeping.update_task(db_session, task, status=HousekeepingStatus.PENDING)


def test_in_progress_task_cannot_be_deleted(db_session, room):
    task = housekeeping.create_task(db_session, room_id=room.id, task_type=HousekeepingTaskType.CLEANING)
    housekeeping.update_task(db_session, task, status=HousekeepingStatus.IN_PROGRESS)
    with pytest.raises(DomainError):
        housekeeping.delete_task(db_session, task)


def test_housekeeper_works_tasks_over_api(client, room, auth_headers):
    headers = auth_headers(UserRole.HOUSEKEEPER)
    resp = client.post(
        "/housekeeping",
        json={"room_id": room.id, "task_type": "cleaning", "priority": "high", "assigned_to": "Maria"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    task_id = resp.json()["id"]

    resp = client.put(f"/housekeeping/{task_id}", json={"status": "in-progress"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "in-progress"

    resp = client.get("/housekeeping", params={"assigned_to": "Maria"}, headers=headers)
    assert len(resp.json()["tasks"]) == 1

    denied = client.post(
        "/housekeeping",
        json={"room_id": room.id, "task_type": "cleaning"},
        headers=auth_headers(UserRole.ACCOUNTANT),
    )
    assert denied.status_code == 403
