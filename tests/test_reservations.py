from datetime import timedelta
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import ConflictError, DomainError
from hotelpms.models import (
    HousekeepingStatus,
    HousekeepingTask,
    ReservationStatus,
    RoomStatus,
    UserRole,
)
from hotelpms.services import reservations


def _book(db, guest, room, check_in, check_out):
    return reservations.create_reservation(
        db, guest_id=guest.id, room_id=room.id, check_in_date=check_in, check_out_date=check_out
    )


def test_total_is_nights_times_price(db_session, guest, room, stay_dates):
    res = _book(db_session, guest, room, *stay_dates)
    assert res.status == ReservationStatus.CONFIRMED
    assert res.total_amount == Decimal("300.00")


def test_checkout_must_follow_checkin(db_session, guest, room, stay_dates):
    check_in, _ = stay_dates
    with pytest.raises(DomainError):
        _book(db_session, guest, room, check_in, check_in)


def test_overlapping_booking_conflicts(db_session, guest, room, stay_dates):
    check_in, check_out = stay_dates
    _book(db_session, guest, room, check_in, check_out)
    with pytest.raises(ConflictError):
        _book(db_session, guest, room, check_in + timedelta(days=1), check_out + timedelta(days=1))


def test_back_to_back_stays_are_allowed(db_session, guest, room, stay_dates):
    check_in, check_out = stay_dates
    _book(db_session, guest, room, check_in, check_out)
    follow_up = _book(db_session, guest, room, check_out, check_out + timedelta(days=2))
    assert follow_up.id is not None


def test_cancelled_reservation_frees_the_room(db_session, guest, room, stay_dates):
    first = _book(db_session, guest, room, *stay_dates)
    reservations.cancel(db_session, first)
    second = _book(db_session, guest, room, *stay_dates)
    assert second.status == ReservationStatus.CONFIRMED


def test_room_under_maintenance_cannot_be_booked(db_session, guest, room, stay_dates):
    room.status = RoomStatus.MAINTENANCE
    db_session.commit()
    with pytest.raises(DomainError):
        _book(db_session, guest, room, *stay_dates)


def test_check_in_and_out_lifecycle(db_session, guest, room, stay_dates):
    res = _book(db_session, guest, room, *stay_dates)

    reservations.check_in(db_session, res)
    db_session.refresh(room)
    db_session.refresh(guest)
    assert res.status == ReservationStatus.CHECKED_IN
    assert room.status == RoomStatus.OCCUPIED
    assert guest.total_stays == 1
    assert guest.total_spent == Decimal("300.00")

    with pytest.raises(DomainError):
        reservations.cancel(db_session, res)

    reservations.check_out(db_session, res)
    db_session.refresh(room)
    assert res.status == ReservationStatus.CHECKED_OUT
    assert room.status == RoomStatus.CLEANING
    task = db_session.query(HousekeepingTask).filter(HousekeepingTask.reservation_id == res.id).one()
    assert task.status == HousekeepingStatus.PENDING


def test_rebooking_recomputes_total(db_session, guest, room, stay_dates):
    check_in, _ = stay_dates
    res = _book(db_session, guest, room, *stay_dates)
    reservations.update_reservation(db_session, res, check_out_date=check_in + timedelta(days=5))
    assert res.total_amount == Decimal("500.00")


def test_available_rooms_excludes_booked(db_session, guest, room, stay_dates):
    _book(db_session, guest, room, *stay_dates)
    assert reservations.available_rooms(db_session, *stay_dates) == []


def test_reservation_api_flow(client, guest, room, stay_dates, auth_headers):
    headers = auth_headers(UserRole.RECEPTIONIST)
    check_in, check_out = stay_dates
    resp = client.post(
        "/reservations",
        json={
            "guest_id": guest.id,
            "room_id": room.id,
            "check_in_date": check_in.isoformat(),
            "check_out_date": check_out.isoformat(),
            "adults": 2,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["nights"] == 3
    assert body["room"]["number"] == "101"

    dup = client.post(
        "/reservations",
        json={
            "guest_id": guest.id,
            "room_id": room.id,
            "check_in_date": check_in.isoformat(),
            "check_out_date": check_out.isoformat(),
        },
        headers=headers,
    )
    assert dup.status_code == 409

    resp = client.post(f"/reservations/{body['id']}/check-in", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "checked-in"

    resp = client.get("/reservations", params={"status": "checked-in"}, headers=headers)
    assert resp.json()["pagination"]["total_count"] == 1


def test_housekeeper_cannot_create_reservation(client, guest, room, stay_dates, auth_headers):
    check_in, check_out = stay_dates
    resp = client.post(
        "/reservations",
        json={
            "guest_id": guest.id,
            "room_id": room.id,
            "check_in_date": check_in.isoformat(),
            "check_out_date": check_out.isoformat(),
        },
        headers=auth_headers(UserRole.HOUSEKEEPER),
    )
    assert resp.status_code == 403
