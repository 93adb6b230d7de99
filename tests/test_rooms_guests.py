from datetime import timedelta
from decimal import Decimal

import pytest

from hotelpms.models import Room, RoomStatus, RoomType, UserRole
from hotelpms.services import reservations


@pytest.fixture()
def suite(db_session):
    r = Room(number="301", floor=3, room_type=RoomType.SUITE, status=RoomStatus.AVAILABLE, price=Decimal("250.00"))
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


def _book(db, guest, room, stay_dates):
    return reservations.create_reservation(
        db, guest_id=guest.id, room_id=room.id, check_in_date=stay_dates[0], check_out_date=stay_dates[1]
    )


def test_room_create_and_duplicate_number(client, auth_headers):
    headers = auth_headers(UserRole.RECEPTIONIST)
    payload = {"number": "201", "floor": 2, "room_type": "deluxe", "price": "180.00", "amenities": ["wifi", "minibar"]}
    resp = client.post("/rooms", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "available"
    assert body["price"] == 180.0

    dup = client.post("/rooms", json=payload, headers=headers)
    assert dup.status_code == 409

    listed = client.get("/rooms", params={"room_type": "deluxe"}, headers=headers)
    assert [r["number"] for r in listed.json()["rooms"]] == ["201"]


def test_room_delete_blocked_by_active_reservation(client, db_session, room, suite, guest, stay_dates, auth_headers):
    _book(db_session, guest, room, stay_dates)
    headers = auth_headers(UserRole.MANAGER)

    blocked = client.delete(f"/rooms/{room.id}", headers=headers)
    assert blocked.status_code == 409
    assert blocked.json()["detail"] == "Room has active reservations"

    assert client.delete(f"/rooms/{suite.id}", headers=headers).json() == {"success": True}
    assert db_session.get(Room, suite.id) is None


def test_room_edits_limited_to_front_desk_and_housekeeping(client, room, auth_headers):
    resp = client.put(f"/rooms/{room.id}", json={"status": "cleaning"}, headers=auth_headers(UserRole.HOUSEKEEPER))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cleaning"

    for role in (UserRole.ACCOUNTANT, UserRole.HR):
        denied = client.put(f"/rooms/{room.id}", json={"price": "1.00"}, headers=auth_headers(role))
        assert denied.status_code == 403


def test_available_rooms_endpoint(client, db_session, room, suite, guest, stay_dates, auth_headers):
    _book(db_session, guest, room, stay_dates)
    check_in, check_out = stay_dates
    headers = auth_headers(UserRole.RECEPTIONIST)

    resp = client.get(
        "/rooms/available",
        params={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
        headers=headers,
    )
    assert resp.status_code == 200
    assert [r["number"] for r in resp.json()["rooms"]] == ["301"]

    # Arriving on the day the current guest leaves
    resp = client.get(
        "/rooms/available",
        params={"check_in": check_out.isoformat(), "check_out": (check_out + timedelta(days=2)).isoformat()},
        headers=headers,
    )
    assert resp.json()["count"] == 2

    resp = client.get(
        "/rooms/available",
        params={"check_in": check_out.isoformat(), "check_out": check_in.isoformat()},
        headers=headers,
    )
    assert resp.status_code == 400


def test_guest_create_and_duplicate_email(client, auth_headers):
    headers = auth_headers(UserRole.RECEPTIONIST)
    payload = {
        "name": "Marie Curie",
        "email": "Marie.Curie@Guests.example.com",
        "phone": "+33155550100",
        "id_number": "FR9988776",
    }
    resp = client.post("/guests", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    guest_id = resp.json()["id"]
    assert resp.json()["email"] == "marie.curie@guests.example.com"

    dup = client.post("/guests", json={**payload, "email": "MARIE.CURIE@guests.example.com"}, headers=headers)
    assert dup.status_code == 409

    found = client.get("/guests", params={"search": "curie"}, headers=headers)
    assert found.json()["pagination"]["total_count"] == 1

    full = client.get(f"/guests/{guest_id}", headers=headers).json()
    assert full["id_number"] == "FR9988776"
    masked = client.get(f"/guests/{guest_id}", headers=auth_headers(UserRole.HOUSEKEEPER)).json()
    assert masked["id_number"] == "*****8776"


def test_guest_detail_lists_history(client, db_session, room, guest, stay_dates, auth_headers):
    booking = _book(db_session, guest, room, stay_dates)
    data = client.get(f"/guests/{guest.id}", headers=auth_headers(UserRole.RECEPTIONIST)).json()
    assert [r["id"] for r in data["reservations"]] == [booking.id]
    assert data["reservations"][0]["room_number"] == "101"


def test_guest_delete_rules(client, db_session, room, guest, stay_dates, auth_headers):
    booking = _book(db_session, guest, room, stay_dates)
    headers = auth_headers(UserRole.RECEPTIONIST)

    blocked = client.delete(f"/guests/{guest.id}", headers=headers)
    assert blocked.status_code == 409
    assert blocked.json()["detail"] == "Guest has active reservations"

    reservations.cancel(db_session, booking)
    history = client.delete(f"/guests/{guest.id}", headers=headers)
    assert history.status_code == 409
    assert history.json()["detail"] == "Guest has reservation history"

    new_guest = client.post(
        "/guests",
        json={"name": "Niels Bohr", "email": "niels@guests.example.com", "phone": "+4555550100"},
        headers=headers,
    ).json()
    assert client.delete(f"/guests/{new_guest['id']}", headers=headers).status_code == 200
