from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from redis.exceptions import ConnectionError as RedisConnectionError

from hotelpms.api import routes_jobs
from hotelpms.core.security import AUTH_COOKIE
from hotelpms.models import ReservationStatus, TaxStatus, TaxType, UserRole
from hotelpms.services import reservations, tax
from hotelpms.workers import jobs


def test_login_sets_cookie_and_me_works(client, make_user):
    make_user(UserRole.ACCOUNTANT, email="books@hotel.test", password="s3cret-pass")
    resp = client.post("/auth/login", json={"email": " Books@Hotel.test ", "password": "s3cret-pass"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["role"] == "accountant"
    assert AUTH_COOKIE in resp.cookies

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "books@hotel.test"
    assert me.json()["last_login_at"] is not None


def test_login_rejects_bad_password(client, make_user):
    make_user(UserRole.MANAGER, email="boss@hotel.test")
    resp = client.post("/auth/login", json={"email": "boss@hotel.test", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


def test_protected_routes_need_a_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/rooms").status_code == 401


def test_change_password(client, make_user):
    make_user(UserRole.HR, email="people@hotel.test", password="old-password")
    token = client.post(
        "/auth/login", json={"email": "people@hotel.test", "password": "old-password"}
    ).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = client.put(
        "/auth/change-password",
        json={"current_password": "bad", "new_password": "new-password"},
        headers=headers,
    )
    assert wrong.status_code == 400
    ok = client.put(
        "/auth/change-password",
        json={"current_password": "old-password", "new_password": "new-password"},
        headers=headers,
    )
    assert ok.status_code == 200
    relogin = client.post("/auth/login", json={"email": "people@hotel.test", "password": "new-password"})
    assert relogin.status_code == 200


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_ui_login_page_and_redirect(client):
    page = client.get("/ui/login")
    assert page.status_code == 200
    assert "text/html" in page.headers["content-type"]

    resp = client.get("/ui/dashboard", follow_redirects=False)
    assert resp.status_code in (302, 307)
    assert resp.headers["location"] == "/ui/login"


def test_no_show_sweep_cancels_stale_bookings(db_session, room, guest, stay_dates):
    check_in, check_out = stay_dates
    reservation = reservations.create_reservation(
        db_session, guest_id=guest.id, room_id=room.id, check_in_date=check_in, check_out_date=check_out
    )

    assert jobs.run_no_show_sweep(today=check_in + timedelta(days=1))["no_shows_cancelled"] == 0
    stats = jobs.run_no_show_sweep(today=check_in + timedelta(days=2))
    assert stats == {"no_shows_cancelled": 1, "errors": 0}

    db_session.expire_all()
    assert reservation.status == ReservationStatus.CANCELLED


def test_expired_stay_check_only_reports(db_session, room, guest, stay_dates):
    check_in, check_out = stay_dates
    reservation = reservations.create_reservation(
        db_session, guest_id=guest.id, room_id=room.id, check_in_date=check_in, check_out_date=check_out
    )
    reservations.check_in(db_session, reservation)

    assert jobs.run_expired_stay_check(today=check_out)["expired_stays"] == 0
    stats = jobs.run_expired_stay_check(today=check_out + timedelta(days=1))
    assert stats == {"expired_stays": 1, "errors": 0}

    db_session.expire_all()
    assert reservation.status == ReservationStatus.CHECKED_IN


def test_overdue_sweep_flags_tax_records(db_session):
    record = tax.create_record(
        db_session,
        tax_type=TaxType.INCOME_TAX,
        period_start=date(2026, 1, 1),
        period_end=date(2026, 1, 31),
        taxable_amount=Decimal("500"),
        tax_rate=Decimal("5"),
        due_date=date.today() + timedelta(days=1),
    )
    stats = jobs.run_overdue_sweep(today=date.today() + timedelta(days=10))
    assert stats == {"bills_overdue": 0, "tax_records_overdue": 1, "errors": 0}

    db_session.expire_all()
    assert record.status == TaxStatus.OVERDUE


def test_jobs_endpoint(client, auth_headers, monkeypatch):
    monkeypatch.setitem(routes_jobs.ENQUEUERS, "overdue-sweep", lambda: SimpleNamespace(id="job-42"))
    resp = client.post("/jobs/overdue-sweep", headers=auth_headers(UserRole.MANAGER))
    assert resp.status_code == 202
    assert resp.json() == {"job_id": "job-42", "job": "overdue-sweep", "status": "queued"}

    assert client.post("/jobs/reindex", headers=auth_headers(UserRole.MANAGER)).status_code == 404
    assert client.post("/jobs/overdue-sweep", headers=auth_headers(UserRole.RECEPTIONIST)).status_code == 403


def test_jobs_endpoint_without_redis(client, auth_headers, monkeypatch):
    def _down():
        raise RedisConnectionError("connection refused")

    monkeypatch.setitem(routes_jobs.ENQUEUERS, "no-show-sweep", _down)
    resp = client.post("/jobs/no-show-sweep", headers=auth_headers(UserRole.ADMIN))
    assert resp.status_code == 503
