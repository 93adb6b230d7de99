import os

from cryptography.fernet import Fernet

# Settings, the engine and the Fernet key are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-" + "x" * 48
os.environ["REDIS_URL"] = "redis://localhost:1/0"
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())

from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hotelpms.core import security  # noqa: E402
from hotelpms.core.db import Base, SessionLocal, engine, get_db  # noqa: E402
from hotelpms.models import (  # noqa: E402
    Employee,
    Guest,
    Room,
    RoomStatus,
    RoomType,
    User,
    UserRole,
)
from hotelpms.services.chart_of_accounts import seed_defaults  # noqa: E402


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    security._RATE_LIMIT_BUCKETS.clear()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    from hotelpms.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    def _make(role: UserRole, email: str = None, password: str = "password123") -> User:
        user = User(
            email=email or f"{role.value}@hotel.test",
            name=role.value.title(),
            password_hash=security.hash_password(password),
            role=role,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def auth_headers(make_user):
    """Bearer headers for a freshly created user with the given role."""
    cache = {}

    def _headers(role: UserRole = UserRole.ADMIN) -> dict:
        if role not in cache:
            user = make_user(role)
            token = security.create_access_token(user.id, user.email, role.value)
            cache[role] = {"Authorization": f"Bearer {token}"}
        return cache[role]

    return _headers


@pytest.fixture()
def chart(db_session):
    seed_defaults(db_session)
    return db_session


@pytest.fixture()
def room(db_session):
    r = Room(
        number="101",
        floor=1,
        room_type=RoomType.STANDARD,
        status=RoomStatus.AVAILABLE,
        price=Decimal("100.00"),
        amenities=["wifi"],
    )
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


@pytest.fixture()
def guest(db_session):
    g = Guest(name="Ada Lovelace", email="ada@guest.test", phone="+15550100", id_number="P1234567")
    db_session.add(g)
    db_session.commit()
    db_session.refresh(g)
    return g


@pytest.fixture()
def employee(db_session):
    e = Employee(
        employee_code="EMP001",
        first_name="Grace",
        last_name="Hopper",
        email="grace@hotel.test",
        department="Front Office",
        position="Receptionist",
        hire_date=date(2024, 1, 1),
        base_salary=Decimal("2200.00"),
    )
    db_session.add(e)
    db_session.commit()
    db_session.refresh(e)
    return e


@pytest.fixture()
def stay_dates():
    check_in = date.today() + timedelta(days=1)
    return check_in, check_in + timedelta(days=3)
