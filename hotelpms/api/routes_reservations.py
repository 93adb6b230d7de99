from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session, joinedload

from hotelpms.api.deps import FRONT_DESK_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import Reservation, ReservationStatus, User
from hotelpms.services import reservations as reservation_service

router = APIRouter(prefix="/reservations", tags=["reservations"])
require_front_desk = require_roles(*FRONT_DESK_ROLES)


class ReservationCreate(BaseModel):
    guest_id: int
    room_id: int
    check_in_date: date
    check_out_date: date
    adults: int = Field(default=1, ge=1, le=10)
    children: int = Field(default=0, ge=0, le=10)
    special_requests: Optional[str] = None


class ReservationUpdate(BaseModel):
    guest_id: Optional[int] = None
    room_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    adults: Optional[int] = Field(default=None, ge=1, le=10)
    children: Optional[int] = Field(default=None, ge=0, le=10)
    special_requests: Optional[str] = None


def serialize_reservation(r: Reservation) -> dict:
    return {
        "id": r.id,
        "guest": {"id": r.guest.id, "name": r.guest.name, "email": r.guest.email, "phone": r.guest.phone},
        "room": {
            "id": r.room.id,
            "number": r.room.number,
            "room_type": r.room.room_type.value,
            "price": r.room.price,
        },
        "check_in_date": r.check_in_date,
        "check_out_date": r.check_out_date,
        "nights": reservation_service.nights_between(r.check_in_date, r.check_out_date),
        "status": r.status.value,
        "total_amount": r.total_amount,
        "adults": r.adults,
        "children": r.children,
        "special_requests": r.special_requests,
        "checked_in_at": r.checked_in_at.isoformat() if r.checked_in_at else None,
        "checked_out_at": r.checked_out_at.isoformat() if r.checked_out_at else None,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


@router.get("")
def list_reservations(
    status: Optional[ReservationStatus] = None,
    guest_id: Optional[int] = None,
    room_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    query = db.query(Reservation).options(
        joinedload(Reservation.guest), joinedload(Reservation.room)
    )
    if status:
        query = query.filter(Reservation.status == status)
    if guest_id:
        query = query.filter(Reservation.guest_id == guest_id)
    if room_id:
        query = query.filter(Reservation.room_id == room_id)
    # Stays touching the window
    if date_from:
        query = query.filter(Reservation.check_out_date >= date_from)
    if date_to:
        query = query.filter(Reservation.check_in_date <= date_to)
    items, meta = pagination.apply(query.order_by(Reservation.check_in_date.desc(), Reservation.id.desc()))
    return {"reservations": [serialize_reservation(r) for r in items], "pagination": meta}


@router.get("/arrivals")
def todays_arrivals(
    day: Optional[date] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    day = day or date.today()
    items = (
        db.query(Reservation)
        .filter(Reservation.check_in_date == day, Reservation.status == ReservationStatus.CONFIRMED)
        .order_by(Reservation.id)
        .all()
    )
    return {"date": day, "reservations": [serialize_reservation(r) for r in items]}


@router.get("/departures")
def todays_departures(
    day: Optional[date] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    day = day or date.today()
    items = (
        db.query(Reservation)
        .filter(Reservation.check_out_date == day, Reservation.status == ReservationStatus.CHECKED_IN)
        .order_by(Reservation.id)
        .all()
    )
    return {"date": day, "reservations": [serialize_reservation(r) for r in items]}


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: int, db: Session = Depends(get_db), _user: User = Depends(require_staff)
):
    return serialize_reservation(get_or_404(db, Reservation, reservation_id, "Reservation"))


@router.post("", status_code=201)
def create_reservation(
    payload: ReservationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_front_desk),
):
    reservation = reservation_service.create_reservation(
        db, created_by_id=user.id, **payload.model_dump()
    )
    return serialize_reservation(reservation)


@router.put("/{reservation_id}")
def update_reservation(
    reservation_id: int,
    payload: ReservationUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_front_desk),
):
    reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    reservation = reservation_service.update_reservation(
        db, reservation, **payload.model_dump(exclude_unset=True)
    )
    return serialize_reservation(reservation)


@router.post("/{reservation_id}/check-in")
def check_in(reservation_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)):
    reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    return serialize_reservation(reservation_service.check_in(db, reservation))


@router.post("/{reservation_id}/check-out")
def check_out(reservation_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)):
    reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    return serialize_reservation(reservation_service.check_out(db, reservation))


@router.post("/{reservation_id}/cancel")
def cancel(reservation_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)):
    reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    return serialize_reservation(reservation_service.cancel(db, reservation))


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)
):
    reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    reservation_service.delete_reservation(db, reservation)
    return {"success": True}
