import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from hotelpms.core.exceptions import ConflictError, DomainError, NotFoundError
from hotelpms.models import (
    Guest,
    HousekeepingStatus,
    HousekeepingTask,
    HousekeepingTaskType,
    Priority,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
)
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import quantize, to_decimal

logger = logging.getLogger("hotelpms.reservations")

# Reservations that hold a room
ACTIVE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)

POST_CHECKOUT_NOTE = "Post-checkout cleaning"


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def stay_total(room: Room, check_in: date, check_out: date) -> Decimal:
    return quantize(to_decimal(room.price) * nights_between(check_in, check_out))


def _validate_dates(check_in: date, check_out: date) -> None:
    if check_out <= check_in:
        raise DomainError("Check-out date must be after check-in date")


def find_conflicts(
    db: Session,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_id: Optional[int] = None,
) -> List[Reservation]:
    """Active reservations whose nights overlap [check_in, check_out)."""
    query = db.query(Reservation).filter(
        Reservation.room_id == room_id,
        Reservation.status.in_(ACTIVE_STATUSES),
        Reservation.check_in_date < check_out,
        Reservation.check_out_date > check_in,
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query.all()


def available_rooms(
    db: Session, check_in: date, check_out: date, room_type=None
) -> List[Room]:
    _validate_dates(check_in, check_out)
    busy = (
        db.query(Reservation.room_id)
        .filter(
            Reservation.status.in_(ACTIVE_STATUSES),
            Reservation.check_in_date < check_out,
            Reservation.check_out_date > check_in,
        )
        .subquery()
    )
    query = db.query(Room).filter(
        ~Room.id.in_(busy), Room.status != RoomStatus.MAINTENANCE
    )
    if room_type:
        query = query.filter(Room.room_type == room_type)
    return query.order_by(Room.number).all()


def _load(db: Session, model, pk: int, label: str):
    obj = db.query(model).filter(model.id == pk).first()
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


def create_reservation(
    db: Session,
    *,
    guest_id: int,
    room_id: int,
    check_in_date: date,
    check_out_date: date,
    adults: int = 1,
    children: int = 0,
    special_requests: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> Reservation:
    guest = _load(db, Guest, guest_id, "Guest")
    room = _load(db, Room, room_id, "Room")
    _validate_dates(check_in_date, check_out_date)
    if room.status == RoomStatus.MAINTENANCE:
        raise DomainError(f"Room {room.number} is under maintenance")
    if find_conflicts(db, room.id, check_in_date, check_out_date):
        raise ConflictError(f"Room {room.number} is not available for the selected dates")

    reservation = Reservation(
        guest=guest,
        room=room,
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        adults=adults,
        children=children,
        special_requests=special_requests,
        total_amount=stay_total(room, check_in_date, check_out_date),
        status=ReservationStatus.CONFIRMED,
        created_by_id=created_by_id,
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    logger.info(
        "Reservation %s created: room %s, %s -> %s",
        reservation.id,
        room.number,
        check_in_date,
        check_out_date,
    )
    return reservation


def update_reservation(db: Session, reservation: Reservation, **changes) -> Reservation:
    if reservation.status != ReservationStatus.CONFIRMED:
        raise DomainError("Only confirmed reservations can be modified")

    room = reservation.room
    if "room_id" in changes and changes["room_id"] != reservation.room_id:
        room = _load(db, Room, changes["room_id"], "Room")
    if "guest_id" in changes:
        _load(db, Guest, changes["guest_id"], "Guest")
    check_in = changes.get("check_in_date", reservation.check_in_date)
    check_out = changes.get("check_out_date", reservation.check_out_date)

    rebook = {"room_id", "check_in_date", "check_out_date"} & set(changes)
    if rebook:
        _validate_dates(check_in, check_out)
        if find_conflicts(db, room.id, check_in, check_out, exclude_id=reservation.id):
            raise ConflictError(f"Room {room.number} is not available for the selected dates")

    for field, value in changes.items():
        setattr(reservation, field, value)
    if rebook:
        reservation.room = room
        reservation.total_amount = stay_total(room, check_in, check_out)
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    return reservation


def check_in(db: Session, reservation: Reservation) -> Reservation:
    if reservation.status != ReservationStatus.CONFIRMED:
        raise DomainError("Only confirmed reservations can be checked in")
    room = reservation.room
    if room.status == RoomStatus.OCCUPIED:
        raise ConflictError(f"Room {room.number} is still occupied")

    reservation.status = ReservationStatus.CHECKED_IN
    reservation.checked_in_at = utcnow()
    room.status = RoomStatus.OCCUPIED
    guest = reservation.guest
    guest.total_stays = (guest.total_stays or 0) + 1
    guest.total_spent = quantize(to_decimal(guest.total_spent) + to_decimal(reservation.total_amount))
    db.add_all([reservation, room, guest])
    db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s checked in (room %s)", reservation.id, room.number)
    return reservation


def check_out(db: Session, reservation: Reservation) -> Reservation:
    if reservation.status != ReservationStatus.CHECKED_IN:
        raise DomainError("Only checked-in reservations can be checked out")
    room = reservation.room

    reservation.status = ReservationStatus.CHECKED_OUT
    reservation.checked_out_at = utcnow()
    room.status = RoomStatus.CLEANING
    task = HousekeepingTask(
        room=room,
        reservation_id=reservation.id,
        task_type=HousekeepingTaskType.CLEANING,
        status=HousekeepingStatus.PENDING,
        priority=Priority.HIGH,
        notes=POST_CHECKOUT_NOTE,
    )
    db.add_all([reservation, room, task])
    db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s checked out; cleaning task queued for room %s", reservation.id, room.number)
    return reservation


def cancel(db: Session, reservation: Reservation) -> Reservation:
    if reservation.status != ReservationStatus.CONFIRMED:
        raise DomainError("Only confirmed reservations can be cancelled")
    reservation.status = ReservationStatus.CANCELLED
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s cancelled", reservation.id)
    return reservation


def delete_reservation(db: Session, reservation: Reservation) -> None:
    if reservation.status == ReservationStatus.CHECKED_IN:
        raise ConflictError("Cannot delete a reservation while the guest is checked in")
    if reservation.bills:
        raise ConflictError("Reservation has bills")
    db.delete(reservation)
    db.commit()


def has_active_reservations(db: Session, *, room_id: Optional[int] = None, guest_id: Optional[int] = None) -> bool:
    query = db.query(Reservation.id).filter(Reservation.status.in_(ACTIVE_STATUSES))
    if room_id is not None:
        query = query.filter(Reservation.room_id == room_id)
    if guest_id is not None:
        query = query.filter(Reservation.guest_id == guest_id)
    return query.first() is not None
