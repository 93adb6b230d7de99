from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, constr
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.api.deps import FRONT_DESK_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.core.encryption import mask_value
from hotelpms.core.logging import logger
from hotelpms.models import Guest, Reservation, User
from hotelpms.services import reservations as reservation_service

router = APIRouter(prefix="/guests", tags=["guests"])


class GuestCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=2)
    email: EmailStr
    phone: constr(strip_whitespace=True, min_length=5)
    address: Optional[str] = None
    id_number: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    special_requests: Optional[str] = None


class GuestUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=2)] = None
    email: Optional[EmailStr] = None
    phone: Optional[constr(strip_whitespace=True, min_length=5)] = None
    address: Optional[str] = None
    id_number: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    special_requests: Optional[str] = None


def serialize_guest(guest: Guest, reveal_id: bool = False) -> dict:
    return {
        "id": guest.id,
        "name": guest.name,
        "email": guest.email,
        "phone": guest.phone,
        "address": guest.address,
        "id_number": guest.id_number if reveal_id else mask_value(guest.id_number),
        "nationality": guest.nationality,
        "date_of_birth": guest.date_of_birth,
        "special_requests": guest.special_requests,
        "total_stays": guest.total_stays,
        "total_spent": guest.total_spent,
        "created_at": guest.created_at.isoformat() if guest.created_at else None,
    }


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Guest.id).filter(func.lower(Guest.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(Guest.id != exclude_id)
    return query.first() is not None


@router.get("")
def list_guests(
    search: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    query = db.query(Guest)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Guest.name).like(pattern),
                func.lower(Guest.email).like(pattern),
                Guest.phone.like(pattern),
            )
        )
    guests, meta = pagination.apply(query.order_by(Guest.name))
    return {"guests": [serialize_guest(g) for g in guests], "pagination": meta}


@router.get("/{guest_id}")
def get_guest(guest_id: int, db: Session = Depends(get_db), user: User = Depends(require_staff)):
    guest = get_or_404(db, Guest, guest_id, "Guest")
    history = (
        db.query(Reservation)
        .filter(Reservation.guest_id == guest.id)
        .order_by(Reservation.check_in_date.desc())
        .all()
    )
    data = serialize_guest(guest, reveal_id=user.role in FRONT_DESK_ROLES)
    data["reservations"] = [
        {
            "id": r.id,
            "room_number": r.room.number,
            "check_in_date": r.check_in_date,
            "check_out_date": r.check_out_date,
            "status": r.status.value,
            "total_amount": r.total_amount,
        }
        for r in history
    ]
    return data


@router.post("", status_code=201)
def create_guest(
    payload: GuestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*FRONT_DESK_ROLES)),
):
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=409, detail="A guest with this email already exists")
    guest = Guest(**payload.model_dump(), total_stays=0, total_spent=0)
    guest.email = guest.email.lower()
    db.add(guest)
    db.commit()
    db.refresh(guest)
    logger.info("Guest %s created by %s", guest.id, user.email)
    return serialize_guest(guest)


@router.put("/{guest_id}")
def update_guest(
    guest_id: int,
    payload: GuestUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_roles(*FRONT_DESK_ROLES)),
):
    guest = get_or_404(db, Guest, guest_id, "Guest")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email"):
        changes["email"] = changes["email"].lower()
        if _email_taken(db, changes["email"], exclude_id=guest.id):
            raise HTTPException(status_code=409, detail="A guest with this email already exists")
    for field, value in changes.items():
        setattr(guest, field, value)
    db.add(guest)
    db.commit()
    db.refresh(guest)
    return serialize_guest(guest)


@router.delete("/{guest_id}")
def delete_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*FRONT_DESK_ROLES)),
):
    guest = get_or_404(db, Guest, guest_id, "Guest")
    if reservation_service.has_active_reservations(db, guest_id=guest.id):
        raise HTTPException(status_code=409, detail="Guest has active reservations")
    if guest.reservations:
        raise HTTPException(status_code=409, detail="Guest has reservation history")
    db.delete(guest)
    db.commit()
    logger.info("Guest %s deleted by %s", guest_id, user.email)
    return {"success": True}
