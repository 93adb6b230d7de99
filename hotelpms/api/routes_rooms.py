from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import FRONT_DESK_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.core.logging import logger
from hotelpms.models import Room, RoomStatus, RoomType, User, UserRole
from hotelpms.services import reservations as reservation_service

router = APIRouter(prefix="/rooms", tags=["rooms"])
# Housekeepers flip room status and notes after cleaning
require_room_editors = require_roles(*FRONT_DESK_ROLES, UserRole.HOUSEKEEPER)


class RoomCreate(BaseModel):
    number: constr(strip_whitespace=True, min_length=1, max_length=10)
    floor: int = Field(ge=0)
    room_type: RoomType
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    status: RoomStatus = RoomStatus.AVAILABLE
    amenities: List[str] = []
    description: Optional[str] = None


class RoomUpdate(BaseModel):
    number: Optional[constr(strip_whitespace=True, min_length=1, max_length=10)] = None
    floor: Optional[int] = Field(default=None, ge=0)
    room_type: Optional[RoomType] = None
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    status: Optional[RoomStatus] = None
    amenities: Optional[List[str]] = None
    description: Optional[str] = None


def serialize_room(room: Room) -> dict:
    return {
        "id": room.id,
        "number": room.number,
        "floor": room.floor,
        "room_type": room.room_type.value,
        "status": room.status.value,
        "price": room.price,
        "amenities": room.amenities or [],
        "description": room.description,
        "last_cleaned": room.last_cleaned.isoformat() if room.last_cleaned else None,
    }


@router.get("")
def list_rooms(
    status: Optional[RoomStatus] = None,
    room_type: Optional[RoomType] = None,
    floor: Optional[int] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    query = db.query(Room)
    if status:
        query = query.filter(Room.status == status)
    if room_type:
        query = query.filter(Room.room_type == room_type)
    if floor is not None:
        query = query.filter(Room.floor == floor)
    rooms, meta = pagination.apply(query.order_by(Room.floor, Room.number))
    return {"rooms": [serialize_room(r) for r in rooms], "pagination": meta}


@router.get("/available")
def available_rooms(
    check_in: date,
    check_out: date,
    room_type: Optional[RoomType] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    rooms = reservation_service.available_rooms(db, check_in, check_out, room_type)
    return {"rooms": [serialize_room(r) for r in rooms], "count": len(rooms)}


@router.get("/{room_id}")
def get_room(room_id: int, db: Session = Depends(get_db), _user: User = Depends(require_staff)):
    return serialize_room(get_or_404(db, Room, room_id, "Room"))


@router.post("", status_code=201)
def create_room(
    payload: RoomCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*FRONT_DESK_ROLES)),
):
    if db.query(Room.id).filter(Room.number == payload.number).first():
        raise HTTPException(status_code=409, detail=f"Room {payload.number} already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    logger.info("Room %s created by %s", room.number, user.email)
    return serialize_room(room)


@router.put("/{room_id}")
def update_room(
    room_id: int,
    payload: RoomUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_room_editors),
):
    room = get_or_404(db, Room, room_id, "Room")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("number") and changes["number"] != room.number:
        if db.query(Room.id).filter(Room.number == changes["number"], Room.id != room.id).first():
            raise HTTPException(status_code=409, detail=f"Room {changes['number']} already exists")
    for field, value in changes.items():
        setattr(room, field, value)
    db.add(room)
    db.commit()
    db.refresh(room)
    return serialize_room(room)


@router.delete("/{room_id}")
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*FRONT_DESK_ROLES)),
):
    room = get_or_404(db, Room, room_id, "Room")
    if reservation_service.has_active_reservations(db, room_id=room.id):
        raise HTTPException(status_code=409, detail="Room has active reservations")
    if room.reservations:
        raise HTTPException(status_code=409, detail="Room has reservation history; set it to maintenance instead")
    for task in list(room.housekeeping_tasks):
        db.delete(task)
    db.delete(room)
    db.commit()
    logger.info("Room %s deleted by %s", room.number, user.email)
    return {"success": True}
