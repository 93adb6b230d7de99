from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, constr
from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.api.deps import Pagination, get_or_404, require_roles
from hotelpms.api.routes_auth import serialize_user
from hotelpms.core.db import get_db
from hotelpms.core.logging import logger
from hotelpms.core.security import hash_password
from hotelpms.models import User, UserRole

router = APIRouter(prefix="/users", tags=["users"])
require_admin = require_roles(UserRole.ADMIN)


class CreateUserRequest(BaseModel):
    email: EmailStr
    name: constr(strip_whitespace=True, min_length=2)
    password: constr(min_length=8)
    role: UserRole = UserRole.RECEPTIONIST


class UpdateUserRequest(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=2)] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[constr(min_length=8)] = None


@router.get("")
def list_users(
    role: Optional[UserRole] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_admin),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    users, meta = pagination.apply(query.order_by(User.email))
    return {"users": [serialize_user(u) for u in users], "pagination": meta}


@router.post("", status_code=201)
def create_user(
    payload: CreateUserRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    email = payload.email.lower()
    if db.query(User.id).filter(func.lower(User.email) == email).first():
        raise HTTPException(status_code=409, detail="A user with this email already exists")
    user = User(
        email=email,
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=payload.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s (%s) created by %s", user.email, user.role.value, admin.email)
    return serialize_user(user)


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UpdateUserRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = get_or_404(db, User, user_id, "User")
    changes = payload.model_dump(exclude_unset=True)
    if user.id == admin.id and (changes.get("is_active") is False or changes.get("role") not in (None, UserRole.ADMIN)):
        raise HTTPException(status_code=400, detail="You cannot demote or deactivate yourself")
    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    for field, value in changes.items():
        setattr(user, field, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return serialize_user(user)


@router.delete("/{user_id}")
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = get_or_404(db, User, user_id, "User")
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate yourself")
    user.is_active = False
    db.add(user)
    db.commit()
    logger.info("User %s deactivated by %s", user.email, admin.email)
    return {"success": True}
