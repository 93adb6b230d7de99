from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, constr
from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.api.deps import require_staff
from hotelpms.core.config import get_settings
from hotelpms.core.db import get_db
from hotelpms.core.logging import logger
from hotelpms.core.security import (
    AUTH_COOKIE,
    create_access_token,
    hash_password,
    rate_limit,
    verify_password,
)
from hotelpms.models import User
from hotelpms.utils.dates import utcnow

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: constr(min_length=1)
    new_password: constr(min_length=8)


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "is_active": user.is_active,
        "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
    }


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    client_host = request.client.host if request.client else "-"
    rate_limit(f"login:{client_host}", limit=settings.login_rate_limit, window_seconds=60)

    user = (
        db.query(User)
        .filter(func.lower(User.email) == payload.email.strip().lower(), User.is_active == True)  # noqa: E712
        .first()
    )
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Login failed for email %s from %s", payload.email, client_host)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.last_login_at = utcnow()
    db.add(user)
    db.commit()

    token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    logger.info("Login success for email %s from %s", payload.email, client_host)

    response = JSONResponse(
        content={"access_token": token, "token_type": "bearer", "role": user.role.value}
    )
    # Secure HttpOnly Cookie for the UI
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
        max_age=settings.access_token_minutes * 60,
        path="/",
    )
    return response


@router.post("/logout")
def logout():
    response = JSONResponse(content={"success": True})
    response.delete_cookie(AUTH_COOKIE, path="/")
    return response


@router.get("/me")
def get_current_user(user: User = Depends(require_staff)):
    return serialize_user(user)


@router.put("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    db.add(user)
    db.commit()

    logger.info("Password changed for user %s", user.email)
    return {"success": True, "message": "Password changed successfully"}
