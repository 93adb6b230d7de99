from typing import Callable, Tuple

from fastapi import Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from hotelpms.core.db import get_db
from hotelpms.core.logging import logger
from hotelpms.core.security import decode_access_token, get_request_token
from hotelpms.models import User, UserRole

ACCOUNTING_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.ACCOUNTANT)
HR_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.HR)
FRONT_DESK_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.RECEPTIONIST)


def require_staff(request: Request, db: Session = Depends(get_db)) -> User:
    token = get_request_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    payload = decode_access_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")
    user = (
        db.query(User)
        .filter(User.id == user_id, User.is_active == True)  # noqa: E712
        .first()
    )
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    request.state.user = user
    logger.debug(
        "Staff access to %s by user %s from %s",
        request.url.path,
        user.email,
        request.client.host if request.client else "-",
    )
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = set(roles)

    def _dependency(request: Request, user: User = Depends(require_staff)) -> User:
        if user.role not in allowed:
            logger.info(
                "Role %s denied access to %s (user %s)", user.role.value, request.url.path, user.email
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return _dependency


class Pagination:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(25, ge=1, le=200),
    ):
        self.page = page
        self.limit = limit

    def apply(self, query) -> Tuple[list, dict]:
        total_count = query.order_by(None).count()
        total_pages = (total_count + self.limit - 1) // self.limit  # Ceiling division
        items = query.offset((self.page - 1) * self.limit).limit(self.limit).all()
        return items, {
            "page": self.page,
            "limit": self.limit,
            "total_count": total_count,
            "total_pages": total_pages,
        }


def get_or_404(db: Session, model, pk: int, label: str):
    obj = db.query(model).filter(model.id == pk).first()
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj
