from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import User
from hotelpms.services import dashboard as dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def hotel_dashboard(db: Session = Depends(get_db), _user: User = Depends(require_staff)):
    return dashboard_service.hotel_dashboard(db)


@router.get("/accounting")
def accounting_dashboard(
    period: str = Query("monthly"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    _user: User = Depends(require_roles(*ACCOUNTING_ROLES)),
):
    return dashboard_service.accounting_dashboard(db, period, year, month)
