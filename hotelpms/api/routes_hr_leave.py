from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import HR_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import LeaveRequest, LeaveStatus, LeaveType, User
from hotelpms.services import leave as leave_service

router = APIRouter(prefix="/hr/leave", tags=["hr"])
require_hr = require_roles(*HR_ROLES)


class LeaveApply(BaseModel):
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: constr(strip_whitespace=True, min_length=1)


class ReviewRequest(BaseModel):
    comments: Optional[str] = None


def serialize_leave(request: LeaveRequest) -> dict:
    return {
        "id": request.id,
        "employee_id": request.employee_id,
        "employee_name": request.employee.full_name,
        "leave_type": request.leave_type.value,
        "start_date": request.start_date,
        "end_date": request.end_date,
        "total_days": request.total_days,
        "reason": request.reason,
        "status": request.status.value,
        "applied_at": request.applied_at.isoformat() if request.applied_at else None,
        "reviewed_by_id": request.reviewed_by_id,
        "reviewed_at": request.reviewed_at.isoformat() if request.reviewed_at else None,
        "comments": request.comments,
    }


@router.get("")
def list_leave_requests(
    employee_id: Optional[int] = None,
    status: Optional[LeaveStatus] = None,
    leave_type: Optional[LeaveType] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    query = db.query(LeaveRequest)
    if employee_id:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    if leave_type:
        query = query.filter(LeaveRequest.leave_type == leave_type)
    requests, meta = pagination.apply(query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc()))
    return {"leave_requests": [serialize_leave(r) for r in requests], "pagination": meta}


@router.get("/{request_id}")
def get_leave_request(request_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return serialize_leave(get_or_404(db, LeaveRequest, request_id, "Leave request"))


@router.post("", status_code=201)
def apply_for_leave(payload: LeaveApply, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return serialize_leave(leave_service.apply(db, **payload.model_dump()))


@router.post("/{request_id}/approve")
def approve_leave(
    request_id: int,
    payload: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr),
):
    request = get_or_404(db, LeaveRequest, request_id, "Leave request")
    comments = payload.comments if payload else None
    return serialize_leave(leave_service.approve(db, request, user.id, comments))


@router.post("/{request_id}/reject")
def reject_leave(
    request_id: int,
    payload: Optional[ReviewRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr),
):
    request = get_or_404(db, LeaveRequest, request_id, "Leave request")
    comments = payload.comments if payload else None
    return serialize_leave(leave_service.reject(db, request, user.id, comments))


@router.post("/{request_id}/cancel")
def cancel_leave(request_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    request = get_or_404(db, LeaveRequest, request_id, "Leave request")
    return serialize_leave(leave_service.cancel(db, request))
