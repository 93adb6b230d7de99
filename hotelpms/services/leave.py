import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from hotelpms.core.exceptions import ConflictError, DomainError, NotFoundError
from hotelpms.models import (
    Attendance,
    AttendanceStatus,
    Employee,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from hotelpms.utils.dates import inclusive_days, iter_days, utcnow

logger = logging.getLogger("hotelpms.leave")

BLOCKING_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def apply(
    db: Session,
    *,
    employee_id: int,
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    reason: str,
) -> LeaveRequest:
    if not db.query(Employee.id).filter(Employee.id == employee_id).first():
        raise NotFoundError("Employee not found")
    if end_date < start_date:
        raise DomainError("Leave end date cannot be before start date")
    overlapping = (
        db.query(LeaveRequest.id)
        .filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(BLOCKING_STATUSES),
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
        )
        .first()
    )
    if overlapping:
        raise ConflictError("Leave request overlaps an existing pending or approved request")

    request = LeaveRequest(
        employee_id=employee_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        total_days=inclusive_days(start_date, end_date),
        reason=reason,
        status=LeaveStatus.PENDING,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(
        "Leave request %s (%s, %s days) submitted for employee %s",
        request.id,
        leave_type.value,
        request.total_days,
        employee_id,
    )
    return request


def _review(
    db: Session,
    request: LeaveRequest,
    status: LeaveStatus,
    reviewer_id: Optional[int],
    comments: Optional[str],
) -> LeaveRequest:
    if request.status != LeaveStatus.PENDING:
        raise DomainError("Only pending leave requests can be reviewed")
    request.status = status
    request.reviewed_by_id = reviewer_id
    request.reviewed_at = utcnow()
    request.comments = comments
    db.add(request)
    return request


def approve(db: Session, request: LeaveRequest, reviewer_id: Optional[int], comments: Optional[str] = None) -> LeaveRequest:
    _review(db, request, LeaveStatus.APPROVED, reviewer_id, comments)
    existing = {
        d
        for (d,) in db.query(Attendance.date).filter(
            Attendance.employee_id == request.employee_id,
            Attendance.date >= request.start_date,
            Attendance.date <= request.end_date,
        )
    }
    for day in iter_days(request.start_date, request.end_date):
        if day in existing:
            continue
        db.add(
            Attendance(
                employee_id=request.employee_id,
                date=day,
                status=AttendanceStatus.ON_LEAVE,
                break_minutes=0,
                notes=f"{request.leave_type.value} leave",
                approved_by_id=reviewer_id,
            )
        )
    db.commit()
    db.refresh(request)
    logger.info("Leave request %s approved", request.id)
    return request


def reject(db: Session, request: LeaveRequest, reviewer_id: Optional[int], comments: Optional[str] = None) -> LeaveRequest:
    _review(db, request, LeaveStatus.REJECTED, reviewer_id, comments)
    db.commit()
    db.refresh(request)
    logger.info("Leave request %s rejected", request.id)
    return request


def cancel(db: Session, request: LeaveRequest) -> LeaveRequest:
    if request.status not in BLOCKING_STATUSES:
        raise DomainError("Only pending or approved leave requests can be cancelled")
    if request.status == LeaveStatus.APPROVED:
        # Drop the on-leave markers that approval created
        (
            db.query(Attendance)
            .filter(
                Attendance.employee_id == request.employee_id,
                Attendance.date >= request.start_date,
                Attendance.date <= request.end_date,
                Attendance.status == AttendanceStatus.ON_LEAVE,
                Attendance.clock_in.is_(None),
            )
            .delete(synchronize_session=False)
        )
    request.status = LeaveStatus.CANCELLED
    db.add(request)
    db.commit()
    db.refresh(request)
    return request
