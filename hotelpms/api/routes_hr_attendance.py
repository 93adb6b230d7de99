from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hotelpms.api.deps import HR_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import Attendance, AttendanceStatus, Employee, User
from hotelpms.services import attendance as attendance_service

router = APIRouter(prefix="/hr/attendance", tags=["hr"])
require_hr = require_roles(*HR_ROLES)


class ClockInRequest(BaseModel):
    employee_id: Optional[int] = None
    at: Optional[datetime] = None
    notes: Optional[str] = None


class ClockOutRequest(BaseModel):
    employee_id: Optional[int] = None
    at: Optional[datetime] = None
    break_minutes: Optional[int] = Field(default=None, ge=0, le=600)


class AttendanceCreate(BaseModel):
    employee_id: int
    day: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_minutes: int = Field(default=0, ge=0, le=600)
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None


class AttendanceUpdate(BaseModel):
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_minutes: Optional[int] = Field(default=None, ge=0, le=600)
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


def serialize_attendance(record: Attendance) -> dict:
    return {
        "id": record.id,
        "employee_id": record.employee_id,
        "employee_name": record.employee.full_name,
        "date": record.date,
        "clock_in": record.clock_in.isoformat() if record.clock_in else None,
        "clock_out": record.clock_out.isoformat() if record.clock_out else None,
        "break_minutes": record.break_minutes,
        "total_hours": record.total_hours,
        "overtime_hours": record.overtime_hours,
        "status": record.status.value,
        "notes": record.notes,
        "approved_by_id": record.approved_by_id,
    }


def _resolve_employee(db: Session, user: User, employee_id: Optional[int]) -> int:
    """HR staff may clock anyone; other staff only their own linked employee record."""
    if user.role in HR_ROLES and employee_id is not None:
        return employee_id
    own = db.query(Employee.id).filter(Employee.user_id == user.id).first()
    if not own:
        raise HTTPException(status_code=404, detail="No employee record linked to this user")
    if employee_id is not None and employee_id != own[0]:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return own[0]


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    # Attendance is stored in hotel wall-clock time
    return value.replace(tzinfo=None) if value is not None and value.tzinfo else value


@router.post("/clock-in", status_code=201)
def clock_in(
    payload: ClockInRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    employee_id = _resolve_employee(db, user, payload.employee_id)
    record = attendance_service.clock_in(db, employee_id, _naive(payload.at), payload.notes)
    return serialize_attendance(record)


@router.post("/clock-out")
def clock_out(
    payload: ClockOutRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    employee_id = _resolve_employee(db, user, payload.employee_id)
    record = attendance_service.clock_out(db, employee_id, _naive(payload.at), payload.break_minutes)
    return serialize_attendance(record)


@router.get("")
def list_attendance(
    employee_id: Optional[int] = None,
    status: Optional[AttendanceStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    query = db.query(Attendance)
    if employee_id:
        query = query.filter(Attendance.employee_id == employee_id)
    if status:
        query = query.filter(Attendance.status == status)
    if start_date:
        query = query.filter(Attendance.date >= start_date)
    if end_date:
        query = query.filter(Attendance.date <= end_date)
    records, meta = pagination.apply(query.order_by(Attendance.date.desc(), Attendance.employee_id))
    return {"attendance": [serialize_attendance(r) for r in records], "pagination": meta}


@router.get("/summary")
def monthly_summary(
    employee_id: int,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    get_or_404(db, Employee, employee_id, "Employee")
    return attendance_service.monthly_summary(db, employee_id, year, month)


@router.post("", status_code=201)
def create_attendance(
    payload: AttendanceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr),
):
    data = payload.model_dump()
    data["clock_in"] = _naive(data["clock_in"])
    data["clock_out"] = _naive(data["clock_out"])
    record = attendance_service.create_record(db, approved_by_id=user.id, **data)
    return serialize_attendance(record)


@router.put("/{record_id}")
def update_attendance(
    record_id: int,
    payload: AttendanceUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_hr),
):
    record = get_or_404(db, Attendance, record_id, "Attendance record")
    changes = payload.model_dump(exclude_unset=True)
    for key in ("clock_in", "clock_out"):
        if key in changes:
            changes[key] = _naive(changes[key])
    record = attendance_service.update_record(db, record, approved_by_id=user.id, **changes)
    return serialize_attendance(record)


@router.delete("/{record_id}")
def delete_attendance(record_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    record = get_or_404(db, Attendance, record_id, "Attendance record")
    db.delete(record)
    db.commit()
    return {"success": True}
