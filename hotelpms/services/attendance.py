import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from hotelpms.core.config import get_settings
from hotelpms.core.exceptions import ConflictError, DomainError, NotFoundError
from hotelpms.models import Attendance, AttendanceStatus, Employee, EmployeeStatus
from hotelpms.utils.dates import month_bounds
from hotelpms.utils.money import ZERO, to_decimal

settings = get_settings()
logger = logging.getLogger("hotelpms.attendance")

HOURS = Decimal("0.01")


def _work_start(day: date) -> datetime:
    hour, minute = (int(part) for part in settings.work_day_start.split(":"))
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)


def is_late(clock_in: datetime) -> bool:
    deadline = _work_start(clock_in.date()) + timedelta(minutes=settings.late_grace_minutes)
    return clock_in > deadline


def worked_hours(clock_in: datetime, clock_out: datetime, break_minutes: int = 0) -> Decimal:
    if clock_out <= clock_in:
        raise DomainError("Clock-out must be after clock-in")
    minutes = (clock_out - clock_in).total_seconds() / 60 - (break_minutes or 0)
    return to_decimal(max(0.0, minutes) / 60).quantize(HOURS)


def apply_hours(record: Attendance) -> Attendance:
    """Derive total/overtime hours and the day status from the clock times."""
    total = worked_hours(record.clock_in, record.clock_out, record.break_minutes)
    standard = to_decimal(settings.standard_work_hours)
    record.total_hours = total
    record.overtime_hours = max(ZERO, total - standard).quantize(HOURS)
    # Late arrivals stay late regardless of hours
    if record.status in (AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY, None):
        if total < to_decimal(settings.half_day_hours):
            record.status = AttendanceStatus.HALF_DAY
        else:
            record.status = AttendanceStatus.PRESENT
    return record


def _active_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFoundError("Employee not found")
    if employee.status == EmployeeStatus.TERMINATED:
        raise DomainError("Employee is terminated")
    return employee


def _existing(db: Session, employee_id: int, day: date) -> Optional[Attendance]:
    return (
        db.query(Attendance)
        .filter(Attendance.employee_id == employee_id, Attendance.date == day)
        .first()
    )


def clock_in(db: Session, employee_id: int, at: Optional[datetime] = None, notes: Optional[str] = None) -> Attendance:
    _active_employee(db, employee_id)
    at = at or datetime.now()
    if _existing(db, employee_id, at.date()):
        raise ConflictError("Already clocked in today")
    record = Attendance(
        employee_id=employee_id,
        date=at.date(),
        clock_in=at,
        status=AttendanceStatus.LATE if is_late(at) else AttendanceStatus.PRESENT,
        notes=notes,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Employee %s clocked in at %s (%s)", employee_id, at, record.status.value)
    return record


def clock_out(
    db: Session,
    employee_id: int,
    at: Optional[datetime] = None,
    break_minutes: Optional[int] = None,
) -> Attendance:
    at = at or datetime.now()
    record = _existing(db, employee_id, at.date())
    if not record or not record.clock_in:
        raise DomainError("No clock-in found for today")
    if record.clock_out:
        raise ConflictError("Already clocked out today")
    record.clock_out = at
    if break_minutes is not None:
        record.break_minutes = break_minutes
    apply_hours(record)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Employee %s clocked out (%s h)", employee_id, record.total_hours)
    return record


def create_record(db: Session, *, employee_id: int, day: date, approved_by_id: Optional[int] = None, **fields) -> Attendance:
    """Manual entry by HR, e.g. absences or corrections."""
    _active_employee(db, employee_id)
    if _existing(db, employee_id, day):
        raise ConflictError("Attendance already recorded for this day")
    record = Attendance(employee_id=employee_id, date=day, approved_by_id=approved_by_id, **fields)
    if record.status is None:
        record.status = AttendanceStatus.PRESENT
    if record.break_minutes is None:
        record.break_minutes = 0
    if record.clock_in and record.clock_out:
        apply_hours(record)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_record(db: Session, record: Attendance, approved_by_id: Optional[int] = None, **changes) -> Attendance:
    for field, value in changes.items():
        setattr(record, field, value)
    if record.clock_in and record.clock_out:
        apply_hours(record)
    elif record.status in (AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE):
        record.total_hours = ZERO
        record.overtime_hours = ZERO
    if approved_by_id is not None:
        record.approved_by_id = approved_by_id
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def monthly_summary(db: Session, employee_id: int, year: int, month: int) -> Dict:
    start, end = month_bounds(year, month)
    records = (
        db.query(Attendance)
        .filter(Attendance.employee_id == employee_id, Attendance.date >= start, Attendance.date <= end)
        .all()
    )
    counts = {s.value: 0 for s in AttendanceStatus}
    total_hours = overtime = ZERO
    for r in records:
        counts[r.status.value] += 1
        total_hours += to_decimal(r.total_hours)
        overtime += to_decimal(r.overtime_hours)
    return {
        "employee_id": employee_id,
        "year": year,
        "month": month,
        "days_recorded": len(records),
        "by_status": counts,
        "total_hours": total_hours.quantize(HOURS),
        "overtime_hours": overtime.quantize(HOURS),
    }
