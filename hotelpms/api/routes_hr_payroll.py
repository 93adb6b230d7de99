from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import HR_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import PayrollEntry, PayrollPeriod, PayrollStatus, User, UserRole
from hotelpms.services import payroll as payroll_service

router = APIRouter(prefix="/hr/payroll", tags=["hr"])
require_hr = require_roles(*HR_ROLES)
require_payroll_approver = require_roles(UserRole.ADMIN, UserRole.MANAGER)


class PeriodCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    start_date: date
    end_date: date
    pay_date: date


class PayRequest(BaseModel):
    payment_method: constr(strip_whitespace=True, min_length=1) = "bank_transfer"


def serialize_period(period: PayrollPeriod, with_entries: bool = False) -> dict:
    data = {
        "id": period.id,
        "name": period.name,
        "start_date": period.start_date,
        "end_date": period.end_date,
        "pay_date": period.pay_date,
        "status": period.status.value,
        "total_employees": period.total_employees,
        "total_gross": period.total_gross,
        "total_deductions": period.total_deductions,
        "total_net": period.total_net,
        "approved_by_id": period.approved_by_id,
        "approved_at": period.approved_at.isoformat() if period.approved_at else None,
        "paid_at": period.paid_at.isoformat() if period.paid_at else None,
        "transaction_id": period.transaction_id,
    }
    if with_entries:
        data["entries"] = [
            {
                "id": e.id,
                "employee_id": e.employee_id,
                "employee_code": e.employee.employee_code,
                "employee_name": e.employee.full_name,
                "working_days": e.working_days,
                "actual_days": e.actual_days,
                "overtime_hours": e.overtime_hours,
                "base_pay": e.base_pay,
                "total_allowances": e.total_allowances,
                "gross_pay": e.gross_pay,
                "total_deductions": e.total_deductions,
                "net_pay": e.net_pay,
                "status": e.status.value,
            }
            for e in period.entries
        ]
    return data


@router.get("/periods")
def list_periods(
    status: Optional[PayrollStatus] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    query = db.query(PayrollPeriod)
    if status:
        query = query.filter(PayrollPeriod.status == status)
    periods, meta = pagination.apply(query.order_by(PayrollPeriod.start_date.desc(), PayrollPeriod.id.desc()))
    return {"periods": [serialize_period(p) for p in periods], "pagination": meta}


@router.post("/periods", status_code=201)
def create_period(payload: PeriodCreate, db: Session = Depends(get_db), user: User = Depends(require_hr)):
    period = payroll_service.create_period(db, created_by_id=user.id, **payload.model_dump())
    return serialize_period(period)


@router.get("/periods/{period_id}")
def get_period(period_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return serialize_period(get_or_404(db, PayrollPeriod, period_id, "Payroll period"), with_entries=True)


@router.post("/periods/{period_id}/run")
def run_payroll(period_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    """Compute (or recompute) entries for every active employee."""
    period = get_or_404(db, PayrollPeriod, period_id, "Payroll period")
    return serialize_period(payroll_service.run_payroll(db, period), with_entries=True)


@router.post("/periods/{period_id}/approve")
def approve_payroll(
    period_id: int, db: Session = Depends(get_db), user: User = Depends(require_payroll_approver)
):
    period = get_or_404(db, PayrollPeriod, period_id, "Payroll period")
    return serialize_period(payroll_service.approve_payroll(db, period, user.id))


@router.post("/periods/{period_id}/pay")
def pay_payroll(
    period_id: int,
    payload: Optional[PayRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_payroll_approver),
):
    period = get_or_404(db, PayrollPeriod, period_id, "Payroll period")
    method = payload.payment_method if payload else "bank_transfer"
    return serialize_period(payroll_service.mark_paid(db, period, method, user.id))


@router.delete("/periods/{period_id}")
def delete_period(period_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    period = get_or_404(db, PayrollPeriod, period_id, "Payroll period")
    payroll_service.delete_period(db, period)
    return {"success": True}


@router.get("/periods/{period_id}/payslips/{employee_id}")
def get_payslip(
    period_id: int,
    employee_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    entry = (
        db.query(PayrollEntry)
        .filter(PayrollEntry.period_id == period_id, PayrollEntry.employee_id == employee_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=404, detail="Payslip not found")
    return payroll_service.payslip(entry)
