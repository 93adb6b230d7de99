"""
Payroll runs.

For each active employee in a period:

    working_days = weekdays in the period
    actual_days  = working_days - absent days - approved unpaid-leave weekdays
    base_pay     = period_salary * actual_days / working_days
    overtime     = overtime_hours * hourly_rate * overtime_multiplier
    gross        = base_pay + allowances + overtime
    net          = max(0, gross - deductions)

``period_salary`` is the base salary converted to a monthly amount from the
employee's pay frequency; percentage deductions are taken of gross pay.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.config import get_settings
from hotelpms.core.exceptions import DomainError
from hotelpms.models import (
    Attendance,
    AttendanceStatus,
    Employee,
    EmployeeStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PayFrequency,
    PayrollEntry,
    PayrollEntryStatus,
    PayrollPeriod,
    PayrollStatus,
    TransactionSource,
)
from hotelpms.services import accounting
from hotelpms.utils.dates import count_weekdays, overlap, utcnow
from hotelpms.utils.money import ZERO, money_sum, quantize, to_decimal

settings = get_settings()
logger = logging.getLogger("hotelpms.payroll")

MONTHLY_FACTORS = {
    PayFrequency.MONTHLY: Decimal(1),
    PayFrequency.ANNUALLY: Decimal(1) / Decimal(12),
    PayFrequency.BI_WEEKLY: Decimal(26) / Decimal(12),
    PayFrequency.WEEKLY: Decimal(52) / Decimal(12),
}


def monthly_salary(employee: Employee) -> Decimal:
    return quantize(to_decimal(employee.base_salary) * MONTHLY_FACTORS[employee.pay_frequency])


def create_period(
    db: Session,
    *,
    name: str,
    start_date: date,
    end_date: date,
    pay_date: date,
    created_by_id: Optional[int] = None,
) -> PayrollPeriod:
    if end_date < start_date:
        raise DomainError("Payroll period end cannot be before start")
    if pay_date < start_date:
        raise DomainError("Pay date cannot be before the period start")
    period = PayrollPeriod(
        name=name,
        start_date=start_date,
        end_date=end_date,
        pay_date=pay_date,
        status=PayrollStatus.DRAFT,
        created_by_id=created_by_id,
    )
    db.add(period)
    db.commit()
    db.refresh(period)
    return period


def _absent_days(db: Session, employee_id: int, start: date, end: date) -> int:
    rows = (
        db.query(Attendance.date)
        .filter(
            Attendance.employee_id == employee_id,
            Attendance.status == AttendanceStatus.ABSENT,
            Attendance.date >= start,
            Attendance.date <= end,
        )
        .all()
    )
    return sum(1 for (d,) in rows if d.weekday() < 5)


def _unpaid_leave_days(db: Session, employee_id: int, start: date, end: date) -> int:
    requests = (
        db.query(LeaveRequest)
        .filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == LeaveStatus.APPROVED,
            LeaveRequest.leave_type == LeaveType.UNPAID,
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        )
        .all()
    )
    days = 0
    for req in requests:
        window = overlap(req.start_date, req.end_date, start, end)
        if window:
            days += count_weekdays(*window)
    return days


def _overtime_hours(db: Session, employee_id: int, start: date, end: date) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Attendance.overtime_hours), 0))
        .filter(
            Attendance.employee_id == employee_id,
            Attendance.date >= start,
            Attendance.date <= end,
        )
        .scalar()
    )
    return to_decimal(total)


def compute_entry(db: Session, employee: Employee, period: PayrollPeriod) -> PayrollEntry:
    start, end = period.start_date, period.end_date
    working_days = count_weekdays(start, end)
    missed = _absent_days(db, employee.id, start, end) + _unpaid_leave_days(db, employee.id, start, end)
    actual_days = max(0, working_days - missed)

    salary = monthly_salary(employee)
    if working_days:
        base_pay = quantize(salary * actual_days / working_days)
        hourly_rate = salary / (working_days * to_decimal(settings.standard_work_hours))
    else:
        base_pay = ZERO
        hourly_rate = ZERO

    allowance_lines = [
        {"type": a.allowance_type, "name": a.name, "amount": quantize(a.amount)}
        for a in employee.allowances
    ]
    overtime_hours = _overtime_hours(db, employee.id, start, end)
    if overtime_hours > 0:
        allowance_lines.append(
            {
                "type": "overtime",
                "name": f"Overtime ({overtime_hours} h)",
                "amount": quantize(overtime_hours * hourly_rate * to_decimal(settings.overtime_multiplier)),
            }
        )
    total_allowances = money_sum(line["amount"] for line in allowance_lines)
    gross = quantize(base_pay + total_allowances)

    deduction_lines = []
    remaining = gross
    for d in employee.deductions:
        amount = quantize(gross * to_decimal(d.amount) / 100) if d.is_percentage else quantize(d.amount)
        # Deductions never take net pay below zero
        amount = min(amount, remaining)
        remaining -= amount
        deduction_lines.append({"type": d.deduction_type, "name": d.name, "amount": amount})
    total_deductions = money_sum(line["amount"] for line in deduction_lines)
    net = quantize(gross - total_deductions)

    return PayrollEntry(
        employee_id=employee.id,
        working_days=working_days,
        actual_days=actual_days,
        overtime_hours=quantize(overtime_hours),
        base_pay=base_pay,
        total_allowances=total_allowances,
        gross_pay=gross,
        total_deductions=total_deductions,
        net_pay=net,
        breakdown={
            "monthly_salary": float(salary),
            "allowances": [{**line, "amount": float(line["amount"])} for line in allowance_lines],
            "deductions": [{**line, "amount": float(line["amount"])} for line in deduction_lines],
        },
        status=PayrollEntryStatus.PENDING,
    )


def run_payroll(db: Session, period: PayrollPeriod) -> PayrollPeriod:
    if period.status not in (PayrollStatus.DRAFT, PayrollStatus.PROCESSING):
        raise DomainError(f"Cannot run payroll for a {period.status.value} period")
    employees = (
        db.query(Employee)
        .filter(Employee.status == EmployeeStatus.ACTIVE, Employee.hire_date <= period.end_date)
        .order_by(Employee.employee_code)
        .all()
    )
    period.entries = []
    db.flush()
    period.entries = [compute_entry(db, e, period) for e in employees]
    _update_totals(period)
    period.status = PayrollStatus.PROCESSING
    db.add(period)
    db.commit()
    db.refresh(period)
    logger.info(
        "Payroll %s processed: %d employees, net=%s", period.name, period.total_employees, period.total_net
    )
    return period


def _update_totals(period: PayrollPeriod) -> None:
    period.total_employees = len(period.entries)
    period.total_gross = money_sum(e.gross_pay for e in period.entries)
    period.total_deductions = money_sum(e.total_deductions for e in period.entries)
    period.total_net = money_sum(e.net_pay for e in period.entries)


def approve_payroll(db: Session, period: PayrollPeriod, user_id: Optional[int]) -> PayrollPeriod:
    if period.status != PayrollStatus.PROCESSING:
        raise DomainError("Only processed payrolls can be approved")
    if not period.entries:
        raise DomainError("Payroll has no entries")
    period.status = PayrollStatus.APPROVED
    period.approved_by_id = user_id
    period.approved_at = utcnow()
    db.add(period)
    db.commit()
    db.refresh(period)
    return period


def mark_paid(
    db: Session,
    period: PayrollPeriod,
    payment_method: str = "bank_transfer",
    user_id: Optional[int] = None,
) -> PayrollPeriod:
    if period.status != PayrollStatus.APPROVED:
        raise DomainError("Only approved payrolls can be marked as paid")
    now = utcnow()
    for entry in period.entries:
        entry.status = PayrollEntryStatus.PAID
        entry.payment_method = payment_method
        entry.paid_at = now
    period.status = PayrollStatus.PAID
    period.paid_at = now

    txn = accounting.auto_post(
        db,
        txn_date=period.pay_date,
        description=f"Payroll {period.name}",
        reference=f"PAYROLL-{period.id}",
        source=TransactionSource.PAYROLL,
        created_by_id=user_id,
        lines_by_code=[
            (settings.payroll_expense_account_code, period.total_gross, ZERO),
            (accounting.cash_account_code(payment_method), ZERO, period.total_net),
            (settings.payroll_liability_account_code, ZERO, period.total_deductions),
        ],
    )
    if txn is not None:
        period.transaction_id = txn.id
    db.add(period)
    db.commit()
    db.refresh(period)
    logger.info("Payroll %s paid (%s)", period.name, payment_method)
    return period


def delete_period(db: Session, period: PayrollPeriod) -> None:
    if period.status in (PayrollStatus.APPROVED, PayrollStatus.PAID):
        raise DomainError(f"Cannot delete a {period.status.value} payroll")
    db.delete(period)
    db.commit()


def payslip(entry: PayrollEntry) -> Dict:
    employee = entry.employee
    period = entry.period
    return {
        "entry_id": entry.id,
        "period": {
            "id": period.id,
            "name": period.name,
            "start_date": period.start_date.isoformat(),
            "end_date": period.end_date.isoformat(),
            "pay_date": period.pay_date.isoformat(),
        },
        "employee": {
            "id": employee.id,
            "employee_code": employee.employee_code,
            "name": employee.full_name,
            "department": employee.department,
            "position": employee.position,
        },
        "working_days": entry.working_days,
        "actual_days": entry.actual_days,
        "overtime_hours": entry.overtime_hours,
        "base_pay": entry.base_pay,
        "allowances": entry.breakdown.get("allowances", []),
        "deductions": entry.breakdown.get("deductions", []),
        "gross_pay": entry.gross_pay,
        "total_deductions": entry.total_deductions,
        "net_pay": entry.net_pay,
        "status": entry.status.value,
        "paid_at": entry.paid_at.isoformat() if entry.paid_at else None,
    }
