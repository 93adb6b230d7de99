import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.exceptions import ConflictError, DomainError
from hotelpms.models import (
    Employee,
    EmployeeAllowance,
    EmployeeDeduction,
    EmployeeStatus,
    LeaveRequest,
    LeaveStatus,
)
from hotelpms.utils.money import ZERO, quantize, to_decimal
from hotelpms.utils.numbering import employee_code

logger = logging.getLogger("hotelpms.hr")


def next_employee_code(db: Session) -> str:
    """EMP001, EMP002, ... based on the highest numeric code in use."""
    highest = 0
    for (code,) in db.query(Employee.employee_code).filter(Employee.employee_code.like("EMP%")).all():
        suffix = code[3:]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return employee_code(highest + 1)


def _allowances(rows: List[Dict]) -> List[EmployeeAllowance]:
    result = []
    for row in rows:
        amount = quantize(row["amount"])
        if amount < 0:
            raise DomainError("Allowance amounts cannot be negative")
        result.append(
            EmployeeAllowance(
                allowance_type=row["allowance_type"],
                name=row["name"],
                amount=amount,
                is_taxable=row.get("is_taxable", True),
            )
        )
    return result


def _deductions(rows: List[Dict]) -> List[EmployeeDeduction]:
    result = []
    for row in rows:
        amount = to_decimal(row["amount"])
        is_percentage = row.get("is_percentage", False)
        if amount < 0 or (is_percentage and amount > 100):
            raise DomainError("Deduction must be positive (and at most 100 when a percentage)")
        result.append(
            EmployeeDeduction(
                deduction_type=row["deduction_type"],
                name=row["name"],
                amount=quantize(amount),
                is_percentage=is_percentage,
            )
        )
    return result


def _check_unique(db: Session, employee_id: Optional[int], email: Optional[str], code: Optional[str]) -> None:
    if email:
        q = db.query(Employee.id).filter(func.lower(Employee.email) == email.lower())
        if employee_id:
            q = q.filter(Employee.id != employee_id)
        if q.first():
            raise ConflictError(f"An employee with email {email} already exists")
    if code:
        q = db.query(Employee.id).filter(Employee.employee_code == code)
        if employee_id:
            q = q.filter(Employee.id != employee_id)
        if q.first():
            raise ConflictError(f"Employee code {code} already exists")


def create_employee(
    db: Session,
    *,
    allowances: Optional[List[Dict]] = None,
    deductions: Optional[List[Dict]] = None,
    **fields,
) -> Employee:
    code = fields.pop("employee_code", None)
    _check_unique(db, None, fields.get("email"), code)
    if quantize(fields.get("base_salary", 0)) < 0:
        raise DomainError("Base salary cannot be negative")
    employee = Employee(employee_code=code or next_employee_code(db), **fields)
    employee.allowances = _allowances(allowances or [])
    employee.deductions = _deductions(deductions or [])
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info("Employee %s (%s) created", employee.employee_code, employee.full_name)
    return employee


def update_employee(
    db: Session,
    employee: Employee,
    *,
    allowances: Optional[List[Dict]] = None,
    deductions: Optional[List[Dict]] = None,
    **changes,
) -> Employee:
    _check_unique(db, employee.id, changes.get("email"), changes.get("employee_code"))
    for field, value in changes.items():
        setattr(employee, field, value)
    if allowances is not None:
        employee.allowances = _allowances(allowances)
    if deductions is not None:
        employee.deductions = _deductions(deductions)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def terminate_employee(db: Session, employee: Employee) -> Employee:
    """Employees with history are never hard-deleted."""
    employee.status = EmployeeStatus.TERMINATED
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info("Employee %s terminated", employee.employee_code)
    return employee


def hr_summary(db: Session) -> Dict:
    employees = db.query(Employee).all()
    active = [e for e in employees if e.status == EmployeeStatus.ACTIVE]
    by_department: Dict[str, int] = {}
    for e in active:
        by_department[e.department] = by_department.get(e.department, 0) + 1
    avg_salary = (
        quantize(sum((to_decimal(e.base_salary) for e in active), ZERO) / len(active)) if active else ZERO
    )
    pending_leave = (
        db.query(func.count(LeaveRequest.id)).filter(LeaveRequest.status == LeaveStatus.PENDING).scalar()
    )
    return {
        "headcount": len(employees),
        "active": len(active),
        "by_status": {s.value: sum(1 for e in employees if e.status == s) for s in EmployeeStatus},
        "by_department": dict(sorted(by_department.items())),
        "average_base_salary": avg_salary,
        "pending_leave_requests": pending_leave or 0,
    }
