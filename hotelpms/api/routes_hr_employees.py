from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field, constr
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.api.deps import HR_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.core.encryption import mask_value
from hotelpms.models import Employee, EmployeeStatus, EmploymentType, PayFrequency, User
from hotelpms.services import employees as employee_service

router = APIRouter(prefix="/hr/employees", tags=["hr"])
require_hr = require_roles(*HR_ROLES)


class AllowanceIn(BaseModel):
    allowance_type: constr(strip_whitespace=True, min_length=1)
    name: constr(strip_whitespace=True, min_length=1)
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    is_taxable: bool = True


class DeductionIn(BaseModel):
    deduction_type: constr(strip_whitespace=True, min_length=1)
    name: constr(strip_whitespace=True, min_length=1)
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    is_percentage: bool = False


class EmployeeCreate(BaseModel):
    employee_code: Optional[constr(strip_whitespace=True, min_length=1, max_length=20)] = None
    user_id: Optional[int] = None
    first_name: constr(strip_whitespace=True, min_length=1)
    last_name: constr(strip_whitespace=True, min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    department: constr(strip_whitespace=True, min_length=1)
    position: constr(strip_whitespace=True, min_length=1)
    hire_date: date
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    work_location: Optional[str] = None
    base_salary: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: constr(min_length=3, max_length=3) = "USD"
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    allowances: List[AllowanceIn] = []
    deductions: List[DeductionIn] = []


class EmployeeUpdate(BaseModel):
    employee_code: Optional[constr(strip_whitespace=True, min_length=1, max_length=20)] = None
    user_id: Optional[int] = None
    first_name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    last_name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    department: Optional[constr(strip_whitespace=True, min_length=1)] = None
    position: Optional[constr(strip_whitespace=True, min_length=1)] = None
    hire_date: Optional[date] = None
    employment_type: Optional[EmploymentType] = None
    status: Optional[EmployeeStatus] = None
    work_location: Optional[str] = None
    base_salary: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[constr(min_length=3, max_length=3)] = None
    pay_frequency: Optional[PayFrequency] = None
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    allowances: Optional[List[AllowanceIn]] = None
    deductions: Optional[List[DeductionIn]] = None


def serialize_employee(employee: Employee, detail: bool = False) -> dict:
    data = {
        "id": employee.id,
        "employee_code": employee.employee_code,
        "full_name": employee.full_name,
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "email": employee.email,
        "phone": employee.phone,
        "department": employee.department,
        "position": employee.position,
        "hire_date": employee.hire_date,
        "employment_type": employee.employment_type.value,
        "status": employee.status.value,
        "base_salary": employee.base_salary,
        "currency": employee.currency,
        "pay_frequency": employee.pay_frequency.value,
    }
    if detail:
        data.update(
            {
                "user_id": employee.user_id,
                "address": employee.address,
                "date_of_birth": employee.date_of_birth,
                "gender": employee.gender,
                "marital_status": employee.marital_status,
                "emergency_contact_name": employee.emergency_contact_name,
                "emergency_contact_phone": employee.emergency_contact_phone,
                "work_location": employee.work_location,
                "bank_name": employee.bank_name,
                "bank_account_number": mask_value(employee.bank_account_number),
                "allowances": [
                    {
                        "id": a.id,
                        "allowance_type": a.allowance_type,
                        "name": a.name,
                        "amount": a.amount,
                        "is_taxable": a.is_taxable,
                    }
                    for a in employee.allowances
                ],
                "deductions": [
                    {
                        "id": d.id,
                        "deduction_type": d.deduction_type,
                        "name": d.name,
                        "amount": d.amount,
                        "is_percentage": d.is_percentage,
                    }
                    for d in employee.deductions
                ],
            }
        )
    return data


@router.get("")
def list_employees(
    department: Optional[str] = None,
    status: Optional[EmployeeStatus] = None,
    employment_type: Optional[EmploymentType] = None,
    search: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    query = db.query(Employee)
    if department:
        query = query.filter(Employee.department == department)
    if status:
        query = query.filter(Employee.status == status)
    if employment_type:
        query = query.filter(Employee.employment_type == employment_type)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Employee.first_name).like(pattern),
                func.lower(Employee.last_name).like(pattern),
                func.lower(Employee.email).like(pattern),
                func.lower(Employee.employee_code).like(pattern),
            )
        )
    employees, meta = pagination.apply(query.order_by(Employee.employee_code))
    return {"employees": [serialize_employee(e) for e in employees], "pagination": meta}


@router.get("/summary")
def hr_summary(db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return employee_service.hr_summary(db)


@router.get("/{employee_id}")
def get_employee(employee_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    return serialize_employee(get_or_404(db, Employee, employee_id, "Employee"), detail=True)


@router.post("", status_code=201)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    data = payload.model_dump()
    data["email"] = data["email"].lower()
    employee = employee_service.create_employee(db, **data)
    return serialize_employee(employee, detail=True)


@router.put("/{employee_id}")
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_hr),
):
    employee = get_or_404(db, Employee, employee_id, "Employee")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email"):
        changes["email"] = changes["email"].lower()
    employee = employee_service.update_employee(db, employee, **changes)
    return serialize_employee(employee, detail=True)


@router.delete("/{employee_id}")
def terminate_employee(employee_id: int, db: Session = Depends(get_db), _user: User = Depends(require_hr)):
    employee = get_or_404(db, Employee, employee_id, "Employee")
    return serialize_employee(employee_service.terminate_employee(db, employee))
