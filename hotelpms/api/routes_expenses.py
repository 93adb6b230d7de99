import datetime as dt
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, constr
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import Expense, ExpensePaymentMethod, ExpenseStatus, User, UserRole
from hotelpms.services import expenses as expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])
require_accounting = require_roles(*ACCOUNTING_ROLES)
require_approver = require_roles(UserRole.ADMIN, UserRole.MANAGER)


class ExpenseCreate(BaseModel):
    date: dt.date
    vendor: constr(strip_whitespace=True, min_length=1)
    description: constr(strip_whitespace=True, min_length=1)
    category_id: int
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: ExpensePaymentMethod
    reference: Optional[str] = None
    receipt: Optional[str] = None
    notes: Optional[str] = None
    account_id: Optional[int] = None


class ExpenseUpdate(BaseModel):
    date: Optional[dt.date] = None
    vendor: Optional[constr(strip_whitespace=True, min_length=1)] = None
    description: Optional[constr(strip_whitespace=True, min_length=1)] = None
    category_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    payment_method: Optional[ExpensePaymentMethod] = None
    reference: Optional[str] = None
    receipt: Optional[str] = None
    notes: Optional[str] = None
    account_id: Optional[int] = None


class RejectRequest(BaseModel):
    notes: Optional[str] = None


def serialize_expense(expense: Expense) -> dict:
    return {
        "id": expense.id,
        "date": expense.date,
        "vendor": expense.vendor,
        "description": expense.description,
        "category": {
            "id": expense.category.id,
            "name": expense.category.name,
            "color": expense.category.color,
        },
        "amount": expense.amount,
        "payment_method": expense.payment_method.value,
        "reference": expense.reference,
        "receipt": expense.receipt,
        "status": expense.status.value,
        "approved_by_id": expense.approved_by_id,
        "approved_at": expense.approved_at.isoformat() if expense.approved_at else None,
        "paid_at": expense.paid_at.isoformat() if expense.paid_at else None,
        "notes": expense.notes,
        "account_id": expense.account_id,
        "transaction_id": expense.transaction_id,
    }


@router.get("")
def list_expenses(
    status: Optional[ExpenseStatus] = None,
    category_id: Optional[int] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    search: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(Expense)
    if status:
        query = query.filter(Expense.status == status)
    if category_id:
        query = query.filter(Expense.category_id == category_id)
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(func.lower(Expense.vendor).like(pattern), func.lower(Expense.description).like(pattern))
        )
    expenses, meta = pagination.apply(query.order_by(Expense.date.desc(), Expense.id.desc()))
    return {"expenses": [serialize_expense(e) for e in expenses], "pagination": meta}


@router.get("/stats")
def expense_stats(
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    return expense_service.expense_stats(db, start_date, end_date)


@router.get("/{expense_id}")
def get_expense(expense_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return serialize_expense(get_or_404(db, Expense, expense_id, "Expense"))


@router.post("", status_code=201)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    # Any staff member may submit an expense; approval and payment are restricted
    expense = expense_service.create_expense(db, created_by_id=user.id, **payload.model_dump())
    return serialize_expense(expense)


@router.put("/{expense_id}")
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    expense = get_or_404(db, Expense, expense_id, "Expense")
    expense = expense_service.update_expense(db, expense, **payload.model_dump(exclude_unset=True))
    return serialize_expense(expense)


@router.post("/{expense_id}/approve")
def approve_expense(expense_id: int, db: Session = Depends(get_db), user: User = Depends(require_approver)):
    expense = get_or_404(db, Expense, expense_id, "Expense")
    return serialize_expense(expense_service.approve(db, expense, user.id))


@router.post("/{expense_id}/reject")
def reject_expense(
    expense_id: int,
    payload: Optional[RejectRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_approver),
):
    expense = get_or_404(db, Expense, expense_id, "Expense")
    notes = payload.notes if payload else None
    return serialize_expense(expense_service.reject(db, expense, user.id, notes))


@router.post("/{expense_id}/pay")
def pay_expense(expense_id: int, db: Session = Depends(get_db), user: User = Depends(require_accounting)):
    expense = get_or_404(db, Expense, expense_id, "Expense")
    return serialize_expense(expense_service.pay(db, expense, user.id))


@router.delete("/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    expense = get_or_404(db, Expense, expense_id, "Expense")
    expense_service.delete_expense(db, expense)
    return {"success": True}
