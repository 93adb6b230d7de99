from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import Budget, BudgetStatus, User, UserRole
from hotelpms.services import budgets as budget_service

router = APIRouter(prefix="/budgets", tags=["budgets"])
require_accounting = require_roles(*ACCOUNTING_ROLES)
require_approver = require_roles(UserRole.ADMIN, UserRole.MANAGER)


class BudgetLineIn(BaseModel):
    category_id: int
    budgeted: Decimal = Field(ge=0, max_digits=14, decimal_places=2)


class BudgetCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    year: int = Field(ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    notes: Optional[str] = None
    lines: List[BudgetLineIn] = []


class BudgetUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    notes: Optional[str] = None
    lines: Optional[List[BudgetLineIn]] = None


def serialize_budget(budget: Budget) -> dict:
    start, end = budget_service.budget_window(budget)
    return {
        "id": budget.id,
        "name": budget.name,
        "year": budget.year,
        "month": budget.month,
        "period_start": start,
        "period_end": end,
        "status": budget.status.value,
        "total_budget": budget.total_budget,
        "total_actual": budget.total_actual,
        "variance": budget.variance,
        "notes": budget.notes,
        "approved_by_id": budget.approved_by_id,
        "approved_at": budget.approved_at.isoformat() if budget.approved_at else None,
        "lines": [
            {
                "id": line.id,
                "category_id": line.category_id,
                "category_name": line.category.name,
                "category_type": line.category.category_type.value,
                "budgeted": line.budgeted,
                "actual": line.actual,
                "variance": line.variance,
                "variance_pct": line.variance_pct,
            }
            for line in budget.lines
        ],
    }


@router.get("")
def list_budgets(
    year: Optional[int] = None,
    status: Optional[BudgetStatus] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(Budget)
    if year:
        query = query.filter(Budget.year == year)
    if status:
        query = query.filter(Budget.status == status)
    budgets, meta = pagination.apply(query.order_by(Budget.year.desc(), Budget.month.desc(), Budget.id.desc()))
    return {"budgets": [serialize_budget(b) for b in budgets], "pagination": meta}


@router.get("/{budget_id}")
def get_budget(budget_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return serialize_budget(get_or_404(db, Budget, budget_id, "Budget"))


@router.post("", status_code=201)
def create_budget(
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_accounting),
):
    data = payload.model_dump()
    budget = budget_service.create_budget(db, created_by_id=user.id, **data)
    return serialize_budget(budget)


@router.put("/{budget_id}")
def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    budget = get_or_404(db, Budget, budget_id, "Budget")
    budget = budget_service.update_budget(db, budget, **payload.model_dump(exclude_unset=True))
    return serialize_budget(budget)


@router.post("/{budget_id}/approve")
def approve_budget(budget_id: int, db: Session = Depends(get_db), user: User = Depends(require_approver)):
    budget = get_or_404(db, Budget, budget_id, "Budget")
    return serialize_budget(budget_service.approve_budget(db, budget, user.id))


@router.post("/{budget_id}/activate")
def activate_budget(budget_id: int, db: Session = Depends(get_db), _user: User = Depends(require_approver)):
    budget = get_or_404(db, Budget, budget_id, "Budget")
    return serialize_budget(budget_service.activate_budget(db, budget))


@router.post("/{budget_id}/refresh")
def refresh_budget(budget_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    """Recompute actuals and variances from the ledger and paid expenses."""
    budget = get_or_404(db, Budget, budget_id, "Budget")
    return serialize_budget(budget_service.refresh_and_commit(db, budget))


@router.delete("/{budget_id}")
def delete_budget(budget_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    budget = get_or_404(db, Budget, budget_id, "Budget")
    budget_service.delete_budget(db, budget)
    return {"success": True}
