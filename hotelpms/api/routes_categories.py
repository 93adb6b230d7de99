from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import BudgetLine, CategoryType, Expense, Transaction, TransactionCategory, User

router = APIRouter(prefix="/transaction-categories", tags=["accounts"])
require_accounting = require_roles(*ACCOUNTING_ROLES)


class CategoryCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    category_type: CategoryType
    color: Optional[constr(pattern=r"^#[0-9A-Fa-f]{6}$")] = None
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    color: Optional[constr(pattern=r"^#[0-9A-Fa-f]{6}$")] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    parent_id: Optional[int] = None


def serialize_category(category: TransactionCategory) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "category_type": category.category_type.value,
        "color": category.color,
        "description": category.description,
        "is_active": category.is_active,
        "parent_id": category.parent_id,
    }


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(TransactionCategory.id).filter(TransactionCategory.name == name)
    if exclude_id is not None:
        query = query.filter(TransactionCategory.id != exclude_id)
    return query.first() is not None


@router.get("")
def list_categories(
    category_type: Optional[CategoryType] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(TransactionCategory)
    if category_type:
        query = query.filter(TransactionCategory.category_type == category_type)
    if not include_inactive:
        query = query.filter(TransactionCategory.is_active == True)  # noqa: E712
    return {"categories": [serialize_category(c) for c in query.order_by(TransactionCategory.name).all()]}


@router.post("", status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    if _name_taken(db, payload.name):
        raise HTTPException(status_code=409, detail="Category name already exists")
    if payload.parent_id is not None:
        get_or_404(db, TransactionCategory, payload.parent_id, "Parent category")
    category = TransactionCategory(**payload.model_dump(), is_active=True)
    db.add(category)
    db.commit()
    db.refresh(category)
    return serialize_category(category)


@router.put("/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    category = get_or_404(db, TransactionCategory, category_id, "Category")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") and _name_taken(db, changes["name"], exclude_id=category.id):
        raise HTTPException(status_code=409, detail="Category name already exists")
    if changes.get("parent_id") == category.id:
        raise HTTPException(status_code=400, detail="Category cannot be its own parent")
    for field, value in changes.items():
        setattr(category, field, value)
    db.add(category)
    db.commit()
    db.refresh(category)
    return serialize_category(category)


@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    category = get_or_404(db, TransactionCategory, category_id, "Category")
    in_use = (
        db.query(Expense.id).filter(Expense.category_id == category.id).first()
        or db.query(Transaction.id).filter(Transaction.category_id == category.id).first()
        or db.query(BudgetLine.id).filter(BudgetLine.category_id == category.id).first()
    )
    if in_use:
        raise HTTPException(status_code=409, detail="Category is in use; deactivate it instead")
    db.delete(category)
    db.commit()
    return {"success": True}
