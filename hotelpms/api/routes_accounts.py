from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, constr
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import Account, AccountType, User
from hotelpms.services import accounting
from hotelpms.services.chart_of_accounts import seed_defaults

router = APIRouter(prefix="/accounts", tags=["accounts"])
require_accounting = require_roles(*ACCOUNTING_ROLES)


class AccountCreate(BaseModel):
    code: constr(strip_whitespace=True, min_length=1, max_length=20)
    name: constr(strip_whitespace=True, min_length=1)
    account_type: AccountType
    category: Optional[str] = None
    parent_id: Optional[int] = None
    description: Optional[str] = None
    is_active: bool = True


class AccountUpdate(BaseModel):
    code: Optional[constr(strip_whitespace=True, min_length=1, max_length=20)] = None
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    account_type: Optional[AccountType] = None
    category: Optional[str] = None
    parent_id: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


def serialize_account(account: Account) -> dict:
    return {
        "id": account.id,
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type.value,
        "category": account.category,
        "balance": account.balance,
        "parent_id": account.parent_id,
        "is_active": account.is_active,
        "description": account.description,
    }


@router.get("")
def list_accounts(
    account_type: Optional[AccountType] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(Account)
    if account_type:
        query = query.filter(Account.account_type == account_type)
    if is_active is not None:
        query = query.filter(Account.is_active == is_active)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(func.lower(Account.name).like(pattern), Account.code.like(pattern)))
    accounts, meta = pagination.apply(query.order_by(Account.code))
    return {"accounts": [serialize_account(a) for a in accounts], "pagination": meta}


@router.post("/seed")
def seed_chart_of_accounts(db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    """Create the default hotel chart of accounts and categories (idempotent)."""
    return seed_defaults(db)


@router.get("/{account_id}")
def get_account(account_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return serialize_account(get_or_404(db, Account, account_id, "Account"))


@router.get("/{account_id}/ledger")
def account_ledger(
    account_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    account = get_or_404(db, Account, account_id, "Account")
    ledger = accounting.account_ledger(db, account, start_date, end_date)
    return {"account": serialize_account(account), **ledger}


@router.post("", status_code=201)
def create_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    return serialize_account(accounting.create_account(db, **payload.model_dump()))


@router.put("/{account_id}")
def update_account(
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    account = get_or_404(db, Account, account_id, "Account")
    account = accounting.update_account(db, account, **payload.model_dump(exclude_unset=True))
    return serialize_account(account)


@router.delete("/{account_id}")
def delete_account(account_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    account = get_or_404(db, Account, account_id, "Account")
    accounting.delete_account(db, account)
    return {"success": True}
