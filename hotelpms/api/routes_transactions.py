import datetime as dt
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, constr
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import Transaction, TransactionEntry, TransactionSource, TransactionStatus, User
from hotelpms.services import accounting

router = APIRouter(prefix="/transactions", tags=["transactions"])
require_accounting = require_roles(*ACCOUNTING_ROLES)


class EntryIn(BaseModel):
    account_id: int
    debit: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    memo: Optional[str] = None


class TransactionCreate(BaseModel):
    date: dt.date
    description: constr(strip_whitespace=True, min_length=1)
    reference: Optional[str] = None
    category_id: Optional[int] = None
    entries: List[EntryIn]
    post: bool = False


class TransactionUpdate(BaseModel):
    date: Optional[dt.date] = None
    description: Optional[constr(strip_whitespace=True, min_length=1)] = None
    reference: Optional[str] = None
    category_id: Optional[int] = None
    entries: Optional[List[EntryIn]] = None


def _lines(entries: List[EntryIn]) -> List[accounting.LedgerLine]:
    return [accounting.LedgerLine(e.account_id, e.debit, e.credit, e.memo) for e in entries]


def serialize_transaction(txn: Transaction, with_entries: bool = True) -> dict:
    data = {
        "id": txn.id,
        "transaction_number": txn.transaction_number,
        "date": txn.date,
        "description": txn.description,
        "reference": txn.reference,
        "category": (
            {"id": txn.category.id, "name": txn.category.name, "color": txn.category.color}
            if txn.category
            else None
        ),
        "total_amount": txn.total_amount,
        "status": txn.status.value,
        "source": txn.source.value,
        "created_by": txn.created_by.email if txn.created_by else None,
        "posted_at": txn.posted_at.isoformat() if txn.posted_at else None,
        "cancelled_at": txn.cancelled_at.isoformat() if txn.cancelled_at else None,
    }
    if with_entries:
        data["entries"] = [
            {
                "id": e.id,
                "account_id": e.account_id,
                "account_code": e.account.code,
                "account_name": e.account.name,
                "debit": e.debit,
                "credit": e.credit,
                "memo": e.memo,
            }
            for e in txn.entries
        ]
    return data


@router.get("")
def list_transactions(
    status: Optional[TransactionStatus] = None,
    source: Optional[TransactionSource] = None,
    category_id: Optional[int] = None,
    account_id: Optional[int] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    search: Optional[str] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    query = db.query(Transaction)
    if status:
        query = query.filter(Transaction.status == status)
    if source:
        query = query.filter(Transaction.source == source)
    if category_id:
        query = query.filter(Transaction.category_id == category_id)
    if account_id:
        query = query.filter(
            Transaction.id.in_(
                db.query(TransactionEntry.transaction_id).filter(TransactionEntry.account_id == account_id)
            )
        )
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Transaction.description).like(pattern),
                func.lower(Transaction.reference).like(pattern),
                func.lower(Transaction.transaction_number).like(pattern),
            )
        )
    txns, meta = pagination.apply(query.order_by(Transaction.date.desc(), Transaction.id.desc()))
    return {"transactions": [serialize_transaction(t) for t in txns], "pagination": meta}


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)
):
    return serialize_transaction(get_or_404(db, Transaction, transaction_id, "Transaction"))


@router.post("", status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_accounting),
):
    txn = accounting.create_transaction(
        db,
        txn_date=payload.date,
        description=payload.description,
        lines=_lines(payload.entries),
        reference=payload.reference,
        category_id=payload.category_id,
        created_by_id=user.id,
        post=payload.post,
    )
    return serialize_transaction(txn)


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    txn = get_or_404(db, Transaction, transaction_id, "Transaction")
    changes = payload.model_dump(exclude_unset=True)
    entries = changes.pop("entries", None)
    txn = accounting.update_transaction(
        db,
        txn,
        lines=_lines(payload.entries) if entries is not None else None,
        **changes,
    )
    return serialize_transaction(txn)


@router.post("/{transaction_id}/post")
def post_transaction(
    transaction_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)
):
    txn = get_or_404(db, Transaction, transaction_id, "Transaction")
    return serialize_transaction(accounting.post_transaction(db, txn))


@router.post("/{transaction_id}/cancel")
def cancel_transaction(
    transaction_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)
):
    txn = get_or_404(db, Transaction, transaction_id, "Transaction")
    return serialize_transaction(accounting.cancel_transaction(db, txn))


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)
):
    txn = get_or_404(db, Transaction, transaction_id, "Transaction")
    accounting.delete_transaction(db, txn)
    return {"success": True}
