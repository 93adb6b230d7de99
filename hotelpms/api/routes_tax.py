from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, Pagination, get_or_404, require_roles
from hotelpms.core.db import get_db
from hotelpms.models import TaxRecord, TaxStatus, TaxType, User
from hotelpms.services import tax as tax_service

router = APIRouter(prefix="/tax-records", tags=["tax"])
require_accounting = require_roles(*ACCOUNTING_ROLES)


class TaxRecordCreate(BaseModel):
    tax_type: TaxType
    period_start: date
    period_end: date
    taxable_amount: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    tax_rate: Decimal = Field(ge=0, le=100, max_digits=5, decimal_places=2)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    due_date: date
    reference: Optional[str] = None
    notes: Optional[str] = None


class TaxRecordUpdate(BaseModel):
    tax_type: Optional[TaxType] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    taxable_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    due_date: Optional[date] = None
    status: Optional[TaxStatus] = None
    reference: Optional[str] = None
    notes: Optional[str] = None


class ReferenceRequest(BaseModel):
    reference: Optional[str] = None


def serialize_tax_record(record: TaxRecord) -> dict:
    return {
        "id": record.id,
        "tax_type": record.tax_type.value,
        "period_start": record.period_start,
        "period_end": record.period_end,
        "taxable_amount": record.taxable_amount,
        "tax_rate": record.tax_rate,
        "tax_amount": record.tax_amount,
        "status": record.status.value,
        "due_date": record.due_date,
        "filed_at": record.filed_at.isoformat() if record.filed_at else None,
        "paid_at": record.paid_at.isoformat() if record.paid_at else None,
        "reference": record.reference,
        "notes": record.notes,
    }


@router.get("")
def list_tax_records(
    tax_type: Optional[TaxType] = None,
    status: Optional[TaxStatus] = None,
    year: Optional[int] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    tax_service.refresh_overdue(db)
    query = db.query(TaxRecord)
    if tax_type:
        query = query.filter(TaxRecord.tax_type == tax_type)
    if status:
        query = query.filter(TaxRecord.status == status)
    if year:
        query = query.filter(
            TaxRecord.period_start >= date(year, 1, 1), TaxRecord.period_start <= date(year, 12, 31)
        )
    records, meta = pagination.apply(query.order_by(TaxRecord.due_date.desc(), TaxRecord.id.desc()))
    return {"tax_records": [serialize_tax_record(r) for r in records], "pagination": meta}


@router.get("/stats")
def tax_stats(db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return tax_service.tax_stats(db)


@router.get("/{record_id}")
def get_tax_record(record_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    return serialize_tax_record(get_or_404(db, TaxRecord, record_id, "Tax record"))


@router.post("", status_code=201)
def create_tax_record(
    payload: TaxRecordCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_accounting),
):
    record = tax_service.create_record(db, created_by_id=user.id, **payload.model_dump())
    return serialize_tax_record(record)


@router.put("/{record_id}")
def update_tax_record(
    record_id: int,
    payload: TaxRecordUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    record = get_or_404(db, TaxRecord, record_id, "Tax record")
    record = tax_service.update_record(db, record, **payload.model_dump(exclude_unset=True))
    return serialize_tax_record(record)


@router.post("/{record_id}/file")
def file_tax_record(
    record_id: int,
    payload: Optional[ReferenceRequest] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    record = get_or_404(db, TaxRecord, record_id, "Tax record")
    return serialize_tax_record(tax_service.file_record(db, record, payload.reference if payload else None))


@router.post("/{record_id}/pay")
def pay_tax_record(
    record_id: int,
    payload: Optional[ReferenceRequest] = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_accounting),
):
    record = get_or_404(db, TaxRecord, record_id, "Tax record")
    return serialize_tax_record(tax_service.pay_record(db, record, payload.reference if payload else None))


@router.delete("/{record_id}")
def delete_tax_record(record_id: int, db: Session = Depends(get_db), _user: User = Depends(require_accounting)):
    record = get_or_404(db, TaxRecord, record_id, "Tax record")
    tax_service.delete_record(db, record)
    return {"success": True}
