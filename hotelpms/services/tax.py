import logging
from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError
from hotelpms.models import TaxRecord, TaxStatus
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import ZERO, quantize, to_decimal

logger = logging.getLogger("hotelpms.tax")

OPEN_STATUSES = (TaxStatus.PENDING, TaxStatus.FILED)


def compute_tax(taxable_amount, tax_rate):
    return quantize(to_decimal(taxable_amount) * to_decimal(tax_rate) / 100)


def _validate(period_start: date, period_end: date, tax_rate) -> None:
    if period_start >= period_end:
        raise DomainError("Tax period start must be before period end")
    rate = to_decimal(tax_rate)
    if rate < 0 or rate > 100:
        raise DomainError("Tax rate must be between 0 and 100")


def create_record(
    db: Session,
    *,
    tax_type,
    period_start: date,
    period_end: date,
    taxable_amount,
    tax_rate,
    due_date: date,
    tax_amount=None,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> TaxRecord:
    _validate(period_start, period_end, tax_rate)
    if to_decimal(taxable_amount) < 0:
        raise DomainError("Taxable amount cannot be negative")
    record = TaxRecord(
        tax_type=tax_type,
        period_start=period_start,
        period_end=period_end,
        taxable_amount=quantize(taxable_amount),
        tax_rate=to_decimal(tax_rate),
        tax_amount=quantize(tax_amount) if tax_amount is not None else compute_tax(taxable_amount, tax_rate),
        due_date=due_date,
        status=TaxStatus.OVERDUE if due_date < date.today() else TaxStatus.PENDING,
        reference=reference,
        notes=notes,
        created_by_id=created_by_id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Tax record %s (%s) created, amount=%s", record.id, record.tax_type.value, record.tax_amount)
    return record


def update_record(db: Session, record: TaxRecord, **changes) -> TaxRecord:
    if record.status == TaxStatus.PAID:
        raise DomainError("Paid tax records cannot be modified")
    status = changes.pop("status", None)
    for field, value in changes.items():
        setattr(record, field, value)
    _validate(record.period_start, record.period_end, record.tax_rate)
    if {"taxable_amount", "tax_rate"} & set(changes) and "tax_amount" not in changes:
        record.tax_amount = compute_tax(record.taxable_amount, record.tax_rate)
    if status is not None:
        _set_status(record, status)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _set_status(record: TaxRecord, status: TaxStatus) -> None:
    now = utcnow()
    if status == TaxStatus.FILED and record.filed_at is None:
        record.filed_at = now
    if status == TaxStatus.PAID:
        record.paid_at = record.paid_at or now
        record.filed_at = record.filed_at or now
    record.status = status


def file_record(db: Session, record: TaxRecord, reference: Optional[str] = None) -> TaxRecord:
    if record.status not in (TaxStatus.PENDING, TaxStatus.OVERDUE):
        raise DomainError(f"Cannot file a {record.status.value} tax record")
    _set_status(record, TaxStatus.FILED)
    if reference:
        record.reference = reference
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def pay_record(db: Session, record: TaxRecord, reference: Optional[str] = None) -> TaxRecord:
    if record.status == TaxStatus.PAID:
        raise DomainError("Tax record is already paid")
    _set_status(record, TaxStatus.PAID)
    if reference:
        record.reference = reference
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def refresh_overdue(db: Session, today: Optional[date] = None) -> int:
    """Pending or filed (but unpaid) records past their due date become overdue."""
    today = today or date.today()
    records = (
        db.query(TaxRecord)
        .filter(TaxRecord.status.in_(OPEN_STATUSES), TaxRecord.due_date < today)
        .all()
    )
    for record in records:
        record.status = TaxStatus.OVERDUE
        db.add(record)
    if records:
        db.commit()
        logger.info("Marked %d tax record(s) overdue", len(records))
    return len(records)


def tax_stats(db: Session) -> Dict:
    refresh_overdue(db)
    totals = {s: {"count": 0, "amount": ZERO} for s in TaxStatus}
    for record in db.query(TaxRecord).all():
        bucket = totals[record.status]
        bucket["count"] += 1
        bucket["amount"] = quantize(bucket["amount"] + to_decimal(record.tax_amount))

    liability = quantize(
        sum((v["amount"] for s, v in totals.items() if s != TaxStatus.PAID), ZERO)
    )
    return {
        "total_liability": liability,
        "pending_amount": totals[TaxStatus.PENDING]["amount"],
        "filed_amount": totals[TaxStatus.FILED]["amount"],
        "overdue_amount": totals[TaxStatus.OVERDUE]["amount"],
        "paid_amount": totals[TaxStatus.PAID]["amount"],
        "counts": {s.value: v["count"] for s, v in totals.items()},
    }


def delete_record(db: Session, record: TaxRecord) -> None:
    if record.status == TaxStatus.PAID:
        raise DomainError("Paid tax records cannot be deleted")
    db.delete(record)
    db.commit()
