import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from hotelpms.core.config import get_settings
from hotelpms.core.exceptions import DomainError, NotFoundError
from hotelpms.models import (
    Bill,
    BillItem,
    BillItemCategory,
    BillPaymentMethod,
    BillStatus,
    Reservation,
    ReservationStatus,
    TransactionSource,
)
from hotelpms.services import accounting
from hotelpms.services.reservations import nights_between
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import ZERO, money_sum, quantize, to_decimal
from hotelpms.utils.numbering import document_number

settings = get_settings()
logger = logging.getLogger("hotelpms.billing")

BILL_PREFIX = "BILL"


def compute_totals(items: Sequence[BillItem]) -> Tuple[Decimal, Decimal, Decimal]:
    subtotal = money_sum(item.total for item in items)
    tax = quantize(subtotal * to_decimal(settings.bill_tax_rate))
    return subtotal, tax, quantize(subtotal + tax)


def build_item(
    description: str,
    quantity: int,
    unit_price,
    category: BillItemCategory = BillItemCategory.OTHER,
) -> BillItem:
    if quantity < 1:
        raise DomainError("Item quantity must be at least 1")
    unit_price = quantize(unit_price)
    if unit_price < 0:
        raise DomainError("Item unit price cannot be negative")
    return BillItem(
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        total=quantize(unit_price * quantity),
        category=category,
    )


def accommodation_item(reservation: Reservation) -> BillItem:
    nights = nights_between(reservation.check_in_date, reservation.check_out_date)
    room = reservation.room
    return build_item(
        f"Room {room.number} ({room.room_type.value}) - {nights} night(s)",
        nights,
        room.price,
        BillItemCategory.ACCOMMODATION,
    )


def _apply_items(bill: Bill, items: List[BillItem]) -> None:
    bill.items = items
    bill.subtotal, bill.tax, bill.total = compute_totals(items)


def create_bill(
    db: Session,
    *,
    reservation_id: int,
    items: List[BillItem],
    include_accommodation: bool = False,
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> Bill:
    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFoundError("Reservation not found")
    if reservation.status == ReservationStatus.CANCELLED:
        raise DomainError("Cannot bill a cancelled reservation")

    items = list(items)
    if include_accommodation:
        items.insert(0, accommodation_item(reservation))
    if not items:
        raise DomainError("A bill needs at least one item")

    bill = Bill(
        reservation=reservation,
        guest_id=reservation.guest_id,
        room_id=reservation.room_id,
        status=BillStatus.PENDING,
        due_date=due_date or (date.today() + timedelta(days=settings.bill_due_days)),
        notes=notes,
    )
    _apply_items(bill, items)
    db.add(bill)
    db.flush()
    bill.bill_number = document_number(BILL_PREFIX, bill.id)
    db.commit()
    db.refresh(bill)
    logger.info("Bill %s created for reservation %s (total=%s)", bill.bill_number, reservation.id, bill.total)
    return bill


def update_bill(
    db: Session,
    bill: Bill,
    *,
    items: Optional[List[BillItem]] = None,
    **changes,
) -> Bill:
    if bill.status in (BillStatus.PAID, BillStatus.CANCELLED):
        raise DomainError(f"Cannot modify a {bill.status.value} bill")
    if items is not None:
        if not items:
            raise DomainError("A bill needs at least one item")
        _apply_items(bill, items)
    for field, value in changes.items():
        setattr(bill, field, value)
    if bill.status == BillStatus.OVERDUE and bill.due_date and bill.due_date >= date.today():
        bill.status = BillStatus.PENDING
    db.add(bill)
    db.commit()
    db.refresh(bill)
    return bill


def pay_bill(
    db: Session,
    bill: Bill,
    payment_method: BillPaymentMethod,
    created_by_id: Optional[int] = None,
) -> Bill:
    if bill.status == BillStatus.PAID:
        raise DomainError("Bill is already paid")
    if bill.status == BillStatus.CANCELLED:
        raise DomainError("Cannot pay a cancelled bill")

    bill.status = BillStatus.PAID
    bill.payment_method = payment_method
    bill.paid_at = utcnow()

    txn = accounting.auto_post(
        db,
        txn_date=date.today(),
        description=f"Payment for bill {bill.bill_number}",
        reference=bill.bill_number,
        source=TransactionSource.BILLING,
        created_by_id=created_by_id,
        lines_by_code=[
            (accounting.cash_account_code(payment_method.value), bill.total, ZERO),
            (settings.room_revenue_account_code, ZERO, bill.subtotal),
            (settings.tax_payable_account_code, ZERO, bill.tax),
        ],
    )
    if txn is not None:
        bill.transaction_id = txn.id
    db.add(bill)
    db.commit()
    db.refresh(bill)
    logger.info("Bill %s paid via %s", bill.bill_number, payment_method.value)
    return bill


def cancel_bill(db: Session, bill: Bill) -> Bill:
    if bill.status == BillStatus.PAID:
        raise DomainError("Paid bills cannot be cancelled")
    bill.status = BillStatus.CANCELLED
    db.add(bill)
    db.commit()
    db.refresh(bill)
    return bill


def delete_bill(db: Session, bill: Bill) -> None:
    if bill.status == BillStatus.PAID:
        raise DomainError("Paid bills cannot be deleted")
    db.delete(bill)
    db.commit()


def mark_overdue(db: Session, today: Optional[date] = None) -> int:
    """Flip pending bills past their due date to overdue. Returns the number changed."""
    today = today or date.today()
    overdue = (
        db.query(Bill)
        .filter(Bill.status == BillStatus.PENDING, Bill.due_date.isnot(None), Bill.due_date < today)
        .all()
    )
    for bill in overdue:
        bill.status = BillStatus.OVERDUE
        db.add(bill)
    if overdue:
        db.commit()
        logger.info("Marked %d bill(s) overdue", len(overdue))
    return len(overdue)
