from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, constr
from sqlalchemy.orm import Session

from hotelpms.api.deps import ACCOUNTING_ROLES, FRONT_DESK_ROLES, Pagination, get_or_404, require_roles, require_staff
from hotelpms.core.db import get_db
from hotelpms.models import Bill, BillItem, BillItemCategory, BillPaymentMethod, BillStatus, User
from hotelpms.services import billing as billing_service

router = APIRouter(prefix="/bills", tags=["billing"])
require_front_desk = require_roles(*FRONT_DESK_ROLES)


class BillItemIn(BaseModel):
    description: constr(strip_whitespace=True, min_length=1)
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    category: BillItemCategory = BillItemCategory.OTHER


class BillCreate(BaseModel):
    reservation_id: int
    items: List[BillItemIn] = []
    include_accommodation: bool = False
    due_date: Optional[date] = None
    notes: Optional[str] = None


class BillUpdate(BaseModel):
    items: Optional[List[BillItemIn]] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class PaymentRequest(BaseModel):
    payment_method: BillPaymentMethod


def _items(items: List[BillItemIn]) -> List[BillItem]:
    return [
        billing_service.build_item(i.description, i.quantity, i.unit_price, i.category) for i in items
    ]


def serialize_bill(bill: Bill) -> dict:
    return {
        "id": bill.id,
        "bill_number": bill.bill_number,
        "reservation_id": bill.reservation_id,
        "guest": {"id": bill.guest.id, "name": bill.guest.name, "email": bill.guest.email},
        "room": {"id": bill.room.id, "number": bill.room.number},
        "items": [
            {
                "id": item.id,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total": item.total,
                "category": item.category.value,
            }
            for item in bill.items
        ],
        "subtotal": bill.subtotal,
        "tax": bill.tax,
        "total": bill.total,
        "status": bill.status.value,
        "payment_method": bill.payment_method.value if bill.payment_method else None,
        "paid_at": bill.paid_at.isoformat() if bill.paid_at else None,
        "due_date": bill.due_date,
        "notes": bill.notes,
        "transaction_id": bill.transaction_id,
        "created_at": bill.created_at.isoformat() if bill.created_at else None,
    }


@router.get("")
def list_bills(
    status: Optional[BillStatus] = None,
    guest_id: Optional[int] = None,
    reservation_id: Optional[int] = None,
    pagination: Pagination = Depends(),
    db: Session = Depends(get_db),
    _user: User = Depends(require_staff),
):
    billing_service.mark_overdue(db)
    query = db.query(Bill)
    if status:
        query = query.filter(Bill.status == status)
    if guest_id:
        query = query.filter(Bill.guest_id == guest_id)
    if reservation_id:
        query = query.filter(Bill.reservation_id == reservation_id)
    bills, meta = pagination.apply(query.order_by(Bill.id.desc()))
    return {"bills": [serialize_bill(b) for b in bills], "pagination": meta}


@router.get("/{bill_id}")
def get_bill(bill_id: int, db: Session = Depends(get_db), _user: User = Depends(require_staff)):
    return serialize_bill(get_or_404(db, Bill, bill_id, "Bill"))


@router.post("", status_code=201)
def create_bill(
    payload: BillCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_front_desk),
):
    bill = billing_service.create_bill(
        db,
        reservation_id=payload.reservation_id,
        items=_items(payload.items),
        include_accommodation=payload.include_accommodation,
        due_date=payload.due_date,
        notes=payload.notes,
    )
    return serialize_bill(bill)


@router.put("/{bill_id}")
def update_bill(
    bill_id: int,
    payload: BillUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(require_front_desk),
):
    bill = get_or_404(db, Bill, bill_id, "Bill")
    changes = payload.model_dump(exclude_unset=True)
    items = changes.pop("items", None)
    bill = billing_service.update_bill(
        db,
        bill,
        items=_items(payload.items) if items is not None else None,
        **changes,
    )
    return serialize_bill(bill)


@router.post("/{bill_id}/pay")
def pay_bill(
    bill_id: int,
    payload: PaymentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*FRONT_DESK_ROLES, *ACCOUNTING_ROLES)),
):
    bill = get_or_404(db, Bill, bill_id, "Bill")
    return serialize_bill(billing_service.pay_bill(db, bill, payload.payment_method, created_by_id=user.id))


@router.post("/{bill_id}/cancel")
def cancel_bill(bill_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)):
    bill = get_or_404(db, Bill, bill_id, "Bill")
    return serialize_bill(billing_service.cancel_bill(db, bill))


@router.delete("/{bill_id}")
def delete_bill(bill_id: int, db: Session = Depends(get_db), _user: User = Depends(require_front_desk)):
    bill = get_or_404(db, Bill, bill_id, "Bill")
    billing_service.delete_bill(db, bill)
    return {"success": True}
