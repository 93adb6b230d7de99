from datetime import date, timedelta
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import DomainError
from hotelpms.models import (
    BillItemCategory,
    BillPaymentMethod,
    BillStatus,
    Transaction,
    TransactionSource,
    TransactionStatus,
    UserRole,
)
from hotelpms.services import accounting, billing, reservations


@pytest.fixture()
def booking(db_session, guest, room, stay_dates):
    return reservations.create_reservation(
        db_session,
        guest_id=guest.id,
        room_id=room.id,
        check_in_date=stay_dates[0],
        check_out_date=stay_dates[1],
    )


def test_bill_totals_include_tax(db_session, booking):
    bill = billing.create_bill(
        db_session,
        reservation_id=booking.id,
        items=[billing.build_item("Dinner", 2, Decimal("25.00"), BillItemCategory.FOOD)],
        include_accommodation=True,
    )
    assert [item.category for item in bill.items] == [BillItemCategory.ACCOMMODATION, BillItemCategory.FOOD]
    assert bill.subtotal == Decimal("350.00")
    assert bill.tax == Decimal("35.00")
    assert bill.total == Decimal("385.00")
    assert bill.bill_number == f"BILL-{bill.id:06d}"
    assert bill.status == BillStatus.PENDING


def test_empty_bill_rejected(db_session, booking):
    with pytest.raises(DomainError):
        billing.create_bill(db_session, reservation_id=booking.id, items=[])


def test_payment_posts_to_ledger(chart, booking):
    bill = billing.create_bill(
        chart,
        reservation_id=booking.id,
        items=[billing.build_item("Spa", 1, Decimal("80.00"), BillItemCategory.SERVICE)],
    )
    billing.pay_bill(chart, bill, BillPaymentMethod.CASH)

    assert bill.status == BillStatus.PAID
    txn = chart.query(Transaction).filter(Transaction.id == bill.transaction_id).one()
    assert txn.source == TransactionSource.BILLING
    assert txn.status == TransactionStatus.POSTED
    assert accounting.get_account_by_code(chart, "1001").balance == Decimal("88.00")
    assert accounting.get_account_by_code(chart, "4001").balance == Decimal("80.00")
    assert accounting.get_account_by_code(chart, "2004").balance == Decimal("8.00")

    with pytest.raises(DomainError):
        billing.pay_bill(chart, bill, BillPaymentMethod.CARD)
    with pytest.raises(DomainError):
        billing.cancel_bill(chart, bill)


def test_payment_without_chart_still_settles_bill(db_session, booking):
    bill = billing.create_bill(
        db_session,
        reservation_id=booking.id,
        items=[billing.build_item("Parking", 1, Decimal("10.00"))],
    )
    billing.pay_bill(db_session, bill, BillPaymentMethod.CARD)
    assert bill.status == BillStatus.PAID
    assert bill.transaction_id is None


def test_complimentary_bill_settles_without_ledger_entry(chart, booking):
    bill = billing.create_bill(
        chart,
        reservation_id=booking.id,
        items=[billing.build_item("Welcome drink", 1, Decimal("0"), BillItemCategory.BEVERAGE)],
    )
    assert bill.total == Decimal("0.00")

    billing.pay_bill(chart, bill, BillPaymentMethod.CASH)
    assert bill.status == BillStatus.PAID
    assert bill.transaction_id is None
    assert chart.query(Transaction).count() == 0
    assert accounting.get_account_by_code(chart, "1001").balance == Decimal("0.00")


def test_mark_overdue(db_session, booking):
    bill = billing.create_bill(
        db_session,
        reservation_id=booking.id,
        items=[billing.build_item("Laundry", 1, Decimal("15.00"))],
        due_date=date.today() - timedelta(days=1),
    )
    assert billing.mark_overdue(db_session) == 1
    db_session.refresh(bill)
    assert bill.status == BillStatus.OVERDUE


def test_bill_api_and_payment_roles(client, chart, booking, auth_headers):
    resp = client.post(
        "/bills",
        json={
            "reservation_id": booking.id,
            "include_accommodation": True,
            "items": [{"description": "Breakfast", "quantity": 3, "unit_price": "12.50", "category": "food"}],
        },
        headers=auth_headers(UserRole.RECEPTIONIST),
    )
    assert resp.status_code == 201, resp.text
    bill = resp.json()
    assert bill["subtotal"] == 337.5
    assert bill["total"] == 371.25

    denied = client.post(
        f"/bills/{bill['id']}/pay",
        json={"payment_method": "card"},
        headers=auth_headers(UserRole.HOUSEKEEPER),
    )
    assert denied.status_code == 403

    paid = client.post(
        f"/bills/{bill['id']}/pay",
        json={"payment_method": "card"},
        headers=auth_headers(UserRole.ACCOUNTANT),
    )
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert paid.json()["transaction_id"] is not None
