from datetime import date
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import ConflictError, DomainError, NotFoundError, UnbalancedTransactionError
from hotelpms.models import AccountType, TransactionCategory, TransactionSource, TransactionStatus, UserRole
from hotelpms.services import accounting
from hotelpms.services.chart_of_accounts import seed_defaults
from hotelpms.services.accounting import LedgerLine


def _acct(db, code):
    return accounting.get_account_by_code(db, code)


def test_seed_defaults_is_idempotent(chart):
    again = seed_defaults(chart)
    assert again == {"accounts_created": 0, "categories_created": 0}
    assert _acct(chart, "1001").account_type == AccountType.ASSET
    assert _acct(chart, "4001").account_type == AccountType.REVENUE


def test_unbalanced_transaction_is_rejected(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    with pytest.raises(UnbalancedTransactionError):
        accounting.create_transaction(
            chart,
            txn_date=date(2026, 3, 1),
            description="Walk-in sale",
            lines=[
                LedgerLine(cash.id, debit=Decimal("100.00")),
                LedgerLine(revenue.id, credit=Decimal("90.00")),
            ],
        )


def test_entry_needs_exactly_one_side(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    with pytest.raises(DomainError):
        accounting.create_transaction(
            chart,
            txn_date=date(2026, 3, 1),
            description="Both sides",
            lines=[
                LedgerLine(cash.id, debit=Decimal("10"), credit=Decimal("10")),
                LedgerLine(revenue.id, credit=Decimal("0")),
            ],
        )


def test_posting_moves_balances_and_cancel_reverses(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    txn = accounting.create_transaction(
        chart,
        txn_date=date(2026, 3, 1),
        description="Room sale",
        lines=[
            LedgerLine(cash.id, debit=Decimal("250.00")),
            LedgerLine(revenue.id, credit=Decimal("250.00")),
        ],
    )
    assert txn.status == TransactionStatus.DRAFT
    assert txn.transaction_number == f"TXN-{txn.id:06d}"
    chart.refresh(cash)
    assert cash.balance == Decimal("0.00")

    accounting.post_transaction(chart, txn)
    chart.refresh(cash)
    chart.refresh(revenue)
    assert cash.balance == Decimal("250.00")
    assert revenue.balance == Decimal("250.00")

    with pytest.raises(ConflictError):
        accounting.delete_transaction(chart, txn)

    accounting.cancel_transaction(chart, txn)
    chart.refresh(cash)
    chart.refresh(revenue)
    assert cash.balance == Decimal("0.00")
    assert revenue.balance == Decimal("0.00")


def test_only_drafts_can_be_edited(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    txn = accounting.create_transaction(
        chart,
        txn_date=date(2026, 3, 2),
        description="Minibar",
        lines=[LedgerLine(cash.id, debit=Decimal("5")), LedgerLine(revenue.id, credit=Decimal("5"))],
        post=True,
    )
    with pytest.raises(DomainError):
        accounting.update_transaction(chart, txn, description="Changed")


def test_account_with_entries_cannot_be_deleted(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    accounting.create_transaction(
        chart,
        txn_date=date(2026, 3, 2),
        description="Laundry",
        lines=[LedgerLine(cash.id, debit=Decimal("12")), LedgerLine(revenue.id, credit=Decimal("12"))],
    )
    with pytest.raises(ConflictError):
        accounting.delete_account(chart, cash)


def test_duplicate_account_code_conflicts(chart):
    with pytest.raises(ConflictError):
        accounting.create_account(chart, code="1001", name="Petty cash", account_type=AccountType.ASSET)


def test_account_ledger_running_balance(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    for day, amount in ((date(2026, 1, 10), "100"), (date(2026, 2, 5), "40")):
        accounting.create_transaction(
            chart,
            txn_date=day,
            description="Sale",
            lines=[LedgerLine(cash.id, debit=Decimal(amount)), LedgerLine(revenue.id, credit=Decimal(amount))],
            post=True,
        )
    ledger = accounting.account_ledger(chart, cash, start=date(2026, 2, 1))
    assert ledger["opening_balance"] == Decimal("100.00")
    assert ledger["closing_balance"] == Decimal("140.00")
    assert [row["balance"] for row in ledger["entries"]] == [Decimal("140.00")]


def test_transactions_api_post_and_delete_rules(client, chart, auth_headers):
    headers = auth_headers()
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    resp = client.post(
        "/transactions",
        json={
            "date": "2026-03-01",
            "description": "Conference room hire",
            "entries": [
                {"account_id": cash.id, "debit": "300.00", "credit": "0"},
                {"account_id": revenue.id, "debit": "0", "credit": "300.00"},
            ],
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    txn_id = resp.json()["id"]

    resp = client.post(f"/transactions/{txn_id}/post", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "posted"

    resp = client.delete(f"/transactions/{txn_id}", headers=headers)
    assert resp.status_code == 409

    resp = client.post(
        "/transactions",
        json={
            "date": "2026-03-01",
            "description": "Broken",
            "entries": [
                {"account_id": cash.id, "debit": "10.00"},
                {"account_id": revenue.id, "credit": "9.00"},
            ],
        },
        headers=headers,
    )
    assert resp.status_code == 400
    assert "not balanced" in resp.json()["detail"]


def test_receptionist_cannot_touch_ledger(client, chart, auth_headers):
    resp = client.get("/transactions", headers=auth_headers(UserRole.RECEPTIONIST))
    assert resp.status_code == 403


def test_unknown_category_is_rejected(chart):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    lines = [LedgerLine(cash.id, debit=Decimal("20")), LedgerLine(revenue.id, credit=Decimal("20"))]
    with pytest.raises(NotFoundError):
        accounting.create_transaction(
            chart, txn_date=date(2026, 3, 3), description="Laundry", lines=lines, category_id=9999
        )

    rooms = chart.query(TransactionCategory).filter(TransactionCategory.name == "Room Operations").one()
    txn = accounting.create_transaction(
        chart, txn_date=date(2026, 3, 3), description="Laundry", lines=lines, category_id=rooms.id
    )
    assert txn.category_id == rooms.id
    with pytest.raises(NotFoundError):
        accounting.update_transaction(chart, txn, category_id=9999)
    accounting.update_transaction(chart, txn, category_id=None)
    assert txn.category_id is None


def test_transactions_api_unknown_category(client, chart, auth_headers):
    cash, revenue = _acct(chart, "1001"), _acct(chart, "4001")
    resp = client.post(
        "/transactions",
        json={
            "date": "2026-03-01",
            "description": "Late checkout fee",
            "category_id": 9999,
            "entries": [
                {"account_id": cash.id, "debit": "15.00"},
                {"account_id": revenue.id, "credit": "15.00"},
            ],
        },
        headers=auth_headers(UserRole.ACCOUNTANT),
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Category not found"


def test_auto_post_skips_all_zero_lines(chart):
    txn = accounting.auto_post(
        chart,
        txn_date=date(2026, 3, 4),
        description="Nothing to book",
        lines_by_code=[("1001", Decimal("0"), Decimal("0")), ("4001", Decimal("0"), Decimal("0"))],
        source=TransactionSource.BILLING,
    )
    assert txn is None
