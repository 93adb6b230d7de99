from datetime import date, timedelta
from decimal import Decimal

import pytest

from hotelpms.core.exceptions import DomainError
from hotelpms.models import (
    BudgetStatus,
    ExpensePaymentMethod,
    ExpenseStatus,
    TaxStatus,
    TaxType,
    TransactionCategory,
    UserRole,
)
from hotelpms.services import accounting, budgets, expenses, tax


def _category(db, name):
    return db.query(TransactionCategory).filter(TransactionCategory.name == name).one()


def _expense(db, amount="120.00", with_account=True, **extra):
    fields = dict(
        date=date(2026, 4, 10),
        vendor="City Power",
        description="April electricity",
        category_id=_category(db, "Utilities").id,
        amount=Decimal(amount),
        payment_method=ExpensePaymentMethod.BANK_TRANSFER,
    )
    if with_account:
        fields["account_id"] = accounting.get_account_by_code(db, "5002").id
    fields.update(extra)
    return expenses.create_expense(db, **fields)


def test_expense_must_use_expense_category(chart):
    with pytest.raises(DomainError):
        _expense(chart, category_id=_category(chart, "Room Operations").id)


def test_expense_approval_and_payment_posts(chart, make_user):
    manager = make_user(UserRole.MANAGER)
    expense = _expense(chart)
    with pytest.raises(DomainError):
        expenses.pay(chart, expense)

    expenses.approve(chart, expense, manager.id)
    expenses.pay(chart, expense, manager.id)
    assert expense.status == ExpenseStatus.PAID
    assert expense.transaction_id is not None
    assert accounting.get_account_by_code(chart, "5002").balance == Decimal("120.00")
    assert accounting.get_account_by_code(chart, "1002").balance == Decimal("-120.00")

    with pytest.raises(DomainError):
        expenses.delete_expense(chart, expense)


def test_rejected_expense_keeps_notes(chart, make_user):
    manager = make_user(UserRole.MANAGER)
    expense = _expense(chart)
    expenses.reject(chart, expense, manager.id, notes="Duplicate invoice")
    assert expense.status == ExpenseStatus.REJECTED
    assert expense.notes == "Duplicate invoice"
    with pytest.raises(DomainError):
        expenses.update_expense(chart, expense, vendor="Other")


def test_expense_stats(chart):
    _expense(chart, amount="100.00")
    _expense(chart, amount="50.00", date=date(2026, 5, 2))
    stats = expenses.expense_stats(chart)
    assert stats["summary"]["total_count"] == 2
    assert stats["summary"]["total_amount"] == Decimal("150.00")
    assert stats["summary"]["by_status"]["pending"]["count"] == 2
    assert [row["month"] for row in stats["monthly_trend"]] == ["2026-04", "2026-05"]


def test_any_staff_submits_but_only_managers_approve(client, chart, auth_headers):
    resp = client.post(
        "/expenses",
        json={
            "date": "2026-04-10",
            "vendor": "Linen Co",
            "description": "Towels",
            "category_id": _category(chart, "Supplies").id,
            "amount": "75.00",
            "payment_method": "cash",
        },
        headers=auth_headers(UserRole.HOUSEKEEPER),
    )
    assert resp.status_code == 201, resp.text
    expense_id = resp.json()["id"]

    denied = client.post(f"/expenses/{expense_id}/approve", headers=auth_headers(UserRole.ACCOUNTANT))
    assert denied.status_code == 403
    ok = client.post(f"/expenses/{expense_id}/approve", headers=auth_headers(UserRole.MANAGER))
    assert ok.status_code == 200
    assert ok.json()["status"] == "approved"


def test_tax_amount_is_computed_from_rate(db_session):
    record = tax.create_record(
        db_session,
        tax_type=TaxType.VAT,
        period_start=date(2026, 1, 1),
        period_end=date(2026, 3, 31),
        taxable_amount=Decimal("10000"),
        tax_rate=Decimal("7.5"),
        due_date=date.today() + timedelta(days=30),
    )
    assert record.tax_amount == Decimal("750.00")
    assert record.status == TaxStatus.PENDING

    tax.file_record(db_session, record, reference="VAT-Q1")
    assert record.status == TaxStatus.FILED
    assert record.filed_at is not None
    tax.pay_record(db_session, record)
    assert record.status == TaxStatus.PAID
    with pytest.raises(DomainError):
        tax.delete_record(db_session, record)


def test_tax_overdue_sweep_and_stats(db_session):
    record = tax.create_record(
        db_session,
        tax_type=TaxType.WITHHOLDING_TAX,
        period_start=date(2026, 1, 1),
        period_end=date(2026, 1, 31),
        taxable_amount=Decimal("2000"),
        tax_rate=Decimal("10"),
        due_date=date.today() + timedelta(days=1),
    )
    assert tax.refresh_overdue(db_session, today=date.today() + timedelta(days=2)) == 1
    db_session.refresh(record)
    assert record.status == TaxStatus.OVERDUE

    stats = tax.tax_stats(db_session)
    assert stats["overdue_amount"] == Decimal("200.00")
    assert stats["total_liability"] == Decimal("200.00")


def test_tax_period_must_be_ordered(db_session):
    with pytest.raises(DomainError):
        tax.create_record(
            db_session,
            tax_type=TaxType.VAT,
            period_start=date(2026, 3, 31),
            period_end=date(2026, 1, 1),
            taxable_amount=Decimal("1"),
            tax_rate=Decimal("5"),
            due_date=date(2026, 4, 30),
        )


def test_budget_actuals_follow_paid_expenses(chart, make_user):
    manager = make_user(UserRole.MANAGER)
    utilities = _category(chart, "Utilities")
    budget = budgets.create_budget(
        chart,
        name="April 2026",
        year=2026,
        month=4,
        lines=[{"category_id": utilities.id, "budgeted": Decimal("500.00")}],
    )
    assert budget.total_budget == Decimal("500.00")
    assert budget.total_actual == Decimal("0.00")

    expense = _expense(chart, amount="200.00")
    expenses.approve(chart, expense, manager.id)
    expenses.pay(chart, expense, manager.id)
    budgets.refresh_and_commit(chart, budget)

    line = budget.lines[0]
    assert line.actual == Decimal("200.00")
    assert line.variance == Decimal("300.00")
    assert line.variance_pct == Decimal("60.00")
    assert budget.variance == Decimal("300.00")


def test_budget_lifecycle(chart, make_user):
    manager = make_user(UserRole.MANAGER)
    utilities = _category(chart, "Utilities")
    budget = budgets.create_budget(
        chart, name="FY2026", year=2026, lines=[{"category_id": utilities.id, "budgeted": Decimal("6000")}]
    )
    with pytest.raises(DomainError):
        budgets.activate_budget(chart, budget)
    budgets.approve_budget(chart, budget, manager.id)
    budgets.activate_budget(chart, budget)
    assert budget.status == BudgetStatus.ACTIVE
    with pytest.raises(DomainError):
        budgets.delete_budget(chart, budget)


def test_budget_rejects_duplicate_categories(chart):
    utilities = _category(chart, "Utilities")
    with pytest.raises(DomainError):
        budgets.create_budget(
            chart,
            name="Dupes",
            year=2026,
            lines=[
                {"category_id": utilities.id, "budgeted": Decimal("1")},
                {"category_id": utilities.id, "budgeted": Decimal("2")},
            ],
        )
