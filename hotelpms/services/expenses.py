import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError, NotFoundError
from hotelpms.models import (
    Account,
    AccountType,
    CategoryType,
    Expense,
    ExpenseStatus,
    TransactionCategory,
    TransactionSource,
)
from hotelpms.services import accounting
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import ZERO, quantize, to_decimal

logger = logging.getLogger("hotelpms.expenses")


def _check_category(db: Session, category_id: int) -> TransactionCategory:
    category = db.query(TransactionCategory).filter(TransactionCategory.id == category_id).first()
    if not category:
        raise NotFoundError("Category not found")
    if category.category_type != CategoryType.EXPENSE:
        raise DomainError(f"Category {category.name} is not an expense category")
    return category


def _check_account(db: Session, account_id: int) -> Account:
    account = accounting.get_account(db, account_id)
    if account.account_type != AccountType.EXPENSE:
        raise DomainError(f"Account {account.code} is not an expense account")
    return account


def create_expense(db: Session, *, created_by_id: Optional[int] = None, **fields) -> Expense:
    _check_category(db, fields["category_id"])
    if fields.get("account_id") is not None:
        _check_account(db, fields["account_id"])
    amount = quantize(fields.pop("amount"))
    if amount <= 0:
        raise DomainError("Expense amount must be positive")
    expense = Expense(amount=amount, status=ExpenseStatus.PENDING, created_by_id=created_by_id, **fields)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Expense %s recorded: %s %s", expense.id, expense.vendor, expense.amount)
    return expense


def update_expense(db: Session, expense: Expense, **changes) -> Expense:
    if expense.status in (ExpenseStatus.PAID, ExpenseStatus.REJECTED):
        raise DomainError(f"Cannot modify a {expense.status.value} expense")
    if "category_id" in changes:
        _check_category(db, changes["category_id"])
    if changes.get("account_id") is not None:
        _check_account(db, changes["account_id"])
    if "amount" in changes:
        changes["amount"] = quantize(changes["amount"])
        if changes["amount"] <= 0:
            raise DomainError("Expense amount must be positive")
    for field, value in changes.items():
        setattr(expense, field, value)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def approve(db: Session, expense: Expense, user_id: Optional[int]) -> Expense:
    if expense.status != ExpenseStatus.PENDING:
        raise DomainError("Only pending expenses can be approved")
    expense.status = ExpenseStatus.APPROVED
    expense.approved_by_id = user_id
    expense.approved_at = utcnow()
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def reject(db: Session, expense: Expense, user_id: Optional[int], notes: Optional[str] = None) -> Expense:
    if expense.status != ExpenseStatus.PENDING:
        raise DomainError("Only pending expenses can be rejected")
    expense.status = ExpenseStatus.REJECTED
    expense.approved_by_id = user_id
    expense.approved_at = utcnow()
    if notes:
        expense.notes = notes
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def pay(db: Session, expense: Expense, user_id: Optional[int] = None) -> Expense:
    if expense.status != ExpenseStatus.APPROVED:
        raise DomainError("Only approved expenses can be paid")
    expense.status = ExpenseStatus.PAID
    expense.paid_at = utcnow()
    if expense.account_id:
        txn = accounting.auto_post(
            db,
            txn_date=expense.date,
            description=f"{expense.vendor}: {expense.description}",
            reference=expense.reference or f"EXP-{expense.id}",
            source=TransactionSource.EXPENSE,
            category_id=expense.category_id,
            created_by_id=user_id,
            lines_by_code=[
                (expense.account.code, expense.amount, ZERO),
                (accounting.cash_account_code(expense.payment_method.value), ZERO, expense.amount),
            ],
        )
        if txn is not None:
            expense.transaction_id = txn.id
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Expense %s paid", expense.id)
    return expense


def delete_expense(db: Session, expense: Expense) -> None:
    if expense.status == ExpenseStatus.PAID:
        raise DomainError("Paid expenses cannot be deleted")
    db.delete(expense)
    db.commit()


def expense_stats(db: Session, start: Optional[date] = None, end: Optional[date] = None) -> Dict:
    """Totals by status, category breakdown and monthly trend for a date window."""
    query = db.query(Expense)
    if start:
        query = query.filter(Expense.date >= start)
    if end:
        query = query.filter(Expense.date <= end)

    by_status = {s.value: {"count": 0, "amount": ZERO} for s in ExpenseStatus}
    for status, count, amount in (
        query.with_entities(Expense.status, func.count(Expense.id), func.coalesce(func.sum(Expense.amount), 0))
        .group_by(Expense.status)
        .all()
    ):
        by_status[status.value] = {"count": count, "amount": quantize(amount)}

    categories = (
        query.join(TransactionCategory, Expense.category_id == TransactionCategory.id)
        .with_entities(
            TransactionCategory.name,
            func.count(Expense.id),
            func.coalesce(func.sum(Expense.amount), 0),
        )
        .group_by(TransactionCategory.name)
        .all()
    )
    category_breakdown = sorted(
        ({"category": name, "count": count, "total": quantize(total)} for name, count, total in categories),
        key=lambda row: row["total"],
        reverse=True,
    )

    monthly: Dict[str, dict] = defaultdict(lambda: {"count": 0, "total": ZERO})
    for exp_date, amount in query.with_entities(Expense.date, Expense.amount).all():
        bucket = monthly[f"{exp_date.year:04d}-{exp_date.month:02d}"]
        bucket["count"] += 1
        bucket["total"] = quantize(bucket["total"] + to_decimal(amount))
    trend = [{"month": month, **values} for month, values in sorted(monthly.items())]

    total_count = sum(v["count"] for v in by_status.values())
    total_amount = quantize(sum((v["amount"] for v in by_status.values()), ZERO))
    return {
        "summary": {"total_count": total_count, "total_amount": total_amount, "by_status": by_status},
        "category_breakdown": category_breakdown,
        "monthly_trend": trend,
    }
