import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError, NotFoundError
from hotelpms.models import (
    Account,
    AccountType,
    Budget,
    BudgetLine,
    BudgetStatus,
    CategoryType,
    Expense,
    ExpenseStatus,
    Transaction,
    TransactionCategory,
    TransactionEntry,
    TransactionStatus,
)
from hotelpms.utils.dates import month_bounds, utcnow, year_bounds
from hotelpms.utils.money import money_sum, quantize, ratio_percent, to_decimal

logger = logging.getLogger("hotelpms.budgets")


def budget_window(budget: Budget) -> Tuple[date, date]:
    if budget.month:
        return month_bounds(budget.year, budget.month)
    return year_bounds(budget.year)


def _build_lines(db: Session, lines: List[Dict]) -> List[BudgetLine]:
    seen = set()
    result = []
    for line in lines:
        category_id = line["category_id"]
        if category_id in seen:
            raise DomainError("Each category may appear only once in a budget")
        seen.add(category_id)
        if not db.query(TransactionCategory.id).filter(TransactionCategory.id == category_id).first():
            raise NotFoundError(f"Category {category_id} not found")
        budgeted = quantize(line["budgeted"])
        if budgeted < 0:
            raise DomainError("Budgeted amounts cannot be negative")
        result.append(BudgetLine(category_id=category_id, budgeted=budgeted))
    return result


def _validate_period(year: int, month: Optional[int]) -> None:
    if month is not None and not 1 <= month <= 12:
        raise DomainError("Month must be between 1 and 12")
    if not 2000 <= year <= 2100:
        raise DomainError("Year out of range")


def create_budget(
    db: Session,
    *,
    name: str,
    year: int,
    lines: List[Dict],
    month: Optional[int] = None,
    notes: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> Budget:
    _validate_period(year, month)
    budget = Budget(
        name=name,
        year=year,
        month=month,
        notes=notes,
        status=BudgetStatus.DRAFT,
        created_by_id=created_by_id,
    )
    budget.lines = _build_lines(db, lines)
    db.add(budget)
    db.flush()
    refresh_actuals(db, budget)
    db.commit()
    db.refresh(budget)
    logger.info("Budget %s created (%s)", budget.id, budget.name)
    return budget


def update_budget(db: Session, budget: Budget, *, lines: Optional[List[Dict]] = None, **changes) -> Budget:
    if budget.status == BudgetStatus.ACTIVE and lines is not None:
        raise DomainError("Lines of an active budget cannot be changed")
    for field, value in changes.items():
        setattr(budget, field, value)
    _validate_period(budget.year, budget.month)
    if lines is not None:
        budget.lines = _build_lines(db, lines)
        db.flush()
    refresh_actuals(db, budget)
    db.commit()
    db.refresh(budget)
    return budget


def approve_budget(db: Session, budget: Budget, user_id: Optional[int]) -> Budget:
    if budget.status != BudgetStatus.DRAFT:
        raise DomainError("Only draft budgets can be approved")
    budget.status = BudgetStatus.APPROVED
    budget.approved_by_id = user_id
    budget.approved_at = utcnow()
    db.add(budget)
    db.commit()
    db.refresh(budget)
    return budget


def activate_budget(db: Session, budget: Budget) -> Budget:
    if budget.status != BudgetStatus.APPROVED:
        raise DomainError("Only approved budgets can be activated")
    budget.status = BudgetStatus.ACTIVE
    db.add(budget)
    db.commit()
    db.refresh(budget)
    return budget


def _expense_actual(db: Session, category_id: int, start: date, end: date) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(Expense.amount), 0))
        .filter(
            Expense.category_id == category_id,
            Expense.status == ExpenseStatus.PAID,
            Expense.date >= start,
            Expense.date <= end,
        )
        .scalar()
    )
    return quantize(total)


def _income_actual(db: Session, category_id: int, start: date, end: date) -> Decimal:
    debit, credit = (
        db.query(
            func.coalesce(func.sum(TransactionEntry.debit), 0),
            func.coalesce(func.sum(TransactionEntry.credit), 0),
        )
        .select_from(TransactionEntry)
        .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
        .join(Account, TransactionEntry.account_id == Account.id)
        .filter(
            Transaction.category_id == category_id,
            Transaction.status == TransactionStatus.POSTED,
            Transaction.date >= start,
            Transaction.date <= end,
            Account.account_type == AccountType.REVENUE,
        )
        .one()
    )
    return quantize(to_decimal(credit) - to_decimal(debit))


def refresh_actuals(db: Session, budget: Budget) -> Budget:
    """Recompute actuals and variances from the ledger and paid expenses (no commit)."""
    start, end = budget_window(budget)
    for line in budget.lines:
        category = line.category or db.get(TransactionCategory, line.category_id)
        if category.category_type == CategoryType.EXPENSE:
            actual = _expense_actual(db, category.id, start, end)
        else:
            actual = _income_actual(db, category.id, start, end)
        line.actual = actual
        line.variance = quantize(to_decimal(line.budgeted) - actual)
        line.variance_pct = to_decimal(ratio_percent(line.variance, line.budgeted))

    budget.total_budget = money_sum(line.budgeted for line in budget.lines)
    budget.total_actual = money_sum(line.actual for line in budget.lines)
    budget.variance = quantize(budget.total_budget - budget.total_actual)
    db.add(budget)
    return budget


def refresh_and_commit(db: Session, budget: Budget) -> Budget:
    refresh_actuals(db, budget)
    db.commit()
    db.refresh(budget)
    return budget


def delete_budget(db: Session, budget: Budget) -> None:
    if budget.status == BudgetStatus.ACTIVE:
        raise DomainError("Active budgets cannot be deleted")
    db.delete(budget)
    db.commit()
