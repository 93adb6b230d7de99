"""
Financial statements built from posted ledger entries.

Every report is a pure read of the ledger for a period and returns a
``(data, summary)`` pair of JSON-ready dicts; ``generate_report`` stores
the result as a ``FinancialReport`` snapshot.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hotelpms.core.exceptions import DomainError
from hotelpms.models import (
    Account,
    AccountType,
    Expense,
    ExpenseStatus,
    FinancialReport,
    ReportStatus,
    ReportType,
    Transaction,
    TransactionCategory,
    TransactionEntry,
    TransactionStatus,
)
from hotelpms.utils.money import ZERO, as_float, quantize, ratio_percent, to_decimal

logger = logging.getLogger("hotelpms.reports")

CASH_KEYWORDS = ("cash", "bank")
UNCATEGORIZED = "Uncategorized"


def cash_account_filter():
    """Asset accounts whose name or category mentions cash or bank."""
    clauses = []
    for word in CASH_KEYWORDS:
        clauses.append(func.lower(Account.name).contains(word))
        clauses.append(func.lower(func.coalesce(Account.category, "")).contains(word))
    return (Account.account_type == AccountType.ASSET) & or_(*clauses)


def _jsonable(value):
    if isinstance(value, Decimal):
        return as_float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def account_totals(
    db: Session,
    start: Optional[date],
    end: date,
    account_types: Optional[Tuple[AccountType, ...]] = None,
) -> List[Tuple[Account, Decimal, Decimal]]:
    """Sum of posted debits/credits per account for transactions dated in [start, end]."""
    query = (
        db.query(
            Account,
            func.coalesce(func.sum(TransactionEntry.debit), 0),
            func.coalesce(func.sum(TransactionEntry.credit), 0),
        )
        .join(TransactionEntry, TransactionEntry.account_id == Account.id)
        .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
        .filter(Transaction.status == TransactionStatus.POSTED, Transaction.date <= end)
    )
    if start is not None:
        query = query.filter(Transaction.date >= start)
    if account_types:
        query = query.filter(Account.account_type.in_(account_types))
    rows = query.group_by(Account.id).order_by(Account.code).all()
    return [(account, quantize(debit), quantize(credit)) for account, debit, credit in rows]


def _net(account: Account, debit: Decimal, credit: Decimal) -> Decimal:
    return debit - credit if account.is_debit_normal else credit - debit


def _account_row(account: Account, amount: Decimal) -> Dict:
    return {
        "account_id": account.id,
        "code": account.code,
        "name": account.name,
        "category": account.category,
        "amount": quantize(amount),
    }


def profit_loss(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    revenue, expenses = [], []
    for account, debit, credit in account_totals(
        db, start, end, (AccountType.REVENUE, AccountType.EXPENSE)
    ):
        row = _account_row(account, _net(account, debit, credit))
        (revenue if account.account_type == AccountType.REVENUE else expenses).append(row)

    total_revenue = quantize(sum((r["amount"] for r in revenue), ZERO))
    total_expenses = quantize(sum((r["amount"] for r in expenses), ZERO))
    net_profit = quantize(total_revenue - total_expenses)
    data = {"revenue": revenue, "expenses": expenses}
    summary = {
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_profit": net_profit,
        "profit_margin": ratio_percent(net_profit, total_revenue),
    }
    return data, summary


def balance_sheet(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    """Position as of ``end``; ``start`` only labels the report."""
    sections: Dict[AccountType, List[Dict]] = defaultdict(list)
    for account, debit, credit in account_totals(db, None, end):
        sections[account.account_type].append(_account_row(account, _net(account, debit, credit)))

    def total(account_type: AccountType) -> Decimal:
        return quantize(sum((r["amount"] for r in sections[account_type]), ZERO))

    total_assets = total(AccountType.ASSET)
    total_liabilities = total(AccountType.LIABILITY)
    total_equity = total(AccountType.EQUITY)
    current_earnings = quantize(total(AccountType.REVENUE) - total(AccountType.EXPENSE))
    liabilities_and_equity = quantize(total_liabilities + total_equity + current_earnings)
    data = {
        "assets": sections[AccountType.ASSET],
        "liabilities": sections[AccountType.LIABILITY],
        "equity": sections[AccountType.EQUITY],
    }
    summary = {
        "as_of": end,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "current_earnings": current_earnings,
        "total_liabilities_and_equity": liabilities_and_equity,
        "balanced": total_assets == liabilities_and_equity,
    }
    return data, summary


def cash_flow(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    cash_ids = [a.id for a in db.query(Account).filter(cash_account_filter()).all()]
    opening = ZERO
    rows = []
    inflow = outflow = ZERO
    if cash_ids:
        before = (
            db.query(
                func.coalesce(func.sum(TransactionEntry.debit), 0),
                func.coalesce(func.sum(TransactionEntry.credit), 0),
            )
            .select_from(TransactionEntry)
            .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
            .filter(
                Transaction.status == TransactionStatus.POSTED,
                Transaction.date < start,
                TransactionEntry.account_id.in_(cash_ids),
            )
            .one()
        )
        opening = quantize(to_decimal(before[0]) - to_decimal(before[1]))
        for account, debit, credit in account_totals(db, start, end):
            if account.id not in cash_ids:
                continue
            rows.append(
                {
                    "account_id": account.id,
                    "code": account.code,
                    "name": account.name,
                    "inflow": debit,
                    "outflow": credit,
                    "net": quantize(debit - credit),
                }
            )
            inflow += debit
            outflow += credit
    net = quantize(inflow - outflow)
    data = {"accounts": rows}
    summary = {
        "opening_cash": opening,
        "total_inflow": quantize(inflow),
        "total_outflow": quantize(outflow),
        "net_cash_flow": net,
        "closing_cash": quantize(opening + net),
    }
    return data, summary


def trial_balance(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    rows = []
    total_debit = total_credit = ZERO
    for account, debit, credit in account_totals(db, None, end):
        net = debit - credit
        debit_balance = net if net > 0 else ZERO
        credit_balance = -net if net < 0 else ZERO
        rows.append(
            {
                "account_id": account.id,
                "code": account.code,
                "name": account.name,
                "type": account.account_type.value,
                "total_debit": debit,
                "total_credit": credit,
                "debit_balance": quantize(debit_balance),
                "credit_balance": quantize(credit_balance),
            }
        )
        total_debit += debit_balance
        total_credit += credit_balance
    summary = {
        "as_of": end,
        "total_debit": quantize(total_debit),
        "total_credit": quantize(total_credit),
        "is_balanced": quantize(total_debit) == quantize(total_credit),
    }
    return {"accounts": rows}, summary


def revenue_analysis(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    rows = (
        db.query(
            TransactionCategory.name,
            func.coalesce(func.sum(TransactionEntry.debit), 0),
            func.coalesce(func.sum(TransactionEntry.credit), 0),
            func.count(func.distinct(Transaction.id)),
        )
        .select_from(TransactionEntry)
        .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
        .join(Account, TransactionEntry.account_id == Account.id)
        .outerjoin(TransactionCategory, Transaction.category_id == TransactionCategory.id)
        .filter(
            Transaction.status == TransactionStatus.POSTED,
            Transaction.date >= start,
            Transaction.date <= end,
            Account.account_type == AccountType.REVENUE,
        )
        .group_by(TransactionCategory.name)
        .all()
    )
    by_category = [
        {
            "category": name or UNCATEGORIZED,
            "amount": quantize(to_decimal(credit) - to_decimal(debit)),
            "transactions": count,
        }
        for name, debit, credit, count in rows
    ]
    total = quantize(sum((r["amount"] for r in by_category), ZERO))
    for row in by_category:
        row["share"] = ratio_percent(row["amount"], total)
    by_category.sort(key=lambda r: r["amount"], reverse=True)

    by_account = [
        _account_row(account, _net(account, debit, credit))
        for account, debit, credit in account_totals(db, start, end, (AccountType.REVENUE,))
    ]
    return (
        {"by_category": by_category, "by_account": by_account},
        {"total_revenue": total, "categories": len(by_category)},
    )


def expense_analysis(db: Session, start: date, end: date) -> Tuple[Dict, Dict]:
    paid = db.query(Expense).filter(
        Expense.status == ExpenseStatus.PAID, Expense.date >= start, Expense.date <= end
    )
    categories = (
        paid.join(TransactionCategory, Expense.category_id == TransactionCategory.id)
        .with_entities(
            TransactionCategory.name,
            func.count(Expense.id),
            func.coalesce(func.sum(Expense.amount), 0),
        )
        .group_by(TransactionCategory.name)
        .all()
    )
    by_category = [
        {"category": name, "count": count, "amount": quantize(amount)}
        for name, count, amount in categories
    ]
    total = quantize(sum((r["amount"] for r in by_category), ZERO))
    for row in by_category:
        row["share"] = ratio_percent(row["amount"], total)
    by_category.sort(key=lambda r: r["amount"], reverse=True)

    vendors = (
        paid.with_entities(Expense.vendor, func.coalesce(func.sum(Expense.amount), 0))
        .group_by(Expense.vendor)
        .order_by(func.sum(Expense.amount).desc())
        .limit(10)
        .all()
    )
    top_vendors = [{"vendor": vendor, "amount": quantize(amount)} for vendor, amount in vendors]
    count = sum(r["count"] for r in by_category)
    return (
        {"by_category": by_category, "top_vendors": top_vendors},
        {"total_expenses": total, "expense_count": count},
    )


BUILDERS = {
    ReportType.PROFIT_LOSS: profit_loss,
    ReportType.BALANCE_SHEET: balance_sheet,
    ReportType.CASH_FLOW: cash_flow,
    ReportType.TRIAL_BALANCE: trial_balance,
    ReportType.REVENUE_ANALYSIS: revenue_analysis,
    ReportType.EXPENSE_ANALYSIS: expense_analysis,
}

REPORT_TITLES = {
    ReportType.PROFIT_LOSS: "Profit & Loss",
    ReportType.BALANCE_SHEET: "Balance Sheet",
    ReportType.CASH_FLOW: "Cash Flow",
    ReportType.TRIAL_BALANCE: "Trial Balance",
    ReportType.REVENUE_ANALYSIS: "Revenue Analysis",
    ReportType.EXPENSE_ANALYSIS: "Expense Analysis",
}


def build_report(db: Session, report_type: ReportType, start: date, end: date) -> Tuple[Dict, Dict]:
    if start > end:
        raise DomainError("Report period start must not be after period end")
    data, summary = BUILDERS[report_type](db, start, end)
    return _jsonable(data), _jsonable(summary)


def generate_report(
    db: Session,
    *,
    report_type: ReportType,
    period_start: date,
    period_end: date,
    name: Optional[str] = None,
    status: ReportStatus = ReportStatus.FINAL,
    generated_by_id: Optional[int] = None,
) -> FinancialReport:
    data, summary = build_report(db, report_type, period_start, period_end)
    report = FinancialReport(
        name=name or f"{REPORT_TITLES[report_type]} {period_start.isoformat()} - {period_end.isoformat()}",
        report_type=report_type,
        period_start=period_start,
        period_end=period_end,
        data=data,
        summary=summary,
        status=status,
        generated_by_id=generated_by_id,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Report %s generated (%s)", report.id, report_type.value)
    return report
