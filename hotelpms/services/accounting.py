"""
Double-entry bookkeeping.

A transaction is a set of entries against chart-of-accounts accounts. It may
only be saved when total debits equal total credits, and it only moves account
balances once it is posted:

- debit-normal accounts (asset, expense):   balance += debit - credit
- credit-normal accounts (liability, equity, revenue): balance += credit - debit

Cancelling a posted transaction applies the same movement with the opposite
sign, so balances always equal the sum of posted entries.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from hotelpms.core.config import get_settings
from hotelpms.core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    UnbalancedTransactionError,
)
from hotelpms.models import (
    Account,
    AccountType,
    Transaction,
    TransactionCategory,
    TransactionEntry,
    TransactionSource,
    TransactionStatus,
)
from hotelpms.utils.dates import utcnow
from hotelpms.utils.money import ZERO, quantize, to_decimal
from hotelpms.utils.numbering import document_number

settings = get_settings()
logger = logging.getLogger("hotelpms.accounting")

TRANSACTION_PREFIX = "TXN"


@dataclass
class LedgerLine:
    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    memo: Optional[str] = None


# --- Accounts ----------------------------------------------------------------


def get_account(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise NotFoundError("Account not found")
    return account


def get_account_by_code(db: Session, code: str) -> Optional[Account]:
    return db.query(Account).filter(Account.code == code).first()


def create_account(
    db: Session,
    *,
    code: str,
    name: str,
    account_type: AccountType,
    category: Optional[str] = None,
    parent_id: Optional[int] = None,
    description: Optional[str] = None,
    is_active: bool = True,
) -> Account:
    if get_account_by_code(db, code):
        raise ConflictError(f"Account code {code} already exists")
    if parent_id is not None:
        parent = get_account(db, parent_id)
        if parent.account_type != account_type:
            raise DomainError("Parent account must have the same account type")
    account = Account(
        code=code,
        name=name,
        account_type=account_type,
        category=category,
        parent_id=parent_id,
        description=description,
        balance=ZERO,
        is_active=is_active,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Account %s (%s) created", account.code, account.name)
    return account


def update_account(db: Session, account: Account, **changes) -> Account:
    code = changes.get("code")
    if code and code != account.code:
        existing = get_account_by_code(db, code)
        if existing and existing.id != account.id:
            raise ConflictError(f"Account code {code} already exists")
    new_type = changes.get("account_type")
    if new_type and new_type != account.account_type and _has_entries(db, account.id):
        raise ConflictError("Cannot change the type of an account that has ledger entries")
    parent_id = changes.get("parent_id")
    if parent_id is not None:
        if parent_id == account.id:
            raise DomainError("Account cannot be its own parent")
        get_account(db, parent_id)
    for field, value in changes.items():
        setattr(account, field, value)
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def delete_account(db: Session, account: Account) -> None:
    if _has_entries(db, account.id):
        raise ConflictError("Account has ledger entries; deactivate it instead")
    if db.query(Account).filter(Account.parent_id == account.id).count():
        raise ConflictError("Account has sub-accounts")
    db.delete(account)
    db.commit()
    logger.info("Account %s deleted", account.code)


def _has_entries(db: Session, account_id: int) -> bool:
    return (
        db.query(TransactionEntry.id).filter(TransactionEntry.account_id == account_id).first()
        is not None
    )


def account_ledger(
    db: Session,
    account: Account,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Dict:
    """Posted entries for one account with a running balance in the account's normal side."""
    query = (
        db.query(TransactionEntry, Transaction)
        .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
        .filter(
            TransactionEntry.account_id == account.id,
            Transaction.status == TransactionStatus.POSTED,
        )
    )
    opening = ZERO
    if start:
        before = query.filter(Transaction.date < start).with_entities(
            func.coalesce(func.sum(TransactionEntry.debit), 0),
            func.coalesce(func.sum(TransactionEntry.credit), 0),
        ).one()
        opening = _movement(account, to_decimal(before[0]), to_decimal(before[1]))
        query = query.filter(Transaction.date >= start)
    if end:
        query = query.filter(Transaction.date <= end)

    running = opening
    rows = []
    for entry, txn in query.order_by(Transaction.date, Transaction.id, TransactionEntry.id).all():
        running += _movement(account, to_decimal(entry.debit), to_decimal(entry.credit))
        rows.append(
            {
                "transaction_id": txn.id,
                "transaction_number": txn.transaction_number,
                "date": txn.date.isoformat(),
                "description": txn.description,
                "memo": entry.memo,
                "debit": to_decimal(entry.debit),
                "credit": to_decimal(entry.credit),
                "balance": quantize(running),
            }
        )
    return {"opening_balance": quantize(opening), "closing_balance": quantize(running), "entries": rows}


# --- Transactions ------------------------------------------------------------


def _check_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is None:
        return
    if not db.query(TransactionCategory.id).filter(TransactionCategory.id == category_id).first():
        raise NotFoundError("Category not found")


def _movement(account: Account, debit: Decimal, credit: Decimal) -> Decimal:
    if account.is_debit_normal:
        return debit - credit
    return credit - debit


def validate_lines(db: Session, lines: Sequence[LedgerLine]) -> Tuple[Dict[int, Account], Decimal]:
    """Check entry shape and balance; returns the referenced accounts and the transaction total."""
    if len(lines) < 2:
        raise DomainError("A transaction needs at least two entries")

    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        debit = quantize(line.debit)
        credit = quantize(line.credit)
        if debit < 0 or credit < 0:
            raise DomainError("Debit and credit amounts cannot be negative")
        if (debit > 0) == (credit > 0):
            raise DomainError("Each entry must have either a debit or a credit amount")
        total_debit += debit
        total_credit += credit

    if total_debit != total_credit:
        raise UnbalancedTransactionError(total_debit, total_credit)

    account_ids = {line.account_id for line in lines}
    accounts = {a.id: a for a in db.query(Account).filter(Account.id.in_(account_ids)).all()}
    missing = account_ids - set(accounts)
    if missing:
        raise NotFoundError(f"Account(s) not found: {', '.join(str(i) for i in sorted(missing))}")
    inactive = [a.code for a in accounts.values() if not a.is_active]
    if inactive:
        raise DomainError(f"Inactive account(s): {', '.join(sorted(inactive))}")
    return accounts, quantize(total_debit)


def _apply_balances(txn: Transaction, sign: int) -> None:
    for entry in txn.entries:
        account = entry.account
        delta = _movement(account, to_decimal(entry.debit), to_decimal(entry.credit))
        account.balance = quantize(to_decimal(account.balance) + sign * delta)


def _set_entries(txn: Transaction, lines: Iterable[LedgerLine], accounts: Dict[int, Account]) -> None:
    txn.entries = [
        TransactionEntry(
            account=accounts[line.account_id],
            debit=quantize(line.debit),
            credit=quantize(line.credit),
            memo=line.memo,
        )
        for line in lines
    ]


def create_transaction(
    db: Session,
    *,
    txn_date: date,
    description: str,
    lines: Sequence[LedgerLine],
    reference: Optional[str] = None,
    category_id: Optional[int] = None,
    source: TransactionSource = TransactionSource.MANUAL,
    created_by_id: Optional[int] = None,
    post: bool = False,
    commit: bool = True,
) -> Transaction:
    _check_category(db, category_id)
    accounts, total = validate_lines(db, lines)
    txn = Transaction(
        date=txn_date,
        description=description,
        reference=reference,
        category_id=category_id,
        source=source,
        created_by_id=created_by_id,
        total_amount=total,
        status=TransactionStatus.DRAFT,
    )
    _set_entries(txn, lines, accounts)
    db.add(txn)
    db.flush()
    txn.transaction_number = document_number(TRANSACTION_PREFIX, txn.id)
    if post:
        post_transaction(db, txn, commit=False)
    if commit:
        db.commit()
        db.refresh(txn)
    logger.info(
        "Transaction %s created (%s, total=%s, status=%s)",
        txn.transaction_number,
        source.value,
        total,
        txn.status.value,
    )
    return txn


def post_transaction(db: Session, txn: Transaction, commit: bool = True) -> Transaction:
    if txn.status != TransactionStatus.DRAFT:
        raise DomainError(f"Only draft transactions can be posted (status: {txn.status.value})")
    # Accounts may have been deactivated since the draft was saved
    validate_lines(
        db,
        [LedgerLine(e.account_id or e.account.id, e.debit, e.credit, e.memo) for e in txn.entries],
    )
    _apply_balances(txn, +1)
    txn.status = TransactionStatus.POSTED
    txn.posted_at = utcnow()
    db.add(txn)
    if commit:
        db.commit()
        db.refresh(txn)
        logger.info("Transaction %s posted", txn.transaction_number)
    return txn


def cancel_transaction(db: Session, txn: Transaction, commit: bool = True) -> Transaction:
    if txn.status == TransactionStatus.CANCELLED:
        raise DomainError("Transaction is already cancelled")
    if txn.status == TransactionStatus.POSTED:
        _apply_balances(txn, -1)
    txn.status = TransactionStatus.CANCELLED
    txn.cancelled_at = utcnow()
    db.add(txn)
    if commit:
        db.commit()
        db.refresh(txn)
        logger.info("Transaction %s cancelled", txn.transaction_number)
    return txn


def update_transaction(
    db: Session,
    txn: Transaction,
    *,
    lines: Optional[Sequence[LedgerLine]] = None,
    **changes,
) -> Transaction:
    if txn.status != TransactionStatus.DRAFT:
        raise DomainError("Only draft transactions can be edited")
    if "category_id" in changes:
        _check_category(db, changes["category_id"])
    if lines is not None:
        accounts, total = validate_lines(db, lines)
        _set_entries(txn, lines, accounts)
        txn.total_amount = total
    for field, value in changes.items():
        setattr(txn, field, value)
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


def delete_transaction(db: Session, txn: Transaction) -> None:
    if txn.status == TransactionStatus.POSTED:
        raise ConflictError("Posted transactions cannot be deleted; cancel it first")
    if txn.source != TransactionSource.MANUAL:
        raise ConflictError("System-generated transactions cannot be deleted")
    db.delete(txn)
    db.commit()
    logger.info("Transaction %s deleted", txn.transaction_number)


def auto_post(
    db: Session,
    *,
    txn_date: date,
    description: str,
    lines_by_code: List[Tuple[str, Decimal, Decimal]],
    source: TransactionSource,
    reference: Optional[str] = None,
    category_id: Optional[int] = None,
    created_by_id: Optional[int] = None,
) -> Optional[Transaction]:
    """
    Post a system-generated transaction inside the caller's unit of work.

    ``lines_by_code`` holds ``(account_code, debit, credit)`` tuples. Returns
    None (and logs) when auto-posting is disabled, a configured account is
    missing, or every amount is zero; the operational record is still saved
    by the caller.
    """
    if not settings.ledger_auto_post:
        return None
    lines = []
    for code, debit, credit in lines_by_code:
        if quantize(debit) == 0 and quantize(credit) == 0:
            continue
        account = get_account_by_code(db, code)
        if not account or not account.is_active:
            logger.warning(
                "Ledger auto-post skipped for %s: account %s missing or inactive", reference, code
            )
            return None
        lines.append(LedgerLine(account.id, quantize(debit), quantize(credit)))
    if len(lines) < 2:
        logger.info("Ledger auto-post skipped for %s: nothing to post", reference)
        return None
    return create_transaction(
        db,
        txn_date=txn_date,
        description=description,
        lines=lines,
        reference=reference,
        category_id=category_id,
        source=source,
        created_by_id=created_by_id,
        post=True,
        commit=False,
    )


def cash_account_code(payment_method: str) -> str:
    """Cash drawer for cash payments, main bank account for everything else."""
    if payment_method == "cash":
        return settings.cash_account_code
    return settings.bank_account_code
