"""Default hotel chart of accounts and transaction categories."""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from hotelpms.models import Account, AccountType, CategoryType, TransactionCategory

logger = logging.getLogger("hotelpms.accounting")

DEFAULT_ACCOUNTS = [
    ("1001", "Cash in Hand", AccountType.ASSET, "Current Assets"),
    ("1002", "Bank Account - Main", AccountType.ASSET, "Current Assets"),
    ("1003", "Accounts Receivable", AccountType.ASSET, "Current Assets"),
    ("1004", "Inventory - Food & Beverage", AccountType.ASSET, "Current Assets"),
    ("1101", "Furniture & Fixtures", AccountType.ASSET, "Fixed Assets"),
    ("1102", "Building", AccountType.ASSET, "Fixed Assets"),
    ("1103", "Equipment", AccountType.ASSET, "Fixed Assets"),
    ("2001", "Accounts Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("2002", "Accrued Expenses", AccountType.LIABILITY, "Current Liabilities"),
    ("2003", "Customer Deposits", AccountType.LIABILITY, "Current Liabilities"),
    ("2004", "Sales Tax Payable", AccountType.LIABILITY, "Current Liabilities"),
    ("2101", "Long-term Loan", AccountType.LIABILITY, "Long-term Liabilities"),
    ("3001", "Owner's Capital", AccountType.EQUITY, "Owner's Equity"),
    ("3002", "Retained Earnings", AccountType.EQUITY, "Owner's Equity"),
    ("4001", "Room Revenue", AccountType.REVENUE, "Operating Revenue"),
    ("4002", "Food & Beverage Revenue", AccountType.REVENUE, "Operating Revenue"),
    ("4003", "Laundry Revenue", AccountType.REVENUE, "Operating Revenue"),
    ("4004", "Other Revenue", AccountType.REVENUE, "Operating Revenue"),
    ("5001", "Staff Salaries", AccountType.EXPENSE, "Operating Expenses"),
    ("5002", "Utilities", AccountType.EXPENSE, "Operating Expenses"),
    ("5003", "Maintenance & Repairs", AccountType.EXPENSE, "Operating Expenses"),
    ("5004", "Marketing & Advertising", AccountType.EXPENSE, "Operating Expenses"),
    ("5005", "Food & Beverage Costs", AccountType.EXPENSE, "Cost of Sales"),
    ("5006", "Housekeeping Supplies", AccountType.EXPENSE, "Operating Expenses"),
    ("5007", "Administrative Expenses", AccountType.EXPENSE, "Operating Expenses"),
]

DEFAULT_CATEGORIES = [
    ("Room Operations", CategoryType.INCOME, "#10B981", "Revenue from room bookings"),
    ("Food & Beverage", CategoryType.INCOME, "#8B5CF6", "Revenue from restaurant and bar"),
    ("Other Services", CategoryType.INCOME, "#06B6D4", "Revenue from additional services"),
    ("Staff Costs", CategoryType.EXPENSE, "#EF4444", "Employee salaries and benefits"),
    ("Utilities", CategoryType.EXPENSE, "#F59E0B", "Electricity, water, gas, internet"),
    ("Maintenance", CategoryType.EXPENSE, "#84CC16", "Repairs and maintenance costs"),
    ("Marketing", CategoryType.EXPENSE, "#EC4899", "Advertising and promotional expenses"),
    ("Supplies", CategoryType.EXPENSE, "#6366F1", "Housekeeping and operational supplies"),
    ("Administrative", CategoryType.EXPENSE, "#64748B", "Office and administrative expenses"),
]


def seed_defaults(db: Session) -> Dict[str, int]:
    """Insert missing default accounts and categories. Safe to run repeatedly."""
    stats = {"accounts_created": 0, "categories_created": 0}
    existing_codes = {code for (code,) in db.query(Account.code).all()}
    for code, name, account_type, category in DEFAULT_ACCOUNTS:
        if code in existing_codes:
            continue
        db.add(Account(code=code, name=name, account_type=account_type, category=category, balance=0))
        stats["accounts_created"] += 1

    existing_names = {name for (name,) in db.query(TransactionCategory.name).all()}
    for name, category_type, color, description in DEFAULT_CATEGORIES:
        if name in existing_names:
            continue
        db.add(
            TransactionCategory(
                name=name, category_type=category_type, color=color, description=description
            )
        )
        stats["categories_created"] += 1

    db.commit()
    logger.info("Chart of accounts seeded: %s", stats)
    return stats
