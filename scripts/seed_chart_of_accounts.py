"""
Insert the default chart of accounts and transaction categories.

Usage:
  python scripts/seed_chart_of_accounts.py
"""
from hotelpms.core.db import SessionLocal
from hotelpms.services.chart_of_accounts import seed_defaults


def main():
    db = SessionLocal()
    try:
        stats = seed_defaults(db)
        print(f"Accounts created: {stats['accounts_created']}, categories created: {stats['categories_created']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
