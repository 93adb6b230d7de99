"""
Create the first admin account.

Usage:
  python scripts/create_initial_admin.py --email you@example.com --password secret --name "Front Office"
"""
import argparse

from hotelpms.core.db import SessionLocal
from hotelpms.core.security import hash_password
from hotelpms.models import User, UserRole


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        email = args.email.strip().lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            print("User already exists")
            return
        user = User(
            email=email,
            name=args.name,
            password_hash=hash_password(args.password),
            role=UserRole.ADMIN,
            is_active=True,
        )
        db.add(user)
        db.commit()
        print("Admin created")
    finally:
        db.close()


if __name__ == "__main__":
    main()
