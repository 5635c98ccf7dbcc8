#!/usr/bin/env python3
"""
Seed Demo Data

Creates a dashboard account if needed and fills it with demo customers,
campaigns, delivery logs and products. Existing data is left alone.

Usage:
    python scripts/seed_demo_data.py --email demo@example.com --password demo-password
    python scripts/seed_demo_data.py --email demo@example.com --customers 200
"""
import sys
import argparse
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.models.base import SessionLocal, init_db
from app.models.user import User
from app.services import auth_service
from app.services.sample_data_service import SampleDataService


def main():
    parser = argparse.ArgumentParser(description="Seed demo data for a dashboard account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="Password when the account has to be created")
    parser.add_argument("--customers", type=int, default=0,
                        help="Extra random customers to generate on top of the demo set")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email.lower().strip()).first()
        if not user:
            if not args.password:
                print(f"No account for {args.email}; pass --password to create it")
                sys.exit(1)
            user = auth_service.create_user(db, args.email, args.password, "Demo")
            print(f"Created account {user.email}")

        service = SampleDataService(db)
        summary = service.seed_demo_data(user.id)
        for key, value in summary.items():
            print(f"  {key}: {value}")

        if args.customers:
            created = service.generate_customers(user.id, args.customers)
            print(f"  extra customers: {created}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
