#!/usr/bin/env python3
"""
Customer Import Script

Imports customers for one dashboard account from a CSV export.

Column names are matched case-insensitively; the marketing-dataset style
headers (Full_Name, MntWines, NumWebPurchases, AcceptedCmp, ...) are mapped
onto the customer fields. Rows without a name, email or phone are skipped.

Usage:
    python scripts/import_customers.py --email owner@example.com --file imports/customers.csv
    python scripts/import_customers.py --email owner@example.com --file customers.csv --dry-run
"""
import sys
import argparse
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from app.models.base import SessionLocal, init_db
from app.models.user import User
from app.services.customer_service import CustomerService, EDITABLE_FIELDS

# CSV header (lowercased) -> customer field
COLUMN_MAP = {
    "name": "full_name",
    "customer_name": "full_name",
    "mntwines": "mnt_wines",
    "mntfruits": "mnt_fruits",
    "mntmeatproducts": "mnt_meat_products",
    "mntgoldprods": "mnt_gold_prods",
    "numwebpurchases": "num_web_purchases",
    "numstorepurchases": "num_store_purchases",
    "numcatalogpurchases": "num_catalog_purchases",
    "numwebvisitsmonth": "num_web_visits_month",
    "acceptedcmp": "campaigns_accepted",
    "optout": "opt_out",
}

INT_FIELDS = {
    "age", "total_purchases", "num_web_purchases", "num_store_purchases",
    "num_catalog_purchases", "num_web_visits_month", "kidhome", "teenhome",
    "recency", "campaigns_accepted",
}
BOOL_FIELDS = {"response", "complain", "opt_out"}


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed = {}
    for column in df.columns:
        key = str(column).strip().lower()
        renamed[column] = COLUMN_MAP.get(key, key)
    return df.rename(columns=renamed)


def parse_value(field: str, value):
    """Coerce a CSV cell to the field's type; blanks become None"""
    if pd.isna(value) or value == '':
        return None
    if field in BOOL_FIELDS:
        return str(value).strip().lower() in ("1", "true", "yes", "y")
    if field in INT_FIELDS:
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None
    if field in ("full_name", "email", "phone", "location", "country", "city"):
        return str(value).strip()
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def rows_from_csv(file_path: str) -> list:
    df = normalize_columns(pd.read_csv(file_path, dtype={"phone": str}))
    fields = [c for c in df.columns if c in EDITABLE_FIELDS]
    ignored = [c for c in df.columns if c not in EDITABLE_FIELDS]
    if ignored:
        print(f"  Ignoring columns: {', '.join(ignored)}")

    rows = []
    for record in df[fields].to_dict(orient="records"):
        row = {field: parse_value(field, value) for field, value in record.items()}
        if row.get("campaigns_accepted") is not None:
            row["campaigns_accepted"] = max(0, min(5, row["campaigns_accepted"]))
        rows.append(row)
    return rows


def main():
    parser = argparse.ArgumentParser(description="Import customers from a CSV file")
    parser.add_argument("--email", required=True, help="Dashboard account that will own the customers")
    parser.add_argument("--file", required=True, help="Path to the CSV file")
    parser.add_argument("--dry-run", action="store_true", help="Parse and report without writing")
    args = parser.parse_args()

    if not Path(args.file).exists():
        print(f"File not found: {args.file}")
        sys.exit(1)

    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email.lower().strip()).first()
        if not user:
            print(f"No dashboard account for {args.email}")
            sys.exit(1)

        print(f"Reading {args.file}...")
        rows = rows_from_csv(args.file)
        print(f"  Parsed {len(rows)} rows")

        if args.dry_run:
            complete = sum(1 for r in rows if r.get("full_name") and r.get("email") and r.get("phone"))
            print(f"  Dry run: {complete} rows would be imported")
            return

        created = CustomerService(db).bulk_create(user.id, rows)
        print(f"  Imported {created} customers ({len(rows) - created} skipped)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
