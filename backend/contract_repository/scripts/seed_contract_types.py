"""Seed Contract Types Script

Creates the standard contract types (SOFTWARE_LICENSE, VENDOR_AGREEMENT,
BANKING_SERVICE) when they are missing. Existing rows are left alone.
Run with: python -m contract_repository.scripts.seed_contract_types
"""

import argparse

from dotenv import load_dotenv

# DATABASE_URL may only live in .env; load it before settings are read.
load_dotenv()

from contract_repository.database import SessionLocal  # noqa: E402
from contract_repository.services.contract_types import seed_standard_contract_types  # noqa: E402


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed standard contract types")
    parser.add_argument("--user", default="system", help="Username recorded in audit fields")
    args = parser.parse_args(argv)

    print("\nStarting contract type seed script...")

    # Tables must already exist (alembic upgrade head).
    db = SessionLocal()
    try:
        created = seed_standard_contract_types(db, username=args.user)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    for contract_type in created:
        print(f"Created contract type: {contract_type.type_code} ({contract_type.risk_category.value})")
    print(f"Done. {len(created)} created.")

if __name__ == "__main__":
    main()
