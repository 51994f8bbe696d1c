#!/usr/bin/env python3
"""
Seed launch promo codes for local development and staging.

Creates (skipping any that already exist):
  - WELCOME10: 10% off HPI checks and the annual plan, capped at £5, once per account
  - ANNUAL5:   £5 off the annual plan, first 500 redemptions
  - FREEHPI:   100% off a single HPI check, once per account

Run from project root:
  python scripts/seed_promo_codes.py
  python scripts/seed_promo_codes.py --days 30 --admin-email admin@clearride.ai

Requires: DATABASE_URL in environment (.env or export).
"""
import argparse
import logging
import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

# Run from project root; ensure app is importable
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from app.core.clock import utcnow
from app.db.session import SessionLocal
from app.models.promo_code import DiscountType
from app.repositories.accounts import AccountRepository
from app.repositories.promo_codes import PromoCodeRepository
from app.services.promo_codes import PromoCodeError, create_promo_code

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)

LAUNCH_CODES = [
    {
        "code": "WELCOME10",
        "name": "Welcome discount",
        "discount_type": DiscountType.PERCENTAGE.value,
        "discount_value": Decimal("10"),
        "max_discount": Decimal("5.00"),
        "per_user_limit": 1,
        "applicable_for": "HPI_CHECK,BULK_HPI,ANNUAL_SUBSCRIPTION",
    },
    {
        "code": "ANNUAL5",
        "name": "Annual plan launch offer",
        "discount_type": DiscountType.FIXED_AMOUNT.value,
        "discount_value": Decimal("5.00"),
        "usage_limit": 500,
        "applicable_for": "ANNUAL_SUBSCRIPTION",
    },
    {
        "code": "FREEHPI",
        "name": "Free HPI check",
        "discount_type": DiscountType.PERCENTAGE.value,
        "discount_value": Decimal("100"),
        "per_user_limit": 1,
        "applicable_for": "HPI_CHECK",
    },
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed launch promo codes.")
    parser.add_argument("--days", type=int, default=90, help="Days the codes stay valid (default 90)")
    parser.add_argument("--admin-email", type=str, help="Record this account as the creator")
    args = parser.parse_args()

    now = utcnow()
    db = SessionLocal()
    try:
        created_by = None
        if args.admin_email:
            admin = AccountRepository(db).get_by_email(args.admin_email)
            if not admin:
                logger.error("No account with email %r", args.admin_email)
                sys.exit(1)
            created_by = admin.id

        promo_codes = PromoCodeRepository(db)
        for seed in LAUNCH_CODES:
            if promo_codes.get_by_code(seed["code"]):
                logger.info("%s already exists, skipping", seed["code"])
                continue
            data = {
                "description": None,
                "min_order_value": None,
                "max_discount": None,
                "usage_limit": None,
                "per_user_limit": None,
                "is_active": True,
                **seed,
                "valid_from": now,
                "valid_until": now + timedelta(days=args.days),
            }
            try:
                create_promo_code(db, data, created_by=created_by)
            except PromoCodeError as e:
                logger.error("Could not create %s: %s", seed["code"], e.message)
    finally:
        db.close()


if __name__ == "__main__":
    main()
