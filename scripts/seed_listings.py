#!/usr/bin/env python3
"""
Demo Listing Seeder

Creates a spread of coupon listings for a demo seller, one per expiry
section, so the browse view has something to show.

Usage:
    python scripts/seed_listings.py --seller-id demo-seller --seller-email demo@example.com
    python scripts/seed_listings.py --seller-id demo-seller --dry-run
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.coupon import SELL_TYPE, CouponCategory, CouponListing
from repositories.client import get_supabase
from repositories.coupon_repository import insert_listing
from repositories.document_store import SupabaseDocumentStore
from repositories.settings import get_settings

# (name, value, category, days until expiry)
DEMO_COUPONS = [
    ("Pizza 20% off", "250", CouponCategory.FOOD, 0),
    ("Sneakers flat 500", "500", CouponCategory.CLOTHES, 3),
    ("Flight voucher", "1500", CouponCategory.TRAVEL, 20),
    ("Headphones 10% off", "300", CouponCategory.ELECTRONICS, 40),
    ("Game pass month", "199", CouponCategory.ONLINE_GAMING, -1),
]


def build_demo_listings(seller_id: str, seller_email: str, now: datetime) -> list[CouponListing]:
    """Demo listings expiring at the end of a day in `now`'s timezone."""
    end_of_today = now.replace(hour=23, minute=59, second=59, microsecond=0)
    return [
        CouponListing(
            coupon_id=uuid4().hex,
            user_id=seller_id,
            user_email=seller_email,
            name=name,
            value=Decimal(value),
            details=f"Demo {category.value.lower()} coupon",
            category=category.value,
            expiry_date=end_of_today + timedelta(days=days),
            type=SELL_TYPE,
            created_at=now,
        )
        for name, value, category, days in DEMO_COUPONS
    ]


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Seed demo coupon listings")
    parser.add_argument("--seller-id", required=True, help="Owner uid for the listings")
    parser.add_argument("--seller-email", default="demo@example.com", help="Owner email")
    parser.add_argument("--dry-run", action="store_true", help="Print listings without writing them")
    args = parser.parse_args()

    settings = get_settings()
    listings = build_demo_listings(args.seller_id, args.seller_email, datetime.now(settings.tz))

    if args.dry_run:
        for listing in listings:
            print(f"  {listing.coupon_id}  {listing.name:<22} expires {listing.expiry_date.isoformat()}")
        print("** DRY RUN - No listings were written **")
        return 0

    try:
        store = SupabaseDocumentStore(
            get_supabase(),
            commit_rpc=settings.commit_rpc,
            max_attempts=settings.transaction_max_attempts,
        )
        for listing in listings:
            insert_listing(store, listing)
            print(f"[SUCCESS] Listed {listing.name} ({listing.coupon_id})")
    except Exception as e:
        print(f"\nFATAL ERROR: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
