#!/usr/bin/env python3
"""
Backfill revenue_records for invoices that are already paid.

Why:
Invoices marked as paid before revenue recognition was deployed (or imported
in bulk while it was disabled) never produced revenue records.

Strategy (safe + idempotent):
- Select invoices with status == 'paid' dated on/after the revenue cutoff
  (REVENUE_CUTOFF_DATE) and, optionally, on/after --since.
- Run each through the same recognition path as a freshly inserted invoice.
- Line items that already have a revenue record are skipped by the unique
  index on source_line_item_id, so re-running never double counts.

Usage:
  python3 scripts/backfill_revenue_records.py --dry-run
  python3 scripts/backfill_revenue_records.py --confirm --since 2026-02-01
  python3 scripts/backfill_revenue_records.py --confirm --family-id 42
"""

import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database.session import async_session
from src.core.logging import configure_logging
from src.modules.revenue.schemas import BackfillResponse
from src.modules.revenue.service import RevenueRecognitionService


async def backfill(
    session: AsyncSession,
    *,
    since: date | None,
    family_id: int | None,
    dry_run: bool,
) -> BackfillResponse:
    service = RevenueRecognitionService(session)
    result = await service.backfill(since=since, family_id=family_id)

    print(f"🔎 Paid invoices checked: {result.invoices_checked}")
    print(f"   Skipped: {result.invoices_skipped}")
    print(f"   Line items already recognized: {result.duplicates_ignored}")

    if dry_run:
        await session.rollback()
        print(f"\n🧪 DRY-RUN: would create {result.records_created} revenue record(s).")
        return result

    await session.commit()
    print(f"\n✅ Applied: created {result.records_created} revenue record(s).")
    return result


async def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        description="Backfill revenue_records for already-paid invoices"
    )
    parser.add_argument("--dry-run", action="store_true", help="Preview changes, rollback at end")
    parser.add_argument("--confirm", action="store_true", help="Apply changes (COMMIT)")
    parser.add_argument(
        "--since",
        type=date.fromisoformat,
        default=None,
        help="Only invoices dated on/after this date (YYYY-MM-DD); never earlier than the cutoff",
    )
    parser.add_argument("--family-id", type=int, default=None, help="Limit to a single family id")
    args = parser.parse_args()

    if not args.dry_run and not args.confirm:
        print("❌ ERROR: specify --dry-run or --confirm")
        sys.exit(1)
    if args.dry_run and args.confirm:
        print("❌ ERROR: choose only one of --dry-run / --confirm")
        sys.exit(1)

    configure_logging(settings.log_level)

    print("\n" + "=" * 70)
    print("BACKFILL REVENUE RECORDS")
    print("=" * 70)
    print(f"\n🌍 Environment: {settings.app_env}")
    print(
        f"🗄️  DB: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'unknown'}"
    )
    print(f"📅 Revenue cutoff: {settings.revenue_cutoff_date}")
    print(f"🔧 Mode: {'DRY-RUN' if args.dry_run else 'APPLY (COMMIT)'}")
    if args.since is not None:
        print(f"🎯 Filter: since={args.since}")
    if args.family_id is not None:
        print(f"🎯 Filter: family_id={args.family_id}")

    if args.confirm:
        print("\n⚠️  This will INSERT revenue records into the database.")
        response = input("\n❓ Type 'APPLY REVENUE BACKFILL' to continue: ")
        if response != "APPLY REVENUE BACKFILL":
            print("\n❌ Cancelled by user")
            sys.exit(0)

    async with async_session() as session:
        await backfill(
            session,
            since=args.since,
            family_id=args.family_id,
            dry_run=args.dry_run,
        )


if __name__ == "__main__":
    asyncio.run(main())
