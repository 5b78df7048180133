"""
Backfill the canonical `sessions` column on trainer bookings written by older clients.

Bookings whose schedule only lives in day_wise_status, the embedded training
plan or the root session_dates list get the reconciled list copied into
`sessions`. The legacy copies are left in place. Bookings with no stored
schedule at all are skipped; they are regenerated on read.

Run with: python -m migrations.backfill_booking_sessions [--dry-run]
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from app.database import SessionLocal  # noqa: E402
from app.domain.scheduling.synchronizer import SOURCE_SESSIONS, ScheduleSynchronizer  # noqa: E402
from app.models import TrainerBooking  # noqa: E402


def backfill_booking_sessions(db, dry_run: bool = False) -> dict:
    """Copy each legacy booking's reconciled session list into `sessions`"""
    print("🚀 Starting session backfill...")

    sync = ScheduleSynchronizer(db)
    bookings = db.query(TrainerBooking).order_by(TrainerBooking.id).all()
    print(f"📋 Found {len(bookings)} bookings")

    counts = {"migrated": 0, "skipped": 0}

    for booking in bookings:
        schedule = sync.read_sessions(booking)

        if schedule.source == SOURCE_SESSIONS:
            counts["skipped"] += 1
            continue

        if not schedule.persisted:
            print(f"⚠️  Skipping {booking.public_id} - no stored schedule")
            counts["skipped"] += 1
            continue

        print(f"🔄 {booking.public_id}: {len(schedule.sessions)} sessions from {schedule.source}")
        if not dry_run:
            booking.sessions = schedule.sessions
        counts["migrated"] += 1

    if dry_run:
        db.rollback()
        print(f"✅ Dry run: {counts['migrated']} bookings would be migrated, {counts['skipped']} skipped")
    else:
        db.commit()
        print(f"✅ Migrated {counts['migrated']} bookings, skipped {counts['skipped']}")

    return counts


if __name__ == "__main__":
    db = SessionLocal()
    try:
        backfill_booking_sessions(db, dry_run="--dry-run" in sys.argv)
    except SQLAlchemyError as e:
        db.rollback()
        print(f"❌ Backfill failed: {e}")
        sys.exit(1)
    finally:
        db.close()
