from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from venuebook.db.session import SessionLocal
from venuebook.services.booking_service import expire_sweep
from venuebook.services.email_service import process_pending_emails


def cleanup_expired_bookings(now: datetime | None = None) -> dict:
    """Delete bookings more than the retention window past their slot. Idempotent for a given `now`."""
    db: Session = SessionLocal()
    try:
        try:
            deleted = expire_sweep(db, now=now)
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        return {"success": True, "deleted": deleted}
    finally:
        db.close()


def process_email_queue(limit: int = 50) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except ProgrammingError:
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
