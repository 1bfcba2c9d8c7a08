import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from venuebook.core.config import settings
from venuebook.core.errors import (
    AuthorizationError,
    BookingStateError,
    BookingValidationError,
    DeliveryFailure,
    FieldError,
    NotFoundError,
)
from venuebook.models.booking import Booking
from venuebook.services.access_policy import (
    Principal,
    ensure_authenticated,
    ensure_can_edit,
    ensure_can_read,
    ensure_privileged,
)
from venuebook.services.audit_service import log_audit
from venuebook.services.notification_service import send_booking_confirmation
from venuebook.services.reference_service import build_qr_payload, make_booking_ref, normalize_reference
from venuebook.services.validation_service import validate_booking_data

logger = logging.getLogger(__name__)

CONFIRMED, USED, CANCELLED, EXPIRED = "confirmed", "used", "cancelled", "expired"


def _utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: datetime | None) -> datetime:
    return _utc(now) if now else datetime.now(timezone.utc)


def _local_today(now: datetime) -> date:
    return now.astimezone(ZoneInfo(settings.TIMEZONE)).date()


def display_status(booking: Booking, now: datetime | None = None) -> str:
    """Stored status, except a confirmed booking whose slot has passed reads as expired."""
    if booking.status == CONFIRMED and _utc(booking.booking_datetime) < _now(now):
        return EXPIRED
    return booking.status


def _is_reference_collision(e: IntegrityError) -> bool:
    # sqlite names the column, postgres the unique index; both mention booking_reference
    return "booking_reference" in str(e.orig)


def _get_or_404(db: Session, booking_id: str) -> Booking:
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def create_booking(db: Session, principal: Principal | None, booking_type, raw: dict | None,
                   now: datetime | None = None, notify: bool = True) -> tuple[Booking, str | None]:
    """Validate and persist a new confirmed booking owned by the caller.

    The confirmation email is attempted after the booking is committed; a
    failure there is returned as a warning and never undoes the booking.
    """
    p = ensure_authenticated(principal)
    now = _now(now)
    record = validate_booking_data(booking_type, raw, today=_local_today(now))
    data = record.model_dump(mode="json")
    bt = record.booking_type.value
    starts_at = record.starts_at()

    # booking_reference is unique at the storage layer; regenerate on collision
    for _ in range(settings.BOOKING_REF_MAX_ATTEMPTS):
        booking = Booking(
            id=str(uuid.uuid4()),
            booking_reference=make_booking_ref(),
            booking_type=bt,
            booking_data=data,
            booking_datetime=starts_at,
            qr_code_data=build_qr_payload(bt, data, p.user_id, now),
            status=CONFIRMED,
            owner_id=p.user_id,
            created_at=now,
        )
        db.add(booking)
        log_audit(db, p.user_id, "booking.create", "booking", booking.id,
                  {"booking_reference": booking.booking_reference, "booking_type": bt})
        try:
            db.commit()
            break
        except IntegrityError as e:
            db.rollback()
            if not _is_reference_collision(e):
                raise
            logger.info("booking reference %s already taken, regenerating", booking.booking_reference)
    else:
        raise RuntimeError("could not allocate booking reference")

    db.refresh(booking)
    logger.info("booking %s (%s) created by %s", booking.booking_reference, bt, p.user_id)

    warning = None
    if notify:
        try:
            send_booking_confirmation(db, p, booking.id, data["email"])
        except (DeliveryFailure, AuthorizationError) as e:
            warning = f"Booking created but the confirmation email was not sent: {e}"
            logger.warning("booking %s: %s", booking.booking_reference, e)
    return booking, warning


def edit_booking(db: Session, principal: Principal | None, booking_id: str, raw: dict | None,
                 now: datetime | None = None) -> Booking:
    """Merge `raw` over the stored fields, re-validate, and regenerate the QR payload."""
    p = ensure_authenticated(principal)
    now = _now(now)
    booking = _get_or_404(db, booking_id)
    ensure_can_edit(p, booking)
    if booking.status != CONFIRMED:
        raise BookingStateError(f"Booking is {booking.status} and can no longer be edited")

    merged = {**(booking.booking_data or {}), **(raw or {})}
    record = validate_booking_data(booking.booking_type, merged, today=_local_today(now))
    data = record.model_dump(mode="json")

    before = booking.booking_data
    booking.booking_data = data
    booking.booking_datetime = record.starts_at()
    booking.qr_code_data = build_qr_payload(booking.booking_type, data, booking.owner_id, now)
    booking.updated_at = now
    log_audit(db, p.user_id, "booking.edit", "booking", booking.id, {"before": before, "after": data})
    db.commit()
    db.refresh(booking)
    return booking


def get_booking(db: Session, principal: Principal | None, booking_id: str) -> Booking:
    ensure_authenticated(principal)
    booking = _get_or_404(db, booking_id)
    ensure_can_read(principal, booking)
    return booking


def list_bookings_for_owner(db: Session, owner_id: str) -> list[Booking]:
    return list(
        db.execute(
            select(Booking).where(Booking.owner_id == owner_id).order_by(Booking.created_at.desc())
        ).scalars()
    )


def search_by_reference(db: Session, principal: Principal | None, reference: str) -> Booking:
    ensure_privileged(principal)
    ref = normalize_reference(reference)
    if not ref:
        raise BookingValidationError([FieldError("reference", "Booking reference is required")])
    booking = db.execute(select(Booking).where(Booking.booking_reference == ref)).scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def change_status(db: Session, principal: Principal | None, booking_id: str, new_status: str,
                  now: datetime | None = None) -> Booking:
    """confirmed -> cancelled (owner or staff) and confirmed -> used (staff only)."""
    p = ensure_authenticated(principal)
    if new_status not in (USED, CANCELLED):
        raise BookingValidationError([FieldError("status", "Status must be 'used' or 'cancelled'")])
    booking = _get_or_404(db, booking_id)
    ensure_can_edit(p, booking)
    if new_status == USED and not p.is_privileged:
        raise AuthorizationError("Only support or admin can mark a booking as used")
    if booking.status != CONFIRMED:
        raise BookingStateError(f"Booking is already {booking.status}")

    booking.status = new_status
    booking.updated_at = _now(now)
    log_audit(db, p.user_id, f"booking.{new_status}", "booking", booking.id,
              {"booking_reference": booking.booking_reference})
    db.commit()
    db.refresh(booking)
    return booking


def expire_sweep(db: Session, now: datetime | None = None) -> int:
    """Delete every booking whose slot is more than the retention window in the past, whatever its status."""
    cutoff = _now(now) - timedelta(days=settings.BOOKING_RETENTION_DAYS)
    result = db.execute(
        delete(Booking)
        .where(Booking.booking_datetime <= cutoff)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    removed = result.rowcount or 0
    logger.info("cleanup removed %s bookings with slots on or before %s", removed, cutoff.isoformat())
    return removed
