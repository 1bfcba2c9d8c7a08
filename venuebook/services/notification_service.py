import base64
import html
import logging

from sqlalchemy.orm import Session

from venuebook.core.errors import AuthorizationError, DeliveryFailure, NotFoundError
from venuebook.models.booking import Booking
from venuebook.models.email_log import EmailLog
from venuebook.services.access_policy import Principal, ensure_authenticated
from venuebook.services.email_service import queue_email
from venuebook.services.reference_service import render_qr_png

logger = logging.getLogger(__name__)

# booking type -> (label, key, suffix) rows shown under "Booking Details"
TYPE_DETAILS = {
    "museum": [("Museum", "museum", ""), ("Number of Visitors", "visitors", "")],
    "library": [("Purpose", "purpose", "")],
    "sports": [("Facility", "facility", ""), ("Duration", "duration", " hours")],
    "movie": [("Movie", "movie", ""), ("Screen", "screen", ""), ("Seats", "seats", "")],
    "event": [("Event", "event", ""), ("Tickets", "tickets", ""), ("Category", "category", "")],
}


def _same_email(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def _row(label: str, value) -> str:
    return f'<p><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</p>'


def render_confirmation_html(booking: Booking) -> str:
    data = booking.booking_data or {}
    rows = [
        _row("Type", booking.booking_type.capitalize()),
        _row("Date", data.get("date", "")),
        _row("Time", data.get("time", "")),
    ]
    if data.get("state"):
        rows.append(_row("State", data["state"]))
    for label, key, suffix in TYPE_DETAILS.get(booking.booking_type, []):
        if key in data:
            rows.append(_row(label, f"{data[key]}{suffix}"))

    qr_b64 = base64.b64encode(render_qr_png(booking.qr_code_data)).decode("ascii")
    ref = html.escape(booking.booking_reference)
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h1 style="color: #333; text-align: center;">Booking Confirmation</h1>
        <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <h2 style="color: #555; margin-top: 0;">Booking Reference: {ref}</h2>
          <div style="margin: 20px 0;">
            <h3 style="color: #666;">Personal Information</h3>
            {_row("Name", data.get("name", ""))}
            {_row("Email", data.get("email", ""))}
            {_row("Phone", data.get("phone", ""))}
          </div>
          <div style="margin: 20px 0;">
            <h3 style="color: #666;">Booking Details</h3>
            {"".join(rows)}
          </div>
          <div style="margin: 30px 0; text-align: center;">
            <h3 style="color: #666;">Your QR Code</h3>
            <img src="data:image/png;base64,{qr_b64}" alt="Booking QR Code" style="max-width: 250px; border: 2px solid #ddd; padding: 10px; background: white;"/>
            <p style="color: #888; font-size: 12px;">Show this QR code at the venue</p>
          </div>
        </div>
        <div style="text-align: center; color: #888; font-size: 12px; margin-top: 30px;">
          <p>Thank you for your booking!</p>
          <p>Please keep this email for your records.</p>
        </div>
      </div>
    """


def send_booking_confirmation(db: Session, principal: Principal | None, booking_id: str, to_email: str) -> EmailLog:
    """Send the confirmation for a booking to its own contact address.

    The target must match both the address stored on the booking and the
    caller's authenticated address. A failed send leaves a `failed` EmailLog
    for the worker to retry and raises DeliveryFailure.
    """
    p = ensure_authenticated(principal)
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    stored = (booking.booking_data or {}).get("email")
    if not (_same_email(to_email, stored) and _same_email(to_email, p.email)):
        logger.warning("confirmation email mismatch for booking %s by user %s", booking.id, p.user_id)
        raise AuthorizationError("Email does not match the booking or the signed-in account")

    log = queue_email(
        db,
        to_email=stored,
        subject=f"Booking Confirmation - {booking.booking_reference}",
        html=render_confirmation_html(booking),
        related_booking_ref=booking.booking_reference,
    )
    if log.status != "sent":
        raise DeliveryFailure(f"Confirmation email for {booking.booking_reference} could not be sent; it will be retried")
    return log
