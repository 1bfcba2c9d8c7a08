from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from venuebook.db.session import get_db
from venuebook.api.deps import get_principal, to_http, DOMAIN_ERRORS
from venuebook.services.access_policy import Principal, ensure_privileged
from venuebook.services.audit_service import audit_out, list_audit
from venuebook.services import booking_service
from venuebook.schemas.booking import BookingOut

router = APIRouter(tags=["support"])

@router.get("/support/bookings/search", response_model=BookingOut)
def search_booking(reference: str, db: Session = Depends(get_db),
                   principal: Principal | None = Depends(get_principal)):
    """Exact lookup by booking reference (case-insensitive). Edits go through PATCH /bookings/{id}."""
    try:
        return BookingOut.from_model(booking_service.search_by_reference(db, principal, reference))
    except DOMAIN_ERRORS as e:
        raise to_http(e)

@router.get("/support/bookings/{booking_id}/history")
def booking_history(booking_id: str, db: Session = Depends(get_db),
                    principal: Principal | None = Depends(get_principal)):
    try:
        ensure_privileged(principal)
        booking = booking_service.get_booking(db, principal, booking_id)
    except DOMAIN_ERRORS as e:
        raise to_http(e)
    return [audit_out(a) for a in list_audit(db, "booking", booking.id)]
