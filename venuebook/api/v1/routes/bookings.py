from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from venuebook.db.session import get_db
from venuebook.api.deps import get_principal, to_http, DOMAIN_ERRORS
from venuebook.services.access_policy import Principal, ensure_authenticated
from venuebook.schemas.booking import (
    BookingCreate, BookingEdit, BookingOut, BookingCreated, BookingList,
    StatusChange, SendEmailRequest, EmailDispatchOut,
)
from venuebook.services import booking_service
from venuebook.services.notification_service import send_booking_confirmation
from venuebook.services.reference_service import render_qr_png

router = APIRouter(tags=["bookings"])

@router.post("/bookings", response_model=BookingCreated, status_code=201)
def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                   principal: Principal | None = Depends(get_principal)):
    try:
        booking, warning = booking_service.create_booking(db, principal, body.bookingType, body.bookingData)
    except DOMAIN_ERRORS as e:
        raise to_http(e)
    out = BookingOut.from_model(booking).model_dump()
    return BookingCreated(**out, emailWarning=warning)

@router.get("/bookings", response_model=BookingList)
def list_my_bookings(db: Session = Depends(get_db), principal: Principal | None = Depends(get_principal)):
    try:
        p = ensure_authenticated(principal)
    except DOMAIN_ERRORS as e:
        raise to_http(e)
    rows = booking_service.list_bookings_for_owner(db, p.user_id)
    return BookingList(items=[BookingOut.from_model(b) for b in rows])

@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, db: Session = Depends(get_db),
                principal: Principal | None = Depends(get_principal)):
    try:
        return BookingOut.from_model(booking_service.get_booking(db, principal, booking_id))
    except DOMAIN_ERRORS as e:
        raise to_http(e)

@router.patch("/bookings/{booking_id}", response_model=BookingOut)
def edit_booking(booking_id: str, body: BookingEdit, db: Session = Depends(get_db),
                 principal: Principal | None = Depends(get_principal)):
    try:
        return BookingOut.from_model(booking_service.edit_booking(db, principal, booking_id, body.bookingData))
    except DOMAIN_ERRORS as e:
        raise to_http(e)

@router.post("/bookings/{booking_id}/status", response_model=BookingOut)
def change_status(booking_id: str, body: StatusChange, db: Session = Depends(get_db),
                  principal: Principal | None = Depends(get_principal)):
    try:
        return BookingOut.from_model(booking_service.change_status(db, principal, booking_id, body.status))
    except DOMAIN_ERRORS as e:
        raise to_http(e)

@router.get("/bookings/{booking_id}/qr.png")
def booking_qr(booking_id: str, db: Session = Depends(get_db),
               principal: Principal | None = Depends(get_principal)):
    try:
        booking = booking_service.get_booking(db, principal, booking_id)
    except DOMAIN_ERRORS as e:
        raise to_http(e)
    return Response(content=render_qr_png(booking.qr_code_data), media_type="image/png")

@router.post("/notifications/booking-email", response_model=EmailDispatchOut)
def send_booking_email(body: SendEmailRequest, db: Session = Depends(get_db),
                       principal: Principal | None = Depends(get_principal)):
    """Re-send the confirmation for a booking; the address must be the booking's and the caller's."""
    try:
        log = send_booking_confirmation(db, principal, body.bookingId, body.userEmail)
    except DOMAIN_ERRORS as e:
        raise to_http(e)
    return EmailDispatchOut(success=True, emailId=log.id, status=log.status)
