from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from venuebook.models.booking import Booking
from venuebook.services.booking_service import display_status

class BookingCreate(BaseModel):
    bookingType: str
    bookingData: Dict[str, Any]

class BookingEdit(BaseModel):
    bookingData: Dict[str, Any]

class StatusChange(BaseModel):
    status: str

class SendEmailRequest(BaseModel):
    bookingId: str
    userEmail: str

class BookingOut(BaseModel):
    id: str
    bookingReference: str
    bookingType: str
    bookingData: Dict[str, Any]
    bookingDateTime: str
    qrCodeData: str
    status: str
    displayStatus: str
    ownerId: str
    createdAt: str
    updatedAt: Optional[str] = None

    @classmethod
    def from_model(cls, b: Booking) -> "BookingOut":
        return cls(
            id=b.id,
            bookingReference=b.booking_reference,
            bookingType=b.booking_type,
            bookingData=b.booking_data or {},
            bookingDateTime=b.booking_datetime.isoformat(),
            qrCodeData=b.qr_code_data,
            status=b.status,
            displayStatus=display_status(b),
            ownerId=b.owner_id,
            createdAt=b.created_at.isoformat(),
            updatedAt=b.updated_at.isoformat() if b.updated_at else None,
        )

class BookingCreated(BookingOut):
    emailWarning: Optional[str] = None

class EmailDispatchOut(BaseModel):
    success: bool
    emailId: str
    status: str

class BookingList(BaseModel):
    items: List[BookingOut]
