from sqlalchemy import String, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from venuebook.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_reference: Mapped[str] = mapped_column(String(20), unique=True, index=True)

    booking_type: Mapped[str] = mapped_column(String(20), index=True)  # museum, library, sports, movie, event
    booking_data: Mapped[dict] = mapped_column(JSON, default=dict)
    booking_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    qr_code_data: Mapped[str] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(20), default="confirmed")  # confirmed, used, cancelled
    owner_id: Mapped[str] = mapped_column(String(36), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
