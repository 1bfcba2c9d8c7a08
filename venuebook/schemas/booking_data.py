"""Per-type booking payloads.

Every booking type has its own record shape sharing the common contact and
slot fields. Field validators raise ``PydanticCustomError`` so the message a
caller sees is exactly the one written here; pydantic collects the failures
across all fields in one pass.
"""
import datetime as dt
import re
from enum import Enum
from typing import ClassVar
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from venuebook.core.config import settings


class BookingType(str, Enum):
    museum = "museum"
    library = "library"
    sports = "sports"
    movie = "movie"
    event = "event"


# state -> museums that can be booked there
MUSEUMS_BY_STATE: dict[str, tuple[str, ...]] = {
    "delhi": ("national", "art", "history"),
    "maharashtra": ("art", "science"),
    "karnataka": ("history", "science"),
    "west-bengal": ("national", "science"),
}
LIBRARY_PURPOSES = ("study", "research", "meeting")
SPORTS_FACILITIES = ("tennis", "basketball", "swimming", "gym")
MOVIES = ("action", "comedy", "drama", "scifi")
MOVIE_SCREENS = ("1", "2", "3")
EVENTS = ("concert", "conference", "workshop", "exhibition")
EVENT_CATEGORIES = ("vip", "premium", "standard")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9+\-\s()]{10,15}$")
TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("booking_field", message)


def _choice(value: str, choices, required: str, invalid: str) -> str:
    if not value:
        raise _fail(required)
    if value not in choices:
        raise _fail(invalid)
    return value


def _not_bool(value, label: str):
    # bool is an int subclass; true must not become a count of 1
    if isinstance(value, bool):
        raise _fail(f"{label} must be a whole number")
    return value


def _in_range(value: int, low: int, high: int, too_low: str, too_high: str) -> int:
    if value < low:
        raise _fail(too_low)
    if value > high:
        raise _fail(too_high)
    return value


def local_today(tz_name: str | None = None) -> dt.date:
    return dt.datetime.now(ZoneInfo(tz_name or settings.TIMEZONE)).date()


class BookingDataBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    booking_type: ClassVar[BookingType]

    name: str
    email: str
    phone: str
    date: dt.date
    time: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if len(v) < 2:
            raise _fail("Name must be at least 2 characters")
        if len(v) > 100:
            raise _fail("Name too long")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise _fail("Invalid email address")
        if len(v) > 255:
            raise _fail("Email too long")
        return v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise _fail("Invalid phone number format")
        return v

    @field_validator("date")
    @classmethod
    def _date(cls, v: dt.date, info: ValidationInfo) -> dt.date:
        today = (info.context or {}).get("today") or local_today()
        if v < today:
            raise _fail("Date must be today or in the future")
        return v

    @field_validator("time")
    @classmethod
    def _time(cls, v: str) -> str:
        if not v:
            raise _fail("Time is required")
        m = TIME_RE.match(v)
        if not m:
            raise _fail("Invalid time format")
        return f"{int(m.group(1)):02d}:{m.group(2)}"

    def starts_at(self, tz_name: str | None = None) -> dt.datetime:
        """Date and time slot combined into an aware UTC instant."""
        hh, mm = map(int, self.time.split(":"))
        local = dt.datetime.combine(self.date, dt.time(hh, mm), tzinfo=ZoneInfo(tz_name or settings.TIMEZONE))
        return local.astimezone(dt.timezone.utc)


class MuseumBookingData(BookingDataBase):
    booking_type: ClassVar[BookingType] = BookingType.museum

    state: str
    museum: str
    visitors: int

    @field_validator("state")
    @classmethod
    def _state(cls, v: str) -> str:
        return _choice(v, MUSEUMS_BY_STATE, "State selection is required", "Unknown state")

    @field_validator("museum")
    @classmethod
    def _museum(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise _fail("Museum selection is required")
        state = info.data.get("state")
        if state is None:
            # state failed on its own; only check the museum exists somewhere
            known = {m for museums in MUSEUMS_BY_STATE.values() for m in museums}
            return _choice(v, known, "Museum selection is required", "Unknown museum")
        return _choice(v, MUSEUMS_BY_STATE[state], "Museum selection is required",
                       "Museum is not available in the selected state")

    @field_validator("visitors", mode="before")
    @classmethod
    def _visitors_not_bool(cls, v):
        return _not_bool(v, "Visitors")

    @field_validator("visitors")
    @classmethod
    def _visitors(cls, v: int) -> int:
        return _in_range(v, 1, 50, "At least 1 visitor required", "Maximum 50 visitors allowed")


class LibraryBookingData(BookingDataBase):
    booking_type: ClassVar[BookingType] = BookingType.library

    purpose: str

    @field_validator("purpose")
    @classmethod
    def _purpose(cls, v: str) -> str:
        return _choice(v, LIBRARY_PURPOSES, "Purpose is required", "Unknown purpose")


class SportsBookingData(BookingDataBase):
    booking_type: ClassVar[BookingType] = BookingType.sports

    facility: str
    duration: int

    @field_validator("facility")
    @classmethod
    def _facility(cls, v: str) -> str:
        return _choice(v, SPORTS_FACILITIES, "Facility selection is required", "Unknown facility")

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_not_bool(cls, v):
        return _not_bool(v, "Duration")

    @field_validator("duration")
    @classmethod
    def _duration(cls, v: int) -> int:
        cap = settings.SPORTS_MAX_DURATION_HOURS
        return _in_range(v, 1, cap, "At least 1 hour required", f"Maximum {cap} hours allowed")


class MovieBookingData(BookingDataBase):
    booking_type: ClassVar[BookingType] = BookingType.movie

    movie: str
    seats: int
    screen: str

    @field_validator("movie")
    @classmethod
    def _movie(cls, v: str) -> str:
        return _choice(v, MOVIES, "Movie selection is required", "Unknown movie")

    @field_validator("seats", mode="before")
    @classmethod
    def _seats_not_bool(cls, v):
        return _not_bool(v, "Seats")

    @field_validator("seats")
    @classmethod
    def _seats(cls, v: int) -> int:
        return _in_range(v, 1, 10, "At least 1 seat required", "Maximum 10 seats allowed")

    @field_validator("screen", mode="before")
    @classmethod
    def _screen_as_text(cls, v):
        # screens are numbered; forms send either 2 or "2"
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    @field_validator("screen")
    @classmethod
    def _screen(cls, v: str) -> str:
        return _choice(v, MOVIE_SCREENS, "Screen selection is required", "Unknown screen")


class EventBookingData(BookingDataBase):
    booking_type: ClassVar[BookingType] = BookingType.event

    event: str
    tickets: int
    category: str

    @field_validator("event")
    @classmethod
    def _event(cls, v: str) -> str:
        return _choice(v, EVENTS, "Event selection is required", "Unknown event")

    @field_validator("tickets", mode="before")
    @classmethod
    def _tickets_not_bool(cls, v):
        return _not_bool(v, "Tickets")

    @field_validator("tickets")
    @classmethod
    def _tickets(cls, v: int) -> int:
        cap = settings.EVENT_MAX_TICKETS
        return _in_range(v, 1, cap, "At least 1 ticket required", f"Maximum {cap} tickets allowed")

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        return _choice(v, EVENT_CATEGORIES, "Ticket category is required", "Unknown ticket category")


BOOKING_DATA_MODELS: dict[BookingType, type[BookingDataBase]] = {
    m.booking_type: m
    for m in (MuseumBookingData, LibraryBookingData, SportsBookingData, MovieBookingData, EventBookingData)
}
