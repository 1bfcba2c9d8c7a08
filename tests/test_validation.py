from datetime import date

import pytest

from venuebook.core.config import settings
from venuebook.core.errors import BookingValidationError
from venuebook.schemas.booking_data import MovieBookingData, BookingType
from venuebook.services.validation_service import normalize_booking_data, validate_booking_data

TODAY = date(2030, 1, 10)

COMMON = {
    "name": "  Jane Doe ",
    "email": " jane@x.com ",
    "phone": "+91 98765-43210",
    "date": "2030-01-11",
    "time": "9:30",
}

VALID = {
    "museum": {**COMMON, "state": "delhi", "museum": "national", "visitors": "3"},
    "library": {**COMMON, "purpose": "study"},
    "sports": {**COMMON, "facility": "tennis", "duration": 2},
    "movie": {**COMMON, "movie": "action", "seats": "2", "screen": "2"},
    "event": {**COMMON, "event": "concert", "tickets": 4, "category": "vip"},
}

EXPECTED_KEYS = {
    "museum": {"state", "museum", "visitors"},
    "library": {"purpose"},
    "sports": {"facility", "duration"},
    "movie": {"movie", "seats", "screen"},
    "event": {"event", "tickets", "category"},
}


def errors_for(booking_type, raw):
    with pytest.raises(BookingValidationError) as exc:
        validate_booking_data(booking_type, raw, today=TODAY)
    return {e.field: e.message for e in exc.value.errors}


@pytest.mark.parametrize("booking_type", list(VALID))
def test_valid_input_has_exactly_the_required_keys(booking_type):
    data = normalize_booking_data(booking_type, {**VALID[booking_type], "extra": "dropped"}, today=TODAY)
    assert set(data) == {"name", "email", "phone", "date", "time"} | EXPECTED_KEYS[booking_type]


def test_strings_trimmed_and_numbers_coerced():
    data = normalize_booking_data("museum", VALID["museum"], today=TODAY)
    assert data["name"] == "Jane Doe"
    assert data["email"] == "jane@x.com"
    assert data["visitors"] == 3
    assert data["time"] == "09:30"
    assert data["date"] == "2030-01-11"


def test_typed_record_for_movie():
    record = validate_booking_data("MOVIE", VALID["movie"], today=TODAY)
    assert isinstance(record, MovieBookingData)
    assert record.booking_type is BookingType.movie
    assert record.seats == 2


def test_screen_accepts_number():
    data = normalize_booking_data("movie", {**VALID["movie"], "screen": 3}, today=TODAY)
    assert data["screen"] == "3"


@pytest.mark.parametrize("visitors", [0, 51, "0", "51"])
def test_visitor_range(visitors):
    errs = errors_for("museum", {**VALID["museum"], "visitors": visitors})
    assert list(errs) == ["visitors"]


def test_visitor_bounds_accepted():
    for v in (1, 50):
        assert normalize_booking_data("museum", {**VALID["museum"], "visitors": v}, today=TODAY)["visitors"] == v


def test_all_violations_collected():
    errs = errors_for("event", {"name": "J", "email": "nope", "phone": "12", "date": "2030-01-09",
                                "time": "", "event": "", "tickets": 25, "category": "gold"})
    assert errs == {
        "name": "Name must be at least 2 characters",
        "email": "Invalid email address",
        "phone": "Invalid phone number format",
        "date": "Date must be today or in the future",
        "time": "Time is required",
        "event": "Event selection is required",
        "tickets": "Maximum 10 tickets allowed",
        "category": "Unknown ticket category",
    }


def test_missing_fields_are_reported():
    errs = errors_for("library", {})
    assert set(errs) == {"name", "email", "phone", "date", "time", "purpose"}
    assert errs["purpose"] == "Purpose is required"


def test_non_integer_count_rejected():
    errs = errors_for("movie", {**VALID["movie"], "seats": "2.5"})
    assert errs == {"seats": "Seats must be a whole number"}


def test_today_is_allowed():
    assert normalize_booking_data("library", {**VALID["library"], "date": "2030-01-10"}, today=TODAY)


def test_invalid_time_format():
    assert errors_for("library", {**VALID["library"], "time": "25:00"}) == {"time": "Invalid time format"}


def test_long_name_and_email():
    errs = errors_for("library", {**VALID["library"], "name": "x" * 101, "email": "a" * 250 + "@x.com"})
    assert errs == {"name": "Name too long", "email": "Email too long"}


def test_museum_must_belong_to_state():
    errs = errors_for("museum", {**VALID["museum"], "state": "karnataka", "museum": "national"})
    assert errs == {"museum": "Museum is not available in the selected state"}


def test_unknown_state_still_checks_museum():
    errs = errors_for("museum", {**VALID["museum"], "state": "atlantis", "museum": "moon"})
    assert errs == {"state": "Unknown state", "museum": "Unknown museum"}


def test_sports_duration_cap_follows_settings(monkeypatch):
    assert errors_for("sports", {**VALID["sports"], "duration": 5}) == {"duration": "Maximum 4 hours allowed"}
    monkeypatch.setattr(settings, "SPORTS_MAX_DURATION_HOURS", 8)
    assert normalize_booking_data("sports", {**VALID["sports"], "duration": 5}, today=TODAY)["duration"] == 5


def test_event_tickets_over_both_observed_caps(monkeypatch):
    monkeypatch.setattr(settings, "EVENT_MAX_TICKETS", 20)
    assert errors_for("event", {**VALID["event"], "tickets": 25}) == {"tickets": "Maximum 20 tickets allowed"}


def test_unknown_booking_type():
    errs = errors_for("concert-hall", VALID["event"])
    assert errs == {"bookingType": "Unknown booking type"}


def test_starts_at_combines_date_and_time():
    record = validate_booking_data("library", VALID["library"], today=TODAY)
    assert record.starts_at("UTC").isoformat() == "2030-01-11T09:30:00+00:00"
    assert record.starts_at("Asia/Kolkata").isoformat() == "2030-01-11T04:00:00+00:00"


@pytest.mark.parametrize("booking_type,field,label", [
    ("museum", "visitors", "Visitors"),
    ("sports", "duration", "Duration"),
    ("movie", "seats", "Seats"),
    ("event", "tickets", "Tickets"),
])
@pytest.mark.parametrize("flag", [True, False])
def test_booleans_are_not_counts(booking_type, field, label, flag):
    errs = errors_for(booking_type, {**VALID[booking_type], field: flag})
    assert errs == {field: f"{label} must be a whole number"}


@pytest.mark.parametrize("booking_type,field", [
    ("museum", "visitors"), ("sports", "duration"), ("movie", "seats"), ("event", "tickets"),
])
def test_count_strings_still_coerced(booking_type, field):
    data = normalize_booking_data(booking_type, {**VALID[booking_type], field: "2"}, today=TODAY)
    assert data[field] == 2
