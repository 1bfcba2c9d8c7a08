import datetime as dt

from pydantic import ValidationError

from venuebook.core.errors import BookingValidationError, FieldError
from venuebook.schemas.booking_data import BOOKING_DATA_MODELS, BookingDataBase, BookingType

# pydantic's own error types that we reword; everything else comes from our validators
_GENERIC_MESSAGES = {
    "missing": "{label} is required",
    "string_type": "{label} must be text",
    "int_type": "{label} must be a whole number",
    "int_parsing": "{label} must be a whole number",
    "int_from_float": "{label} must be a whole number",
    "date_type": "Invalid date",
    "date_parsing": "Invalid date",
    "date_from_datetime_parsing": "Invalid date",
    "date_from_datetime_inexact": "Invalid date",
}


def parse_booking_type(value) -> BookingType:
    try:
        return BookingType(str(value or "").strip().lower())
    except ValueError:
        raise BookingValidationError([FieldError("bookingType", "Unknown booking type")])


def _to_field_errors(exc: ValidationError) -> list[FieldError]:
    out = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "__all__"
        template = _GENERIC_MESSAGES.get(err["type"])
        if template:
            message = template.format(label=field.capitalize())
        else:
            message = err["msg"]
        out.append(FieldError(field, message))
    return out


def validate_booking_data(booking_type, raw: dict | None, today: dt.date | None = None) -> BookingDataBase:
    """Validate a raw field bag for the given booking type.

    Returns the typed record (strings trimmed, numeric strings coerced to int,
    unknown keys dropped) or raises BookingValidationError listing every
    field that failed.
    """
    bt = parse_booking_type(booking_type)
    model = BOOKING_DATA_MODELS[bt]
    context = {"today": today} if today else None
    try:
        return model.model_validate(raw or {}, context=context)
    except ValidationError as e:
        raise BookingValidationError(_to_field_errors(e)) from None


def normalize_booking_data(booking_type, raw: dict | None, today: dt.date | None = None) -> dict:
    """JSON-ready form of validate_booking_data, as stored in bookings.booking_data."""
    return validate_booking_data(booking_type, raw, today=today).model_dump(mode="json")
