"""Domain errors raised by the booking services.

Routes translate these into HTTP responses; storage and network errors are
left to propagate and are reported as a generic failure.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class BookingValidationError(ValueError):
    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class BookingStateError(BookingValidationError):
    """Booking is not in a state that allows the requested change."""

    def __init__(self, message: str):
        super().__init__([FieldError("status", message)])


class AuthorizationError(PermissionError):
    def __init__(self, message: str = "Forbidden", status_code: int = 403):
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(LookupError):
    pass


class DeliveryFailure(RuntimeError):
    pass
