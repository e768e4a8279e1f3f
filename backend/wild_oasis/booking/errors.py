from __future__ import annotations

from typing import Any


class BookingError(RuntimeError):
    """Base error of the booking workflow."""

    @property
    def reason(self) -> str:
        return str(self)


class ValidationError(BookingError):
    """Stay parameters violate the booking rules."""


class InvalidDateRange(ValidationError):
    def __init__(self) -> None:
        super().__init__("End date must be after start date")


class StayTooShort(ValidationError):
    def __init__(self, min_nights: int) -> None:
        self.min_nights = min_nights
        super().__init__(f"Minimum nights per booking are {min_nights}")


class StayTooLong(ValidationError):
    def __init__(self, max_nights: int) -> None:
        self.max_nights = max_nights
        super().__init__(f"Maximum nights per booking are {max_nights}")


class TooManyGuests(ValidationError):
    def __init__(self, max_guests: int) -> None:
        self.max_guests = max_guests
        if max_guests == 1:
            message = "Maximum guests is 1"
        else:
            message = f"Maximum guests are {max_guests}"
        super().__init__(message)


class ResolutionError(BookingError):
    """A reference id is missing from the snapshot."""


class UnknownCabin(ResolutionError):
    def __init__(self, cabin_id: Any) -> None:
        self.cabin_id = cabin_id
        super().__init__(f"Cabin {cabin_id} does not exist")


class UnknownGuest(ResolutionError):
    def __init__(self, guest_id: Any) -> None:
        self.guest_id = guest_id
        super().__init__(f"Guest {guest_id} does not exist")


class ReferenceDataError(BookingError):
    """Cabins, guests or settings could not be loaded."""


class GatewayError(BookingError):
    """The remote store could not persist the booking."""


class SubmissionUnauthorized(GatewayError):
    def __init__(self) -> None:
        super().__init__("You are not allowed to create bookings")


class FieldLockedError(BookingError):
    def __init__(self, fields: list[str], phase: str) -> None:
        self.fields = fields
        self.phase = phase
        super().__init__(f"Fields {', '.join(fields)} can not be changed while {phase}")


class InvalidTransitionError(BookingError):
    def __init__(self, action: str, phase: str) -> None:
        self.action = action
        self.phase = phase
        super().__init__(f"Can not {action} while {phase}")


__all__ = [
    "BookingError",
    "ValidationError",
    "InvalidDateRange",
    "StayTooShort",
    "StayTooLong",
    "TooManyGuests",
    "ResolutionError",
    "UnknownCabin",
    "UnknownGuest",
    "ReferenceDataError",
    "GatewayError",
    "SubmissionUnauthorized",
    "FieldLockedError",
    "InvalidTransitionError",
]
