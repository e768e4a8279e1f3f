from __future__ import annotations

from datetime import date

from wild_oasis.booking.errors import (
    InvalidDateRange,
    StayTooLong,
    StayTooShort,
    TooManyGuests,
    ValidationError,
)
from wild_oasis.booking.models import BookingSettings, StayRequest


def nights_between(start: date, end: date) -> int:
    return (end - start).days


def validate(request: StayRequest, settings: BookingSettings) -> ValidationError | None:
    """Returns the first rule the stay breaks, or ``None`` when it is bookable."""
    if request.start_date is None or request.end_date is None:
        return InvalidDateRange()

    num_nights = nights_between(request.start_date, request.end_date)
    if num_nights <= 0:
        return InvalidDateRange()
    if num_nights < settings.min_nights:
        return StayTooShort(settings.min_nights)
    if num_nights > settings.max_nights:
        return StayTooLong(settings.max_nights)
    if request.num_guests > settings.max_guests:
        return TooManyGuests(settings.max_guests)
    return None


__all__ = ["nights_between", "validate"]
