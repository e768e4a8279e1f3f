from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from wild_oasis.booking.errors import InvalidDateRange, UnknownCabin
from wild_oasis.booking.models import BookingSettings, CabinRef, Quote, StayRequest
from wild_oasis.booking.rules import nights_between


def resolve_cabin(cabins: Mapping[int, CabinRef], cabin_id: int | None) -> CabinRef:
    cabin = cabins.get(cabin_id) if cabin_id is not None else None
    if cabin is None:
        raise UnknownCabin(cabin_id)
    return cabin


def extras_charge(
    num_nights: int, num_guests: int, wants_breakfast: bool, settings: BookingSettings
) -> Decimal:
    if not wants_breakfast:
        return Decimal("0")
    return num_nights * num_guests * settings.breakfast_price


def compute_quote(
    request: StayRequest,
    cabins: Mapping[int, CabinRef],
    settings: BookingSettings,
) -> Quote:
    """Prices a stay from the reference snapshot.

    Raises ``UnknownCabin`` when the cabin is not in the snapshot. Callers are
    expected to run ``rules.validate`` first; a missing date range is rejected
    here as well so a quote is never built without nights.
    """
    cabin = resolve_cabin(cabins, request.cabin_id)
    if request.start_date is None or request.end_date is None:
        raise InvalidDateRange()

    num_nights = nights_between(request.start_date, request.end_date)
    cabin_charge = cabin.discounted_rate * num_nights
    return Quote(
        num_nights=num_nights,
        cabin_charge=cabin_charge,
        extras_charge=extras_charge(
            num_nights, request.num_guests, request.wants_breakfast, settings
        ),
    )


def reprice_extras(
    quote: Quote, request: StayRequest, settings: BookingSettings
) -> Quote:
    """Recomputes only the breakfast part, reusing the quote's nights."""
    return quote.with_extras(
        extras_charge(quote.num_nights, request.num_guests, request.wants_breakfast, settings)
    )


__all__ = ["resolve_cabin", "extras_charge", "compute_quote", "reprice_extras"]
