from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from _helpers import make_snapshot

from wild_oasis.booking.errors import UnknownCabin
from wild_oasis.booking.models import CabinRef, StayRequest
from wild_oasis.booking.quote import compute_quote, reprice_extras, resolve_cabin


def _request(**overrides) -> StayRequest:
    values = dict(
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 4),
        num_guests=2,
        cabin_id=1,
        guest_id=7,
        wants_breakfast=False,
    )
    values.update(overrides)
    return StayRequest(**values)


def test_cabin_charge_without_breakfast():
    snapshot = make_snapshot()

    quote = compute_quote(_request(), snapshot.cabins, snapshot.settings)

    assert quote.num_nights == 3
    assert quote.cabin_charge == Decimal("270")
    assert quote.extras_charge == Decimal("0")
    assert quote.total_charge == Decimal("270")


def test_breakfast_is_charged_per_guest_per_night():
    snapshot = make_snapshot(breakfast_price=Decimal("15"))

    quote = compute_quote(_request(wants_breakfast=True), snapshot.cabins, snapshot.settings)

    assert quote.extras_charge == Decimal("90")
    assert quote.total_charge == Decimal("360")


def test_quote_is_deterministic():
    snapshot = make_snapshot()
    request = _request(wants_breakfast=True)

    first = compute_quote(request, snapshot.cabins, snapshot.settings)
    second = compute_quote(request, snapshot.cabins, snapshot.settings)

    assert first == second


def test_unknown_cabin_is_a_resolution_error():
    snapshot = make_snapshot()

    with pytest.raises(UnknownCabin) as excinfo:
        compute_quote(_request(cabin_id=99), snapshot.cabins, snapshot.settings)

    assert excinfo.value.cabin_id == 99


def test_resolve_cabin_without_id():
    with pytest.raises(UnknownCabin):
        resolve_cabin(make_snapshot().cabins, None)


def test_discount_above_rate_never_goes_negative():
    snapshot = make_snapshot()
    cabins = {3: CabinRef(id=3, nightly_rate=Decimal("50"), discount=Decimal("80"))}

    quote = compute_quote(_request(cabin_id=3), cabins, snapshot.settings)

    assert quote.cabin_charge == Decimal("0")


def test_toggling_breakfast_off_zeroes_extras_from_existing_nights():
    snapshot = make_snapshot()
    request = _request(wants_breakfast=True)
    quote = compute_quote(request, snapshot.cabins, snapshot.settings)
    assert quote.extras_charge == Decimal("90")

    # dates are dropped to prove nights come from the quote itself
    toggled = replace(request, wants_breakfast=False, start_date=None, end_date=None)
    repriced = reprice_extras(quote, toggled, snapshot.settings)

    assert repriced.num_nights == 3
    assert repriced.extras_charge == Decimal("0")
    assert repriced.total_charge == quote.cabin_charge
