from datetime import date, timedelta

import pytest

from _helpers import make_settings

from wild_oasis.booking.errors import InvalidDateRange, StayTooLong, StayTooShort, TooManyGuests
from wild_oasis.booking.models import StayRequest
from wild_oasis.booking.rules import nights_between, validate

START = date(2024, 5, 1)


def _request(nights: int, guests: int = 2) -> StayRequest:
    return StayRequest(
        start_date=START,
        end_date=START + timedelta(days=nights),
        num_guests=guests,
        cabin_id=1,
        guest_id=7,
    )


def test_nights_between_counts_whole_days():
    assert nights_between(date(2024, 5, 1), date(2024, 5, 4)) == 3
    assert nights_between(date(2024, 5, 4), date(2024, 5, 1)) == -3


@pytest.mark.parametrize("nights", [-1, -10, 0])
def test_end_before_or_on_start_is_invalid_range(nights):
    rejection = validate(_request(nights), make_settings())

    assert isinstance(rejection, InvalidDateRange)


def test_missing_dates_are_invalid_range():
    request = StayRequest(start_date=START, end_date=None, cabin_id=1, guest_id=7)

    assert isinstance(validate(request, make_settings()), InvalidDateRange)


def test_stay_shorter_than_minimum_is_rejected_with_limit():
    rejection = validate(_request(2), make_settings(min_nights=3))

    assert isinstance(rejection, StayTooShort)
    assert rejection.min_nights == 3
    assert rejection.reason == "Minimum nights per booking are 3"


def test_stay_longer_than_maximum_is_rejected_with_limit():
    rejection = validate(_request(15), make_settings(max_nights=14))

    assert isinstance(rejection, StayTooLong)
    assert rejection.max_nights == 14


def test_too_many_guests_uses_plural_message():
    rejection = validate(_request(3, guests=5), make_settings(max_guests=4))

    assert isinstance(rejection, TooManyGuests)
    assert rejection.reason == "Maximum guests are 4"


def test_single_guest_limit_uses_singular_message():
    rejection = validate(_request(3, guests=2), make_settings(max_guests=1))

    assert isinstance(rejection, TooManyGuests)
    assert rejection.reason == "Maximum guests is 1"


def test_first_failing_rule_wins():
    # too short and too many guests at once: length is checked first
    rejection = validate(_request(1, guests=20), make_settings(min_nights=2, max_guests=4))

    assert isinstance(rejection, StayTooShort)


@pytest.mark.parametrize("nights", [3, 4, 7])
@pytest.mark.parametrize("guests", [1, 4])
def test_stays_inside_limits_are_accepted(nights, guests):
    settings = make_settings(min_nights=3, max_nights=7, max_guests=4)

    assert validate(_request(nights, guests=guests), settings) is None
