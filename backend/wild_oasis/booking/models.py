from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class BookingStatus(Enum):
    UNCONFIRMED = "unconfirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"


@dataclass
class StayRequest:
    start_date: date | None = None
    end_date: date | None = None
    num_guests: int = 1
    cabin_id: int | None = None
    guest_id: int | None = None
    wants_breakfast: bool = False
    observations: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "num_guests": self.num_guests,
            "cabin_id": self.cabin_id,
            "guest_id": self.guest_id,
            "wants_breakfast": self.wants_breakfast,
            "observations": self.observations,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> StayRequest:
        if not isinstance(raw, dict):
            return cls()
        start = raw.get("start_date")
        end = raw.get("end_date")
        return cls(
            start_date=date.fromisoformat(start) if start else None,
            end_date=date.fromisoformat(end) if end else None,
            num_guests=int(raw.get("num_guests") or 1),
            cabin_id=raw.get("cabin_id"),
            guest_id=raw.get("guest_id"),
            wants_breakfast=bool(raw.get("wants_breakfast")),
            observations=str(raw.get("observations") or ""),
        )


@dataclass(frozen=True)
class CabinRef:
    id: int
    nightly_rate: Decimal
    discount: Decimal = Decimal("0")
    name: str = ""

    @property
    def discounted_rate(self) -> Decimal:
        return max(self.nightly_rate - self.discount, Decimal("0"))


@dataclass(frozen=True)
class GuestRef:
    id: int
    full_name: str
    email: str | None = None
    nationality: str | None = None


@dataclass(frozen=True)
class BookingSettings:
    min_nights: int
    max_nights: int
    max_guests: int
    breakfast_price: Decimal


@dataclass(frozen=True)
class Quote:
    num_nights: int
    cabin_charge: Decimal
    extras_charge: Decimal = Decimal("0")

    @property
    def total_charge(self) -> Decimal:
        return self.cabin_charge + self.extras_charge

    def with_extras(self, extras_charge: Decimal) -> Quote:
        return replace(self, extras_charge=extras_charge)

    def to_dict(self) -> dict[str, Any]:
        return {
            "num_nights": self.num_nights,
            "cabin_charge": str(self.cabin_charge),
            "extras_charge": str(self.extras_charge),
            "total_charge": str(self.total_charge),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> Quote | None:
        if not isinstance(raw, dict):
            return None
        return cls(
            num_nights=int(raw["num_nights"]),
            cabin_charge=Decimal(str(raw["cabin_charge"])),
            extras_charge=Decimal(str(raw.get("extras_charge") or "0")),
        )


@dataclass(frozen=True)
class BookingRecord:
    start_date: str
    end_date: str
    num_nights: int
    num_guests: int
    cabin_id: int
    guest_id: int
    has_breakfast: bool
    observations: str
    cabin_price: Decimal
    extras_price: Decimal
    total_price: Decimal
    is_paid: bool = False
    status: BookingStatus = BookingStatus.UNCONFIRMED

    def as_row(self) -> dict[str, Any]:
        """Column layout of the ``bookings`` table."""
        return {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "numNights": self.num_nights,
            "numGuests": self.num_guests,
            "cabinId": self.cabin_id,
            "guestId": self.guest_id,
            "hasBreakfast": self.has_breakfast,
            "observations": self.observations,
            "cabinPrice": float(self.cabin_price),
            "extrasPrice": float(self.extras_price),
            "totalPrice": float(self.total_price),
            "isPaid": self.is_paid,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Confirmation:
    booking_id: int | None
    created_at: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ReferenceSnapshot:
    cabins: dict[int, CabinRef]
    guests: dict[int, GuestRef]
    settings: BookingSettings

    def to_dict(self) -> dict[str, Any]:
        return {
            "cabins": [
                {
                    "id": cabin.id,
                    "name": cabin.name,
                    "nightly_rate": str(cabin.nightly_rate),
                    "discount": str(cabin.discount),
                }
                for cabin in self.cabins.values()
            ],
            "guests": [asdict(guest) for guest in self.guests.values()],
            "settings": {
                key: str(value) if isinstance(value, Decimal) else value
                for key, value in asdict(self.settings).items()
            },
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ReferenceSnapshot:
        cabins = [
            CabinRef(
                id=int(item["id"]),
                name=str(item.get("name") or ""),
                nightly_rate=Decimal(str(item["nightly_rate"])),
                discount=Decimal(str(item.get("discount") or "0")),
            )
            for item in raw.get("cabins") or []
        ]
        guests = [
            GuestRef(
                id=int(item["id"]),
                full_name=str(item.get("full_name") or ""),
                email=item.get("email"),
                nationality=item.get("nationality"),
            )
            for item in raw.get("guests") or []
        ]
        settings = raw["settings"]
        return cls(
            cabins={cabin.id: cabin for cabin in cabins},
            guests={guest.id: guest for guest in guests},
            settings=BookingSettings(
                min_nights=int(settings["min_nights"]),
                max_nights=int(settings["max_nights"]),
                max_guests=int(settings["max_guests"]),
                breakfast_price=Decimal(str(settings["breakfast_price"])),
            ),
        )


__all__ = [
    "BookingStatus",
    "StayRequest",
    "CabinRef",
    "GuestRef",
    "BookingSettings",
    "Quote",
    "BookingRecord",
    "Confirmation",
    "ReferenceSnapshot",
]
