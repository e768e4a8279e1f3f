"""Coercion of staff form input into workflow values.

Form posts carry numbers, ids and checkboxes as strings; pydantic turns them
into the typed values the workflow expects before anything reaches it.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wild_oasis.booking.models import BookingStatus, StayRequest


class StayForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    num_guests: int | None = Field(default=None, alias="numGuests", ge=1)
    cabin_id: int | None = Field(default=None, alias="cabinId")
    guest_id: int | None = Field(default=None, alias="guestId")
    wants_breakfast: bool | None = Field(default=None, alias="hasBreakfast")
    observations: str | None = None
    is_paid: bool | None = Field(default=None, alias="isPaid")
    status: BookingStatus | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        # date inputs sometimes arrive as full ISO timestamps
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @field_validator("num_guests", "cabin_id", "guest_id", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def to_request(self) -> StayRequest:
        return StayRequest(
            start_date=self.start_date,
            end_date=self.end_date,
            num_guests=self.num_guests or 1,
            cabin_id=self.cabin_id,
            guest_id=self.guest_id,
            wants_breakfast=bool(self.wants_breakfast),
            observations=self.observations or "",
        )


__all__ = ["StayForm"]
