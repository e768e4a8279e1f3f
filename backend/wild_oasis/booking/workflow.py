from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from wild_oasis.booking.errors import (
    BookingError,
    FieldLockedError,
    GatewayError,
    InvalidTransitionError,
    ResolutionError,
    SubmissionUnauthorized,
    UnknownGuest,
)
from wild_oasis.booking.gateway import Authorizer, SubmissionGateway
from wild_oasis.booking.models import (
    BookingRecord,
    BookingStatus,
    Confirmation,
    Quote,
    ReferenceSnapshot,
    StayRequest,
)
from wild_oasis.booking.quote import compute_quote, reprice_extras
from wild_oasis.booking.rules import validate

logger = logging.getLogger(__name__)


class BookingPhase(Enum):
    DRAFT = "draft"
    QUOTED = "quoted"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


STAY_FIELDS = frozenset(
    {"start_date", "end_date", "num_guests", "cabin_id", "guest_id", "wants_breakfast"}
)
DESK_FIELDS = frozenset({"is_paid", "status", "observations"})

EDITABLE_FIELDS: dict[BookingPhase, frozenset[str]] = {
    BookingPhase.DRAFT: STAY_FIELDS | DESK_FIELDS,
    BookingPhase.QUOTED: DESK_FIELDS,
    BookingPhase.FAILED: DESK_FIELDS,
    BookingPhase.SUBMITTING: frozenset(),
    BookingPhase.CONFIRMED: frozenset(),
}

TRANSITIONS: dict[BookingPhase, frozenset[BookingPhase]] = {
    BookingPhase.DRAFT: frozenset({BookingPhase.QUOTED}),
    BookingPhase.QUOTED: frozenset({BookingPhase.DRAFT, BookingPhase.SUBMITTING}),
    BookingPhase.SUBMITTING: frozenset(
        {BookingPhase.CONFIRMED, BookingPhase.FAILED, BookingPhase.QUOTED}
    ),
    BookingPhase.FAILED: frozenset(
        {BookingPhase.QUOTED, BookingPhase.SUBMITTING, BookingPhase.DRAFT}
    ),
    BookingPhase.CONFIRMED: frozenset(),
}


@dataclass
class WorkflowOutcome:
    phase: BookingPhase
    accepted: bool
    reason: str | None = None
    quote: Quote | None = None
    confirmation: Confirmation | None = None
    error: BookingError | None = None


def canonical_timestamp(value: date) -> str:
    return datetime.combine(value, time.min, tzinfo=timezone.utc).isoformat()


class BookingWorkflow:
    """Quote-and-confirm flow of one booking-creation session.

    Draft collects the stay, ``submit`` validates and prices it into Quoted,
    ``confirm`` sends the finished record through the gateway. Stay fields
    are frozen from Quoted on; ``edit_entries`` is the only way back and it
    drops the quote.
    """

    def __init__(
        self,
        snapshot: ReferenceSnapshot,
        *,
        session_id: str = "",
        request: StayRequest | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.session_id = session_id
        self.request = request or StayRequest()
        self.phase = BookingPhase.DRAFT
        self.quote: Quote | None = None
        self.estimate: Quote | None = None
        self.is_paid = False
        self.status = BookingStatus.UNCONFIRMED
        self.last_error: str | None = None
        self.confirmation: Confirmation | None = None
        self._resume_phase: BookingPhase | None = None

    @property
    def locked_fields(self) -> frozenset[str]:
        return (STAY_FIELDS | DESK_FIELDS) - EDITABLE_FIELDS[self.phase]

    def _move(self, target: BookingPhase) -> None:
        if target not in TRANSITIONS[self.phase]:
            raise InvalidTransitionError(f"move to {target.value}", self.phase.value)
        logger.info(
            "BOOKING_WORKFLOW session=%s %s -> %s",
            self.session_id,
            self.phase.value,
            target.value,
        )
        self.phase = target

    # ---- draft -----------------------------------------------------------

    def update(self, **changes: Any) -> None:
        unknown = sorted(set(changes) - STAY_FIELDS - DESK_FIELDS)
        if unknown:
            raise ValueError(f"Unknown booking fields: {', '.join(unknown)}")
        locked = sorted(set(changes) & self.locked_fields)
        if locked:
            raise FieldLockedError(locked, self.phase.value)
        if "num_guests" in changes:
            num_guests = changes["num_guests"]
            if isinstance(num_guests, bool) or not isinstance(num_guests, int) or num_guests < 1:
                raise ValueError(f"Number of guests must be at least 1, got {num_guests!r}")

        for name, value in changes.items():
            if name == "is_paid":
                self.is_paid = bool(value)
            elif name == "status":
                self.status = BookingStatus(value)
            else:
                setattr(self.request, name, value)

        if self.phase == BookingPhase.DRAFT and self.estimate is not None:
            if set(changes) <= {"wants_breakfast"} | DESK_FIELDS:
                self.estimate = reprice_extras(
                    self.estimate, self.request, self.snapshot.settings
                )
            else:
                self.estimate = None

    def preview(self) -> WorkflowOutcome:
        """Prices the current draft without leaving Draft."""
        if self.phase != BookingPhase.DRAFT:
            return WorkflowOutcome(self.phase, accepted=True, quote=self.quote)
        try:
            quote = self._price()
        except BookingError as exc:
            self.estimate = None
            return WorkflowOutcome(self.phase, accepted=False, reason=exc.reason, error=exc)
        self.estimate = quote
        return WorkflowOutcome(self.phase, accepted=True, quote=quote)

    def submit(self) -> WorkflowOutcome:
        if self.phase != BookingPhase.DRAFT:
            raise InvalidTransitionError("calculate the price", self.phase.value)
        try:
            quote = self._price()
        except BookingError as exc:
            logger.info(
                "BOOKING_WORKFLOW session=%s rejected: %s", self.session_id, exc.reason
            )
            return WorkflowOutcome(self.phase, accepted=False, reason=exc.reason, error=exc)

        self.quote = quote
        self.estimate = None
        self._move(BookingPhase.QUOTED)
        return WorkflowOutcome(self.phase, accepted=True, quote=quote)

    def _price(self) -> Quote:
        settings = self.snapshot.settings
        rejection = validate(self.request, settings)
        if rejection is not None:
            raise rejection
        quote = compute_quote(self.request, self.snapshot.cabins, settings)
        if self.request.guest_id not in self.snapshot.guests:
            raise UnknownGuest(self.request.guest_id)
        return quote

    # ---- quoted ----------------------------------------------------------

    def edit_entries(self) -> None:
        if self.phase not in (BookingPhase.QUOTED, BookingPhase.FAILED):
            raise InvalidTransitionError("edit entries", self.phase.value)
        self._move(BookingPhase.DRAFT)
        self.quote = None
        self.last_error = None

    def dismiss_failure(self) -> None:
        if self.phase != BookingPhase.FAILED:
            raise InvalidTransitionError("dismiss a failure", self.phase.value)
        self._move(BookingPhase.QUOTED)
        self.last_error = None

    def build_record(self) -> BookingRecord:
        quote = self.quote
        request = self.request
        if quote is None or request.start_date is None or request.end_date is None:
            raise InvalidTransitionError("build a booking", self.phase.value)
        if request.guest_id not in self.snapshot.guests:
            raise UnknownGuest(request.guest_id)
        return BookingRecord(
            start_date=canonical_timestamp(request.start_date),
            end_date=canonical_timestamp(request.end_date),
            num_nights=quote.num_nights,
            num_guests=int(request.num_guests),
            cabin_id=int(request.cabin_id),
            guest_id=int(request.guest_id),
            has_breakfast=request.wants_breakfast,
            observations=request.observations,
            cabin_price=quote.cabin_charge,
            extras_price=quote.extras_charge,
            total_price=quote.total_charge,
            is_paid=self.is_paid,
            status=self.status,
        )

    async def confirm(
        self, gateway: SubmissionGateway, authorizer: Authorizer | None = None
    ) -> WorkflowOutcome:
        if self.phase == BookingPhase.SUBMITTING:
            logger.info(
                "BOOKING_WORKFLOW session=%s confirm ignored, submission in flight",
                self.session_id,
            )
            return WorkflowOutcome(
                self.phase, accepted=False, reason="Booking is already being submitted"
            )
        if self.phase not in (BookingPhase.QUOTED, BookingPhase.FAILED):
            raise InvalidTransitionError("confirm the booking", self.phase.value)

        try:
            record = self.build_record()
        except ResolutionError as exc:
            return WorkflowOutcome(self.phase, accepted=False, reason=exc.reason, error=exc)

        self._resume_phase = self.phase
        self._move(BookingPhase.SUBMITTING)
        try:
            if authorizer is not None and not await authorizer.is_authorized():
                raise SubmissionUnauthorized()
            confirmation = await gateway.submit(record)
        except GatewayError as exc:
            logger.warning(
                "BOOKING_WORKFLOW session=%s gateway error: %s", self.session_id, exc
            )
            self.last_error = exc.reason
            self._resume_phase = None
            self._move(BookingPhase.FAILED)
            return WorkflowOutcome(self.phase, accepted=False, reason=exc.reason, error=exc)
        except (asyncio.CancelledError, Exception):
            logger.warning(
                "BOOKING_WORKFLOW session=%s submission interrupted, restoring %s",
                self.session_id,
                self._resume_phase.value,
            )
            self._move(self._resume_phase)
            self._resume_phase = None
            raise

        self._resume_phase = None
        self.last_error = None
        self.confirmation = confirmation
        self._move(BookingPhase.CONFIRMED)
        return WorkflowOutcome(
            self.phase, accepted=True, quote=self.quote, confirmation=confirmation
        )

    # ---- persistence -----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        phase = self._resume_phase if self.phase == BookingPhase.SUBMITTING else self.phase
        confirmation = self.confirmation
        return {
            "session_id": self.session_id,
            "phase": phase.value,
            "request": self.request.to_dict(),
            "quote": self.quote.to_dict() if self.quote else None,
            "estimate": self.estimate.to_dict() if self.estimate else None,
            "is_paid": self.is_paid,
            "status": self.status.value,
            "last_error": self.last_error,
            "confirmation": (
                {
                    "booking_id": confirmation.booking_id,
                    "created_at": confirmation.created_at,
                }
                if confirmation
                else None
            ),
            "snapshot": self.snapshot.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> BookingWorkflow:
        workflow = cls(
            ReferenceSnapshot.from_dict(raw["snapshot"]),
            session_id=str(raw.get("session_id") or ""),
            request=StayRequest.from_dict(raw.get("request")),
        )
        phase = BookingPhase(raw.get("phase") or BookingPhase.DRAFT.value)
        if phase == BookingPhase.SUBMITTING:
            phase = BookingPhase.QUOTED
        workflow.quote = Quote.from_dict(raw.get("quote"))
        if phase != BookingPhase.DRAFT and workflow.quote is None:
            logger.warning(
                "Restored workflow %s in phase %s without a quote, resetting to draft",
                workflow.session_id,
                phase.value,
            )
            phase = BookingPhase.DRAFT
        workflow.phase = phase
        if phase == BookingPhase.DRAFT:
            workflow.estimate = Quote.from_dict(raw.get("estimate"))
        workflow.is_paid = bool(raw.get("is_paid"))
        workflow.status = BookingStatus(raw.get("status") or BookingStatus.UNCONFIRMED.value)
        workflow.last_error = raw.get("last_error")
        confirmation = raw.get("confirmation")
        if isinstance(confirmation, dict):
            workflow.confirmation = Confirmation(
                booking_id=confirmation.get("booking_id"),
                created_at=confirmation.get("created_at"),
            )
        return workflow


__all__ = [
    "BookingPhase",
    "BookingWorkflow",
    "WorkflowOutcome",
    "STAY_FIELDS",
    "DESK_FIELDS",
    "canonical_timestamp",
]
