from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from wild_oasis.booking.forms import StayForm
from wild_oasis.booking.gateway import Authorizer
from wild_oasis.booking.models import Quote
from wild_oasis.booking.service import BookingDeskService
from wild_oasis.booking.workflow import BookingPhase, BookingWorkflow, WorkflowOutcome
from wild_oasis.core.config import get_settings
from wild_oasis.core.security import require_staff_token, staff_authorizer

router = APIRouter(prefix="/bookings/sessions", dependencies=[Depends(require_staff_token)])


def get_booking_service() -> BookingDeskService:  # pragma: no cover - overridden in main
    raise RuntimeError("Booking service dependency is not configured")


class SessionResponse(BaseModel):
    session_id: str
    phase: str
    locked_fields: list[str]
    request: dict[str, Any]
    is_paid: bool
    status: str
    quote: dict[str, Any] | None = None
    estimate: dict[str, Any] | None = None
    last_error: str | None = None
    booking_id: int | None = None
    reason: str | None = None
    options: dict[str, Any] | None = None


def _quote(quote: Quote | None) -> dict[str, Any] | None:
    return quote.to_dict() if quote else None


def _session_payload(
    workflow: BookingWorkflow,
    outcome: WorkflowOutcome | None = None,
    *,
    with_options: bool = False,
) -> dict[str, Any]:
    payload = SessionResponse(
        session_id=workflow.session_id,
        phase=workflow.phase.value,
        locked_fields=sorted(workflow.locked_fields),
        request=workflow.request.to_dict(),
        is_paid=workflow.is_paid,
        status=workflow.status.value,
        quote=_quote(workflow.quote),
        estimate=_quote(workflow.estimate),
        last_error=workflow.last_error,
        booking_id=workflow.confirmation.booking_id if workflow.confirmation else None,
        reason=outcome.reason if outcome else None,
        options=workflow.snapshot.to_dict() if with_options or get_settings().include_debug else None,
    )
    return payload.model_dump(exclude_none=True)


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_session(
    form: StayForm | None = None,
    service: BookingDeskService = Depends(get_booking_service),
) -> dict[str, Any]:
    workflow = await service.open_session(form)
    return _session_payload(workflow, with_options=True)


@router.get("/{session_id}")
async def read_session(
    session_id: str, service: BookingDeskService = Depends(get_booking_service)
) -> dict[str, Any]:
    workflow = await service.get(session_id)
    return _session_payload(workflow)


@router.patch("/{session_id}")
async def update_session(
    session_id: str,
    form: StayForm,
    service: BookingDeskService = Depends(get_booking_service),
) -> dict[str, Any]:
    workflow = await service.update(session_id, form)
    return _session_payload(workflow)


@router.post("/{session_id}/preview")
async def preview_session(
    session_id: str, service: BookingDeskService = Depends(get_booking_service)
) -> dict[str, Any]:
    workflow, outcome = await service.preview(session_id)
    return _session_payload(workflow, outcome)


@router.post("/{session_id}/quote")
async def quote_session(
    session_id: str, service: BookingDeskService = Depends(get_booking_service)
):
    workflow, outcome = await service.quote(session_id)
    payload = _session_payload(workflow, outcome)
    if not outcome.accepted:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)
    return payload


@router.post("/{session_id}/edit")
async def edit_session(
    session_id: str, service: BookingDeskService = Depends(get_booking_service)
) -> dict[str, Any]:
    workflow = await service.edit(session_id)
    return _session_payload(workflow)


@router.post("/{session_id}/confirm")
async def confirm_session(
    session_id: str,
    service: BookingDeskService = Depends(get_booking_service),
    authorizer: Authorizer = Depends(staff_authorizer),
):
    workflow, outcome = await service.confirm(session_id, authorizer)
    payload = _session_payload(workflow, outcome)
    if workflow.phase == BookingPhase.FAILED:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=payload)
    if not outcome.accepted:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=payload)
    return payload


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(
    session_id: str, service: BookingDeskService = Depends(get_booking_service)
) -> None:
    await service.get(session_id)
    await service.discard(session_id)


__all__ = ["router", "get_booking_service"]
