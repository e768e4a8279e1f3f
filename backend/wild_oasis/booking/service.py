from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import HTTPException, status

from wild_oasis.booking.errors import (
    FieldLockedError,
    InvalidTransitionError,
    ReferenceDataError,
)
from wild_oasis.booking.forms import StayForm
from wild_oasis.booking.gateway import (
    Authorizer,
    ReferenceDataProvider,
    SubmissionGateway,
    load_snapshot,
)
from wild_oasis.booking.workflow import BookingPhase, BookingWorkflow, WorkflowOutcome
from wild_oasis.session.store import WorkflowStore

logger = logging.getLogger(__name__)


class BookingDeskService:
    """Runs booking workflows on behalf of HTTP sessions."""

    def __init__(
        self,
        provider: ReferenceDataProvider,
        gateway: SubmissionGateway,
        store: WorkflowStore,
    ) -> None:
        self._provider = provider
        self._gateway = gateway
        self._store = store
        self._in_flight: dict[str, BookingWorkflow] = {}

    async def open_session(self, form: StayForm | None = None) -> BookingWorkflow:
        try:
            snapshot = await load_snapshot(self._provider)
        except ReferenceDataError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
        workflow = BookingWorkflow(snapshot, session_id=uuid.uuid4().hex)
        if form is not None:
            self._apply(workflow, form)
        await self._store.set(workflow)
        logger.info("Opened booking session %s", workflow.session_id)
        return workflow

    async def get(self, session_id: str) -> BookingWorkflow:
        workflow = self._in_flight.get(session_id) or await self._store.get(session_id)
        if workflow is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking session not found")
        return workflow

    async def update(self, session_id: str, form: StayForm) -> BookingWorkflow:
        workflow = await self.get(session_id)
        self._apply(workflow, form)
        await self._store.set(workflow)
        return workflow

    async def preview(self, session_id: str) -> tuple[BookingWorkflow, WorkflowOutcome]:
        workflow = await self.get(session_id)
        outcome = workflow.preview()
        await self._store.set(workflow)
        return workflow, outcome

    async def quote(self, session_id: str) -> tuple[BookingWorkflow, WorkflowOutcome]:
        workflow = await self.get(session_id)
        try:
            outcome = workflow.submit()
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        await self._store.set(workflow)
        return workflow, outcome

    async def edit(self, session_id: str) -> BookingWorkflow:
        workflow = await self.get(session_id)
        try:
            workflow.edit_entries()
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        await self._store.set(workflow)
        return workflow

    async def confirm(
        self, session_id: str, authorizer: Authorizer
    ) -> tuple[BookingWorkflow, WorkflowOutcome]:
        workflow = await self.get(session_id)
        if workflow.phase == BookingPhase.SUBMITTING:
            return workflow, await workflow.confirm(self._gateway, authorizer)

        self._in_flight[session_id] = workflow
        try:
            outcome = await workflow.confirm(self._gateway, authorizer)
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        finally:
            self._in_flight.pop(session_id, None)
            await self._store.set(workflow)
        return workflow, outcome

    async def health(self) -> dict[str, Any]:
        store_ok = await self._store.ping()
        if not store_ok:
            logger.warning("Booking session store is unreachable")
        return {
            "ok": store_ok,
            "store": type(self._store).__name__,
            "submissions_in_flight": len(self._in_flight),
        }

    async def discard(self, session_id: str) -> None:
        if session_id in self._in_flight:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail="Booking is being submitted"
            )
        await self._store.delete(session_id)

    @staticmethod
    def _apply(workflow: BookingWorkflow, form: StayForm) -> None:
        changes: dict[str, Any] = form.changes()
        if not changes:
            return
        try:
            workflow.update(**changes)
        except FieldLockedError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


__all__ = ["BookingDeskService"]
