from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from wild_oasis.api.v1.bookings import get_booking_service
from wild_oasis.booking.service import BookingDeskService

router = APIRouter(prefix="/admin")


@router.get("/health")
async def health(service: BookingDeskService = Depends(get_booking_service)):
    """Reports whether booking sessions can be stored right now."""
    report: dict[str, Any] = await service.health()
    if not report["ok"]:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=report)
    return report
