from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wild_oasis.api.v1 import admin, bookings
from wild_oasis.booking.service import BookingDeskService
from wild_oasis.booking.supabase_client import SupabaseAuthorizer, SupabaseService
from wild_oasis.core.config import get_settings
from wild_oasis.core.logging import setup_logging
from wild_oasis.core.security import get_authorizer_factory
from wild_oasis.session import WorkflowStore, get_workflow_store

logger = logging.getLogger(__name__)


def create_app(
    *,
    supabase: SupabaseService | None = None,
    store: WorkflowStore | None = None,
) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    supabase_service = supabase or SupabaseService()
    workflow_store = store or get_workflow_store()
    booking_service = BookingDeskService(supabase_service, supabase_service, workflow_store)

    if not supabase_service.is_configured():
        logger.warning("Supabase is not configured: SUPABASE_KEY is empty")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Booking desk started (env=%s)", settings.app_env)
        try:
            yield
        finally:
            await supabase_service.close()
            await workflow_store.close()
            logger.info("Booking desk connections closed")

    def authorizer_factory():
        return lambda token: SupabaseAuthorizer(supabase_service, token)

    app = FastAPI(title="Wild Oasis Booking Desk", lifespan=lifespan)
    app.dependency_overrides[bookings.get_booking_service] = lambda: booking_service
    app.dependency_overrides[get_authorizer_factory] = authorizer_factory

    api_prefix = settings.api_prefix
    app.include_router(bookings.router, prefix=api_prefix)
    app.include_router(admin.router, prefix=api_prefix)
    return app


__all__ = ["create_app"]
