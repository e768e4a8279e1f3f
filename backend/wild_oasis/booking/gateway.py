from __future__ import annotations

import asyncio
import logging

from wild_oasis.booking.models import (
    BookingRecord,
    BookingSettings,
    CabinRef,
    Confirmation,
    GuestRef,
    ReferenceSnapshot,
)

logger = logging.getLogger(__name__)


class ReferenceDataProvider:
    async def fetch_cabins(self) -> list[CabinRef]:
        raise NotImplementedError

    async def fetch_guests(self) -> list[GuestRef]:
        raise NotImplementedError

    async def fetch_settings(self) -> BookingSettings:
        raise NotImplementedError


class SubmissionGateway:
    async def submit(self, record: BookingRecord) -> Confirmation:
        """Persists the record once; failures raise ``GatewayError``."""
        raise NotImplementedError


class Authorizer:
    async def is_authorized(self) -> bool:
        raise NotImplementedError


async def load_snapshot(provider: ReferenceDataProvider) -> ReferenceSnapshot:
    """Reads cabins, guests and settings in parallel into one snapshot."""
    cabins, guests, settings = await asyncio.gather(
        provider.fetch_cabins(),
        provider.fetch_guests(),
        provider.fetch_settings(),
    )
    logger.debug(
        "Loaded reference snapshot: cabins=%s guests=%s settings=%s",
        len(cabins),
        len(guests),
        settings,
    )
    return ReferenceSnapshot(
        cabins={cabin.id: cabin for cabin in cabins},
        guests={guest.id: guest for guest in guests},
        settings=settings,
    )


__all__ = [
    "ReferenceDataProvider",
    "SubmissionGateway",
    "Authorizer",
    "load_snapshot",
]
