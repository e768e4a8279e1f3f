from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from wild_oasis.booking.errors import GatewayError, ReferenceDataError
from wild_oasis.booking.gateway import Authorizer, ReferenceDataProvider, SubmissionGateway
from wild_oasis.booking.models import (
    BookingRecord,
    BookingSettings,
    CabinRef,
    Confirmation,
    GuestRef,
)
from wild_oasis.core.config import get_settings


class SupabaseError(RuntimeError):
    """Base error talking to the Supabase REST API."""


class SupabaseAuthenticationError(SupabaseError, ReferenceDataError):
    """Supabase is not configured or rejected the credentials."""


class SupabaseReadError(SupabaseError, ReferenceDataError):
    """Reference data could not be read."""


class SupabaseGatewayError(GatewayError):
    """The bookings table rejected the insert."""


class SupabaseService(ReferenceDataProvider, SubmissionGateway):
    def __init__(
        self,
        *,
        rest_url: str | None = None,
        auth_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        read_attempts: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._rest_url = (rest_url or settings.rest_url).rstrip("/")
        self._auth_url = (auth_url or settings.auth_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.supabase_key
        self._read_attempts = read_attempts or settings.supabase_read_attempts
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.supabase_timeout)

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def close(self) -> None:
        await self._client.aclose()

    # ---- reference data ---------------------------------------------------

    async def fetch_cabins(self) -> list[CabinRef]:
        rows = await self._read("cabins", params={"select": "*", "order": "id.asc"})
        cabins: list[CabinRef] = []
        for row in rows:
            cabin = self._to_cabin(row)
            if cabin is not None:
                cabins.append(cabin)
        return cabins

    async def fetch_guests(self) -> list[GuestRef]:
        rows = await self._read("guests", params={"select": "*", "order": "fullName.asc"})
        guests: list[GuestRef] = []
        for row in rows:
            guest_id = self._to_int(row.get("id"))
            if guest_id is None:
                continue
            guests.append(
                GuestRef(
                    id=guest_id,
                    full_name=str(row.get("fullName") or "").strip(),
                    email=row.get("email"),
                    nationality=row.get("nationality"),
                )
            )
        return guests

    async def fetch_settings(self) -> BookingSettings:
        rows = await self._read("settings", params={"select": "*", "limit": "1"})
        if not rows:
            raise SupabaseReadError("Settings row is missing")
        row = rows[0]
        try:
            return BookingSettings(
                min_nights=int(row["minBookingLength"]),
                max_nights=int(row["maxBookingLength"]),
                max_guests=int(row["maxGuestsPerBooking"]),
                breakfast_price=self._to_decimal(row.get("breakfastPrice")) or Decimal("0"),
            )
        except (KeyError, TypeError, ValueError) as error:
            raise SupabaseReadError(f"Settings row is malformed: {row}") from error

    async def _read(self, table: str, *, params: dict[str, str]) -> list[dict[str, Any]]:
        if not self.is_configured():
            raise SupabaseAuthenticationError("Supabase is not configured")

        url = f"{self._rest_url}/{table}"
        try:
            async for attempt in AsyncRetrying(
                reraise=True,
                stop=stop_after_attempt(self._read_attempts),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
                retry=retry_if_exception_type(httpx.TransportError),
            ):
                with attempt:
                    response = await self._client.get(url, params=params, headers=self._headers())
                    if response.status_code >= 400:
                        logger.error(
                            "Supabase HTTP {status} reading {table}: {body}",
                            status=response.status_code,
                            table=table,
                            body=response.text,
                        )
                        raise SupabaseReadError(
                            f"HTTP_{response.status_code}: {response.text.strip()}"
                        )
                    return self._safe_rows(response)
        except httpx.HTTPError as error:
            logger.exception("Supabase request error reading {table}", table=table)
            raise SupabaseReadError(
                f"Failed to read {table}: {str(error) or error.__class__.__name__}"
            ) from error
        return []

    # ---- bookings ---------------------------------------------------------

    async def submit(self, record: BookingRecord) -> Confirmation:
        if not self.is_configured():
            raise SupabaseGatewayError("Supabase is not configured")

        headers = {**self._headers(), "Prefer": "return=representation"}
        try:
            response = await self._client.post(
                f"{self._rest_url}/bookings",
                json=record.as_row(),
                headers=headers,
            )
        except httpx.HTTPError as error:
            logger.exception("Supabase booking request error")
            raise SupabaseGatewayError(str(error) or error.__class__.__name__) from error

        if response.status_code >= 400:
            logger.error(
                "Supabase HTTP {status} creating booking: {body}",
                status=response.status_code,
                body=response.text,
            )
            raise SupabaseGatewayError(self._error_message(response))

        rows = self._safe_rows(response)
        created = rows[0] if rows else {}
        return Confirmation(
            booking_id=self._to_int(created.get("id")),
            created_at=created.get("created_at"),
            raw=created,
        )

    # ---- auth -------------------------------------------------------------

    async def fetch_user(self, access_token: str) -> dict[str, Any] | None:
        if not access_token:
            return None
        try:
            response = await self._client.get(
                f"{self._auth_url}/user",
                headers={"apikey": self._api_key, "Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as error:
            logger.exception("Supabase auth request error")
            raise SupabaseGatewayError(
                f"Could not verify staff access: {str(error) or error.__class__.__name__}"
            ) from error
        if response.status_code != 200:
            logger.info("Supabase rejected access token: HTTP {status}", status=response.status_code)
            return None
        rows = self._safe_rows(response)
        return rows[0] if rows else None

    # ---- helpers ----------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    @staticmethod
    def _safe_rows(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError:
            return []
        if isinstance(payload, list):
            return [row for row in payload if isinstance(row, dict)]
        if isinstance(payload, dict):
            return [payload]
        return []

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return f"HTTP_{response.status_code}: {response.text.strip()}"

    def _to_cabin(self, row: dict[str, Any]) -> CabinRef | None:
        cabin_id = self._to_int(row.get("id"))
        rate = self._to_decimal(row.get("regularPrice"))
        if cabin_id is None or rate is None:
            return None
        discount = self._to_decimal(row.get("discount")) or Decimal("0")
        return CabinRef(
            id=cabin_id,
            name=str(row.get("name") or "").strip(),
            nightly_rate=rate,
            discount=min(discount, rate),
        )

    @staticmethod
    def _to_int(value: Any) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return None


class SupabaseAuthorizer(Authorizer):
    """Allows submission while the staff access token resolves to a user."""

    def __init__(self, service: SupabaseService, access_token: str) -> None:
        self._service = service
        self._access_token = access_token

    async def is_authorized(self) -> bool:
        user = await self._service.fetch_user(self._access_token)
        return bool(user and user.get("id"))


__all__ = [
    "SupabaseService",
    "SupabaseAuthorizer",
    "SupabaseError",
    "SupabaseAuthenticationError",
    "SupabaseReadError",
    "SupabaseGatewayError",
]
