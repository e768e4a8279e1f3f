from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from _helpers import DummyGateway, DummyProvider

from wild_oasis.booking.errors import GatewayError
from wild_oasis.main import create_app
from wild_oasis.session.store import InMemoryWorkflowStore

STAFF = {"Authorization": "Bearer staff-token"}


class DummySupabase(DummyProvider, DummyGateway):
    def __init__(self) -> None:
        DummyProvider.__init__(self)
        DummyGateway.__init__(self)
        self.closed = False

    def is_configured(self) -> bool:
        return True

    async def fetch_user(self, access_token: str):
        if access_token == "staff-token":
            return {"id": "u-1"}
        return None

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def booking_api():
    supabase = DummySupabase()
    app = create_app(supabase=supabase, store=InMemoryWorkflowStore())
    with TestClient(app) as client:
        yield client, supabase
    assert supabase.closed


def _open(client, **fields) -> str:
    payload = {
        "startDate": "2024-05-01",
        "endDate": "2024-05-04",
        "numGuests": "2",
        "cabinId": "1",
        "guestId": "7",
    }
    payload.update(fields)
    response = client.post("/v1/bookings/sessions", json=payload, headers=STAFF)
    assert response.status_code == 201
    body = response.json()
    assert body["phase"] == "draft"
    assert [cabin["id"] for cabin in body["options"]["cabins"]] == [1, 2]
    return body["session_id"]


def test_requests_without_token_are_rejected(booking_api):
    client, _ = booking_api

    response = client.post("/v1/bookings/sessions", json={})

    assert response.status_code == 401


def test_quote_then_confirm_creates_booking(booking_api):
    client, supabase = booking_api
    session_id = _open(client, hasBreakfast="on")

    quoted = client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)
    assert quoted.status_code == 200
    assert quoted.json()["phase"] == "quoted"
    assert quoted.json()["quote"] == {
        "num_nights": 3,
        "cabin_charge": "270",
        "extras_charge": "90",
        "total_charge": "360",
    }
    assert "cabin_id" in quoted.json()["locked_fields"]

    paid = client.patch(
        f"/v1/bookings/sessions/{session_id}",
        json={"isPaid": True, "status": "checked-in"},
        headers=STAFF,
    )
    assert paid.status_code == 200

    confirmed = client.post(f"/v1/bookings/sessions/{session_id}/confirm", headers=STAFF)

    assert confirmed.status_code == 200
    assert confirmed.json()["phase"] == "confirmed"
    assert confirmed.json()["booking_id"] == 101
    record = supabase.records[0]
    assert record.is_paid is True
    assert record.status.value == "checked-in"


def test_rejected_quote_returns_reason_and_stays_draft(booking_api):
    client, supabase = booking_api
    supabase.settings = replace(supabase.settings, min_nights=5)
    session_id = _open(client)

    response = client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)

    assert response.status_code == 422
    assert response.json()["phase"] == "draft"
    assert response.json()["reason"] == "Minimum nights per booking are 5"


def test_locked_field_update_is_a_conflict(booking_api):
    client, _ = booking_api
    session_id = _open(client)
    client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)

    response = client.patch(
        f"/v1/bookings/sessions/{session_id}", json={"numGuests": "4"}, headers=STAFF
    )

    assert response.status_code == 409


def test_edit_returns_to_draft_without_quote(booking_api):
    client, _ = booking_api
    session_id = _open(client)
    client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)

    response = client.post(f"/v1/bookings/sessions/{session_id}/edit", headers=STAFF)

    assert response.status_code == 200
    assert response.json()["phase"] == "draft"
    assert "quote" not in response.json()


def test_gateway_failure_is_reported_verbatim(booking_api):
    client, supabase = booking_api
    supabase.error = GatewayError("bookings table is read-only")
    session_id = _open(client)
    client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)

    response = client.post(f"/v1/bookings/sessions/{session_id}/confirm", headers=STAFF)

    assert response.status_code == 502
    assert response.json()["phase"] == "failed"
    assert response.json()["last_error"] == "bookings table is read-only"


def test_unknown_staff_token_cannot_confirm(booking_api):
    client, supabase = booking_api
    session_id = _open(client)
    client.post(f"/v1/bookings/sessions/{session_id}/quote", headers=STAFF)

    response = client.post(
        f"/v1/bookings/sessions/{session_id}/confirm",
        headers={"Authorization": "Bearer stolen"},
    )

    assert response.status_code == 502
    assert response.json()["reason"] == "You are not allowed to create bookings"
    assert supabase.records == []


def test_unknown_session_is_not_found(booking_api):
    client, _ = booking_api

    response = client.get("/v1/bookings/sessions/missing", headers=STAFF)

    assert response.status_code == 404


def test_discarded_session_is_gone(booking_api):
    client, _ = booking_api
    session_id = _open(client)

    deleted = client.delete(f"/v1/bookings/sessions/{session_id}", headers=STAFF)

    assert deleted.status_code == 204
    assert client.get(f"/v1/bookings/sessions/{session_id}", headers=STAFF).status_code == 404


def test_health(booking_api):
    client, _ = booking_api

    response = client.get("/v1/admin/health")

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "store": "InMemoryWorkflowStore",
        "submissions_in_flight": 0,
    }
