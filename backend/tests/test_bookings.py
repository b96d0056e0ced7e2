"""
Tests for booking endpoints: creation, conflicts, ownership and the
cancel / pay / complete / review lifecycle.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from arena.core.config import Settings, get_settings
from arena.main import app

from conftest import NOW, TOMORROW


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, auth_headers, booking_payload, test_user):
    """Successful booking is pending and priced by the evening band."""
    response = await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["venue_id"] == booking_payload["venue_id"]
    assert data["user_id"] == test_user.id
    assert data["booking_date"] == TOMORROW.isoformat()
    assert data["slot_start"] == "18:00"
    assert data["slot_end"] == "19:00"
    assert data["total_amount"] == 2400
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["formatted_reference"] == f"PIT{data['id'] + 1000:06d}"


@pytest.mark.asyncio
async def test_create_booking_unauthenticated(client: AsyncClient, booking_payload):
    response = await client.post("/api/v1/bookings/", json=booking_payload)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_bad_token(client: AsyncClient, booking_payload):
    response = await client.post(
        "/api/v1/bookings/",
        json=booking_payload,
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_same_slot_twice_returns_409(client: AsyncClient, auth_headers, other_headers, booking_payload):
    first = await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)
    assert first.status_code == 201

    second = await client.post("/api/v1/bookings/", json=booking_payload, headers=other_headers)
    assert second.status_code == 409
    assert second.json()["code"] == "SLOT_CONFLICT"

    half_past = await client.post(
        "/api/v1/bookings/",
        json={**booking_payload, "slot_start": "18:30"},
        headers=other_headers,
    )
    assert half_past.status_code == 409


@pytest.mark.asyncio
async def test_unknown_venue_returns_404(client: AsyncClient, auth_headers, booking_payload):
    response = await client.post(
        "/api/v1/bookings/",
        json={**booking_payload, "venue_id": 9999},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "VENUE_NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"slot_start": "25:00"},
        {"slot_start": "04:00"},
        {"duration": 12},
        {"date": (TOMORROW - timedelta(days=2)).isoformat()},
        {"date": (TOMORROW + timedelta(days=60)).isoformat()},
    ],
)
async def test_booking_rules_return_400(client: AsyncClient, auth_headers, booking_payload, overrides):
    response = await client.post(
        "/api/v1/bookings/",
        json={**booking_payload, **overrides},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_malformed_payload_returns_422(client: AsyncClient, auth_headers, booking_payload):
    payload = {**booking_payload, "customer_details": {"name": "X", "phone_number": "call me"}}
    response = await client.post("/api/v1/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_booking_is_owner_only(client: AsyncClient, auth_headers, other_headers, booking_payload):
    created = (await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)).json()

    own = await client.get(f"/api/v1/bookings/{created['id']}", headers=auth_headers)
    assert own.status_code == 200
    assert own.json()["id"] == created["id"]

    other = await client.get(f"/api/v1/bookings/{created['id']}", headers=other_headers)
    assert other.status_code == 403

    missing = await client.get("/api/v1/bookings/9999", headers=auth_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_list_bookings_with_cancellation_preview(client: AsyncClient, auth_headers, booking_payload):
    await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)
    await client.post(
        "/api/v1/bookings/",
        json={**booking_payload, "date": NOW.date().isoformat(), "slot_start": "20:00"},
        headers=auth_headers,
    )

    response = await client.get("/api/v1/bookings/", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["page"] == 1
    assert {b["slot_start"] for b in data["bookings"]} == {"18:00", "20:00"}
    assert all(b["can_cancel"] for b in data["bookings"])

    # 18:00 tomorrow is 34h away, 20:00 today exactly 12h
    previews = {b["slot_start"]: b["refund_preview"] for b in data["bookings"]}
    assert previews == {"18:00": 2400, "20:00": 1920}


@pytest.mark.asyncio
async def test_list_preview_uses_configured_refund_tiers(client: AsyncClient, auth_headers, booking_payload):
    """Preview and the actual cancellation agree when refund tiers are configured."""
    app.dependency_overrides[get_settings] = lambda: Settings(FULL_REFUND_HOURS=48)
    created = (await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)).json()

    listed = (await client.get("/api/v1/bookings/", headers=auth_headers)).json()
    # 34h away is below the 48h full-refund tier
    assert listed["bookings"][0]["refund_preview"] == 1920

    cancelled = await client.delete(f"/api/v1/bookings/{created['id']}", headers=auth_headers)
    assert cancelled.json()["refund_percentage"] == 80
    assert cancelled.json()["refund_amount"] == 1920


@pytest.mark.asyncio
async def test_cancel_booking_refunds_and_frees_slot(
    client: AsyncClient, auth_headers, other_headers, booking_payload
):
    created = (await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)).json()

    forbidden = await client.delete(f"/api/v1/bookings/{created['id']}", headers=other_headers)
    assert forbidden.status_code == 403

    response = await client.delete(
        f"/api/v1/bookings/{created['id']}",
        params={"reason": "Team unavailable"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Booking cancelled successfully"
    assert data["status"] == "cancelled"
    assert data["refund_percentage"] == 100
    assert data["refund_amount"] == 2400

    again = await client.delete(f"/api/v1/bookings/{created['id']}", headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["code"] == "ALREADY_CANCELLED"

    rebook = await client.post("/api/v1/bookings/", json=booking_payload, headers=other_headers)
    assert rebook.status_code == 201


@pytest.mark.asyncio
async def test_cancel_inside_cutoff_returns_400(client: AsyncClient, auth_headers, booking_payload, clock):
    created = (await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)).json()

    # One hour before the 18:00 slot
    clock.advance(timedelta(hours=33))
    response = await client.delete(f"/api/v1/bookings/{created['id']}", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "NOT_CANCELLABLE"

    booking = await client.get(f"/api/v1/bookings/{created['id']}", headers=auth_headers)
    assert booking.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_pay_complete_review_flow(client: AsyncClient, auth_headers, booking_payload):
    created = (await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)).json()
    booking_id = created["id"]

    early_review = await client.post(
        f"/api/v1/bookings/{booking_id}/review", json={"rating": 5}, headers=auth_headers
    )
    assert early_review.status_code == 400

    paid = await client.post(
        f"/api/v1/bookings/{booking_id}/confirm-payment",
        json={"payment_method": "card", "transaction_id": "tx-42"},
        headers=auth_headers,
    )
    assert paid.status_code == 200
    assert paid.json()["status"] == "confirmed"
    assert paid.json()["payment_status"] == "paid"

    completed = await client.post(f"/api/v1/bookings/{booking_id}/complete", headers=auth_headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    twice = await client.post(f"/api/v1/bookings/{booking_id}/complete", headers=auth_headers)
    assert twice.status_code == 409
    assert twice.json()["code"] == "INVALID_TRANSITION"

    cancel = await client.delete(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert cancel.status_code == 409

    reviewed = await client.post(
        f"/api/v1/bookings/{booking_id}/review",
        json={"rating": 5, "comment": "Great floodlights"},
        headers=auth_headers,
    )
    assert reviewed.status_code == 200
    assert reviewed.json()["rating"] == 5

    out_of_range = await client.post(
        f"/api/v1/bookings/{booking_id}/review", json={"rating": 0}, headers=auth_headers
    )
    assert out_of_range.status_code == 400
