"""
Tests for venue details and the slot grid endpoint.
"""

import pytest
from httpx import AsyncClient

from conftest import TOMORROW, build_venue


@pytest.mark.asyncio
async def test_get_venue(client: AsyncClient, test_venue):
    response = await client.get(f"/api/v1/venues/{test_venue.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Test Arena"
    assert data["base_price"] == 2000
    assert len(data["operating_hours"]) == 7
    assert data["operating_hours"][0] == {
        "weekday": 0,
        "open_time": "06:00",
        "close_time": "23:00",
        "closed": False,
    }


@pytest.mark.asyncio
async def test_get_missing_venue(client: AsyncClient):
    response = await client.get("/api/v1/venues/9999")
    assert response.status_code == 404
    assert response.json()["code"] == "VENUE_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_slots(client: AsyncClient, test_venue):
    response = await client.get(f"/api/v1/venues/{test_venue.id}/slots", params={"date": TOMORROW.isoformat()})
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == TOMORROW.isoformat()
    assert data["currency"] == "PKR"
    assert data["cached"] is False
    assert len(data["slots"]) == 17

    evening = next(s for s in data["slots"] if s["start"] == "18:00")
    assert evening == {"start": "18:00", "end": "19:00", "price": 2400, "category": "evening", "available": True}


@pytest.mark.asyncio
async def test_booked_slot_is_unavailable(client: AsyncClient, auth_headers, booking_payload, test_venue):
    created = await client.post("/api/v1/bookings/", json=booking_payload, headers=auth_headers)
    assert created.status_code == 201

    response = await client.get(f"/api/v1/venues/{test_venue.id}/slots", params={"date": TOMORROW.isoformat()})
    availability = {s["start"]: s["available"] for s in response.json()["slots"]}
    assert availability["18:00"] is False
    assert availability["19:00"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"status": "maintenance"}, {"is_bookable": False}],
    ids=["maintenance", "active-not-bookable"],
)
async def test_slots_of_unavailable_venue(client: AsyncClient, db_session, overrides):
    venue = build_venue(**overrides)
    db_session.add(venue)
    await db_session.commit()

    response = await client.get(f"/api/v1/venues/{venue.id}/slots", params={"date": TOMORROW.isoformat()})
    assert response.status_code == 400
    assert response.json()["code"] == "VENUE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_slots_require_date(client: AsyncClient, test_venue):
    response = await client.get(f"/api/v1/venues/{test_venue.id}/slots")
    assert response.status_code == 422
