"""
Integration tests for the trip dispatch flow.

Register client/driver/vehicle -> schedule -> assign -> confirm -> start
-> complete, plus the error responses each failed precondition produces.
"""

import pytest
from datetime import date, datetime, timedelta

TRUCK_RATE = 88000.0  # 80000 x 1.1 load factor, no equipment


@pytest.fixture
async def registry(client, admin_headers):
    """A STANDARD client, a B2 driver and a 10 t truck registered over the API."""
    today = date.today()
    created = {}

    response = await client.post("/v1/clients", headers=admin_headers, json={
        "document_number": "CC1020304",
        "full_name": "Laura Gomez",
        "email": "laura@example.com",
    })
    assert response.status_code == 201, response.text
    created["client"] = response.json()

    response = await client.post("/v1/drivers", headers=admin_headers, json={
        "document_number": "DR9080706",
        "full_name": "Carlos Ruiz",
        "license_number": "lic12345678",
        "license_class": "B2",
        "license_expiry": (today + timedelta(days=730)).isoformat(),
        "years_experience": 8,
    })
    assert response.status_code == 201, response.text
    created["driver"] = response.json()

    response = await client.post("/v1/vehicles", headers=admin_headers, json={
        "plate": "trk123",
        "make": "Kenworth",
        "model": "T800",
        "year": today.year,
        "category": "TRUCK",
        "odometer_km": 1000,
        "last_inspection_date": (today - timedelta(days=30)).isoformat(),
        "insurance_expiry_date": (today + timedelta(days=365)).isoformat(),
        "max_payload_tons": 10,
        "has_cargo_security": False,
    })
    assert response.status_code == 201, response.text
    created["vehicle"] = response.json()
    return created


async def _schedule(client, headers, registry, when: datetime, **extra) -> dict:
    payload = {
        "client_id": registry["client"]["id"],
        "origin": "Bogota",
        "destination": "Villavicencio",
        "scheduled_at": when.isoformat(),
        "distance_km": 30,
    }
    payload.update(extra)
    response = await client.post("/v1/trips", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def _assign(client, headers, registry, trip_id: int):
    return await client.patch(f"/v1/trips/{trip_id}/resources", headers=headers, json={
        "driver_id": registry["driver"]["id"],
        "vehicle_id": registry["vehicle"]["id"],
    })


@pytest.mark.asyncio
async def test_registration_normalises_identifiers(registry):
    assert registry["client"]["tier"] == "STANDARD"
    assert registry["driver"]["license_number"] == "LIC12345678"
    assert registry["vehicle"]["plate"] == "TRK123"
    assert registry["vehicle"]["body_type"] == "CARGO"
    assert registry["vehicle"]["axle_count"] == 2


@pytest.mark.asyncio
async def test_full_trip_flow(client, dispatcher_headers, admin_headers, registry, tomorrow_morning):
    headers = dispatcher_headers
    trip = await _schedule(client, headers, registry, tomorrow_morning)
    assert trip["status"] == "SCHEDULED"
    assert trip["fare_strategy"] == "STANDARD"
    assert trip["total_fare"] is None
    assert trip["estimated_duration_min"] == 30
    trip_id = trip["id"]

    response = await _assign(client, headers, registry, trip_id)
    assert response.status_code == 200
    assert response.json()["driver_id"] == registry["driver"]["id"]

    response = await client.post(f"/v1/trips/{trip_id}/confirm", headers=headers)
    assert response.json()["status"] == "CONFIRMED"

    response = await client.post(f"/v1/trips/{trip_id}/start", headers=headers)
    assert response.status_code == 200
    started = response.json()
    assert started["status"] == "IN_PROGRESS"
    assert started["start_odometer_km"] == 1000
    assert started["total_fare"] == TRUCK_RATE * 30

    response = await client.get(f"/v1/drivers/{registry['driver']['id']}", headers=headers)
    assert response.json()["is_available"] is False

    response = await client.post(f"/v1/trips/{trip_id}/complete", headers=headers)
    assert response.status_code == 200
    completed = response.json()
    assert completed["trip"]["status"] == "COMPLETED"
    assert completed["trip"]["end_odometer_km"] == 1030
    assert completed["mileage_updated"] is True
    assert completed["mileage_error"] is None
    assert completed["locks_released"] == 2

    response = await client.get(f"/v1/vehicles/{registry['vehicle']['id']}", headers=headers)
    vehicle = response.json()
    assert vehicle["odometer_km"] == 1030
    assert vehicle["is_available"] is True

    response = await client.get(f"/v1/clients/{registry['client']['id']}", headers=headers)
    assert response.json()["completed_trips"] == 1

    response = await client.post(f"/v1/trips/{trip_id}/rating", headers=headers, json={"rating": 5})
    assert response.json()["rating"] == 5

    response = await client.get(
        "/v1/admin/audit-logs", headers=admin_headers, params={"entity_type": "TRIP", "entity_id": trip_id}
    )
    actions = {entry["action"] for entry in response.json()}
    assert {"TRIP_SCHEDULED", "RESOURCES_ASSIGNED", "TRIP_STARTED", "TRIP_COMPLETED", "TRIP_RATED"} <= actions


@pytest.mark.asyncio
async def test_start_without_resources(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)

    response = await client.post(f"/v1/trips/{trip['id']}/start", headers=admin_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_MISSING_RESOURCE"
    assert body["details"]["missing"] == ["driver", "vehicle"]


@pytest.mark.asyncio
async def test_complete_requires_started_trip(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)

    response = await client.post(f"/v1/trips/{trip['id']}/complete", headers=admin_headers)

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_INVALID_TRANSITION"
    assert body["details"]["status"] == "SCHEDULED"


@pytest.mark.asyncio
async def test_schedule_validation_errors(client, admin_headers, registry):
    response = await client.post("/v1/trips", headers=admin_headers, json={
        "client_id": registry["client"]["id"],
        "origin": "Bogota",
        "destination": "Cali",
        "scheduled_at": (datetime.now() - timedelta(hours=1)).isoformat(),
        "distance_km": 10,
    })
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
    assert response.json()["details"]["field"] == "scheduled_at"

    response = await client.post("/v1/trips", headers=admin_headers, json={
        "client_id": registry["client"]["id"],
        "origin": "Bogota",
        "destination": "Cali",
        "scheduled_at": (datetime.now() + timedelta(days=1)).isoformat(),
        "distance_km": 2500,
    })
    assert response.status_code == 422
    assert response.json()["details"]["field"] == "distance_km"


@pytest.mark.asyncio
async def test_unknown_trip(client, admin_headers):
    response = await client.get("/v1/trips/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND"


@pytest.mark.asyncio
async def test_ineligible_driver_is_rejected(client, admin_headers, registry, tomorrow_morning):
    response = await client.post("/v1/drivers", headers=admin_headers, json={
        "document_number": "DR5556667",
        "full_name": "Ana Perez",
        "license_number": "CAR0000001",
        "license_class": "B1",
        "license_expiry": (date.today() + timedelta(days=365)).isoformat(),
    })
    car_driver = response.json()
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)

    response = await client.patch(f"/v1/trips/{trip['id']}/resources", headers=admin_headers, json={
        "driver_id": car_driver["id"],
        "vehicle_id": registry["vehicle"]["id"],
    })

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "ERR_ELIGIBILITY"
    assert body["details"]["failures"] == ["License class B1 cannot drive TRUCK"]

    response = await client.get(f"/v1/trips/{trip['id']}", headers=admin_headers)
    assert response.json()["driver_id"] is None
    response = await client.get(f"/v1/drivers/{car_driver['id']}", headers=admin_headers)
    assert response.json()["is_available"] is True


@pytest.mark.asyncio
async def test_cancel_without_reason(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)
    await _assign(client, admin_headers, registry, trip["id"])

    response = await client.post(f"/v1/trips/{trip['id']}/cancel", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["trip"]["status"] == "CANCELLED"
    assert body["released_resources"] == []
    assert body["trip"]["notes"].endswith("CANCELLED: No reason given")

    response = await client.post(f"/v1/trips/{trip['id']}/cancel", headers=admin_headers, json={"reason": "x"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_in_progress_releases_resources(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)
    await _assign(client, admin_headers, registry, trip["id"])
    await client.post(f"/v1/trips/{trip['id']}/start", headers=admin_headers)

    response = await client.post(
        f"/v1/trips/{trip['id']}/cancel", headers=admin_headers, json={"reason": "Road closed"}
    )

    body = response.json()
    assert body["released_resources"] == ["driver", "vehicle"]
    assert body["trip"]["notes"].endswith("CANCELLED: Road closed")
    response = await client.get("/v1/drivers/available", headers=admin_headers)
    assert [d["id"] for d in response.json()] == [registry["driver"]["id"]]


@pytest.mark.asyncio
async def test_second_trip_cannot_start_with_busy_resources(client, admin_headers, registry, tomorrow_morning):
    first = await _schedule(client, admin_headers, registry, tomorrow_morning)
    second = await _schedule(client, admin_headers, registry, tomorrow_morning + timedelta(hours=2))
    await _assign(client, admin_headers, registry, first["id"])
    await _assign(client, admin_headers, registry, second["id"])

    response = await client.post(f"/v1/trips/{first['id']}/start", headers=admin_headers)
    assert response.status_code == 200

    response = await client.post(f"/v1/trips/{second['id']}/start", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_RESOURCE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_charges_reprice_assigned_trip(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)
    await _assign(client, admin_headers, registry, trip["id"])

    response = await client.patch(
        f"/v1/trips/{trip['id']}/charges", headers=admin_headers, json={"is_urgent": True}
    )

    assert response.status_code == 200
    assert response.json()["is_urgent"] is True
    assert response.json()["total_fare"] == TRUCK_RATE * 30 * 1.25

    response = await client.patch(
        f"/v1/trips/{trip['id']}/charges", headers=admin_headers, json={"additional_cost": -5}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_fare_breakdown(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning, additional_cost=40000)

    response = await client.get(f"/v1/trips/{trip['id']}/fare-breakdown", headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_COMPUTATION"

    await _assign(client, admin_headers, registry, trip["id"])
    response = await client.get(f"/v1/trips/{trip['id']}/fare-breakdown", headers=admin_headers)

    breakdown = response.json()
    assert breakdown["strategy"] == "STANDARD"
    assert breakdown["vehicle_rate"] == TRUCK_RATE
    assert breakdown["strategy_total"] == TRUCK_RATE * 30
    assert breakdown["adjustments"] == []
    assert breakdown["minimum_applied"] is False
    assert breakdown["total_fare"] == TRUCK_RATE * 30 + 40000
    assert breakdown["urgent_multiplier"] is None
    assert "TOTAL: $2,640,000" in breakdown["text"]


@pytest.mark.asyncio
async def test_fare_rule_overrides_defaults(client, admin_headers, dispatcher_headers, registry, tomorrow_morning):
    rule = {
        "strategy": "STANDARD",
        "rule_name": "High season",
        "minimum_fare": 5000000,
        "effective_from": (datetime.now() - timedelta(days=1)).isoformat(),
    }
    response = await client.post("/v1/admin/fare-rules", headers=dispatcher_headers, json=rule)
    assert response.status_code == 403

    response = await client.post("/v1/admin/fare-rules", headers=admin_headers, json=rule)
    assert response.status_code == 201
    rule_id = response.json()["id"]

    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)
    await _assign(client, admin_headers, registry, trip["id"])
    response = await client.post(f"/v1/trips/{trip['id']}/fare", headers=admin_headers)
    assert response.json()["total_fare"] == 5000000

    response = await client.delete(f"/v1/admin/fare-rules/{rule_id}", headers=admin_headers)
    assert response.json()["is_active"] is False

    response = await client.post(f"/v1/trips/{trip['id']}/fare", headers=admin_headers)
    assert response.json()["total_fare"] == TRUCK_RATE * 30


@pytest.mark.asyncio
async def test_trip_status(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)

    response = await client.get(f"/v1/trips/{trip['id']}/status", headers=admin_headers)

    body = response.json()
    assert body["status"] == "SCHEDULED"
    assert body["is_overdue"] is False
    assert body["actual_duration_minutes"] == -1
    assert body["minutes_until_departure"] > 0


@pytest.mark.asyncio
async def test_notes(client, admin_headers, registry, tomorrow_morning):
    trip = await _schedule(client, admin_headers, registry, tomorrow_morning)

    await client.post(f"/v1/trips/{trip['id']}/notes", headers=admin_headers, json={"text": "Fragile load"})
    response = await client.post(f"/v1/trips/{trip['id']}/notes", headers=admin_headers, json={"text": "Dock 4"})

    lines = response.json()["notes"].split("\n")
    assert len(lines) == 2
    assert lines[0].endswith(": Fragile load")
    assert lines[1].endswith(": Dock 4")


@pytest.mark.asyncio
async def test_list_trips_by_status(client, admin_headers, registry, tomorrow_morning):
    first = await _schedule(client, admin_headers, registry, tomorrow_morning)
    await _schedule(client, admin_headers, registry, tomorrow_morning + timedelta(hours=1))
    await client.post(f"/v1/trips/{first['id']}/cancel", headers=admin_headers)

    response = await client.get("/v1/trips", headers=admin_headers, params={"status": "CANCELLED"})
    assert [t["id"] for t in response.json()] == [first["id"]]

    response = await client.get("/v1/trips", headers=admin_headers)
    assert len(response.json()) == 2
