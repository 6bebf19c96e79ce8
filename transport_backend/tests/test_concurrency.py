"""
Concurrency Tests.

A driver or vehicle must never be held by two active trips. Starting a trip
claims both resources with a compare-and-swap on their availability flag
and records an active lock row guarded by a partial unique index.
"""

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from transport_backend.app.core.exceptions import ErrorKind, ResourceUnavailableError
from transport_backend.app.models.driver import Driver
from transport_backend.app.models.fleet_enums import ClientTier, ResourceType
from transport_backend.app.models.trip_enums import TripStatus
from transport_backend.app.schemas.trip import TripCreate
from transport_backend.app.services import fleet_service, trip_service
from transport_backend.app.services.resource_locking import (
    active_lock,
    claim_resource,
    create_resource_lock,
    lock_trip_resources,
    release_trip_locks,
)


@pytest.fixture
def ids(fleet):
    return {name: entity.id for name, entity in fleet.items()}


async def _scheduled_trip(db, ids, when, assign=True) -> int:
    trip = await trip_service.schedule_trip(db, TripCreate(
        client_id=ids["client"],
        origin="Bogota",
        destination="Villavicencio",
        scheduled_at=when,
        distance_km=30,
    ))
    if assign:
        await trip_service.assign_resources(db, trip.id, ids["driver"], ids["vehicle"])
    return trip.id


@pytest.mark.asyncio
async def test_active_lock_is_exclusive(db_session, ids, tomorrow_morning):
    first = await _scheduled_trip(db_session, ids, tomorrow_morning, assign=False)
    second = await _scheduled_trip(db_session, ids, tomorrow_morning, assign=False)

    lock = await create_resource_lock(db_session, ResourceType.VEHICLE, ids["vehicle"], first)
    assert lock.released_at is None

    with pytest.raises(IntegrityError):
        await create_resource_lock(db_session, ResourceType.VEHICLE, ids["vehicle"], second)
    await db_session.rollback()


@pytest.mark.asyncio
async def test_released_lock_can_be_taken_again(db_session, ids, tomorrow_morning):
    first = await _scheduled_trip(db_session, ids, tomorrow_morning, assign=False)
    second = await _scheduled_trip(db_session, ids, tomorrow_morning, assign=False)

    await create_resource_lock(db_session, ResourceType.DRIVER, ids["driver"], first)
    assert await release_trip_locks(db_session, first) == 1
    assert await release_trip_locks(db_session, first) == 0

    lock = await create_resource_lock(db_session, ResourceType.DRIVER, ids["driver"], second)
    assert lock.trip_id == second
    await db_session.commit()


@pytest.mark.asyncio
async def test_claim_is_compare_and_swap(db_session, ids):
    assert await claim_resource(db_session, ResourceType.DRIVER, ids["driver"]) is True
    assert await claim_resource(db_session, ResourceType.DRIVER, ids["driver"]) is False
    await db_session.rollback()


@pytest.mark.asyncio
async def test_second_start_on_same_resources_fails(db_session, ids, tomorrow_morning):
    first = await _scheduled_trip(db_session, ids, tomorrow_morning)
    second = await _scheduled_trip(db_session, ids, tomorrow_morning)

    started = await trip_service.start_trip(db_session, first)
    assert started.status == TripStatus.IN_PROGRESS

    with pytest.raises(ResourceUnavailableError) as exc_info:
        await trip_service.start_trip(db_session, second)
    assert exc_info.value.kind == ErrorKind.RESOURCE_UNAVAILABLE

    trip = await trip_service.get_trip(db_session, second)
    assert trip.status == TripStatus.SCHEDULED
    assert await active_lock(db_session, ResourceType.DRIVER, ids["driver"]) is not None


@pytest.mark.asyncio
async def test_stale_availability_is_caught_at_claim(db_session, ids, tomorrow_morning):
    """Another dispatcher took the driver after this session loaded it."""
    trip_id = await _scheduled_trip(db_session, ids, tomorrow_morning)
    trip_lifecycle = await trip_service.load_lifecycle(db_session, trip_id)
    trip_lifecycle.ensure_startable()

    await db_session.execute(
        update(Driver)
        .where(Driver.id == ids["driver"])
        .values(is_available=False)
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(ResourceUnavailableError) as exc_info:
        await lock_trip_resources(db_session, trip_id, ids["driver"], ids["vehicle"])
    assert exc_info.value.resource == "Driver"
    await db_session.rollback()


@pytest.mark.asyncio
async def test_completion_releases_locks(db_session, ids, tomorrow_morning):
    first = await _scheduled_trip(db_session, ids, tomorrow_morning)
    await trip_service.start_trip(db_session, first)

    outcome, released = await trip_service.complete_trip(db_session, first)

    assert outcome.trip.status == TripStatus.COMPLETED
    assert released == 2
    assert await active_lock(db_session, ResourceType.VEHICLE, ids["vehicle"]) is None

    second = await _scheduled_trip(db_session, ids, tomorrow_morning)
    started = await trip_service.start_trip(db_session, second)
    assert started.status == TripStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_cancelling_in_progress_trip_frees_resources(db_session, ids, tomorrow_morning):
    trip_id = await _scheduled_trip(db_session, ids, tomorrow_morning)
    await trip_service.start_trip(db_session, trip_id)

    trip, released = await trip_service.cancel_trip(db_session, trip_id, "Breakdown")

    assert trip.status == TripStatus.CANCELLED
    assert released == ["driver", "vehicle"]
    assert await active_lock(db_session, ResourceType.DRIVER, ids["driver"]) is None
    driver = await fleet_service.get_driver(db_session, ids["driver"])
    assert driver.is_available is True


@pytest.mark.asyncio
async def test_start_keeps_fare_quoted_before_tier_promotion(db_session, fleet, ids, tomorrow_morning):
    """The 20th trip promotes the client to CORPORATE but is billed at the FREQUENT rate."""
    client = fleet["client"]
    client.tier = ClientTier.FREQUENT
    client.completed_trips = 19
    await db_session.commit()

    trip_id = await _scheduled_trip(db_session, ids, tomorrow_morning)
    quoted = (await trip_service.recompute_fare(db_session, trip_id)).total_fare

    started = await trip_service.start_trip(db_session, trip_id)

    assert started.total_fare == quoted
    client = await fleet_service.get_client(db_session, ids["client"])
    assert client.completed_trips == 20
    assert client.tier == ClientTier.CORPORATE
