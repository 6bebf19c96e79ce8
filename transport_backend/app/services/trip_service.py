"""
Trip service.

Runs trip lifecycle operations against the database. Each public function
is one transaction: entities are loaded, the lifecycle mutates them, and
the session is committed. Any DomainError rolls the transaction back and
propagates to the caller unchanged.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from transport_backend.app.core.config import settings
from transport_backend.app.core.exceptions import ComputationError, ResourceNotFoundError
from transport_backend.app.domain.pricing.pricing_resolver import PricingResolver
from transport_backend.app.domain.trips import lifecycle
from transport_backend.app.domain.trips.lifecycle import CompletionOutcome, TripLifecycle
from transport_backend.app.models.trip import Trip
from transport_backend.app.models.trip_enums import TripStatus
from transport_backend.app.schemas.trip import TripCreate
from transport_backend.app.services import fleet_service
from transport_backend.app.services.resource_locking import lock_trip_resources, release_trip_locks

logger = logging.getLogger("transport.trips")


def to_local_naive(when: datetime) -> datetime:
    """Trip times are stored as naive local wall-clock values."""
    if when.tzinfo is not None:
        return when.astimezone().replace(tzinfo=None)
    return when


@asynccontextmanager
async def _transaction(db: AsyncSession):
    try:
        yield
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def get_trip(db: AsyncSession, trip_id: int) -> Trip:
    result = await db.execute(select(Trip).where(Trip.id == trip_id))
    trip = result.scalar_one_or_none()
    if trip is None:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


async def load_lifecycle(db: AsyncSession, trip_id: int, clock=datetime.now) -> TripLifecycle:
    """Look up a trip together with its client and assigned resources."""
    trip = await get_trip(db, trip_id)
    client = await fleet_service.get_client(db, trip.client_id)
    driver = await fleet_service.get_driver(db, trip.driver_id) if trip.driver_id else None
    vehicle = await fleet_service.get_vehicle(db, trip.vehicle_id) if trip.vehicle_id else None
    return TripLifecycle(trip, client, driver, vehicle, clock=clock)


async def list_trips(
    db: AsyncSession,
    status: Optional[TripStatus] = None,
    client_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Trip]:
    query = select(Trip)
    if status is not None:
        query = query.where(Trip.status == status)
    if client_id is not None:
        query = query.where(Trip.client_id == client_id)
    if driver_id is not None:
        query = query.where(Trip.driver_id == driver_id)
    result = await db.execute(query.order_by(desc(Trip.scheduled_at), desc(Trip.id)).offset(skip).limit(limit))
    return result.scalars().all()


async def schedule_trip(db: AsyncSession, payload: TripCreate, now: Optional[datetime] = None) -> Trip:
    async with _transaction(db):
        client = await fleet_service.get_client(db, payload.client_id)
        trip = lifecycle.schedule(
            payload.origin,
            payload.destination,
            to_local_naive(payload.scheduled_at),
            payload.distance_km,
            client,
            is_urgent=payload.is_urgent,
            additional_cost=payload.additional_cost,
            fare_strategy=payload.fare_strategy,
            now=now,
        )
        db.add(trip)
    await db.refresh(trip)
    logger.info("Scheduled trip %s for client %s", trip.code, client.id)
    return trip


async def assign_resources(db: AsyncSession, trip_id: int, driver_id: int, vehicle_id: int) -> Trip:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        driver = await fleet_service.get_driver(db, driver_id)
        vehicle = await fleet_service.get_vehicle(db, vehicle_id)
        trip_lifecycle.assign_resources(driver, vehicle)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def confirm_trip(db: AsyncSession, trip_id: int) -> Trip:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        trip_lifecycle.confirm()
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def price_trip(db: AsyncSession, trip_lifecycle: TripLifecycle) -> float:
    strategy = await PricingResolver.resolve_strategy(db, trip_lifecycle.trip.fare_strategy)
    return trip_lifecycle.compute_fare(strategy)


async def start_trip(db: AsyncSession, trip_id: int) -> Trip:
    """
    Start a trip.

    The driver and vehicle are claimed with a compare-and-swap on their
    availability flags and locked with active lock rows before the
    lifecycle takes them, so two concurrent starts cannot both succeed.
    The fare is fixed with the client standing as it was before this trip.
    """
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        trip_lifecycle.ensure_startable()
        trip = trip_lifecycle.trip
        await lock_trip_resources(db, trip.id, trip.driver_id, trip.vehicle_id)
        # price first: start() counts this trip toward the client tier
        await price_trip(db, trip_lifecycle)
        trip_lifecycle.start()
    await db.refresh(trip)
    return trip


async def complete_trip(db: AsyncSession, trip_id: int) -> tuple[CompletionOutcome, int]:
    """
    Complete a trip and release its locks.

    Returns:
        (outcome, number of released locks); ``outcome.mileage_error`` is
        set when the odometer could not be updated
    """
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        outcome = trip_lifecycle.complete()
        released = await release_trip_locks(db, trip_id)
    await db.refresh(outcome.trip)
    return outcome, released


async def cancel_trip(db: AsyncSession, trip_id: int, reason: Optional[str] = None) -> tuple[Trip, List[str]]:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        released = trip_lifecycle.cancel(reason)
        await release_trip_locks(db, trip_id)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip, released


async def add_note(db: AsyncSession, trip_id: int, text: str) -> Trip:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        trip_lifecycle.add_note(text)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def update_charges(
    db: AsyncSession,
    trip_id: int,
    is_urgent: Optional[bool] = None,
    additional_cost: Optional[float] = None,
) -> Trip:
    """Change the urgent flag or manual cost; the fare is re-priced when a vehicle is set."""
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        trip_lifecycle.update_charges(is_urgent=is_urgent, additional_cost=additional_cost)
        if trip_lifecycle.vehicle is not None:
            await price_trip(db, trip_lifecycle)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def recompute_fare(db: AsyncSession, trip_id: int) -> Trip:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        await price_trip(db, trip_lifecycle)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def fare_breakdown(db: AsyncSession, trip_id: int) -> dict:
    """Itemised fare for a trip, without storing anything."""
    trip_lifecycle = await load_lifecycle(db, trip_id)
    trip = trip_lifecycle.trip
    if trip_lifecycle.vehicle is None:
        raise ComputationError("no vehicle assigned")

    strategy = await PricingResolver.resolve_strategy(db, trip.fare_strategy)
    breakdown = strategy.breakdown(trip.distance_km, trip_lifecycle.client, trip_lifecycle.vehicle)
    total = lifecycle.finalize_fare(breakdown.total, trip)

    data = breakdown.to_dict()
    data["strategy_total"] = data.pop("total")
    data.update(
        trip_id=trip.id,
        additional_cost=trip.additional_cost,
        urgent_multiplier=settings.urgent_multiplier if trip.is_urgent else None,
        night_multiplier=settings.night_multiplier if trip.is_night else None,
        total_fare=total,
        text=breakdown.as_text(),
    )
    return data


async def rate_trip(db: AsyncSession, trip_id: int, rating: float, comments: Optional[str] = None) -> Trip:
    async with _transaction(db):
        trip_lifecycle = await load_lifecycle(db, trip_id)
        trip_lifecycle.rate(rating, comments)
    await db.refresh(trip_lifecycle.trip)
    return trip_lifecycle.trip


async def trip_status(db: AsyncSession, trip_id: int, now: Optional[datetime] = None) -> dict:
    trip = await get_trip(db, trip_id)
    trip_lifecycle = TripLifecycle(trip, client=None)
    now = now or datetime.now()
    return {
        "trip_id": trip.id,
        "status": trip.status,
        "is_overdue": trip_lifecycle.is_overdue(now),
        "actual_duration_minutes": trip_lifecycle.actual_duration_minutes(now),
        "minutes_until_departure": trip_lifecycle.minutes_until_departure(now),
    }
