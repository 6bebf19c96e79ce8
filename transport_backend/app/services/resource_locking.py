"""
Resource locking service.

Two guards keep a driver or vehicle on at most one active trip:
a compare-and-swap on the availability flag, and an active lock row
protected by a partial unique index.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from transport_backend.app.core.exceptions import ResourceUnavailableError
from transport_backend.app.models.driver import Driver
from transport_backend.app.models.fleet_enums import ResourceType
from transport_backend.app.models.resource_lock import ResourceLock
from transport_backend.app.models.vehicle import Vehicle

RESOURCE_MODELS = {
    ResourceType.DRIVER: Driver,
    ResourceType.VEHICLE: Vehicle,
}


async def claim_resource(db: AsyncSession, resource_type: ResourceType, resource_id: int) -> bool:
    """
    Atomically flip a resource from available to unavailable.

    Returns:
        True if this call took the resource, False if it was already taken
    """
    model = RESOURCE_MODELS[resource_type]
    result = await db.execute(
        update(model)
        .where(model.id == resource_id, model.is_available.is_(True))
        .values(is_available=False)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def create_resource_lock(
    db: AsyncSession,
    resource_type: ResourceType,
    resource_id: int,
    trip_id: int
) -> ResourceLock:
    """
    Create an active lock on a resource for a trip.

    Raises:
        IntegrityError: If the resource already has an active lock
    """
    lock = ResourceLock(
        resource_type=resource_type,
        resource_id=resource_id,
        trip_id=trip_id,
        locked_at=datetime.now(timezone.utc),
        released_at=None
    )

    db.add(lock)
    await db.flush()  # Will raise IntegrityError if unique constraint violated

    return lock


async def lock_trip_resources(db: AsyncSession, trip_id: int, driver_id: int, vehicle_id: int) -> None:
    """
    Claim and lock both resources of a starting trip.

    Raises:
        ResourceUnavailableError: If either resource is already held
    """
    for resource_type, resource_id in ((ResourceType.DRIVER, driver_id), (ResourceType.VEHICLE, vehicle_id)):
        if not await claim_resource(db, resource_type, resource_id):
            raise ResourceUnavailableError(resource_type.value.capitalize(), resource_id)

    for resource_type, resource_id in ((ResourceType.DRIVER, driver_id), (ResourceType.VEHICLE, vehicle_id)):
        try:
            await create_resource_lock(db, resource_type, resource_id, trip_id)
        except IntegrityError:
            raise ResourceUnavailableError(resource_type.value.capitalize(), resource_id)


async def active_lock(
    db: AsyncSession,
    resource_type: ResourceType,
    resource_id: int
) -> Optional[ResourceLock]:
    result = await db.execute(
        select(ResourceLock).where(
            ResourceLock.resource_type == resource_type,
            ResourceLock.resource_id == resource_id,
            ResourceLock.released_at.is_(None)
        )
    )
    return result.scalar_one_or_none()


async def release_trip_locks(db: AsyncSession, trip_id: int) -> int:
    """
    Release every active lock held by a trip.

    Returns:
        Number of locks released (0 if the trip held none)
    """
    result = await db.execute(
        select(ResourceLock).where(
            ResourceLock.trip_id == trip_id,
            ResourceLock.released_at.is_(None)
        )
    )
    locks = result.scalars().all()

    now = datetime.now(timezone.utc)
    for lock in locks:
        lock.released_at = now
    await db.flush()

    return len(locks)
