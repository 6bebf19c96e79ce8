"""
Trip API Endpoints.

Dispatchers schedule trips, assign resources and drive them through
SCHEDULED -> CONFIRMED -> IN_PROGRESS -> COMPLETED, or cancel them.
"""

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from transport_backend.app.db.session import get_db
from transport_backend.app.models.trip_enums import TripStatus
from transport_backend.app.schemas.trip import (
    TripCreate, TripResourceAssign, TripCancel, TripNote, TripChargesUpdate, TripRating,
    TripResponse, TripCompleteResponse, TripCancelResponse, TripStatusResponse, FareBreakdownResponse,
)
from transport_backend.app.core.guards import require_operator
from transport_backend.app.services import trip_service
from transport_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/trips", tags=["Trips"])


async def _audit(db: AsyncSession, current_user: dict, action: str, trip_id: int, metadata: dict = None):
    await log_event(
        db=db,
        action=action,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="TRIP",
        entity_id=trip_id,
        metadata=metadata
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def schedule_trip(
    payload: TripCreate,
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """
    Schedule a trip for a client.

    Validates origin/destination, distance and that the time is not in the
    past. The fare strategy defaults to FREQUENT for frequent clients.
    """
    trip = await trip_service.schedule_trip(db, payload)
    await _audit(db, current_user, AuditAction.TRIP_SCHEDULED, trip.id, {
        "code": trip.code,
        "client_id": trip.client_id,
        "fare_strategy": trip.fare_strategy.value
    })
    return trip


@router.get("", response_model=List[TripResponse])
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None),
    driver_id: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await trip_service.list_trips(
        db, status=status_filter, client_id=client_id, driver_id=driver_id, skip=skip, limit=limit
    )


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await trip_service.get_trip(db, trip_id)


@router.get("/{trip_id}/status", response_model=TripStatusResponse)
async def get_trip_status(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Status with overdue flag and elapsed minutes."""
    return await trip_service.trip_status(db, trip_id)


@router.patch("/{trip_id}/resources", response_model=TripResponse)
async def assign_resources(
    payload: TripResourceAssign,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign a driver and vehicle.

    Both must be available, the license class must cover the vehicle
    category, and license and vehicle documents must be valid.
    Availability is not changed until the trip starts.
    """
    trip = await trip_service.assign_resources(db, trip_id, payload.driver_id, payload.vehicle_id)
    await _audit(db, current_user, AuditAction.RESOURCES_ASSIGNED, trip.id, {
        "driver_id": trip.driver_id,
        "vehicle_id": trip.vehicle_id
    })
    return trip


@router.post("/{trip_id}/confirm", response_model=TripResponse)
async def confirm_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    trip = await trip_service.confirm_trip(db, trip_id)
    await _audit(db, current_user, AuditAction.TRIP_CONFIRMED, trip.id)
    return trip


@router.post("/{trip_id}/start", response_model=TripResponse)
async def start_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a trip.

    Locks the driver and vehicle, records the start odometer, counts the
    trip for the client and prices it.
    """
    trip = await trip_service.start_trip(db, trip_id)
    await _audit(db, current_user, AuditAction.TRIP_STARTED, trip.id, {
        "driver_id": trip.driver_id,
        "vehicle_id": trip.vehicle_id,
        "total_fare": trip.total_fare
    })
    return trip


@router.post("/{trip_id}/complete", response_model=TripCompleteResponse)
async def complete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete a trip and release its resources.

    The odometer update is best effort; if it fails the trip is still
    completed and ``mileage_error`` explains why.
    """
    outcome, locks_released = await trip_service.complete_trip(db, trip_id)
    trip = outcome.trip
    await _audit(db, current_user, AuditAction.TRIP_COMPLETED, trip.id, {
        "end_odometer_km": trip.end_odometer_km,
        "locks_released": locks_released
    })
    if not outcome.mileage_updated:
        await _audit(db, current_user, AuditAction.MILEAGE_UPDATE_FAILED, trip.id, {
            "vehicle_id": trip.vehicle_id,
            "error": outcome.mileage_error
        })
    return TripCompleteResponse(
        trip=TripResponse.model_validate(trip),
        mileage_updated=outcome.mileage_updated,
        mileage_error=outcome.mileage_error,
        locks_released=locks_released
    )


@router.post("/{trip_id}/cancel", response_model=TripCancelResponse)
async def cancel_trip(
    payload: Optional[TripCancel] = Body(None),
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    reason = payload.reason if payload else None
    trip, released = await trip_service.cancel_trip(db, trip_id, reason)
    await _audit(db, current_user, AuditAction.TRIP_CANCELLED, trip.id, {
        "reason": reason,
        "released": released
    })
    return TripCancelResponse(trip=TripResponse.model_validate(trip), released_resources=released)


@router.post("/{trip_id}/notes", response_model=TripResponse)
async def add_note(
    payload: TripNote,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    trip = await trip_service.add_note(db, trip_id, payload.text)
    await _audit(db, current_user, AuditAction.TRIP_NOTE_ADDED, trip.id)
    return trip


@router.patch("/{trip_id}/charges", response_model=TripResponse)
async def update_charges(
    payload: TripChargesUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    trip = await trip_service.update_charges(
        db, trip_id, is_urgent=payload.is_urgent, additional_cost=payload.additional_cost
    )
    await _audit(db, current_user, AuditAction.TRIP_CHARGES_UPDATED, trip.id, {
        "is_urgent": trip.is_urgent,
        "additional_cost": trip.additional_cost,
        "total_fare": trip.total_fare
    })
    return trip


@router.post("/{trip_id}/fare", response_model=TripResponse)
async def recompute_fare(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Recompute and store the trip fare with the current fare rules."""
    trip = await trip_service.recompute_fare(db, trip_id)
    await _audit(db, current_user, AuditAction.TRIP_FARE_CALCULATED, trip.id, {"total_fare": trip.total_fare})
    return trip


@router.get("/{trip_id}/fare-breakdown", response_model=FareBreakdownResponse)
async def get_fare_breakdown(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await trip_service.fare_breakdown(db, trip_id)


@router.post("/{trip_id}/rating", response_model=TripResponse)
async def rate_trip(
    payload: TripRating,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    trip = await trip_service.rate_trip(db, trip_id, payload.rating, payload.comments)
    await _audit(db, current_user, AuditAction.TRIP_RATED, trip.id, {"rating": trip.rating})
    return trip
