"""
Fleet API Endpoints.

Register and look up clients, drivers and vehicles; find dispatchable
resources; check driver/vehicle eligibility; fleet statistics.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from transport_backend.app.db.session import get_db
from transport_backend.app.models.fleet_enums import VehicleCategory
from transport_backend.app.schemas.fleet import (
    ClientCreate, ClientResponse,
    DriverCreate, DriverResponse,
    VehicleCreate, VehicleResponse, VehicleRateResponse,
    EligibilityResponse, FleetStatsResponse,
)
from transport_backend.app.core.guards import require_operator
from transport_backend.app.services import fleet_service
from transport_backend.app.services.audit import log_event, AuditAction

router = APIRouter(tags=["Fleet"])


# Clients

@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    client = await fleet_service.create_client(db, payload)
    await log_event(
        db=db,
        action=AuditAction.CLIENT_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="CLIENT",
        entity_id=client.id,
        metadata={"tier": client.tier.value}
    )
    return client


@router.get("/clients", response_model=List[ClientResponse])
async def list_clients(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.list_clients(db, skip=skip, limit=limit)


@router.get("/clients/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int = Path(..., description="Client ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.get_client(db, client_id)


# Drivers

@router.post("/drivers", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    payload: DriverCreate,
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    driver = await fleet_service.create_driver(db, payload)
    await log_event(
        db=db,
        action=AuditAction.DRIVER_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="DRIVER",
        entity_id=driver.id,
        metadata={"license_class": driver.license_class.value}
    )
    return driver


@router.get("/drivers", response_model=List[DriverResponse])
async def list_drivers(
    available: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.list_drivers(db, available=available, skip=skip, limit=limit)


@router.get("/drivers/available", response_model=List[DriverResponse])
async def list_available_drivers(
    category: Optional[VehicleCategory] = Query(None, description="Only drivers licensed for this category"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Available drivers holding a valid license."""
    return await fleet_service.available_drivers(db, category)


@router.get("/drivers/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.get_driver(db, driver_id)


# Vehicles

@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await fleet_service.create_vehicle(db, payload)
    await log_event(
        db=db,
        action=AuditAction.VEHICLE_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="VEHICLE",
        entity_id=vehicle.id,
        metadata={"plate": vehicle.plate, "category": vehicle.category.value}
    )
    return vehicle


@router.get("/vehicles", response_model=List[VehicleResponse])
async def list_vehicles(
    category: Optional[VehicleCategory] = Query(None),
    available: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.list_vehicles(db, category=category, available=available, skip=skip, limit=limit)


@router.get("/vehicles/available", response_model=List[VehicleResponse])
async def list_available_vehicles(
    category: Optional[VehicleCategory] = Query(None),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Available vehicles with valid insurance and inspection."""
    return await fleet_service.available_vehicles(db, category)


@router.get("/vehicles/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.get_vehicle(db, vehicle_id)


@router.get("/vehicles/{vehicle_id}/base-rate", response_model=VehicleRateResponse)
async def get_vehicle_base_rate(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Per-km base rate with its load and efficiency factors."""
    return await fleet_service.vehicle_rate_details(db, vehicle_id)


# Dispatch helpers

@router.get("/eligibility", response_model=EligibilityResponse)
async def check_eligibility(
    driver_id: int = Query(...),
    vehicle_id: int = Query(...),
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    """Report every failed check for pairing a driver with a vehicle."""
    return await fleet_service.eligibility_report(db, driver_id, vehicle_id)


@router.get("/fleet/stats", response_model=FleetStatsResponse)
async def get_fleet_stats(
    current_user: dict = Depends(require_operator),
    db: AsyncSession = Depends(get_db)
):
    return await fleet_service.fleet_stats(db)
