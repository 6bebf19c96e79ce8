"""
Fleet registry service.

Registers and looks up clients, drivers and vehicles, finds resources that
can be dispatched for a vehicle category and summarises the fleet.
"""

import re
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from transport_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from transport_backend.app.domain.eligibility import (
    can_drive,
    driver_license_valid,
    eligibility_failures,
    license_number_valid,
    vehicle_documents_valid,
)
from transport_backend.app.domain.pricing.vehicle_rates import (
    CATEGORY_BASE_RATES,
    CATEGORY_SEATS,
    body_type_for_category,
    default_axle_count,
    load_factor,
    rate_model_for,
)
from transport_backend.app.domain.trips.lifecycle import TripLifecycle
from transport_backend.app.models.client import Client
from transport_backend.app.models.driver import Driver
from transport_backend.app.models.fleet_enums import (
    BodyType, ClientTier, ComfortLevel, FuelType, VehicleCategory
)
from transport_backend.app.models.trip import Trip
from transport_backend.app.models.trip_enums import TripStatus
from transport_backend.app.models.vehicle import Vehicle
from transport_backend.app.schemas.fleet import ClientCreate, DriverCreate, VehicleCreate

PLATE_PATTERN = re.compile(r"^[A-Z]{3}[0-9]{3}$")
MAX_PAYLOAD_TONS = 50
MIN_AXLES, MAX_AXLES = 2, 6
MIN_PASSENGERS, MAX_PASSENGERS = 1, 60


async def _get(db: AsyncSession, model, resource: str, resource_id: int):
    result = await db.execute(select(model).where(model.id == resource_id))
    instance = result.scalar_one_or_none()
    if instance is None:
        raise ResourceNotFoundError(resource, resource_id)
    return instance


async def get_client(db: AsyncSession, client_id: int) -> Client:
    return await _get(db, Client, "Client", client_id)


async def get_driver(db: AsyncSession, driver_id: int) -> Driver:
    return await _get(db, Driver, "Driver", driver_id)


async def get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    return await _get(db, Vehicle, "Vehicle", vehicle_id)


async def _ensure_unique(db: AsyncSession, column, value, field: str) -> None:
    result = await db.execute(select(func.count()).where(column == value))
    if result.scalar() > 0:
        raise ValidationError(field, value, "is already registered")


async def create_client(db: AsyncSession, payload: ClientCreate) -> Client:
    await _ensure_unique(db, Client.document_number, payload.document_number, "document_number")
    client = Client(
        document_number=payload.document_number,
        full_name=payload.full_name.strip(),
        email=payload.email,
        phone=payload.phone,
        company_name=payload.company_name,
        tier=ClientTier.CORPORATE if payload.company_name else ClientTier.STANDARD,
        completed_trips=0,
        is_active=True,
    )
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


async def create_driver(db: AsyncSession, payload: DriverCreate) -> Driver:
    license_number = payload.license_number.strip().upper()
    if not license_number_valid(license_number):
        raise ValidationError("license_number", payload.license_number, "must be 8-15 letters or digits")
    await _ensure_unique(db, Driver.document_number, payload.document_number, "document_number")

    driver = Driver(
        document_number=payload.document_number,
        full_name=payload.full_name.strip(),
        phone=payload.phone,
        license_number=license_number,
        license_class=payload.license_class,
        license_expiry=payload.license_expiry,
        years_experience=payload.years_experience,
        is_available=True,
        completed_trips=0,
        is_active=True,
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    return driver


def build_vehicle(payload: VehicleCreate, today: Optional[date] = None) -> Vehicle:
    """Validate a registration and fill in body-specific defaults."""
    today = today or date.today()
    plate = payload.plate.strip().upper()
    if not PLATE_PATTERN.match(plate):
        raise ValidationError("plate", payload.plate, "must be three letters followed by three digits")
    if payload.year > today.year + 1:
        raise ValidationError("year", payload.year, f"must not be after {today.year + 1}")

    body_type = body_type_for_category(payload.category)
    if payload.body_type is not None and payload.body_type != body_type:
        raise ValidationError(
            "body_type", payload.body_type.value,
            f"{payload.category.value} requires a {body_type.value} body"
        )

    vehicle = Vehicle(
        plate=plate,
        make=payload.make.strip(),
        model=payload.model.strip(),
        year=payload.year,
        category=payload.category,
        body_type=body_type,
        is_available=True,
        odometer_km=payload.odometer_km,
        last_inspection_date=payload.last_inspection_date,
        insurance_expiry_date=payload.insurance_expiry_date,
        has_crane=False,
        has_refrigeration=False,
        has_cargo_security=False,
        has_air_conditioning=False,
        has_entertainment=False,
        has_wifi=False,
        is_accessible=False,
        is_active=True,
    )

    if body_type == BodyType.CARGO:
        payload_tons = payload.max_payload_tons
        if payload_tons is None or payload_tons <= 0 or payload_tons > MAX_PAYLOAD_TONS:
            raise ValidationError(
                "max_payload_tons", payload_tons, f"must be greater than 0 and at most {MAX_PAYLOAD_TONS}"
            )
        axles = payload.axle_count if payload.axle_count is not None else default_axle_count(payload_tons)
        if axles < MIN_AXLES or axles > MAX_AXLES:
            raise ValidationError("axle_count", axles, f"must be between {MIN_AXLES} and {MAX_AXLES}")
        vehicle.max_payload_tons = payload_tons
        vehicle.axle_count = axles
        vehicle.has_crane = payload.has_crane
        vehicle.has_refrigeration = payload.has_refrigeration
        vehicle.has_cargo_security = payload.has_cargo_security
    else:
        capacity = payload.passenger_capacity
        if capacity is None:
            capacity = CATEGORY_SEATS[payload.category]
        if capacity < MIN_PASSENGERS or capacity > MAX_PASSENGERS:
            raise ValidationError(
                "passenger_capacity", capacity, f"must be between {MIN_PASSENGERS} and {MAX_PASSENGERS}"
            )
        vehicle.passenger_capacity = capacity
        vehicle.comfort_level = payload.comfort_level or ComfortLevel.STANDARD
        vehicle.fuel_type = payload.fuel_type or FuelType.GASOLINE
        vehicle.has_air_conditioning = payload.has_air_conditioning
        vehicle.has_entertainment = payload.has_entertainment
        vehicle.has_wifi = payload.has_wifi
        vehicle.is_accessible = payload.is_accessible
    return vehicle


async def create_vehicle(db: AsyncSession, payload: VehicleCreate) -> Vehicle:
    vehicle = build_vehicle(payload)
    await _ensure_unique(db, Vehicle.plate, vehicle.plate, "plate")
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


async def list_clients(db: AsyncSession, skip: int = 0, limit: int = 50) -> List[Client]:
    result = await db.execute(select(Client).order_by(Client.id).offset(skip).limit(limit))
    return result.scalars().all()


async def list_drivers(db: AsyncSession, available: Optional[bool] = None, skip: int = 0, limit: int = 50) -> List[Driver]:
    query = select(Driver).where(Driver.is_active == True)  # noqa: E712
    if available is not None:
        query = query.where(Driver.is_available == available)
    result = await db.execute(query.order_by(Driver.id).offset(skip).limit(limit))
    return result.scalars().all()


async def list_vehicles(
    db: AsyncSession,
    category: Optional[VehicleCategory] = None,
    available: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Vehicle]:
    query = select(Vehicle).where(Vehicle.is_active == True)  # noqa: E712
    if category is not None:
        query = query.where(Vehicle.category == category)
    if available is not None:
        query = query.where(Vehicle.is_available == available)
    result = await db.execute(query.order_by(Vehicle.id).offset(skip).limit(limit))
    return result.scalars().all()


async def available_drivers(
    db: AsyncSession,
    category: Optional[VehicleCategory] = None,
    today: Optional[date] = None,
) -> List[Driver]:
    """Available drivers with a valid license, optionally able to drive ``category``."""
    today = today or date.today()
    drivers = await list_drivers(db, available=True, limit=None)
    return [
        d for d in drivers
        if driver_license_valid(d, today) and (category is None or can_drive(d.license_class, category))
    ]


async def available_vehicles(
    db: AsyncSession,
    category: Optional[VehicleCategory] = None,
    today: Optional[date] = None,
) -> List[Vehicle]:
    """Available vehicles whose documentation is in order."""
    today = today or date.today()
    vehicles = await list_vehicles(db, category=category, available=True, limit=None)
    return [v for v in vehicles if vehicle_documents_valid(v, today)]


async def vehicle_rate_details(db: AsyncSession, vehicle_id: int, today: Optional[date] = None) -> dict:
    vehicle = await get_vehicle(db, vehicle_id)
    model = rate_model_for(vehicle)
    return {
        "vehicle_id": vehicle.id,
        "body_type": vehicle.body_type,
        "category_rate": CATEGORY_BASE_RATES[vehicle.category],
        "load_factor": load_factor(model.capacity_metric(vehicle)),
        "efficiency_factor": model.efficiency_factor(vehicle, today),
        "base_rate": model.base_rate(vehicle, today),
        "documents_valid": vehicle_documents_valid(vehicle, today),
    }


async def eligibility_report(
    db: AsyncSession,
    driver_id: int,
    vehicle_id: int,
    today: Optional[date] = None,
) -> dict:
    driver = await get_driver(db, driver_id)
    vehicle = await get_vehicle(db, vehicle_id)
    failures = eligibility_failures(driver, vehicle, today)
    return {
        "driver_id": driver.id,
        "vehicle_id": vehicle.id,
        "eligible": not failures,
        "failures": failures,
    }


async def fleet_stats(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """Counts of registered and available resources, trips and revenue."""
    now = now or datetime.now()

    async def count(query) -> int:
        return (await db.execute(query)).scalar() or 0

    status_rows = await db.execute(select(Trip.status, func.count(Trip.id)).group_by(Trip.status))
    trips_by_status = {status.value: 0 for status in TripStatus}
    for status, total in status_rows.all():
        trips_by_status[status.value] = total

    open_trips = await db.execute(
        select(Trip).where(Trip.status.in_([TripStatus.SCHEDULED, TripStatus.CONFIRMED, TripStatus.IN_PROGRESS]))
    )
    overdue = sum(1 for trip in open_trips.scalars().all() if TripLifecycle(trip, client=None).is_overdue(now))

    revenue = await db.execute(
        select(func.coalesce(func.sum(Trip.total_fare), 0.0)).where(Trip.status == TripStatus.COMPLETED)
    )

    return {
        "clients": await count(select(func.count(Client.id))),
        "drivers": await count(select(func.count(Driver.id)).where(Driver.is_active == True)),  # noqa: E712
        "vehicles": await count(select(func.count(Vehicle.id)).where(Vehicle.is_active == True)),  # noqa: E712
        "available_drivers": await count(
            select(func.count(Driver.id)).where(Driver.is_active == True, Driver.is_available == True)  # noqa: E712
        ),
        "available_vehicles": await count(
            select(func.count(Vehicle.id)).where(Vehicle.is_active == True, Vehicle.is_available == True)  # noqa: E712
        ),
        "trips_by_status": trips_by_status,
        "overdue_trips": overdue,
        "completed_revenue": float(revenue.scalar() or 0.0),
    }
