"""
Seed a development database.

Creates an admin and a dispatcher account plus a small fleet: two clients,
three drivers and four vehicles covering both body types.

Run from the repository root after the database is reachable:

    python -m scripts.seed_demo_fleet
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select

from transport_backend.app.core.security import get_password_hash
from transport_backend.app.db.session import AsyncSessionLocal, init_models
from transport_backend.app.models.fleet_enums import ComfortLevel, FuelType, LicenseClass, VehicleCategory
from transport_backend.app.models.user import User, UserRole
from transport_backend.app.schemas.fleet import ClientCreate, DriverCreate, VehicleCreate
from transport_backend.app.services import fleet_service

import transport_backend.app.main  # noqa: F401  registers every model with Base

OPERATORS = [
    ("admin", "admin@transport.local", "admin123", UserRole.ADMIN),
    ("dispatch", "dispatch@transport.local", "dispatch123", UserRole.DISPATCHER),
]


def _clients():
    return [
        ClientCreate(document_number="CC52123456", full_name="Laura Gomez", phone="3001234567"),
        ClientCreate(document_number="NIT9001234", full_name="Maria Torres", company_name="Andes Cargo SAS"),
    ]


def _drivers(today: date):
    expiry = today + timedelta(days=3 * 365)
    return [
        DriverCreate(document_number="DR1000001", full_name="Carlos Ruiz", license_number="B2LIC000001",
                     license_class=LicenseClass.B2, license_expiry=expiry, years_experience=12),
        DriverCreate(document_number="DR1000002", full_name="Ana Perez", license_number="C1LIC000002",
                     license_class=LicenseClass.C1, license_expiry=expiry, years_experience=4),
        DriverCreate(document_number="DR1000003", full_name="Jorge Rios", license_number="A2LIC000003",
                     license_class=LicenseClass.A2, license_expiry=expiry, years_experience=2),
    ]


def _vehicles(today: date):
    docs = dict(
        last_inspection_date=today - timedelta(days=60),
        insurance_expiry_date=today + timedelta(days=300),
    )
    return [
        VehicleCreate(plate="TRK101", make="Kenworth", model="T800", year=today.year - 3,
                      category=VehicleCategory.TRUCK, max_payload_tons=18, has_refrigeration=True, **docs),
        VehicleCreate(plate="VAN202", make="Renault", model="Master", year=today.year - 7,
                      category=VehicleCategory.VAN, max_payload_tons=3.5, **docs),
        VehicleCreate(plate="TAX303", make="Hyundai", model="Accent", year=today.year - 1,
                      category=VehicleCategory.TAXI, comfort_level=ComfortLevel.STANDARD,
                      fuel_type=FuelType.HYBRID, has_air_conditioning=True, **docs),
        VehicleCreate(plate="BUS404", make="Mercedes", model="O500", year=today.year - 9,
                      category=VehicleCategory.BUS, passenger_capacity=42, comfort_level=ComfortLevel.PREMIUM,
                      fuel_type=FuelType.DIESEL, has_wifi=True, is_accessible=True, **docs),
    ]


async def seed():
    await init_models()
    today = date.today()

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("Admin already exists, skipping seeding")
            return

        for username, email, password, role in OPERATORS:
            db.add(User(
                email=email,
                username=username,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True,
            ))
            print(f"Created {role.value} {username} / {password}")
        await db.commit()

        for payload in _clients():
            client = await fleet_service.create_client(db, payload)
            print(f"Created client {client.full_name} ({client.tier.value})")
        for payload in _drivers(today):
            driver = await fleet_service.create_driver(db, payload)
            print(f"Created driver {driver.full_name} ({driver.license_class.value})")
        for payload in _vehicles(today):
            vehicle = await fleet_service.create_vehicle(db, payload)
            print(f"Created vehicle {vehicle.plate} ({vehicle.category.value})")

    print("Seeding completed")


if __name__ == "__main__":
    asyncio.run(seed())
