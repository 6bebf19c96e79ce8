"""
Centralized Test Configuration.
"""

import pytest
from datetime import date, datetime, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from transport_backend.app.main import app
from transport_backend.app.db.session import get_db, Base
import transport_backend.app.core.redis_client as redis_client_module
from transport_backend.app.models.client import Client
from transport_backend.app.models.driver import Driver
from transport_backend.app.models.vehicle import Vehicle
from transport_backend.app.models.fleet_enums import (
    BodyType, ClientTier, ComfortLevel, FuelType, LicenseClass, VehicleCategory
)

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class MockRedis:
    """In-memory stand-in for the Redis commands the app uses."""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Fresh schema, dependency overrides and Redis for every test."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def _register(client, username: str) -> dict:
    response = await client.post("/v1/auth/register", json={
        "email": f"{username}@example.com",
        "username": username,
        "password": "secret123",
    })
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def admin_headers(client):
    """The first registered operator is the admin."""
    return await _register(client, "admin")


@pytest.fixture
async def dispatcher_headers(client, admin_headers):
    return await _register(client, "dispatcher")


@pytest.fixture
def tomorrow_morning():
    return (datetime.now() + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)


# Entity builders (transient objects for pure domain tests, or added to a session)

@pytest.fixture
def make_client():
    counter = iter(range(1, 10_000))

    def _make(tier=ClientTier.STANDARD, completed_trips=0, **overrides):
        n = next(counter)
        fields = dict(
            id=n,
            document_number=f"CC{n:06d}",
            full_name=f"Client {n}",
            tier=tier,
            completed_trips=completed_trips,
            is_active=True,
        )
        fields.update(overrides)
        return Client(**fields)

    return _make


@pytest.fixture
def make_driver():
    counter = iter(range(1, 10_000))

    def _make(license_class=LicenseClass.B2, **overrides):
        n = next(counter)
        fields = dict(
            id=n,
            document_number=f"DR{n:06d}",
            full_name=f"Driver {n}",
            license_number=f"LIC{n:07d}",
            license_class=license_class,
            license_expiry=date.today() + timedelta(days=730),
            years_experience=5,
            is_available=True,
            completed_trips=0,
            is_active=True,
        )
        fields.update(overrides)
        return Driver(**fields)

    return _make


@pytest.fixture
def make_vehicle():
    counter = iter(range(1, 10_000))

    def _make(category=VehicleCategory.TRUCK, **overrides):
        n = next(counter)
        passenger = category in (
            VehicleCategory.MOTORCYCLE, VehicleCategory.CAR, VehicleCategory.TAXI, VehicleCategory.BUS
        )
        fields = dict(
            id=n,
            plate=f"ABC{n:03d}",
            make="Volvo",
            model="FH",
            year=date.today().year,
            category=category,
            body_type=BodyType.PASSENGER if passenger else BodyType.CARGO,
            is_available=True,
            odometer_km=1000.0,
            last_inspection_date=date.today() - timedelta(days=30),
            insurance_expiry_date=date.today() + timedelta(days=365),
            has_crane=False,
            has_refrigeration=False,
            has_cargo_security=False,
            has_air_conditioning=False,
            has_entertainment=False,
            has_wifi=False,
            is_accessible=False,
            is_active=True,
        )
        if passenger:
            fields.update(passenger_capacity=4, comfort_level=ComfortLevel.BASIC, fuel_type=FuelType.GASOLINE)
        else:
            fields.update(max_payload_tons=10.0, axle_count=2)
        fields.update(overrides)
        return Vehicle(**fields)

    return _make


@pytest.fixture
async def fleet(db_session, make_client, make_driver, make_vehicle):
    """A persisted client, a B2 driver and an available truck."""
    client = make_client(id=None)
    driver = make_driver(id=None)
    vehicle = make_vehicle(id=None)
    db_session.add_all([client, driver, vehicle])
    await db_session.commit()
    for entity in (client, driver, vehicle):
        await db_session.refresh(entity)
    return {"client": client, "driver": driver, "vehicle": vehicle}
