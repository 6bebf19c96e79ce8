from datetime import date

from scripts.check_database import asyncpg_dsn
from scripts.seed_demo_fleet import _drivers, _vehicles
from transport_backend.app.domain.eligibility import license_number_valid
from transport_backend.app.services.fleet_service import build_vehicle


def test_asyncpg_dsn_strips_driver():
    url = "postgresql+asyncpg://user:pw@db:5432/transport_db"
    assert asyncpg_dsn(url) == "postgresql://user:pw@db:5432/transport_db"


def test_seed_fleet_passes_registration_rules():
    today = date(2026, 6, 1)
    vehicles = [build_vehicle(payload, today) for payload in _vehicles(today)]
    assert [v.body_type.value for v in vehicles] == ["CARGO", "CARGO", "PASSENGER", "PASSENGER"]
    assert all(license_number_valid(d.license_number) for d in _drivers(today))
