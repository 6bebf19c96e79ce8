"""
Vehicle Rate Model tests.

Base rate = category rate x load factor x clamped efficiency factor.
"""

import pytest
from datetime import date

from transport_backend.app.domain.pricing.vehicle_rates import (
    CargoRateModel,
    PassengerRateModel,
    body_type_for_category,
    default_axle_count,
    load_factor,
    round_half_up,
    vehicle_base_rate,
)
from transport_backend.app.models.fleet_enums import BodyType, ComfortLevel, FuelType, VehicleCategory

TODAY = date(2026, 6, 1)


def test_load_factor_grows_with_capacity():
    assert load_factor(0) == 1.0
    assert load_factor(10) == pytest.approx(1.1)
    assert load_factor(40) == pytest.approx(1.4)


def test_equipped_cargo_efficiency_is_capped(make_vehicle):
    truck = make_vehicle(
        VehicleCategory.TRUCK, year=2026, max_payload_tons=10.0, axle_count=3,
        has_crane=True, has_refrigeration=True, has_cargo_security=True,
    )
    # 1 + .10 + .15 + .05 + .05 = 1.35, capped at 1.2
    assert CargoRateModel().efficiency_factor(truck, TODAY) == pytest.approx(1.2)
    assert vehicle_base_rate(truck, TODAY) == 105600.0


def test_old_cargo_vehicle_pays_age_penalty(make_vehicle):
    truck = make_vehicle(VehicleCategory.TRUCK, year=2014, max_payload_tons=20.0, axle_count=2)
    assert CargoRateModel().efficiency_factor(truck, TODAY) == pytest.approx(0.9)
    assert vehicle_base_rate(truck, TODAY) == 86400.0


@pytest.mark.parametrize("year, expected", [
    (2026, 1.0),
    (2021, 1.0),   # 5 years: no penalty yet
    (2020, 0.95),  # more than 5
    (2016, 0.95),  # exactly 10
    (2015, 0.90),  # more than 10
])
def test_cargo_age_steps(make_vehicle, year, expected):
    van = make_vehicle(VehicleCategory.VAN, year=year, axle_count=2)
    assert CargoRateModel().efficiency_factor(van, TODAY) == pytest.approx(expected)


def test_each_extra_axle_adds_five_percent(make_vehicle):
    truck = make_vehicle(VehicleCategory.TRUCK, year=2026, axle_count=4)
    assert CargoRateModel().efficiency_factor(truck, TODAY) == pytest.approx(1.10)


def test_luxury_passenger_efficiency_is_capped(make_vehicle):
    car = make_vehicle(
        VehicleCategory.CAR, year=2026, passenger_capacity=5, comfort_level=ComfortLevel.LUXURY,
        has_air_conditioning=True, has_entertainment=True, has_wifi=True, is_accessible=True,
        fuel_type=FuelType.ELECTRIC,
    )
    assert PassengerRateModel().efficiency_factor(car, TODAY) == pytest.approx(1.3)
    assert vehicle_base_rate(car, TODAY) == 34125.0


def test_old_basic_taxi(make_vehicle):
    taxi = make_vehicle(
        VehicleCategory.TAXI, year=2017, passenger_capacity=4, comfort_level=ComfortLevel.BASIC,
    )
    # age 9: -0.15
    assert PassengerRateModel().efficiency_factor(taxi, TODAY) == pytest.approx(0.85)
    assert vehicle_base_rate(taxi, TODAY) == 17680.0


def test_passenger_bonuses_add_up(make_vehicle):
    bus = make_vehicle(
        VehicleCategory.BUS, year=2021, passenger_capacity=40, comfort_level=ComfortLevel.PREMIUM,
        has_wifi=True, fuel_type=FuelType.HYBRID,
    )
    # 1 + .15 + .03 + .10 - .08 (age 5)
    assert PassengerRateModel().efficiency_factor(bus, TODAY) == pytest.approx(1.20)


def test_body_type_follows_category():
    assert body_type_for_category(VehicleCategory.BUS) == BodyType.PASSENGER
    assert body_type_for_category(VehicleCategory.MOTORCYCLE) == BodyType.PASSENGER
    assert body_type_for_category(VehicleCategory.PICKUP) == BodyType.CARGO
    assert body_type_for_category(VehicleCategory.TRUCK) == BodyType.CARGO


def test_default_axles_depend_on_payload():
    assert default_axle_count(10) == 2
    assert default_axle_count(10.5) == 3


def test_round_half_up():
    assert round_half_up(2.675, 2) == 2.68
    assert round_half_up(1.005, 2) == 1.01
    assert round_half_up(10.0, 2) == 10.0
