"""
Vehicle Rate Model.

Per-kilometre base rate of a vehicle:

    category rate x load factor x efficiency factor

The load factor grows with capacity (payload tons for cargo bodies, seats
for passenger bodies). The efficiency factor adds equipment bonuses and
subtracts an age penalty, then is clamped to a per-body range.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from transport_backend.app.models.fleet_enums import BodyType, ComfortLevel, FuelType, VehicleCategory

CATEGORY_BASE_RATES = {
    VehicleCategory.MOTORCYCLE: 15000.0,
    VehicleCategory.CAR: 25000.0,
    VehicleCategory.PICKUP: 35000.0,
    VehicleCategory.TAXI: 20000.0,
    VehicleCategory.VAN: 45000.0,
    VehicleCategory.TRUCK: 80000.0,
    VehicleCategory.BUS: 60000.0,
}

CATEGORY_SEATS = {
    VehicleCategory.MOTORCYCLE: 2,
    VehicleCategory.CAR: 5,
    VehicleCategory.PICKUP: 7,
    VehicleCategory.TAXI: 4,
    VehicleCategory.VAN: 0,
    VehicleCategory.TRUCK: 0,
    VehicleCategory.BUS: 40,
}

PASSENGER_CATEGORIES = frozenset({
    VehicleCategory.MOTORCYCLE,
    VehicleCategory.CAR,
    VehicleCategory.TAXI,
    VehicleCategory.BUS,
})

COMFORT_BONUS = {
    ComfortLevel.LUXURY: 0.25,
    ComfortLevel.PREMIUM: 0.15,
    ComfortLevel.STANDARD: 0.05,
    ComfortLevel.BASIC: 0.0,
}

ECO_FUELS = frozenset({FuelType.ELECTRIC, FuelType.HYBRID})


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def transports_passengers(category: VehicleCategory) -> bool:
    return category in PASSENGER_CATEGORIES


def body_type_for_category(category: VehicleCategory) -> BodyType:
    return BodyType.PASSENGER if transports_passengers(category) else BodyType.CARGO


def default_axle_count(max_payload_tons: float) -> int:
    return 3 if max_payload_tons > 10 else 2


def vehicle_age(vehicle, today: Optional[date] = None) -> int:
    today = today or date.today()
    return today.year - vehicle.year


def load_factor(capacity: float) -> float:
    return 1 + (capacity / 10) * 0.1


class RateModel(ABC):
    """Base rate computation for one vehicle body type."""

    body_type: BodyType
    min_efficiency: float = 0.8
    max_efficiency: float = 1.2

    @abstractmethod
    def capacity_metric(self, vehicle) -> float:
        ...

    @abstractmethod
    def raw_efficiency(self, vehicle, age: int) -> float:
        ...

    def efficiency_factor(self, vehicle, today: Optional[date] = None) -> float:
        factor = self.raw_efficiency(vehicle, vehicle_age(vehicle, today))
        return max(self.min_efficiency, min(self.max_efficiency, factor))

    def base_rate(self, vehicle, today: Optional[date] = None) -> float:
        rate = (
            CATEGORY_BASE_RATES[vehicle.category]
            * load_factor(self.capacity_metric(vehicle))
            * self.efficiency_factor(vehicle, today)
        )
        return round_half_up(rate, 2)


class CargoRateModel(RateModel):
    body_type = BodyType.CARGO

    def capacity_metric(self, vehicle) -> float:
        return vehicle.max_payload_tons or 0.0

    def raw_efficiency(self, vehicle, age: int) -> float:
        factor = 1.0
        if vehicle.has_crane:
            factor += 0.10
        if vehicle.has_refrigeration:
            factor += 0.15
        if vehicle.has_cargo_security:
            factor += 0.05

        if age > 10:
            factor -= 0.10
        elif age > 5:
            factor -= 0.05

        axles = vehicle.axle_count or 2
        if axles > 2:
            factor += (axles - 2) * 0.05
        return factor


class PassengerRateModel(RateModel):
    body_type = BodyType.PASSENGER
    max_efficiency = 1.3

    def capacity_metric(self, vehicle) -> float:
        return vehicle.passenger_capacity or 0

    def raw_efficiency(self, vehicle, age: int) -> float:
        factor = 1.0 + COMFORT_BONUS.get(vehicle.comfort_level, 0.0)
        if vehicle.has_air_conditioning:
            factor += 0.05
        if vehicle.has_entertainment:
            factor += 0.05
        if vehicle.has_wifi:
            factor += 0.03
        if vehicle.is_accessible:
            factor += 0.08
        if vehicle.fuel_type in ECO_FUELS:
            factor += 0.10

        if age > 8:
            factor -= 0.15
        elif age > 4:
            factor -= 0.08
        return factor


RATE_MODELS = {
    BodyType.CARGO: CargoRateModel(),
    BodyType.PASSENGER: PassengerRateModel(),
}


def rate_model_for(vehicle) -> RateModel:
    return RATE_MODELS[vehicle.body_type]


def vehicle_base_rate(vehicle, today: Optional[date] = None) -> float:
    """Per-km base rate of ``vehicle``, rounded to 2 decimal places."""
    return rate_model_for(vehicle).base_rate(vehicle, today)
