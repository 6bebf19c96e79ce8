"""
Fleet Enums.

Clients, drivers and vehicles classification values.
"""

import enum


class VehicleCategory(str, enum.Enum):
    MOTORCYCLE = "MOTORCYCLE"
    CAR = "CAR"
    PICKUP = "PICKUP"
    TAXI = "TAXI"
    VAN = "VAN"
    TRUCK = "TRUCK"
    BUS = "BUS"


class BodyType(str, enum.Enum):
    """Selects the rate model applied to a vehicle."""
    CARGO = "CARGO"
    PASSENGER = "PASSENGER"


class LicenseClass(str, enum.Enum):
    A1 = "A1"  # motorcycles up to 125cc
    A2 = "A2"  # motorcycles above 125cc
    B1 = "B1"  # cars and pickups
    B2 = "B2"  # trucks and buses
    B3 = "B3"  # articulated vehicles
    C1 = "C1"  # public service: cars and taxis
    C2 = "C2"  # public service: buses and trucks
    C3 = "C3"  # public service: articulated


class ClientTier(str, enum.Enum):
    """Ordered from lowest to highest; promotion only moves forward."""
    STANDARD = "STANDARD"
    FREQUENT = "FREQUENT"
    CORPORATE = "CORPORATE"
    VIP = "VIP"


class ComfortLevel(str, enum.Enum):
    BASIC = "BASIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    LUXURY = "LUXURY"


class FuelType(str, enum.Enum):
    GASOLINE = "GASOLINE"
    DIESEL = "DIESEL"
    ELECTRIC = "ELECTRIC"
    HYBRID = "HYBRID"
    LPG = "LPG"
    CNG = "CNG"


class ResourceType(str, enum.Enum):
    DRIVER = "DRIVER"
    VEHICLE = "VEHICLE"
