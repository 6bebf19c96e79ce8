"""
Fleet Schemas.

Request and response schemas for clients, drivers and vehicles.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from typing import Dict, List, Optional
from transport_backend.app.models.fleet_enums import (
    BodyType, ClientTier, ComfortLevel, FuelType, LicenseClass, VehicleCategory
)


class ClientCreate(BaseModel):
    """Schema for registering a client. A company name makes it CORPORATE."""
    document_number: str = Field(..., min_length=5, max_length=20)
    full_name: str = Field(..., min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    company_name: Optional[str] = Field(None, max_length=150)


class ClientResponse(BaseModel):
    id: int
    document_number: str
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    company_name: Optional[str]
    tier: ClientTier
    completed_trips: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DriverCreate(BaseModel):
    document_number: str = Field(..., min_length=5, max_length=20)
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    license_number: str = Field(..., description="8-15 uppercase letters or digits")
    license_class: LicenseClass
    license_expiry: date
    years_experience: int = Field(0, ge=0, le=30)


class DriverResponse(BaseModel):
    id: int
    document_number: str
    full_name: str
    phone: Optional[str]
    license_number: str
    license_class: LicenseClass
    license_expiry: date
    years_experience: int
    is_available: bool
    completed_trips: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleCreate(BaseModel):
    """
    Schema for registering a vehicle.

    Cargo fields apply to PICKUP, VAN and TRUCK; passenger fields to
    MOTORCYCLE, CAR, TAXI and BUS. ``body_type`` is derived from the
    category when omitted.
    """
    plate: str = Field(..., description="Three letters followed by three digits, e.g. ABC123")
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)
    year: int = Field(..., ge=1980)
    category: VehicleCategory
    body_type: Optional[BodyType] = None
    odometer_km: float = Field(0.0, ge=0)
    last_inspection_date: date
    insurance_expiry_date: date

    # Cargo
    max_payload_tons: Optional[float] = None
    has_crane: bool = False
    has_refrigeration: bool = False
    has_cargo_security: bool = True
    axle_count: Optional[int] = None

    # Passenger
    passenger_capacity: Optional[int] = None
    comfort_level: Optional[ComfortLevel] = None
    has_air_conditioning: bool = False
    has_entertainment: bool = False
    has_wifi: bool = False
    is_accessible: bool = False
    fuel_type: Optional[FuelType] = None


class VehicleResponse(BaseModel):
    id: int
    plate: str
    make: str
    model: str
    year: int
    category: VehicleCategory
    body_type: BodyType
    is_available: bool
    odometer_km: float
    last_inspection_date: date
    insurance_expiry_date: date
    max_payload_tons: Optional[float]
    has_crane: bool
    has_refrigeration: bool
    has_cargo_security: bool
    axle_count: Optional[int]
    passenger_capacity: Optional[int]
    comfort_level: Optional[ComfortLevel]
    has_air_conditioning: bool
    has_entertainment: bool
    has_wifi: bool
    is_accessible: bool
    fuel_type: Optional[FuelType]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class VehicleRateResponse(BaseModel):
    vehicle_id: int
    body_type: BodyType
    category_rate: float
    load_factor: float
    efficiency_factor: float
    base_rate: float
    documents_valid: bool


class EligibilityResponse(BaseModel):
    driver_id: int
    vehicle_id: int
    eligible: bool
    failures: List[str]


class FleetStatsResponse(BaseModel):
    clients: int
    drivers: int
    vehicles: int
    available_drivers: int
    available_vehicles: int
    trips_by_status: Dict[str, int]
    overdue_trips: int
    completed_revenue: float
