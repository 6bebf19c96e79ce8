"""
Vehicle database model.

One table for both body types; ``body_type`` selects which attribute group
(cargo or passenger) is meaningful and which rate model prices the vehicle.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Enum
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.fleet_enums import VehicleCategory, BodyType, ComfortLevel, FuelType


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    plate = Column(String(6), unique=True, nullable=False, index=True)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)
    category = Column(Enum(VehicleCategory), nullable=False, index=True)
    body_type = Column(Enum(BodyType), nullable=False)

    # Dispatch state
    is_available = Column(Boolean, default=True, nullable=False, index=True)
    odometer_km = Column(Float, default=0.0, nullable=False)

    # Documentation
    last_inspection_date = Column(Date, nullable=False)
    insurance_expiry_date = Column(Date, nullable=False)

    # Cargo attributes
    max_payload_tons = Column(Float, nullable=True)
    has_crane = Column(Boolean, default=False, nullable=False)
    has_refrigeration = Column(Boolean, default=False, nullable=False)
    has_cargo_security = Column(Boolean, default=True, nullable=False)
    axle_count = Column(Integer, nullable=True)

    # Passenger attributes
    passenger_capacity = Column(Integer, nullable=True)
    comfort_level = Column(Enum(ComfortLevel), nullable=True)
    has_air_conditioning = Column(Boolean, default=False, nullable=False)
    has_entertainment = Column(Boolean, default=False, nullable=False)
    has_wifi = Column(Boolean, default=False, nullable=False)
    is_accessible = Column(Boolean, default=False, nullable=False)
    fuel_type = Column(Enum(FuelType), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.plate}', category='{self.category.value}', available={self.is_available})>"
