"""
Trip database model.

A scheduled transport job: route, timing, assigned resources and the
computed fare. Resources are referenced by id; the lifecycle logic in
``app.domain.trips`` works on the looked-up entities.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.trip_enums import TripStatus, FareStrategyCode


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(12), unique=True, nullable=False, index=True)

    # Route
    origin = Column(String(100), nullable=False)
    destination = Column(String(100), nullable=False)
    distance_km = Column(Float, nullable=False)
    estimated_duration_min = Column(Integer, nullable=False)

    # Schedule and execution (naive local wall-clock times)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    status = Column(Enum(TripStatus), default=TripStatus.SCHEDULED, nullable=False, index=True)

    # Parties
    client_id = Column(Integer, ForeignKey('clients.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)

    # Pricing
    fare_strategy = Column(Enum(FareStrategyCode), default=FareStrategyCode.STANDARD, nullable=False)
    total_fare = Column(Float, nullable=True)
    additional_cost = Column(Float, default=0.0, nullable=False)
    is_urgent = Column(Boolean, default=False, nullable=False)
    is_night = Column(Boolean, default=False, nullable=False)

    # Odometer readings
    start_odometer_km = Column(Float, nullable=True)
    end_odometer_km = Column(Float, nullable=True)

    # Feedback
    rating = Column(Float, nullable=True)
    client_comments = Column(String(500), nullable=True)
    notes = Column(Text, default="", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, code='{self.code}', status='{self.status.value}')>"
