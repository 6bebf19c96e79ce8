"""
Trip Schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from transport_backend.app.models.trip_enums import FareStrategyCode, TripStatus


class TripCreate(BaseModel):
    """
    Schema for scheduling a trip.

    Field rules (length, distance limits, future time) are enforced by the
    trip lifecycle so every caller gets the same validation errors.
    """
    client_id: int
    origin: str
    destination: str
    scheduled_at: datetime
    distance_km: float
    is_urgent: bool = False
    additional_cost: float = 0.0
    fare_strategy: Optional[FareStrategyCode] = None


class TripResourceAssign(BaseModel):
    driver_id: int
    vehicle_id: int


class TripCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=300)


class TripNote(BaseModel):
    text: str = Field(..., max_length=1000)


class TripChargesUpdate(BaseModel):
    is_urgent: Optional[bool] = None
    additional_cost: Optional[float] = None


class TripRating(BaseModel):
    rating: float
    comments: Optional[str] = Field(None, max_length=500)


class TripResponse(BaseModel):
    id: int
    code: str
    origin: str
    destination: str
    distance_km: float
    estimated_duration_min: int
    scheduled_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    status: TripStatus
    client_id: int
    driver_id: Optional[int]
    vehicle_id: Optional[int]
    fare_strategy: FareStrategyCode
    total_fare: Optional[float]
    additional_cost: float
    is_urgent: bool
    is_night: bool
    start_odometer_km: Optional[float]
    end_odometer_km: Optional[float]
    rating: Optional[float]
    client_comments: Optional[str]
    notes: str

    class Config:
        from_attributes = True


class TripCompleteResponse(BaseModel):
    trip: TripResponse
    mileage_updated: bool
    mileage_error: Optional[str] = None
    locks_released: int


class TripCancelResponse(BaseModel):
    trip: TripResponse
    released_resources: List[str]


class TripStatusResponse(BaseModel):
    trip_id: int
    status: TripStatus
    is_overdue: bool
    actual_duration_minutes: int
    minutes_until_departure: int


class FareAdjustment(BaseModel):
    label: str
    amount: float


class FareBreakdownResponse(BaseModel):
    trip_id: int
    strategy: FareStrategyCode
    vehicle_rate: float
    distance_km: float
    distance_factor: float
    subtotal: float
    adjustments: List[FareAdjustment]
    minimum_fare: float
    minimum_applied: bool
    strategy_total: float
    additional_cost: float
    urgent_multiplier: Optional[float]
    night_multiplier: Optional[float]
    total_fare: float
    text: str
