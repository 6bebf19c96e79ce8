"""
Trip Lifecycle.

State machine owning a trip's status, timestamps, resources and fare:

    SCHEDULED -> CONFIRMED -> IN_PROGRESS -> COMPLETED
    any non-terminal status -> CANCELLED

The lifecycle works on already looked-up entities (trip, client, driver,
vehicle) and never touches storage. Every rejected operation raises a
DomainError whose ``kind`` tells the caller which precondition failed.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from transport_backend.app.core.config import settings
from transport_backend.app.core.exceptions import (
    ComputationError,
    DomainError,
    InvalidTransitionError,
    MissingResourceError,
    ResourceUnavailableError,
    ValidationError,
)
from transport_backend.app.domain import clients as client_rules
from transport_backend.app.domain.eligibility import check_assignment
from transport_backend.app.domain.pricing.fare_strategies import FareStrategy, round_to_step
from transport_backend.app.models.trip import Trip
from transport_backend.app.models.trip_enums import FareStrategyCode, TripStatus

logger = logging.getLogger("transport.trips")

VALID_TRANSITIONS = {
    TripStatus.SCHEDULED: {TripStatus.CONFIRMED, TripStatus.IN_PROGRESS, TripStatus.CANCELLED},
    TripStatus.CONFIRMED: {TripStatus.IN_PROGRESS, TripStatus.CANCELLED},
    TripStatus.IN_PROGRESS: {TripStatus.COMPLETED, TripStatus.CANCELLED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
}

EDITABLE_STATUSES = (TripStatus.SCHEDULED, TripStatus.CONFIRMED)
DEFAULT_CANCEL_REASON = "No reason given"


def generate_trip_code() -> str:
    return f"TRP-{uuid.uuid4().hex[:8].upper()}"


def is_night_time(when: datetime) -> bool:
    return when.hour >= settings.night_start_hour or when.hour < settings.night_end_hour


def estimate_duration_minutes(distance_km: float) -> int:
    # Planning speed of 1 km per minute
    return math.ceil(distance_km / 1.0)


def _clean_location(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, value, "is required")
    value = value.strip()
    if len(value) < settings.location_min_length:
        raise ValidationError(field, value, f"must be at least {settings.location_min_length} characters")
    if len(value) > settings.location_max_length:
        raise ValidationError(field, value, f"must be at most {settings.location_max_length} characters")
    return value


def validate_distance(distance_km: float) -> None:
    if distance_km is None or distance_km <= 0:
        raise ValidationError("distance_km", distance_km, "must be greater than 0")
    if distance_km > settings.max_trip_distance_km:
        raise ValidationError(
            "distance_km", distance_km, f"must not exceed {settings.max_trip_distance_km:g} km"
        )


def validate_additional_cost(additional_cost: float) -> None:
    if additional_cost is None or additional_cost < 0:
        raise ValidationError("additional_cost", additional_cost, "must not be negative")


def default_strategy_for(client) -> FareStrategyCode:
    if client_rules.is_frequent(client):
        return FareStrategyCode.FREQUENT
    return FareStrategyCode.STANDARD


def schedule(
    origin: str,
    destination: str,
    scheduled_at: datetime,
    distance_km: float,
    client,
    *,
    is_urgent: bool = False,
    additional_cost: float = 0.0,
    fare_strategy: Optional[FareStrategyCode] = None,
    now: Optional[datetime] = None,
) -> Trip:
    """Validate the request and build a new SCHEDULED trip for ``client``."""
    now = now or datetime.now()
    origin = _clean_location("origin", origin)
    destination = _clean_location("destination", destination)
    if origin.lower() == destination.lower():
        raise ValidationError("destination", destination, "must differ from origin")
    validate_distance(distance_km)
    if scheduled_at is None:
        raise ValidationError("scheduled_at", scheduled_at, "is required")
    if scheduled_at < now:
        raise ValidationError("scheduled_at", scheduled_at, "must not be in the past")
    validate_additional_cost(additional_cost)

    return Trip(
        code=generate_trip_code(),
        origin=origin,
        destination=destination,
        distance_km=distance_km,
        estimated_duration_min=estimate_duration_minutes(distance_km),
        scheduled_at=scheduled_at,
        status=TripStatus.SCHEDULED,
        client_id=client.id,
        fare_strategy=fare_strategy or default_strategy_for(client),
        total_fare=None,
        additional_cost=additional_cost,
        is_urgent=is_urgent,
        is_night=is_night_time(scheduled_at),
        notes="",
    )


@dataclass
class CompletionOutcome:
    """Result of ``complete``; the odometer update may fail independently."""
    trip: Trip
    mileage_error: Optional[str] = None

    @property
    def mileage_updated(self) -> bool:
        return self.mileage_error is None


def finalize_fare(strategy_amount: float, trip) -> float:
    """Add the manual cost, then apply urgent and night surcharges in that order."""
    fare = strategy_amount + (trip.additional_cost or 0.0)
    if trip.is_urgent:
        fare *= settings.urgent_multiplier
    if trip.is_night:
        fare *= settings.night_multiplier
    return round_to_step(fare)


def update_odometer(vehicle, km: float) -> float:
    if km is None or km < 0:
        raise ValidationError("odometer_km", km, "must not be negative")
    vehicle.odometer_km = (vehicle.odometer_km or 0.0) + km
    return vehicle.odometer_km


class TripLifecycle:
    """
    Operations on one trip.

    ``clock`` returns the current local time; tests pass a fixed one.
    """

    def __init__(self, trip: Trip, client, driver=None, vehicle=None, clock: Callable[[], datetime] = datetime.now):
        self.trip = trip
        self.client = client
        self.driver = driver
        self.vehicle = vehicle
        self.clock = clock

    @property
    def status(self) -> TripStatus:
        return self.trip.status

    def _require(self, operation: str, allowed) -> None:
        if self.trip.status not in allowed:
            raise InvalidTransitionError(operation, self.trip.status, self.trip.id)

    def _transition(self, target: TripStatus) -> None:
        previous = self.trip.status
        if target not in VALID_TRANSITIONS[previous]:
            raise InvalidTransitionError(target.value.lower(), previous, self.trip.id)
        self.trip.status = target
        logger.info("Trip %s: %s -> %s", self.trip.code, previous.value, target.value)

    def _missing_resources(self) -> List[str]:
        missing = []
        if self.driver is None:
            missing.append("driver")
        if self.vehicle is None:
            missing.append("vehicle")
        return missing

    # Resource assignment

    def assign_resources(self, driver, vehicle, today: Optional[date] = None) -> None:
        """Attach ``driver`` and ``vehicle``; availability is not changed."""
        self._require("assign resources to", EDITABLE_STATUSES)
        if not driver.is_available:
            raise ResourceUnavailableError("Driver", driver.id)
        if not vehicle.is_available:
            raise ResourceUnavailableError("Vehicle", vehicle.id)
        check_assignment(driver, vehicle, today or self.clock().date())

        self.driver = driver
        self.vehicle = vehicle
        self.trip.driver_id = driver.id
        self.trip.vehicle_id = vehicle.id

    def confirm(self) -> None:
        self._require("confirm", (TripStatus.SCHEDULED,))
        missing = self._missing_resources()
        if missing:
            raise MissingResourceError(missing)
        self._transition(TripStatus.CONFIRMED)

    # Execution

    def ensure_startable(self) -> None:
        self._require("start", EDITABLE_STATUSES)
        missing = self._missing_resources()
        if missing:
            raise MissingResourceError(missing)
        if not self.driver.is_available:
            raise ResourceUnavailableError("Driver", self.driver.id)
        if not self.vehicle.is_available:
            raise ResourceUnavailableError("Vehicle", self.vehicle.id)

    def start(self) -> None:
        """Take the driver and vehicle out of the pool and begin the trip."""
        self.ensure_startable()
        self._transition(TripStatus.IN_PROGRESS)
        self.trip.started_at = self.clock()
        self.driver.is_available = False
        self.vehicle.is_available = False
        self.trip.start_odometer_km = self.vehicle.odometer_km
        if client_rules.record_trip(self.client):
            logger.info("Client %s promoted to %s", self.client.id, self.client.tier.value)

    def complete(self) -> CompletionOutcome:
        """Finish the trip and return its resources to the pool."""
        self._require("complete", (TripStatus.IN_PROGRESS,))
        self._transition(TripStatus.COMPLETED)
        self.trip.completed_at = self.clock()

        outcome = CompletionOutcome(trip=self.trip)
        if self.vehicle is not None:
            # Mileage is best effort: completion stands if it fails.
            try:
                self.trip.end_odometer_km = update_odometer(self.vehicle, self.trip.distance_km)
            except (DomainError, TypeError, ValueError) as exc:
                outcome.mileage_error = str(exc)
                logger.warning("Trip %s completed without odometer update: %s", self.trip.code, exc)
            self.vehicle.is_available = True
        if self.driver is not None:
            self.driver.is_available = True
            self.driver.completed_trips = (self.driver.completed_trips or 0) + 1
        return outcome

    def cancel(self, reason: Optional[str] = None) -> List[str]:
        """
        Cancel the trip, releasing the resources it holds.

        Resources are only held while IN_PROGRESS; earlier statuses never
        changed their availability, so nothing is released for them.

        Returns:
            Names of the released resources.
        """
        if self.trip.status.is_terminal:
            raise InvalidTransitionError("cancel", self.trip.status, self.trip.id)

        released = []
        if self.trip.status == TripStatus.IN_PROGRESS:
            if self.driver is not None and not self.driver.is_available:
                self.driver.is_available = True
                released.append("driver")
            if self.vehicle is not None and not self.vehicle.is_available:
                self.vehicle.is_available = True
                released.append("vehicle")

        self._transition(TripStatus.CANCELLED)
        reason = reason.strip() if reason and reason.strip() else DEFAULT_CANCEL_REASON
        self.add_note(f"CANCELLED: {reason}")
        return released

    # Notes, charges and feedback

    def add_note(self, text: Optional[str]) -> None:
        if not text or not text.strip():
            return
        entry = f"{self.clock():%Y-%m-%d %H:%M}: {text.strip()}"
        self.trip.notes = f"{self.trip.notes}\n{entry}" if self.trip.notes else entry

    def update_charges(self, is_urgent: Optional[bool] = None, additional_cost: Optional[float] = None) -> None:
        self._require("change charges of", EDITABLE_STATUSES)
        if additional_cost is not None:
            validate_additional_cost(additional_cost)
            self.trip.additional_cost = additional_cost
        if is_urgent is not None:
            self.trip.is_urgent = is_urgent

    def compute_fare(self, strategy: FareStrategy) -> float:
        """
        Price the trip and overwrite its total fare.

        fare = strategy amount + additional cost, then x urgent, then x night,
        rounded to the nearest 100.
        """
        if self.vehicle is None:
            raise ComputationError("no vehicle assigned")
        try:
            fare = strategy.calculate(self.trip.distance_km, self.client, self.vehicle)
        except (DomainError, TypeError, ValueError, ArithmeticError, KeyError) as exc:
            raise ComputationError(str(exc)) from exc

        self.trip.total_fare = finalize_fare(fare, self.trip)
        return self.trip.total_fare

    def rate(self, score: float, comments: Optional[str] = None) -> None:
        self._require("rate", (TripStatus.COMPLETED,))
        if score is None or score < 0 or score > 5:
            raise ValidationError("rating", score, "must be between 0 and 5")
        self.trip.rating = score
        if comments is not None:
            self.trip.client_comments = comments.strip() or None

    # Derived queries

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.trip.status.is_terminal:
            return False
        now = now or self.clock()
        return now > self.trip.scheduled_at + timedelta(minutes=settings.overdue_grace_minutes)

    def actual_duration_minutes(self, now: Optional[datetime] = None) -> int:
        if self.trip.started_at is None:
            return -1
        end = self.trip.completed_at or now or self.clock()
        return int((end - self.trip.started_at).total_seconds() // 60)

    def minutes_until_departure(self, now: Optional[datetime] = None) -> int:
        now = now or self.clock()
        return int((self.trip.scheduled_at - now).total_seconds() // 60)
