"""
Fare Strategies.

A fare strategy turns (distance, client, vehicle) into an amount. Both
variants share the same base:

    vehicle base rate x distance x distance factor

STANDARD optionally adds a flat surcharge; FREQUENT applies the client's
tier and volume discounts. Each strategy floors the result at its own
minimum fare and rounds to the nearest 100.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from transport_backend.app.core.config import settings
from transport_backend.app.core.exceptions import ValidationError
from transport_backend.app.domain.clients import tier_discount
from transport_backend.app.domain.pricing.vehicle_rates import vehicle_base_rate
from transport_backend.app.models.fleet_enums import ClientTier
from transport_backend.app.models.trip_enums import FareStrategyCode

logger = logging.getLogger("transport.pricing")

# (exclusive lower bound in km, multiplier), checked top-down
DISTANCE_STEPS = (
    (500, 0.85),
    (200, 0.92),
    (50, 0.97),
)

VIP_LOYALTY_TRIPS = 50
VIP_LOYALTY_BONUS = 0.05


def round_to_step(amount: float, step: int = None) -> float:
    """Round half-up to the nearest multiple of ``step`` (default 100)."""
    step = step or settings.fare_rounding_step
    return float(math.floor(amount / step + 0.5) * step)


def distance_factor(distance: float, base_factor: float = 1.0) -> float:
    if distance <= 0:
        return 1.0
    for threshold, multiplier in DISTANCE_STEPS:
        if distance > threshold:
            return base_factor * multiplier
    return base_factor


@dataclass
class FareBreakdown:
    """Line-by-line record of one fare calculation."""
    strategy: FareStrategyCode
    vehicle_rate: float = 0.0
    distance_km: float = 0.0
    distance_factor: float = 1.0
    subtotal: float = 0.0
    adjustments: List[Tuple[str, float]] = field(default_factory=list)
    minimum_fare: float = 0.0
    minimum_applied: bool = False
    total: float = 0.0

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "vehicle_rate": self.vehicle_rate,
            "distance_km": self.distance_km,
            "distance_factor": self.distance_factor,
            "subtotal": self.subtotal,
            "adjustments": [{"label": label, "amount": amount} for label, amount in self.adjustments],
            "minimum_fare": self.minimum_fare,
            "minimum_applied": self.minimum_applied,
            "total": self.total,
        }

    def as_text(self) -> str:
        lines = [
            f"FARE BREAKDOWN ({self.strategy.value})",
            f"Vehicle rate: ${self.vehicle_rate:,.2f}/km",
            f"Distance: {self.distance_km:.2f} km",
            f"Distance factor: {self.distance_factor:.2f}",
            f"Subtotal: ${self.subtotal:,.0f}",
        ]
        lines.extend(f"{label}: ${amount:,.0f}" for label, amount in self.adjustments)
        if self.minimum_applied:
            lines.append(f"Minimum fare applied: ${self.minimum_fare:,.0f}")
        lines.append(f"TOTAL: ${self.total:,.0f}")
        return "\n".join(lines)


class FareStrategy(ABC):
    """Pluggable pricing policy."""

    code: FareStrategyCode

    def __init__(
        self,
        minimum_fare: float,
        base_factor: float = 1.0,
        rate_fn: Callable = vehicle_base_rate,
    ):
        if minimum_fare < 0:
            raise ValidationError("minimum_fare", minimum_fare, "must not be negative")
        if base_factor <= 0 or base_factor > 10:
            raise ValidationError("base_factor", base_factor, "must be greater than 0 and at most 10")
        self.minimum_fare = minimum_fare
        self.base_factor = base_factor
        self.rate_fn = rate_fn

    def calculate(self, distance: float, client, vehicle) -> float:
        return self.breakdown(distance, client, vehicle).total

    def breakdown(self, distance: float, client, vehicle) -> FareBreakdown:
        result = FareBreakdown(strategy=self.code, distance_km=distance, minimum_fare=self.minimum_fare)
        if distance <= 0 or vehicle is None:
            result.minimum_applied = True
            result.total = self.minimum_fare
            return result

        result.vehicle_rate = self.rate_fn(vehicle)
        result.distance_factor = distance_factor(distance, self.base_factor)
        result.subtotal = result.vehicle_rate * distance * result.distance_factor

        amount = self.adjust(result, client)
        if amount < self.minimum_fare:
            result.minimum_applied = True
            amount = self.minimum_fare
        result.total = round_to_step(amount)
        return result

    @abstractmethod
    def adjust(self, breakdown: FareBreakdown, client) -> float:
        """Apply strategy-specific adjustments to ``breakdown.subtotal``."""


class StandardFare(FareStrategy):
    code = FareStrategyCode.STANDARD

    def __init__(self, minimum_fare: float = None, surcharge_rate: float = None, **kwargs):
        if minimum_fare is None:
            minimum_fare = settings.standard_minimum_fare
        super().__init__(minimum_fare, **kwargs)
        if surcharge_rate is None:
            surcharge_rate = settings.standard_surcharge_rate
        if surcharge_rate < 0 or surcharge_rate > 1:
            raise ValidationError("surcharge_rate", surcharge_rate, "must be between 0 and 1")
        self.surcharge_rate = surcharge_rate

    def adjust(self, breakdown: FareBreakdown, client) -> float:
        amount = breakdown.subtotal
        if self.surcharge_rate > 0:
            surcharge = amount * self.surcharge_rate
            breakdown.adjustments.append((f"Surcharge ({self.surcharge_rate:.0%})", surcharge))
            amount += surcharge
        return amount


class FrequentFare(FareStrategy):
    code = FareStrategyCode.FREQUENT

    def __init__(
        self,
        minimum_fare: float = None,
        volume_discount: float = None,
        volume_threshold: int = None,
        max_discount: float = None,
        **kwargs,
    ):
        if minimum_fare is None:
            minimum_fare = settings.frequent_minimum_fare
        super().__init__(minimum_fare, **kwargs)
        if volume_discount is None:
            volume_discount = settings.frequent_volume_discount
        if volume_threshold is None:
            volume_threshold = settings.frequent_volume_threshold
        if max_discount is None:
            max_discount = settings.frequent_max_discount
        if volume_discount < 0 or volume_discount > 0.2:
            raise ValidationError("volume_discount", volume_discount, "must be between 0 and 0.2")
        if volume_threshold < 1:
            raise ValidationError("volume_threshold", volume_threshold, "must be at least 1")
        self.volume_discount = volume_discount
        self.volume_threshold = volume_threshold
        self.max_discount = max_discount

    def total_discount(self, client) -> float:
        discount = tier_discount(client.tier)
        if client.completed_trips >= self.volume_threshold:
            discount += self.volume_discount
        if client.tier == ClientTier.VIP and client.completed_trips > VIP_LOYALTY_TRIPS:
            discount += VIP_LOYALTY_BONUS
        return min(discount, self.max_discount)

    def adjust(self, breakdown: FareBreakdown, client) -> float:
        discount = self.total_discount(client)
        amount = breakdown.subtotal
        if discount > 0:
            saved = amount * discount
            breakdown.adjustments.append((f"Discount ({discount:.0%})", -saved))
            amount = amount * (1 - discount)
        return amount


STRATEGIES = {
    FareStrategyCode.STANDARD: StandardFare,
    FareStrategyCode.FREQUENT: FrequentFare,
}


def build_strategy(code: FareStrategyCode, rule=None, rate_fn: Optional[Callable] = None) -> FareStrategy:
    """
    Instantiate the strategy for ``code``.

    ``rule`` is any object carrying FareRule attributes; without one the
    settings defaults are used.
    """
    kwargs = {}
    if rate_fn is not None:
        kwargs["rate_fn"] = rate_fn
    if rule is not None:
        kwargs["minimum_fare"] = rule.minimum_fare
        kwargs["base_factor"] = rule.base_factor
        if code == FareStrategyCode.STANDARD:
            kwargs["surcharge_rate"] = rule.surcharge_rate
        else:
            kwargs["volume_discount"] = rule.volume_discount
            kwargs["volume_threshold"] = rule.volume_threshold
        logger.debug("Building %s strategy from rule %s", code.value, getattr(rule, "id", None))
    return STRATEGIES[code](**kwargs)
