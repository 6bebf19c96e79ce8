"""
Trip Enums.
"""

import enum


class TripStatus(str, enum.Enum):
    """
    Trip lifecycle status.

    SCHEDULED -> CONFIRMED -> IN_PROGRESS -> COMPLETED
    Any non-terminal status -> CANCELLED
    """
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (TripStatus.COMPLETED, TripStatus.CANCELLED)


class FareStrategyCode(str, enum.Enum):
    STANDARD = "STANDARD"
    FREQUENT = "FREQUENT"
