"""
Client tier rules.

Tiers carry a fixed discount and promote automatically with the client's
completed-trip count. Promotion never demotes a client.
"""

from transport_backend.app.core.config import settings
from transport_backend.app.models.fleet_enums import ClientTier

TIER_DISCOUNTS = {
    ClientTier.STANDARD: 0.0,
    ClientTier.FREQUENT: 0.15,
    ClientTier.CORPORATE: 0.20,
    ClientTier.VIP: 0.25,
}

# Checked top-down; first match wins.
PROMOTION_THRESHOLDS = (
    (50, ClientTier.VIP),
    (20, ClientTier.CORPORATE),
    (5, ClientTier.FREQUENT),
)

_TIER_ORDER = list(ClientTier)


def tier_discount(tier: ClientTier) -> float:
    return TIER_DISCOUNTS[tier]


def tier_for_trip_count(completed_trips: int) -> ClientTier:
    for threshold, tier in PROMOTION_THRESHOLDS:
        if completed_trips >= threshold:
            return tier
    return ClientTier.STANDARD


def promote(client) -> bool:
    """Raise the client's tier if its trip count earns a higher one."""
    earned = tier_for_trip_count(client.completed_trips)
    if _TIER_ORDER.index(earned) > _TIER_ORDER.index(client.tier):
        client.tier = earned
        return True
    return False


def record_trip(client) -> bool:
    """Count one more trip for the client and re-evaluate its tier."""
    client.completed_trips = (client.completed_trips or 0) + 1
    return promote(client)


def is_frequent(client) -> bool:
    return client.completed_trips >= settings.frequent_client_min_trips or client.tier != ClientTier.STANDARD
