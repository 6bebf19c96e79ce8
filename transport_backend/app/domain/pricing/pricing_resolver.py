"""
Fare Rule Resolver.

Determines the fare rule applicable to a strategy and builds the strategy.
Priority:
1. Newest active stored rule in effect for the strategy
2. Settings defaults
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from transport_backend.app.domain.pricing.fare_strategies import FareStrategy, build_strategy
from transport_backend.app.models.fare_rule import FareRule
from transport_backend.app.models.trip_enums import FareStrategyCode


class PricingResolver:

    @staticmethod
    async def resolve_active_rule(
        db: AsyncSession,
        strategy: FareStrategyCode,
        now: Optional[datetime] = None,
    ) -> Optional[FareRule]:
        """Find the active rule for ``strategy``; None means use defaults."""
        now = now or datetime.now()

        query = select(FareRule).where(
            FareRule.strategy == strategy,
            FareRule.is_active == True,  # noqa: E712
            FareRule.effective_from <= now,
            (FareRule.effective_until.is_(None) | (FareRule.effective_until >= now))
        ).order_by(FareRule.effective_from.desc(), FareRule.id.desc()).limit(1)

        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def resolve_strategy(
        db: AsyncSession,
        strategy: FareStrategyCode,
        now: Optional[datetime] = None,
    ) -> FareStrategy:
        rule = await PricingResolver.resolve_active_rule(db, strategy, now)
        return build_strategy(strategy, rule)
