"""
Fare Rule database model.

Stored parameters for a fare strategy. The newest active rule in effect
for a strategy wins; without one the settings defaults apply.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.sql import func
from transport_backend.app.db.session import Base
from transport_backend.app.models.trip_enums import FareStrategyCode


class FareRule(Base):
    __tablename__ = "fare_rules"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    strategy = Column(Enum(FareStrategyCode), nullable=False, index=True)
    rule_name = Column(String(100), nullable=False)

    base_factor = Column(Float, default=1.0, nullable=False)
    minimum_fare = Column(Float, nullable=False)
    surcharge_rate = Column(Float, default=0.0, nullable=False)  # STANDARD only
    volume_discount = Column(Float, default=0.0, nullable=False)  # FREQUENT only
    volume_threshold = Column(Integer, default=20, nullable=False)  # FREQUENT only

    # Validity
    effective_from = Column(DateTime, nullable=False)
    effective_until = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Audit
    created_by_admin_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<FareRule(id={self.id}, strategy='{self.strategy.value}', name='{self.rule_name}')>"
