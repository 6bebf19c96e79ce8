"""
Admin Schemas: fare rules and audit logs.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional
from transport_backend.app.models.trip_enums import FareStrategyCode


class FareRuleCreate(BaseModel):
    """Schema for creating a fare rule."""
    strategy: FareStrategyCode
    rule_name: str = Field(..., min_length=1, max_length=100)
    base_factor: float = Field(1.0, gt=0, le=10)
    minimum_fare: float = Field(..., ge=0)
    surcharge_rate: float = Field(0.0, ge=0, le=1)
    volume_discount: float = Field(0.0, ge=0, le=0.2)
    volume_threshold: int = Field(20, ge=1)
    effective_from: datetime
    effective_until: Optional[datetime] = None


class FareRuleResponse(BaseModel):
    id: int
    strategy: FareStrategyCode
    rule_name: str
    base_factor: float
    minimum_fare: float
    surcharge_rate: float
    volume_discount: float
    volume_threshold: int
    effective_from: datetime
    effective_until: Optional[datetime]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[int]
    meta_data: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True
