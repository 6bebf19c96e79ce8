"""
Admin API Endpoints.

Fare rule management and the audit trail.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from datetime import datetime
from typing import List, Optional

from transport_backend.app.db.session import get_db
from transport_backend.app.core.exceptions import ResourceNotFoundError
from transport_backend.app.models.fare_rule import FareRule
from transport_backend.app.models.trip_enums import FareStrategyCode
from transport_backend.app.schemas.admin import FareRuleCreate, FareRuleResponse, AuditLogResponse
from transport_backend.app.core.guards import require_admin
from transport_backend.app.services.audit import log_event, get_audit_trail, AuditAction
from transport_backend.app.services.trip_service import to_local_naive

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/fare-rules", response_model=FareRuleResponse, status_code=201)
async def create_fare_rule(
    rule: FareRuleCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a fare rule.

    Older rules stay active; the resolver picks the newest rule in effect
    for each strategy.
    """
    new_rule = FareRule(
        strategy=rule.strategy,
        rule_name=rule.rule_name,
        base_factor=rule.base_factor,
        minimum_fare=rule.minimum_fare,
        surcharge_rate=rule.surcharge_rate,
        volume_discount=rule.volume_discount,
        volume_threshold=rule.volume_threshold,
        effective_from=to_local_naive(rule.effective_from),
        effective_until=to_local_naive(rule.effective_until) if rule.effective_until else None,
        is_active=True,
        created_by_admin_id=current_user["user_id"]
    )

    db.add(new_rule)
    await db.commit()
    await db.refresh(new_rule)

    await log_event(
        db=db,
        action=AuditAction.FARE_RULE_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="FARE_RULE",
        entity_id=new_rule.id,
        metadata={"strategy": new_rule.strategy.value, "name": new_rule.rule_name}
    )

    return new_rule


@router.get("/fare-rules", response_model=List[FareRuleResponse])
async def list_fare_rules(
    strategy: Optional[FareStrategyCode] = Query(None),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    query = select(FareRule).order_by(desc(FareRule.effective_from), desc(FareRule.id))
    if strategy is not None:
        query = query.where(FareRule.strategy == strategy)
    result = await db.execute(query)
    return result.scalars().all()


@router.delete("/fare-rules/{rule_id}", response_model=FareRuleResponse)
async def deactivate_fare_rule(
    rule_id: int = Path(..., description="Fare rule ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a fare rule; it is kept for the record."""
    result = await db.execute(select(FareRule).where(FareRule.id == rule_id))
    rule = result.scalar_one_or_none()
    if not rule:
        raise ResourceNotFoundError("Fare rule", rule_id)

    rule.is_active = False
    rule.effective_until = rule.effective_until or datetime.now()
    await db.commit()
    await db.refresh(rule)

    await log_event(
        db=db,
        action=AuditAction.FARE_RULE_DEACTIVATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        entity_type="FARE_RULE",
        entity_id=rule.id
    )
    return rule


@router.get("/audit-logs", response_model=List[AuditLogResponse])
async def list_audit_logs(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await get_audit_trail(db, entity_type=entity_type, entity_id=entity_id, action=action, limit=limit)
