"""Discovery call routes.

Marking a discovery call ``completed`` or ``qualified`` by hand opens the
strategy call for it, the same way a qualifying AI analysis does.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from shared.schemas import CallStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.calls.common import average
from api.db.database import get_db
from api.db.models import DiscoveryCall
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id
from api.workflow.transitions import create_strategy_from_discovery

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/calls/discovery", tags=["Calls"])

ADVANCING_STATUSES = (CallStatus.COMPLETED.value, CallStatus.QUALIFIED.value)


class DiscoveryCallCreate(BaseModel):
    prospect_name: str = Field(..., min_length=1)
    prospect_email: EmailStr
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    status: str = CallStatus.SCHEDULED.value
    call_source: str = "manual"
    zoom_meeting_id: str | None = None
    transcript: str | None = None
    notes: str | None = None


class DiscoveryCallUpdate(BaseModel):
    prospect_name: str | None = Field(None, min_length=1)
    prospect_email: EmailStr | None = None
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    status: str | None = None
    zoom_meeting_id: str | None = None
    transcript: str | None = None
    recommended_tier: str | None = None
    recommended_systems: list[Any] | None = None
    pain_points: str | None = None
    timeline: str | None = None
    decision_maker: str | None = None
    notes: str | None = None


def discovery_stats(calls: list[DiscoveryCall]) -> dict:
    statuses = [c.status for c in calls]
    return {
        "totalCalls": len(calls),
        "scheduled": statuses.count(CallStatus.SCHEDULED.value),
        "completed": statuses.count(CallStatus.COMPLETED.value),
        "qualified": statuses.count(CallStatus.QUALIFIED.value),
        "averageScore": average(c.ai_score for c in calls),
    }


@router.get("")
async def list_discovery_calls(
    status_filter: str | None = Query(None, alias="status"),
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    query = select(DiscoveryCall).where(DiscoveryCall.tenant_id == tenant_id)
    if status_filter:
        query = query.where(DiscoveryCall.status == status_filter)

    result = await db.execute(query.order_by(DiscoveryCall.created_at.desc()))
    calls = list(result.scalars().all())
    return success({"calls": [serialize(c) for c in calls], "stats": discovery_stats(calls)})


@router.get("/{call_id}")
async def get_discovery_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(db, DiscoveryCall, call_id, tenant_id, "Discovery call")
    return success(serialize(call))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_discovery_call(
    request: DiscoveryCallCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    data = request.model_dump()
    data["prospect_email"] = data["prospect_email"].lower()
    call = DiscoveryCall(tenant_id=tenant_id, **data)
    db.add(call)
    await db.commit()
    return success(serialize(call), message="Discovery call created")


@router.put("/{call_id}")
async def update_discovery_call(
    call_id: UUID,
    request: DiscoveryCallUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Update a discovery call, opening its strategy call on completion."""
    call = await get_for_tenant_or_404(db, DiscoveryCall, call_id, tenant_id, "Discovery call")
    updates = request.model_dump(exclude_unset=True)
    apply_updates(call, updates)

    strategy_call = None
    if updates.get("status") in ADVANCING_STATUSES:
        strategy_call = await create_strategy_from_discovery(db, call)

    await db.commit()

    if strategy_call is not None:
        logger.info(f"Discovery call {call.id} advanced to strategy call {strategy_call.id}")

    return success(
        serialize(call),
        strategy_call_created=strategy_call is not None,
        strategy_call_id=str(strategy_call.id) if strategy_call else None,
    )


@router.delete("/{call_id}")
async def delete_discovery_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(db, DiscoveryCall, call_id, tenant_id, "Discovery call")
    await db.delete(call)
    await db.commit()
    return success(message="Discovery call deleted")
