"""Strategy (sales) call routes.

A strategy call marked ``won`` closes into a deal once, moves the contact
to the client stage and sends the client welcome email.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from shared.email import EmailSender, get_email_sender
from shared.schemas import CallStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import StrategyCall
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id
from api.workflow.transitions import create_deal_from_strategy

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/calls/strategy", tags=["Calls"])


class StrategyCallCreate(BaseModel):
    prospect_name: str = Field(..., min_length=1)
    prospect_email: EmailStr
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    discovery_call_id: UUID | None = None
    call_date: datetime | None = None
    status: str = CallStatus.SCHEDULED.value
    recommended_tier: str | None = None
    recommended_systems: list[Any] | None = None
    estimated_value: Decimal | None = None
    zoom_meeting_id: str | None = None
    transcript: str | None = None
    notes: str | None = None


class StrategyCallUpdate(BaseModel):
    prospect_name: str | None = Field(None, min_length=1)
    prospect_email: EmailStr | None = None
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    status: str | None = None
    recommended_tier: str | None = None
    recommended_systems: list[Any] | None = None
    estimated_value: Decimal | None = None
    zoom_meeting_id: str | None = None
    transcript: str | None = None
    notes: str | None = None


def strategy_stats(calls: list[StrategyCall]) -> dict:
    statuses = [c.status for c in calls]
    return {
        "totalDeals": len(calls),
        "scheduledCalls": statuses.count(CallStatus.SCHEDULED.value),
        "closedDeals": statuses.count(CallStatus.WON.value),
        "pipelineValue": sum(
            (float(c.estimated_value or 0) for c in calls if c.status != CallStatus.LOST.value),
            0.0,
        ),
    }


@router.get("")
async def list_strategy_calls(
    status_filter: str | None = Query(None, alias="status"),
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List strategy calls with pipeline value."""
    query = select(StrategyCall).where(StrategyCall.tenant_id == tenant_id)
    if status_filter:
        query = query.where(StrategyCall.status == status_filter)

    result = await db.execute(query.order_by(StrategyCall.created_at.desc()))
    calls = list(result.scalars().all())
    return success({"calls": [serialize(c) for c in calls], "stats": strategy_stats(calls)})


@router.get("/{call_id}")
async def get_strategy_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(db, StrategyCall, call_id, tenant_id, "Strategy call")
    return success(serialize(call))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_strategy_call(
    request: StrategyCallCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    data = request.model_dump()
    data["prospect_email"] = data["prospect_email"].lower()
    call = StrategyCall(tenant_id=tenant_id, **data)
    db.add(call)
    await db.commit()
    return success(serialize(call), message="Strategy call created successfully")


@router.put("/{call_id}")
async def update_strategy_call(
    call_id: UUID,
    request: StrategyCallUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Update a strategy call; winning it creates the client's deal."""
    call = await get_for_tenant_or_404(db, StrategyCall, call_id, tenant_id, "Strategy call")
    updates = request.model_dump(exclude_unset=True)
    apply_updates(call, updates)

    deal = None
    if updates.get("status") == CallStatus.WON.value:
        deal = await create_deal_from_strategy(db, call)

    await db.commit()

    welcome_sent = False
    if deal is not None:
        welcome_sent = await email_sender.send_client_welcome(
            call.prospect_email,
            call.prospect_name,
            company=call.company,
            tier=call.recommended_tier,
        )
        if not welcome_sent:
            logger.warning(f"Welcome email to {call.prospect_email} was not sent")

    return success(
        serialize(call),
        deal_created=deal is not None,
        deal_id=str(deal.id) if deal else None,
        welcome_email_sent=welcome_sent,
    )


@router.delete("/{call_id}")
async def delete_strategy_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(db, StrategyCall, call_id, tenant_id, "Strategy call")
    await db.delete(call)
    await db.commit()
    return success(message="Strategy call deleted successfully")
