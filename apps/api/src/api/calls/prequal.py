"""Pre-qualification call routes."""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from shared.schemas import QUALIFICATION_THRESHOLD, CallStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.calls.common import average, count_by
from api.db.database import get_db
from api.db.models import PreQualificationCall
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/calls/prequal", tags=["Calls"])

PREQUAL_STATUSES = (
    CallStatus.SCHEDULED.value,
    CallStatus.RECORDED.value,
    CallStatus.COMPLETED.value,
    CallStatus.QUALIFIED.value,
    CallStatus.NOT_QUALIFIED.value,
    CallStatus.CANCELED.value,
)


class PrequalCallCreate(BaseModel):
    """Request body for logging a pre-qualification call."""

    guest_name: str = Field(..., min_length=1)
    guest_email: EmailStr
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    call_status: str = CallStatus.SCHEDULED.value
    zoom_meeting_id: str | None = None
    recording_url: str | None = None
    transcript: str | None = None
    notes: str | None = None


class PrequalCallUpdate(BaseModel):
    guest_name: str | None = Field(None, min_length=1)
    guest_email: EmailStr | None = None
    company: str | None = None
    phone: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    call_status: str | None = None
    zoom_meeting_id: str | None = None
    recording_url: str | None = None
    transcript: str | None = None
    notes: str | None = None


def prequal_stats(calls: list[PreQualificationCall]) -> dict:
    return {
        "totalCalls": len(calls),
        "qualifiedCalls": sum(
            1 for c in calls if c.ai_score is not None and c.ai_score >= QUALIFICATION_THRESHOLD
        ),
        "averageScore": average(c.ai_score for c in calls),
        "podcastInvitesSent": sum(1 for c in calls if c.podcast_invitation_sent),
        "callsByStatus": count_by((c.call_status for c in calls), PREQUAL_STATUSES),
    }


@router.get("")
async def list_prequal_calls(
    status_filter: str | None = Query(None, alias="status"),
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List pre-qualification calls with scoring stats."""
    query = select(PreQualificationCall).where(PreQualificationCall.tenant_id == tenant_id)
    if status_filter:
        query = query.where(PreQualificationCall.call_status == status_filter)

    result = await db.execute(query.order_by(PreQualificationCall.created_at.desc()))
    calls = list(result.scalars().all())
    return success({"calls": [serialize(c) for c in calls], "stats": prequal_stats(calls)})


@router.get("/{call_id}")
async def get_prequal_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(
        db, PreQualificationCall, call_id, tenant_id, "Pre-qualification call"
    )
    return success(serialize(call))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_prequal_call(
    request: PrequalCallCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    data = request.model_dump()
    data["guest_email"] = data["guest_email"].lower()
    call = PreQualificationCall(tenant_id=tenant_id, **data)
    db.add(call)
    await db.commit()

    logger.info(f"Pre-qualification call {call.id} logged for {call.guest_email}")
    return success(serialize(call), message="Pre-qualification call created")


@router.put("/{call_id}")
async def update_prequal_call(
    call_id: UUID,
    request: PrequalCallUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(
        db, PreQualificationCall, call_id, tenant_id, "Pre-qualification call"
    )
    apply_updates(call, request.model_dump(exclude_unset=True))
    await db.commit()
    return success(serialize(call))


@router.delete("/{call_id}")
async def delete_prequal_call(
    call_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    call = await get_for_tenant_or_404(
        db, PreQualificationCall, call_id, tenant_id, "Pre-qualification call"
    )
    await db.delete(call)
    await db.commit()
    return success(message="Pre-qualification call deleted")
