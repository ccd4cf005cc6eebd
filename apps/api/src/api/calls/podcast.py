"""Podcast interview routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from shared.schemas import CallStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.calls.common import average
from api.db.database import get_db
from api.db.models import PodcastInterview
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id

router = APIRouter(prefix="/calls/podcast", tags=["Calls"])


class PodcastInterviewCreate(BaseModel):
    guest_name: str = Field(..., min_length=1)
    guest_email: EmailStr
    company: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    interview_status: str = CallStatus.SCHEDULED.value
    zoom_meeting_id: str | None = None
    recording_url: str | None = None
    transcript: str | None = None
    notes: str | None = None


class PodcastInterviewUpdate(BaseModel):
    guest_name: str | None = Field(None, min_length=1)
    guest_email: EmailStr | None = None
    company: str | None = None
    contact_id: UUID | None = None
    call_date: datetime | None = None
    interview_status: str | None = None
    zoom_meeting_id: str | None = None
    recording_url: str | None = None
    transcript: str | None = None
    notes: str | None = None


def podcast_stats(interviews: list[PodcastInterview]) -> dict:
    return {
        "totalInterviews": len(interviews),
        "analyzed": sum(1 for i in interviews if i.analyzed_at is not None),
        "qualifiedForDiscovery": sum(1 for i in interviews if i.qualified_for_discovery),
        "averageScore": average((i.overall_score for i in interviews), digits=1),
        "discoveryCallsCreated": sum(1 for i in interviews if i.discovery_call_created),
    }


@router.get("")
async def list_podcast_interviews(
    status_filter: str | None = Query(None, alias="status"),
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List podcast interviews with analysis stats."""
    query = select(PodcastInterview).where(PodcastInterview.tenant_id == tenant_id)
    if status_filter:
        query = query.where(PodcastInterview.interview_status == status_filter)

    result = await db.execute(query.order_by(PodcastInterview.created_at.desc()))
    interviews = list(result.scalars().all())
    return success(
        {
            "interviews": [serialize(i) for i in interviews],
            "stats": podcast_stats(interviews),
        }
    )


@router.get("/{interview_id}")
async def get_podcast_interview(
    interview_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    interview = await get_for_tenant_or_404(
        db, PodcastInterview, interview_id, tenant_id, "Podcast interview"
    )
    return success(serialize(interview))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_podcast_interview(
    request: PodcastInterviewCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    data = request.model_dump()
    data["guest_email"] = data["guest_email"].lower()
    interview = PodcastInterview(tenant_id=tenant_id, **data)
    db.add(interview)
    await db.commit()
    return success(serialize(interview), message="Podcast interview created")


@router.put("/{interview_id}")
async def update_podcast_interview(
    interview_id: UUID,
    request: PodcastInterviewUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    interview = await get_for_tenant_or_404(
        db, PodcastInterview, interview_id, tenant_id, "Podcast interview"
    )
    apply_updates(interview, request.model_dump(exclude_unset=True))
    await db.commit()
    return success(serialize(interview))


@router.delete("/{interview_id}")
async def delete_podcast_interview(
    interview_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    interview = await get_for_tenant_or_404(
        db, PodcastInterview, interview_id, tenant_id, "Podcast interview"
    )
    await db.delete(interview)
    await db.commit()
    return success(message="Podcast interview deleted")
