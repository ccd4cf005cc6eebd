"""Pipeline board: every open prospect grouped by qualification stage.

The board is a read-side projection over five tables. Each stage pulls
its rows from the table that owns that step, and every row is flattened
to the same prospect card shape.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from shared.schemas import CallStatus, ContactStage, DealStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.crm.contacts import ContactUpdate
from api.db.database import get_db
from api.db.models import (
    Contact,
    Deal,
    DiscoveryCall,
    PodcastInterview,
    StrategyCall,
    as_utc,
)
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])

OPEN_CALL_STATUSES = (CallStatus.SCHEDULED.value, CallStatus.COMPLETED.value)


@dataclass(frozen=True)
class StageDefinition:
    name: str
    key: str
    icon: str
    model: Any
    status_column: str
    statuses: tuple[str, ...]


STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(
        "Pre-Qualified", "pre-qualified", "📋",
        Contact, "stage", (ContactStage.PRE_QUALIFIED.value,),
    ),
    StageDefinition(
        "Podcast Interview", "podcast", "🎙️",
        PodcastInterview, "interview_status",
        (CallStatus.COMPLETED.value, CallStatus.ANALYZED.value),
    ),
    StageDefinition(
        "Discovery Call", "discovery", "🔍",
        DiscoveryCall, "status", OPEN_CALL_STATUSES,
    ),
    StageDefinition(
        "Strategy Call", "strategy", "💼",
        StrategyCall, "status", OPEN_CALL_STATUSES,
    ),
    StageDefinition(
        "Active Deals", "deals", "🤝",
        Deal, "status", (DealStatus.ACTIVE.value, DealStatus.PENDING.value),
    ),
)


class StageMoveRequest(BaseModel):
    """Move a contact to another stage."""

    model_config = ConfigDict(populate_by_name=True)

    contact_id: UUID = Field(..., alias="contactId")
    stage: str = Field(..., min_length=1)
    notes: str | None = None


class PipelineContactUpdate(ContactUpdate):
    id: UUID


def _first(record: Any, *fields: str) -> Any:
    for field in fields:
        value = getattr(record, field, None)
        if value:
            return value
    return None


def _iso(value: Any) -> str | None:
    return as_utc(value).isoformat() if value else None


def prospect_card(record: Any, stage_key: str) -> dict:
    """Flatten a contact, call or deal row into a pipeline card."""
    podcast_score = _first(record, "podcast_score", "overall_score")
    created_at = _first(record, "created_at", "call_date")
    return {
        "id": str(record.id),
        "name": _first(record, "name", "guest_name", "prospect_name", "contact_name")
        or "Unnamed",
        "email": _first(record, "email", "guest_email", "prospect_email", "contact_email")
        or "",
        "company": _first(record, "company") or "",
        "phone": _first(record, "phone") or "",
        "score": podcast_score or _first(record, "lead_score", "ai_score") or 0,
        "podcastScore": podcast_score or 0,
        "createdAt": _iso(created_at),
        "updatedAt": _iso(_first(record, "updated_at") or created_at),
        "stage": stage_key,
        "notes": _first(record, "notes") or "",
    }


def pipeline_stats(stages: list[dict]) -> dict:
    counts = {stage["key"]: stage["count"] for stage in stages}
    total = sum(counts.values())
    closed_won = counts.get("deals", 0)
    return {
        "totalContacts": total,
        "activeContacts": total - closed_won,
        "closedWon": closed_won,
        "fromPodcast": counts.get("podcast", 0),
        "conversionRate": round(closed_won / total * 100, 2) if total else 0,
    }


@router.get("")
async def get_pipeline(
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """The five-stage board with headline stats."""
    stages = []
    for definition in STAGES:
        model = definition.model
        result = await db.execute(
            select(model)
            .where(
                model.tenant_id == tenant_id,
                getattr(model, definition.status_column).in_(definition.statuses),
            )
            .order_by(model.created_at.desc())
        )
        prospects = [prospect_card(row, definition.key) for row in result.scalars().all()]
        stages.append(
            {
                "name": definition.name,
                "key": definition.key,
                "icon": definition.icon,
                "count": len(prospects),
                "prospects": prospects,
            }
        )

    return success({"stages": stages, "stats": pipeline_stats(stages)})


@router.post("")
async def move_to_stage(
    request: StageMoveRequest,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Move a contact to any stage; no transition rules apply."""
    contact = await get_for_tenant_or_404(db, Contact, request.contact_id, tenant_id, "Contact")
    contact.stage = request.stage
    if request.notes:
        contact.notes = request.notes
    await db.commit()

    logger.info(f"Contact {contact.name} moved to stage {request.stage}")
    return success(serialize(contact, exclude=("password_hash",)))


@router.put("")
async def update_pipeline_contact(
    request: PipelineContactUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    contact = await get_for_tenant_or_404(db, Contact, request.id, tenant_id, "Contact")
    apply_updates(contact, request.model_dump(exclude_unset=True, exclude={"id"}))
    await db.commit()
    return success(serialize(contact, exclude=("password_hash",)))
