"""Tenant home dashboard: call funnel, new leads and won revenue in one call."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from shared.schemas import QUALIFICATION_THRESHOLD, ContactStatus, DealStage
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.calls.common import average
from api.db.database import get_db
from api.db.models import (
    Contact,
    Deal,
    DiscoveryCall,
    PodcastInterview,
    StrategyCall,
    as_utc,
    utcnow,
)
from api.responses import success
from api.tenancy import require_tenant_id

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

RECENT = 3


def _iso(value: Any) -> str | None:
    return as_utc(value).isoformat() if value else None


async def _newest(db: AsyncSession, model: Any, tenant_id: UUID) -> list:
    result = await db.execute(
        select(model).where(model.tenant_id == tenant_id).order_by(model.created_at.desc())
    )
    return list(result.scalars().all())


def podcast_summary(interviews: list[PodcastInterview]) -> dict:
    qualified = sum(
        1 for i in interviews
        if i.overall_score is not None and i.overall_score >= QUALIFICATION_THRESHOLD
    )
    return {
        "totalCalls": len(interviews),
        "qualified": qualified,
        "qualificationRate": round(qualified / len(interviews) * 100) if interviews else 0,
        "avgScore": average((i.overall_score for i in interviews), digits=1),
        "recentCalls": [
            {
                "id": str(i.id),
                "prospect": i.guest_name,
                "date": _iso(i.call_date),
                "score": i.overall_score or 0,
                "status": "qualified"
                if (i.overall_score or 0) >= QUALIFICATION_THRESHOLD
                else "not-qualified",
            }
            for i in interviews[:RECENT]
        ],
    }


@router.get("")
async def tenant_dashboard(
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    interviews = await _newest(db, PodcastInterview, tenant_id)
    discovery_calls = await _newest(db, DiscoveryCall, tenant_id)
    strategy_calls = await _newest(db, StrategyCall, tenant_id)

    new_leads = await db.scalar(
        select(func.count(Contact.id)).where(
            Contact.tenant_id == tenant_id, Contact.status == ContactStatus.LEAD.value
        )
    )
    revenue = await db.scalar(
        select(func.coalesce(func.sum(Deal.value), 0)).where(
            Deal.tenant_id == tenant_id, Deal.stage == DealStage.CLOSED_WON.value
        )
    )

    podcast = podcast_summary(interviews)
    return success(
        {
            "stats": {
                "podcastCalls": podcast["totalCalls"],
                "qualifiedForDiscovery": podcast["qualified"],
                "newLeads": new_leads or 0,
                "strategyCalls": len(strategy_calls),
            },
            "podcast": podcast,
            "discovery": {
                "totalCalls": len(discovery_calls),
                "recentCalls": [
                    {
                        "id": str(c.id),
                        "prospect": c.prospect_name,
                        "date": _iso(c.call_date),
                        "score": c.ai_score or 0,
                        "outcome": c.status,
                    }
                    for c in discovery_calls[:RECENT]
                ],
            },
            "strategy": {
                "totalCalls": len(strategy_calls),
                "recentCalls": [
                    {
                        "id": str(c.id),
                        "prospect": c.prospect_name,
                        "date": _iso(c.call_date),
                        "tier": c.recommended_tier or "N/A",
                    }
                    for c in strategy_calls[:RECENT]
                ],
            },
            "summary": {
                "totalRevenue": float(revenue or 0),
                "totalCalls": len(interviews) + len(discovery_calls) + len(strategy_calls),
                "qualificationRate": podcast["qualificationRate"],
                "pipelineMovement": podcast["qualified"],
            },
        },
        timestamp=utcnow().isoformat(),
    )
