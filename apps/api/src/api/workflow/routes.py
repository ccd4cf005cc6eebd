"""AI analysis routes.

Each route scores a transcript already stored on the call record, or one
sent in the request body, and returns what the score triggered.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.responses import success
from api.tenancy import optional_tenant_id
from api.workflow import analysis
from api.workflow.scoring import TranscriptScorer, get_scorer

router = APIRouter(prefix="/analyze", tags=["Analysis"])


# =============================================================================
# Request Models
# =============================================================================


class PrequalAnalysisRequest(BaseModel):
    """Request body for pre-qualification analysis."""

    call_id: UUID
    transcript: str | None = None


class PodcastAnalysisRequest(BaseModel):
    """Request body for podcast interview analysis."""

    interview_id: UUID
    transcript: str | None = None


class DiscoveryAnalysisRequest(BaseModel):
    """Request body for discovery call analysis."""

    discovery_call_id: UUID
    transcript: str | None = None


class SalesAnalysisRequest(BaseModel):
    """Request body for sales/strategy call analysis."""

    sales_call_id: UUID
    transcript: str | None = None


# =============================================================================
# Routes
# =============================================================================


@router.post("/prequal")
async def analyze_prequal(
    request: PrequalAnalysisRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    scorer: TranscriptScorer = Depends(get_scorer),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Score a pre-qualification call; 35+ sends a podcast invitation."""
    result = await analysis.analyze_prequal(
        db, request.call_id, tenant_id, scorer, instantly, request.transcript
    )
    await db.commit()
    return success(result)


@router.post("/podcast")
async def analyze_podcast(
    request: PodcastAnalysisRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    scorer: TranscriptScorer = Depends(get_scorer),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Score a podcast interview; agreement plus 35+ opens a discovery call."""
    result = await analysis.analyze_podcast(
        db, request.interview_id, tenant_id, scorer, instantly, request.transcript
    )
    await db.commit()
    return success(result)


@router.post("/discovery")
async def analyze_discovery(
    request: DiscoveryAnalysisRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    scorer: TranscriptScorer = Depends(get_scorer),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Score a discovery call and advance, review or nurture the prospect."""
    result = await analysis.analyze_discovery(
        db, request.discovery_call_id, tenant_id, scorer, instantly, request.transcript
    )
    await db.commit()
    return success(result)


@router.post("/sales")
async def analyze_sales(
    request: SalesAnalysisRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    scorer: TranscriptScorer = Depends(get_scorer),
):
    """Score a sales call; an agreed deal becomes a closed-won deal."""
    result = await analysis.analyze_sales(
        db, request.sales_call_id, tenant_id, scorer, request.transcript
    )
    await db.commit()
    return success(result)
