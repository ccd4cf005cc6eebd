"""Transcript analysis for each call type.

These functions are called by the /analyze routes and, in-process, by the
Zoom webhook once a transcript lands. Each one scores the transcript,
saves the result on the call record and then performs whatever stage
advance the score earns. Scores are saved before any handoff is
attempted; a failed handoff is logged and reported in the response, never
rolled back.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import ValidationError
from shared.schemas import (
    DEFAULT_DEAL_VALUE,
    QUALIFICATION_THRESHOLD,
    REVIEW_THRESHOLD,
    CallStatus,
    ContactStage,
    ContactStatus,
    DiscoveryAction,
    DiscoveryAnalysis,
    PodcastAnalysis,
    PodcastQualification,
    PrequalAnalysis,
    SalesAnalysis,
)
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.models import (
    DiscoveryCall,
    PodcastInterview,
    PreQualificationCall,
    StrategyCall,
    utcnow,
)
from api.db.queries import get_for_tenant_or_404
from api.integrations.base import IntegrationError
from api.integrations.instantly import InstantlyClient
from api.workflow import prompts
from api.workflow.invites import (
    send_discovery_invite,
    send_podcast_invitation,
    send_strategy_invite,
)
from api.workflow.scoring import AnalysisError, TranscriptScorer
from api.workflow.transitions import (
    create_deal_from_strategy,
    create_discovery_from_podcast,
    create_strategy_from_discovery,
    find_contact,
    move_contact,
)

logger = logging.getLogger("growth-manager-workflow")


# =============================================================================
# Helpers
# =============================================================================


def _resolve_transcript(record: Any, transcript: str | None) -> str:
    """Prefer a transcript sent with the request; store it on the record."""
    if transcript and transcript.strip():
        record.transcript = transcript
        return transcript
    if record.transcript and record.transcript.strip():
        return record.transcript
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Transcript not available yet",
    )


async def _score(scorer: TranscriptScorer, prompt: str) -> dict:
    if not scorer.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI analysis not configured",
        )
    try:
        return await scorer.analyze(prompt)
    except AnalysisError as e:
        logger.error(f"Analysis failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e


def _validate(model: type, raw: dict) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Claude returned an unexpected analysis shape: {e.error_count()} error(s)",
        ) from e


def podcast_overall_score(analysis: PodcastAnalysis) -> float:
    """Three 0-10 sections rescaled to a 0-50 score."""
    total = (
        analysis.intro.total_score
        + analysis.questions_flow.total_score
        + analysis.close_next_steps.total_score
    )
    return round(total / 30 * 50, 2)


def podcast_qualification(agreed: bool, score: float) -> tuple[PodcastQualification, str]:
    """Combine agreement and score into a qualification and its reason."""
    score_ok = score >= QUALIFICATION_THRESHOLD
    if agreed and score_ok:
        return (
            PodcastQualification.QUALIFIED,
            f"Prospect agreed and conversation met quality threshold (>={QUALIFICATION_THRESHOLD})",
        )
    if agreed:
        return (
            PodcastQualification.NEEDS_REVIEW,
            f"Prospect agreed but score too low ({score}/50). Manual review needed.",
        )
    if score_ok:
        return (
            PodcastQualification.NO_AGREEMENT,
            f"Good conversation quality ({score}/50) but prospect did not agree to next steps.",
        )
    return (
        PodcastQualification.NOT_QUALIFIED,
        f"Prospect did not agree and score below threshold ({score}/50).",
    )


def discovery_decision(score: float) -> tuple[CallStatus, DiscoveryAction]:
    """Map a discovery total score to the call status and next action."""
    if score >= QUALIFICATION_THRESHOLD:
        return CallStatus.QUALIFIED, DiscoveryAction.AUTO_ADVANCE
    if score >= REVIEW_THRESHOLD:
        return CallStatus.REVIEW, DiscoveryAction.MANUAL_REVIEW
    return CallStatus.NURTURE, DiscoveryAction.MOVE_TO_NURTURE


def _component(raw: dict, *keys: str) -> dict:
    """First dict-valued component found under any of the given keys."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, dict):
            return value
    return {}


# =============================================================================
# Pre-Qualification
# =============================================================================


async def analyze_prequal(
    db: AsyncSession,
    call_id: UUID,
    tenant_id: UUID | None,
    scorer: TranscriptScorer,
    instantly: InstantlyClient,
    transcript: str | None = None,
) -> dict:
    """Score a pre-qualification call and invite qualified guests to the podcast."""
    call = await get_for_tenant_or_404(
        db, PreQualificationCall, call_id, tenant_id, "Pre-qualification call"
    )
    text = _resolve_transcript(call, transcript)

    raw = await _score(scorer, prompts.prequal_prompt(text, call.guest_name, call.company))
    analysis = _validate(PrequalAnalysis, raw)
    score = analysis.qualification_score

    call.ai_score = score
    call.ai_analysis = raw
    call.engagement_level = (
        str(analysis.engagement_level) if analysis.engagement_level else None
    )
    call.notes = analysis.summary or call.notes
    call.call_status = (
        CallStatus.QUALIFIED.value
        if analysis.qualified_for_podcast
        else CallStatus.NOT_QUALIFIED.value
    )
    call.analyzed_at = utcnow()

    contact = await find_contact(db, call.tenant_id, call.contact_id, call.guest_email)
    if contact is not None:
        contact.lead_score = score

    logger.info(f"Pre-qual call {call.id} scored {score}/50")

    qualified = analysis.qualified_for_podcast and score >= QUALIFICATION_THRESHOLD
    invitation_sent = call.podcast_invitation_sent
    if qualified and not call.podcast_invitation_sent:
        try:
            await send_podcast_invitation(instantly, call, analysis)
            invitation_sent = True
            move_contact(
                contact,
                ContactStage.PODCAST,
                status=ContactStatus.PODCAST_SCHEDULED.value,
            )
        except IntegrationError as e:
            logger.warning(f"Podcast invitation for {call.id} not sent: {e}")

    await db.flush()

    if qualified:
        message = (
            "Qualified! Podcast invitation sent"
            if invitation_sent
            else "Qualified, but the podcast invitation could not be sent"
        )
    else:
        message = f"Not qualified (score {score}/50)"

    return {
        "call_id": str(call.id),
        "guest_name": call.guest_name,
        "qualified": analysis.qualified_for_podcast,
        "score": score,
        "analysis": raw,
        "podcast_invitation_sent": invitation_sent,
        "message": message,
    }


# =============================================================================
# Podcast Interview
# =============================================================================


async def analyze_podcast(
    db: AsyncSession,
    interview_id: UUID,
    tenant_id: UUID | None,
    scorer: TranscriptScorer,
    instantly: InstantlyClient,
    transcript: str | None = None,
) -> dict:
    """Score a podcast interview and open discovery for qualified guests."""
    interview = await get_for_tenant_or_404(
        db, PodcastInterview, interview_id, tenant_id, "Podcast interview"
    )
    text = _resolve_transcript(interview, transcript)

    raw = await _score(
        scorer, prompts.podcast_prompt(text, interview.guest_name, interview.company)
    )
    analysis = _validate(PodcastAnalysis, raw)

    score = podcast_overall_score(analysis)
    agreed = analysis.prospect_agreement.agreed
    qualification, reason = podcast_qualification(agreed, score)
    fully_qualified = qualification == PodcastQualification.QUALIFIED

    interview.overall_score = score
    interview.intro_score = analysis.intro.total_score
    interview.questions_score = analysis.questions_flow.total_score
    interview.close_score = analysis.close_next_steps.total_score
    interview.ai_analysis = raw
    interview.qualified_for_discovery = fully_qualified
    interview.qualification_status = qualification.value
    interview.qualification_reason = reason
    interview.prospect_agreed = agreed
    interview.interview_status = CallStatus.ANALYZED.value
    interview.analyzed_at = utcnow()

    contact = await find_contact(
        db, interview.tenant_id, interview.contact_id, interview.guest_email
    )
    if contact is not None:
        contact.podcast_score = score

    logger.info(
        f"Podcast {interview.id} scored {score}/50, agreed={agreed}, "
        f"status={qualification.value}"
    )

    discovery_call = None
    invite_sent = False
    if fully_qualified:
        discovery_call = await create_discovery_from_podcast(db, interview, analysis, score)
        if discovery_call is not None:
            try:
                invite_sent = await send_discovery_invite(instantly, discovery_call)
            except IntegrationError as e:
                logger.warning(f"Discovery invite for {discovery_call.id} not sent: {e}")

    await db.flush()

    return {
        "interview_id": str(interview.id),
        "overall_score": score,
        "prospect_agreed": agreed,
        "score_qualified": score >= QUALIFICATION_THRESHOLD,
        "fully_qualified": fully_qualified,
        "qualification_status": qualification.value,
        "qualification_reason": reason,
        "discovery_call_created": discovery_call is not None,
        "discovery_call_id": str(discovery_call.id) if discovery_call else None,
        "discovery_invite_sent": invite_sent,
        "agreement_details": raw.get("prospect_agreement"),
        "analysis": raw,
    }


# =============================================================================
# Discovery Call
# =============================================================================


async def analyze_discovery(
    db: AsyncSession,
    call_id: UUID,
    tenant_id: UUID | None,
    scorer: TranscriptScorer,
    instantly: InstantlyClient,
    transcript: str | None = None,
) -> dict:
    """Score a discovery call; advance, flag for review, or nurture."""
    call = await get_for_tenant_or_404(
        db, DiscoveryCall, call_id, tenant_id, "Discovery call"
    )
    text = _resolve_transcript(call, transcript)

    raw = await _score(
        scorer, prompts.discovery_prompt(text, call.prospect_name, call.company)
    )
    analysis = _validate(DiscoveryAnalysis, raw)

    score = analysis.total_score
    call_status, action = discovery_decision(score)
    recommendation = analysis.recommendation

    pain = _component(raw, "pain", "painSeverity")
    timeline = _component(raw, "timeline")
    authority = _component(raw, "authority", "decisionAuthority")
    pain_points = pain.get("keyPainPoints") or []

    call.ai_score = score
    call.ai_analysis = raw
    call.status = call_status.value
    call.recommended_tier = recommendation.tier
    call.recommended_systems = recommendation.specific_systems
    call.pain_points = "\n".join(str(p) for p in pain_points) or None
    call.timeline = timeline.get("estimatedTimeline")
    call.decision_maker = authority.get("role")
    call.enthusiasm_level = analysis.enthusiasm_level or "medium"
    call.notes = analysis.executive_summary or call.notes

    contact = await find_contact(db, call.tenant_id, call.contact_id, call.prospect_email)

    logger.info(f"Discovery call {call.id} scored {score}/50 -> {action.value}")

    strategy_call = None
    email_sent = False
    if action == DiscoveryAction.AUTO_ADVANCE:
        strategy_call = await create_strategy_from_discovery(
            db, call, recommendation, analysis.executive_summary
        )
        if strategy_call is not None:
            move_contact(
                contact,
                ContactStage.STRATEGY,
                recommended_tier=recommendation.tier,
            )
            try:
                email_sent = await send_strategy_invite(instantly, strategy_call)
            except IntegrationError as e:
                logger.warning(f"Strategy invite for {strategy_call.id} not sent: {e}")
    elif action == DiscoveryAction.MOVE_TO_NURTURE:
        move_contact(contact, ContactStage.NURTURE, status=ContactStatus.NURTURE.value)

    await db.flush()

    tier = recommendation.tier or "No tier"
    messages = {
        DiscoveryAction.AUTO_ADVANCE: f"QUALIFIED ({score}/50) - {tier} recommended, strategy call created",
        DiscoveryAction.MANUAL_REVIEW: f"REVIEW NEEDED ({score}/50) - {tier} suggested, needs your evaluation",
        DiscoveryAction.MOVE_TO_NURTURE: f"NURTURE ({score}/50) - not ready for partnership, moved to nurture",
    }

    return {
        "discoveryCallId": str(call.id),
        "contactName": contact.name if contact else call.prospect_name,
        "company": call.company,
        "analysis": raw,
        "score": score,
        "action": action.value,
        "status": call_status.value,
        "tier": recommendation.tier,
        "systems": recommendation.specific_systems,
        "estimatedValue": recommendation.estimated_value,
        "salesCallCreated": strategy_call is not None,
        "salesCallId": str(call.strategy_call_id) if call.strategy_call_id else None,
        "emailSent": email_sent,
        "message": messages[action],
    }


# =============================================================================
# Sales / Strategy Call
# =============================================================================


async def analyze_sales(
    db: AsyncSession,
    call_id: UUID,
    tenant_id: UUID | None,
    scorer: TranscriptScorer,
    transcript: str | None = None,
) -> dict:
    """Score a sales call and close agreed deals."""
    call = await get_for_tenant_or_404(
        db, StrategyCall, call_id, tenant_id, "Sales call"
    )
    text = _resolve_transcript(call, transcript)

    raw = await _score(scorer, prompts.sales_prompt(text, call.prospect_name, call.company))
    analysis = _validate(SalesAnalysis, raw)

    call.ai_analysis = raw
    call.analyzed_at = utcnow()
    call.notes = analysis.summary or call.notes
    call.status = (
        CallStatus.WON.value if analysis.agreed_to_deal else CallStatus.COMPLETED.value
    )

    logger.info(f"Sales call {call.id} analyzed, agreed={analysis.agreed_to_deal}")

    deal = None
    deal_value = analysis.deal_value or DEFAULT_DEAL_VALUE
    if analysis.agreed_to_deal:
        deal = await create_deal_from_strategy(
            db,
            call,
            value=deal_value,
            payment_terms=analysis.payment_terms,
            start_date=analysis.start_date,
            notes=analysis.summary or None,
        )

    await db.flush()

    if deal is not None:
        message = f"Deal closed! {deal.name} created"
    elif analysis.agreed_to_deal:
        message = "Deal already recorded for this call"
    else:
        message = "Call analyzed - no deal agreed yet"

    return {
        "sales_call_id": str(call.id),
        "agreed": analysis.agreed_to_deal,
        "status": call.status,
        "deal_created": deal is not None,
        "deal_id": str(call.deal_id) if call.deal_id else None,
        "deal_value": deal_value if analysis.agreed_to_deal else None,
        "analysis": raw,
        "message": message,
    }
