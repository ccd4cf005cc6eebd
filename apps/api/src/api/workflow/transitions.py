"""Creating the next-stage record when a prospect advances.

Each creator checks the source record's *_created flag first and returns
None when the downstream record already exists, so repeated analyses or
status updates never duplicate it.
"""

import logging
from decimal import Decimal
from uuid import UUID

from shared.schemas import (
    DEFAULT_DEAL_VALUE,
    CallStatus,
    ContactStage,
    ContactStatus,
    DealStage,
    DealStatus,
    PodcastAnalysis,
    Recommendation,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.models import (
    Contact,
    Deal,
    DiscoveryCall,
    PodcastInterview,
    Proposal,
    StrategyCall,
    utcnow,
)
from api.db.queries import get_for_tenant

logger = logging.getLogger("growth-manager-workflow")

DEAL_NAME_SUFFIX = "Leadership Intelligence System"


async def find_contact(
    db: AsyncSession,
    tenant_id: UUID | None,
    contact_id: UUID | None = None,
    email: str | None = None,
) -> Contact | None:
    """Find a contact by id, falling back to email.

    A None tenant_id searches across tenants.
    """
    if contact_id is not None:
        contact = await get_for_tenant(db, Contact, contact_id, tenant_id)
        if contact is not None:
            return contact

    if email:
        query = select(Contact).where(
            func.lower(Contact.email) == email.strip().lower()
        )
        if tenant_id is not None:
            query = query.where(Contact.tenant_id == tenant_id)
        result = await db.execute(
            query.order_by(Contact.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()
    return None


def move_contact(
    contact: Contact | None,
    stage: ContactStage,
    status: str | None = None,
    **fields,
) -> None:
    """Set a contact's stage (and optionally status and other columns)."""
    if contact is None:
        return
    contact.stage = stage.value
    if status is not None:
        contact.status = status
    for name, value in fields.items():
        setattr(contact, name, value)
    logger.info(f"Contact {contact.id} moved to stage {stage.value}")


def _to_decimal(value: float | Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


# =============================================================================
# Podcast -> Discovery
# =============================================================================


def _podcast_handoff_notes(analysis: PodcastAnalysis, score: float) -> str:
    agreement = analysis.prospect_agreement
    evidence = agreement.evidence
    if isinstance(evidence, list):
        evidence = "\n".join(str(e) for e in evidence)

    insights = analysis.overall_insights if isinstance(analysis.overall_insights, dict) else {}
    strengths = insights.get("key_strengths") or []
    gaps = insights.get("information_gaps") or []

    return "\n".join(
        [
            "Auto-created from podcast interview (agreed + score >= 35)",
            "",
            f"AI SCORE: {score}/50",
            "",
            "PROSPECT AGREEMENT:",
            str(agreement.context or "See podcast analysis for details"),
            str(evidence or ""),
            "",
            "KEY STRENGTHS:",
            "\n".join(str(s) for s in strengths) or "See podcast analysis",
            "",
            "INFORMATION GAPS TO ADDRESS:",
            "\n".join(str(g) for g in gaps) or "None identified",
            "",
            "GUEST FIT ASSESSMENT:",
            str(insights.get("guest_fit_assessment") or "Review full analysis"),
        ]
    )


async def create_discovery_from_podcast(
    db: AsyncSession,
    interview: PodcastInterview,
    analysis: PodcastAnalysis,
    score: float,
) -> DiscoveryCall | None:
    """Open a discovery call for a qualified podcast guest."""
    if interview.discovery_call_created:
        return None

    contact = await find_contact(
        db, interview.tenant_id, interview.contact_id, interview.guest_email
    )

    call = DiscoveryCall(
        tenant_id=interview.tenant_id,
        contact_id=contact.id if contact else interview.contact_id,
        podcast_interview_id=interview.id,
        prospect_name=contact.name if contact else interview.guest_name,
        prospect_email=contact.email if contact else interview.guest_email,
        company=(contact.company if contact else None) or interview.company,
        status=CallStatus.SCHEDULED.value,
        call_source="podcast_qualified",
        notes=_podcast_handoff_notes(analysis, score),
    )
    db.add(call)
    await db.flush()

    interview.discovery_call_created = True
    interview.discovery_call_id = call.id
    move_contact(contact, ContactStage.DISCOVERY)

    logger.info(f"Discovery call {call.id} created from podcast {interview.id}")
    return call


# =============================================================================
# Discovery -> Strategy
# =============================================================================


async def create_strategy_from_discovery(
    db: AsyncSession,
    discovery: DiscoveryCall,
    recommendation: Recommendation | None = None,
    summary: str | None = None,
) -> StrategyCall | None:
    """Open a strategy call for a qualified discovery prospect."""
    if discovery.strategy_call_created:
        return None

    recommendation = recommendation or Recommendation()
    tier = recommendation.tier or discovery.recommended_tier
    systems = recommendation.specific_systems or discovery.recommended_systems or []

    notes_lines = [f"Auto-created from discovery call (Score: {discovery.ai_score or 0}/50)"]
    if tier:
        notes_lines += ["", f"Recommended Tier: {tier}"]
    if systems:
        notes_lines += ["", "Key Systems Needed:"] + [f"- {s}" for s in systems]
    if summary:
        notes_lines += ["", summary]

    call = StrategyCall(
        tenant_id=discovery.tenant_id,
        contact_id=discovery.contact_id,
        discovery_call_id=discovery.id,
        prospect_name=discovery.prospect_name,
        prospect_email=discovery.prospect_email,
        company=discovery.company,
        phone=discovery.phone,
        status=CallStatus.SCHEDULED.value,
        recommended_tier=tier,
        recommended_systems=systems,
        estimated_value=_to_decimal(recommendation.estimated_value),
        auto_created=True,
        notes="\n".join(notes_lines),
    )
    db.add(call)
    await db.flush()

    discovery.strategy_call_created = True
    discovery.strategy_call_id = call.id

    logger.info(f"Strategy call {call.id} created from discovery {discovery.id}")
    return call


# =============================================================================
# Strategy / Proposal -> Deal
# =============================================================================


async def create_deal_from_strategy(
    db: AsyncSession,
    call: StrategyCall,
    value: float | Decimal | None = None,
    payment_terms: str | None = None,
    start_date: str | None = None,
    notes: str | None = None,
) -> Deal | None:
    """Close a won strategy call into a deal."""
    if call.deal_created:
        return None

    contact = await find_contact(db, call.tenant_id, call.contact_id, call.prospect_email)
    deal_value = value if value is not None else call.estimated_value
    if deal_value is None:
        deal_value = DEFAULT_DEAL_VALUE

    deal = Deal(
        tenant_id=call.tenant_id,
        contact_id=contact.id if contact else call.contact_id,
        name=f"{call.company or call.prospect_name} - {DEAL_NAME_SUFFIX}",
        contact_name=call.prospect_name,
        contact_email=call.prospect_email,
        company=call.company,
        value=_to_decimal(deal_value),
        stage=DealStage.CLOSED_WON.value,
        status=DealStatus.ACTIVE.value,
        source="strategy_call",
        payment_terms=payment_terms,
        start_date=start_date,
        notes=notes,
    )
    db.add(deal)
    await db.flush()

    call.deal_created = True
    call.deal_id = deal.id
    move_contact(contact, ContactStage.CLIENT, status=ContactStatus.CUSTOMER.value)
    if contact is not None and contact.program_start_date is None:
        contact.program_start_date = utcnow()

    logger.info(f"Deal {deal.id} created from strategy call {call.id}")
    return deal


async def create_deal_from_proposal(db: AsyncSession, proposal: Proposal) -> Deal | None:
    """Open a pending deal for an accepted proposal."""
    if proposal.deal_id is not None:
        return None

    value = proposal.total_value if proposal.total_value is not None else proposal.monthly_fee
    deal = Deal(
        tenant_id=proposal.tenant_id,
        contact_id=proposal.contact_id,
        name=f"{proposal.company or proposal.prospect_name} - {proposal.title}",
        contact_name=proposal.prospect_name,
        contact_email=proposal.prospect_email,
        company=proposal.company,
        value=value if value is not None else Decimal("0"),
        stage=DealStage.CLOSED_WON.value,
        status=DealStatus.PENDING.value,
        source="proposal",
        payment_terms=proposal.payment_terms,
    )
    db.add(deal)
    await db.flush()

    proposal.deal_id = deal.id
    proposal.accepted_at = proposal.accepted_at or utcnow()

    logger.info(f"Deal {deal.id} created from accepted proposal {proposal.id}")
    return deal
