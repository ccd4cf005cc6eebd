"""Handoff routes: push a prospect into a marketing-automation campaign.

Smartlead handoffs add the lead to the campaign for the next stage and
record the campaign on the contact. Instantly handoffs send the Calendly
booking invite for a discovery or strategy call exactly once.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import DiscoveryCall, StrategyCall, utcnow
from api.db.queries import get_for_tenant_or_404
from api.integrations.base import IntegrationError
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.integrations.smartlead import (
    SmartleadClient,
    build_lead,
    get_smartlead_client,
    resolve_route,
)
from api.responses import success
from api.tenancy import optional_tenant_id
from api.workflow.invites import send_discovery_invite, send_strategy_invite
from api.workflow.transitions import find_contact, move_contact

logger = logging.getLogger("growth-manager-workflow")

router = APIRouter(prefix="/handoffs", tags=["Handoffs"])


# =============================================================================
# Request Models
# =============================================================================


class SmartleadHandoffRequest(BaseModel):
    """Request body for a Smartlead campaign handoff."""

    model_config = ConfigDict(populate_by_name=True)

    contact_id: UUID | None = Field(None, alias="contactId")
    email: str | None = None
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    company: str | None = None
    phone: str | None = None
    campaign_type: str | None = Field(None, alias="campaignType")
    trigger: str | None = None
    pre_qual_score: float | None = Field(None, alias="preQualScore")
    invite_role: str | None = Field(None, alias="inviteRole")
    signup_link: str | None = Field(None, alias="signupLink")


class DiscoveryInviteRequest(BaseModel):
    """Request body for a discovery Calendly invite."""

    discovery_call_id: UUID


class StrategyInviteRequest(BaseModel):
    """Request body for a strategy Calendly invite."""

    strategy_call_id: UUID


def _integration_failed(e: IntegrationError) -> HTTPException:
    logger.error(f"Handoff failed: {e}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


# =============================================================================
# Smartlead
# =============================================================================


@router.post("/smartlead")
async def smartlead_handoff(
    request: SmartleadHandoffRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    smartlead: SmartleadClient = Depends(get_smartlead_client),
):
    """Add a prospect to the Smartlead campaign for their next stage.

    ``campaignType`` may be a campaign (podcast, discovery, strategy,
    platform_invite) or the pipeline trigger that maps to one.
    """
    route = resolve_route(request.campaign_type, request.trigger)
    if route is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown campaign type: {request.campaign_type or request.trigger}",
        )

    campaign_id = smartlead.campaign_id_for(route)
    if not smartlead.config.is_configured() or not campaign_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Smartlead {route.name} campaign not configured",
        )

    contact = None
    if route.updates_contact:
        contact = await find_contact(db, tenant_id, request.contact_id, request.email)
        if contact is None and request.contact_id is not None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Contact not found",
            )

    email = request.email or (contact.email if contact else None)
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is required",
        )

    today = datetime.now(timezone.utc).date().isoformat()
    if route.updates_contact:
        name = " ".join(
            part for part in (request.first_name, request.last_name) if part
        ) or (contact.name if contact else None)
        lead = build_lead(
            email,
            name=name,
            company=request.company or (contact.company if contact else None),
            phone=request.phone or (contact.phone if contact else None),
            custom_fields={
                "pre_qual_score": request.pre_qual_score
                if request.pre_qual_score is not None
                else (contact.lead_score if contact else None),
                "source": request.trigger or route.key,
                "contact_id": str(contact.id) if contact else None,
            },
        )
    else:
        lead = build_lead(
            email,
            custom_fields={
                "role": request.invite_role or "",
                "signup_link": request.signup_link or "",
                "invitation_date": today,
            },
        )

    try:
        response = await smartlead.add_leads(campaign_id, [lead])
    except IntegrationError as e:
        raise _integration_failed(e) from e

    if contact is not None:
        note = f"[{today}] Added to Smartlead {route.name} campaign ({route.status_label})"
        move_contact(
            contact,
            route.next_stage,
            current_campaign=route.name,
            smartlead_campaign_id=campaign_id,
            smartlead_handoff_date=utcnow(),
            notes=f"{contact.notes}\n{note}" if contact.notes else note,
        )
        await db.commit()

    logger.info(f"Smartlead handoff: {email} -> {route.name}")

    return success(
        {
            "email": email,
            "campaign": route.name,
            "campaign_id": campaign_id,
            "stage": route.next_stage.value if contact is not None else None,
            "contact_updated": contact is not None,
            "smartlead_response": response,
        },
        message=f"Lead added to {route.name} campaign",
    )


# =============================================================================
# Instantly (Calendly booking invites)
# =============================================================================


@router.post("/instantly/discovery")
async def instantly_discovery_invite(
    request: DiscoveryInviteRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Send the discovery call booking invite (once per call)."""
    call = await get_for_tenant_or_404(
        db, DiscoveryCall, request.discovery_call_id, tenant_id, "Discovery call"
    )

    try:
        sent = await send_discovery_invite(instantly, call)
    except IntegrationError as e:
        raise _integration_failed(e) from e

    if not sent:
        return success(
            {"already_sent": True, "email": call.prospect_email},
            message="Email already sent",
        )

    await db.commit()
    return success(
        {
            "already_sent": False,
            "email": call.prospect_email,
            "calendly_link": call.calendly_link,
        },
        message="Discovery call invitation sent",
    )


@router.post("/instantly/strategy")
async def instantly_strategy_invite(
    request: StrategyInviteRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Send the strategy call booking invite (once per call)."""
    call = await get_for_tenant_or_404(
        db, StrategyCall, request.strategy_call_id, tenant_id, "Strategy call"
    )

    try:
        sent = await send_strategy_invite(instantly, call)
    except IntegrationError as e:
        raise _integration_failed(e) from e

    if not sent:
        return success(
            {"already_sent": True, "email": call.prospect_email},
            message="Email already sent",
        )

    await db.commit()
    return success(
        {
            "already_sent": False,
            "email": call.prospect_email,
            "calendly_link": call.calendly_link,
        },
        message="Strategy call invitation sent",
    )
