"""Advisor/client connections.

Either side may ask to connect by email. If the other side has already
asked, the second request connects them immediately; otherwise the invitee
accepts or declines the pending invitation later. Invitees who are not on
the platform yet get a signup invitation instead of a request.
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from shared.email import EmailSender, get_email_sender
from shared.schemas import (
    ConnectionStatus,
    PermissionLevel,
    RelationshipStatus,
    UserRole,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.accounts import app_base_url
from api.db.database import get_db
from api.db.models import (
    AdvisorClientRelationship,
    ConnectionInvitation,
    Contact,
    User,
    utcnow,
)
from api.db.queries import get_for_tenant, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import optional_tenant_id

logger = logging.getLogger("growth-manager-portal")

router = APIRouter(prefix="/connections", tags=["Connections"])

PartyType = Literal["advisor", "client"]


# =============================================================================
# Request Models
# =============================================================================


class ConnectionRequest(BaseModel):
    """Request body for asking to connect."""

    model_config = ConfigDict(populate_by_name=True)

    inviter_email: EmailStr = Field(..., alias="inviterEmail")
    inviter_type: PartyType = Field(..., alias="inviterType")
    inviter_name: str | None = Field(None, alias="inviterName")
    invitee_email: EmailStr = Field(..., alias="inviteeEmail")
    invitee_type: PartyType = Field(..., alias="inviteeType")
    invitee_name: str | None = Field(None, alias="inviteeName")
    permission_level: PermissionLevel = Field(
        PermissionLevel.COLLABORATIVE, alias="permissionLevel"
    )


class InvitationResponse(BaseModel):
    """The invitee confirms who they are when answering."""

    email: EmailStr


class DisconnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")


# =============================================================================
# Helpers
# =============================================================================


async def _user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def _on_platform(db: AsyncSession, email: str) -> bool:
    """True if the address belongs to a user or a CRM contact."""
    if await _user_by_email(db, email) is not None:
        return True
    result = await db.execute(
        select(Contact.id).where(func.lower(Contact.email) == email.lower()).limit(1)
    )
    return result.first() is not None


async def connect(
    db: AsyncSession, invitation: ConnectionInvitation
) -> AdvisorClientRelationship | None:
    """Create (or reuse) the relationship an invitation describes.

    Returns None when either party has no user account yet.
    """
    inviter = await _user_by_email(db, invitation.inviter_email)
    invitee = await _user_by_email(db, invitation.invitee_email)
    if inviter is None or invitee is None:
        logger.warning(
            f"Cannot link {invitation.inviter_email} and {invitation.invitee_email}: "
            "both need an account"
        )
        return None

    if invitation.inviter_type == UserRole.ADVISOR.value:
        advisor, client = inviter, invitee
    else:
        advisor, client = invitee, inviter

    result = await db.execute(
        select(AdvisorClientRelationship).where(
            AdvisorClientRelationship.advisor_id == advisor.id,
            AdvisorClientRelationship.client_id == client.id,
            AdvisorClientRelationship.status == RelationshipStatus.ACTIVE.value,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return existing

    relationship = AdvisorClientRelationship(
        tenant_id=advisor.tenant_id or client.tenant_id,
        advisor_id=advisor.id,
        client_id=client.id,
        relationship_type=f"{invitation.inviter_type}_invited",
        permission_level=invitation.permission_level,
        invited_by=inviter.id,
        invited_at=invitation.invited_at,
        accepted_at=utcnow(),
    )
    db.add(relationship)
    await db.flush()
    logger.info(f"Advisor {advisor.email} linked to client {client.email}")
    return relationship


async def _pending_for_invitee(
    db: AsyncSession, invitation_id: UUID, email: str
) -> ConnectionInvitation:
    invitation = await get_for_tenant_or_404(
        db, ConnectionInvitation, invitation_id, None, "Invitation"
    )
    if invitation.invitee_email != email.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This invitation was sent to someone else",
        )
    if invitation.status != ConnectionStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation is no longer pending",
        )
    return invitation


# =============================================================================
# Routes
# =============================================================================


@router.post("/request")
async def request_connection(
    request: ConnectionRequest,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Ask to connect, auto-connecting when the other side already asked."""
    inviter_email = request.inviter_email.lower()
    invitee_email = request.invitee_email.lower()
    if request.inviter_type == request.invitee_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A connection needs one advisor and one client",
        )
    if inviter_email == invitee_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot connect with yourself",
        )
    inviter_label = request.inviter_name or inviter_email

    # The other side asked first
    result = await db.execute(
        select(ConnectionInvitation)
        .where(
            ConnectionInvitation.status == ConnectionStatus.PENDING.value,
            ConnectionInvitation.inviter_email == invitee_email,
            ConnectionInvitation.invitee_email == inviter_email,
        )
        .order_by(ConnectionInvitation.invited_at)
        .limit(1)
    )
    match = result.scalar_one_or_none()
    if match is not None:
        match.status = ConnectionStatus.AUTO_CONNECTED.value
        match.responded_at = utcnow()
        relationship = await connect(db, match)
        await db.commit()

        link = f"{app_base_url()}/dashboard.html"
        for to, name, other in (
            (inviter_email, request.inviter_name, match.inviter_name or invitee_email),
            (invitee_email, request.invitee_name, inviter_label),
        ):
            await email_sender.send_connection_notice(
                "connected", to, name, other, request.inviter_type, link
            )

        logger.info(f"Auto-connected {inviter_email} and {invitee_email}")
        return success(
            {
                "status": ConnectionStatus.AUTO_CONNECTED.value,
                "connection_id": str(match.id),
                "relationship_id": str(relationship.id) if relationship else None,
            },
            message="Auto-connected! You are now linked.",
        )

    # Same request already waiting
    result = await db.execute(
        select(ConnectionInvitation).where(
            ConnectionInvitation.status == ConnectionStatus.PENDING.value,
            ConnectionInvitation.inviter_email == inviter_email,
            ConnectionInvitation.invitee_email == invitee_email,
        )
    )
    invitation = result.scalars().first()
    on_platform = await _on_platform(db, invitee_email)

    if invitation is None:
        invitation = ConnectionInvitation(
            tenant_id=tenant_id,
            inviter_email=inviter_email,
            inviter_type=request.inviter_type,
            inviter_name=request.inviter_name,
            invitee_email=invitee_email,
            invitee_type=request.invitee_type,
            invitee_name=request.invitee_name,
            permission_level=request.permission_level.value,
        )
        db.add(invitation)
        await db.commit()

    if on_platform:
        kind, link = "request", f"{app_base_url()}/connections.html"
        outcome, message = "request_sent", f"Connection request sent to {invitee_email}"
    else:
        kind, link = "platform_invite", f"{app_base_url()}/signup.html"
        outcome, message = "invitation_sent", f"Platform invitation sent to {invitee_email}"

    await email_sender.send_connection_notice(
        kind, invitee_email, request.invitee_name, inviter_label, request.inviter_type, link
    )
    return success(
        {"status": outcome, "invitation_id": str(invitation.id)},
        message=message,
    )


@router.get("/pending")
async def list_pending(
    email: str = Query(..., min_length=3),
    db: AsyncSession = Depends(get_db),
):
    """Pending invitations sent to an address."""
    result = await db.execute(
        select(ConnectionInvitation)
        .where(
            ConnectionInvitation.invitee_email == email.lower(),
            ConnectionInvitation.status == ConnectionStatus.PENDING.value,
        )
        .order_by(ConnectionInvitation.invited_at.desc())
    )
    invitations = [serialize(i) for i in result.scalars().all()]
    return success({"invitations": invitations, "count": len(invitations)})


@router.post("/{invitation_id}/accept")
async def accept_connection(
    invitation_id: UUID,
    request: InvitationResponse,
    db: AsyncSession = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    invitation = await _pending_for_invitee(db, invitation_id, request.email)

    relationship = await connect(db, invitation)
    if relationship is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both parties need an account before connecting",
        )

    invitation.status = ConnectionStatus.ACCEPTED.value
    invitation.responded_at = utcnow()
    await db.commit()

    await email_sender.send_connection_notice(
        "connected",
        invitation.inviter_email,
        invitation.inviter_name,
        invitation.invitee_name or invitation.invitee_email,
        invitation.invitee_type,
        f"{app_base_url()}/dashboard.html",
    )
    return success(serialize(relationship), message="Connection accepted")


@router.post("/{invitation_id}/decline")
async def decline_connection(
    invitation_id: UUID,
    request: InvitationResponse,
    db: AsyncSession = Depends(get_db),
):
    invitation = await _pending_for_invitee(db, invitation_id, request.email)
    invitation.status = ConnectionStatus.DECLINED.value
    invitation.responded_at = utcnow()
    await db.commit()
    return success(serialize(invitation), message="Connection declined")


@router.post("/disconnect")
async def disconnect_advisor(
    request: DisconnectRequest,
    db: AsyncSession = Depends(get_db),
):
    """A client ends every active advisor relationship."""
    user = await get_for_tenant(db, User, request.user_id, None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    if user.role != UserRole.CLIENT.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only clients can disconnect from advisors",
        )

    result = await db.execute(
        select(AdvisorClientRelationship).where(
            AdvisorClientRelationship.client_id == user.id,
            AdvisorClientRelationship.status == RelationshipStatus.ACTIVE.value,
        )
    )
    relationships = list(result.scalars().all())
    if not relationships:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are not connected to any advisor",
        )

    now = utcnow()
    for relationship in relationships:
        relationship.status = RelationshipStatus.DISCONNECTED.value
        relationship.disconnected_at = now
    await db.commit()

    logger.info(f"Client {user.email} disconnected from {len(relationships)} advisor(s)")
    return success(
        {"disconnected": len(relationships)},
        message="Disconnected from advisor successfully",
    )
