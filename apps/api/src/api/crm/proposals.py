"""Proposal routes.

Accepting a proposal opens a pending deal for it the first time the status
becomes ``accepted``; later updates leave the linked deal alone.
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from shared.schemas import ProposalStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import Proposal, utcnow
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id
from api.workflow.transitions import create_deal_from_proposal

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/proposals", tags=["Proposals"])


class ProposalCreate(BaseModel):
    prospect_name: str = Field(..., min_length=1)
    prospect_email: str | None = None
    company: str | None = None
    contact_id: UUID | None = None
    title: str = "Growth Management Proposal"
    pricing_model: str = "monthly_retainer"
    monthly_fee: Decimal | None = None
    setup_fee: Decimal = Decimal("0")
    total_value: Decimal | None = None
    payment_terms: str = "Net 30"
    services: list[Any] | None = None
    status: str = ProposalStatus.DRAFT.value
    notes: str | None = None


class ProposalUpdate(BaseModel):
    prospect_name: str | None = Field(None, min_length=1)
    prospect_email: str | None = None
    company: str | None = None
    contact_id: UUID | None = None
    title: str | None = None
    pricing_model: str | None = None
    monthly_fee: Decimal | None = None
    setup_fee: Decimal | None = None
    total_value: Decimal | None = None
    payment_terms: str | None = None
    services: list[Any] | None = None
    status: str | None = None
    notes: str | None = None


@router.get("")
async def list_proposals(
    status_filter: str | None = Query(None, alias="status"),
    contact_id: UUID | None = None,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List proposals, optionally filtered by status or contact."""
    query = select(Proposal).where(Proposal.tenant_id == tenant_id)
    if status_filter:
        query = query.where(Proposal.status == status_filter)
    if contact_id:
        query = query.where(Proposal.contact_id == contact_id)

    result = await db.execute(query.order_by(Proposal.created_at.desc()))
    return success([serialize(p) for p in result.scalars().all()])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_proposal(
    request: ProposalCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    proposal = Proposal(tenant_id=tenant_id, **request.model_dump())
    if proposal.status == ProposalStatus.SENT.value:
        proposal.sent_at = utcnow()
    db.add(proposal)
    await db.commit()
    return success(serialize(proposal))


@router.put("/{proposal_id}")
async def update_proposal(
    proposal_id: UUID,
    request: ProposalUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Update a proposal; the first acceptance creates its deal."""
    proposal = await get_for_tenant_or_404(db, Proposal, proposal_id, tenant_id, "Proposal")
    updates = request.model_dump(exclude_unset=True)
    apply_updates(proposal, updates)

    new_status = updates.get("status")
    if new_status == ProposalStatus.SENT.value and proposal.sent_at is None:
        proposal.sent_at = utcnow()

    deal = None
    if new_status == ProposalStatus.ACCEPTED.value:
        deal = await create_deal_from_proposal(db, proposal)

    await db.commit()

    return success(
        serialize(proposal),
        message="Proposal accepted and deal created" if deal else None,
    )


@router.delete("/{proposal_id}")
async def delete_proposal(
    proposal_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    proposal = await get_for_tenant_or_404(db, Proposal, proposal_id, tenant_id, "Proposal")
    await db.delete(proposal)
    await db.commit()
    logger.info(f"Proposal {proposal_id} deleted")
    return success(message="Proposal deleted")
