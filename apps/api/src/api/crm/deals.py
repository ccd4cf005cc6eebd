"""Deal routes."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from shared.schemas import DealStage, DealStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import Deal
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id

router = APIRouter(prefix="/deals", tags=["Deals"])


class DealCreate(BaseModel):
    """Request body for creating a deal."""

    name: str = Field(..., min_length=1)
    contact_id: UUID | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    company: str | None = None
    value: Decimal = Decimal("0")
    stage: str = DealStage.PROSPECTING.value
    status: str = DealStatus.ACTIVE.value
    source: str | None = None
    payment_terms: str | None = None
    start_date: str | None = None
    notes: str | None = None


class DealUpdate(BaseModel):
    """Partial update of a deal."""

    name: str | None = Field(None, min_length=1)
    contact_name: str | None = None
    contact_email: str | None = None
    company: str | None = None
    value: Decimal | None = None
    stage: str | None = None
    status: str | None = None
    payment_terms: str | None = None
    start_date: str | None = None
    notes: str | None = None


def deal_stats(deals: list[Deal]) -> dict:
    total_value = sum((float(d.value or 0) for d in deals), 0.0)
    return {
        "totalDeals": len(deals),
        "totalValue": total_value,
        "closedWon": sum(1 for d in deals if d.stage == DealStage.CLOSED_WON.value),
        "avgDealValue": round(total_value / len(deals), 2) if deals else 0,
    }


@router.get("")
async def list_deals(
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List a tenant's deals with pipeline totals."""
    result = await db.execute(
        select(Deal).where(Deal.tenant_id == tenant_id).order_by(Deal.created_at.desc())
    )
    deals = list(result.scalars().all())
    return success({"deals": [serialize(d) for d in deals], "stats": deal_stats(deals)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_deal(
    request: DealCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    deal = Deal(tenant_id=tenant_id, **request.model_dump())
    db.add(deal)
    await db.commit()
    return success(serialize(deal))


@router.put("/{deal_id}")
async def update_deal(
    deal_id: UUID,
    request: DealUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    deal = await get_for_tenant_or_404(db, Deal, deal_id, tenant_id, "Deal")
    apply_updates(deal, request.model_dump(exclude_unset=True))
    await db.commit()
    return success(serialize(deal))


@router.delete("/{deal_id}")
async def delete_deal(
    deal_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    deal = await get_for_tenant_or_404(db, Deal, deal_id, tenant_id, "Deal")
    await db.delete(deal)
    await db.commit()
    return success(message="Deal deleted")
