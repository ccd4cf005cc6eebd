"""Client portal: active clients and the per-client program dashboard.

A client's program runs for PROGRAM_DAYS from ``program_start_date`` (set
when their first deal is won) and moves through four phases.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from shared.schemas import PHASE_STARTS, PROGRAM_DAYS, DealStage, DealStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import Contact, Deal, DiscoveryCall, Message, StrategyCall, as_utc, utcnow
from api.db.queries import get_for_tenant_or_404
from api.responses import success
from api.tenancy import require_tenant_id

router = APIRouter(prefix="/clients", tags=["Client Portal"])

MILESTONES = (
    (1, "Foundation & Discovery", "1-2",
     ("Initial Discovery Call", "Strategy Call Consultation", "Growth Plan Development")),
    (2, "Implementation & Setup", "3-4",
     ("Systems Setup", "Content Strategy", "Lead Generation Launch")),
    (3, "Optimization & Scale", "5-8",
     ("Campaign Optimization", "Strategy Process Refinement", "Scaling Strategy")),
    (4, "Results & Sustainability", "9-12",
     ("ROI Analysis", "Long-term Strategy", "Handoff Documentation")),
)

PREVIEW_LENGTH = 100


def _iso(value: Any) -> str | None:
    return as_utc(value).isoformat() if value else None


def program_progress(start: datetime | None, now: datetime | None = None) -> dict:
    """Days in, days left, percent complete and current phase (1-4)."""
    now = now or utcnow()
    days = max(0, (now - as_utc(start)).days) if start else 0
    return {
        "daysInProgram": days,
        "daysRemaining": max(0, PROGRAM_DAYS - days),
        "completionPercentage": min(100, round(days / PROGRAM_DAYS * 100)),
        "currentPhase": 1 + sum(1 for boundary in PHASE_STARTS if days > boundary),
    }


def milestone_status(phase: int, current_phase: int) -> str:
    if current_phase > phase:
        return "completed"
    if current_phase == phase:
        return "in-progress"
    return "upcoming"


def build_milestones(
    current_phase: int,
    has_discovery: bool,
    has_strategy: bool,
    growth_plan_created: bool,
) -> list[dict]:
    # Only the first phase's tasks are tracked
    done = {
        "Initial Discovery Call": has_discovery,
        "Strategy Call Consultation": has_strategy,
        "Growth Plan Development": growth_plan_created,
    }
    return [
        {
            "phase": phase,
            "title": title,
            "weeks": weeks,
            "status": milestone_status(phase, current_phase),
            "tasks": [{"name": task, "completed": done.get(task, False)} for task in tasks],
        }
        for phase, title, weeks, tasks in MILESTONES
    ]


def _message_card(message: Message) -> dict:
    content = message.content or ""
    preview = content[:PREVIEW_LENGTH] + ("..." if len(content) > PREVIEW_LENGTH else "")
    return {
        "id": str(message.id),
        "from": message.author,
        "subject": message.subject or "Message",
        "preview": preview,
        "content": content,
        "date": _iso(message.created_at),
        "unread": not message.read,
    }


@router.get("/active")
async def list_active_clients(
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Won deals that are still running, with the client's contact details."""
    result = await db.execute(
        select(Deal, Contact)
        .outerjoin(Contact, Contact.id == Deal.contact_id)
        .where(
            Deal.tenant_id == tenant_id,
            Deal.stage == DealStage.CLOSED_WON.value,
            Deal.status != DealStatus.CLOSED.value,
        )
        .order_by(Deal.created_at.desc())
    )

    clients = [
        {
            "deal_id": str(deal.id),
            "contact_id": str(deal.contact_id) if deal.contact_id else None,
            "name": contact.name if contact else deal.contact_name,
            "company": deal.company or (contact.company if contact else None),
            "email": contact.email if contact else deal.contact_email,
            "phone": contact.phone if contact else None,
            "value": float(deal.value or 0),
            "status": deal.status,
            "start_date": deal.start_date,
            "program_start_date": _iso(contact.program_start_date) if contact else None,
        }
        for deal, contact in result.all()
    ]
    return success({"clients": clients, "count": len(clients)})


@router.get("/{client_id}/dashboard")
async def client_dashboard(
    client_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Everything the client portal shows on its home page."""
    contact = await get_for_tenant_or_404(db, Contact, client_id, tenant_id, "Client")

    calls: dict[str, list] = {}
    for label, model in (("Discovery Call", DiscoveryCall), ("Strategy Call", StrategyCall)):
        result = await db.execute(
            select(model).where(model.tenant_id == tenant_id, model.contact_id == contact.id)
        )
        calls[label] = list(result.scalars().all())

    result = await db.execute(
        select(Message)
        .where(Message.tenant_id == tenant_id, Message.client_id == contact.id)
        .order_by(Message.created_at.desc())
    )
    messages = list(result.scalars().all())

    now = utcnow()
    program = program_progress(contact.program_start_date, now)

    upcoming = sorted(
        (
            {"type": label, "date": _iso(call.call_date), "status": call.status}
            for label, records in calls.items()
            for call in records
            if call.call_date and as_utc(call.call_date) > now
        ),
        key=lambda item: item["date"],
    )

    discovery_calls = calls["Discovery Call"]
    strategy_calls = calls["Strategy Call"]
    return success(
        {
            "client": {
                "id": str(contact.id),
                "name": contact.name,
                "email": contact.email,
                "company": contact.company,
                "programStartDate": _iso(contact.program_start_date),
                "status": contact.status,
            },
            "program": program,
            "calls": {
                "total": len(discovery_calls) + len(strategy_calls),
                "discovery": len(discovery_calls),
                "strategy": len(strategy_calls),
                "upcoming": upcoming,
            },
            "milestones": build_milestones(
                program["currentPhase"],
                has_discovery=bool(discovery_calls),
                has_strategy=bool(strategy_calls),
                growth_plan_created=contact.growth_plan_created,
            ),
            "messages": [_message_card(m) for m in messages],
        }
    )
