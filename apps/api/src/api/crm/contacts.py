"""Contact routes and landing-page lead capture."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from shared.schemas import ContactStage, ContactStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.billing.limits import enforce_contact_limit
from api.db.database import get_db
from api.db.models import Contact, utcnow
from api.db.queries import apply_updates, get_for_tenant_or_404, serialize
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.responses import success
from api.tenancy import require_tenant_id
from api.workflow.transitions import find_contact

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/contacts", tags=["Contacts"])
leads_router = APIRouter(prefix="/leads", tags=["Contacts"])


# =============================================================================
# Request Models
# =============================================================================


class ContactCreate(BaseModel):
    """Request body for creating a contact."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str | None = None
    company: str | None = None
    status: str = ContactStatus.LEAD.value
    stage: str = ContactStage.LEAD.value
    source: str = "manual"
    notes: str | None = None
    lead_score: float | None = None
    utm_source: str | None = None
    utm_campaign: str | None = None
    utm_medium: str | None = None


class ContactUpdate(BaseModel):
    """Partial update of a contact; only fields sent are changed."""

    name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    company: str | None = None
    status: str | None = None
    stage: str | None = None
    source: str | None = None
    notes: str | None = None
    lead_score: float | None = None
    podcast_score: float | None = None
    recommended_tier: str | None = None
    current_campaign: str | None = None


class LeadCaptureRequest(BaseModel):
    """Landing-page inquiry."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str | None = None
    company: str | None = None
    phone: str | None = None
    source: str | None = None
    utm_source: str | None = None
    utm_campaign: str | None = None
    utm_medium: str | None = None


def contact_stats(contacts: list[Contact]) -> dict:
    """Headline counts for the contacts list."""
    by_status = [c.status for c in contacts]
    return {
        "totalContacts": len(contacts),
        "leads": by_status.count(ContactStatus.LEAD.value),
        "prospects": by_status.count(ContactStatus.PROSPECT.value),
        "customers": by_status.count(ContactStatus.CUSTOMER.value),
    }


# =============================================================================
# Contacts
# =============================================================================


@router.get("")
async def list_contacts(
    status_filter: str | None = Query(None, alias="status"),
    stage: str | None = None,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List a tenant's contacts, newest first."""
    query = select(Contact).where(Contact.tenant_id == tenant_id)
    if status_filter:
        query = query.where(Contact.status == status_filter)
    if stage:
        query = query.where(Contact.stage == stage)

    result = await db.execute(query.order_by(Contact.created_at.desc()))
    contacts = list(result.scalars().all())

    return success(
        {
            "contacts": [serialize(c, exclude=("password_hash",)) for c in contacts],
            "stats": contact_stats(contacts),
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(
    request: ContactCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a contact, subject to the tenant's contact limit."""
    await enforce_contact_limit(db, tenant_id)

    contact = Contact(tenant_id=tenant_id, **request.model_dump())
    db.add(contact)
    await db.commit()

    logger.info(f"Contact {contact.id} created for tenant {tenant_id}")
    return success(serialize(contact, exclude=("password_hash",)))


@router.put("/{contact_id}")
async def update_contact(
    contact_id: UUID,
    request: ContactUpdate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Update the fields sent in the body."""
    contact = await get_for_tenant_or_404(db, Contact, contact_id, tenant_id, "Contact")
    apply_updates(contact, request.model_dump(exclude_unset=True))
    await db.commit()
    return success(serialize(contact, exclude=("password_hash",)))


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: UUID,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a contact."""
    contact = await get_for_tenant_or_404(db, Contact, contact_id, tenant_id, "Contact")
    await db.delete(contact)
    await db.commit()
    return success(message="Contact deleted")


# =============================================================================
# Lead Capture
# =============================================================================


@leads_router.post("/capture")
async def capture_lead(
    request: LeadCaptureRequest,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Record a landing-page inquiry.

    A returning email gets the inquiry appended to its notes; a new email
    becomes a contact in the podcast stage and is pointed at the podcast
    booking page.
    """
    email = request.email.lower()
    now = utcnow()
    inquiry = f"[{now.date().isoformat()}] Inquiry: {request.message or '(no message)'}"
    redirect_url = instantly.config.podcast_calendly_url

    existing = await find_contact(db, tenant_id, email=email)
    if existing is not None:
        existing.notes = f"{existing.notes}\n\n{inquiry}" if existing.notes else inquiry
        existing.status = ContactStatus.LEAD.value
        existing.last_contacted = now
        await db.commit()

        logger.info(f"Returning lead {existing.id} captured again")
        return success(
            {
                "contactId": str(existing.id),
                "isExisting": True,
                "redirectUrl": redirect_url,
            },
            message="Thanks for reaching out again! We'll be in touch shortly.",
        )

    await enforce_contact_limit(db, tenant_id)

    contact = Contact(
        tenant_id=tenant_id,
        name=request.name.strip(),
        email=email,
        phone=request.phone,
        company=request.company,
        status=ContactStatus.LEAD.value,
        stage=ContactStage.PODCAST.value,
        source=request.source or "landing_page",
        notes=inquiry,
        utm_source=request.utm_source,
        utm_campaign=request.utm_campaign,
        utm_medium=request.utm_medium,
        last_contacted=now,
    )
    db.add(contact)
    await db.commit()

    logger.info(f"New lead {contact.id} captured from {contact.source}")
    return success(
        {
            "contactId": str(contact.id),
            "isExisting": False,
            "redirectUrl": redirect_url,
        },
        message="Thanks! Book your podcast conversation next.",
    )
