"""Advisor portal: connected clients and the shared discussion board."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from shared.schemas import RelationshipStatus, UserRole
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import AdvisorClientRelationship, AdvisorNote, User, as_utc
from api.db.queries import serialize
from api.responses import success
from api.tenancy import optional_tenant_id

router = APIRouter(prefix="/advisor", tags=["Advisor Portal"])

DISCUSSION_LIMIT = 50


class NoteCreate(BaseModel):
    content: str | None = None
    author: str = "Anonymous"
    role: str = UserRole.ADVISOR.value


@router.get("/clients")
async def list_advisor_clients(
    advisor_id: UUID | None = Query(None, alias="advisorId"),
    db: AsyncSession = Depends(get_db),
):
    """Clients with an active relationship to the advisor."""
    if advisor_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Advisor ID is required",
        )

    result = await db.execute(
        select(AdvisorClientRelationship, User)
        .join(User, User.id == AdvisorClientRelationship.client_id)
        .where(
            AdvisorClientRelationship.advisor_id == advisor_id,
            AdvisorClientRelationship.status == RelationshipStatus.ACTIVE.value,
        )
        .order_by(AdvisorClientRelationship.created_at.desc())
    )

    clients = [
        {
            "id": str(user.id),
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role,
            "status": user.status,
            "relationship_id": str(relationship.id),
            "relationship_type": relationship.relationship_type,
            "permission_level": relationship.permission_level,
            "connected_at": as_utc(relationship.accepted_at).isoformat()
            if relationship.accepted_at
            else None,
        }
        for relationship, user in result.all()
    ]
    return success({"clients": clients, "count": len(clients)})


@router.get("/discussion")
async def list_discussion(
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Latest discussion notes, newest first."""
    query = select(AdvisorNote)
    if tenant_id is not None:
        query = query.where(AdvisorNote.tenant_id == tenant_id)
    result = await db.execute(
        query.order_by(AdvisorNote.created_at.desc()).limit(DISCUSSION_LIMIT)
    )
    return success({"notes": [serialize(n) for n in result.scalars().all()]})


@router.post("/discussion", status_code=status.HTTP_201_CREATED)
async def post_discussion_note(
    request: NoteCreate,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    if not request.content or not request.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message content required",
        )

    note = AdvisorNote(
        tenant_id=tenant_id,
        content=request.content.strip(),
        author=request.author or "Anonymous",
        role=request.role,
    )
    db.add(note)
    await db.commit()
    return success({"note": serialize(note)})
