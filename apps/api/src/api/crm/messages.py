"""Advisor/client message threads."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import Contact, Message, utcnow
from api.db.queries import get_for_tenant_or_404, serialize
from api.responses import success
from api.tenancy import require_tenant_id

router = APIRouter(prefix="/clients/{client_id}/messages", tags=["Messages"])


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1)
    author: str = "Team"
    subject: str | None = None
    message_type: str = "text"
    sender_id: UUID | None = None
    sender_type: str = "advisor"


class MessageRead(BaseModel):
    message_id: UUID
    read: bool = True


@router.get("")
async def list_messages(
    client_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """A page of the client's thread, newest first."""
    result = await db.execute(
        select(Message)
        .where(Message.tenant_id == tenant_id, Message.client_id == client_id)
        .order_by(Message.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return success([serialize(m) for m in result.scalars().all()])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_message(
    client_id: UUID,
    request: MessageCreate,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    await get_for_tenant_or_404(db, Contact, client_id, tenant_id, "Client")

    message = Message(tenant_id=tenant_id, client_id=client_id, **request.model_dump())
    db.add(message)
    await db.commit()
    return success(serialize(message))


@router.put("")
async def mark_message_read(
    client_id: UUID,
    request: MessageRead,
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    message = await get_for_tenant_or_404(db, Message, request.message_id, tenant_id, "Message")
    if message.client_id != client_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found",
        )

    message.read = request.read
    message.read_at = utcnow() if request.read else None
    await db.commit()
    return success(serialize(message))
