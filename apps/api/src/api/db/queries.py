"""Tenant-scoped lookup and serialization helpers shared by the routers."""

from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import Base
from api.db.models import as_utc

ModelT = TypeVar("ModelT", bound=Base)


async def get_for_tenant(
    db: AsyncSession,
    model: type[ModelT],
    record_id: UUID,
    tenant_id: UUID | None,
) -> ModelT | None:
    """Fetch a row by id, restricted to a tenant when one is given."""
    query = select(model).where(model.id == record_id)
    if tenant_id is not None:
        query = query.where(model.tenant_id == tenant_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_for_tenant_or_404(
    db: AsyncSession,
    model: type[ModelT],
    record_id: UUID,
    tenant_id: UUID | None,
    label: str,
) -> ModelT:
    """Like get_for_tenant, but raises 404 '<label> not found'."""
    record = await get_for_tenant(db, model, record_id, tenant_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found",
        )
    return record


def apply_updates(record: Any, updates: dict[str, Any]) -> list[str]:
    """Copy non-identity fields onto a row; returns the names changed.

    Raises:
        HTTPException: 400 if a NOT NULL column is set to null. Nothing is
            written in that case.
    """
    columns = record.__table__.columns
    for field, value in updates.items():
        if value is None and field in columns and not columns[field].nullable:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be null",
            )

    changed = []
    for field, value in updates.items():
        if field in ("id", "tenant_id", "created_at", "updated_at"):
            continue
        if hasattr(record, field):
            setattr(record, field, value)
            changed.append(field)
    return changed


def _json_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def serialize(record: Any, exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    """Render a row as a JSON-ready dict of its columns."""
    return {
        column.key: _json_value(getattr(record, column.key))
        for column in record.__table__.columns
        if column.key not in exclude
    }
