"""Tenant resolution for incoming requests.

The tenant is taken from the ``X-Tenant-ID`` header, falling back to the
``tenant_id`` query parameter. The value is trusted as-is; isolation comes
from scoping every query by it.
"""

from uuid import UUID

from fastapi import Depends, Header, HTTPException, Query, status


def parse_tenant_id(raw: str) -> UUID:
    """Parse a tenant ID, raising 400 if it isn't a UUID."""
    try:
        return UUID(raw.strip())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid tenant ID",
        ) from e


async def optional_tenant_id(
    x_tenant_id: str | None = Header(None, alias="X-Tenant-ID"),
    tenant_id: str | None = Query(None),
) -> UUID | None:
    """Tenant ID if the caller sent one."""
    raw = x_tenant_id or tenant_id
    if not raw:
        return None
    return parse_tenant_id(raw)


async def require_tenant_id(
    tenant_id: UUID | None = Depends(optional_tenant_id),
) -> UUID:
    """Tenant ID, or 400 if the caller didn't send one."""
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant ID is required",
        )
    return tenant_id
