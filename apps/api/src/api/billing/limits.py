"""Subscription tier limit enforcement.

Counts a tenant's contacts and users against the limits copied onto the
tenant row from TIER_CONFIG at signup.
"""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.models import Contact, Tenant, User


class TierLimits:
    """Checks a tenant's usage against its subscription tier."""

    def __init__(self, db: AsyncSession):
        """Initialize the limit checker.

        Args:
            db: Async database session.
        """
        self.db = db

    async def get_tenant(self, tenant_id: UUID) -> Tenant | None:
        result = await self.db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    async def count_contacts(self, tenant_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Contact).where(Contact.tenant_id == tenant_id)
        )
        return result.scalar() or 0

    async def count_users(self, tenant_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.tenant_id == tenant_id)
        )
        return result.scalar() or 0

    async def check_can_add_contact(self, tenant_id: UUID) -> tuple[bool, str | None]:
        """Check whether the tenant may create another contact.

        Returns:
            Tuple of (allowed, error_message). Unknown tenants are unlimited.
        """
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            return True, None

        current = await self.count_contacts(tenant_id)
        if current >= tenant.max_contacts:
            return (
                False,
                f"Contact limit reached ({tenant.max_contacts} on the "
                f"{tenant.subscription_tier} tier). Upgrade to add more contacts.",
            )
        return True, None

    async def check_can_add_user(self, tenant_id: UUID) -> tuple[bool, str | None]:
        """Check whether the tenant may create another user."""
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            return True, None

        current = await self.count_users(tenant_id)
        if current >= tenant.max_users:
            return (
                False,
                f"User limit reached ({tenant.max_users} on the "
                f"{tenant.subscription_tier} tier). Upgrade to add more users.",
            )
        return True, None


async def enforce_contact_limit(db: AsyncSession, tenant_id: UUID) -> None:
    """Raise 403 if the tenant is at its contact limit."""
    allowed, error = await TierLimits(db).check_can_add_contact(tenant_id)
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error)


async def enforce_user_limit(db: AsyncSession, tenant_id: UUID) -> None:
    """Raise 403 if the tenant is at its user limit."""
    allowed, error = await TierLimits(db).check_can_add_user(tenant_id)
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error)
