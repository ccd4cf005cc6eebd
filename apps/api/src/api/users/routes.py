"""User management and invitation routes.

Admins may list users across tenants by omitting the tenant; everyone else
works inside one tenant. Invitations are single-use signup links delivered
through the Instantly invitation campaign.
"""

import logging
import os
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from shared.schemas import InvitationStatus, UserRole, UserStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.accounts import app_base_url, new_account_token, permissions_for, redirect_for
from api.auth.password import get_password_hash
from api.billing.limits import enforce_user_limit
from api.db.database import get_db
from api.db.models import Invitation, User, as_utc, utcnow
from api.db.queries import apply_updates
from api.integrations.base import IntegrationError
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.responses import success
from api.tenancy import optional_tenant_id

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/users", tags=["Users"])
invitations_router = APIRouter(prefix="/invitations", tags=["Users"])

INVITATION_TTL = timedelta(days=7)
MIN_PASSWORD_LENGTH = 8

INVITABLE_ROLES = {
    UserRole.ADMIN.value: "Administrator",
    UserRole.ADVISOR.value: "Advisor",
    UserRole.CLIENT.value: "Client",
    UserRole.SAAS.value: "SaaS Client",
}


def protected_admin_email() -> str:
    """The account no API call may modify or delete."""
    return os.getenv("PROTECTED_ADMIN_EMAIL", "").strip().lower()


# =============================================================================
# Request/Response Models
# =============================================================================


class UserCreate(BaseModel):
    """Request body for creating a user."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    role: str = UserRole.ADVISOR.value
    user_type: str | None = None


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    full_name: str | None = None
    role: str | None = None
    user_type: str | None = None
    status: str | None = None


class UserResponse(BaseModel):
    """User data response."""

    id: UUID
    email: str
    full_name: str | None
    role: str
    user_type: str | None
    tenant_id: UUID | None
    status: str
    last_login: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationCreate(BaseModel):
    email: EmailStr
    role: str


class InvitationVerify(BaseModel):
    email: EmailStr


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


def _user_json(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


async def _user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def _editable_user(db: AsyncSession, user_id: UUID, tenant_id: UUID | None) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    protected = protected_admin_email()
    if protected and user.email.lower() == protected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account is protected and cannot be modified",
        )

    if tenant_id is not None and user.tenant_id != tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied - user belongs to different tenant",
        )
    return user


# =============================================================================
# Users
# =============================================================================


@router.get("")
async def list_users(
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """List users, all tenants when no tenant is given."""
    query = select(User)
    if tenant_id is not None:
        query = query.where(User.tenant_id == tenant_id)

    result = await db.execute(query.order_by(User.created_at.desc()))
    return success(
        {
            "users": [_user_json(u) for u in result.scalars().all()],
            "tenant_filter": str(tenant_id) if tenant_id else "all",
        }
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a user; only admins may exist outside a tenant."""
    if request.role != UserRole.ADMIN.value and tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tenant ID required for non-admin users",
        )

    email = request.email.lower()
    if await _user_by_email(db, email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    if tenant_id is not None:
        await enforce_user_limit(db, tenant_id)

    user = User(
        tenant_id=tenant_id,
        email=email,
        full_name=request.full_name,
        password_hash=get_password_hash(request.password),
        role=request.role,
        user_type=request.user_type or request.role,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    await db.commit()

    logger.info(f"User {email} created with role {user.role}")
    return success(_user_json(user), message="User created successfully")


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    request: UserUpdate,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    user = await _editable_user(db, user_id, tenant_id)
    updates = request.model_dump(exclude_unset=True)
    if updates.get("email"):
        updates["email"] = updates["email"].lower()
    apply_updates(user, updates)
    await db.commit()
    return success(_user_json(user), message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    user = await _editable_user(db, user_id, tenant_id)
    await db.delete(user)
    await db.commit()
    logger.info(f"User {user_id} deleted")
    return success(message="User deleted successfully")


# =============================================================================
# Invitations
# =============================================================================


async def _pending_invitation(db: AsyncSession, **criteria) -> Invitation | None:
    query = select(Invitation).where(Invitation.status == InvitationStatus.PENDING.value)
    for column, value in criteria.items():
        query = query.where(getattr(Invitation, column) == value)
    result = await db.execute(query.order_by(Invitation.created_at.desc()).limit(1))
    return result.scalar_one_or_none()


async def send_invitation_email(
    instantly: InstantlyClient, email: str, role: str, signup_link: str
) -> bool:
    """Queue the invitation through the Instantly invitation campaign."""
    try:
        await instantly.add_lead(
            instantly.config.invitation_campaign_id,
            email,
            personalization={
                "signup_link": signup_link,
                "role": INVITABLE_ROLES.get(role, role),
            },
        )
    except IntegrationError as e:
        logger.warning(f"Invitation email to {email} not sent: {e}")
        return False
    return True


@invitations_router.post("", status_code=status.HTTP_201_CREATED)
async def create_invitation(
    request: InvitationCreate,
    tenant_id: UUID | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
    instantly: InstantlyClient = Depends(get_instantly_client),
):
    """Invite someone to sign up with a given role."""
    if request.role not in INVITABLE_ROLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

    email = request.email.lower()
    if await _user_by_email(db, email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )
    if await _pending_invitation(db, email=email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation already sent to this email",
        )

    invitation = Invitation(
        tenant_id=tenant_id,
        email=email,
        role=request.role,
        token=new_account_token(),
        status=InvitationStatus.PENDING.value,
        expires_at=utcnow() + INVITATION_TTL,
    )
    db.add(invitation)
    await db.commit()

    signup_link = f"{app_base_url()}/signup?token={invitation.token}"
    email_sent = await send_invitation_email(instantly, email, request.role, signup_link)

    logger.info(f"Invitation {invitation.id} created for {email} as {request.role}")
    return success(
        {
            "invitation": {
                "id": str(invitation.id),
                "email": invitation.email,
                "role": invitation.role,
                "signupLink": signup_link,
                "expiresAt": as_utc(invitation.expires_at).isoformat(),
            },
            "emailSent": email_sent,
        }
    )


@invitations_router.post("/verify")
async def verify_invitation(
    request: InvitationVerify,
    db: AsyncSession = Depends(get_db),
):
    """Look up the pending invitation for an email."""
    invitation = await _pending_invitation(db, email=request.email.lower())
    if invitation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending invitation found for this email",
        )
    if invitation.is_expired:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation has expired",
        )

    return success({"token": invitation.token, "role": invitation.role, "email": invitation.email})


@invitations_router.post("/accept", status_code=status.HTTP_201_CREATED)
async def accept_invitation(
    request: InvitationAccept,
    db: AsyncSession = Depends(get_db),
):
    """Create the invited user's account.

    Advisors start as ``pending`` until approved; other roles are active
    immediately.
    """
    result = await db.execute(select(Invitation).where(Invitation.token == request.token))
    invitation = result.scalar_one_or_none()
    if invitation is None or invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invalid invitation token",
        )
    if invitation.is_expired:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation has expired",
        )
    if await _user_by_email(db, invitation.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    if invitation.tenant_id is not None:
        await enforce_user_limit(db, invitation.tenant_id)

    role = invitation.role
    user = User(
        tenant_id=invitation.tenant_id,
        email=invitation.email,
        full_name=request.full_name,
        password_hash=get_password_hash(request.password),
        role=role,
        user_type=role,
        status=UserStatus.PENDING.value
        if role == UserRole.ADVISOR.value
        else UserStatus.ACTIVE.value,
    )
    db.add(user)

    invitation.status = InvitationStatus.ACCEPTED.value
    invitation.accepted_at = utcnow()
    await db.commit()

    logger.info(f"Invitation accepted by {user.email} ({role})")
    return success(
        {
            "id": str(user.id),
            "email": user.email,
            "full_name": user.full_name,
            "role": role,
            "status": user.status,
            "redirectTo": redirect_for(role),
            "permissions": permissions_for(role),
        },
        message="Account created successfully",
    )
