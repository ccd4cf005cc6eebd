"""Authentication API routes.

Provides login, token refresh, the current-account profile and the
password reset flow. Platform users log in against ``users``; clients log
in to the portal against their ``contacts`` row.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from shared.email import EmailSender, get_email_sender
from shared.schemas import UserRole
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.accounts import (
    app_base_url,
    new_account_token,
    permissions_for,
    redirect_for,
)
from api.auth.jwt import (
    KIND_CONTACT,
    KIND_USER,
    create_token_pair,
    decode_token,
    get_current_subject,
    load_subject,
)
from api.auth.password import get_password_hash, needs_rehash, verify_password
from api.db.database import get_db
from api.db.models import Contact, User, as_utc, utcnow
from api.responses import success

logger = logging.getLogger("growth-manager-api")

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_TOKEN_TTL = timedelta(hours=1)
MIN_PASSWORD_LENGTH = 8


# =============================================================================
# Request Models
# =============================================================================


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Request body for token refresh."""

    refresh_token: str


class PasswordResetRequest(BaseModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# =============================================================================
# Profiles
# =============================================================================


def _account_type(role: str) -> str:
    if role in (UserRole.ADVISOR.value, UserRole.CONSULTANT.value):
        return "advisor"
    if role == UserRole.CLIENT.value:
        return "client"
    return "admin"


def user_profile(user: User) -> dict:
    """Login/profile payload for a platform user."""
    role = user.role or UserRole.ADMIN.value
    return {
        "id": str(user.id),
        "name": user.full_name or user.email.split("@")[0],
        "full_name": user.full_name,
        "email": user.email,
        "role": role,
        "type": user.user_type or _account_type(role),
        "permissions": permissions_for(role),
        "redirectTo": redirect_for(role),
        "tenant_id": str(user.tenant_id) if user.tenant_id else None,
    }


def client_profile(contact: Contact) -> dict:
    """Login/profile payload for a client logging in with a contact record."""
    role = UserRole.CLIENT.value
    return {
        "id": str(contact.id),
        "name": contact.name or contact.company or contact.email.split("@")[0],
        "full_name": contact.name,
        "email": contact.email,
        "company": contact.company,
        "role": role,
        "type": "client",
        "permissions": permissions_for(role),
        "redirectTo": redirect_for(role),
        "tenant_id": str(contact.tenant_id),
    }


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials",
    )


def _upgrade_password(record: User | Contact, password: str) -> None:
    if needs_rehash(record.password_hash):
        record.password_hash = get_password_hash(password)
        logger.info(f"Password for {record.email} upgraded to bcrypt")


# =============================================================================
# Routes
# =============================================================================


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate a user or client and return tokens.

    Users are checked first; if no user has the email, the contact with
    that email may log in to the client portal. Legacy plaintext passwords
    are re-hashed with bcrypt on a successful login.
    """
    email = request.email.strip().lower()

    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()

    if user is not None:
        if not verify_password(request.password, user.password_hash):
            raise _invalid_credentials()

        _upgrade_password(user, request.password)
        user.last_login = utcnow()
        await db.commit()

        logger.info(f"User logged in: {email}")
        tokens = create_token_pair(user.id, KIND_USER, user.tenant_id)
        return success(user_profile(user), tokens=tokens.model_dump())

    result = await db.execute(
        select(Contact)
        .where(func.lower(Contact.email) == email, Contact.password_hash.is_not(None))
        .order_by(Contact.created_at.desc())
        .limit(1)
    )
    contact = result.scalar_one_or_none()

    if contact is None or not verify_password(request.password, contact.password_hash):
        raise _invalid_credentials()

    _upgrade_password(contact, request.password)
    await db.commit()

    logger.info(f"Client logged in: {email}")
    tokens = create_token_pair(contact.id, KIND_CONTACT, contact.tenant_id)
    return success(client_profile(contact), tokens=tokens.model_dump())


@router.post("/refresh")
async def refresh_token(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a refresh token for a new token pair."""
    token_data = decode_token(request.refresh_token)

    if token_data.type != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    subject = await load_subject(db, token_data)
    tokens = create_token_pair(subject.id, token_data.kind, subject.tenant_id)
    return success(tokens.model_dump())


@router.get("/me")
async def get_me(subject: User | Contact = Depends(get_current_subject)):
    """Profile of the authenticated user or client."""
    if isinstance(subject, Contact):
        return success(client_profile(subject))
    return success(user_profile(subject))


@router.post("/request-password-reset")
async def request_password_reset(
    request: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Email a one-hour reset link.

    The response is the same whether or not the account exists.
    """
    email = request.email.strip().lower()
    message = "If account exists, reset link sent"

    result = await db.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info(f"Password reset requested for unknown email {email}")
        return success(message=message)

    user.reset_token = new_account_token()
    user.reset_expires = utcnow() + RESET_TOKEN_TTL
    await db.commit()

    reset_link = f"{app_base_url()}/reset-password.html?token={user.reset_token}"
    if not await email_sender.send_password_reset(user.email, user.full_name, reset_link):
        logger.warning(f"Password reset email to {user.email} was not sent")

    return success(message=message)


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set a new password using a reset token."""
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    result = await db.execute(select(User).where(User.reset_token == request.token))
    user = result.scalar_one_or_none()

    if user is None or user.reset_expires is None or as_utc(user.reset_expires) < utcnow():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )

    user.password_hash = get_password_hash(request.password)
    user.reset_token = None
    user.reset_expires = None
    await db.commit()

    logger.info(f"Password reset for {user.email}")
    return success(message="Password reset successfully")
