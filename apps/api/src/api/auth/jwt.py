"""JWT token creation and validation.

Provides access tokens (short-lived) and refresh tokens (long-lived).
Tokens are issued to platform users and to clients logging in with their
contact record, distinguished by the ``kind`` claim.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.database import get_db
from api.db.models import Contact, User

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_BYTES!")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 30
REFRESH_TOKEN_EXPIRE_DAYS = 7

KIND_USER = "user"
KIND_CONTACT = "contact"


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # User or contact ID
    type: str  # "access" or "refresh"
    kind: str = KIND_USER
    tenant_id: str | None = None
    exp: datetime
    iat: datetime


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires


# Security scheme for Swagger UI
security = HTTPBearer(auto_error=False)


def _encode(
    subject_id: UUID | str,
    token_type: str,
    expires_delta: timedelta,
    kind: str,
    tenant_id: UUID | str | None,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode: dict[str, Any] = {
        "sub": str(subject_id),
        "type": token_type,
        "kind": kind,
        "exp": now + expires_delta,
        "iat": now,
    }
    if tenant_id is not None:
        to_encode["tenant_id"] = str(tenant_id)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(
    subject_id: UUID | str,
    kind: str = KIND_USER,
    tenant_id: UUID | str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a short-lived access token.

    Args:
        subject_id: The user's or contact's UUID.
        kind: "user" or "contact".
        tenant_id: Tenant the subject belongs to, if any.
        expires_delta: Optional custom expiration time.

    Returns:
        Encoded JWT access token.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(subject_id, "access", expires_delta, kind, tenant_id)


def create_refresh_token(
    subject_id: UUID | str,
    kind: str = KIND_USER,
    tenant_id: UUID | str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a long-lived refresh token."""
    if expires_delta is None:
        expires_delta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(subject_id, "refresh", expires_delta, kind, tenant_id)


def create_token_pair(
    subject_id: UUID | str,
    kind: str = KIND_USER,
    tenant_id: UUID | str | None = None,
) -> TokenPair:
    """Create both access and refresh tokens."""
    return TokenPair(
        access_token=create_access_token(subject_id, kind, tenant_id),
        refresh_token=create_refresh_token(subject_id, kind, tenant_id),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Args:
        token: The JWT token to decode.

    Returns:
        TokenPayload with subject ID and token metadata.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload(
            sub=payload["sub"],
            type=payload["type"],
            kind=payload.get("kind", KIND_USER),
            tenant_id=payload.get("tenant_id"),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {e!s}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def load_subject(db: AsyncSession, token_data: TokenPayload) -> User | Contact:
    """Fetch the user or contact a token was issued to.

    Raises:
        HTTPException: 401 if the subject no longer exists.
    """
    model = Contact if token_data.kind == KIND_CONTACT else User
    try:
        subject_id = UUID(token_data.sub)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        ) from e

    result = await db.execute(select(model).where(model.id == subject_id))
    subject = result.scalar_one_or_none()

    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


async def get_current_subject(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | Contact:
    """FastAPI dependency to get the current authenticated user or client.

    Usage:
        @router.get("/me")
        async def get_me(subject = Depends(get_current_subject)):
            return subject

    Raises:
        HTTPException: 401 if not authenticated or token invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)

    if token_data.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await load_subject(db, token_data)
