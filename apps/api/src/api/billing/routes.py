"""Tenant signup and account routes.

Signup creates the Stripe customer and trial subscription first and the
local tenant and owner second. If the local writes fail, the Stripe
subscription is cancelled so the card is never charged for an account
that does not exist.
"""

import logging
import re
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from shared.schemas import SubscriptionStatus, SubscriptionTier, TenantStatus, UserRole
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.password import get_password_hash
from api.billing.stripe_client import StripeClient, get_stripe_client
from api.db.database import get_db
from api.db.models import TIER_CONFIG, TRIAL_DAYS, Tenant, User, as_utc, utcnow
from api.db.queries import serialize
from api.responses import success
from api.tenancy import require_tenant_id

logger = logging.getLogger("growth-manager-billing")

router = APIRouter(prefix="/tenants", tags=["Tenants"])

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9-]{3,30}$")
ROOT_DOMAIN = "growthmanagerpro.com"

RESERVED_SUBDOMAINS = frozenset(
    {
        "www", "api", "app", "admin", "dashboard", "login", "signup",
        "mail", "smtp", "ftp", "webmail", "support", "help", "docs",
        "blog", "status", "staging", "dev", "test", "demo", "sandbox",
    }
)


# =============================================================================
# Request Models
# =============================================================================


class SignupRequest(BaseModel):
    """Request body for tenant signup."""

    model_config = ConfigDict(populate_by_name=True)

    business_name: str = Field(..., min_length=1, alias="businessName")
    subdomain: str = Field(..., min_length=1)
    owner_name: str = Field(..., min_length=1, alias="ownerName")
    email: EmailStr
    phone: str | None = None
    password: str = Field(..., min_length=8)
    tier: str
    payment_method_id: str = Field(..., min_length=1, alias="paymentMethodId")


# =============================================================================
# Subdomains
# =============================================================================


async def subdomain_problem(db: AsyncSession, subdomain: str) -> str | None:
    """Why a subdomain can't be used, or None if it's free."""
    if not SUBDOMAIN_PATTERN.match(subdomain):
        return (
            "Invalid format. Use lowercase letters, numbers, and hyphens only "
            "(3-30 characters)"
        )
    if subdomain in RESERVED_SUBDOMAINS:
        return "This subdomain is reserved"

    result = await db.execute(select(Tenant.id).where(Tenant.subdomain == subdomain))
    if result.first() is not None:
        return "Subdomain already taken"
    return None


@router.get("/check-subdomain")
async def check_subdomain(
    subdomain: str,
    db: AsyncSession = Depends(get_db),
):
    """Check whether a subdomain is free to claim."""
    problem = await subdomain_problem(db, subdomain)
    if problem:
        return success({"available": False, "error": problem})

    return success(
        {
            "available": True,
            "subdomain": subdomain,
            "fullDomain": f"{subdomain}.{ROOT_DOMAIN}",
        }
    )


# =============================================================================
# Signup
# =============================================================================


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
):
    """Create a tenant, its owner and a trial subscription.

    Steps:
    1. Validate tier, subdomain and email
    2. Create the Stripe customer and attach the card as default
    3. Start the subscription with a free trial
    4. Create the tenant and owner user
    """
    try:
        tier = SubscriptionTier(request.tier)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid subscription tier",
        ) from e

    subdomain = request.subdomain.strip().lower()
    problem = await subdomain_problem(db, subdomain)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)

    email = request.email.lower()
    existing = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    if not stripe_client.config.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Billing not configured",
        )

    try:
        customer_id = await stripe_client.create_customer(
            email=email,
            name=request.owner_name,
            business_name=request.business_name,
            subdomain=subdomain,
            phone=request.phone,
        )
        await stripe_client.attach_payment_method(customer_id, request.payment_method_id)
        subscription = await stripe_client.create_subscription(customer_id, tier)
    except (stripe.StripeError, ValueError) as e:
        logger.error(f"Stripe setup failed for {email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Payment setup failed: {e}",
        ) from e

    subscription_id = subscription["subscription_id"]
    limits = TIER_CONFIG[tier]
    now = utcnow()

    try:
        tenant = Tenant(
            business_name=request.business_name,
            subdomain=subdomain,
            owner_name=request.owner_name,
            owner_email=email,
            owner_phone=request.phone,
            subscription_tier=tier.value,
            subscription_status=SubscriptionStatus.TRIAL.value,
            monthly_fee=Decimal(limits["monthly_fee"]),
            trial_ends_at=now + timedelta(days=TRIAL_DAYS),
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription_id,
            max_contacts=limits["max_contacts"],
            max_users=limits["max_users"],
            max_advisors=limits["max_advisors"],
            status=TenantStatus.ACTIVE.value,
            onboarded_at=now,
        )
        db.add(tenant)
        await db.flush()

        owner = User(
            tenant_id=tenant.id,
            email=email,
            full_name=request.owner_name,
            password_hash=get_password_hash(request.password),
            role=UserRole.OWNER.value,
            user_type=UserRole.OWNER.value,
        )
        db.add(owner)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Tenant creation failed for {subdomain}, cancelling {subscription_id}: {e}")
        try:
            await stripe_client.cancel_subscription(subscription_id)
        except stripe.StripeError as cancel_error:
            logger.error(f"Failed to cancel subscription {subscription_id}: {cancel_error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create account",
        ) from e

    logger.info(f"Tenant {tenant.id} ({subdomain}) signed up on {tier.value}")

    return success(
        {
            "tenant": {
                "id": str(tenant.id),
                "businessName": tenant.business_name,
                "subdomain": tenant.subdomain,
                "fullDomain": f"{tenant.subdomain}.{ROOT_DOMAIN}",
                "tier": tenant.subscription_tier,
                "status": tenant.subscription_status,
                "trialEndsAt": as_utc(tenant.trial_ends_at).isoformat(),
            },
            "user": {
                "id": str(owner.id),
                "email": owner.email,
                "name": owner.full_name,
                "role": owner.role,
            },
        },
        message="Account created successfully",
    )


@router.get("/current")
async def current_tenant(
    tenant_id: UUID = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """The tenant named by the request's tenant header."""
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    tenant = result.scalar_one_or_none()
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    return success(serialize(tenant, exclude=("stripe_customer_id", "stripe_subscription_id")))
