"""Applying Stripe subscription events to tenants.

Each handled event with a known tenant updates the tenant's subscription
state and records a subscription_history row.
"""

import logging
from decimal import Decimal
from typing import Any

from shared.schemas import SubscriptionStatus, TenantStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.db.models import SubscriptionHistory, Tenant, utcnow

logger = logging.getLogger("growth-manager-billing")

# Stripe subscription status -> local subscription status
STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIAL,
    "canceled": SubscriptionStatus.CANCELLED,
}

HANDLED_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.trial_will_end",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
)


def map_stripe_status(stripe_status: str | None) -> SubscriptionStatus:
    """Anything Stripe reports other than active/trialing/canceled pauses."""
    return STATUS_MAP.get(stripe_status or "", SubscriptionStatus.PAUSED)


def _cents(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(int(value)) / 100


def _price_amount(subscription: dict) -> Decimal | None:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return _cents((items[0].get("price") or {}).get("unit_amount"))


def _subscription_id(event_type: str, obj: dict) -> str | None:
    if event_type.startswith("invoice."):
        return obj.get("subscription")
    return obj.get("id")


async def find_tenant_by_subscription(
    db: AsyncSession, subscription_id: str
) -> Tenant | None:
    result = await db.execute(
        select(Tenant).where(Tenant.stripe_subscription_id == subscription_id)
    )
    return result.scalars().first()


async def apply_stripe_event(db: AsyncSession, event: dict) -> bool:
    """Apply a verified Stripe event.

    Returns:
        True if the event changed or recorded something for a tenant.
    """
    event_type = event.get("type") or ""
    obj = (event.get("data") or {}).get("object") or {}

    if event_type not in HANDLED_EVENTS:
        logger.info(f"Unhandled Stripe event type: {event_type}")
        return False

    subscription_id = _subscription_id(event_type, obj)
    if not subscription_id:
        return False

    tenant = await find_tenant_by_subscription(db, subscription_id)
    if tenant is None:
        logger.error(f"Tenant not found for subscription {subscription_id}")
        return False

    old_status = tenant.subscription_status
    history = SubscriptionHistory(
        tenant_id=tenant.id,
        event_type=event_type,
        stripe_event_id=event.get("id"),
        old_status=old_status,
    )

    if event_type == "customer.subscription.created":
        history.new_status = old_status
        history.amount = _price_amount(obj)
        history.details = {"stripe_status": obj.get("status"), "tier": tenant.subscription_tier}

    elif event_type == "customer.subscription.updated":
        new_status = map_stripe_status(obj.get("status")).value
        tenant.subscription_status = new_status
        history.new_status = new_status
        history.details = {"stripe_status": obj.get("status")}

    elif event_type == "customer.subscription.deleted":
        tenant.subscription_status = SubscriptionStatus.CANCELLED.value
        tenant.status = TenantStatus.SUSPENDED.value
        history.new_status = tenant.subscription_status

    elif event_type == "customer.subscription.trial_will_end":
        logger.info(f"Trial ending soon for tenant {tenant.id} ({tenant.owner_email})")
        history.details = {"trial_end": obj.get("trial_end")}

    elif event_type == "invoice.payment_succeeded":
        if tenant.subscription_status == SubscriptionStatus.TRIAL.value:
            tenant.subscription_status = SubscriptionStatus.ACTIVE.value
            tenant.subscription_started_at = tenant.subscription_started_at or utcnow()
        tenant.last_payment_at = utcnow()
        history.new_status = tenant.subscription_status
        history.amount = _cents(obj.get("amount_paid"))
        history.details = {"invoice_id": obj.get("id")}

    elif event_type == "invoice.payment_failed":
        tenant.subscription_status = SubscriptionStatus.PAUSED.value
        tenant.status = TenantStatus.SUSPENDED.value
        history.new_status = tenant.subscription_status
        history.amount = _cents(obj.get("amount_due"))
        history.details = {"invoice_id": obj.get("id")}

    db.add(history)
    await db.flush()

    logger.info(
        f"Stripe {event_type} applied to tenant {tenant.id}: "
        f"{old_status} -> {tenant.subscription_status}"
    )
    return True
