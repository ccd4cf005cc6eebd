"""Billing module for tenant subscriptions.

Provides Stripe integration, tier limits, and tenant signup routes.
"""

from api.billing.limits import TierLimits, enforce_contact_limit, enforce_user_limit
from api.billing.routes import router as tenants_router
from api.billing.stripe_client import StripeClient, get_stripe_client
from api.billing.subscriptions import apply_stripe_event

__all__ = [
    "StripeClient",
    "TierLimits",
    "apply_stripe_event",
    "enforce_contact_limit",
    "enforce_user_limit",
    "get_stripe_client",
    "tenants_router",
]
