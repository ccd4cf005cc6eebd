"""Stripe integration for tenant subscriptions.

Handles customer creation, payment methods, the trial subscription
created at signup, and webhook verification.
"""

import logging
import os
from dataclasses import dataclass

import stripe
from shared.schemas import SubscriptionTier

from api.db.models import TRIAL_DAYS

logger = logging.getLogger("growth-manager-billing")


@dataclass
class StripeConfig:
    """Stripe configuration from environment."""

    api_key: str
    webhook_secret: str
    foundations_price_id: str
    growth_price_id: str
    scale_price_id: str
    enterprise_price_id: str

    @classmethod
    def from_env(cls) -> "StripeConfig":
        """Load Stripe config from environment variables."""
        api_key = os.getenv("STRIPE_SECRET_KEY", "")
        if not api_key:
            logger.warning("STRIPE_SECRET_KEY not set - tenant signup is disabled")

        return cls(
            api_key=api_key,
            webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            foundations_price_id=os.getenv("STRIPE_PRICE_FOUNDATIONS", ""),
            growth_price_id=os.getenv("STRIPE_PRICE_GROWTH", ""),
            scale_price_id=os.getenv("STRIPE_PRICE_SCALE", ""),
            enterprise_price_id=os.getenv("STRIPE_PRICE_ENTERPRISE", ""),
        )

    def is_configured(self) -> bool:
        """Check if Stripe is properly configured."""
        return bool(self.api_key)


class StripeClient:
    """Stripe API client for subscription management."""

    def __init__(self, config: StripeConfig | None = None):
        """Initialize Stripe client.

        Args:
            config: Stripe configuration. Loads from env if not provided.
        """
        self.config = config or StripeConfig.from_env()
        if self.config.is_configured():
            stripe.api_key = self.config.api_key

    def get_price_id(self, tier: SubscriptionTier) -> str | None:
        """Get Stripe price ID for a tier."""
        price_map = {
            SubscriptionTier.FOUNDATIONS: self.config.foundations_price_id,
            SubscriptionTier.GROWTH: self.config.growth_price_id,
            SubscriptionTier.SCALE: self.config.scale_price_id,
            SubscriptionTier.ENTERPRISE: self.config.enterprise_price_id,
        }
        return price_map.get(tier) or None

    async def create_customer(
        self,
        email: str,
        name: str,
        business_name: str,
        subdomain: str,
        phone: str | None = None,
    ) -> str:
        """Create a Stripe customer for a new tenant.

        Returns:
            Stripe customer ID.
        """
        customer = stripe.Customer.create(
            email=email,
            name=name,
            phone=phone,
            metadata={
                "business_name": business_name,
                "subdomain": subdomain,
            },
        )
        return customer.id

    async def attach_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        """Attach a card and make it the customer's default."""
        stripe.PaymentMethod.attach(payment_method_id, customer=customer_id)
        stripe.Customer.modify(
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    async def create_subscription(
        self,
        customer_id: str,
        tier: SubscriptionTier,
        trial_days: int = TRIAL_DAYS,
    ) -> dict:
        """Create a subscription with a free trial.

        Args:
            customer_id: Stripe customer ID.
            tier: The tier to subscribe to.
            trial_days: Length of the free trial.

        Returns:
            Subscription details.

        Raises:
            ValueError: If no price is configured for the tier.
        """
        price_id = self.get_price_id(tier)
        if not price_id:
            raise ValueError(f"No price ID configured for tier: {tier.value}")

        subscription = stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": price_id}],
            trial_period_days=trial_days,
            metadata={"tier": tier.value},
        )

        return {
            "subscription_id": subscription.id,
            "status": subscription.status,
            "trial_end": subscription.get("trial_end"),
        }

    async def cancel_subscription(self, subscription_id: str) -> None:
        """Cancel a subscription immediately."""
        stripe.Subscription.cancel(subscription_id)

    def verify_webhook(self, payload: bytes, signature: str) -> dict:
        """Verify and parse a Stripe webhook.

        Args:
            payload: Raw request body.
            signature: Stripe-Signature header.

        Returns:
            Parsed webhook event.

        Raises:
            ValueError: If signature verification fails.
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                self.config.webhook_secret,
            )
            return dict(event)
        except (stripe.SignatureVerificationError, ValueError) as e:
            raise ValueError(f"Invalid webhook signature: {e}") from e


# Singleton instance
_stripe_client: StripeClient | None = None


def get_stripe_client() -> StripeClient:
    """Get the Stripe client singleton."""
    global _stripe_client
    if _stripe_client is None:
        _stripe_client = StripeClient()
    return _stripe_client
