"""Inbound webhooks from Zoom, Calendly and Stripe."""

from api.webhooks.routes import router as webhooks_router

__all__ = ["webhooks_router"]
