"""Advisor and client portals: connections, client dashboards and the tenant home page."""

from api.portal.advisors import router as advisors_router
from api.portal.clients import router as client_portal_router
from api.portal.connections import router as connections_router
from api.portal.dashboard import router as dashboard_router

__all__ = [
    "advisors_router",
    "client_portal_router",
    "connections_router",
    "dashboard_router",
]
