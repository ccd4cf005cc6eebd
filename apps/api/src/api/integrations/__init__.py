"""Clients for the marketing-automation and meeting services.

Each client is a thin httpx wrapper configured from the environment. Any
failure surfaces as IntegrationError so the workflow can log it and carry on.
"""

from api.integrations.base import IntegrationError
from api.integrations.instantly import InstantlyClient, get_instantly_client
from api.integrations.smartlead import SmartleadClient, get_smartlead_client
from api.integrations.zoom import ZoomClient, get_zoom_client

__all__ = [
    "InstantlyClient",
    "IntegrationError",
    "SmartleadClient",
    "ZoomClient",
    "get_instantly_client",
    "get_smartlead_client",
    "get_zoom_client",
]
