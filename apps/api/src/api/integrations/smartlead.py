"""Smartlead client and campaign routing.

A handoff names either a campaign type (podcast, discovery, strategy,
platform_invite) or the pipeline trigger that caused it. Both resolve to the
same CampaignRoute, which carries the campaign and the stage the contact
moves to once the lead is accepted.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
from shared.schemas import ContactStage

from api.integrations.base import IntegrationError, build_client

logger = logging.getLogger("growth-manager-smartlead")

SMARTLEAD_API_BASE = "https://server.smartlead.ai/api/v1"
SERVICE = "Smartlead"


@dataclass
class SmartleadConfig:
    """Smartlead configuration from environment."""

    api_key: str
    podcast_campaign_id: str
    discovery_campaign_id: str
    strategy_campaign_id: str
    invitations_campaign_id: str

    @classmethod
    def from_env(cls) -> "SmartleadConfig":
        """Load Smartlead config from environment variables."""
        api_key = os.getenv("SMARTLEAD_API_KEY", "")
        if not api_key:
            logger.warning("SMARTLEAD_API_KEY not set - handoffs will fail")

        return cls(
            api_key=api_key,
            podcast_campaign_id=os.getenv("SMARTLEAD_PODCAST_CAMPAIGN_ID", ""),
            discovery_campaign_id=os.getenv("SMARTLEAD_DISCOVERY_CAMPAIGN_ID", ""),
            strategy_campaign_id=os.getenv("SMARTLEAD_STRATEGY_CAMPAIGN_ID", ""),
            invitations_campaign_id=os.getenv("SMARTLEAD_INVITATIONS_CAMPAIGN_ID", ""),
        )

    def is_configured(self) -> bool:
        """Check if Smartlead is properly configured."""
        return bool(self.api_key)


@dataclass(frozen=True)
class CampaignRoute:
    """Where a handoff goes and what it does to the contact."""

    key: str
    name: str
    config_field: str
    next_stage: ContactStage | None
    status_label: str | None

    @property
    def updates_contact(self) -> bool:
        return self.next_stage is not None


CAMPAIGN_ROUTES: dict[str, CampaignRoute] = {
    "podcast": CampaignRoute(
        key="podcast",
        name="Podcast Invitation",
        config_field="podcast_campaign_id",
        next_stage=ContactStage.PODCAST_INVITED,
        status_label="Podcast Invitation Sent",
    ),
    "discovery": CampaignRoute(
        key="discovery",
        name="Discovery Call Invitation",
        config_field="discovery_campaign_id",
        next_stage=ContactStage.DISCOVERY_INVITED,
        status_label="Discovery Invitation Sent",
    ),
    "strategy": CampaignRoute(
        key="strategy",
        name="Strategy Call Invitation",
        config_field="strategy_campaign_id",
        next_stage=ContactStage.STRATEGY_INVITED,
        status_label="Strategy Invitation Sent",
    ),
    "platform_invite": CampaignRoute(
        key="platform_invite",
        name="Platform Invitation",
        config_field="invitations_campaign_id",
        next_stage=None,
        status_label=None,
    ),
}

# Pipeline triggers that map onto a campaign type
TRIGGER_ALIASES = {
    "pre_qual_qualified": "podcast",
    "podcast_completed": "discovery",
    "discovery_qualified": "strategy",
    "user_invitation": "platform_invite",
}


def resolve_route(
    campaign_type: str | None, trigger: str | None = None
) -> CampaignRoute | None:
    """Find the route for a campaign type or trigger; None if unknown."""
    if campaign_type in CAMPAIGN_ROUTES:
        return CAMPAIGN_ROUTES[campaign_type]
    if campaign_type in TRIGGER_ALIASES:
        return CAMPAIGN_ROUTES[TRIGGER_ALIASES[campaign_type]]
    if trigger in TRIGGER_ALIASES:
        return CAMPAIGN_ROUTES[TRIGGER_ALIASES[trigger]]
    return None


def build_lead(
    email: str,
    name: str | None = None,
    company: str | None = None,
    phone: str | None = None,
    custom_fields: dict | None = None,
) -> dict:
    """Shape one entry of Smartlead's lead_list."""
    parts = (name or "").split()
    return {
        "first_name": parts[0] if parts else (email.split("@")[0] or "there"),
        "last_name": " ".join(parts[1:]),
        "email": email,
        "company_name": company or "",
        "phone_number": phone or "",
        "custom_fields": {
            "handoff_date": datetime.now(timezone.utc).date().isoformat(),
            **(custom_fields or {}),
        },
    }


class SmartleadClient:
    """Smartlead API client."""

    def __init__(
        self,
        config: SmartleadConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or SmartleadConfig.from_env()
        self._transport = transport

    def campaign_id_for(self, route: CampaignRoute) -> str:
        return getattr(self.config, route.config_field)

    async def add_leads(self, campaign_id: str, leads: list[dict]) -> dict:
        """Add leads to a campaign.

        Args:
            campaign_id: Smartlead campaign ID.
            leads: Entries built with build_lead().

        Returns:
            Parsed API response (``{"success": True}`` if the body isn't JSON).

        Raises:
            IntegrationError: If not configured or the API rejects the call.
        """
        if not self.config.is_configured():
            raise IntegrationError(SERVICE, "SMARTLEAD_API_KEY not configured")
        if not campaign_id:
            raise IntegrationError(SERVICE, "Campaign ID not configured")

        payload = {
            "lead_list": leads,
            "settings": {
                "ignore_global_block_list": False,
                "ignore_unsubscribe_list": False,
            },
        }

        async with build_client(self._transport) as client:
            try:
                response = await client.post(
                    f"{SMARTLEAD_API_BASE}/campaigns/{campaign_id}/leads",
                    params={"api_key": self.config.api_key},
                    json=payload,
                )
            except httpx.HTTPError as e:
                raise IntegrationError(SERVICE, f"Request failed: {e}") from e

        if response.is_error:
            raise IntegrationError(
                SERVICE,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        logger.info(f"Added {len(leads)} lead(s) to Smartlead campaign {campaign_id}")
        try:
            return response.json()
        except ValueError:
            return {"success": True}


# Singleton instance
_smartlead_client: SmartleadClient | None = None


def get_smartlead_client() -> SmartleadClient:
    """Get the Smartlead client singleton."""
    global _smartlead_client
    if _smartlead_client is None:
        _smartlead_client = SmartleadClient()
    return _smartlead_client
