"""Instantly.ai client for campaign email.

Two calls are used:
- email/send for one-off personalised emails (podcast invitations)
- lead/add to drop a prospect into a campaign sequence (discovery,
  strategy and platform invitation campaigns)
"""

import logging
import os
from dataclasses import dataclass

import httpx

from api.integrations.base import IntegrationError, build_client, parse_json

logger = logging.getLogger("growth-manager-instantly")

INSTANTLY_API_BASE = "https://api.instantly.ai/api/v1"
SERVICE = "Instantly"


@dataclass
class InstantlyConfig:
    """Instantly configuration from environment."""

    api_key: str
    discovery_campaign_id: str
    strategy_campaign_id: str
    invitation_campaign_id: str
    from_email: str
    from_name: str
    discovery_calendly_url: str
    strategy_calendly_url: str
    podcast_calendly_url: str

    @classmethod
    def from_env(cls) -> "InstantlyConfig":
        """Load Instantly config from environment variables."""
        api_key = os.getenv("INSTANTLY_API_KEY", "")
        if not api_key:
            logger.warning("INSTANTLY_API_KEY not set - handoff emails will be skipped")

        return cls(
            api_key=api_key,
            discovery_campaign_id=os.getenv("INSTANTLY_DISCOVERY_CAMPAIGN_ID", ""),
            strategy_campaign_id=os.getenv("INSTANTLY_STRATEGY_CAMPAIGN_ID", ""),
            invitation_campaign_id=os.getenv("INSTANTLY_INVITATION_CAMPAIGN_ID", ""),
            from_email=os.getenv("INSTANTLY_FROM_EMAIL", "noreply@example.com"),
            from_name=os.getenv("INSTANTLY_FROM_NAME", "Growth Manager Pro"),
            discovery_calendly_url=os.getenv(
                "CALENDLY_DISCOVERY_URL", "https://calendly.com/discovery-call"
            ),
            strategy_calendly_url=os.getenv(
                "CALENDLY_STRATEGY_URL", "https://calendly.com/strategy-call"
            ),
            podcast_calendly_url=os.getenv(
                "CALENDLY_PODCAST_URL", "https://calendly.com/podcast-call"
            ),
        )

    def is_configured(self) -> bool:
        """Check if Instantly is properly configured."""
        return bool(self.api_key)


def split_name(full_name: str | None) -> tuple[str, str]:
    """Split 'Jane Q Doe' into ('Jane', 'Q Doe')."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def check_status(result: dict, what: str) -> dict:
    """Raise when a 200 reply carries a non-success status field."""
    api_status = result.get("status")
    if api_status is not None and api_status not in ("success", "ok"):
        raise IntegrationError(SERVICE, f"{what} rejected: {result}")
    return result


class InstantlyClient:
    """Instantly API client."""

    def __init__(
        self,
        config: InstantlyConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or InstantlyConfig.from_env()
        self._transport = transport

    def _require_configured(self) -> None:
        if not self.config.is_configured():
            raise IntegrationError(SERVICE, "INSTANTLY_API_KEY not configured")

    async def send_email(self, to: str, subject: str, body: str) -> dict:
        """Send a single email.

        Args:
            to: Recipient address.
            subject: Subject line.
            body: Plain-text body.

        Returns:
            Parsed API response.

        Raises:
            IntegrationError: If not configured or the API rejects the call.
        """
        self._require_configured()

        async with build_client(self._transport) as client:
            try:
                response = await client.post(
                    f"{INSTANTLY_API_BASE}/email/send",
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                    json={
                        "to": to,
                        "subject": subject,
                        "body": body,
                        "from_email": self.config.from_email,
                        "from_name": self.config.from_name,
                    },
                )
            except httpx.HTTPError as e:
                raise IntegrationError(SERVICE, f"Request failed: {e}") from e

        result = check_status(parse_json(SERVICE, response), "Email")
        logger.info(f"Email sent via Instantly to {to}")
        return result

    async def add_lead(
        self,
        campaign_id: str,
        email: str,
        full_name: str | None = None,
        company_name: str | None = None,
        personalization: dict | None = None,
        variables: dict | None = None,
    ) -> dict:
        """Add a lead to a campaign.

        Raises:
            IntegrationError: If not configured, no campaign is set, or the
                API rejects the lead.
        """
        self._require_configured()
        if not campaign_id:
            raise IntegrationError(SERVICE, "Campaign ID not configured")

        first_name, last_name = split_name(full_name)
        payload = {
            "api_key": self.config.api_key,
            "campaign_id": campaign_id,
            "email": email,
            "first_name": first_name or email.split("@")[0],
            "last_name": last_name,
            "company_name": company_name or "",
            "personalization": personalization or {},
            "variables": variables or {},
        }

        async with build_client(self._transport) as client:
            try:
                response = await client.post(
                    f"{INSTANTLY_API_BASE}/lead/add", json=payload
                )
            except httpx.HTTPError as e:
                raise IntegrationError(SERVICE, f"Request failed: {e}") from e

        result = check_status(parse_json(SERVICE, response), "Lead")
        logger.info(f"Added {email} to Instantly campaign {campaign_id}")
        return result


# Singleton instance
_instantly_client: InstantlyClient | None = None


def get_instantly_client() -> InstantlyClient:
    """Get the Instantly client singleton."""
    global _instantly_client
    if _instantly_client is None:
        _instantly_client = InstantlyClient()
    return _instantly_client
