"""Zoom webhook helpers and recording downloads.

Zoom posts recording.completed with the meeting topic and a list of
recording files. The topic decides which call table the transcript belongs
to; the transcript file itself is fetched with a server-to-server OAuth
token and stripped down to the spoken lines.
"""

import hashlib
import hmac
import logging
import os
import re
from dataclasses import dataclass

import httpx
from shared.schemas import CallType

from api.integrations.base import IntegrationError, build_client, parse_json

logger = logging.getLogger("growth-manager-zoom")

ZOOM_OAUTH_URL = "https://zoom.us/oauth/token"
SERVICE = "Zoom"

_TIMESTAMP_LINE = re.compile(r"\d{2}:\d{2}:\d{2}\.\d{3} --> \d{2}:\d{2}:\d{2}\.\d{3}")
_CUE_ID = re.compile(r"^\d+$")
_SKIP_PREFIXES = ("NOTE", "Kind:", "Language:")


@dataclass
class ZoomConfig:
    """Zoom configuration from environment."""

    account_id: str
    client_id: str
    client_secret: str
    webhook_secret: str

    @classmethod
    def from_env(cls) -> "ZoomConfig":
        """Load Zoom config from environment variables."""
        config = cls(
            account_id=os.getenv("ZOOM_ACCOUNT_ID", ""),
            client_id=os.getenv("ZOOM_CLIENT_ID", ""),
            client_secret=os.getenv("ZOOM_CLIENT_SECRET", ""),
            webhook_secret=os.getenv("ZOOM_WEBHOOK_SECRET", ""),
        )
        if not config.webhook_secret:
            logger.warning("ZOOM_WEBHOOK_SECRET not set - URL validation will fail")
        if not config.is_configured():
            logger.warning("Zoom OAuth credentials not set - transcripts won't download")
        return config

    def is_configured(self) -> bool:
        """Check if the OAuth credentials are present."""
        return bool(self.account_id and self.client_id and self.client_secret)


def classify_topic(topic: str | None) -> CallType | None:
    """Map a meeting topic to the call table it belongs to."""
    topic_lower = (topic or "").lower()
    if any(
        marker in topic_lower
        for marker in ("pre-qual", "prequal", "pre qual", "pre-podcast")
    ):
        return CallType.PREQUAL
    if "podcast" in topic_lower:
        return CallType.PODCAST
    if "discovery" in topic_lower:
        return CallType.DISCOVERY
    if "strategy" in topic_lower or "sales" in topic_lower:
        return CallType.STRATEGY
    return None


def clean_vtt(content: str) -> str:
    """Strip WebVTT headers, cue numbers and timestamps, keeping speech."""
    kept = []
    for raw in content.splitlines():
        line = raw.strip()
        if (
            not line
            or line == "WEBVTT"
            or _CUE_ID.match(line)
            or _TIMESTAMP_LINE.search(line)
            or line.startswith(_SKIP_PREFIXES)
        ):
            continue
        kept.append(line)
    return "\n".join(kept)


def is_transcript_file(recording_file: dict) -> bool:
    return (
        recording_file.get("file_type") == "TRANSCRIPT"
        or recording_file.get("recording_type") == "audio_transcript"
    )


def is_media_file(recording_file: dict) -> bool:
    return recording_file.get("file_type") in ("MP4", "M4A")


class ZoomClient:
    """Zoom API client for webhook validation and file downloads."""

    def __init__(
        self,
        config: ZoomConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ZoomConfig.from_env()
        self._transport = transport

    def sign_validation_token(self, plain_token: str) -> str:
        """Answer Zoom's endpoint.url_validation challenge.

        Raises:
            IntegrationError: If ZOOM_WEBHOOK_SECRET is not configured.
        """
        if not self.config.webhook_secret:
            raise IntegrationError(SERVICE, "Webhook secret not configured")
        return hmac.new(
            self.config.webhook_secret.encode(),
            plain_token.encode(),
            hashlib.sha256,
        ).hexdigest()

    async def get_access_token(self) -> str:
        """Fetch a server-to-server OAuth token (account_credentials grant)."""
        if not self.config.is_configured():
            raise IntegrationError(SERVICE, "OAuth credentials not configured")

        async with build_client(self._transport) as client:
            try:
                response = await client.post(
                    ZOOM_OAUTH_URL,
                    params={
                        "grant_type": "account_credentials",
                        "account_id": self.config.account_id,
                    },
                    auth=(self.config.client_id, self.config.client_secret),
                )
            except httpx.HTTPError as e:
                raise IntegrationError(SERVICE, f"Token request failed: {e}") from e

        token = parse_json(SERVICE, response).get("access_token")
        if not token:
            raise IntegrationError(SERVICE, "No access_token in OAuth response")
        return token

    async def download_transcript(self, download_url: str, access_token: str) -> str:
        """Download a VTT transcript and return the cleaned text."""
        async with build_client(self._transport) as client:
            try:
                response = await client.get(
                    download_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                    follow_redirects=True,
                )
            except httpx.HTTPError as e:
                raise IntegrationError(SERVICE, f"Download failed: {e}") from e

        if response.is_error:
            raise IntegrationError(
                SERVICE,
                f"HTTP {response.status_code} downloading transcript",
                status_code=response.status_code,
            )
        return clean_vtt(response.text)


# Singleton instance
_zoom_client: ZoomClient | None = None


def get_zoom_client() -> ZoomClient:
    """Get the Zoom client singleton."""
    global _zoom_client
    if _zoom_client is None:
        _zoom_client = ZoomClient()
    return _zoom_client
