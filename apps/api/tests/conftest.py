"""Shared fixtures for the API tests.

Each test gets a fresh SQLite database, a TestClient, and fake or
mock-transport versions of every outside service so nothing leaves the
process.
"""

import asyncio
import json
import os
import sys
import tempfile
from pathlib import Path
from uuid import UUID

# Configure the environment before the app (and its engine) is imported
_db_dir = tempfile.mkdtemp(prefix="growth-manager-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
for _key in (
    "ANTHROPIC_API_KEY",
    "INSTANTLY_API_KEY",
    "SMARTLEAD_API_KEY",
    "ZOOM_ACCOUNT_ID",
    "ZOOM_CLIENT_ID",
    "ZOOM_CLIENT_SECRET",
    "ZOOM_WEBHOOK_SECRET",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "RESEND_API_KEY",
    "PROTECTED_ADMIN_EMAIL",
):
    os.environ[_key] = ""
os.environ["APP_BASE_URL"] = "https://app.test"

# Add src to path
_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(_root / "apps" / "api" / "src"))
sys.path.insert(0, str(_root / "packages" / "shared" / "src"))

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from api.billing.stripe_client import StripeClient, StripeConfig, get_stripe_client  # noqa: E402
from api.db.database import async_session, drop_db, init_db  # noqa: E402
from api.db.models import Tenant  # noqa: E402
from api.integrations.instantly import (  # noqa: E402
    InstantlyClient,
    InstantlyConfig,
    get_instantly_client,
)
from api.integrations.smartlead import (  # noqa: E402
    SmartleadClient,
    SmartleadConfig,
    get_smartlead_client,
)
from api.integrations.zoom import ZoomClient, ZoomConfig, get_zoom_client  # noqa: E402
from api.main import app  # noqa: E402
from api.workflow.scoring import AnalysisError, get_scorer  # noqa: E402
from shared.email import EmailConfig, get_email_sender  # noqa: E402


# =============================================================================
# Database helpers
# =============================================================================


def seed(*records):
    """Insert rows directly and return them (attributes stay loaded)."""

    async def _seed():
        async with async_session() as session:
            session.add_all(records)
            await session.commit()

    asyncio.run(_seed())
    return records[0] if len(records) == 1 else records


def fetch(model, record_id):
    """Reload a row by primary key (a UUID or its string form)."""
    if isinstance(record_id, str):
        record_id = UUID(record_id)

    async def _fetch():
        async with async_session() as session:
            return await session.get(model, record_id)

    return asyncio.run(_fetch())


def fetch_all(model, **criteria):
    """All rows of a model matching simple equality criteria."""
    from sqlalchemy import select

    async def _fetch():
        async with async_session() as session:
            query = select(model)
            for column, value in criteria.items():
                query = query.where(getattr(model, column) == value)
            result = await session.execute(query)
            return list(result.scalars().all())

    return asyncio.run(_fetch())


@pytest.fixture
def client():
    """Test client over a freshly created database."""
    asyncio.run(init_db())
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    asyncio.run(drop_db())


@pytest.fixture
async def db_session():
    """Async session for tests that call workflow functions directly."""
    await init_db()
    async with async_session() as session:
        yield session
    await drop_db()


def make_tenant(subdomain: str = "acme", **fields) -> Tenant:
    defaults = {
        "business_name": f"{subdomain.title()} Growth",
        "subdomain": subdomain,
        "owner_name": "Olivia Owner",
        "owner_email": f"owner@{subdomain}.com",
        "subscription_tier": "foundations",
        "subscription_status": "trial",
        "max_contacts": 25,
        "max_users": 2,
        "max_advisors": 1,
        "status": "active",
    }
    defaults.update(fields)
    return Tenant(**defaults)


@pytest.fixture
def tenant(client):
    return seed(make_tenant())


@pytest.fixture
def other_tenant(client):
    return seed(make_tenant("globex"))


@pytest.fixture
def headers(tenant):
    return {"X-Tenant-ID": str(tenant.id)}


# =============================================================================
# Claude
# =============================================================================


class FakeScorer:
    """Stands in for TranscriptScorer; replies with a canned analysis."""

    def __init__(self, reply: dict | None = None, configured: bool = True, error: str | None = None):
        self.reply = reply or {}
        self.configured = configured
        self.error = error
        self.prompts: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    async def analyze(self, prompt: str) -> dict:
        self.prompts.append(prompt)
        if self.error:
            raise AnalysisError(self.error)
        return self.reply


@pytest.fixture
def use_scorer():
    """Install a FakeScorer with the given reply."""

    def _install(reply: dict | None = None, **kwargs) -> FakeScorer:
        scorer = FakeScorer(reply, **kwargs)
        app.dependency_overrides[get_scorer] = lambda: scorer
        return scorer

    return _install


# =============================================================================
# Instantly / Smartlead (httpx.MockTransport)
# =============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request and answers with a fixed reply."""

    def __init__(self, status_code: int = 200, body: dict | None = None):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body if body is not None else {"status": "success"}
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def instantly_config(**overrides) -> InstantlyConfig:
    values = {
        "api_key": "inst-key",
        "discovery_campaign_id": "camp-discovery",
        "strategy_campaign_id": "camp-strategy",
        "invitation_campaign_id": "camp-invite",
        "from_email": "team@growth.test",
        "from_name": "Growth Team",
        "discovery_calendly_url": "https://calendly.com/test/discovery",
        "strategy_calendly_url": "https://calendly.com/test/strategy",
        "podcast_calendly_url": "https://calendly.com/test/podcast",
    }
    values.update(overrides)
    return InstantlyConfig(**values)


@pytest.fixture
def instantly_transport():
    transport = RecordingTransport()
    app.dependency_overrides[get_instantly_client] = lambda: InstantlyClient(
        instantly_config(), transport=transport
    )
    return transport


@pytest.fixture
def failing_instantly():
    """Instantly that rejects every call with a 500."""
    transport = RecordingTransport(status_code=500, body={"error": "down"})
    app.dependency_overrides[get_instantly_client] = lambda: InstantlyClient(
        instantly_config(), transport=transport
    )
    return transport


def smartlead_config(**overrides) -> SmartleadConfig:
    values = {
        "api_key": "sl-key",
        "podcast_campaign_id": "101",
        "discovery_campaign_id": "102",
        "strategy_campaign_id": "103",
        "invitations_campaign_id": "104",
    }
    values.update(overrides)
    return SmartleadConfig(**values)


@pytest.fixture
def smartlead_transport():
    transport = RecordingTransport(body={"ok": True, "upload_count": 1})
    app.dependency_overrides[get_smartlead_client] = lambda: SmartleadClient(
        smartlead_config(), transport=transport
    )
    return transport


# =============================================================================
# Zoom
# =============================================================================


ZOOM_SECRET = "zoom-webhook-secret"

SAMPLE_VTT = """WEBVTT

1
00:00:01.000 --> 00:00:04.000
Host: Thanks for joining the pre-qual call.

2
00:00:05.000 --> 00:00:09.000
Guest: Happy to be here, we are growing fast.
"""


def zoom_config(**overrides) -> ZoomConfig:
    values = {
        "account_id": "acct",
        "client_id": "cid",
        "client_secret": "csecret",
        "webhook_secret": ZOOM_SECRET,
    }
    values.update(overrides)
    return ZoomConfig(**values)


class ZoomTransport(httpx.MockTransport):
    """Serves the OAuth token and the transcript download."""

    def __init__(self, vtt: str = SAMPLE_VTT, download_status: int = 200):
        self.requests: list[httpx.Request] = []
        self.vtt = vtt
        self.download_status = download_status
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "zoom.us":
            return httpx.Response(200, json={"access_token": "zoom-token"})
        return httpx.Response(self.download_status, text=self.vtt)


@pytest.fixture
def zoom_transport():
    transport = ZoomTransport()
    app.dependency_overrides[get_zoom_client] = lambda: ZoomClient(
        zoom_config(), transport=transport
    )
    return transport


# =============================================================================
# Stripe / Email
# =============================================================================


class FakeStripeClient(StripeClient):
    """StripeClient whose API calls are recorded instead of sent."""

    def __init__(self, configured: bool = True, fail_with: Exception | None = None):
        super().__init__(
            StripeConfig(
                api_key="sk_test_fake" if configured else "",
                webhook_secret="whsec_fake",
                foundations_price_id="price_foundations",
                growth_price_id="price_growth",
                scale_price_id="price_scale",
                enterprise_price_id="",
            )
        )
        self.fail_with = fail_with
        self.calls: list[tuple] = []
        self.cancelled: list[str] = []

    async def create_customer(self, email, name, business_name, subdomain, phone=None):
        self.calls.append(("create_customer", email, subdomain))
        if self.fail_with:
            raise self.fail_with
        return "cus_test_123"

    async def attach_payment_method(self, customer_id, payment_method_id):
        self.calls.append(("attach_payment_method", customer_id, payment_method_id))

    async def create_subscription(self, customer_id, tier, trial_days=14):
        price_id = self.get_price_id(tier)
        if not price_id:
            raise ValueError(f"No price ID configured for tier: {tier.value}")
        self.calls.append(("create_subscription", customer_id, price_id, trial_days))
        return {"subscription_id": "sub_test_123", "status": "trialing", "trial_end": None}

    async def cancel_subscription(self, subscription_id):
        self.cancelled.append(subscription_id)

    def verify_webhook(self, payload, signature):
        if signature != "valid-signature":
            raise ValueError("Invalid webhook signature: bad signature")
        return json.loads(payload)


@pytest.fixture
def fake_stripe():
    stripe_client = FakeStripeClient()
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    return stripe_client


class FakeEmailSender:
    """Records transactional emails instead of calling Resend."""

    def __init__(self, succeed: bool = True):
        self.config = EmailConfig(api_key="re_test", from_email="noreply@growth.test")
        self.succeed = succeed
        self.sent: list[tuple] = []

    async def send_password_reset(self, to, name, reset_link):
        self.sent.append(("password_reset", to, reset_link))
        return self.succeed

    async def send_client_welcome(self, to, name, company=None, tier=None):
        self.sent.append(("client_welcome", to, company, tier))
        return self.succeed

    async def send_connection_notice(self, kind, to, to_name, inviter, inviter_type, link):
        self.sent.append((kind, to, inviter, link))
        return self.succeed


@pytest.fixture
def email_sender():
    sender = FakeEmailSender()
    app.dependency_overrides[get_email_sender] = lambda: sender
    return sender


