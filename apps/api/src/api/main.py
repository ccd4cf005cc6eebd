"""FastAPI application for Growth Manager Pro.

Provides:
- Tenant signup with a Stripe trial subscription
- JWT authentication for team users and client contacts
- Contacts, deals, proposals and client messages
- The four recorded call types and the pipeline board
- Claude transcript analysis and stage handoffs
- Advisor/client connections, client dashboards and the tenant dashboard
- Zoom, Calendly and Stripe webhooks

Flow:
1. POST /tenants/signup - Create a tenant and its owner
2. POST /auth/login - Get JWT tokens
3. POST /leads - Capture a lead into the pre-qualification campaign
4. POST /webhooks/zoom - Recording arrives, transcript is scored
5. GET /pipeline - Watch the prospect move to a closed deal
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv

# Load environment variables from project root before anything reads them
_project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
)
load_dotenv(os.path.join(_project_root, ".env.local"))
load_dotenv()  # Also try default .env

from fastapi import Depends, FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from pydantic import BaseModel  # noqa: E402
from shared.email import EmailSender, get_email_sender  # noqa: E402

from api.auth import auth_router  # noqa: E402
from api.billing import StripeClient, get_stripe_client, tenants_router  # noqa: E402
from api.calls import (  # noqa: E402
    discovery_router,
    podcast_router,
    prequal_router,
    strategy_router,
)
from api.crm import (  # noqa: E402
    contacts_router,
    deals_router,
    leads_router,
    messages_router,
    pipeline_router,
    proposals_router,
)
from api.db.database import init_db  # noqa: E402
from api.errors import register_exception_handlers  # noqa: E402
from api.integrations import (  # noqa: E402
    InstantlyClient,
    SmartleadClient,
    ZoomClient,
    get_instantly_client,
    get_smartlead_client,
    get_zoom_client,
)
from api.portal import (  # noqa: E402
    advisors_router,
    client_portal_router,
    connections_router,
    dashboard_router,
)
from api.users import invitations_router, users_router  # noqa: E402
from api.webhooks import webhooks_router  # noqa: E402
from api.workflow import (  # noqa: E402
    TranscriptScorer,
    analysis_router,
    get_scorer,
    handoffs_router,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("growth-manager-api")


# =============================================================================
# App Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    await init_db()
    logger.info("Database ready")
    yield


app = FastAPI(
    title="Growth Manager Pro API",
    description="Multi-tenant sales pipeline from lead capture to closed deal",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(invitations_router)
app.include_router(tenants_router)
app.include_router(contacts_router)
app.include_router(leads_router)
app.include_router(deals_router)
app.include_router(proposals_router)
app.include_router(messages_router)
app.include_router(pipeline_router)
app.include_router(prequal_router)
app.include_router(podcast_router)
app.include_router(discovery_router)
app.include_router(strategy_router)
app.include_router(analysis_router)
app.include_router(handoffs_router)
app.include_router(webhooks_router)
app.include_router(connections_router)
app.include_router(advisors_router)
app.include_router(client_portal_router)
app.include_router(dashboard_router)


# =============================================================================
# Health
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    integrations: dict[str, bool]


@app.get("/health", response_model=HealthResponse)
async def health_check(
    scorer: TranscriptScorer = Depends(get_scorer),
    instantly: InstantlyClient = Depends(get_instantly_client),
    smartlead: SmartleadClient = Depends(get_smartlead_client),
    zoom: ZoomClient = Depends(get_zoom_client),
    stripe_client: StripeClient = Depends(get_stripe_client),
    email_sender: EmailSender = Depends(get_email_sender),
):
    """Health check endpoint, with which integrations are configured."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        integrations={
            "claude": scorer.is_configured(),
            "instantly": instantly.config.is_configured(),
            "smartlead": smartlead.config.is_configured(),
            "zoom": zoom.config.is_configured(),
            "stripe": stripe_client.config.is_configured(),
            "email": email_sender.config.is_configured(),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
