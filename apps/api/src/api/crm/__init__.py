"""CRM resources: contacts, deals, proposals, client messages and the pipeline board."""

from api.crm.contacts import leads_router
from api.crm.contacts import router as contacts_router
from api.crm.deals import router as deals_router
from api.crm.messages import router as messages_router
from api.crm.pipeline import router as pipeline_router
from api.crm.proposals import router as proposals_router

__all__ = [
    "contacts_router",
    "deals_router",
    "leads_router",
    "messages_router",
    "pipeline_router",
    "proposals_router",
]
