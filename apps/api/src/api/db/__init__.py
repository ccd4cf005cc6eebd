"""Database module for the API.

Provides SQLAlchemy models, async database session management, and utilities.
"""

from api.db.database import (
    Base,
    get_db,
    init_db,
)
from api.db.models import (
    TIER_CONFIG,
    Contact,
    Deal,
    DiscoveryCall,
    Invitation,
    Message,
    PodcastInterview,
    PreQualificationCall,
    Proposal,
    StrategyCall,
    SubscriptionHistory,
    Tenant,
    User,
)

__all__ = [
    "TIER_CONFIG",
    "Base",
    "Contact",
    "Deal",
    "DiscoveryCall",
    "Invitation",
    "Message",
    "PodcastInterview",
    "PreQualificationCall",
    "Proposal",
    "StrategyCall",
    "SubscriptionHistory",
    "Tenant",
    "User",
    "get_db",
    "init_db",
]
