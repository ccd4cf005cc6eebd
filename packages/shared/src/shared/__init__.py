"""Shared enums, analysis schemas and email for Growth Manager Pro."""

from shared.email import (
    EmailConfig,
    EmailSender,
    get_email_sender,
)
from shared.schemas import (
    DEFAULT_DEAL_VALUE,
    MAX_SCORE,
    QUALIFICATION_THRESHOLD,
    REVIEW_THRESHOLD,
    CallStatus,
    CallType,
    ContactStage,
    ContactStatus,
    DealStage,
    DealStatus,
    DiscoveryAction,
    DiscoveryAnalysis,
    InvitationStatus,
    PodcastAnalysis,
    PodcastQualification,
    PrequalAnalysis,
    ProposalStatus,
    SalesAnalysis,
    SubscriptionStatus,
    SubscriptionTier,
    TenantStatus,
    UserRole,
    UserStatus,
)

__all__ = [
    "DEFAULT_DEAL_VALUE",
    "MAX_SCORE",
    "QUALIFICATION_THRESHOLD",
    "REVIEW_THRESHOLD",
    "CallStatus",
    "CallType",
    "ContactStage",
    "ContactStatus",
    "DealStage",
    "DealStatus",
    "DiscoveryAction",
    "DiscoveryAnalysis",
    "EmailConfig",
    "EmailSender",
    "InvitationStatus",
    "PodcastAnalysis",
    "PodcastQualification",
    "PrequalAnalysis",
    "ProposalStatus",
    "SalesAnalysis",
    "SubscriptionStatus",
    "SubscriptionTier",
    "TenantStatus",
    "UserRole",
    "UserStatus",
    "get_email_sender",
]
