"""SQLAlchemy models for tenants, users, CRM records and recorded calls.

Every CRM table carries tenant_id. Boolean *_sent / *_created flags are the
only guard against sending the same invite or creating the same downstream
record twice.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column
from shared.schemas import (
    CallStatus,
    ConnectionStatus,
    ContactStage,
    ContactStatus,
    DealStage,
    DealStatus,
    InvitationStatus,
    PermissionLevel,
    ProposalStatus,
    RelationshipStatus,
    SubscriptionStatus,
    SubscriptionTier,
    TenantStatus,
    UserRole,
    UserStatus,
)

from api.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# =============================================================================
# Tier Configuration
# =============================================================================

UNLIMITED = 999999

TIER_CONFIG = {
    SubscriptionTier.FOUNDATIONS: {
        "max_contacts": 25,
        "max_users": 2,
        "max_advisors": 1,
        "monthly_fee": 297,
    },
    SubscriptionTier.GROWTH: {
        "max_contacts": 50,
        "max_users": 3,
        "max_advisors": 2,
        "monthly_fee": 597,
    },
    SubscriptionTier.SCALE: {
        "max_contacts": 200,
        "max_users": 10,
        "max_advisors": 5,
        "monthly_fee": 997,
    },
    SubscriptionTier.ENTERPRISE: {
        "max_contacts": UNLIMITED,
        "max_users": UNLIMITED,
        "max_advisors": UNLIMITED,
        "monthly_fee": 2500,
    },
}

TRIAL_DAYS = 14


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )


def _tenant_fk(nullable: bool = False) -> Mapped[Any]:
    return mapped_column(Uuid, ForeignKey("tenants.id"), nullable=nullable)


# =============================================================================
# Tenant & Billing
# =============================================================================


class Tenant(Base):
    """A customer account; owns all CRM data beneath it."""

    __tablename__ = "tenants"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)

    # Owner
    owner_name: Mapped[str | None] = mapped_column(String(255))
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_phone: Mapped[str | None] = mapped_column(String(30))

    # Subscription
    subscription_tier: Mapped[str] = mapped_column(
        String(20), default=SubscriptionTier.FOUNDATIONS.value
    )
    subscription_status: Mapped[str] = mapped_column(
        String(20), default=SubscriptionStatus.TRIAL.value
    )
    billing_cycle: Mapped[str] = mapped_column(String(20), default="monthly")
    monthly_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    trial_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    subscription_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    last_payment_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Stripe integration
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255))
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255))

    # Limits
    max_contacts: Mapped[int] = mapped_column(Integer, default=25)
    max_users: Mapped[int] = mapped_column(Integer, default=2)
    max_advisors: Mapped[int] = mapped_column(Integer, default=1)
    features: Mapped[dict | None] = mapped_column(JSON)

    status: Mapped[str] = mapped_column(String(20), default=TenantStatus.ACTIVE.value)
    onboarded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_tenants_subdomain", "subdomain"),
        Index("ix_tenants_stripe_subscription_id", "stripe_subscription_id"),
    )


class SubscriptionHistory(Base):
    """Audit row for every handled Stripe subscription event."""

    __tablename__ = "subscription_history"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    stripe_event_id: Mapped[str | None] = mapped_column(String(255))
    old_status: Mapped[str | None] = mapped_column(String(20))
    new_status: Mapped[str | None] = mapped_column(String(20))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    details: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (Index("ix_subscription_history_tenant_id", "tenant_id"),)


# =============================================================================
# Users & Invitations
# =============================================================================


class User(Base):
    """Platform user (admin, owner, advisor, client)."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = _tenant_fk(nullable=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    # bcrypt hash; legacy rows may still hold plaintext until next login
    password_hash: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default=UserRole.ADVISOR.value)
    user_type: Mapped[str | None] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), default=UserStatus.ACTIVE.value)

    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reset_token: Mapped[str | None] = mapped_column(String(64))
    reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_users_email", "email"),
        Index("ix_users_tenant_id", "tenant_id"),
        Index("ix_users_reset_token", "reset_token"),
    )


class Invitation(Base):
    """Single-use signup invitation."""

    __tablename__ = "invitations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = _tenant_fk(nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=InvitationStatus.PENDING.value
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (
        Index("ix_invitations_email_status", "email", "status"),
        Index("ix_invitations_token", "token"),
    )

    @property
    def is_expired(self) -> bool:
        return as_utc(self.expires_at) < utcnow()


# =============================================================================
# CRM
# =============================================================================


class Contact(Base):
    """A person moving through the pipeline (lead, prospect or client)."""

    __tablename__ = "contacts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    company: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[str] = mapped_column(String(30), default=ContactStatus.LEAD.value)
    stage: Mapped[str] = mapped_column(String(30), default=ContactStage.LEAD.value)
    source: Mapped[str | None] = mapped_column(String(100), default="manual")
    notes: Mapped[str | None] = mapped_column(Text)

    # Scores
    lead_score: Mapped[float | None] = mapped_column(Float)
    podcast_score: Mapped[float | None] = mapped_column(Float)
    recommended_tier: Mapped[str | None] = mapped_column(String(50))

    # Campaign handoff tracking
    current_campaign: Mapped[str | None] = mapped_column(String(50))
    smartlead_campaign_id: Mapped[str | None] = mapped_column(String(50))
    smartlead_handoff_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    # Client portal login
    password_hash: Mapped[str | None] = mapped_column(String(255))

    # Attribution
    utm_source: Mapped[str | None] = mapped_column(String(100))
    utm_campaign: Mapped[str | None] = mapped_column(String(100))
    utm_medium: Mapped[str | None] = mapped_column(String(100))

    # Client program, set once the contact becomes a client
    program_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    growth_plan_created: Mapped[bool] = mapped_column(Boolean, default=False)

    last_contacted: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_contacts_tenant_id", "tenant_id"),
        Index("ix_contacts_email", "email"),
        Index("ix_contacts_tenant_stage", "tenant_id", "stage"),
    )


class Deal(Base):
    """A revenue opportunity, usually created from a won call or proposal."""

    __tablename__ = "deals"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255))
    contact_email: Mapped[str | None] = mapped_column(String(255))
    company: Mapped[str | None] = mapped_column(String(255))
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    stage: Mapped[str] = mapped_column(String(30), default=DealStage.PROSPECTING.value)
    status: Mapped[str] = mapped_column(String(20), default=DealStatus.ACTIVE.value)
    source: Mapped[str | None] = mapped_column(String(50))
    payment_terms: Mapped[str | None] = mapped_column(String(100))
    start_date: Mapped[str | None] = mapped_column(String(50))
    expected_close_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_deals_tenant_id", "tenant_id"),
        Index("ix_deals_contact_id", "contact_id"),
    )


class Proposal(Base):
    """Priced engagement proposal; accepting it opens a deal."""

    __tablename__ = "proposals"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))
    deal_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("deals.id"))

    prospect_name: Mapped[str] = mapped_column(String(255), nullable=False)
    prospect_email: Mapped[str | None] = mapped_column(String(255))
    company: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str] = mapped_column(
        String(255), default="Growth Management Proposal"
    )
    pricing_model: Mapped[str] = mapped_column(String(50), default="monthly_retainer")
    monthly_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    setup_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    total_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    payment_terms: Mapped[str] = mapped_column(String(100), default="Net 30")
    services: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(20), default=ProposalStatus.DRAFT.value)
    notes: Mapped[str | None] = mapped_column(Text)

    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_proposals_tenant_id", "tenant_id"),
        Index("ix_proposals_contact_id", "contact_id"),
    )


class Message(Base):
    """Advisor/client portal message thread entry."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    client_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("contacts.id"), nullable=False
    )
    author: Mapped[str] = mapped_column(String(255), default="Team")
    subject: Mapped[str | None] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), default="text")
    sender_id: Mapped[UUID | None] = mapped_column(Uuid)
    sender_type: Mapped[str] = mapped_column(String(20), default="advisor")
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (Index("ix_messages_tenant_client", "tenant_id", "client_id"),)


# =============================================================================
# Advisor Portal
# =============================================================================


class ConnectionInvitation(Base):
    """A request from an advisor or client to connect with the other side.

    Matched by email, so the invitee may not have an account yet.
    """

    __tablename__ = "connection_invitations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = _tenant_fk(nullable=True)
    inviter_email: Mapped[str] = mapped_column(String(255), nullable=False)
    inviter_type: Mapped[str] = mapped_column(String(20), nullable=False)
    inviter_name: Mapped[str | None] = mapped_column(String(255))
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    invitee_type: Mapped[str] = mapped_column(String(20), nullable=False)
    invitee_name: Mapped[str | None] = mapped_column(String(255))
    permission_level: Mapped[str] = mapped_column(
        String(30), default=PermissionLevel.COLLABORATIVE.value
    )
    status: Mapped[str] = mapped_column(
        String(20), default=ConnectionStatus.PENDING.value
    )
    invited_at: Mapped[datetime] = _created_at()
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_connection_invitations_inviter", "inviter_email", "status"),
        Index("ix_connection_invitations_invitee", "invitee_email", "status"),
    )


class AdvisorClientRelationship(Base):
    """Active or past link between an advisor user and a client user."""

    __tablename__ = "advisor_client_relationships"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = _tenant_fk(nullable=True)
    advisor_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    client_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    # advisor_invited or client_invited
    relationship_type: Mapped[str] = mapped_column(String(30), nullable=False)
    permission_level: Mapped[str] = mapped_column(
        String(30), default=PermissionLevel.COLLABORATIVE.value
    )
    status: Mapped[str] = mapped_column(
        String(20), default=RelationshipStatus.ACTIVE.value
    )
    invited_by: Mapped[UUID | None] = mapped_column(Uuid)
    invited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    disconnected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = _created_at()

    __table_args__ = (
        Index("ix_relationships_advisor", "advisor_id", "status"),
        Index("ix_relationships_client", "client_id", "status"),
    )


class AdvisorNote(Base):
    """Post on the shared advisor discussion board."""

    __tablename__ = "advisor_discussions"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID | None] = _tenant_fk(nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(255), default="Anonymous")
    role: Mapped[str] = mapped_column(String(20), default=UserRole.ADVISOR.value)
    created_at: Mapped[datetime] = _created_at()


# =============================================================================
# Recorded Calls
# =============================================================================


class PreQualificationCall(Base):
    """Short screening call; a 35+ score earns a podcast invitation."""

    __tablename__ = "pre_qualification_calls"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))

    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(30))
    call_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    call_status: Mapped[str] = mapped_column(
        String(20), default=CallStatus.SCHEDULED.value
    )

    # Recording
    zoom_meeting_id: Mapped[str | None] = mapped_column(String(64))
    recording_url: Mapped[str | None] = mapped_column(Text)
    transcript: Mapped[str | None] = mapped_column(Text)

    # Analysis
    ai_score: Mapped[float | None] = mapped_column(Float)
    ai_analysis: Mapped[dict | None] = mapped_column(JSON)
    engagement_level: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)
    analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    podcast_invitation_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    podcast_invitation_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_pre_qualification_calls_tenant_id", "tenant_id"),
        Index("ix_pre_qualification_calls_zoom_meeting_id", "zoom_meeting_id"),
    )


class PodcastInterview(Base):
    """Podcast interview; agreement plus a 35+ score opens discovery."""

    __tablename__ = "podcast_interviews"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))

    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    call_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    interview_status: Mapped[str] = mapped_column(
        String(20), default=CallStatus.SCHEDULED.value
    )

    zoom_meeting_id: Mapped[str | None] = mapped_column(String(64))
    recording_url: Mapped[str | None] = mapped_column(Text)
    transcript: Mapped[str | None] = mapped_column(Text)

    # Section scores (0-10 each) and the 0-50 overall score
    overall_score: Mapped[float | None] = mapped_column(Float)
    intro_score: Mapped[float | None] = mapped_column(Float)
    questions_score: Mapped[float | None] = mapped_column(Float)
    close_score: Mapped[float | None] = mapped_column(Float)
    ai_analysis: Mapped[dict | None] = mapped_column(JSON)

    qualified_for_discovery: Mapped[bool] = mapped_column(Boolean, default=False)
    qualification_status: Mapped[str | None] = mapped_column(String(20))
    qualification_reason: Mapped[str | None] = mapped_column(Text)
    prospect_agreed: Mapped[bool] = mapped_column(Boolean, default=False)
    analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    discovery_call_created: Mapped[bool] = mapped_column(Boolean, default=False)
    discovery_call_id: Mapped[UUID | None] = mapped_column(Uuid)

    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_podcast_interviews_tenant_id", "tenant_id"),
        Index("ix_podcast_interviews_zoom_meeting_id", "zoom_meeting_id"),
    )


class DiscoveryCall(Base):
    """Discovery call; scored on six components to choose the next step."""

    __tablename__ = "discovery_calls"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))
    podcast_interview_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("podcast_interviews.id")
    )

    prospect_name: Mapped[str] = mapped_column(String(255), nullable=False)
    prospect_email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(30))
    call_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default=CallStatus.SCHEDULED.value)
    call_source: Mapped[str | None] = mapped_column(String(50))

    zoom_meeting_id: Mapped[str | None] = mapped_column(String(64))
    recording_url: Mapped[str | None] = mapped_column(Text)
    transcript: Mapped[str | None] = mapped_column(Text)

    # Analysis
    ai_score: Mapped[float | None] = mapped_column(Float)
    ai_analysis: Mapped[dict | None] = mapped_column(JSON)
    recommended_tier: Mapped[str | None] = mapped_column(String(50))
    recommended_systems: Mapped[list | None] = mapped_column(JSON)
    pain_points: Mapped[str | None] = mapped_column(Text)
    timeline: Mapped[str | None] = mapped_column(String(100))
    decision_maker: Mapped[str | None] = mapped_column(String(100))
    enthusiasm_level: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)

    # Scheduling handoff
    calendly_link: Mapped[str | None] = mapped_column(Text)
    calendly_invite_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    calendly_invite_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    strategy_call_created: Mapped[bool] = mapped_column(Boolean, default=False)
    strategy_call_id: Mapped[UUID | None] = mapped_column(Uuid)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_discovery_calls_tenant_id", "tenant_id"),
        Index("ix_discovery_calls_zoom_meeting_id", "zoom_meeting_id"),
        Index("ix_discovery_calls_prospect_email", "prospect_email"),
    )


class StrategyCall(Base):
    """Strategy (sales) call; a won call becomes a deal."""

    __tablename__ = "strategy_calls"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = _tenant_fk()
    contact_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("contacts.id"))
    discovery_call_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("discovery_calls.id")
    )

    prospect_name: Mapped[str] = mapped_column(String(255), nullable=False)
    prospect_email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(30))
    call_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default=CallStatus.SCHEDULED.value)

    zoom_meeting_id: Mapped[str | None] = mapped_column(String(64))
    recording_url: Mapped[str | None] = mapped_column(Text)
    transcript: Mapped[str | None] = mapped_column(Text)

    recommended_tier: Mapped[str | None] = mapped_column(String(50))
    recommended_systems: Mapped[list | None] = mapped_column(JSON)
    estimated_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    auto_created: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_analysis: Mapped[dict | None] = mapped_column(JSON)
    analyzed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    calendly_link: Mapped[str | None] = mapped_column(Text)
    calendly_invite_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    calendly_invite_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    deal_created: Mapped[bool] = mapped_column(Boolean, default=False)
    deal_id: Mapped[UUID | None] = mapped_column(Uuid)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        Index("ix_strategy_calls_tenant_id", "tenant_id"),
        Index("ix_strategy_calls_zoom_meeting_id", "zoom_meeting_id"),
        Index("ix_strategy_calls_prospect_email", "prospect_email"),
    )
