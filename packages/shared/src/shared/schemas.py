"""Pydantic schemas and enums shared across Growth Manager Pro.

Enum values are the canonical lowercase strings stored in the database.
The analysis models describe the JSON the LLM is asked to return for each
call type; every field has a default so a partial reply still validates.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Constants
# =============================================================================

# Scores are out of 50; 35+ advances a prospect to the next stage
MAX_SCORE: int = 50
QUALIFICATION_THRESHOLD: int = 35
REVIEW_THRESHOLD: int = 25

# Fallback deal value when the sales analysis does not name one
DEFAULT_DEAL_VALUE: float = 15000.0

# Client program length in days, and the day after which phases 2-4 begin
PROGRAM_DAYS: int = 90
PHASE_STARTS: tuple[int, ...] = (15, 30, 60)


# =============================================================================
# Pipeline Enums
# =============================================================================


class ContactStage(str, Enum):
    """Where a contact sits in the qualification pipeline."""

    LEAD = "lead"
    PRE_QUALIFIED = "pre-qualified"
    PODCAST_INVITED = "podcast_invited"
    PODCAST = "podcast"
    DISCOVERY_INVITED = "discovery_invited"
    DISCOVERY = "discovery"
    STRATEGY_INVITED = "strategy_invited"
    STRATEGY = "strategy"
    PROPOSAL = "proposal"
    CLIENT = "client"
    NURTURE = "nurture"


class ContactStatus(str, Enum):
    """Relationship status of a contact."""

    LEAD = "lead"
    PROSPECT = "prospect"
    CUSTOMER = "customer"
    PODCAST_SCHEDULED = "podcast_scheduled"
    DISCOVERY = "discovery"
    NURTURE = "nurture"


class CallType(str, Enum):
    """The four recorded call types, in pipeline order."""

    PREQUAL = "prequal"
    PODCAST = "podcast"
    DISCOVERY = "discovery"
    STRATEGY = "strategy"


class CallStatus(str, Enum):
    """Lifecycle status shared by all call tables."""

    SCHEDULED = "scheduled"
    RECORDED = "recorded"
    COMPLETED = "completed"
    ANALYZED = "analyzed"
    QUALIFIED = "qualified"
    NOT_QUALIFIED = "not_qualified"
    REVIEW = "review"
    NURTURE = "nurture"
    WON = "won"
    LOST = "lost"
    CANCELED = "canceled"


class PodcastQualification(str, Enum):
    """Outcome of a podcast interview analysis."""

    QUALIFIED = "qualified"  # Agreed to next meeting and scored 35+
    NEEDS_REVIEW = "needs_review"  # Agreed but scored low
    NO_AGREEMENT = "no_agreement"  # Scored well but no commitment
    NOT_QUALIFIED = "not_qualified"


class DiscoveryAction(str, Enum):
    """What happens after a discovery call is scored."""

    AUTO_ADVANCE = "auto_advance"
    MANUAL_REVIEW = "manual_review"
    MOVE_TO_NURTURE = "move_to_nurture"


class DealStage(str, Enum):
    """Sales stage of a deal."""

    PROSPECTING = "prospecting"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class DealStatus(str, Enum):
    """Whether a deal is still being worked."""

    ACTIVE = "active"
    PENDING = "pending"
    CLOSED = "closed"


class ProposalStatus(str, Enum):
    """Proposal lifecycle."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# =============================================================================
# Account Enums
# =============================================================================


class UserRole(str, Enum):
    """User roles. Owners are created by tenant signup."""

    ADMIN = "admin"
    OWNER = "owner"
    SAAS = "saas"
    ADVISOR = "advisor"
    CONSULTANT = "consultant"
    CLIENT = "client"


class UserStatus(str, Enum):
    """User account status."""

    ACTIVE = "active"
    PENDING = "pending"
    DISABLED = "disabled"


class InvitationStatus(str, Enum):
    """Invitation lifecycle."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class ConnectionStatus(str, Enum):
    """Advisor/client connection invitation lifecycle."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    AUTO_CONNECTED = "auto_connected"
    DECLINED = "declined"


class RelationshipStatus(str, Enum):
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class PermissionLevel(str, Enum):
    """How much of a client's account an advisor may touch."""

    VIEW_ONLY = "view_only"
    COLLABORATIVE = "collaborative"
    TRUSTED_PARTNER = "trusted_partner"
    FULL_MANAGEMENT = "full_management"


class TenantStatus(str, Enum):
    """Whether the tenant may use the platform."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class SubscriptionStatus(str, Enum):
    """Tenant subscription status as tracked locally."""

    TRIAL = "trial"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class SubscriptionTier(str, Enum):
    """Paid subscription tiers."""

    FOUNDATIONS = "foundations"
    GROWTH = "growth"
    SCALE = "scale"
    ENTERPRISE = "enterprise"


# =============================================================================
# LLM Analysis Results
# =============================================================================


def _parse_money(value: Any) -> float | None:
    """Coerce '$25,000', '25000' or 25000 into a float."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    digits = re.sub(r"[^\d.]", "", str(value))
    if not digits:
        return None
    try:
        return float(digits)
    except ValueError:
        return None


def _as_list(value: Any) -> list:
    """Accept a bare string where a list of strings is expected."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return list(value)


class PrequalAnalysis(BaseModel):
    """Scored pre-qualification call."""

    model_config = ConfigDict(extra="allow")

    qualified_for_podcast: bool = False
    qualification_score: float = 0
    revenue_signals: Any = None
    growth_challenges: Any = None
    budget_authority: Any = None
    timeline: Any = None
    engagement_level: Any = None
    podcast_topics: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("podcast_topics", "red_flags", "strengths", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list:
        return _as_list(v)


class SectionScore(BaseModel):
    """One scored section of a podcast interview (0-10)."""

    model_config = ConfigDict(extra="allow")

    total_score: float = 0


class ProspectAgreement(BaseModel):
    """Whether the guest agreed to a follow-up meeting."""

    model_config = ConfigDict(extra="allow")

    agreed_to_discovery: bool = False
    agreed_to_next_meeting: bool = False
    confidence: str | None = None
    evidence: Any = None
    context: Any = None

    @property
    def agreed(self) -> bool:
        return self.agreed_to_discovery or self.agreed_to_next_meeting


class PodcastAnalysis(BaseModel):
    """Scored podcast interview."""

    model_config = ConfigDict(extra="allow")

    prospect_agreement: ProspectAgreement = Field(default_factory=ProspectAgreement)
    intro: SectionScore = Field(default_factory=SectionScore)
    questions_flow: SectionScore = Field(default_factory=SectionScore)
    close_next_steps: SectionScore = Field(default_factory=SectionScore)
    overall_insights: Any = None


class Recommendation(BaseModel):
    """Recommended engagement after a discovery call."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: str | None = None
    tier: str | None = None
    reasoning: str | None = None
    specific_systems: list[str] = Field(default_factory=list, alias="specificSystems")
    estimated_value: float | None = Field(None, alias="estimatedValue")
    implementation_timeline: str | None = Field(None, alias="implementationTimeline")

    @field_validator("estimated_value", mode="before")
    @classmethod
    def _coerce_value(cls, v: Any) -> float | None:
        return _parse_money(v)

    @field_validator("specific_systems", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list:
        return _as_list(v)


class DiscoveryAnalysis(BaseModel):
    """Scored discovery call (six components, 50 points)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_score: float = Field(0, alias="totalScore")
    maturity: Any = None  # 15 points
    systems: Any = None  # 10 points
    timeline: Any = None  # 10 points
    authority: Any = None  # 10 points
    pain: Any = None  # 10 points
    readiness: Any = None  # 5 points
    recommendation: Recommendation = Field(default_factory=Recommendation)
    next_steps: Any = Field(None, alias="nextSteps")
    executive_summary: str | None = Field(None, alias="executiveSummary")
    enthusiasm_level: str | None = Field(None, alias="enthusiasmLevel")
    strategic_fit: Any = Field(None, alias="strategicFit")


class SalesAnalysis(BaseModel):
    """Scored strategy/sales call."""

    model_config = ConfigDict(extra="allow")

    agreed_to_deal: bool = False
    deal_value: float | None = None
    payment_terms: str | None = None
    start_date: str | None = None
    key_commitments: list[str] = Field(default_factory=list)
    objections_handled: list[str] = Field(default_factory=list)
    decision_factors: list[str] = Field(default_factory=list)
    next_steps: Any = None
    confidence_level: str | None = None
    competitor_mentions: list[str] = Field(default_factory=list)
    urgency: str | None = None
    summary: str = ""

    @field_validator("deal_value", mode="before")
    @classmethod
    def _coerce_value(cls, v: Any) -> float | None:
        return _parse_money(v)

    @field_validator(
        "key_commitments",
        "objections_handled",
        "decision_factors",
        "competitor_mentions",
        mode="before",
    )
    @classmethod
    def _coerce_list(cls, v: Any) -> list:
        return _as_list(v)
