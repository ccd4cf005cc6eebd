"""Invitation emails sent when a prospect advances a stage.

Each sender raises IntegrationError on failure and only marks the call
record once Instantly has accepted the email or lead.
"""

import logging

from shared.schemas import PrequalAnalysis

from api.db.models import DiscoveryCall, PreQualificationCall, StrategyCall, utcnow
from api.integrations.base import IntegrationError
from api.integrations.instantly import SERVICE, InstantlyClient

logger = logging.getLogger("growth-manager-workflow")


def _first_name(full_name: str | None) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else "there"


def _require_recipient(email: str | None) -> str:
    if not email or not email.strip():
        raise IntegrationError(SERVICE, "No recipient email on record")
    return email


# =============================================================================
# Podcast Invitation (pre-qualification passed)
# =============================================================================


def build_podcast_invitation(
    call: PreQualificationCall,
    analysis: PrequalAnalysis,
    calendly_url: str,
) -> tuple[str, str]:
    """Personalised subject and body for a podcast invitation."""
    first_name = _first_name(call.guest_name)
    company = call.company or "your business"

    challenges = analysis.growth_challenges
    if isinstance(challenges, list) and challenges:
        challenges_text = " and ".join(str(c) for c in challenges[:2])
    elif isinstance(challenges, str) and challenges:
        challenges_text = challenges
    else:
        challenges_text = "the growth challenges you mentioned"

    topics_text = (
        ", ".join(analysis.podcast_topics[:2])
        if analysis.podcast_topics
        else "scaling strategies and leadership development"
    )

    personal_note = ""
    if analysis.strengths:
        personal_note = (
            f"I was particularly impressed by {analysis.strengths[0].lower()}. "
        )

    subject = f"{first_name}, let's continue our conversation on the podcast"
    body = f"""Hi {first_name},

Thanks for taking the time to speak with me during our pre-podcast call! {personal_note}I really enjoyed learning about {company} and hearing your perspective on {challenges_text}.

I'd love to invite you to be a guest on the podcast, where we explore {topics_text} with business leaders like yourself. It's a 30-minute conversation where we can:

- Explore the specific challenges you're facing with {challenges_text}
- Share strategies that have worked for similar businesses
- Discuss actionable next steps for your growth goals

Schedule your podcast interview here:
{calendly_url}

Looking forward to continuing our conversation!"""
    return subject, body


async def send_podcast_invitation(
    instantly: InstantlyClient,
    call: PreQualificationCall,
    analysis: PrequalAnalysis,
) -> None:
    """Email the podcast invitation and flag the call.

    Raises:
        IntegrationError: If Instantly is unavailable or rejects the email.
    """
    recipient = _require_recipient(call.guest_email)
    subject, body = build_podcast_invitation(
        call, analysis, instantly.config.podcast_calendly_url
    )
    await instantly.send_email(recipient, subject, body)

    call.podcast_invitation_sent = True
    call.podcast_invitation_sent_at = utcnow()
    logger.info(f"Podcast invitation sent to {call.guest_email}")


# =============================================================================
# Calendly Invitations (discovery and strategy campaigns)
# =============================================================================


def _discovery_body(first_name: str, company: str, link: str) -> str:
    return f"""Hi {first_name},

Thank you for such an engaging conversation on our podcast! I really enjoyed learning about {company}.

I'd love to schedule a discovery call to dive deeper into your growth challenges, the strategies that could accelerate your results, and whether there's a fit to work together.

Please book a time that works best for you:
{link}

If none of the available times work, just reply to this email."""


def _strategy_body(
    first_name: str, company: str, link: str, tier: str | None, systems: list | None
) -> str:
    systems_text = "\n".join(f"- {s}" for s in (systems or [])) or "- To be finalised together"
    return f"""Hi {first_name},

Thanks again for the discovery call. Based on what we learned about {company}, we'd recommend {tier or "a tailored engagement"} with these systems:

{systems_text}

Let's walk through the plan on a strategy call:
{link}"""


async def send_discovery_invite(instantly: InstantlyClient, call: DiscoveryCall) -> bool:
    """Add a discovery prospect to the Instantly discovery campaign.

    Returns:
        False if the invite had already been sent, True if sent now.

    Raises:
        IntegrationError: If Instantly is unavailable or rejects the lead.
    """
    if call.calendly_invite_sent:
        return False
    _require_recipient(call.prospect_email)

    link = instantly.config.discovery_calendly_url
    first_name = _first_name(call.prospect_name)
    company = call.company or "your business"

    await instantly.add_lead(
        campaign_id=instantly.config.discovery_campaign_id,
        email=call.prospect_email,
        full_name=call.prospect_name,
        company_name=company,
        personalization={"discovery_call_link": link},
        variables={
            "subject": f"Let's Continue Our Conversation, {first_name}!",
            "body": _discovery_body(first_name, company, link),
        },
    )

    call.calendly_invite_sent = True
    call.calendly_invite_sent_at = utcnow()
    call.calendly_link = link
    logger.info(f"Discovery invite sent to {call.prospect_email}")
    return True


async def send_strategy_invite(instantly: InstantlyClient, call: StrategyCall) -> bool:
    """Add a strategy prospect to the Instantly strategy campaign.

    Same contract as send_discovery_invite.
    """
    if call.calendly_invite_sent:
        return False
    _require_recipient(call.prospect_email)

    link = instantly.config.strategy_calendly_url
    first_name = _first_name(call.prospect_name)
    company = call.company or "your business"

    await instantly.add_lead(
        campaign_id=instantly.config.strategy_campaign_id,
        email=call.prospect_email,
        full_name=call.prospect_name,
        company_name=company,
        personalization={
            "strategy_call_link": link,
            "recommended_tier": call.recommended_tier or "",
        },
        variables={
            "subject": f"{first_name}, your growth plan is ready",
            "body": _strategy_body(
                first_name, company, link, call.recommended_tier, call.recommended_systems
            ),
        },
    )

    call.calendly_invite_sent = True
    call.calendly_invite_sent_at = utcnow()
    call.calendly_link = link
    logger.info(f"Strategy invite sent to {call.prospect_email}")
    return True
