"""Prompt templates for each call type.

Each template asks for a single JSON object whose keys match the
corresponding model in shared.schemas.
"""

PREQUAL_PROMPT = """You are analyzing a pre-qualification sales call to decide whether this prospect should be invited to a podcast interview.

CONTEXT:
- This is a 15-minute screening call from cold email outreach
- Target: $3M+ revenue contractors, service professionals and B2B companies
- Podcast interviews are the next qualification stage

GUEST: {guest_name} ({company})

TRANSCRIPT:
{transcript}

Respond with a JSON object:
{{
  "qualified_for_podcast": true/false,
  "qualification_score": number (0-50, where 35+ = qualified),
  "revenue_signals": "estimated revenue or 'not discussed'",
  "growth_challenges": ["challenge 1", "challenge 2"],
  "budget_authority": "decision maker/influencer/unclear",
  "timeline": "immediate/this quarter/exploring/unclear",
  "engagement_level": "high/medium/low",
  "podcast_topics": ["topic 1", "topic 2"],
  "red_flags": ["flag 1"] or [],
  "strengths": ["strength 1", "strength 2"],
  "summary": "2-3 sentence summary of fit and recommendation"
}}

SCORING RUBRIC (0-50 points):
- Company size/revenue signals (0-15 points)
- Growth challenges mentioned (0-10 points)
- Budget/authority (0-10 points)
- Timeline urgency (0-5 points)
- Engagement level (0-10 points)

Score 35+ = qualified for podcast interview."""


PODCAST_PROMPT = """You are an expert podcast analyst. Evaluate this podcast interview transcript.

GUEST: {guest_name} ({company})

TRANSCRIPT:
{transcript}

Score three sections from 0 to 10 and decide whether the guest agreed to a follow-up discovery call or another meeting.

Respond with a JSON object:
{{
  "prospect_agreement": {{
    "agreed_to_discovery": true/false,
    "agreed_to_next_meeting": true/false,
    "confidence": "high/medium/low",
    "evidence": ["quote from transcript showing agreement"],
    "context": "one sentence describing what was agreed"
  }},
  "intro": {{
    "total_score": number (0-10),
    "feedback": "was the guest framed and introduced well?"
  }},
  "questions_flow": {{
    "total_score": number (0-10),
    "feedback": "did the questions surface business challenges?"
  }},
  "close_next_steps": {{
    "total_score": number (0-10),
    "feedback": "was a clear next step proposed and accepted?"
  }},
  "overall_insights": {{
    "key_strengths": ["strength 1"],
    "information_gaps": ["gap 1"],
    "guest_fit_assessment": "short assessment"
  }}
}}

Cite actual quotes from the transcript."""


DISCOVERY_PROMPT = """You are analyzing a discovery call transcript for a B2B growth consultancy that deploys AI-powered sales and marketing systems.

PROSPECT: {prospect_name} ({company})

TRANSCRIPT:
{transcript}

SCORING RUBRIC (50 points total):
1. maturity - organizational maturity and scale (0-15)
2. systems - systems sophistication need (0-10)
3. timeline - timeline and urgency (0-10)
4. authority - decision authority (0-10)
5. pain - pain severity and strategic challenges (0-10)
6. readiness - partnership readiness (0-5)

TIERS:
- Strategic Foundations ($25K-75K, 90-day projects), typical score 20-35
- Growth Architecture ($150K+ annual partnerships), typical score 35-45
- Strategic Alliance (custom, by invitation), typical score 45-50

Respond with a JSON object:
{{
  "totalScore": number (0-50),
  "maturity": {{"score": number, "evidence": "...", "revenueRange": "..."}},
  "systems": {{"score": number, "evidence": "...", "currentSystems": [], "gaps": []}},
  "timeline": {{"score": number, "evidence": "...", "estimatedTimeline": "..."}},
  "authority": {{"score": number, "evidence": "...", "role": "Owner/CEO/VP/Manager/Unclear"}},
  "pain": {{"score": number, "evidence": "...", "keyPainPoints": []}},
  "readiness": {{"score": number, "evidence": "..."}},
  "recommendation": {{
    "status": "QUALIFIED|REVIEW|NURTURE",
    "tier": "Strategic Foundations|Growth Architecture|Strategic Alliance",
    "reasoning": "2-3 sentences",
    "specificSystems": ["system 1", "system 2"],
    "estimatedValue": number in USD,
    "implementationTimeline": "90 days|6-12 months|Ongoing partnership"
  }},
  "nextSteps": {{"action": "Create Strategy Call|Manual Review|Move to Nurture", "notes": "..."}},
  "executiveSummary": "3-4 sentence summary",
  "enthusiasmLevel": "high|medium|low",
  "strategicFit": "excellent|good|moderate|poor"
}}

Score conservatively and base everything on evidence from the transcript."""


SALES_PROMPT = """You are analyzing a sales/strategy call transcript to determine whether the prospect agreed to purchase the engagement.

PROSPECT: {prospect_name} ({company})

TRANSCRIPT:
{transcript}

Respond with a JSON object:
{{
  "agreed_to_deal": true/false,
  "deal_value": number in USD or null if not discussed,
  "payment_terms": "upfront/payment plan/not discussed",
  "start_date": "date mentioned or null",
  "key_commitments": ["commitment 1"],
  "objections_handled": ["objection 1"] or [],
  "decision_factors": ["factor 1"],
  "next_steps": ["step 1"],
  "confidence_level": "high/medium/low",
  "competitor_mentions": [] ,
  "urgency": "immediate/this month/this quarter/low",
  "summary": "2-3 sentence summary of the outcome"
}}

Focus on whether they explicitly or implicitly agreed to move forward."""


def prequal_prompt(transcript: str, guest_name: str, company: str | None) -> str:
    return PREQUAL_PROMPT.format(
        transcript=transcript, guest_name=guest_name, company=company or "Unknown Company"
    )


def podcast_prompt(transcript: str, guest_name: str, company: str | None) -> str:
    return PODCAST_PROMPT.format(
        transcript=transcript, guest_name=guest_name, company=company or "Unknown Company"
    )


def discovery_prompt(transcript: str, prospect_name: str, company: str | None) -> str:
    return DISCOVERY_PROMPT.format(
        transcript=transcript,
        prospect_name=prospect_name,
        company=company or "Unknown Company",
    )


def sales_prompt(transcript: str, prospect_name: str, company: str | None) -> str:
    return SALES_PROMPT.format(
        transcript=transcript,
        prospect_name=prospect_name,
        company=company or "Unknown Company",
    )
