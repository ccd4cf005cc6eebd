"""Claude-backed transcript scoring.

The scorer sends one user prompt per transcript and pulls the JSON object
out of the reply. Replies are often wrapped in markdown fences or preceded
by a sentence of prose, so parsing strips fences and then takes the
outermost ``{...}`` block.
"""

import json
import logging
import os
import re
from dataclasses import dataclass

import anthropic

logger = logging.getLogger("growth-manager-scoring")

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 2000

_FENCE = re.compile(r"```(?:json)?\s*")
_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


class AnalysisError(Exception):
    """The model reply could not be turned into an analysis."""


@dataclass
class ClaudeConfig:
    """Anthropic configuration from environment."""

    api_key: str
    model: str
    max_tokens: int

    @classmethod
    def from_env(cls) -> "ClaudeConfig":
        """Load Anthropic config from environment variables."""
        api_key = os.getenv("ANTHROPIC_API_KEY", "")
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set - AI analysis disabled")

        return cls(
            api_key=api_key,
            model=os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.getenv("ANTHROPIC_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
        )

    def is_configured(self) -> bool:
        """Check if Anthropic is properly configured."""
        return bool(self.api_key)


def extract_json(text: str) -> dict:
    """Parse the JSON object embedded in a model reply.

    Raises:
        AnalysisError: If no object is found or it doesn't parse.
    """
    cleaned = _FENCE.sub("", text or "").strip()
    match = _JSON_BLOCK.search(cleaned)
    if not match:
        raise AnalysisError("Failed to parse analysis from Claude")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AnalysisError(f"Claude returned invalid JSON: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise AnalysisError("Claude returned JSON that is not an object")
    return parsed


class TranscriptScorer:
    """Sends analysis prompts to Claude and returns the parsed JSON."""

    def __init__(
        self,
        config: ClaudeConfig | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.config = config or ClaudeConfig.from_env()
        self._client = client

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        """Lazy-load the Anthropic client."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.config.api_key)
        return self._client

    def is_configured(self) -> bool:
        return self._client is not None or self.config.is_configured()

    async def analyze(self, prompt: str) -> dict:
        """Run one prompt and return the JSON object from the reply.

        Raises:
            AnalysisError: If the API call fails or the reply has no JSON.
        """
        try:
            message = await self.client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise AnalysisError(f"Claude request failed: {e}") from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        return extract_json(text)


# Singleton instance
_scorer: TranscriptScorer | None = None


def get_scorer() -> TranscriptScorer:
    """Get the transcript scorer singleton."""
    global _scorer
    if _scorer is None:
        _scorer = TranscriptScorer()
    return _scorer
