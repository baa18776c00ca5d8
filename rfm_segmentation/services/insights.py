"""Narrative marketing insights for segment summaries.

This module turns the segment summaries of a finished RFM run into a
Markdown narrative written by Claude:
- overall health of the customer base
- the two segments that need intervention first
- three tailored strategies for Champions
- one reactivation strategy for At Risk customers

It consumes finished results only and runs separately from the
segmentation itself, so a slow or failing API call never affects the
records or summaries.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Optional, Sequence

import structlog
from anthropic import AsyncAnthropic
from pydantic import BaseModel, Field, model_validator

from rfm_segmentation.analyses.segment_summary import SegmentSummary

logger = structlog.get_logger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

NO_DATA_MESSAGE = "No segment data available. Run the RFM analysis first."


class InsightsError(RuntimeError):
    """Raised when the narrative could not be generated."""


class InsightsConfig(BaseModel):
    """Settings for narrative generation."""

    api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key (falls back to the ANTHROPIC_API_KEY env var)",
    )
    model: str = Field(default=DEFAULT_MODEL, description="Claude model name")
    max_tokens: int = Field(default=1500, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, gt=0)
    language: str = Field(
        default="English", description="Language the narrative is written in"
    )

    @model_validator(mode="after")
    def _resolve_api_key(self) -> InsightsConfig:
        if not self.api_key:
            self.api_key = os.getenv("ANTHROPIC_API_KEY")
        return self


def summaries_payload(summaries: Sequence[SegmentSummary]) -> list[dict[str, object]]:
    """Render summaries as plain dicts with rounded numbers for the prompt."""
    return [
        {
            "name": s.name,
            "count": s.count,
            "percentage": round(s.percentage, 2),
            "avgRecency": round(s.avg_recency, 1),
            "avgFrequency": round(s.avg_frequency, 2),
            "avgMonetary": round(s.avg_monetary, 2),
        }
        for s in summaries
    ]


def build_insights_prompt(
    summaries: Sequence[SegmentSummary], language: str = "English"
) -> str:
    """Build the prompt sent to Claude for the segment narrative."""
    segments_json = json.dumps(summaries_payload(summaries), indent=2)

    return f"""Analyze the following customer segments from an RFM (Recency, Frequency, Monetary) analysis:
{segments_json}

Based on this data, provide:
1. An overview of the health of the customer base.
2. The 2 most critical segments that need immediate intervention.
3. 3 personalized marketing strategies for the 'Champions'.
4. A strategy to reactivate 'At Risk' customers.

Answer in {language} with a professional, actionable tone. Use Markdown formatting (bold, lists)."""


class InsightsGenerator:
    """Generates segment narratives with the Anthropic Messages API.

    Token usage is accumulated across calls for cost monitoring.
    """

    def __init__(
        self,
        config: Optional[InsightsConfig] = None,
        client: Optional[AsyncAnthropic] = None,
    ):
        """Initialize the generator.

        Args:
            config: Generation settings (defaults read ANTHROPIC_API_KEY)
            client: Pre-built Anthropic client, mainly for tests

        Raises:
            ValueError: If no client is given and no API key is configured
        """
        self.config = config or InsightsConfig()
        if client is None:
            if not self.config.api_key:
                raise ValueError(
                    "Anthropic API key required for insights. "
                    "Set InsightsConfig.api_key or the ANTHROPIC_API_KEY env var."
                )
            client = AsyncAnthropic(api_key=self.config.api_key)
        self.client = client
        self._total_input_tokens = 0
        self._total_output_tokens = 0
        logger.info("insights_generator_initialized", model=self.config.model)

    @property
    def total_tokens(self) -> tuple[int, int]:
        """(input, output) tokens used so far."""
        return self._total_input_tokens, self._total_output_tokens

    async def generate(self, summaries: Sequence[SegmentSummary]) -> str:
        """Generate the Markdown narrative for ``summaries``.

        Returns a fixed notice without calling the API when there are no
        summaries.

        Raises:
            InsightsError: If the API call fails, times out, or returns no text
        """
        if not summaries:
            logger.warning("insights_requested_without_segments")
            return NO_DATA_MESSAGE

        logger.info(
            "insights_requested",
            segment_count=len(summaries),
            model=self.config.model,
        )
        prompt = build_insights_prompt(summaries, self.config.language)

        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.config.model,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self.config.timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "insights_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InsightsError(f"Failed to generate insights: {e}") from e

        usage = response.usage
        self._total_input_tokens += usage.input_tokens
        self._total_output_tokens += usage.output_tokens
        logger.info(
            "insights_response_received",
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_input_tokens=self._total_input_tokens,
            total_output_tokens=self._total_output_tokens,
        )

        text = "".join(
            getattr(block, "text", "") for block in response.content
        ).strip()
        if not text:
            logger.error("insights_empty_response")
            raise InsightsError("Claude returned an empty response")

        logger.info("insights_complete", narrative_length=len(text))
        return text


def generate_insights(
    summaries: Sequence[SegmentSummary], config: Optional[InsightsConfig] = None
) -> str:
    """Synchronous wrapper around :meth:`InsightsGenerator.generate`."""
    return asyncio.run(InsightsGenerator(config).generate(summaries))
