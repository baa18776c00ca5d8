"""Services that consume finished RFM results."""

from .insights import (
    InsightsConfig,
    InsightsError,
    InsightsGenerator,
    build_insights_prompt,
    generate_insights,
)

__all__ = [
    "InsightsConfig",
    "InsightsError",
    "InsightsGenerator",
    "build_insights_prompt",
    "generate_insights",
]
