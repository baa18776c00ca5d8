"""Presentation formatters for RFM segmentation results.

This package converts records and segment summaries into
presentation-ready formats:

- Markdown tables for readable text output and reports
- Plotly figure specifications for interactive visualizations
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rfm_segmentation.formatters.markdown_tables import (
    format_overview_table,
    format_rf_grid_table,
    format_segment_summary_table,
)
from rfm_segmentation.formatters.plotly_charts import (
    create_rf_grid_heatmap,
    create_segment_distribution_pie,
    create_segment_monetary_bar,
)


ChartQuality = Literal["high", "medium", "low"]

# (width, height) in pixels per quality preset
CHART_SIZE_PRESETS: dict[str, tuple[int, int]] = {
    "high": (1200, 600),
    "medium": (800, 400),
    "low": (600, 300),
}


@dataclass(frozen=True)
class ChartConfig:
    """Pixel size applied to every chart that is not given an explicit size.

    Attributes
    ----------
    width:
        Chart width in pixels
    height:
        Chart height in pixels
    quality:
        Name of the preset the size came from
    """

    width: int = 800
    height: int = 400
    quality: ChartQuality = "medium"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Chart size must be positive: {self.width}x{self.height}"
            )

    @classmethod
    def from_quality(cls, quality: ChartQuality) -> ChartConfig:
        """Build a config from a named size preset.

        Examples
        --------
        >>> ChartConfig.from_quality("low")
        ChartConfig(width=600, height=300, quality='low')
        """
        if quality not in CHART_SIZE_PRESETS:
            raise ValueError(
                f"Unknown chart quality {quality!r}; "
                f"expected one of {sorted(CHART_SIZE_PRESETS)}"
            )
        width, height = CHART_SIZE_PRESETS[quality]
        return cls(width=width, height=height, quality=quality)


_chart_config = ChartConfig.from_quality("medium")


def get_chart_config() -> ChartConfig:
    """Return the chart size currently applied by the chart builders."""
    return _chart_config


def set_chart_config(config: ChartConfig) -> None:
    """Replace the chart size used by every chart builder in this process."""
    global _chart_config
    _chart_config = config


__all__ = [
    # Configuration
    "ChartConfig",
    "get_chart_config",
    "set_chart_config",
    # Markdown tables
    "format_overview_table",
    "format_rf_grid_table",
    "format_segment_summary_table",
    # Plotly charts
    "create_rf_grid_heatmap",
    "create_segment_distribution_pie",
    "create_segment_monetary_bar",
]
