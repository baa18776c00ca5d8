"""Tests for Markdown tables and Plotly chart specifications."""

from unittest.mock import patch

import plotly.graph_objects as go
import pytest

from rfm_segmentation.analyses.segment_summary import (
    CustomerBaseOverview,
    RFGridCell,
    SegmentSummary,
)
from rfm_segmentation.formatters import (
    ChartConfig,
    create_rf_grid_heatmap,
    create_segment_distribution_pie,
    create_segment_monetary_bar,
    format_overview_table,
    format_rf_grid_table,
    format_segment_summary_table,
    get_chart_config,
    set_chart_config,
)


@pytest.fixture
def summaries():
    return [
        SegmentSummary("Champions", 30, 30.0, 5.2, 8.1, 2450.75),
        SegmentSummary("At Risk", 50, 50.0, 140.0, 3.0, 1200.0),
        SegmentSummary("Hibernating", 20, 20.0, 300.5, 1.0, 80.0),
    ]


@pytest.fixture
def grid():
    rows = []
    for f_score in range(5, 0, -1):
        rows.append(
            [
                RFGridCell(r_score, f_score, r_score * f_score, "Champions")
                for r_score in range(1, 6)
            ]
        )
    return rows


@pytest.fixture
def restore_chart_config():
    original = get_chart_config()
    yield
    set_chart_config(original)


class TestMarkdownTables:
    """Test Markdown formatters."""

    def test_overview_table(self):
        table = format_overview_table(CustomerBaseOverview(1200, 350000.5, 3.256, 41.55))
        assert "## Customer Base Overview" in table
        assert "| Total Customers | 1,200 |" in table
        assert "| Total Revenue | 350,000.50 |" in table
        assert "| Avg Orders/Customer | 3.26 |" in table

    def test_segment_table(self, summaries):
        table = format_segment_summary_table(summaries)
        lines = table.strip().splitlines()

        assert lines[0] == "## Segment Performance"
        assert "Description" in lines[2]
        assert lines[4].startswith("| Champions | 30 | 30.0% | 5.2 | 8.10 | 2,450.75 |")
        assert "Bought recently, buy often and spend the most |" in lines[4]
        assert len(lines) == 4 + len(summaries)

    def test_segment_table_without_descriptions(self, summaries):
        table = format_segment_summary_table(summaries, include_descriptions=False)
        assert "Description" not in table
        assert table.splitlines()[4].endswith("| 2,450.75 |")

    def test_segment_table_empty(self):
        assert "_No customers to segment._" in format_segment_summary_table([])

    def test_rf_grid_table(self, grid):
        table = format_rf_grid_table(grid)
        lines = table.strip().splitlines()
        assert lines[4].startswith("| F=5 | Champions (5) |")
        assert lines[-1].startswith("| F=1 | Champions (1) |")

    def test_rf_grid_table_empty_cell(self):
        row = [RFGridCell(r, 1, 0, "Lost") for r in range(1, 6)]
        assert "| F=1 | - | - | - | - | - |" in format_rf_grid_table([row])


class TestChartConfig:
    """Test chart size configuration."""

    @pytest.mark.parametrize(
        "quality, size", [("high", (1200, 600)), ("medium", (800, 400)), ("low", (600, 300))]
    )
    def test_from_quality(self, quality, size):
        config = ChartConfig.from_quality(quality)
        assert (config.width, config.height) == size

    def test_unknown_quality_raises(self):
        with pytest.raises(ValueError, match="Unknown chart quality"):
            ChartConfig.from_quality("ultra")

    def test_non_positive_size_raises(self):
        with pytest.raises(ValueError, match="Chart size must be positive"):
            ChartConfig(width=0, height=400)

    def test_set_chart_config_changes_default_size(self, summaries, restore_chart_config):
        set_chart_config(ChartConfig.from_quality("high"))
        chart = create_segment_distribution_pie(summaries)
        assert (chart["width"], chart["height"]) == (1200, 600)


class TestPlotlyCharts:
    """Test Plotly figure specifications."""

    def test_pie_chart(self, summaries):
        chart = create_segment_distribution_pie(summaries)

        assert chart["format"] == "json"
        assert "image_base64" not in chart
        trace = chart["plotly_json"]["data"][0]
        assert trace["labels"] == ["Champions", "At Risk", "Hibernating"]
        assert trace["values"] == [30, 50, 20]
        assert trace["marker"]["colors"][0] == "#10b981"
        go.Figure(chart["plotly_json"])

    def test_monetary_bar(self, summaries):
        chart = create_segment_monetary_bar(summaries)
        trace = chart["plotly_json"]["data"][0]
        assert trace["type"] == "bar"
        assert trace["y"] == [2450.75, 1200.0, 80.0]
        assert trace["customdata"] == [30, 50, 20]
        go.Figure(chart["plotly_json"])

    def test_unknown_segment_gets_fallback_color(self):
        chart = create_segment_monetary_bar([SegmentSummary("VIP", 1, 100.0, 1.0, 1.0, 1.0)])
        assert chart["plotly_json"]["data"][0]["marker"]["color"] == ["#94a3b8"]

    def test_rf_heatmap(self, grid):
        chart = create_rf_grid_heatmap(grid)
        trace = chart["plotly_json"]["data"][0]

        assert trace["x"] == ["R=1", "R=2", "R=3", "R=4", "R=5"]
        assert trace["y"] == ["F=5", "F=4", "F=3", "F=2", "F=1"]
        assert trace["z"][0] == [5, 10, 15, 20, 25]
        assert trace["text"][0][0] == "Champions<br>5"
        go.Figure(chart["plotly_json"])

    def test_include_image_uses_converter(self, summaries):
        with patch(
            "rfm_segmentation.formatters.plotly_charts._convert_plotly_to_base64_png",
            return_value="aW1n",
        ) as convert:
            chart = create_segment_distribution_pie(summaries, include_image=True)

        convert.assert_called_once()
        assert chart["format"] == "png"
        assert chart["image_base64"] == "aW1n"
