"""Plotly chart generators for RFM segmentation results.

Creates Plotly figure specifications as JSON-serializable dicts, coloured
consistently with the segment palette. Charts default to 800x400px; use
ChartConfig to change the size.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any, Sequence

from rfm_segmentation.foundation.segments import SEGMENT_COLORS

if TYPE_CHECKING:
    from rfm_segmentation.analyses.segment_summary import RFGridCell, SegmentSummary

_FALLBACK_COLOR = "#94a3b8"


def _size_layout() -> dict[str, int]:
    # Imported lazily: the package __init__ imports this module
    from rfm_segmentation.formatters import get_chart_config

    config = get_chart_config()
    return {"width": config.width, "height": config.height}


def _convert_plotly_to_base64_png(fig_dict: dict[str, Any]) -> str:
    """Convert Plotly JSON to base64-encoded PNG.

    Uses kaleido to render the static image.

    Raises
    ------
    ImportError:
        If plotly or kaleido is not available
    """
    import plotly.graph_objects as go

    fig = go.Figure(fig_dict)
    img_bytes = fig.to_image(format="png", engine="kaleido")
    return base64.b64encode(img_bytes).decode("utf-8")


def _package_figure(fig_dict: dict[str, Any], include_image: bool) -> dict[str, Any]:
    layout = fig_dict["layout"]
    result: dict[str, Any] = {
        "plotly_json": fig_dict,
        "format": "json",
        "width": layout["width"],
        "height": layout["height"],
    }
    if include_image:
        result["image_base64"] = _convert_plotly_to_base64_png(fig_dict)
        result["format"] = "png"
    return result


def create_segment_distribution_pie(
    summaries: Sequence[SegmentSummary], include_image: bool = False
) -> dict[str, Any]:
    """Create a donut chart of customers per segment.

    Parameters
    ----------
    summaries:
        Segment summaries
    include_image:
        Also render a base64 PNG (requires kaleido)

    Returns
    -------
    dict:
        ``plotly_json`` figure specification plus size metadata

    Examples
    --------
    >>> from rfm_segmentation.analyses.segment_summary import SegmentSummary
    >>> chart = create_segment_distribution_pie(
    ...     [SegmentSummary("Champions", 10, 100.0, 3.0, 6.0, 900.0)]
    ... )
    >>> chart["plotly_json"]["data"][0]["type"]
    'pie'
    """
    pie_trace = {
        "type": "pie",
        "labels": [s.name for s in summaries],
        "values": [s.count for s in summaries],
        "hole": 0.45,
        "marker": {
            "colors": [SEGMENT_COLORS.get(s.name, _FALLBACK_COLOR) for s in summaries]
        },
        "textinfo": "percent",
        "textposition": "inside",
        "hovertemplate": "%{label}<br>Customers: %{value}<br>Share: %{percent}<extra></extra>",
    }

    layout = {
        "title": {"text": "Customers by Segment", "x": 0.5, "xanchor": "center"},
        "showlegend": True,
        **_size_layout(),
    }

    return _package_figure({"data": [pie_trace], "layout": layout}, include_image)


def create_segment_monetary_bar(
    summaries: Sequence[SegmentSummary], include_image: bool = False
) -> dict[str, Any]:
    """Create a bar chart of average spend per segment.

    Parameters
    ----------
    summaries:
        Segment summaries
    include_image:
        Also render a base64 PNG (requires kaleido)

    Returns
    -------
    dict:
        ``plotly_json`` figure specification plus size metadata
    """
    bar_trace = {
        "type": "bar",
        "x": [s.name for s in summaries],
        "y": [round(s.avg_monetary, 2) for s in summaries],
        "marker": {
            "color": [SEGMENT_COLORS.get(s.name, _FALLBACK_COLOR) for s in summaries]
        },
        "customdata": [s.count for s in summaries],
        "hovertemplate": "%{x}<br>Avg Monetary: %{y:,.2f}<br>Customers: %{customdata}<extra></extra>",
    }

    layout = {
        "title": {"text": "Average Monetary Value by Segment", "x": 0.5, "xanchor": "center"},
        "xaxis": {"title": {"text": "Segment"}},
        "yaxis": {"title": {"text": "Average Monetary"}},
        "showlegend": False,
        **_size_layout(),
    }

    return _package_figure({"data": [bar_trace], "layout": layout}, include_image)


def create_rf_grid_heatmap(
    grid: Sequence[Sequence[RFGridCell]], include_image: bool = False
) -> dict[str, Any]:
    """Create a heatmap of customer counts over the R x F score grid.

    Cell text shows the dominant segment and its count.

    Parameters
    ----------
    grid:
        Output of ``build_rf_grid`` (rows from F=5 down to F=1)
    include_image:
        Also render a base64 PNG (requires kaleido)

    Returns
    -------
    dict:
        ``plotly_json`` figure specification plus size metadata
    """
    z = [[cell.count for cell in row] for row in grid]
    text = [
        [f"{cell.segment}<br>{cell.count}" if cell.count else "" for cell in row]
        for row in grid
    ]

    heatmap_trace = {
        "type": "heatmap",
        "z": z,
        "x": [f"R={cell.r_score}" for cell in grid[0]] if grid else [],
        "y": [f"F={row[0].f_score}" for row in grid if row],
        "text": text,
        "texttemplate": "%{text}",
        "colorscale": "Blues",
        "hovertemplate": "%{y}, %{x}<br>Customers: %{z}<extra></extra>",
    }

    layout = {
        "title": {"text": "Recency x Frequency Grid", "x": 0.5, "xanchor": "center"},
        "xaxis": {"title": {"text": "Recency score"}},
        # Rows already run top-down from F=5
        "yaxis": {"title": {"text": "Frequency score"}, "autorange": "reversed"},
        **_size_layout(),
    }

    return _package_figure({"data": [heatmap_trace], "layout": layout}, include_image)
