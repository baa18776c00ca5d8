"""Markdown table formatters for RFM segmentation results.

Formats overview, segment and grid results as clean markdown tables
suitable for reports and any markdown renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from rfm_segmentation.foundation.segments import SEGMENT_DESCRIPTIONS

if TYPE_CHECKING:
    from rfm_segmentation.analyses.segment_summary import (
        CustomerBaseOverview,
        RFGridCell,
        SegmentSummary,
    )


def format_overview_table(overview: CustomerBaseOverview) -> str:
    """Format the customer-base headline numbers as a markdown table.

    Parameters
    ----------
    overview:
        Result of ``summarize_customer_base``

    Returns
    -------
    str:
        Markdown-formatted table

    Examples
    --------
    >>> from rfm_segmentation.analyses.segment_summary import CustomerBaseOverview
    >>> overview = CustomerBaseOverview(1200, 350000.0, 3.2, 41.5)
    >>> "| Total Customers | 1,200 |" in format_overview_table(overview)
    True
    """
    return f"""## Customer Base Overview

| Metric | Value |
|--------|-------|
| Total Customers | {overview.total_customers:,} |
| Total Revenue | {_format_money(overview.total_revenue)} |
| Avg Orders/Customer | {overview.avg_frequency:.2f} |
| Avg Recency (days) | {overview.avg_recency:.1f} |
"""


def format_segment_summary_table(
    summaries: Sequence[SegmentSummary], include_descriptions: bool = True
) -> str:
    """Format per-segment performance as a markdown table.

    Parameters
    ----------
    summaries:
        Segment summaries, in the order they should be listed
    include_descriptions:
        Add a column with the segment's short description

    Returns
    -------
    str:
        Markdown-formatted table, or a short notice when there are no
        segments
    """
    if not summaries:
        return "## Segment Performance\n\n_No customers to segment._\n"

    header = "| Segment | Customers | Share | Avg Recency (days) | Avg Frequency | Avg Monetary |"
    divider = "|---------|-----------|-------|--------------------|---------------|--------------|"
    if include_descriptions:
        header += " Description |"
        divider += "-------------|"

    lines = ["## Segment Performance", "", header, divider]
    for summary in summaries:
        line = (
            f"| {summary.name} | {summary.count:,} | {summary.percentage:.1f}% "
            f"| {summary.avg_recency:.1f} | {summary.avg_frequency:.2f} "
            f"| {_format_money(summary.avg_monetary)} |"
        )
        if include_descriptions:
            # First sentence only, to keep the table narrow
            description = SEGMENT_DESCRIPTIONS.get(summary.name, "")
            line += f" {description.split('.')[0]} |"
        lines.append(line)
    return "\n".join(lines) + "\n"


def format_rf_grid_table(grid: Sequence[Sequence[RFGridCell]]) -> str:
    """Format the recency/frequency grid as a markdown table.

    Rows are frequency scores (5 at the top), columns are recency scores.
    Each cell shows the dominant segment and the customer count.
    """
    lines = [
        "## Recency x Frequency Grid",
        "",
        "| F \\ R | R=1 | R=2 | R=3 | R=4 | R=5 |",
        "|-------|-----|-----|-----|-----|-----|",
    ]
    for row in grid:
        if not row:
            continue
        cells = " | ".join(
            f"{cell.segment} ({cell.count:,})" if cell.count else "-" for cell in row
        )
        lines.append(f"| F={row[0].f_score} | {cells} |")
    return "\n".join(lines) + "\n"


def _format_money(amount: float) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f}"
