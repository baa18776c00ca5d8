"""Export RFM segmentation results to files.

Records go to CSV for spreadsheets and CRM imports, summaries to JSON for
dashboards, and everything together to a Markdown report.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from rfm_segmentation.analyses.segment_summary import (
    build_rf_grid,
    summarize_customer_base,
)
from rfm_segmentation.formatters.markdown_tables import (
    format_overview_table,
    format_rf_grid_table,
    format_segment_summary_table,
)
from rfm_segmentation.pandas.rfm import records_to_dataframe
from rfm_segmentation.pipeline import RFMAnalysis

logger = logging.getLogger(__name__)


def export_records_csv(analysis: RFMAnalysis, output_path: str | Path) -> None:
    """Export one row per customer to CSV.

    Parameters
    ----------
    analysis:
        Finished RFM analysis
    output_path:
        Path where the CSV file will be saved
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = records_to_dataframe(analysis.records)
    df.to_csv(output_path, index=False)

    logger.info(f"RFM records exported to {output_path}")


def export_summary_json(
    analysis: RFMAnalysis,
    output_path: str | Path,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Export the overview and segment summaries to JSON.

    Parameters
    ----------
    analysis:
        Finished RFM analysis
    output_path:
        Path where the JSON file will be saved
    metadata:
        Optional metadata to include (e.g., source file name)

    Examples
    --------
    >>> export_summary_json(analysis, "rfm_summary.json",
    ...                     metadata={"source": "vendas_2024.csv"})
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    overview = summarize_customer_base(analysis.records)
    report_data = {
        "metadata": metadata or {},
        "timestamp": datetime.now().isoformat(),
        "reference_date": (
            analysis.reference_date.isoformat() if analysis.reference_date else None
        ),
        "overview": {
            "total_customers": overview.total_customers,
            "total_revenue": round(overview.total_revenue, 2),
            "avg_frequency": round(overview.avg_frequency, 4),
            "avg_recency": round(overview.avg_recency, 4),
        },
        "segments": [
            {
                "name": s.name,
                "count": s.count,
                "percentage": round(s.percentage, 4),
                "avg_recency": round(s.avg_recency, 4),
                "avg_frequency": round(s.avg_frequency, 4),
                "avg_monetary": round(s.avg_monetary, 2),
            }
            for s in analysis.summaries
        ],
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report_data, f, indent=2)

    logger.info(f"Segment summary exported to {output_path}")


def build_markdown_report(
    analysis: RFMAnalysis, insights: Optional[str] = None, title: str = "RFM Analysis Report"
) -> str:
    """Assemble the full Markdown report text."""
    reference = (
        analysis.reference_date.strftime("%Y-%m-%d") if analysis.reference_date else "n/a"
    )

    report_lines = [f"# {title}\n"]
    report_lines.append(f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    report_lines.append(f"**Reference Date:** {reference}\n")
    report_lines.append(format_overview_table(summarize_customer_base(analysis.records)))
    report_lines.append(format_segment_summary_table(analysis.summaries))
    if analysis.records:
        report_lines.append(format_rf_grid_table(build_rf_grid(analysis.records)))
    if insights:
        report_lines.append("## Strategic Insights\n")
        report_lines.append(insights.strip() + "\n")
    return "\n".join(report_lines)


def export_markdown_report(
    analysis: RFMAnalysis,
    output_path: str | Path,
    insights: Optional[str] = None,
) -> None:
    """Write the Markdown report (overview, segments, grid, insights).

    Parameters
    ----------
    analysis:
        Finished RFM analysis
    output_path:
        Path where the Markdown file will be saved
    insights:
        Optional narrative text to append
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8") as f:
        f.write(build_markdown_report(analysis, insights))

    logger.info(f"RFM report exported to {output_path}")
