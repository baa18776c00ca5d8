"""Segment-level analyses over RFM records."""

from .segment_summary import (
    CustomerBaseOverview,
    RFGridCell,
    SegmentSummary,
    build_rf_grid,
    filter_records,
    summarize_customer_base,
    summarize_segments,
)

__all__ = [
    "CustomerBaseOverview",
    "RFGridCell",
    "SegmentSummary",
    "build_rf_grid",
    "filter_records",
    "summarize_customer_base",
    "summarize_segments",
]
