"""Foundational building blocks for RFM segmentation.

This package exposes the raw-row parsers, the column mapping, the
per-customer aggregator and the RFM metric, scoring and segment
classification steps.
"""

from .aggregation import (
    CustomerAggregate,
    aggregate_transactions,
    resolve_reference_date,
)
from .column_mapping import ColumnMapping, detect_column_mapping
from .parsing import parse_date, parse_value
from .rfm import (
    RFMMetrics,
    RFMRecord,
    RFMScore,
    build_rfm_records,
    calculate_rfm,
    calculate_rfm_scores,
    score_quintiles,
)
from .segments import (
    SEGMENT_COLORS,
    SEGMENT_DESCRIPTIONS,
    SEGMENT_RULES,
    RFMSegment,
    assign_segment,
)

__all__ = [
    "CustomerAggregate",
    "aggregate_transactions",
    "resolve_reference_date",
    "ColumnMapping",
    "detect_column_mapping",
    "parse_date",
    "parse_value",
    "RFMMetrics",
    "RFMRecord",
    "RFMScore",
    "build_rfm_records",
    "calculate_rfm",
    "calculate_rfm_scores",
    "score_quintiles",
    "SEGMENT_COLORS",
    "SEGMENT_DESCRIPTIONS",
    "SEGMENT_RULES",
    "RFMSegment",
    "assign_segment",
]
