"""End-to-end RFM segmentation run.

Raw rows + column mapping -> aggregates -> reference date -> metrics ->
quintile scores -> segments -> records -> segment summaries.

Each call works on its own data and returns a fresh, immutable result;
concurrent runs never share intermediate state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from rfm_segmentation.analyses.segment_summary import SegmentSummary, summarize_segments
from rfm_segmentation.foundation.aggregation import (
    aggregate_transactions,
    resolve_reference_date,
)
from rfm_segmentation.foundation.column_mapping import ColumnMapping
from rfm_segmentation.foundation.rfm import (
    RFMRecord,
    build_rfm_records,
    calculate_rfm,
    calculate_rfm_scores,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RFMAnalysis:
    """Result of one segmentation run."""

    records: tuple[RFMRecord, ...]
    summaries: tuple[SegmentSummary, ...]
    reference_date: Optional[date]

    @property
    def total_customers(self) -> int:
        return len(self.records)


def run_rfm_analysis(
    rows: Iterable[Mapping[str, object]],
    mapping: ColumnMapping,
    parallel: bool = True,
    parallel_threshold: int = 10_000_000,
) -> RFMAnalysis:
    """Run the full RFM segmentation over raw sales rows.

    Malformed rows are excluded rather than failing the run; a dataset with
    no valid transactions produces an empty analysis.

    Parameters
    ----------
    rows:
        Raw rows, mapping column name to cell value
    mapping:
        Column mapping with the required fields set
    parallel, parallel_threshold:
        Forwarded to :func:`~rfm_segmentation.foundation.rfm.calculate_rfm`

    Returns
    -------
    RFMAnalysis
        Records in first-seen customer order and summaries in canonical
        segment order

    Examples
    --------
    >>> mapping = ColumnMapping(customer_id="id", order_date="date", order_value="value")
    >>> analysis = run_rfm_analysis(
    ...     [{"id": "1", "date": "15/01/2024", "value": "R$ 100,00"}], mapping
    ... )
    >>> analysis.records[0].recency, analysis.records[0].monetary
    (0, 100.0)
    """
    aggregates = aggregate_transactions(rows, mapping)
    reference_date = resolve_reference_date(aggregates)
    if reference_date is None:
        logger.info("No valid transactions found; returning empty analysis")
        return RFMAnalysis(records=(), summaries=(), reference_date=None)

    rfm_metrics = calculate_rfm(
        aggregates,
        reference_date,
        parallel=parallel,
        parallel_threshold=parallel_threshold,
    )
    rfm_scores = calculate_rfm_scores(rfm_metrics)
    records = build_rfm_records(rfm_metrics, rfm_scores)
    summaries = summarize_segments(records)

    logger.info(
        f"RFM analysis complete: {len(records)} customers in "
        f"{len(summaries)} segments (reference date {reference_date.isoformat()})"
    )
    return RFMAnalysis(
        records=tuple(records),
        summaries=tuple(summaries),
        reference_date=reference_date,
    )
