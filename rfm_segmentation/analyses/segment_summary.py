"""Segment-level views over a set of RFM records.

Provides the roll-ups a marketing team looks at after segmentation:
- How many customers fall in each segment, and what share of the base?
- What are the average recency, frequency and spend per segment?
- What does the base look like overall?
- How are customers spread over the 5x5 recency/frequency grid?

Everything here is derived from the record set and recomputed whenever the
records change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from rfm_segmentation.foundation.rfm import QUINTILES, RFMRecord
from rfm_segmentation.foundation.segments import SEGMENT_ORDER, RFMSegment

# Tolerance for percentage validation (float accumulation)
PERCENTAGE_TOLERANCE = 1e-9

EMPTY_CELL_SEGMENT = RFMSegment.LOST.value


@dataclass(frozen=True)
class SegmentSummary:
    """Aggregate metrics for one observed segment.

    Attributes
    ----------
    name:
        Segment name
    count:
        Number of customers in the segment
    percentage:
        Share of all customers, 0-100
    avg_recency:
        Mean recency (days) across the segment
    avg_frequency:
        Mean transaction count across the segment
    avg_monetary:
        Mean total spend across the segment
    """

    name: str
    count: int
    percentage: float
    avg_recency: float
    avg_frequency: float
    avg_monetary: float

    def __post_init__(self) -> None:
        """Validate segment summary."""
        if self.count <= 0:
            raise ValueError(
                f"Segment count must be positive: {self.count} (segment={self.name})"
            )
        if not -PERCENTAGE_TOLERANCE <= self.percentage <= 100 + PERCENTAGE_TOLERANCE:
            raise ValueError(
                f"Segment percentage must be 0-100: {self.percentage} (segment={self.name})"
            )


def summarize_segments(records: Sequence[RFMRecord]) -> list[SegmentSummary]:
    """Group records by segment and compute counts, shares and averages.

    Only segments with at least one customer are listed, in the canonical
    segment order (Champions first, Lost last).

    Parameters
    ----------
    records:
        RFM records for the full customer base

    Returns
    -------
    list[SegmentSummary]
        One summary per observed segment

    Examples
    --------
    >>> from datetime import date
    >>> from rfm_segmentation.foundation.rfm import RFMRecord
    >>> records = [
    ...     RFMRecord("C1", "Ana", "N/A", 0, date(2024, 3, 1), 4, 400.0, 5, 5, 5, "555", "Champions"),
    ...     RFMRecord("C2", "Bia", "N/A", 90, date(2023, 12, 2), 1, 50.0, 1, 1, 1, "111", "Hibernating"),
    ... ]
    >>> [(s.name, s.count, s.percentage) for s in summarize_segments(records)]
    [('Champions', 1, 50.0), ('Hibernating', 1, 50.0)]
    """
    if not records:
        return []

    totals: dict[str, list[float]] = {}
    for record in records:
        bucket = totals.setdefault(record.segment, [0, 0.0, 0.0, 0.0])
        bucket[0] += 1
        bucket[1] += record.recency
        bucket[2] += record.frequency
        bucket[3] += record.monetary

    total_customers = len(records)
    summaries: list[SegmentSummary] = []
    for name in sorted(totals, key=_segment_rank):
        count, recency, frequency, monetary = totals[name]
        count = int(count)
        summaries.append(
            SegmentSummary(
                name=name,
                count=count,
                percentage=count / total_customers * 100,
                avg_recency=recency / count,
                avg_frequency=frequency / count,
                avg_monetary=monetary / count,
            )
        )
    return summaries


def _segment_rank(name: str) -> int:
    try:
        return SEGMENT_ORDER.index(name)
    except ValueError:
        return len(SEGMENT_ORDER)


@dataclass(frozen=True)
class CustomerBaseOverview:
    """Headline numbers for the whole customer base."""

    total_customers: int
    total_revenue: float
    avg_frequency: float
    avg_recency: float


def summarize_customer_base(records: Sequence[RFMRecord]) -> CustomerBaseOverview:
    """Compute total customers, total revenue and mean frequency/recency.

    An empty record set yields zeros rather than raising.
    """
    total_customers = len(records)
    divisor = total_customers or 1
    return CustomerBaseOverview(
        total_customers=total_customers,
        total_revenue=sum(r.monetary for r in records),
        avg_frequency=sum(r.frequency for r in records) / divisor,
        avg_recency=sum(r.recency for r in records) / divisor,
    )


@dataclass(frozen=True)
class RFGridCell:
    """One cell of the recency x frequency score grid."""

    r_score: int
    f_score: int
    count: int
    segment: str


def build_rf_grid(records: Sequence[RFMRecord]) -> list[list[RFGridCell]]:
    """Lay customers out on the 5x5 recency/frequency score grid.

    Rows run from F=5 (top) down to F=1; columns run from R=1 to R=5. Each
    cell holds its customer count and the most common segment in it (ties go
    to the segment listed first in the canonical order; empty cells report
    "Lost").
    """
    counts: dict[tuple[int, int], dict[str, int]] = {}
    for record in records:
        cell = counts.setdefault((record.r_score, record.f_score), {})
        cell[record.segment] = cell.get(record.segment, 0) + 1

    grid: list[list[RFGridCell]] = []
    for f_score in range(QUINTILES, 0, -1):
        row: list[RFGridCell] = []
        for r_score in range(1, QUINTILES + 1):
            segment_counts = counts.get((r_score, f_score), {})
            if segment_counts:
                dominant = min(
                    segment_counts,
                    key=lambda name: (-segment_counts[name], _segment_rank(name)),
                )
            else:
                dominant = EMPTY_CELL_SEGMENT
            row.append(
                RFGridCell(
                    r_score=r_score,
                    f_score=f_score,
                    count=sum(segment_counts.values()),
                    segment=dominant,
                )
            )
        grid.append(row)
    return grid


def filter_records(
    records: Sequence[RFMRecord],
    search: str = "",
    segment: Optional[str] = None,
) -> list[RFMRecord]:
    """Select records by a case-insensitive id/name search and a segment.

    An empty ``search`` matches everything; ``segment=None`` (or "") keeps
    every segment.
    """
    needle = search.strip().lower()
    return [
        record
        for record in records
        if (
            not needle
            or needle in record.customer_id.lower()
            or needle in record.customer_name.lower()
        )
        and (not segment or record.segment == segment)
    ]
