"""RFM (Recency-Frequency-Monetary) calculation utilities.

RFM analysis segments customers based on three dimensions:
- Recency: How many days before the latest sale in the dataset did the
  customer last buy?
- Frequency: How many valid transactions do they have?
- Monetary: How much did they spend in total?

Each dimension is scored 1-5 by population quintile (rank based, not value
based), and the R/F score pair selects one of eleven marketing segments.
Every step returns new immutable values; nothing is re-keyed in place.
"""

from __future__ import annotations

import logging
import multiprocessing
import os
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

import pandas as pd  # Used for rank-based quintile scoring

from rfm_segmentation.foundation.aggregation import CustomerAggregate
from rfm_segmentation.foundation.segments import SEGMENT_ORDER, assign_segment

logger = logging.getLogger(__name__)

QUINTILES = 5


@dataclass(frozen=True)
class RFMMetrics:
    """Raw RFM metrics for a single customer, before scoring.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    customer_name:
        Display name
    salesperson:
        Assigned salesperson ("N/A" when unknown)
    recency_days:
        Days from the customer's last purchase to the reference date
    frequency:
        Number of valid transactions
    monetary:
        Sum of transaction amounts
    last_purchase_date:
        Date of the customer's most recent transaction
    reference_date:
        Latest transaction date across the whole dataset
    """

    customer_id: str
    customer_name: str
    salesperson: str
    recency_days: int
    frequency: int
    monetary: float
    last_purchase_date: date
    reference_date: date

    def __post_init__(self) -> None:
        """Validate RFM metrics."""
        if self.recency_days < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency_days} (customer_id={self.customer_id})"
            )
        if self.frequency <= 0:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_id={self.customer_id})"
            )
        if self.last_purchase_date > self.reference_date:
            raise ValueError(
                f"Last purchase ({self.last_purchase_date}) cannot be after the "
                f"reference date ({self.reference_date}) (customer_id={self.customer_id})"
            )


def _calculate_rfm_for_customers(
    aggregates: Sequence[CustomerAggregate], reference_date: date
) -> list[RFMMetrics]:
    """Derive RFM metrics for a chunk of customers.

    Called directly for serial runs and by multiprocessing workers for
    large populations. Output keeps the order of ``aggregates``.
    """
    rfm_metrics: list[RFMMetrics] = []

    for aggregate in aggregates:
        last_purchase = max(aggregate.dates)
        recency_days = max(0, (reference_date - last_purchase).days)

        rfm_metrics.append(
            RFMMetrics(
                customer_id=aggregate.customer_id,
                customer_name=aggregate.display_name,
                salesperson=aggregate.display_salesperson,
                recency_days=recency_days,
                frequency=len(aggregate.dates),
                monetary=float(sum(aggregate.values)),
                last_purchase_date=last_purchase,
                reference_date=reference_date,
            )
        )

    return rfm_metrics


def calculate_rfm(
    aggregates: Mapping[str, CustomerAggregate],
    reference_date: date,
    parallel: bool = True,
    parallel_threshold: int = 10_000_000,
    n_workers: Optional[int] = None,
) -> list[RFMMetrics]:
    """Calculate raw RFM metrics for every aggregated customer.

    **Reference Date**: recency is measured against one global date (the
    latest transaction in the dataset, see
    :func:`~rfm_segmentation.foundation.aggregation.resolve_reference_date`),
    not against today's date.

    **Parallel Processing**: customers are independent, so for very large
    populations (>10M customers by default) the work is split into chunks
    and processed with multiprocessing. Chunks are contiguous, so the output
    order is the same as the serial path.

    Parameters
    ----------
    aggregates:
        Per-customer aggregates from
        :func:`~rfm_segmentation.foundation.aggregation.aggregate_transactions`
    reference_date:
        Anchor date for recency
    parallel:
        Enable parallel processing (default: True). When enabled, uses
        multiprocessing for populations reaching parallel_threshold.
    parallel_threshold:
        Number of customers at which parallel processing kicks in
        (default: 10,000,000)
    n_workers:
        Number of worker processes. If None (default), uses CPU count.
        Ignored if parallel=False.

    Returns
    -------
    list[RFMMetrics]
        One RFMMetrics per customer, in the order of ``aggregates``
        (first-seen order when produced by the aggregator)

    Examples
    --------
    >>> from datetime import date
    >>> from rfm_segmentation.foundation.aggregation import CustomerAggregate
    >>> agg = CustomerAggregate("C1", dates=[date(2024, 1, 1), date(2024, 1, 5)],
    ...                         values=[100.0, 50.0])
    >>> rfm = calculate_rfm({"C1": agg}, date(2024, 1, 10))
    >>> rfm[0].recency_days, rfm[0].frequency, rfm[0].monetary
    (5, 2, 150.0)
    """
    customers = [aggregate for aggregate in aggregates.values() if aggregate.dates]
    if not customers:
        return []

    num_customers = len(customers)
    use_parallel = parallel and num_customers >= parallel_threshold

    if use_parallel:
        if n_workers is None:
            workers = os.cpu_count() or 1
        else:
            workers = max(1, n_workers)

        chunk_size = max(1, -(-num_customers // workers))
        chunks = [
            (customers[i : i + chunk_size], reference_date)
            for i in range(0, num_customers, chunk_size)
        ]
        logger.debug(
            f"Deriving RFM metrics for {num_customers} customers "
            f"in {len(chunks)} chunks across {workers} workers"
        )

        with multiprocessing.Pool(processes=workers) as pool:
            chunk_results = pool.starmap(_calculate_rfm_for_customers, chunks)

        rfm_metrics: list[RFMMetrics] = []
        for chunk_result in chunk_results:
            rfm_metrics.extend(chunk_result)
    else:
        rfm_metrics = _calculate_rfm_for_customers(customers, reference_date)

    return rfm_metrics


@dataclass(frozen=True)
class RFMScore:
    """RFM scores (1-5 quintiles) for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    r_score:
        Recency score (1-5, where 5 = most recent)
    f_score:
        Frequency score (1-5, where 5 = most frequent)
    m_score:
        Monetary score (1-5, where 5 = highest spend)
    rfm_score:
        Combined RFM score string (e.g., "555" for best customers)
    """

    customer_id: str
    r_score: int
    f_score: int
    m_score: int
    rfm_score: str

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not 1 <= score_value <= QUINTILES:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )
        expected_rfm = f"{self.r_score}{self.f_score}{self.m_score}"
        if self.rfm_score != expected_rfm:
            raise ValueError(
                f"rfm_score ({self.rfm_score}) does not match r/f/m scores ({expected_rfm}) (customer_id={self.customer_id})"
            )


def score_quintiles(values: Sequence[float], inverse: bool = False) -> list[int]:
    """Score each value 1-5 by its rank in the population.

    Values are ranked ascending with a stable order for ties (first
    occurrence ranks first). The value at 0-indexed rank ``i`` out of ``n``
    gets ``floor(i * 5 / n) + 1``, so the five buckets differ in size by at
    most one customer. With ``inverse=True`` the score is flipped
    (``6 - score``) so that the smallest values score highest.

    Parameters
    ----------
    values:
        One raw metric value per customer
    inverse:
        Flip the scale (used for recency, where fewer days is better)

    Returns
    -------
    list[int]
        Scores aligned with ``values``

    Examples
    --------
    >>> score_quintiles([10, 20, 30, 40, 50])
    [1, 2, 3, 4, 5]
    >>> score_quintiles([0, 7, 7, 30, 90], inverse=True)
    [5, 4, 3, 2, 1]
    """
    if len(values) == 0:
        return []

    series = pd.Series(values, dtype="float64")
    positions = series.rank(method="first").astype("int64") - 1
    scores = positions * QUINTILES // len(series) + 1
    if inverse:
        scores = (QUINTILES + 1) - scores
    return [int(score) for score in scores]


def calculate_rfm_scores(rfm_metrics: Sequence[RFMMetrics]) -> list[RFMScore]:
    """Score RFM metrics into quintiles (1-5).

    Each dimension is ranked independently across the whole population, so
    this must run after every customer's metrics are known. For recency,
    lower values (more recent) get higher scores. For frequency and
    monetary, higher values get higher scores.

    **Note on Ties**: customers with equal raw values can land in different
    buckets; the one that appears first in ``rfm_metrics`` gets the lower
    rank. Keep the input order fixed for reproducible scores.

    Parameters
    ----------
    rfm_metrics:
        Raw metrics for the full customer population

    Returns
    -------
    list[RFMScore]
        Scores aligned with ``rfm_metrics``

    Examples
    --------
    >>> from datetime import date
    >>> metrics = [
    ...     RFMMetrics("C1", "Ana", "N/A", 3, 5, 500.0, date(2024, 3, 28), date(2024, 3, 31)),
    ...     RFMMetrics("C2", "Bia", "N/A", 60, 1, 80.0, date(2024, 1, 31), date(2024, 3, 31)),
    ... ]
    >>> scores = calculate_rfm_scores(metrics)
    >>> scores[0].r_score > scores[1].r_score
    True
    """
    if not rfm_metrics:
        return []

    df = pd.DataFrame(
        {
            "customer_id": [m.customer_id for m in rfm_metrics],
            "recency_days": [m.recency_days for m in rfm_metrics],
            "frequency": [m.frequency for m in rfm_metrics],
            "monetary": [m.monetary for m in rfm_metrics],
        }
    )

    # Recency: lower is better, so the scale is inverted (5 = most recent)
    df["r_score"] = score_quintiles(df["recency_days"].tolist(), inverse=True)
    df["f_score"] = score_quintiles(df["frequency"].tolist())
    df["m_score"] = score_quintiles(df["monetary"].tolist())

    df["rfm_score"] = (
        df["r_score"].astype(str)
        + df["f_score"].astype(str)
        + df["m_score"].astype(str)
    )

    return [
        RFMScore(
            customer_id=row.customer_id,
            r_score=int(row.r_score),
            f_score=int(row.f_score),
            m_score=int(row.m_score),
            rfm_score=row.rfm_score,
        )
        for row in df.itertuples(index=False)
    ]


@dataclass(frozen=True)
class RFMRecord:
    """Final RFM result for one customer.

    Combines the raw metrics, the quintile scores and the segment. Records
    are replaced wholesale when the analysis is re-run.
    """

    customer_id: str
    customer_name: str
    salesperson: str
    recency: int
    last_purchase_date: date
    frequency: int
    monetary: float
    r_score: int
    f_score: int
    m_score: int
    rfm_score: str
    segment: str

    def __post_init__(self) -> None:
        if self.recency < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency} (customer_id={self.customer_id})"
            )
        if self.frequency <= 0:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_id={self.customer_id})"
            )
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not 1 <= score_value <= QUINTILES:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )
        if self.rfm_score != f"{self.r_score}{self.f_score}{self.m_score}":
            raise ValueError(
                f"rfm_score ({self.rfm_score}) does not match r/f/m scores (customer_id={self.customer_id})"
            )
        if self.segment not in SEGMENT_ORDER:
            raise ValueError(
                f"Unknown segment: {self.segment!r} (customer_id={self.customer_id})"
            )


def build_rfm_records(
    rfm_metrics: Sequence[RFMMetrics], rfm_scores: Sequence[RFMScore]
) -> list[RFMRecord]:
    """Join metrics with scores and classify each customer into a segment.

    Raises
    ------
    ValueError
        If metrics and scores do not cover the same customers
    """
    scores_by_customer = {score.customer_id: score for score in rfm_scores}
    if len(scores_by_customer) != len(rfm_metrics) or any(
        m.customer_id not in scores_by_customer for m in rfm_metrics
    ):
        raise ValueError(
            f"RFM metrics ({len(rfm_metrics)}) and scores ({len(rfm_scores)}) "
            "must cover the same customers"
        )

    records: list[RFMRecord] = []
    for metrics in rfm_metrics:
        score = scores_by_customer[metrics.customer_id]
        records.append(
            RFMRecord(
                customer_id=metrics.customer_id,
                customer_name=metrics.customer_name,
                salesperson=metrics.salesperson,
                recency=metrics.recency_days,
                last_purchase_date=metrics.last_purchase_date,
                frequency=metrics.frequency,
                monetary=metrics.monetary,
                r_score=score.r_score,
                f_score=score.f_score,
                m_score=score.m_score,
                rfm_score=score.rfm_score,
                segment=assign_segment(score.r_score, score.f_score),
            )
        )
    return records
