"""Segment classification from recency and frequency scores.

Customers are placed in one of eleven marketing segments by walking an
ordered rule table; the first rule whose predicate matches the
(R score, F score) pair wins. The monetary score is not consulted.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable


class RFMSegment(str, Enum):
    """The eleven marketing segments, in rule-table order."""

    CHAMPIONS = "Champions"
    LOYAL = "Loyal Customers"
    POTENTIAL_LOYALIST = "Potential Loyalist"
    NEW_CUSTOMERS = "New Customers"
    PROMISING = "Promising"
    NEED_ATTENTION = "Need Attention"
    ABOUT_TO_SLEEP = "About To Sleep"
    AT_RISK = "At Risk"
    CANNOT_LOSE_THEM = "Cannot Lose Them"
    HIBERNATING = "Hibernating"
    LOST = "Lost"


SegmentRule = tuple[Callable[[int, int], bool], RFMSegment]

# Evaluated top to bottom; order matters because predicates overlap
# (r=4, f=4 also satisfies the Loyal Customers rule).
SEGMENT_RULES: tuple[SegmentRule, ...] = (
    (lambda r, f: r in (4, 5) and f in (4, 5), RFMSegment.CHAMPIONS),
    (lambda r, f: r in (3, 4, 5) and f in (3, 4, 5), RFMSegment.LOYAL),
    (lambda r, f: r in (4, 5) and f in (2, 3), RFMSegment.POTENTIAL_LOYALIST),
    (lambda r, f: r in (4, 5) and f == 1, RFMSegment.NEW_CUSTOMERS),
    (lambda r, f: r in (3, 4) and f == 1, RFMSegment.PROMISING),
    (lambda r, f: r in (2, 3) and f in (2, 3), RFMSegment.NEED_ATTENTION),
    (lambda r, f: r in (2, 3) and f in (1, 2), RFMSegment.ABOUT_TO_SLEEP),
    (lambda r, f: r in (1, 2) and f >= 2, RFMSegment.AT_RISK),
    (lambda r, f: r == 1 and f in (4, 5), RFMSegment.CANNOT_LOSE_THEM),
    (lambda r, f: r in (1, 2), RFMSegment.HIBERNATING),
)

FALLBACK_SEGMENT = RFMSegment.LOST

SEGMENT_ORDER: tuple[str, ...] = tuple(segment.value for segment in RFMSegment)

SEGMENT_COLORS: dict[str, str] = {
    RFMSegment.CHAMPIONS.value: "#10b981",
    RFMSegment.LOYAL.value: "#3b82f6",
    RFMSegment.POTENTIAL_LOYALIST.value: "#6366f1",
    RFMSegment.NEW_CUSTOMERS.value: "#a855f7",
    RFMSegment.PROMISING.value: "#ec4899",
    RFMSegment.NEED_ATTENTION.value: "#f59e0b",
    RFMSegment.ABOUT_TO_SLEEP.value: "#f97316",
    RFMSegment.AT_RISK.value: "#ef4444",
    RFMSegment.CANNOT_LOSE_THEM.value: "#7c3aed",
    RFMSegment.HIBERNATING.value: "#64748b",
    RFMSegment.LOST.value: "#1e293b",
}

SEGMENT_DESCRIPTIONS: dict[str, str] = {
    RFMSegment.CHAMPIONS.value: "Bought recently, buy often and spend the most.",
    RFMSegment.LOYAL.value: "Spend well and respond to promotions.",
    RFMSegment.POTENTIAL_LOYALIST.value: "Recent customers who already spent a good amount.",
    RFMSegment.NEW_CUSTOMERS.value: "Bought recently, but not often.",
    RFMSegment.PROMISING.value: "Recent buyers who have not spent much yet.",
    RFMSegment.NEED_ATTENTION.value: "Above-average recency, frequency and monetary values.",
    RFMSegment.ABOUT_TO_SLEEP.value: "Below-average recency and frequency. They will be lost without action.",
    RFMSegment.AT_RISK.value: "Spent a lot and bought often, but have not come back in a long time.",
    RFMSegment.CANNOT_LOSE_THEM.value: "Made big, frequent purchases, but a very long time ago.",
    RFMSegment.HIBERNATING.value: "Last purchase was long ago and the order count is low.",
    RFMSegment.LOST.value: "Lowest recency, frequency and monetary scores.",
}


def assign_segment(r_score: int, f_score: int) -> str:
    """Map an (R score, F score) pair to its segment name.

    Examples
    --------
    >>> assign_segment(5, 5)
    'Champions'
    >>> assign_segment(1, 1)
    'Hibernating'
    """
    for predicate, segment in SEGMENT_RULES:
        if predicate(r_score, f_score):
            return segment.value
    return FALLBACK_SEGMENT.value
