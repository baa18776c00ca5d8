"""Per-customer aggregation of raw sales rows."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

from rfm_segmentation.foundation.column_mapping import ColumnMapping
from rfm_segmentation.foundation.parsing import parse_date, parse_value

logger = logging.getLogger(__name__)

DEFAULT_SALESPERSON = "N/A"


def placeholder_name(customer_id: str) -> str:
    """Display name used when no name was ever seen for a customer."""
    return f"Customer {customer_id}"


@dataclass(slots=True)
class CustomerAggregate:
    """Transactions collected for one customer while scanning the rows.

    Attributes
    ----------
    customer_id:
        Normalised (stripped) customer identifier
    name:
        First non-empty name seen on a valid row, or None
    salesperson:
        Last non-empty salesperson seen on a valid row, or None
    dates:
        Parsed transaction dates, in row order
    values:
        Parsed transaction amounts, parallel to ``dates``
    """

    customer_id: str
    name: Optional[str] = None
    salesperson: Optional[str] = None
    dates: list[date] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or placeholder_name(self.customer_id)

    @property
    def display_salesperson(self) -> str:
        return self.salesperson or DEFAULT_SALESPERSON

    def add(self, order_date: date, amount: float) -> None:
        self.dates.append(order_date)
        self.values.append(amount)


def _cell_text(row: Mapping[str, object], column: Optional[str]) -> str:
    if not column:
        return ""
    value = row.get(column)
    # Empty cells read through pandas surface as float NaN
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def aggregate_transactions(
    rows: Iterable[Mapping[str, object]], mapping: ColumnMapping
) -> dict[str, CustomerAggregate]:
    """Group raw rows into one aggregate per customer in a single pass.

    Rows without a customer id or with an unparseable date are skipped and
    contribute nothing. An unparseable amount counts as a transaction worth
    ``0.0``. Customers with no valid row never get an aggregate.

    Name policy: the first non-empty name on a valid row wins.
    Salesperson policy: the last non-empty salesperson on a valid row wins.

    Parameters
    ----------
    rows:
        Raw rows, mapping column name to cell value
    mapping:
        Column mapping for this run

    Returns
    -------
    dict[str, CustomerAggregate]
        Aggregates keyed by customer id, in first-seen order

    Examples
    --------
    >>> mapping = ColumnMapping(customer_id="id", order_date="dt", order_value="v")
    >>> aggs = aggregate_transactions(
    ...     [{"id": "7", "dt": "2024-01-15", "v": "10,50"},
    ...      {"id": "7", "dt": "not a date", "v": "99"}],
    ...     mapping,
    ... )
    >>> aggs["7"].values
    [10.5]
    """
    aggregates: dict[str, CustomerAggregate] = {}
    missing_id = 0
    invalid_date = 0
    total = 0

    for row in rows:
        total += 1
        customer_id = _cell_text(row, mapping.customer_id)
        if not customer_id:
            missing_id += 1
            continue

        order_date = parse_date(row.get(mapping.order_date))
        if order_date is None:
            invalid_date += 1
            continue

        aggregate = aggregates.get(customer_id)
        if aggregate is None:
            aggregate = aggregates[customer_id] = CustomerAggregate(customer_id)

        name = _cell_text(row, mapping.customer_name)
        if name and aggregate.name is None:
            aggregate.name = name
        salesperson = _cell_text(row, mapping.salesperson)
        if salesperson:
            aggregate.salesperson = salesperson

        aggregate.add(order_date, parse_value(row.get(mapping.order_value)))

    if missing_id or invalid_date:
        logger.debug(
            f"Skipped {missing_id} rows without customer id and "
            f"{invalid_date} rows with invalid dates out of {total}"
        )
    logger.debug(f"Aggregated {total} rows into {len(aggregates)} customers")
    return aggregates


def resolve_reference_date(
    aggregates: Mapping[str, CustomerAggregate],
) -> date | None:
    """Return the latest transaction date across all customers.

    Recency for every customer is measured against this single date.
    Returns None when there are no transactions at all.
    """
    latest: date | None = None
    for aggregate in aggregates.values():
        for order_date in aggregate.dates:
            if latest is None or order_date > latest:
                latest = order_date
    return latest
