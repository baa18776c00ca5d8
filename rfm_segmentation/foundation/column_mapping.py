"""Column mapping between raw sales rows and the RFM engine.

A :class:`ColumnMapping` names which keys of each raw row hold the customer
identifier, the order date and the order value, plus the optional customer
name and salesperson columns. It is supplied once per analysis run.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Header patterns used to pre-fill a mapping, checked in field order.
HEADER_PATTERNS: dict[str, re.Pattern[str]] = {
    "customer_id": re.compile(r"id|customer_id|cliente_id|codigo", re.IGNORECASE),
    "customer_name": re.compile(r"name|nome|contato|razao|cliente", re.IGNORECASE),
    "order_date": re.compile(r"date|data|emissao", re.IGNORECASE),
    "order_value": re.compile(r"value|valor|total|amount|bruto", re.IGNORECASE),
    "salesperson": re.compile(r"salesperson|seller|vendedor|rep\b", re.IGNORECASE),
}

REQUIRED_FIELDS = ("customer_id", "order_date", "order_value")


class ColumnMapping(BaseModel):
    """Which raw-row keys feed each RFM input."""

    model_config = ConfigDict(frozen=True)

    customer_id: str = Field(description="Column holding the customer identifier")
    order_date: str = Field(description="Column holding the transaction date")
    order_value: str = Field(description="Column holding the transaction amount")
    customer_name: Optional[str] = Field(
        default=None, description="Column holding the customer display name"
    )
    salesperson: Optional[str] = Field(
        default=None, description="Column holding the assigned salesperson"
    )

    @field_validator("customer_id", "order_date", "order_value")
    @classmethod
    def _required_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("required column must be mapped")
        return value

    @field_validator("customer_name", "salesperson")
    @classmethod
    def _optional_blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


def detect_column_mapping(headers: Sequence[str]) -> dict[str, str | None]:
    """Guess a column for every mapping field from the header names.

    The first header matching a field's pattern wins. A header claimed by an
    earlier field is not offered to later ones, so a ``cliente_id`` column is
    not also proposed as the customer name.

    Parameters
    ----------
    headers:
        Header row of the uploaded file, in file order

    Returns
    -------
    dict[str, str | None]
        Field name to guessed header (``None`` when nothing matched).
        Pass it to :class:`ColumnMapping` once the required fields are set.

    Examples
    --------
    >>> detect_column_mapping(["Codigo", "Nome", "Data Emissao", "Valor Bruto"])
    {'customer_id': 'Codigo', 'customer_name': 'Nome', 'order_date': 'Data Emissao', 'order_value': 'Valor Bruto', 'salesperson': None}
    """
    claimed: set[str] = set()
    detected: dict[str, str | None] = {}
    for field_name, pattern in HEADER_PATTERNS.items():
        match = next(
            (h for h in headers if h not in claimed and pattern.search(h)), None
        )
        if match is not None:
            claimed.add(match)
        detected[field_name] = match
    return detected


def missing_required_columns(detected: dict[str, str | None]) -> list[str]:
    """Return the required mapping fields that have no column assigned."""
    return [name for name in REQUIRED_FIELDS if not detected.get(name)]
