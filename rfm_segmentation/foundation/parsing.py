"""Normalisation of the loosely formatted scalars found in sales exports.

Spreadsheet and ERP exports mix Brazilian (``1.234,56`` / ``15/01/2024``)
and international (``1234.56`` / ``2024-01-15``) conventions, often in the
same file. Both parsers here are total: they never raise for a bad cell.

- :func:`parse_value` returns ``0.0`` for anything it cannot read.
- :func:`parse_date` returns ``None`` for anything it cannot read, and the
  aggregator drops those rows.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime

# Currency markers removed before separator disambiguation
_CURRENCY_MARKERS = ("R$", "$")

_NON_NUMERIC = re.compile(r"[^\d.\-]")

# D{1,2}[/-]M{1,2}[/-]Y{2,4} prefix; anything after the year (a time, in
# any separator) is ignored as long as the year does not run into more digits
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})(?!\d)")

# Textual dates accepted as "locale default" forms
_TEXTUAL_DATE_FORMATS = (
    "%b %d %Y",
    "%b %d, %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def parse_value(value: object) -> float:
    """Parse a monetary cell into a float.

    Separator rules:

    - Both ``,`` and ``.`` present: the rightmost one is the decimal
      separator and the other is a thousands separator
      (``"1.234,56"`` and ``"1,234.56"`` are both ``1234.56``).
    - Only commas: a single comma is the decimal separator
      (``"50,5"`` is ``50.5``); several commas are thousands separators.
    - Only periods: several periods are thousands separators
      (``"1.234.567"``); a single period is a decimal point.

    Examples
    --------
    >>> parse_value("R$ 1.234,56")
    1234.56
    >>> parse_value("1234.56")
    1234.56
    >>> parse_value("abc")
    0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
        return 0.0 if math.isnan(number) or math.isinf(number) else number

    text = str(value).strip()
    for marker in _CURRENCY_MARKERS:
        text = text.replace(marker, "")
    text = "".join(text.split())
    if not text:
        return 0.0

    commas = text.count(",")
    periods = text.count(".")
    if commas and periods:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif commas == 1:
        text = text.replace(",", ".")
    elif commas > 1:
        text = text.replace(",", "")
    elif periods > 1:
        text = text.replace(".", "")

    cleaned = _NON_NUMERIC.sub("", text)
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return 0.0 if math.isnan(number) or math.isinf(number) else number


def parse_date(value: object) -> date | None:
    """Parse a date cell into a calendar date, or ``None`` when invalid.

    Attempts, first success wins:

    1. ``date``/``datetime`` objects (including pandas ``Timestamp``) are used
       as-is; ISO-8601 strings with or without a time component; textual
       forms such as ``"Jan 15 2024"``.
    2. Numeric ``D/M/Y`` or ``D-M-Y``; whatever follows the year (a time,
       after a space, ``T``, comma or dash) is ignored. Two digit years are
       promoted by adding 2000. When the day-first reading is not a valid
       date but the month-first reading is (``"12/31/2024"``), the
       month-first reading is used.

    Ambiguous numeric dates are read day-first (``"03/04/2024"`` is 3 April),
    unlike locale-default parsers, which read them month-first (4 March).

    Examples
    --------
    >>> parse_date("2024-01-15")
    datetime.date(2024, 1, 15)
    >>> parse_date("15/01/2024 10:30")
    datetime.date(2024, 1, 15)
    >>> parse_date("garbage") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        # pandas NaT is a datetime subclass and never equals itself
        if value != value:
            return None
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    parsed = _parse_direct(text)
    if parsed is not None:
        return parsed
    return _parse_day_first(text)


def _parse_direct(text: str) -> date | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _TEXTUAL_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _parse_day_first(text: str) -> date | None:
    match = _DAY_FIRST_DATE.match(text)
    if match is None:
        return None
    first, second, year = (int(part) for part in match.groups())
    if year < 100:
        year += 2000
    for day, month in ((first, second), (second, first)):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None
