"""Utility functions for the EMI calculator.

Helpers for turning user input into Python values (dates and decimals),
shifting dates by whole months and rounding amounts to the currency's minor
unit.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

from .config import CURRENCY_DECIMALS

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` or ``YYYY-MM`` string into a ``date``.

    A missing day component means the first of the month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    value = value.strip()
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date string: {value}")


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` into a ``Decimal``.

    Strings may contain thousands separators. Floats go through ``str`` so
    that ``8.5`` becomes ``Decimal("8.5")`` rather than its binary expansion.
    Raises ``ValueError`` if conversion fails.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        result = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def round_currency(amount: Decimal) -> Decimal:
    """Round ``amount`` half-up to the currency's minor unit."""
    quantum = Decimal(1).scaleb(-CURRENCY_DECIMALS)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)
