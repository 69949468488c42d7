"""Input validation for the EMI calculator.

Values are screened against the bounds of a loan category. Two policies are
offered, matching how a front end treats its inputs:

* a user edit is *validated*: an out-of-range value is reported with a
  message and left as entered;
* a programmatic change (switching category or rate convention) *clamps*
  the values already entered into the new bounds without reporting anything.

Rejections are returned as data. :func:`require_valid` turns them into an
exception for callers that prefer one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from .data_models import ANNUAL, LoanProfile
from .exceptions import OutOfRangeError
from .formatter import format_currency
from .utils import Number, to_decimal

PRINCIPAL = "principal"
INTEREST_RATE = "interest_rate"
TENURE = "tenure"
PREPAYMENT = "prepayment"
FIELDS = (PRINCIPAL, INTEREST_RATE, TENURE)


@dataclass(frozen=True)
class OutOfRange:
    """A rejected field value together with the bounds it violated."""

    field: str
    value: Decimal
    minimum: Optional[Decimal]
    maximum: Optional[Decimal]
    message: str


def _strip(value: Decimal) -> str:
    # 0.70 -> 0.7, 30 -> 30
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _check_principal(value: Decimal, profile: LoanProfile, rate_convention: str) -> Optional[str]:
    if value < profile.min_amount:
        return f"Minimum loan amount is {format_currency(profile.min_amount)}"
    if value > profile.max_amount:
        return f"Maximum loan amount is {format_currency(profile.max_amount)}"
    return None


def _check_rate(value: Decimal, profile: LoanProfile, rate_convention: str) -> Optional[str]:
    low, high = profile.rate_bounds(rate_convention)
    kind = "annual" if rate_convention == ANNUAL else "monthly"
    if value < low:
        return f"Minimum {kind} interest rate is {_strip(low)}%"
    if value > high:
        return f"Maximum {kind} interest rate is {_strip(high)}%"
    return None


def _check_tenure(value: Decimal, profile: LoanProfile, rate_convention: str) -> Optional[str]:
    if value < 1:
        return "Minimum tenure is 1 month"
    if value > profile.max_tenure:
        return f"Maximum tenure is {profile.max_tenure} months"
    return None


_CHECKS = {
    PRINCIPAL: _check_principal,
    INTEREST_RATE: _check_rate,
    TENURE: _check_tenure,
}


def bounds(field: str, profile: LoanProfile, rate_convention: str = ANNUAL) -> Tuple[Decimal, Decimal]:
    """Return the ``(minimum, maximum)`` allowed for ``field``."""
    if field == PRINCIPAL:
        return profile.min_amount, profile.max_amount
    if field == INTEREST_RATE:
        return profile.rate_bounds(rate_convention)
    if field == TENURE:
        return Decimal(1), Decimal(profile.max_tenure)
    raise ValueError(f"Unknown field: {field}")


def validate(value: Number, field: str, profile: LoanProfile, rate_convention: str = ANNUAL) -> Optional[str]:
    """Return a rejection message for ``value``, or ``None`` when it is valid."""
    try:
        check = _CHECKS[field]
    except KeyError:
        raise ValueError(f"Unknown field: {field}") from None
    return check(to_decimal(value), profile, rate_convention)


def check(value: Number, field: str, profile: LoanProfile, rate_convention: str = ANNUAL) -> Optional[OutOfRange]:
    """Like :func:`validate` but return the structured rejection."""
    message = validate(value, field, profile, rate_convention)
    if message is None:
        return None
    minimum, maximum = bounds(field, profile, rate_convention)
    return OutOfRange(field, to_decimal(value), minimum, maximum, message)


def validate_prepayment(prepayment: Number, principal: Optional[Number] = None) -> Optional[str]:
    """Prepayment must be non-negative and strictly below the principal.

    Without a principal only the sign is checked.
    """
    prepayment = to_decimal(prepayment)
    if prepayment < 0:
        return "Prepayment cannot be negative"
    if principal is None:
        return None
    principal = to_decimal(principal)
    if prepayment >= principal:
        return f"Prepayment must be less than the loan amount of {format_currency(principal)}"
    return None


def validate_fields(
    values: Mapping[str, Number],
    profile: LoanProfile,
    rate_convention: str = ANNUAL,
) -> Dict[str, Optional[str]]:
    """Validate every field present in ``values``.

    Returns a new mapping from field name to rejection message (``None`` when
    valid). A ``prepayment`` entry is always screened for its sign and is
    checked against ``principal`` when that is present too. One bad field
    does not stop the others from being checked.
    """
    errors: Dict[str, Optional[str]] = {}
    for field in FIELDS:
        if field in values:
            errors[field] = validate(values[field], field, profile, rate_convention)
    if PREPAYMENT in values:
        errors[PREPAYMENT] = validate_prepayment(values[PREPAYMENT], values.get(PRINCIPAL))
    return errors


def has_errors(errors: Mapping[str, Optional[str]]) -> bool:
    return any(errors.values())


def require_valid(
    principal: Number,
    rate: Number,
    tenure: int,
    profile: LoanProfile,
    rate_convention: str = ANNUAL,
    prepayment: Number = 0,
) -> None:
    """Raise :class:`OutOfRangeError` listing every rejected field."""
    rejections = [
        r
        for r in (
            check(principal, PRINCIPAL, profile, rate_convention),
            check(rate, INTEREST_RATE, profile, rate_convention),
            check(tenure, TENURE, profile, rate_convention),
        )
        if r is not None
    ]
    message = validate_prepayment(prepayment, principal)
    if message:
        rejections.append(OutOfRange(PREPAYMENT, to_decimal(prepayment), Decimal(0), to_decimal(principal), message))
    if rejections:
        raise OutOfRangeError(rejections)


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return min(max(value, low), high)


def clamp_to_profile(
    principal: Number,
    rate: Number,
    tenure: int,
    profile: LoanProfile,
    rate_convention: str = ANNUAL,
) -> Tuple[Decimal, Decimal, int]:
    """Pull previously entered values into the bounds of ``profile``.

    Used when the category or rate convention changes. Nothing is rejected.
    Tenure is only capped at the maximum; a tenure below one is left for the
    next explicit edit to report.
    """
    principal = clamp(to_decimal(principal), profile.min_amount, profile.max_amount)
    low, high = profile.rate_bounds(rate_convention)
    rate = clamp(to_decimal(rate), low, high)
    return principal, rate, min(int(tenure), profile.max_tenure)
