"""Data models for the EMI calculator.

This module defines dataclasses representing the entities used by the
calculator: loan profiles (per-category bounds), loan requests, the computed
installment figures and individual schedule rows. All of them are frozen
value objects; once the engine hands them out nobody mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Tuple

ANNUAL = "annual"
MONTHLY = "monthly"
RATE_CONVENTIONS: Tuple[str, ...] = (ANNUAL, MONTHLY)


@dataclass(frozen=True)
class LoanProfile:
    """Bounds that apply to one loan category.

    Attributes
    ----------
    category: str
        Identifier used to look the profile up (``"home"``, ``"car"`` ...).
    min_amount, max_amount: Decimal
        Allowed principal range.
    min_annual_rate, max_annual_rate: Decimal
        Allowed nominal rate range in percent when the rate is quoted per year.
    min_monthly_rate, max_monthly_rate: Decimal
        Allowed nominal rate range in percent when the rate is quoted per month.
    max_tenure: int
        Longest tenure in months.
    """

    category: str
    label: str
    min_amount: Decimal
    max_amount: Decimal
    min_annual_rate: Decimal
    max_annual_rate: Decimal
    min_monthly_rate: Decimal
    max_monthly_rate: Decimal
    max_tenure: int

    def __post_init__(self) -> None:
        pairs = [
            ("amount", self.min_amount, self.max_amount),
            ("annual rate", self.min_annual_rate, self.max_annual_rate),
            ("monthly rate", self.min_monthly_rate, self.max_monthly_rate),
        ]
        for name, low, high in pairs:
            if low > high:
                raise ValueError(f"{self.category}: minimum {name} exceeds maximum")
        if self.max_tenure <= 0:
            raise ValueError(f"{self.category}: maximum tenure must be positive")

    def rate_bounds(self, rate_convention: str) -> Tuple[Decimal, Decimal]:
        """Return ``(minimum, maximum)`` rate for the given convention."""
        if rate_convention == MONTHLY:
            return self.min_monthly_rate, self.max_monthly_rate
        return self.min_annual_rate, self.max_annual_rate


@dataclass(frozen=True)
class LoanRequest:
    """Inputs of a single calculation.

    ``rate`` is the nominal rate in percent, interpreted per year or per month
    depending on ``rate_convention``. ``prepayment`` is paid upfront and
    reduces the financed amount before anything is amortized.
    """

    principal: Decimal
    rate: Decimal
    tenure: int  # number of monthly periods
    prepayment: Decimal = Decimal("0")
    rate_convention: str = ANNUAL  # 'annual' or 'monthly'

    @property
    def financed_principal(self) -> Decimal:
        return self.principal - self.prepayment


@dataclass(frozen=True)
class InstallmentResult:
    """Top-level figures of a loan, rounded to the currency minor unit."""

    financed_principal: Decimal
    installment: Decimal
    total_amount: Decimal
    total_interest: Decimal

    @property
    def principal_share(self) -> Decimal:
        """Percentage of the total amount that repays principal."""
        if not self.total_amount:
            return Decimal("0")
        return self.financed_principal / self.total_amount * 100

    @property
    def interest_share(self) -> Decimal:
        """Percentage of the total amount that is interest."""
        if not self.total_amount:
            return Decimal("0")
        return self.total_interest / self.total_amount * 100


@dataclass(frozen=True)
class ScheduleRow:
    """A row in the amortization schedule.

    Under the monthly convention each row is one period. Under the annual
    convention a row aggregates a block of up to twelve periods and
    ``period`` is the block number. Amounts are unrounded; rounding is left
    to whoever displays them.
    """

    period: int
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal
    total_principal_paid: Decimal
    total_interest_paid: Decimal
    effective_rate: Decimal  # percent
