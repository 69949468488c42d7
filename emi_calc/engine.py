"""Core calculation engine for the EMI calculator.

This module implements the financial logic behind equal monthly installment
(EMI) loans: the installment formula, the top-level totals and the
amortization schedule. Two rate conventions are supported. Under the monthly
convention the schedule has one row per period. Under the annual convention
the same periods are stepped one by one but folded into yearly rows.

Everything here is a pure function of its arguments. Nothing is cached and
nothing is logged; callers re-invoke the engine whenever an input changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, getcontext
from typing import Callable, Dict, Iterator, List, Tuple

from .data_models import ANNUAL, MONTHLY, RATE_CONVENTIONS, InstallmentResult, LoanRequest, ScheduleRow
from .exceptions import InvalidInputError
from .utils import add_months, round_currency

getcontext().prec = 28  # increase precision for financial calculations

PERIODS_PER_YEAR = 12


@dataclass(frozen=True)
class ScheduleSummary:
    """Loan totals together with the dates the schedule spans."""

    result: InstallmentResult
    start_date: date
    end_date: date


@dataclass(frozen=True)
class _Period:
    """Cash flows of one monthly period, unrounded."""

    index: int  # 0-based
    opening_balance: Decimal
    payment: Decimal
    principal: Decimal
    interest: Decimal
    closing_balance: Decimal


def period_rate(rate: Decimal, rate_convention: str) -> Decimal:
    """Convert a nominal percentage rate into a per-period (monthly) fraction."""
    if rate_convention == ANNUAL:
        return rate / Decimal(PERIODS_PER_YEAR) / Decimal(100)
    if rate_convention == MONTHLY:
        return rate / Decimal(100)
    raise InvalidInputError(
        f"Unknown rate convention '{rate_convention}'",
        {"expected": list(RATE_CONVENTIONS)},
    )


def calculate_installment(principal: Decimal, rate_per_period: Decimal, periods: int) -> Decimal:
    """Return the equal periodic installment that amortizes ``principal``.

    The formula is:

        installment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` the per-period rate and ``n`` the
    number of periods. When the rate is zero the installment is ``P / n``.
    The result is not rounded.
    """
    if periods < 1:
        raise InvalidInputError("Tenure must be at least one period", {"tenure": periods})
    if rate_per_period < 0:
        raise InvalidInputError("Interest rate cannot be negative", {"rate": str(rate_per_period)})
    if rate_per_period == 0:
        return principal / Decimal(periods)
    factor = (1 + rate_per_period) ** periods
    if factor == 1:
        # rate too small to register at the working precision
        return principal / Decimal(periods)
    return principal * rate_per_period * factor / (factor - 1)


def _check_request(request: LoanRequest) -> None:
    if request.prepayment < 0:
        raise InvalidInputError("Prepayment cannot be negative", {"prepayment": str(request.prepayment)})
    if request.financed_principal <= 0:
        raise InvalidInputError(
            "Principal must be positive after prepayment",
            {"principal": str(request.principal), "prepayment": str(request.prepayment)},
        )
    if request.rate < 0:
        raise InvalidInputError("Interest rate cannot be negative", {"rate": str(request.rate)})
    if request.tenure < 1:
        raise InvalidInputError("Tenure must be at least one period", {"tenure": request.tenure})
    if request.rate_convention not in RATE_CONVENTIONS:
        raise InvalidInputError(
            f"Unknown rate convention '{request.rate_convention}'",
            {"expected": list(RATE_CONVENTIONS)},
        )


def _unrounded_installment(request: LoanRequest) -> Decimal:
    rate = period_rate(request.rate, request.rate_convention)
    return calculate_installment(request.financed_principal, rate, request.tenure)


def compute_installment(request: LoanRequest) -> InstallmentResult:
    """Compute the installment and loan totals for ``request``.

    The installment is rounded to the currency's minor unit and the totals
    are derived from the rounded installment, so ``total_amount`` is exactly
    ``installment * tenure``.

    Raises
    ------
    InvalidInputError
        If the financed principal is not positive, the rate is negative or
        the tenure is shorter than one period.
    """
    _check_request(request)
    installment = round_currency(_unrounded_installment(request))
    financed = request.financed_principal
    total_amount = installment * request.tenure
    return InstallmentResult(
        financed_principal=financed,
        installment=installment,
        total_amount=total_amount,
        total_interest=round_currency(total_amount - financed),
    )


def _periods(principal: Decimal, rate: Decimal, installment: Decimal, tenure: int) -> Iterator[_Period]:
    """Step through the loan one period at a time.

    Balances are carried unrounded. The final period repays whatever balance
    is left so the loan closes at exactly zero.
    """
    balance = principal
    for index in range(tenure):
        opening = balance
        interest = opening * rate
        if index == tenure - 1:
            principal_part = opening
            payment = opening + interest
        else:
            principal_part = installment - interest
            payment = installment
        balance = max(opening - principal_part, Decimal("0"))
        yield _Period(index, opening, payment, principal_part, interest, balance)


def _effective_rate(interest: Decimal, opening: Decimal, periods_per_year: int) -> Decimal:
    if opening <= 0:
        return Decimal("0")
    return interest / opening * 100 * periods_per_year


def _monthly_rows(periods: List[_Period], start_date: date, prepayment: Decimal) -> List[ScheduleRow]:
    rows: List[ScheduleRow] = []
    total_principal = prepayment
    total_interest = Decimal("0")
    for p in periods:
        total_principal += p.principal
        total_interest += p.interest
        rows.append(
            ScheduleRow(
                period=p.index + 1,
                date=add_months(start_date, p.index),
                payment=p.payment,
                principal=p.principal,
                interest=p.interest,
                balance=p.closing_balance,
                total_principal_paid=total_principal,
                total_interest_paid=total_interest,
                effective_rate=_effective_rate(p.interest, p.opening_balance, PERIODS_PER_YEAR),
            )
        )
    return rows


def _annual_rows(periods: List[_Period], start_date: date, prepayment: Decimal) -> List[ScheduleRow]:
    rows: List[ScheduleRow] = []
    total_principal = prepayment
    total_interest = Decimal("0")
    for block_start in range(0, len(periods), PERIODS_PER_YEAR):
        block = periods[block_start:block_start + PERIODS_PER_YEAR]
        block_index = block_start // PERIODS_PER_YEAR
        principal = sum((p.principal for p in block), Decimal("0"))
        interest = sum((p.interest for p in block), Decimal("0"))
        total_principal += principal
        total_interest += interest
        rows.append(
            ScheduleRow(
                period=block_index + 1,
                date=add_months(start_date, block_index * PERIODS_PER_YEAR),
                payment=sum((p.payment for p in block), Decimal("0")),
                principal=principal,
                interest=interest,
                balance=block[-1].closing_balance,
                total_principal_paid=total_principal,
                total_interest_paid=total_interest,
                # A block already spans up to a year, so it is not annualized.
                effective_rate=_effective_rate(interest, block[0].opening_balance, 1),
            )
        )
    return rows


_ROW_BUILDERS: Dict[str, Callable[[List[_Period], date, Decimal], List[ScheduleRow]]] = {
    MONTHLY: _monthly_rows,
    ANNUAL: _annual_rows,
}


def build_schedule(request: LoanRequest, start_date: date) -> List[ScheduleRow]:
    """Build the amortization schedule for ``request`` starting at ``start_date``.

    Parameters
    ----------
    request: LoanRequest
        The loan inputs. The rate convention selects the row layout: one row
        per month for ``"monthly"``, one row per block of up to twelve months
        for ``"annual"``.
    start_date: date
        Date of the first period. Monthly row *k* is dated ``k - 1`` months
        later; annual row *k* is dated ``(k - 1) * 12`` months later.

    Returns
    -------
    List[ScheduleRow]
        Rows in period order. The balance of the last row is exactly zero.
    """
    _check_request(request)
    rate = period_rate(request.rate, request.rate_convention)
    installment = _unrounded_installment(request)
    periods = list(_periods(request.financed_principal, rate, installment, request.tenure))
    return _ROW_BUILDERS[request.rate_convention](periods, start_date, request.prepayment)


def compute_schedule(request: LoanRequest, start_date: date) -> Tuple[List[ScheduleRow], ScheduleSummary]:
    """Compute the schedule and summary for a loan.

    Returns
    -------
    schedule: List[ScheduleRow]
        See :func:`build_schedule`.
    summary: ScheduleSummary
        The rounded installment figures plus the first and last payment dates.
    """
    result = compute_installment(request)
    schedule = build_schedule(request, start_date)
    summary = ScheduleSummary(
        result=result,
        start_date=start_date,
        end_date=add_months(start_date, request.tenure - 1),
    )
    return schedule, summary
