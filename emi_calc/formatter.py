"""Output helpers for the EMI calculator.

This module formats amounts the way the calculator displays them (Indian
digit grouping, no minor units) and renders summaries and schedules as plain
text for the terminal. Output goes through ``click.echo`` so it behaves under
the CLI test runner.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

import click

from .config import CURRENCY_DECIMALS, CURRENCY_SYMBOL, DATE_FORMAT_LONG
from .data_models import ANNUAL, LoanRequest, ScheduleRow
from .engine import ScheduleSummary
from .utils import round_currency


def _group_indian(digits: str) -> str:
    # Last three digits form one group, the rest are grouped in pairs.
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: List[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Decimal) -> str:
    """Format ``amount`` as currency, e.g. ``₹12,34,567``."""
    rounded = round_currency(Decimal(amount))
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):.{CURRENCY_DECIMALS}f}"
    whole, _, fraction = text.partition(".")
    grouped = _group_indian(whole)
    if fraction:
        grouped = f"{grouped}.{fraction}"
    return f"{sign}{CURRENCY_SYMBOL}{grouped}"


def format_rate(rate: Decimal) -> str:
    """Format a percentage with two decimals, e.g. ``8.50%``."""
    return f"{Decimal(rate):.2f}%"


def convention_label(rate_convention: str) -> str:
    return "Annual" if rate_convention == ANNUAL else "Monthly"


def progress_percentage(row: ScheduleRow, schedule: List[ScheduleRow]) -> Decimal:
    """Share of the overall cost repaid by the end of ``row``, in percent.

    The overall cost is what the last row of ``schedule`` has paid in total,
    prepayment included, so the final row reads exactly 100.
    """
    last = schedule[-1]
    total = last.total_principal_paid + last.total_interest_paid
    if total <= 0:
        return Decimal("0")
    return (row.total_principal_paid + row.total_interest_paid) / total * 100


def share_text(request: LoanRequest, summary: ScheduleSummary) -> str:
    """Return the plain-text result summary users can share or copy."""
    result = summary.result
    lines = [
        f"Loan Amount: {format_currency(request.principal)}",
        f"Interest Rate: {request.rate}% ({convention_label(request.rate_convention)})",
        f"Tenure: {request.tenure} months",
        f"Monthly EMI: {format_currency(result.installment)}",
        f"Total Interest: {format_currency(result.total_interest)}",
        f"Total Amount: {format_currency(result.total_amount)}",
    ]
    return "\n".join(lines)


def print_summary(request: LoanRequest, summary: ScheduleSummary) -> None:
    """Print the loan figures in a human-readable format."""
    result = summary.result
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Loan amount        : {format_currency(request.principal)}")
    if request.prepayment > 0:
        click.echo(f"Prepayment         : {format_currency(request.prepayment)}")
        click.echo(f"Reduced loan amount: {format_currency(result.financed_principal)}")
    click.echo(f"Interest rate      : {request.rate}% ({convention_label(request.rate_convention)})")
    click.echo(f"Tenure             : {request.tenure} months")
    click.echo(f"Monthly EMI        : {format_currency(result.installment)}")
    click.echo(f"Total interest     : {format_currency(result.total_interest)}")
    click.echo(f"Total amount       : {format_currency(result.total_amount)}")
    click.echo(
        f"Breakdown          : {result.principal_share:.1f}% principal / {result.interest_share:.1f}% interest"
    )
    click.echo(f"Start date         : {summary.start_date.strftime(DATE_FORMAT_LONG)}")
    click.echo(f"End date           : {summary.end_date.strftime(DATE_FORMAT_LONG)}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[ScheduleRow], rate_convention: str) -> None:
    """Print the amortization schedule as a tab-separated table."""
    annual = rate_convention == ANNUAL
    headers = [
        "Year" if annual else "Month",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Balance",
        "EffRate",
    ]
    click.echo("\t".join(headers))
    date_format = "%Y" if annual else "%Y-%m-%d"
    for row in schedule:
        cells = [
            str(row.period),
            row.date.strftime(date_format),
            format_currency(row.payment),
            format_currency(row.principal),
            format_currency(row.interest),
            format_currency(row.balance),
            format_rate(row.effective_rate),
        ]
        click.echo("\t".join(cells))
