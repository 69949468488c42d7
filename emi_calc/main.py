"""Command-line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can list the loan categories, validate inputs against a
category, print the loan summary or the full amortization schedule, and
export the schedule to JSON, CSV or a printable HTML document.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

import click

from .config import (
    DEFAULT_CATEGORY,
    DEFAULT_RATE_CONVENTION,
    LOAN_PROFILES,
    ROWS_PER_PAGE,
    configure_logging,
    get_profile,
)
from .data_models import RATE_CONVENTIONS, LoanProfile, LoanRequest
from .engine import compute_schedule
from .exceptions import EmiCalcError
from .export import export_to_csv, export_to_html, export_to_json
from .formatter import format_currency, print_schedule, print_summary, share_text
from .utils import parse_date, to_decimal
from .validator import clamp_to_profile, has_errors, validate_fields

logger = logging.getLogger(__name__)

_SUFFIXES = (
    ("cr", 10_000_000),
    ("l", 100_000),
    ("k", 1_000),
    ("m", 1_000_000),
)


def parse_amount(value: str):
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` or the
    Indian ``L`` (lakh) and ``cr`` (crore) suffixes, e.g. "10L" meaning
    1_000_000. Returns a ``Decimal``.
    """
    text = value.strip().lower().replace(",", "")
    factor = 1
    for suffix, multiplier in _SUFFIXES:
        if text.endswith(suffix):
            factor = multiplier
            text = text[: -len(suffix)]
            break
    try:
        return to_decimal(text) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_start_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_request_from_options(
    category: str,
    principal: str,
    rate: float,
    tenure: int,
    prepayment: Optional[str],
    convention: str,
    clamp: bool = False,
) -> Tuple[LoanProfile, LoanRequest]:
    """Validate command-line inputs and turn them into a ``LoanRequest``.

    With ``clamp`` the amount, rate and tenure are pulled into the category
    bounds instead of being rejected.
    """
    try:
        profile = get_profile(category)
    except KeyError as exc:
        raise click.BadParameter(exc.args[0], param_hint="--category")
    principal_value = parse_amount(principal)
    prepayment_value = parse_amount(prepayment) if prepayment else to_decimal(0)
    rate_value = to_decimal(rate)
    if clamp:
        clamped = clamp_to_profile(principal_value, rate_value, tenure, profile, convention)
        if clamped != (principal_value, rate_value, tenure):
            logger.info("Clamped inputs to %s bounds: %s", profile.category, clamped)
        principal_value, rate_value, tenure = clamped
    errors = validate_fields(
        {
            "principal": principal_value,
            "interest_rate": rate_value,
            "tenure": tenure,
            "prepayment": prepayment_value,
        },
        profile,
        convention,
    )
    if has_errors(errors):
        messages = "\n".join(f"  {field}: {msg}" for field, msg in errors.items() if msg)
        raise click.UsageError(f"Invalid loan inputs for category '{profile.category}':\n{messages}")
    request = LoanRequest(
        principal=principal_value,
        rate=rate_value,
        tenure=tenure,
        prepayment=prepayment_value,
        rate_convention=convention,
    )
    return profile, request


def loan_options(func):
    """Attach the options shared by every calculating command."""
    options = [
        click.option(
            "--category",
            "-c",
            "category",
            type=click.Choice(list(LOAN_PROFILES)),
            default=DEFAULT_CATEGORY,
            show_default=True,
            help="Loan category",
        ),
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (e.g. 1000000, 10L, 1.5cr)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Nominal interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, type=int, help="Tenure in months"),
        click.option("--prepayment", "-d", "prepayment", help="Upfront prepayment amount"),
        click.option(
            "--convention",
            "convention",
            type=click.Choice(list(RATE_CONVENTIONS)),
            default=DEFAULT_RATE_CONVENTION,
            show_default=True,
            help="Whether --rate is quoted per year or per month",
        ),
        click.option("--clamp", is_flag=True, help="Clamp out-of-range inputs into the category bounds"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, help="Logging level")
def cli(log_level: str) -> None:
    """An EMI calculator for fixed-rate loans."""
    configure_logging(log_level)


@cli.command()
def categories() -> None:
    """List the loan categories and their bounds."""
    click.echo(f"{'Category':12s} {'Amount':>28s} {'Annual %':>10s} {'Monthly %':>10s} {'Max tenure':>11s}")
    for profile in LOAN_PROFILES.values():
        amount = f"{format_currency(profile.min_amount)} - {format_currency(profile.max_amount)}"
        annual = f"{profile.min_annual_rate}-{profile.max_annual_rate}"
        monthly = f"{profile.min_monthly_rate}-{profile.max_monthly_rate}"
        click.echo(f"{profile.category:12s} {amount:>28s} {annual:>10s} {monthly:>10s} {profile.max_tenure:>11d}")


@cli.command()
@click.option("--category", "-c", "category", type=click.Choice(list(LOAN_PROFILES)), default=DEFAULT_CATEGORY)
@click.option("--principal", "-p", "principal", help="Loan amount")
@click.option("--rate", "-r", "rate", type=float, help="Nominal interest rate (percent)")
@click.option("--tenure", "-t", "tenure", type=int, help="Tenure in months")
@click.option("--prepayment", "-d", "prepayment", help="Upfront prepayment amount")
@click.option("--convention", type=click.Choice(list(RATE_CONVENTIONS)), default=DEFAULT_RATE_CONVENTION)
def validate(
    category: str,
    principal: Optional[str],
    rate: Optional[float],
    tenure: Optional[int],
    prepayment: Optional[str],
    convention: str,
) -> None:
    """Check values against a category's bounds and report each field."""
    profile = get_profile(category)
    values = {}
    if principal is not None:
        values["principal"] = parse_amount(principal)
    if rate is not None:
        values["interest_rate"] = to_decimal(rate)
    if tenure is not None:
        values["tenure"] = tenure
    if prepayment is not None:
        values["prepayment"] = parse_amount(prepayment)
    if not values:
        raise click.UsageError("Nothing to validate; pass at least one of --principal, --rate, --tenure, --prepayment")
    errors = validate_fields(values, profile, convention)
    for field, message in errors.items():
        click.echo(f"{field:14s} {message or 'ok'}")
    if has_errors(errors):
        sys.exit(1)


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM-DD, default today)")
@click.option("--share", is_flag=True, help="Print the short shareable summary instead")
def summary(
    category: str,
    principal: str,
    rate: float,
    tenure: int,
    prepayment: Optional[str],
    convention: str,
    clamp: bool,
    start_date: Optional[str],
    share: bool,
) -> None:
    """Compute and print the installment and loan totals."""
    _, request = build_request_from_options(category, principal, rate, tenure, prepayment, convention, clamp)
    _, summary_data = _run(request, parse_start_date(start_date))
    if share:
        click.echo(share_text(request, summary_data))
    else:
        print_summary(request, summary_data)


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", help="First payment date (YYYY-MM-DD, default today)")
@click.option("--output", "-o", "output", type=str, help="Output file path (.json, .csv or .html)")
@click.option("--rows-per-page", type=click.IntRange(min=1), default=ROWS_PER_PAGE, show_default=True, help="Rows per page for .html")
def schedule(
    category: str,
    principal: str,
    rate: float,
    tenure: int,
    prepayment: Optional[str],
    convention: str,
    clamp: bool,
    start_date: Optional[str],
    output: Optional[str],
    rows_per_page: int,
) -> None:
    """Compute and print the full amortization schedule."""
    _, request = build_request_from_options(category, principal, rate, tenure, prepayment, convention, clamp)
    rows, summary_data = _run(request, parse_start_date(start_date))
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix == ".json":
            export_to_json(path, request, rows, summary_data)
        elif suffix == ".csv":
            export_to_csv(path, rows)
        elif suffix in (".html", ".htm"):
            export_to_html(path, request, rows, summary_data, rows_per_page)
        else:
            raise click.BadParameter("Unsupported output format; use .json, .csv or .html", param_hint="--output")
        logger.info("Wrote %d rows to %s", len(rows), path)
        click.echo(f"Schedule exported to {path}")
    else:
        print_summary(request, summary_data)
        print_schedule(rows, request.rate_convention)


def _run(request: LoanRequest, start: date):
    try:
        return compute_schedule(request, start)
    except EmiCalcError as exc:
        logger.error("Calculation refused: %s", exc)
        raise click.UsageError(str(exc))


if __name__ == "__main__":
    cli()
