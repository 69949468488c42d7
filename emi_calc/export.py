"""Export helpers for amortization schedules.

The schedule can be written as JSON, CSV or as a paginated HTML document
meant to be printed (or saved as PDF from the browser). Exporters read the
rows they are given and never recompute anything.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import DATE_FORMAT_ANNUAL, DATE_FORMAT_LONG, DATE_FORMAT_MONTHLY, ROWS_PER_PAGE
from .data_models import ANNUAL, LoanRequest, ScheduleRow
from .engine import ScheduleSummary
from .formatter import convention_label, format_currency, format_rate

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["currency"] = format_currency
_env.filters["rate"] = format_rate


def paginate(rows: Sequence[ScheduleRow], rows_per_page: int = ROWS_PER_PAGE) -> List[List[ScheduleRow]]:
    """Split ``rows`` into pages of at most ``rows_per_page`` rows.

    An empty schedule still yields one (empty) page so the document always has
    a table header.
    """
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be positive")
    pages = [list(rows[i:i + rows_per_page]) for i in range(0, len(rows), rows_per_page)]
    return pages or [[]]


def column_titles(rate_convention: str) -> List[str]:
    """Column headers of the schedule table for the given convention."""
    span = "Yearly" if rate_convention == ANNUAL else "Monthly"
    payment = "Yearly Payment" if rate_convention == ANNUAL else "Monthly EMI"
    return ["Date", payment, f"{span} Principal", f"{span} Interest", "Balance", "Effective Rate"]


def schedule_to_dicts(schedule: Sequence[ScheduleRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [
        {
            "period": row.period,
            "date": row.date.isoformat(),
            "payment": float(row.payment),
            "principal": float(row.principal),
            "interest": float(row.interest),
            "balance": float(row.balance),
            "total_principal_paid": float(row.total_principal_paid),
            "total_interest_paid": float(row.total_interest_paid),
            "effective_rate": float(row.effective_rate),
        }
        for row in schedule
    ]


def summary_to_dict(request: LoanRequest, summary: ScheduleSummary) -> Dict[str, Any]:
    result = summary.result
    return {
        "principal": float(request.principal),
        "prepayment": float(request.prepayment),
        "financed_principal": float(result.financed_principal),
        "rate": float(request.rate),
        "rate_convention": request.rate_convention,
        "tenure": request.tenure,
        "installment": float(result.installment),
        "total_amount": float(result.total_amount),
        "total_interest": float(result.total_interest),
        "principal_share": round(float(result.principal_share), 2),
        "interest_share": round(float(result.interest_share), 2),
        "start_date": summary.start_date.isoformat(),
        "end_date": summary.end_date.isoformat(),
    }


def export_to_json(path: Path, request: LoanRequest, schedule: Sequence[ScheduleRow], summary: ScheduleSummary) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary_to_dict(request, summary), "schedule": schedule_to_dicts(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Sequence[ScheduleRow]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Balance",
        "Total_Principal_Paid",
        "Total_Interest_Paid",
        "Effective_Rate",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in schedule:
            writer.writerow(
                [
                    row.period,
                    row.date.isoformat(),
                    float(row.payment),
                    float(row.principal),
                    float(row.interest),
                    float(row.balance),
                    float(row.total_principal_paid),
                    float(row.total_interest_paid),
                    float(row.effective_rate),
                ]
            )


def render_schedule_document(
    request: LoanRequest,
    schedule: Sequence[ScheduleRow],
    summary: ScheduleSummary,
    rows_per_page: int = ROWS_PER_PAGE,
) -> str:
    """Render the schedule as a paginated HTML document.

    The header carries the loan details (amount, rate and convention, tenure,
    installment, start and end dates, and the prepayment when there is one).
    Each page repeats the table header; pages are separated by CSS page
    breaks.
    """
    annual = request.rate_convention == ANNUAL
    template = _env.get_template("schedule.html")
    return template.render(
        request=request,
        result=summary.result,
        summary=summary,
        pages=paginate(schedule, rows_per_page),
        columns=column_titles(request.rate_convention),
        convention=convention_label(request.rate_convention),
        row_date_format=DATE_FORMAT_ANNUAL if annual else DATE_FORMAT_MONTHLY,
        long_date_format=DATE_FORMAT_LONG,
    )


def export_to_html(
    path: Path,
    request: LoanRequest,
    schedule: Sequence[ScheduleRow],
    summary: ScheduleSummary,
    rows_per_page: int = ROWS_PER_PAGE,
) -> None:
    """Write the paginated schedule document to ``path``."""
    path.write_text(render_schedule_document(request, schedule, summary, rows_per_page), encoding="utf-8")
