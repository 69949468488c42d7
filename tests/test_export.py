"""Tests for the JSON, CSV and paginated HTML exporters."""

import csv
import json
from datetime import date
from decimal import Decimal

import pytest

from emi_calc.data_models import ANNUAL, MONTHLY, LoanRequest
from emi_calc.engine import compute_schedule
from emi_calc.export import (
    column_titles,
    export_to_csv,
    export_to_html,
    export_to_json,
    paginate,
    render_schedule_document,
)


@pytest.fixture
def monthly_loan():
    request = LoanRequest(Decimal("500000"), Decimal("1"), 70, Decimal("50000"), MONTHLY)
    schedule, summary = compute_schedule(request, date(2025, 1, 10))
    return request, schedule, summary


def test_paginate_splits_rows(monthly_loan):
    _, schedule, _ = monthly_loan
    pages = paginate(schedule, 30)
    assert [len(p) for p in pages] == [30, 30, 10]
    assert pages[0][0].period == 1
    assert pages[2][-1].period == 70


def test_paginate_empty_schedule_has_one_page():
    assert paginate([], 30) == [[]]


def test_paginate_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate([], 0)


def test_column_titles():
    assert column_titles(ANNUAL) == [
        "Date",
        "Yearly Payment",
        "Yearly Principal",
        "Yearly Interest",
        "Balance",
        "Effective Rate",
    ]
    assert column_titles(MONTHLY)[1:3] == ["Monthly EMI", "Monthly Principal"]


def test_document_pages_and_header(monthly_loan):
    request, schedule, summary = monthly_loan
    document = render_schedule_document(request, schedule, summary, rows_per_page=30)
    assert document.count('<div class="page">') == 3
    assert "Page 3 of 3" in document
    assert "Loan Amount: ₹5,00,000" in document
    assert "Interest Rate: 1% (Monthly)" in document
    assert "Tenure: 70 months" in document
    assert "Start Date: 10 Jan 2025" in document
    assert "End Date: 10 Oct 2030" in document
    assert "Upfront payment: ₹50,000" in document
    assert "Reduced loan amount: ₹4,50,000" in document
    assert "10/01/2025" in document
    assert "Monthly EMI</th>" in document


def test_annual_document_shows_years_only():
    request = LoanRequest(Decimal("1000000"), Decimal("8.5"), 120)
    schedule, summary = compute_schedule(request, date(2025, 1, 10))
    document = render_schedule_document(request, schedule, summary)
    assert document.count('<div class="page">') == 1
    assert '<td class="date">2034</td>' in document
    assert "Yearly Payment" in document
    assert "Upfront payment" not in document


def test_export_json(tmp_path, monthly_loan):
    request, schedule, summary = monthly_loan
    path = tmp_path / "out.json"
    export_to_json(path, request, schedule, summary)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["financed_principal"] == 450000.0
    assert data["summary"]["rate_convention"] == "monthly"
    assert len(data["schedule"]) == 70
    assert data["schedule"][-1]["balance"] == 0.0
    assert data["schedule"][0]["date"] == "2025-01-10"


def test_export_csv(tmp_path, monthly_loan):
    _, schedule, _ = monthly_loan
    path = tmp_path / "out.csv"
    export_to_csv(path, schedule)
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Period"
    assert len(rows) == 71
    assert float(rows[-1][5]) == 0.0


def test_export_html(tmp_path, monthly_loan):
    request, schedule, summary = monthly_loan
    path = tmp_path / "out.html"
    export_to_html(path, request, schedule, summary, rows_per_page=50)
    assert path.read_text(encoding="utf-8").count('<div class="page">') == 2
