"""Tests for the Flask front end."""

import pytest

from emi_calc_web.app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_index_renders_form(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Home Loan" in body
    assert "Range: ₹1,00,000 - ₹1,00,00,000" in body


def test_index_post_shows_results(client):
    response = client.post(
        "/",
        data={
            "category": "home",
            "principal": "1000000",
            "interest_rate": "8.5",
            "tenure": "120",
            "prepayment": "0",
            "rate_convention": "annual",
            "start_date": "2025-01-01",
        },
    )
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Monthly EMI: <strong>₹12,399</strong>" in body
    assert "Yearly Payment" in body


def test_index_post_shows_field_errors(client):
    response = client.post("/", data={"category": "car", "principal": "1000", "tenure": "120"})
    body = response.get_data(as_text=True)
    assert "Minimum loan amount is ₹50,000" in body
    assert "Maximum tenure is 84 months" in body
    assert "Amortization Schedule" not in body


def test_api_categories(client):
    data = client.get("/api/categories").get_json()
    assert [c["category"] for c in data] == ["home", "car", "personal", "education", "business"]
    assert data[1]["max_tenure"] == 84


def test_api_calculate(client):
    response = client.post(
        "/api/calculate",
        json={"principal": 1000000, "interest_rate": 8.5, "tenure": 120, "prepayment": 100000, "start_date": "2025-01-01"},
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["summary"]["installment"] == 11159.0
    assert data["summary"]["financed_principal"] == 900000.0
    assert data["summary"]["end_date"] == "2034-12-01"
    assert len(data["schedule"]) == 10
    assert data["schedule"][-1]["balance"] == 0.0
    assert all(v is None for v in data["errors"].values())


def test_api_calculate_monthly(client):
    response = client.post(
        "/api/calculate",
        json={"principal": 100000, "interest_rate": 1, "tenure": 12, "rate_convention": "monthly", "category": "personal"},
    )
    data = response.get_json()
    assert len(data["schedule"]) == 12
    assert round(data["schedule"][0]["effective_rate"], 6) == 12.0


def test_api_calculate_reports_field_errors(client):
    response = client.post("/api/calculate", json={"interest_rate": 8.5, "rate_convention": "monthly"})
    assert response.status_code == 422
    errors = response.get_json()["errors"]
    assert errors["interest_rate"] == "Maximum monthly interest rate is 5%"
    assert errors["principal"] is None


def test_api_calculate_unparseable_input(client):
    response = client.post("/api/calculate", json={"principal": "a lot"})
    assert response.status_code == 400
    assert "principal" in response.get_json()["details"]


def test_api_calculate_fractional_tenure(client):
    response = client.post("/api/calculate", json={"tenure": 12.5})
    assert response.status_code == 400
    assert response.get_json()["details"] == {"tenure": "Tenure must be a whole number of months"}


def test_api_clamp_after_category_switch(client):
    response = client.post(
        "/api/clamp",
        json={"category": "personal", "principal": 5000000, "interest_rate": 8.5, "tenure": 120},
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["principal"] == 1000000.0
    assert data["tenure"] == 60
    assert data["interest_rate"] == 8.5


def test_api_clamp_after_convention_switch(client):
    response = client.post("/api/clamp", json={"interest_rate": 8.5, "rate_convention": "monthly"})
    assert response.get_json()["interest_rate"] == 5.0


def test_schedule_document(client):
    response = client.post(
        "/schedule.html",
        data={"principal": "1000000", "interest_rate": "1", "tenure": "36", "rate_convention": "monthly", "rows_per_page": "12"},
    )
    assert response.status_code == 200
    assert "attachment" in response.headers["Content-Disposition"]
    assert response.get_data(as_text=True).count('<div class="page">') == 3


def test_index_clamps_after_category_switch(client):
    response = client.post(
        "/",
        data={
            "previous_category": "home",
            "previous_convention": "annual",
            "category": "car",
            "principal": "5000000",
            "interest_rate": "8.5",
            "tenure": "240",
            "rate_convention": "annual",
            "start_date": "2025-01-01",
        },
    )
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'class="error"' not in body
    assert 'name="principal" value="2000000"' in body
    assert 'name="tenure" value="84"' in body
    assert "Amortization Schedule" in body
    assert 'name="previous_category" value="car"' in body


def test_index_clamps_rate_after_convention_switch(client):
    response = client.post(
        "/",
        data={
            "previous_category": "home",
            "previous_convention": "annual",
            "category": "home",
            "principal": "1000000",
            "interest_rate": "8.5",
            "tenure": "120",
            "rate_convention": "monthly",
        },
    )
    body = response.get_data(as_text=True)
    assert 'class="error"' not in body
    assert 'name="interest_rate" value="5"' in body
    assert "Monthly Principal" in body


def test_index_without_switch_still_reports_errors(client):
    response = client.post(
        "/",
        data={"previous_category": "car", "previous_convention": "annual", "category": "car", "tenure": "240"},
    )
    body = response.get_data(as_text=True)
    assert "Maximum tenure is 84 months" in body


@pytest.mark.parametrize("endpoint", ["/api/calculate", "/api/clamp"])
@pytest.mark.parametrize("body", [[1, 2], "text", 42])
def test_api_rejects_non_object_body(client, endpoint, body):
    response = client.post(endpoint, json=body)
    assert response.status_code == 400
    assert response.get_json()["details"] == {"body": "Expected a JSON object"}
