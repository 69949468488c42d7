import logging
import os
from datetime import date

from flask import Flask, Response, jsonify, render_template, request

from emi_calc.config import (
    DEFAULT_CATEGORY,
    DEFAULT_PREPAYMENT,
    DEFAULT_PRINCIPAL,
    DEFAULT_RATE,
    DEFAULT_RATE_CONVENTION,
    DEFAULT_TENURE,
    LOAN_PROFILES,
    ROWS_PER_PAGE,
    configure_logging,
    get_profile,
)
from emi_calc.data_models import RATE_CONVENTIONS, LoanRequest
from emi_calc.engine import compute_schedule
from emi_calc.exceptions import EmiCalcError
from emi_calc.export import column_titles, render_schedule_document, schedule_to_dicts, summary_to_dict
from emi_calc.formatter import format_currency, format_rate, progress_percentage, share_text
from emi_calc.utils import parse_date, to_decimal
from emi_calc.validator import clamp_to_profile, has_errors, validate_fields

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
app.jinja_env.filters["currency"] = format_currency
app.jinja_env.filters["rate"] = format_rate
configure_logging(os.environ.get("EMI_CALC_LOG_LEVEL", "WARNING"))


class FormError(ValueError):
    """Raised when a submitted field cannot be parsed at all."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


def _field(form, name: str, default):
    value = form.get(name)
    if value is None or str(value).strip() == "":
        return default
    return value


def _parse_inputs(form):
    """Pull raw inputs out of a form or JSON body.

    Returns ``(profile, convention, values, start_date)`` where ``values``
    holds decimals keyed by validator field names.
    """
    try:
        profile = get_profile(str(_field(form, "category", DEFAULT_CATEGORY)))
    except KeyError as exc:
        raise FormError("category", exc.args[0])
    convention = str(_field(form, "rate_convention", DEFAULT_RATE_CONVENTION)).lower()
    if convention not in RATE_CONVENTIONS:
        raise FormError("rate_convention", f"Rate convention must be one of: {', '.join(RATE_CONVENTIONS)}")
    values = {}
    for name, default in (
        ("principal", DEFAULT_PRINCIPAL),
        ("interest_rate", DEFAULT_RATE),
        ("tenure", DEFAULT_TENURE),
        ("prepayment", DEFAULT_PREPAYMENT),
    ):
        try:
            values[name] = to_decimal(_field(form, name, default))
        except ValueError as exc:
            raise FormError(name, str(exc))
    if values["tenure"] != values["tenure"].to_integral_value():
        raise FormError("tenure", "Tenure must be a whole number of months")
    raw_start = _field(form, "start_date", None)
    try:
        start = parse_date(str(raw_start)) if raw_start else date.today()
    except ValueError as exc:
        raise FormError("start_date", str(exc))
    return profile, convention, values, start


def _to_request(values, convention: str) -> LoanRequest:
    return LoanRequest(
        principal=values["principal"],
        rate=values["interest_rate"],
        tenure=int(values["tenure"]),
        prepayment=values["prepayment"],
        rate_convention=convention,
    )


def _clamp_on_switch(form):
    """Pull entered values into the new bounds after a category or convention switch.

    The page carries the category and convention it was rendered with in
    ``previous_category`` and ``previous_convention``. When either differs
    from the submitted one, principal, rate and tenure are clamped. Returns a
    plain dict copy of ``form``.
    """
    form = dict(form.items())
    previous_category = str(form.get("previous_category") or "").strip().lower()
    previous_convention = str(form.get("previous_convention") or "").strip().lower()
    if not previous_category and not previous_convention:
        return form
    try:
        profile, convention, values, _ = _parse_inputs(form)
    except FormError:
        # reported by the analysis that follows
        return form
    switched = (previous_category and previous_category != profile.category) or (
        previous_convention and previous_convention != convention
    )
    if not switched:
        return form
    principal, rate, tenure = clamp_to_profile(
        values["principal"], values["interest_rate"], int(values["tenure"]), profile, convention
    )
    logger.info("Clamped inputs to %s bounds (%s rate)", profile.category, convention)
    form.update(principal=str(principal), interest_rate=str(rate), tenure=str(tenure))
    return form


def _run_analysis(form):
    """Validate the inputs and, when they are valid, compute the schedule.

    Returns ``(context, errors)``; ``context`` is ``None`` when any field was
    rejected.
    """
    profile, convention, values, start = _parse_inputs(form)
    errors = validate_fields(values, profile, convention)
    if has_errors(errors):
        return None, errors
    loan_request = _to_request(values, convention)
    schedule, summary = compute_schedule(loan_request, start)
    context = {
        "profile": profile,
        "loan_request": loan_request,
        "schedule": schedule,
        "summary": summary,
    }
    return context, errors


def _error_response(message: str, details: dict, status: int = 400):
    return jsonify({"error": message, "details": details}), status


@app.route("/", methods=["GET", "POST"])
def index():
    context = None
    errors = {}
    error = None
    form = _clamp_on_switch(request.form) if request.method == "POST" else {}

    if request.method == "POST":
        try:
            context, errors = _run_analysis(form)
        except FormError as exc:
            errors = {exc.field: str(exc)}
        except EmiCalcError as exc:
            logger.warning("Calculation refused: %s", exc)
            error = str(exc)

    progress = []
    if context:
        schedule = context["schedule"]
        progress = [progress_percentage(row, schedule) for row in schedule]

    return render_template(
        "index.html",
        form=form,
        profiles=LOAN_PROFILES,
        conventions=RATE_CONVENTIONS,
        defaults={
            "category": DEFAULT_CATEGORY,
            "principal": DEFAULT_PRINCIPAL,
            "interest_rate": DEFAULT_RATE,
            "tenure": DEFAULT_TENURE,
            "prepayment": DEFAULT_PREPAYMENT,
            "rate_convention": DEFAULT_RATE_CONVENTION,
        },
        context=context,
        columns=column_titles(context["loan_request"].rate_convention) if context else [],
        progress=progress,
        share=share_text(context["loan_request"], context["summary"]) if context else None,
        errors={k: v for k, v in errors.items() if v},
        error=error,
    )


@app.get("/api/categories")
def api_categories():
    return jsonify(
        [
            {
                "category": p.category,
                "label": p.label,
                "min_amount": float(p.min_amount),
                "max_amount": float(p.max_amount),
                "min_annual_rate": float(p.min_annual_rate),
                "max_annual_rate": float(p.max_annual_rate),
                "min_monthly_rate": float(p.min_monthly_rate),
                "max_monthly_rate": float(p.max_monthly_rate),
                "max_tenure": p.max_tenure,
            }
            for p in LOAN_PROFILES.values()
        ]
    )


@app.post("/api/calculate")
def api_calculate():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return _error_response("Invalid input", {"body": "Expected a JSON object"})
    try:
        context, errors = _run_analysis(payload)
    except FormError as exc:
        return _error_response("Invalid input", {exc.field: str(exc)})
    except EmiCalcError as exc:
        logger.warning("Calculation refused: %s", exc)
        return _error_response(exc.message, exc.details)
    if context is None:
        return jsonify({"errors": errors}), 422
    loan_request = context["loan_request"]
    return jsonify(
        {
            "errors": errors,
            "summary": summary_to_dict(loan_request, context["summary"]),
            "schedule": schedule_to_dicts(context["schedule"]),
            "share_text": share_text(loan_request, context["summary"]),
        }
    )


@app.post("/api/clamp")
def api_clamp():
    """Re-clamp entered values after the category or convention changed."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return _error_response("Invalid input", {"body": "Expected a JSON object"})
    try:
        profile, convention, values, _ = _parse_inputs(payload)
    except FormError as exc:
        return _error_response("Invalid input", {exc.field: str(exc)})
    principal, rate, tenure = clamp_to_profile(
        values["principal"], values["interest_rate"], int(values["tenure"]), profile, convention
    )
    return jsonify(
        {
            "category": profile.category,
            "rate_convention": convention,
            "principal": float(principal),
            "interest_rate": float(rate),
            "tenure": tenure,
        }
    )


@app.post("/schedule.html")
def schedule_document():
    try:
        context, errors = _run_analysis(_clamp_on_switch(request.form))
    except FormError as exc:
        return _error_response("Invalid input", {exc.field: str(exc)})
    except EmiCalcError as exc:
        return _error_response(exc.message, exc.details)
    if context is None:
        return _error_response("Invalid input", {k: v for k, v in errors.items() if v})
    rows_per_page = request.form.get("rows_per_page", type=int) or ROWS_PER_PAGE
    if rows_per_page < 1:
        rows_per_page = ROWS_PER_PAGE
    document = render_schedule_document(context["loan_request"], context["schedule"], context["summary"], rows_per_page)
    return Response(
        document,
        mimetype="text/html",
        headers={"Content-Disposition": "attachment; filename=emi-schedule.html"},
    )


if __name__ == "__main__":
    print("Starting EMI Calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
