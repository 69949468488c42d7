"""Configuration for the EMI calculator.

Loan category bounds, default inputs, currency settings and logging setup
live here so the engine, CLI and web app share one source of truth.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict

from .data_models import ANNUAL, LoanProfile

# =============================================================================
# LOAN CATEGORIES
# =============================================================================


def _profile(category: str, label: str, min_amount: int, max_amount: int, max_tenure: int) -> LoanProfile:
    # Every category shares the same rate bands; only amount and tenure differ.
    return LoanProfile(
        category=category,
        label=label,
        min_amount=Decimal(min_amount),
        max_amount=Decimal(max_amount),
        min_annual_rate=Decimal("5"),
        max_annual_rate=Decimal("30"),
        min_monthly_rate=Decimal("0.7"),
        max_monthly_rate=Decimal("5"),
        max_tenure=max_tenure,
    )


LOAN_PROFILES: Dict[str, LoanProfile] = {
    p.category: p
    for p in (
        _profile("home", "Home Loan", 100_000, 10_000_000, 360),  # 30 years
        _profile("car", "Car Loan", 50_000, 2_000_000, 84),  # 7 years
        _profile("personal", "Personal Loan", 10_000, 1_000_000, 60),  # 5 years
        _profile("education", "Education Loan", 50_000, 5_000_000, 180),  # 15 years
        _profile("business", "Business Loan", 100_000, 20_000_000, 120),  # 10 years
    )
}


def get_profile(category: str) -> LoanProfile:
    """Return the profile for ``category`` (case-insensitive).

    Raises
    ------
    KeyError
        If no such category exists.
    """
    try:
        return LOAN_PROFILES[category.strip().lower()]
    except KeyError:
        known = ", ".join(LOAN_PROFILES)
        raise KeyError(f"Unknown loan category '{category}'; expected one of: {known}") from None


# =============================================================================
# DEFAULT INPUTS
# =============================================================================

DEFAULT_CATEGORY = "home"
DEFAULT_PRINCIPAL = Decimal("1000000")
DEFAULT_RATE = Decimal("8.5")
DEFAULT_TENURE = 120
DEFAULT_PREPAYMENT = Decimal("0")
DEFAULT_RATE_CONVENTION = ANNUAL

# =============================================================================
# CURRENCY
# =============================================================================

CURRENCY_SYMBOL = "₹"

# Number of decimal places in the currency's minor unit. Reported figures are
# rounded to this precision.
CURRENCY_DECIMALS = 0

# =============================================================================
# EXPORT
# =============================================================================

ROWS_PER_PAGE = 30
DATE_FORMAT_MONTHLY = "%d/%m/%Y"
DATE_FORMAT_ANNUAL = "%Y"
DATE_FORMAT_LONG = "%d %b %Y"

# =============================================================================
# LOGGING
# =============================================================================

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging for the CLI and the web app."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
