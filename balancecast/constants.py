"""
Global constants for BalanceCast.

Purpose
-------
Centralizes the policy numbers and defaults used by the projection engine,
the tax calendar and the house-sale calculator. Using constants instead of
hardcoded values keeps the encoded tax rules in one place.

Usage
-----
>>> from balancecast.constants import IRPF_ADVANCE_RATE, QUARTERLY_PAYMENT_MONTHS
>>> net_quarter_income * IRPF_ADVANCE_RATE

Categories
----------
- Calendar: months per year, quarterly due months, Renta month
- Taxes: flat IRPF advance rate
- House sale: agency commission, VAT on commission, safety margin
- Projection: default horizon
"""

from typing import Dict, Tuple

__all__ = [
    # Calendar
    "MONTHS_PER_YEAR",
    "QUARTERLY_PAYMENT_MONTHS",
    "QUARTER_BY_PAYMENT_MONTH",
    "RENTA_PAYMENT_MONTH",
    # Taxes
    "IRPF_ADVANCE_RATE",
    # House sale
    "AGENCY_COMMISSION_RATE",
    "AGENCY_VAT_RATE",
    "SALE_SAFETY_MARGIN_RATE",
    "HOUSE_SALE_INCOME_ID",
    "HOUSE_SALE_INCOME_TITLE",
    # Projection
    "DEFAULT_HORIZON_MONTHS",
]


# =============================================================================
# Calendar
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""

QUARTERLY_PAYMENT_MONTHS: Tuple[int, ...] = (1, 4, 7, 10)
"""Calendar months (January=1) holding the 20th-of-month quarterly tax filing."""

QUARTER_BY_PAYMENT_MONTH: Dict[int, int] = {1: 4, 4: 1, 7: 2, 10: 3}
"""Quarter settled by each due month. January settles Q4 of the previous year."""

RENTA_PAYMENT_MONTH: int = 7
"""Month of the annual IRPF settlement (Renta) for the previous calendar year."""


# =============================================================================
# Taxes
# =============================================================================

IRPF_ADVANCE_RATE: float = 0.20
"""Flat rate applied to net quarterly income for the IRPF advance payment."""


# =============================================================================
# House sale
# =============================================================================

AGENCY_COMMISSION_RATE: float = 0.035
"""Real-estate agency commission over the sale amount (3.5%)."""

AGENCY_VAT_RATE: float = 0.21
"""IVA charged on top of the agency commission (21%)."""

SALE_SAFETY_MARGIN_RATE: float = 0.10
"""Fraction of the net proceeds held back as a safety margin (10%)."""

HOUSE_SALE_INCOME_ID: str = "house-sale-income"
"""Identifier of the one-off income injected for the sale proceeds."""

HOUSE_SALE_INCOME_TITLE: str = "House Sale Proceeds"
"""Title of the one-off income injected for the sale proceeds."""


# =============================================================================
# Projection
# =============================================================================

DEFAULT_HORIZON_MONTHS: int = 12
"""Default projection horizon when no explicit date is configured."""
