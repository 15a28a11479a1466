"""
House-sale scenario for BalanceCast

Purpose
-------
Models selling the home: from ``selling_date`` on, the loans selected in the
scenario (typically the mortgage) stop being charged in the projection, and
the net sale proceeds enter the balance as a one-off income.

Net proceeds
------------
    commission     = sale_amount * 3.5%
    agency_vat     = commission * 21%
    after_agency   = sale_amount - commission - agency_vat
    before_margin  = after_agency - sum(balance of selected loans at as_of)
    safety_margin  = before_margin * 10%
    final_amount   = before_margin - safety_margin

Typical usage
-------------
>>> from datetime import date
>>> scenario = SellingHouseScenario(
...     sale_amount=300_000.0,
...     selling_date=date(2026, 6, 1),
...     loan_ids=frozenset({"mortgage"}),
... )
>>> snapshot = replace(snapshot, selling_house=scenario)
>>> snapshot = apply_house_sale(snapshot, as_of=date(2025, 1, 1))
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, FrozenSet, Optional

from .constants import (
    AGENCY_COMMISSION_RATE,
    AGENCY_VAT_RATE,
    HOUSE_SALE_INCOME_ID,
    HOUSE_SALE_INCOME_TITLE,
    SALE_SAFETY_MARGIN_RATE,
)
from .income import OneOffIncome
from .loans import loan_details
from .types import SaleProceedsDict

if TYPE_CHECKING:
    from .snapshot import FinancialSnapshot

__all__ = [
    "SellingHouseScenario",
    "SaleProceeds",
    "sale_proceeds",
    "apply_house_sale",
]


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SellingHouseScenario:
    """
    Planned house sale.

    Parameters
    ----------
    sale_amount : float
        Gross sale price.
    selling_date : date, optional
        Sale date. Without it the scenario has no effect on projections.
    loan_ids : frozenset of str
        Loans repaid with the sale and cancelled from ``selling_date``.
    """

    sale_amount: float = 0.0
    selling_date: Optional[date] = None
    loan_ids: FrozenSet[str] = field(default_factory=frozenset)

    def cancels(self, loan_id: str, month: date) -> bool:
        """Whether loan *loan_id* is no longer charged in *month* (first-of-month date)."""
        return (
            self.selling_date is not None
            and month >= self.selling_date
            and loan_id in self.loan_ids
        )


# ---------------------------------------------------------------------------
# Proceeds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SaleProceeds:
    """Breakdown of the cash left after selling the house."""

    sale_amount: float
    agency_commission: float
    agency_vat: float
    amount_after_agency: float
    loans_to_pay: float
    amount_before_margin: float
    safety_margin: float
    final_amount: float
    selling_date: Optional[date] = None

    @property
    def total_agency_fee(self) -> float:
        return self.agency_commission + self.agency_vat

    def to_dict(self) -> SaleProceedsDict:
        return {
            "saleAmount": self.sale_amount,
            "agencyCommission": self.agency_commission,
            "agencyVat": self.agency_vat,
            "totalAgencyFee": self.total_agency_fee,
            "amountAfterAgency": self.amount_after_agency,
            "loansToPay": self.loans_to_pay,
            "amountBeforeMargin": self.amount_before_margin,
            "safetyMargin": self.safety_margin,
            "finalAmount": self.final_amount,
            "sellingDate": self.selling_date.isoformat() if self.selling_date else None,
        }


def sale_proceeds(snapshot: FinancialSnapshot, as_of: date) -> SaleProceeds:
    """
    Net proceeds of the snapshot's house-sale scenario.

    Loan balances are taken at *as_of* (the day the figures are computed),
    not at the selling date. A snapshot without a scenario yields all zeros.
    """
    scenario = snapshot.selling_house or SellingHouseScenario()

    commission = scenario.sale_amount * AGENCY_COMMISSION_RATE
    vat = commission * AGENCY_VAT_RATE
    after_agency = scenario.sale_amount - (commission + vat)

    loans_to_pay = 0.0
    for loan in snapshot.loans:
        if loan.id in scenario.loan_ids:
            loans_to_pay += loan_details(loan, as_of).current_balance

    before_margin = after_agency - loans_to_pay
    margin = before_margin * SALE_SAFETY_MARGIN_RATE

    return SaleProceeds(
        sale_amount=scenario.sale_amount,
        agency_commission=commission,
        agency_vat=vat,
        amount_after_agency=after_agency,
        loans_to_pay=loans_to_pay,
        amount_before_margin=before_margin,
        safety_margin=margin,
        final_amount=before_margin - margin,
        selling_date=scenario.selling_date,
    )


def apply_house_sale(snapshot: FinancialSnapshot, as_of: date) -> FinancialSnapshot:
    """
    Return a copy of *snapshot* whose one-off income reflects the sale.

    With a selling date and a positive sale amount, the house-sale proceeds
    entry is created (or replaced in place) with the current `sale_proceeds`.
    Otherwise any existing house-sale entry is removed. *snapshot* itself is
    left untouched.
    """
    scenario = snapshot.selling_house
    others = [item for item in snapshot.one_off_income if not item.is_from_house_sale]
    existing = next((item for item in snapshot.one_off_income if item.is_from_house_sale), None)

    if scenario is None or scenario.selling_date is None or scenario.sale_amount <= 0:
        return replace(snapshot, one_off_income=tuple(others))

    proceeds = sale_proceeds(snapshot, as_of)
    entry = OneOffIncome(
        id=existing.id if existing is not None else HOUSE_SALE_INCOME_ID,
        title=HOUSE_SALE_INCOME_TITLE,
        amount=proceeds.final_amount,
        date=scenario.selling_date,
        is_from_house_sale=True,
    )

    items = []
    for item in snapshot.one_off_income:
        if not item.is_from_house_sale:
            items.append(item)
        elif item is existing:
            items.append(entry)
    if existing is None:
        items.append(entry)
    return replace(snapshot, one_off_income=tuple(items))
