"""
Spanish freelance tax module for BalanceCast.

Purpose
-------
Encodes the tax obligations that hit the bank balance of a freelancer
("autónomo") in freelance mode:

- Progressive IRPF: annual tax over ordered marginal brackets.
- Quarterly filing (20th of January, April, July and October) for the
  *preceding* calendar quarter:
    * IRPF advance = 20% of max(0, quarter income - professional expenses)
    * IVA return   = all IVA collected in the quarter (no input IVA netting)
  January settles Q4 of the previous year.
- Annual settlement ("Renta"), paid in July for the previous calendar year:
    renta = max(0, progressive IRPF(net taxable income)
                   - advances of the year's four calendar quarters
                   - IRPF withheld by payers)

Only recurring income and professional recurring expenses enter the tax
base; one-off income does not.

Key components
--------------
- IRPFBracket, progressive_tax, bracket_breakdown, effective_rate
- quarter_due: which (year, quarter) a due month settles
- QuarterTotals, QuarterlyPayment, quarterly_payment
- YearTotals, AnnualSettlement, annual_settlement, renta_payment
- TaxCalendar: memoizes quarter and year aggregates within one projection run

Notes
-----
The advances subtracted in the annual settlement are recomputed over the
four calendar quarters of the settled year. They are not read back from the
quarterly filings, whose January entry belongs to the following year.

Example
-------
>>> brackets = [IRPFBracket("b1", 0, 15_000, 19), IRPFBracket("b2", 15_000, None, 24)]
>>> progressive_tax(25_000, brackets)
5250.0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from .activity import active_items
from .constants import (
    IRPF_ADVANCE_RATE,
    MONTHS_PER_YEAR,
    QUARTER_BY_PAYMENT_MONTH,
    RENTA_PAYMENT_MONTH,
)
from .income import iva_amount, irpf_withheld
from .types import AnnualSettlementDict

if TYPE_CHECKING:
    from .snapshot import FinancialSnapshot

logger = logging.getLogger(__name__)

__all__ = [
    "IRPFBracket",
    "BracketShare",
    "progressive_tax",
    "bracket_breakdown",
    "effective_rate",
    "quarter_due",
    "QuarterTotals",
    "QuarterlyPayment",
    "YearTotals",
    "AnnualSettlement",
    "TaxCalendar",
    "quarterly_payment",
    "annual_settlement",
    "renta_payment",
]


# ---------------------------------------------------------------------------
# Progressive IRPF
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IRPFBracket:
    """
    Marginal IRPF bracket.

    Parameters
    ----------
    id : str
        Stable identifier.
    from_amount : float
        Inclusive lower bound of the bracket.
    to_amount : float or None
        Upper bound; None means unbounded.
    rate_percent : float
        Marginal rate (19 means 19%).
    """

    id: str
    from_amount: float
    to_amount: Optional[float]
    rate_percent: float


@dataclass(frozen=True)
class BracketShare:
    """Part of an annual income taxed inside one bracket."""

    bracket: IRPFBracket
    taxable: float
    tax: float


def bracket_breakdown(annual_income: float, brackets: Iterable[IRPFBracket]) -> List[BracketShare]:
    """
    Split *annual_income* across *brackets*, lowest bracket first.

    Brackets are sorted by ``from_amount``; the walk stops at the first
    bracket the income does not reach. Gaps and overlaps are not validated,
    each bracket simply taxes ``min(income, to_amount) - from_amount``.

    Returns
    -------
    list of BracketShare
        Brackets with a positive taxable amount, in ascending order.
    """
    ordered = sorted(brackets, key=lambda b: b.from_amount)
    if annual_income <= 0 or not ordered:
        return []

    shares: List[BracketShare] = []
    for bracket in ordered:
        if annual_income <= bracket.from_amount:
            break
        upper = bracket.to_amount if bracket.to_amount is not None else math.inf
        taxable = min(annual_income, upper) - bracket.from_amount
        if taxable > 0:
            shares.append(BracketShare(bracket, taxable, taxable * (bracket.rate_percent / 100)))
    return shares


def progressive_tax(annual_income: float, brackets: Iterable[IRPFBracket]) -> float:
    """
    Tax owed on *annual_income* under marginal *brackets*.

    Returns 0 for non-positive income or an empty bracket table.
    """
    total = 0.0
    for share in bracket_breakdown(annual_income, brackets):
        total += share.tax
    return total


def effective_rate(annual_income: float, brackets: Iterable[IRPFBracket]) -> float:
    """Progressive tax as a fraction of *annual_income* (0 for non-positive income)."""
    if annual_income <= 0:
        return 0.0
    return progressive_tax(annual_income, brackets) / annual_income


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def quarter_due(month: date) -> Optional[Tuple[int, int]]:
    """
    The ``(year, quarter)`` settled by the quarterly filing in *month*.

    April, July and October settle Q1, Q2 and Q3 of the same year; January
    settles Q4 of the previous year. Any other month has no filing (None).
    """
    quarter = QUARTER_BY_PAYMENT_MONTH.get(month.month)
    if quarter is None:
        return None
    year = month.year - 1 if quarter == 4 else month.year
    return year, quarter


def _quarter_months(year: int, quarter: int) -> List[date]:
    first = (quarter - 1) * 3 + 1
    return [date(year, m, 1) for m in range(first, first + 3)]


@dataclass(frozen=True)
class QuarterTotals:
    """Gross recurring income, IVA, withholding and professional expenses of a quarter."""

    year: int
    quarter: int
    income: float
    iva: float
    irpf_withheld: float
    professional_expenses: float

    @property
    def net_income(self) -> float:
        return max(0.0, self.income - self.professional_expenses)

    @property
    def irpf_advance(self) -> float:
        return self.net_income * IRPF_ADVANCE_RATE


@dataclass(frozen=True)
class QuarterlyPayment:
    """
    Quarterly filing paid in a projection month.

    ``tax_year`` / ``quarter`` identify the settled quarter and are None in
    months without a filing (or outside freelance mode).
    """

    irpf_advance: float = 0.0
    iva_return: float = 0.0
    tax_year: Optional[int] = None
    quarter: Optional[int] = None

    @property
    def total(self) -> float:
        return self.irpf_advance + self.iva_return


@dataclass(frozen=True)
class YearTotals:
    """Calendar-year aggregates used by the annual settlement."""

    year: int
    income: float
    irpf_withheld: float
    iva_collected: float
    professional_expenses: float


@dataclass(frozen=True)
class AnnualSettlement:
    """
    IRPF reconciliation of one tax year.

    All tax figures are 0 outside freelance mode.
    """

    year: int
    income: float = 0.0
    professional_expenses: float = 0.0
    net_taxable_income: float = 0.0
    irpf_withheld: float = 0.0
    iva_collected: float = 0.0
    total_irpf_due: float = 0.0
    advance_payments: float = 0.0
    renta: float = 0.0

    def to_dict(self) -> AnnualSettlementDict:
        return {
            "year": self.year,
            "income": self.income,
            "professionalExpenses": self.professional_expenses,
            "netTaxableIncome": self.net_taxable_income,
            "irpfWithheld": self.irpf_withheld,
            "ivaCollected": self.iva_collected,
            "totalIrpfDue": self.total_irpf_due,
            "advancePayments": self.advance_payments,
            "renta": self.renta,
        }


# ---------------------------------------------------------------------------
# Tax calendar
# ---------------------------------------------------------------------------

class TaxCalendar:
    """
    Quarterly and annual tax payments for one snapshot.

    Quarter and year aggregates are memoized, so a projection that asks for
    the same tax year from several months only computes it once. A calendar
    is bound to a single snapshot and should not outlive the run using it.

    Parameters
    ----------
    snapshot : FinancialSnapshot
        Source of recurring items, brackets and the freelance toggle.
    """

    def __init__(self, snapshot: FinancialSnapshot) -> None:
        self.snapshot = snapshot
        self.freelance_mode = snapshot.settings.is_freelance_mode
        self.brackets: Sequence[IRPFBracket] = snapshot.settings.irpf_brackets
        self._quarters: Dict[Tuple[int, int], QuarterTotals] = {}
        self._years: Dict[int, YearTotals] = {}
        self._settlements: Dict[int, AnnualSettlement] = {}

    # -- aggregates ---------------------------------------------------------

    def _month_totals(self, months: Iterable[date]) -> Tuple[float, float, float, float]:
        income = iva = withheld = professional = 0.0
        for month in months:
            for item in active_items(self.snapshot.recurring_income, month):
                income += item.amount
                iva += iva_amount(item)
                withheld += irpf_withheld(item)
            for expense in active_items(self.snapshot.recurring_expenses, month):
                if expense.is_professional:
                    professional += expense.amount
        return income, iva, withheld, professional

    def quarter_totals(self, year: int, quarter: int) -> QuarterTotals:
        """Aggregates of calendar quarter *quarter* (1..4) of *year*."""
        key = (year, quarter)
        if key not in self._quarters:
            income, iva, withheld, professional = self._month_totals(_quarter_months(year, quarter))
            self._quarters[key] = QuarterTotals(
                year=year,
                quarter=quarter,
                income=income,
                iva=iva,
                irpf_withheld=withheld,
                professional_expenses=professional,
            )
        return self._quarters[key]

    def year_totals(self, year: int) -> YearTotals:
        """Aggregates of the twelve months of *year*."""
        if year not in self._years:
            months = [date(year, m, 1) for m in range(1, MONTHS_PER_YEAR + 1)]
            income, iva, withheld, professional = self._month_totals(months)
            self._years[year] = YearTotals(
                year=year,
                income=income,
                irpf_withheld=withheld,
                iva_collected=iva,
                professional_expenses=professional,
            )
        return self._years[year]

    # -- payments -----------------------------------------------------------

    def quarterly_payment(self, month: date) -> QuarterlyPayment:
        """IRPF advance and IVA return due in *month* (zero outside due months)."""
        if not self.freelance_mode:
            return QuarterlyPayment()
        due = quarter_due(month)
        if due is None:
            return QuarterlyPayment()

        totals = self.quarter_totals(*due)
        return QuarterlyPayment(
            irpf_advance=totals.irpf_advance,
            iva_return=totals.iva,
            tax_year=totals.year,
            quarter=totals.quarter,
        )

    def settlement(self, year: int) -> AnnualSettlement:
        """Annual IRPF reconciliation of tax year *year*."""
        if year in self._settlements:
            return self._settlements[year]

        totals = self.year_totals(year)
        net_taxable = max(0.0, totals.income - totals.professional_expenses)

        if not self.freelance_mode:
            result = AnnualSettlement(
                year=year,
                income=totals.income,
                professional_expenses=totals.professional_expenses,
                net_taxable_income=net_taxable,
            )
        else:
            total_due = progressive_tax(net_taxable, self.brackets)
            advances = 0.0
            for quarter in range(1, 5):
                advances += self.quarter_totals(year, quarter).irpf_advance
            renta = max(0.0, total_due - advances - totals.irpf_withheld)

            logger.debug(
                "Renta %s: income=%.2f professional=%.2f net_taxable=%.2f "
                "withheld=%.2f irpf_due=%.2f advances=%.2f renta=%.2f",
                year, totals.income, totals.professional_expenses, net_taxable,
                totals.irpf_withheld, total_due, advances, renta,
            )
            result = AnnualSettlement(
                year=year,
                income=totals.income,
                professional_expenses=totals.professional_expenses,
                net_taxable_income=net_taxable,
                irpf_withheld=totals.irpf_withheld,
                iva_collected=totals.iva_collected,
                total_irpf_due=total_due,
                advance_payments=advances,
                renta=renta,
            )

        self._settlements[year] = result
        return result

    def renta_payment(self, month: date) -> float:
        """Renta paid in *month*: the previous year's settlement in July, else 0."""
        if not self.freelance_mode or month.month != RENTA_PAYMENT_MONTH:
            return 0.0
        return self.settlement(month.year - 1).renta


# ---------------------------------------------------------------------------
# Standalone queries
# ---------------------------------------------------------------------------

def quarterly_payment(snapshot: FinancialSnapshot, month: date) -> QuarterlyPayment:
    """Quarterly filing due in *month* for *snapshot*."""
    return TaxCalendar(snapshot).quarterly_payment(month)


def annual_settlement(snapshot: FinancialSnapshot, year: int) -> AnnualSettlement:
    """
    Annual IRPF reconciliation of tax year *year*.

    Independent of month stepping; used by yearly summaries. The projection
    pays this settlement's ``renta`` in July of ``year + 1``.
    """
    return TaxCalendar(snapshot).settlement(year)


def renta_payment(snapshot: FinancialSnapshot, month: date) -> float:
    """Renta due in *month* for *snapshot* (non-zero only in July)."""
    return TaxCalendar(snapshot).renta_payment(month)
