"""Projection engine for BalanceCast

Turns a `FinancialSnapshot` into a month-by-month series of cash flows and
bank balances, from the current month through a horizon date (inclusive).

For every month ``m`` the engine computes

    income     = sum(net recurring income active in m)
    expenses   = sum(recurring expenses active in m) * (1 + deviation / 100)
    loans      = sum(fixed payments of running loans not cancelled by the sale)
    one-offs   = net one-off income and one-off expenses dated in m
    taxes      = quarterly IRPF advance + IVA return + Renta (freelance mode)

    ending(m)  = starting(m) + income + one-off income
                 - expenses - one-off expenses - loans - taxes
    starting(m + 1) = ending(m)

Design goals
------------
- Pure: the current date is an explicit argument, inputs are never mutated,
  and each call returns a fresh list.
- Tax aggregates are memoized per run (`TaxCalendar`) and loans carry their
  balance forward month to month (`LoanAmortizer`), so long horizons stay
  linear in the number of months.

Typical usage
-------------
>>> from datetime import date
>>> from balancecast.projection import project, summarize_projections
>>> rows = project(snapshot, date(2030, 12, 31), today=date(2025, 1, 15))
>>> rows[0].month
'2025-01'
>>> summarize_projections(rows, snapshot.settings.starting_balance).final_balance
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .activity import active_items
from .expenses import apply_deviation
from .income import net_amount
from .loans import LoanAmortizer
from .snapshot import FinancialSnapshot
from .taxes import TaxCalendar
from .types import MonthlyProjectionDict
from .utils import iter_months, month_index, month_key

logger = logging.getLogger(__name__)

__all__ = [
    "MonthlyProjection",
    "ProjectionEngine",
    "ProjectionSummary",
    "MonthlyBreakdown",
    "project",
    "monthly_breakdown",
    "monthly_result",
    "projections_to_frame",
    "summarize_projections",
]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonthlyProjection:
    """One projected month. Amounts are positive; the sign is implied by the field."""

    month: str
    starting_balance: float
    total_income: float
    total_expenses: float
    loan_payments: float
    one_off_income: float
    one_off_expenses: float
    irpf_quarterly: float
    iva_payment: float
    renta_payment: float
    ending_balance: float

    @property
    def taxes(self) -> float:
        return self.irpf_quarterly + self.iva_payment + self.renta_payment

    @property
    def net_change(self) -> float:
        return self.ending_balance - self.starting_balance

    def to_dict(self) -> MonthlyProjectionDict:
        return {
            "month": self.month,
            "startingBalance": self.starting_balance,
            "totalIncome": self.total_income,
            "totalExpenses": self.total_expenses,
            "loanPayments": self.loan_payments,
            "oneOffIncome": self.one_off_income,
            "oneOffExpenses": self.one_off_expenses,
            "irpfQuarterly": self.irpf_quarterly,
            "ivaPayment": self.iva_payment,
            "rentaPayment": self.renta_payment,
            "endingBalance": self.ending_balance,
        }


@dataclass(frozen=True)
class ProjectionSummary:
    """Headline figures of a projection run."""

    months: int
    starting_balance: float
    final_balance: float
    total_change: float
    total_income: float
    total_expenses: float
    total_irpf: float
    total_iva: float
    lowest_balance: float
    lowest_balance_month: Optional[str]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ProjectionEngine:
    """
    Month-stepping projection over one snapshot.

    Parameters
    ----------
    snapshot : FinancialSnapshot
        Immutable configuration. The engine keeps no state between calls to
        `project`; per-run caches are rebuilt on every call.

    Examples
    --------
    >>> engine = ProjectionEngine(snapshot)
    >>> rows = engine.project(date(2026, 6, 30), today=date(2025, 1, 15))
    """

    def __init__(self, snapshot: FinancialSnapshot) -> None:
        self.snapshot = snapshot

    def project(self, horizon: date, *, today: date) -> List[MonthlyProjection]:
        """
        Project every month from the month of *today* through *horizon*.

        Parameters
        ----------
        horizon : date
            Last date covered; a month is included when its first day is
            on or before *horizon*.
        today : date
            Current date. The projection starts on the first of its month
            with ``settings.starting_balance``.

        Returns
        -------
        list of MonthlyProjection
            Chronological. Empty when *horizon* precedes the current month.
        """
        snapshot = self.snapshot
        settings = snapshot.settings
        freelance = settings.is_freelance_mode
        deviation = settings.monthly_expenses_deviation_percent
        scenario = snapshot.selling_house

        calendar = TaxCalendar(snapshot)
        amortizers = [LoanAmortizer(loan) for loan in snapshot.loans]

        projections: List[MonthlyProjection] = []
        balance = settings.starting_balance

        for month in iter_months(today, horizon):
            total_income = sum(
                net_amount(item, freelance)
                for item in active_items(snapshot.recurring_income, month)
            )
            base_expenses = sum(item.amount for item in active_items(snapshot.recurring_expenses, month))
            total_expenses = apply_deviation(base_expenses, deviation)

            loan_payments = 0.0
            for amortizer in amortizers:
                if scenario is not None and scenario.cancels(amortizer.loan.id, month):
                    continue
                loan_payments += amortizer.state(month).monthly_payment

            one_off_income = sum(
                net_amount(item, freelance)
                for item in snapshot.one_off_income
                if _same_month(item.date, month)
            )
            one_off_expenses = sum(
                item.amount for item in snapshot.one_off_expenses if _same_month(item.date, month)
            )

            quarterly = calendar.quarterly_payment(month)
            renta = calendar.renta_payment(month)

            ending = (
                balance
                + total_income
                + one_off_income
                - total_expenses
                - one_off_expenses
                - loan_payments
                - quarterly.irpf_advance
                - quarterly.iva_return
                - renta
            )

            projections.append(
                MonthlyProjection(
                    month=month_key(month),
                    starting_balance=balance,
                    total_income=total_income,
                    total_expenses=total_expenses,
                    loan_payments=loan_payments,
                    one_off_income=one_off_income,
                    one_off_expenses=one_off_expenses,
                    irpf_quarterly=quarterly.irpf_advance,
                    iva_payment=quarterly.iva_return,
                    renta_payment=renta,
                    ending_balance=ending,
                )
            )
            balance = ending

        logger.debug(
            "Projected %d months from %s to %s (freelance=%s)",
            len(projections), month_key(today), month_key(horizon), freelance,
        )
        return projections


def _same_month(d: date, month: date) -> bool:
    return d.year == month.year and d.month == month.month


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def project(snapshot: FinancialSnapshot, horizon: date, *, today: date) -> List[MonthlyProjection]:
    """Project *snapshot* from the month of *today* through *horizon* (see `ProjectionEngine`)."""
    return ProjectionEngine(snapshot).project(horizon, today=today)


@dataclass(frozen=True)
class MonthlyBreakdown:
    """Parts of the at-a-glance monthly result."""

    income: float
    expenses: float
    loan_payments: float

    @property
    def result(self) -> float:
        return self.income - self.expenses - self.loan_payments


def monthly_breakdown(
    snapshot: FinancialSnapshot,
    *,
    today: date,
    house_sale: bool = False,
) -> MonthlyBreakdown:
    """
    Income, expenses and loan payments of the month of *today*.

    Loans are not gated by their start or maturity dates. With *house_sale*,
    loans selected in the sale scenario are dropped once *today* is on or
    after the selling date, as in the dashboard view.
    """
    settings = snapshot.settings
    scenario = snapshot.selling_house if house_sale else None

    income = sum(
        net_amount(item, settings.is_freelance_mode)
        for item in active_items(snapshot.recurring_income, today)
    )
    base_expenses = sum(item.amount for item in active_items(snapshot.recurring_expenses, today))
    loans = sum(
        loan.monthly_payment
        for loan in snapshot.loans
        if scenario is None or not scenario.cancels(loan.id, today)
    )
    return MonthlyBreakdown(
        income=income,
        expenses=apply_deviation(base_expenses, settings.monthly_expenses_deviation_percent),
        loan_payments=loans,
    )


def monthly_result(snapshot: FinancialSnapshot, *, today: date) -> float:
    """
    At-a-glance net result of the month of *today*.

    Net recurring income minus recurring expenses (with deviation) minus the
    fixed payment of every loan. Loans are not gated by their dates or the
    house sale, and no tax payments are included; use `project` for those.
    """
    return monthly_breakdown(snapshot, today=today).result


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------

def projections_to_frame(projections: Sequence[MonthlyProjection]) -> pd.DataFrame:
    """
    Projection as a DataFrame indexed by first-of-month dates.

    Columns are the numeric fields of `MonthlyProjection` (snake_case).
    """
    columns = [name for name in MonthlyProjection.__dataclass_fields__ if name != "month"]
    if not projections:
        return pd.DataFrame(columns=columns, index=month_index(None, 0), dtype=float)

    first = date.fromisoformat(projections[0].month + "-01")
    rows = []
    for p in projections:
        row = asdict(p)
        row.pop("month")
        rows.append(row)
    frame = pd.DataFrame(rows, columns=columns, index=month_index(first, len(projections)))
    frame.index.name = "month"
    return frame


def summarize_projections(
    projections: Sequence[MonthlyProjection],
    starting_balance: float,
) -> ProjectionSummary:
    """
    Headline figures for a projection.

    ``total_irpf`` adds quarterly advances and Renta; ``total_expenses``
    adds recurring and one-off expenses and loan payments. With no months,
    the final balance equals *starting_balance*.
    """
    if not projections:
        return ProjectionSummary(
            months=0,
            starting_balance=starting_balance,
            final_balance=starting_balance,
            total_change=0.0,
            total_income=0.0,
            total_expenses=0.0,
            total_irpf=0.0,
            total_iva=0.0,
            lowest_balance=starting_balance,
            lowest_balance_month=None,
        )

    ending = np.array([p.ending_balance for p in projections], dtype=float)
    income = np.array([p.total_income + p.one_off_income for p in projections], dtype=float)
    expenses = np.array(
        [p.total_expenses + p.one_off_expenses + p.loan_payments for p in projections],
        dtype=float,
    )
    irpf = np.array([p.irpf_quarterly + p.renta_payment for p in projections], dtype=float)
    iva = np.array([p.iva_payment for p in projections], dtype=float)

    lowest = int(np.argmin(ending))
    final_balance = float(ending[-1])
    return ProjectionSummary(
        months=len(projections),
        starting_balance=starting_balance,
        final_balance=final_balance,
        total_change=final_balance - starting_balance,
        total_income=float(income.sum()),
        total_expenses=float(expenses.sum()),
        total_irpf=float(irpf.sum()),
        total_iva=float(iva.sum()),
        lowest_balance=float(ending[lowest]),
        lowest_balance_month=projections[lowest].month,
    )
