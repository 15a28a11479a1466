"""
Loan amortization module for BalanceCast.

Purpose
-------
Tracks fixed-payment loans (mortgages, car loans, personal loans) between
their start and maturity dates. The outstanding balance is simulated month by
month from the loan's start with monthly compounding at the nominal annual
rate:

    b_{k+1} = max(0, b_k * (1 + r / 12) - payment)

The fixed payment is charged every month between start and maturity, even in
the last months where it exceeds the remaining balance: the balance simply
clamps to zero and no reduced final installment is modeled.

Key components
--------------
- Loan: frozen loan terms.
- amortization_state(loan, as_of): balance and payment simulated from origin.
- LoanAmortizer: same figures, carried forward incrementally between
  successive queries so a projection run costs O(1) per loan and month.
- loan_details(loan, as_of): balance, payment, months remaining and a simple
  (non-discounted) remaining-payment total.
- amortization_table(loan, start, months): month-indexed DataFrame.

Example
-------
>>> from datetime import date
>>> from balancecast.loans import Loan, loan_details
>>> mortgage = Loan(
...     id="m1", title="Mortgage", outstanding_balance=150_000.0,
...     monthly_payment=800.0, interest_rate_percent=3.0,
...     start_date=date(2020, 1, 1), maturity_date=date(2045, 1, 1),
... )
>>> details = loan_details(mortgage, date(2025, 1, 1))
>>> details.months_remaining
240
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from .types import LoanDetailsDict
from .utils import months_between, month_index, add_months, month_start

__all__ = [
    "Loan",
    "AmortizationState",
    "LoanDetails",
    "LoanAmortizer",
    "amortization_state",
    "loan_details",
    "amortization_table",
]


@dataclass(frozen=True)
class Loan:
    """
    Fixed-payment loan.

    Parameters
    ----------
    id : str
        Stable identifier (referenced by the house-sale scenario).
    title : str
        Human-readable label.
    outstanding_balance : float
        Principal as of ``start_date``.
    monthly_payment : float
        Fixed installment charged every month while the loan runs.
    interest_rate_percent : float
        Nominal annual interest rate (3.5 means 3.5%).
    start_date : date
        First date the loan is being repaid.
    maturity_date : date
        Date from which the loan is considered repaid.
    """

    id: str
    title: str
    outstanding_balance: float
    monthly_payment: float
    interest_rate_percent: float
    start_date: date
    maturity_date: date

    @property
    def monthly_rate(self) -> float:
        """Nominal monthly interest rate as a fraction."""
        return self.interest_rate_percent / 100 / 12


@dataclass(frozen=True)
class AmortizationState:
    """Outstanding balance and effective payment of a loan at a given date."""

    balance: float
    monthly_payment: float


@dataclass(frozen=True)
class LoanDetails:
    """Standalone loan query result (see `loan_details`)."""

    current_balance: float
    monthly_payment: float
    months_remaining: int
    total_remaining: float

    def to_dict(self) -> LoanDetailsDict:
        return {
            "currentBalance": self.current_balance,
            "monthlyPayment": self.monthly_payment,
            "monthsRemaining": self.months_remaining,
            "totalRemaining": self.total_remaining,
        }


def _step(balance: float, monthly_rate: float, payment: float) -> float:
    """One month of compounding followed by the fixed payment, clamped at 0."""
    balance += balance * monthly_rate
    balance -= payment
    if balance < 0:
        balance = 0.0
    return balance


def amortization_state(loan: Loan, as_of: date) -> AmortizationState:
    """
    Simulate *loan* from its start date up to *as_of*.

    Parameters
    ----------
    loan : Loan
        Loan terms.
    as_of : date
        Query date. Only its year and month count towards elapsed months;
        the full date is compared against start and maturity.

    Returns
    -------
    AmortizationState
        - before ``start_date``: original balance, payment 0
        - on or after ``maturity_date``: balance 0, payment 0
        - otherwise: simulated balance and the fixed monthly payment
    """
    if as_of < loan.start_date:
        return AmortizationState(balance=loan.outstanding_balance, monthly_payment=0.0)
    if as_of >= loan.maturity_date:
        return AmortizationState(balance=0.0, monthly_payment=0.0)

    elapsed = months_between(loan.start_date, as_of)
    rate = loan.monthly_rate
    balance = loan.outstanding_balance
    for _ in range(elapsed):
        balance = _step(balance, rate, loan.monthly_payment)

    return AmortizationState(balance=balance, monthly_payment=loan.monthly_payment)


class LoanAmortizer:
    """
    Incremental amortization for one loan.

    Keeps the balance reached at the last queried month and continues from
    there when asked about a later month, instead of re-simulating from the
    loan's origin. Queries for an earlier month restart from the origin, so
    results are identical to `amortization_state` for any query order.

    Examples
    --------
    >>> amortizer = LoanAmortizer(mortgage)
    >>> [amortizer.state(date(2025, m, 1)).balance for m in range(1, 13)]
    """

    def __init__(self, loan: Loan) -> None:
        self.loan = loan
        self._elapsed = 0
        self._balance = loan.outstanding_balance

    def state(self, as_of: date) -> AmortizationState:
        loan = self.loan
        if as_of < loan.start_date:
            return AmortizationState(balance=loan.outstanding_balance, monthly_payment=0.0)
        if as_of >= loan.maturity_date:
            return AmortizationState(balance=0.0, monthly_payment=0.0)

        elapsed = months_between(loan.start_date, as_of)
        if elapsed < self._elapsed:
            self._elapsed = 0
            self._balance = loan.outstanding_balance

        rate = loan.monthly_rate
        while self._elapsed < elapsed:
            self._balance = _step(self._balance, rate, loan.monthly_payment)
            self._elapsed += 1

        return AmortizationState(balance=self._balance, monthly_payment=loan.monthly_payment)


def loan_details(loan: Loan, as_of: date) -> LoanDetails:
    """
    Balance and remaining obligation of *loan* as of *as_of*.

    ``total_remaining`` is ``monthly_payment * months_remaining``: a plain
    sum of the outstanding installments, not a present value.
    """
    state = amortization_state(loan, as_of)
    months_remaining = max(0, months_between(as_of, loan.maturity_date))
    return LoanDetails(
        current_balance=state.balance,
        monthly_payment=state.monthly_payment,
        months_remaining=months_remaining,
        total_remaining=state.monthly_payment * months_remaining,
    )


def amortization_table(loan: Loan, start: Optional[date], months: int) -> pd.DataFrame:
    """
    Month-by-month balance and payment of *loan*.

    Parameters
    ----------
    loan : Loan
        Loan terms.
    start : date, optional
        First month of the table. Defaults to the loan's start month.
    months : int
        Number of rows.

    Returns
    -------
    pd.DataFrame
        Columns ``balance`` and ``payment``, indexed by first-of-month dates.
    """
    first = month_start(start if start is not None else loan.start_date)
    amortizer = LoanAmortizer(loan)
    rows: List[Dict[str, float]] = []
    for k in range(max(0, months)):
        state = amortizer.state(add_months(first, k))
        rows.append({"balance": state.balance, "payment": state.monthly_payment})

    idx = month_index(first, max(0, months))
    return pd.DataFrame(rows, index=idx, columns=["balance", "payment"])
