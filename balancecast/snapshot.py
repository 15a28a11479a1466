"""
Financial snapshot for BalanceCast.

A `FinancialSnapshot` is the only input of the projection engine: every
recurring and one-off item, the loans, the optional house-sale scenario and
the `Settings`. Snapshots are frozen and hold tuples, so the engine can never
mutate them; edits produce a new snapshot via ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from .expenses import OneOffExpense, RecurringExpense
from .income import OneOffIncome, RecurringIncome
from .loans import Loan
from .scenario import SellingHouseScenario
from .taxes import IRPFBracket

__all__ = [
    "Settings",
    "FinancialSnapshot",
]


@dataclass(frozen=True)
class Settings:
    """
    Snapshot-wide knobs.

    Parameters
    ----------
    starting_balance : float, default 0.0
        Bank balance at the start of the current month.
    monthly_expenses_deviation_percent : float, default 0.0
        Safety margin applied to total recurring expenses (10 means +10%).
    is_freelance_mode : bool, default True
        Gates every tax computation (IVA, withholding, advances, Renta).
    irpf_brackets : tuple of IRPFBracket
        Progressive IRPF table; empty means no progressive tax.
    progress_tracking_date : date, optional
        Last horizon chosen for projections.
    dashboard_date : date, optional
        Last month chosen for the quick monthly view.
    """

    starting_balance: float = 0.0
    monthly_expenses_deviation_percent: float = 0.0
    is_freelance_mode: bool = True
    irpf_brackets: Tuple[IRPFBracket, ...] = ()
    progress_tracking_date: Optional[date] = None
    dashboard_date: Optional[date] = None


@dataclass(frozen=True)
class FinancialSnapshot:
    """Complete financial configuration consumed by the engine."""

    recurring_income: Tuple[RecurringIncome, ...] = ()
    recurring_expenses: Tuple[RecurringExpense, ...] = ()
    loans: Tuple[Loan, ...] = ()
    one_off_expenses: Tuple[OneOffExpense, ...] = ()
    one_off_income: Tuple[OneOffIncome, ...] = ()
    settings: Settings = field(default_factory=Settings)
    selling_house: Optional[SellingHouseScenario] = None

    def loan(self, loan_id: str) -> Optional[Loan]:
        """Loan with id *loan_id*, or None."""
        return next((loan for loan in self.loans if loan.id == loan_id), None)
