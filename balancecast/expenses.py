"""
Expense modeling module for BalanceCast.

Purpose
-------
Models the cash that leaves the account before loans and taxes:

- RecurringExpense: monthly amount with an optional activity window. Items
  flagged ``is_professional`` are tax-deductible and reduce the income base
  of the quarterly IRPF advance and the annual settlement.
- OneOffExpense: a single payment in the month of ``date``.

The projected recurring expense for a month is the sum of active items
scaled by the snapshot-wide deviation percentage:

    C_t = sum(active amounts) * (1 + deviation / 100)

Example
-------
>>> from balancecast.expenses import RecurringExpense, apply_deviation
>>> rent = RecurringExpense("e1", "Rent", 900.0)
>>> apply_deviation(rent.amount, 10)  # ~990
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

__all__ = [
    "RecurringExpense",
    "OneOffExpense",
    "apply_deviation",
]


@dataclass(frozen=True)
class RecurringExpense:
    """
    Recurring monthly expense.

    Parameters
    ----------
    id : str
        Stable identifier.
    title : str
        Human-readable label.
    amount : float
        Amount per month.
    start_date, end_date : date, optional
        Inclusive activity window (month granularity).
    is_professional : bool, default False
        Tax-deductible against freelance income.
    """

    id: str
    title: str
    amount: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_professional: bool = False


@dataclass(frozen=True)
class OneOffExpense:
    """Expense paid once, in the month of ``date``."""

    id: str
    title: str
    amount: float
    date: date


def apply_deviation(base: float, deviation_percent: float) -> float:
    """Scale *base* by the expense deviation margin (10 means +10%)."""
    return base * (1 + (deviation_percent or 0.0) / 100)
