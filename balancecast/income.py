"""
Income modeling module for BalanceCast.

Purpose
-------
Captures where the money comes from: recurring invoices or salaries and
one-off receipts. Each item stores its *gross* amount; the cash that actually
lands in the bank account is derived by `net_amount`, which applies the
item-level IVA (added on top of the invoice) and IRPF withholding (retained
by the payer) when freelance mode is on.

Key components
--------------
- RecurringIncome:
    Monthly gross amount with an optional inclusive activity window
    (``start_date`` / ``end_date``, month granularity) and optional IVA/IRPF
    percentages.

- OneOffIncome:
    Single-month receipt with optional IVA/IRPF percentages. Entries created
    by the house-sale calculator are marked with ``is_from_house_sale``.

- net_amount:
    gross + IVA - IRPF withholding in freelance mode, gross otherwise.

Example
-------
>>> from balancecast.income import RecurringIncome, net_amount
>>> invoice = RecurringIncome("i1", "Client A", 1_000.0, iva_percent=21, irpf_percent=15)
>>> net_amount(invoice)
1060.0
>>> net_amount(invoice, freelance_mode=False)
1000.0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

__all__ = [
    "RecurringIncome",
    "OneOffIncome",
    "net_amount",
    "iva_amount",
    "irpf_withheld",
]


# ---------------------------------------------------------------------------
# Income items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecurringIncome:
    """
    Recurring monthly income (invoice, salary, rent received).

    Parameters
    ----------
    id : str
        Stable identifier.
    title : str
        Human-readable label.
    amount : float
        Gross amount per month, before IVA and IRPF.
    start_date, end_date : date, optional
        Inclusive activity window. Absent bounds mean open-ended.
    iva_percent : float, optional
        IVA charged on top of the amount (21 means 21%).
    irpf_percent : float, optional
        IRPF withheld by the payer (15 means 15%).
    """

    id: str
    title: str
    amount: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    iva_percent: Optional[float] = None
    irpf_percent: Optional[float] = None


@dataclass(frozen=True)
class OneOffIncome:
    """
    Income received once, in the month of ``date``.

    ``is_from_house_sale`` marks the proceeds entry maintained by
    `balancecast.scenario.apply_house_sale`.
    """

    id: str
    title: str
    amount: float
    date: date
    iva_percent: Optional[float] = None
    irpf_percent: Optional[float] = None
    is_from_house_sale: bool = False


# ---------------------------------------------------------------------------
# Net income
# ---------------------------------------------------------------------------

def iva_amount(item: Union[RecurringIncome, OneOffIncome]) -> float:
    """IVA collected on top of the gross amount (0 when no percentage is set)."""
    if not item.iva_percent:
        return 0.0
    return item.amount * (item.iva_percent / 100)


def irpf_withheld(item: Union[RecurringIncome, OneOffIncome]) -> float:
    """IRPF retained by the payer (0 when no percentage is set)."""
    if not item.irpf_percent:
        return 0.0
    return item.amount * (item.irpf_percent / 100)


def net_amount(item: Union[RecurringIncome, OneOffIncome], freelance_mode: bool = True) -> float:
    """
    Cash received for *item* in a month it applies to.

    In freelance mode the IVA is added and the IRPF withholding subtracted;
    otherwise the gross amount is returned unchanged.

    Parameters
    ----------
    item : RecurringIncome or OneOffIncome
        Income item.
    freelance_mode : bool, default True
        Snapshot-wide tax toggle.

    Returns
    -------
    float
        Net amount.
    """
    net = item.amount
    if freelance_mode:
        net += iva_amount(item)
        net -= irpf_withheld(item)
    return net
