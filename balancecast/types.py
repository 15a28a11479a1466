"""
Type definitions for BalanceCast.

Purpose
-------
Provides TypedDict definitions for the JSON-shaped records that BalanceCast
emits (CLI ``--output`` files, ``to_dict`` helpers). Keys follow the
camelCase convention of the persisted snapshot format.

Type Definitions
----------------
MonthlyProjectionDict
    One projected month: balances, cash flows and tax payments.

LoanDetailsDict
    Standalone loan query: {"currentBalance", "monthlyPayment", ...}

AnnualSettlementDict
    Yearly IRPF reconciliation (Renta).

SaleProceedsDict
    House-sale proceeds breakdown.
"""

from typing import Optional
from typing_extensions import TypedDict

__all__ = [
    "MonthlyProjectionDict",
    "LoanDetailsDict",
    "AnnualSettlementDict",
    "SaleProceedsDict",
]


class MonthlyProjectionDict(TypedDict):
    """
    One month of the projection, as exported.

    Examples
    --------
    >>> record: MonthlyProjectionDict = projections[0].to_dict()
    >>> record["month"]
    '2025-01'
    """

    month: str
    startingBalance: float
    totalIncome: float
    totalExpenses: float
    loanPayments: float
    oneOffIncome: float
    oneOffExpenses: float
    irpfQuarterly: float
    ivaPayment: float
    rentaPayment: float
    endingBalance: float


class LoanDetailsDict(TypedDict):
    """Balance and remaining installments of a loan at a query date."""

    currentBalance: float
    monthlyPayment: float
    monthsRemaining: int
    totalRemaining: float


class AnnualSettlementDict(TypedDict):
    """
    Yearly IRPF reconciliation.

    ``renta`` = max(0, totalIrpfDue - advancePayments - irpfWithheld).
    """

    year: int
    income: float
    professionalExpenses: float
    netTaxableIncome: float
    irpfWithheld: float
    ivaCollected: float
    totalIrpfDue: float
    advancePayments: float
    renta: float


class SaleProceedsDict(TypedDict):
    """Cash left from a house sale after agency fees, loans and margin."""

    saleAmount: float
    agencyCommission: float
    agencyVat: float
    totalAgencyFee: float
    amountAfterAgency: float
    loansToPay: float
    amountBeforeMargin: float
    safetyMargin: float
    finalAmount: float
    sellingDate: Optional[str]
