"""
Pytest configuration and fixtures for the BalanceCast test suite.

Fixtures build small, hand-checkable snapshots: one freelance client,
a rent and a professional coworking expense, a mortgage and a car loan.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Tuple

import pytest

from balancecast.expenses import OneOffExpense, RecurringExpense
from balancecast.income import OneOffIncome, RecurringIncome
from balancecast.loans import Loan
from balancecast.snapshot import FinancialSnapshot, Settings
from balancecast.taxes import IRPFBracket


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def today() -> date:
    """Standard current date for tests (mid-month on purpose)."""
    return date(2025, 1, 15)


# ---------------------------------------------------------------------------
# Item Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def irpf_brackets() -> Tuple[IRPFBracket, ...]:
    """Spanish-style progressive IRPF table with an unbounded top bracket."""
    return (
        IRPFBracket("b1", 0, 12_450, 19),
        IRPFBracket("b2", 12_450, 20_200, 24),
        IRPFBracket("b3", 20_200, 35_200, 30),
        IRPFBracket("b4", 35_200, 60_000, 37),
        IRPFBracket("b5", 60_000, 300_000, 45),
        IRPFBracket("b6", 300_000, None, 47),
    )


@pytest.fixture
def client_income() -> RecurringIncome:
    """
    Freelance client invoiced every month.

    3,000 + 21% IVA - 15% IRPF withholding = 3,180 net.
    """
    return RecurringIncome(id="inc-1", title="Main client", amount=3_000, iva_percent=21, irpf_percent=15)


@pytest.fixture
def rent() -> RecurringExpense:
    return RecurringExpense(id="exp-1", title="Rent", amount=900)


@pytest.fixture
def coworking() -> RecurringExpense:
    """Tax-deductible professional expense."""
    return RecurringExpense(id="exp-2", title="Coworking", amount=150, is_professional=True)


@pytest.fixture
def mortgage() -> Loan:
    """150k at 3% (0.25% a month), 800/month, 2020-2045."""
    return Loan(
        id="loan-1",
        title="Mortgage",
        outstanding_balance=150_000,
        monthly_payment=800,
        interest_rate_percent=3.0,
        start_date=date(2020, 1, 1),
        maturity_date=date(2045, 1, 1),
    )


@pytest.fixture
def car_loan() -> Loan:
    """Interest-free 12k car loan, 400/month from June 2024."""
    return Loan(
        id="loan-2",
        title="Car",
        outstanding_balance=12_000,
        monthly_payment=400,
        interest_rate_percent=0.0,
        start_date=date(2024, 6, 1),
        maturity_date=date(2027, 1, 1),
    )


# ---------------------------------------------------------------------------
# Snapshot Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot(client_income, rent, coworking, mortgage, car_loan, irpf_brackets) -> FinancialSnapshot:
    """Freelance snapshot with every kind of item."""
    return FinancialSnapshot(
        recurring_income=(client_income,),
        recurring_expenses=(rent, coworking),
        loans=(mortgage, car_loan),
        one_off_expenses=(OneOffExpense(id="oe-1", title="New laptop", amount=1_200, date=date(2025, 3, 10)),),
        one_off_income=(OneOffIncome(id="oi-1", title="Tax refund", amount=500, date=date(2025, 2, 20)),),
        settings=Settings(starting_balance=10_000, irpf_brackets=irpf_brackets),
    )


@pytest.fixture
def simple_snapshot() -> FinancialSnapshot:
    """Salaried snapshot: 2,000 in, 1,500 out, no taxes, 1,000 in the bank."""
    return FinancialSnapshot(
        recurring_income=(RecurringIncome(id="salary", title="Salary", amount=2_000),),
        recurring_expenses=(RecurringExpense(id="living", title="Living", amount=1_500),),
        settings=Settings(starting_balance=1_000, is_freelance_mode=False),
    )


@pytest.fixture
def snapshot_data() -> Dict[str, Any]:
    """Raw stored snapshot in the camelCase file format."""
    return {
        "recurringIncome": [
            {"id": "inc-1", "title": "Main client", "amount": 3000, "iva": 21, "irpf": 15,
             "startDate": "2024-01-01", "endDate": ""},
        ],
        "recurringExpenses": [
            {"id": "exp-1", "title": "Rent", "amount": 900},
            {"id": "exp-2", "title": "Coworking", "amount": 150, "isProfessional": True},
        ],
        "loans": [
            {"id": "loan-2", "title": "Car", "outstandingBalance": 12000, "maturityDate": "2027-01-01",
             "monthlyPayment": 400, "interestRate": 0, "startDate": "2024-06-01"},
        ],
        "oneOffExpenses": [
            {"id": "oe-1", "title": "New laptop", "amount": 1200, "date": "2025-03-10T00:00:00.000Z"},
        ],
        "oneOffIncome": [],
        "settings": {
            "startingBalance": 10000,
            "monthlyExpensesDeviation": 5,
            "irpfBrackets": [
                {"id": "b1", "fromAmount": 0, "toAmount": 12450, "rate": 19},
                {"id": "b2", "fromAmount": 12450, "toAmount": None, "rate": 24},
            ],
        },
        "sellingHouse": {"saleAmount": 0, "selectedLoanIds": [], "sellingDate": ""},
    }


@pytest.fixture
def data_file(tmp_path, snapshot_data) -> Path:
    """The raw snapshot written to a temporary JSON file."""
    path = tmp_path / "financial-data.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return path
