"""
BalanceCast - Personal cash-flow and tax projection

Projects a bank balance month by month for a Spanish freelancer or
employee: recurring and one-off income and expenses, amortizing loans,
IVA and IRPF quarterly payments, the annual Renta and an optional
house sale.

Modules
-------
- activity      : Recurring item activity windows
- income        : Income items, IVA and IRPF withholding
- expenses      : Expense items and the expense safety margin
- loans         : Loan amortization
- taxes         : Progressive IRPF, quarterly payments, annual settlement
- scenario      : House-sale proceeds and loan cancellation
- snapshot      : Settings and the complete financial snapshot
- projection    : Month-by-month projection engine
- config        : Pydantic validation of stored data and app settings
- serialization : JSON persistence, export and import
- cli           : Command-line interface
- utils         : Month arithmetic and formatting helpers

"""

__version__ = "0.1.0"

from .income import RecurringIncome, OneOffIncome
from .expenses import RecurringExpense, OneOffExpense
from .loans import Loan, loan_details
from .taxes import IRPFBracket, annual_settlement
from .scenario import SellingHouseScenario, apply_house_sale, sale_proceeds
from .snapshot import Settings, FinancialSnapshot
from .projection import MonthlyProjection, project, monthly_breakdown, monthly_result, summarize_projections
from . import utils
