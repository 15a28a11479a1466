"""
Configuration management module for BalanceCast.

Purpose
-------
Type-safe validation of persisted snapshots and application settings using
Pydantic models. This is the data-entry boundary: everything that reaches
the projection engine has passed through these models, so the engine itself
can stay free of input checks.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and the few structural invariants
  (date ordering, bracket bounds)
- Immutable: Frozen models prevent accidental mutation
- Compatible: JSON keys use the camelCase names of the stored data files
  (``recurringIncome``, ``startDate``, ``interestRate`` ...)
- Environment-aware: `AppSettings` reads ``BALANCECAST_*`` variables and .env

Example
-------
>>> from balancecast.config import SnapshotConfig
>>> config = SnapshotConfig.model_validate({
...     "recurringIncome": [{"id": "1", "title": "Client", "amount": 3000, "iva": 21, "irpf": 15}],
...     "settings": {"startingBalance": 5000},
... })
>>> config.settings.is_freelance_mode
True
>>> config.model_dump(by_alias=True, exclude_none=True)["settings"]["startingBalance"]
5000.0
"""

from __future__ import annotations
from typing import List, Optional, Literal
from typing_extensions import Annotated
import datetime
from pathlib import Path

import pydantic
from pydantic import BaseModel, BeforeValidator, Field, model_validator, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_HORIZON_MONTHS
from .exceptions import ConfigurationError

__all__ = [
    "RecurringIncomeConfig",
    "RecurringExpenseConfig",
    "LoanConfig",
    "OneOffIncomeConfig",
    "OneOffExpenseConfig",
    "IRPFBracketConfig",
    "SettingsConfig",
    "SellingHouseConfig",
    "SnapshotConfig",
    "AppSettings",
    "load_settings",
]


def _optional_date(v):
    """Empty strings mean "no date"; ISO datetimes keep only their date part."""
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
        if len(v) > 10 and v[10] in "T ":
            return v[:10]
    return v


OptionalDate = Annotated[Optional[datetime.date], BeforeValidator(_optional_date)]
RequiredDate = Annotated[datetime.date, BeforeValidator(_optional_date)]


class _SnapshotModel(BaseModel):
    """Shared model config: frozen, strict keys, camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Recurring items
# ---------------------------------------------------------------------------

class RecurringIncomeConfig(_SnapshotModel):
    """
    Recurring income as stored.

    Attributes
    ----------
    id, title : str
        Identifier and label.
    amount : float
        Gross monthly amount.
    start_date, end_date : datetime.date, optional
        Inclusive activity window.
    iva, irpf : float, optional
        IVA added / IRPF withheld, in percent.
    """

    id: str
    title: str
    amount: float
    start_date: OptionalDate = None
    end_date: OptionalDate = None
    iva: Optional[float] = Field(default=None, description="IVA percentage (21 for 21%)")
    irpf: Optional[float] = Field(default=None, description="IRPF withholding percentage")

    @model_validator(mode="after")
    def validate_window(self):
        """Ensure start_date <= end_date when both are set."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"startDate ({self.start_date}) must be on or before endDate ({self.end_date})"
            )
        return self


class RecurringExpenseConfig(_SnapshotModel):
    """Recurring expense as stored; ``isProfessional`` marks tax-deductible items."""

    id: str
    title: str
    amount: float
    start_date: OptionalDate = None
    end_date: OptionalDate = None
    is_professional: Optional[bool] = None

    @model_validator(mode="after")
    def validate_window(self):
        """Ensure start_date <= end_date when both are set."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"startDate ({self.start_date}) must be on or before endDate ({self.end_date})"
            )
        return self


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

class LoanConfig(_SnapshotModel):
    """
    Loan as stored.

    ``interestRate`` is the nominal annual rate in percent.

    Examples
    --------
    >>> LoanConfig(
    ...     id="m1", title="Mortgage", outstanding_balance=150_000,
    ...     maturity_date="2045-01-01", monthly_payment=800,
    ...     interest_rate=3.0, start_date="2020-01-01",
    ... )
    """

    id: str
    title: str
    outstanding_balance: float
    maturity_date: RequiredDate
    monthly_payment: float
    interest_rate: float = Field(ge=0, description="Nominal annual interest rate (%)")
    start_date: RequiredDate

    @model_validator(mode="after")
    def validate_term(self):
        """Ensure the loan starts before it matures."""
        if self.start_date >= self.maturity_date:
            raise ValueError(
                f"startDate ({self.start_date}) must be before maturityDate ({self.maturity_date})"
            )
        return self


# ---------------------------------------------------------------------------
# One-off items
# ---------------------------------------------------------------------------

class OneOffExpenseConfig(_SnapshotModel):
    """One-off expense as stored."""

    id: str
    title: str
    amount: float
    date: RequiredDate


class OneOffIncomeConfig(_SnapshotModel):
    """One-off income as stored; ``isFromHouseSale`` marks the sale proceeds entry."""

    id: str
    title: str
    amount: float
    date: RequiredDate
    is_from_house_sale: Optional[bool] = None
    iva: Optional[float] = None
    irpf: Optional[float] = None


# ---------------------------------------------------------------------------
# Taxes and settings
# ---------------------------------------------------------------------------

class IRPFBracketConfig(_SnapshotModel):
    """
    IRPF bracket as stored. ``toAmount`` null means unbounded.

    Examples
    --------
    >>> IRPFBracketConfig(id="b1", from_amount=0, to_amount=12_450, rate=19)
    """

    id: str
    from_amount: float = Field(ge=0)
    to_amount: Optional[float] = None
    rate: float = Field(ge=0, le=100, description="Marginal rate (%)")

    @model_validator(mode="after")
    def validate_bounds(self):
        """Ensure a bounded bracket ends above where it starts."""
        if self.to_amount is not None and self.to_amount <= self.from_amount:
            raise ValueError(
                f"toAmount ({self.to_amount}) must be greater than fromAmount ({self.from_amount})"
            )
        return self


class SettingsConfig(_SnapshotModel):
    """
    Snapshot settings as stored.

    Attributes
    ----------
    starting_balance : float
        Bank balance at the start of the current month.
    monthly_expenses_deviation : float, optional
        Expense safety margin in percent.
    irpf_brackets : list of IRPFBracketConfig, optional
        Progressive IRPF table.
    is_freelance_mode : bool, optional
        Absent or null means freelance mode on.
    progress_tracking_date, dashboard_date : datetime.date, optional
        Last dates picked in the projection and monthly views.
    """

    starting_balance: float = 0.0
    progress_tracking_date: OptionalDate = None
    dashboard_date: OptionalDate = None
    monthly_expenses_deviation: Optional[float] = None
    irpf_brackets: Optional[List[IRPFBracketConfig]] = None
    is_freelance_mode: Optional[bool] = True


class SellingHouseConfig(_SnapshotModel):
    """House-sale scenario as stored."""

    sale_amount: float = 0.0
    selected_loan_ids: List[str] = Field(default_factory=list)
    selling_date: OptionalDate = None


class SnapshotConfig(_SnapshotModel):
    """
    Complete persisted snapshot.

    ``schemaVersion`` is written by `balancecast.serialization.save_snapshot`;
    files exported by older tools simply omit it.
    """

    schema_version: Optional[str] = None
    recurring_income: List[RecurringIncomeConfig] = Field(default_factory=list)
    recurring_expenses: List[RecurringExpenseConfig] = Field(default_factory=list)
    loans: List[LoanConfig] = Field(default_factory=list)
    one_off_expenses: List[OneOffExpenseConfig] = Field(default_factory=list)
    one_off_income: List[OneOffIncomeConfig] = Field(default_factory=list)
    settings: SettingsConfig = Field(default_factory=SettingsConfig)
    selling_house: Optional[SellingHouseConfig] = None


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with BALANCECAST_ (e.g., BALANCECAST_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    data_file : Path
        Snapshot file used by the CLI when --data is not given
    export_dir : Path
        Directory receiving ``financial-data-YYYY-MM-DD.json`` exports
    default_horizon_months : int
        Projection length when neither a horizon nor a saved date exists

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.default_horizon_months
    12
    """

    model_config = SettingsConfigDict(
        env_prefix="BALANCECAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    data_file: Path = Field(
        default=Path.home() / ".local" / "share" / "balancecast" / "financial-data.json",
        description="Snapshot file"
    )
    export_dir: Path = Field(
        default=Path("."),
        description="Directory for exported snapshots"
    )
    default_horizon_months: int = Field(
        default=DEFAULT_HORIZON_MONTHS,
        ge=1,
        le=600,
        description="Default projection horizon (months)"
    )


def load_settings() -> AppSettings:
    """
    Load `AppSettings` from the environment.

    Raises
    ------
    ConfigurationError
        If a ``BALANCECAST_*`` variable holds an invalid value
    """
    try:
        return AppSettings()
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"Invalid environment settings: {e}") from e
