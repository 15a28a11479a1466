"""
Serialization module for BalanceCast snapshot persistence.

Purpose
-------
Reads and writes `FinancialSnapshot` objects as JSON, in the camelCase
format of the stored data files (``recurringIncome``, ``startDate``,
``isFreelanceMode`` ...). Every load goes through the Pydantic models in
`balancecast.config`, so malformed files are rejected before they reach the
engine.

Supports:
- Conversion to/from plain dictionaries (`snapshot_to_dict`, `snapshot_from_dict`)
- The working data file (`save_snapshot`, `load_snapshot`)
- Dated exports and imports (`export_snapshot`, `import_snapshot`)

Design Principles
-----------------
- Type-safe: Uses Pydantic configs for validation
- Human-readable: Indented JSON, optional fields omitted when unset
- Compatible: Files without ``schemaVersion`` load silently; a different
  version loads with a UserWarning

Example
-------
>>> from pathlib import Path
>>> from balancecast.serialization import save_snapshot, load_snapshot
>>> save_snapshot(snapshot, Path("financial-data.json"))
>>> restored = load_snapshot(Path("financial-data.json"))
"""

from __future__ import annotations
from typing import Dict, Any, Optional
from pathlib import Path
from datetime import date
import json
import logging
import warnings

import pydantic

from .config import (
    RecurringIncomeConfig,
    RecurringExpenseConfig,
    LoanConfig,
    OneOffIncomeConfig,
    OneOffExpenseConfig,
    IRPFBracketConfig,
    SettingsConfig,
    SellingHouseConfig,
    SnapshotConfig,
)
from .exceptions import SnapshotFormatError
from .expenses import OneOffExpense, RecurringExpense
from .income import OneOffIncome, RecurringIncome
from .loans import Loan
from .scenario import SellingHouseScenario
from .snapshot import FinancialSnapshot, Settings
from .taxes import IRPFBracket

logger = logging.getLogger(__name__)

__all__ = [
    "SCHEMA_VERSION",
    "snapshot_to_dict",
    "snapshot_from_dict",
    "save_snapshot",
    "load_snapshot",
    "export_snapshot",
    "import_snapshot",
    "export_filename",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Dataclass -> config
# ---------------------------------------------------------------------------

def _snapshot_config(snapshot: FinancialSnapshot) -> SnapshotConfig:
    settings = snapshot.settings
    scenario = snapshot.selling_house

    return SnapshotConfig(
        schema_version=SCHEMA_VERSION,
        recurring_income=[
            RecurringIncomeConfig(
                id=item.id,
                title=item.title,
                amount=item.amount,
                start_date=item.start_date,
                end_date=item.end_date,
                iva=item.iva_percent,
                irpf=item.irpf_percent,
            )
            for item in snapshot.recurring_income
        ],
        recurring_expenses=[
            RecurringExpenseConfig(
                id=item.id,
                title=item.title,
                amount=item.amount,
                start_date=item.start_date,
                end_date=item.end_date,
                is_professional=item.is_professional or None,
            )
            for item in snapshot.recurring_expenses
        ],
        loans=[
            LoanConfig(
                id=loan.id,
                title=loan.title,
                outstanding_balance=loan.outstanding_balance,
                maturity_date=loan.maturity_date,
                monthly_payment=loan.monthly_payment,
                interest_rate=loan.interest_rate_percent,
                start_date=loan.start_date,
            )
            for loan in snapshot.loans
        ],
        one_off_expenses=[
            OneOffExpenseConfig(id=item.id, title=item.title, amount=item.amount, date=item.date)
            for item in snapshot.one_off_expenses
        ],
        one_off_income=[
            OneOffIncomeConfig(
                id=item.id,
                title=item.title,
                amount=item.amount,
                date=item.date,
                is_from_house_sale=item.is_from_house_sale or None,
                iva=item.iva_percent,
                irpf=item.irpf_percent,
            )
            for item in snapshot.one_off_income
        ],
        settings=SettingsConfig(
            starting_balance=settings.starting_balance,
            progress_tracking_date=settings.progress_tracking_date,
            dashboard_date=settings.dashboard_date,
            monthly_expenses_deviation=settings.monthly_expenses_deviation_percent,
            irpf_brackets=[
                IRPFBracketConfig(
                    id=b.id,
                    from_amount=b.from_amount,
                    to_amount=b.to_amount,
                    rate=b.rate_percent,
                )
                for b in settings.irpf_brackets
            ],
            is_freelance_mode=settings.is_freelance_mode,
        ),
        selling_house=(
            SellingHouseConfig(
                sale_amount=scenario.sale_amount,
                selected_loan_ids=sorted(scenario.loan_ids),
                selling_date=scenario.selling_date,
            )
            if scenario is not None
            else None
        ),
    )


def snapshot_to_dict(snapshot: FinancialSnapshot) -> Dict[str, Any]:
    """
    Convert a snapshot to its JSON-ready dictionary.

    Parameters
    ----------
    snapshot : FinancialSnapshot
        Snapshot to serialize

    Returns
    -------
    dict
        camelCase keys, ISO dates, ``schemaVersion`` included. Unset
        optional fields are omitted, except ``toAmount`` of an unbounded
        bracket which is written as null.
    """
    data = _snapshot_config(snapshot).model_dump(mode="json", by_alias=True, exclude_none=True)
    # Unbounded brackets keep an explicit null upper bound.
    for raw, bracket in zip(data["settings"].get("irpfBrackets", []), snapshot.settings.irpf_brackets):
        raw.setdefault("toAmount", bracket.to_amount)
    return data


# ---------------------------------------------------------------------------
# Config -> dataclass
# ---------------------------------------------------------------------------

def snapshot_from_dict(data: Dict[str, Any]) -> FinancialSnapshot:
    """
    Create a snapshot from its dictionary representation.

    Parameters
    ----------
    data : dict
        Parsed JSON content (camelCase or snake_case keys)

    Returns
    -------
    FinancialSnapshot
        Reconstructed snapshot

    Raises
    ------
    SnapshotFormatError
        If *data* is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise SnapshotFormatError(
            f"Snapshot must be a JSON object, got {type(data).__name__}"
        )

    try:
        config = SnapshotConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise SnapshotFormatError(f"Invalid snapshot data: {e}") from e

    schema_version = config.schema_version
    if schema_version is not None and schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Snapshot schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )

    s = config.settings
    settings = Settings(
        starting_balance=s.starting_balance,
        monthly_expenses_deviation_percent=s.monthly_expenses_deviation or 0.0,
        is_freelance_mode=s.is_freelance_mode is not False,
        irpf_brackets=tuple(
            IRPFBracket(
                id=b.id,
                from_amount=b.from_amount,
                to_amount=b.to_amount,
                rate_percent=b.rate,
            )
            for b in (s.irpf_brackets or [])
        ),
        progress_tracking_date=s.progress_tracking_date,
        dashboard_date=s.dashboard_date,
    )

    selling_house: Optional[SellingHouseScenario] = None
    if config.selling_house is not None:
        selling_house = SellingHouseScenario(
            sale_amount=config.selling_house.sale_amount,
            selling_date=config.selling_house.selling_date,
            loan_ids=frozenset(config.selling_house.selected_loan_ids),
        )

    return FinancialSnapshot(
        recurring_income=tuple(
            RecurringIncome(
                id=c.id,
                title=c.title,
                amount=c.amount,
                start_date=c.start_date,
                end_date=c.end_date,
                iva_percent=c.iva,
                irpf_percent=c.irpf,
            )
            for c in config.recurring_income
        ),
        recurring_expenses=tuple(
            RecurringExpense(
                id=c.id,
                title=c.title,
                amount=c.amount,
                start_date=c.start_date,
                end_date=c.end_date,
                is_professional=bool(c.is_professional),
            )
            for c in config.recurring_expenses
        ),
        loans=tuple(
            Loan(
                id=c.id,
                title=c.title,
                outstanding_balance=c.outstanding_balance,
                monthly_payment=c.monthly_payment,
                interest_rate_percent=c.interest_rate,
                start_date=c.start_date,
                maturity_date=c.maturity_date,
            )
            for c in config.loans
        ),
        one_off_expenses=tuple(
            OneOffExpense(id=c.id, title=c.title, amount=c.amount, date=c.date)
            for c in config.one_off_expenses
        ),
        one_off_income=tuple(
            OneOffIncome(
                id=c.id,
                title=c.title,
                amount=c.amount,
                date=c.date,
                iva_percent=c.iva,
                irpf_percent=c.irpf,
                is_from_house_sale=bool(c.is_from_house_sale),
            )
            for c in config.one_off_income
        ),
        settings=settings,
        selling_house=selling_house,
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def _write_json(data: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Invalid JSON file: {path}") from e
    except OSError as e:
        raise SnapshotFormatError(f"Error reading file: {path}") from e


def save_snapshot(snapshot: FinancialSnapshot, path: Path) -> None:
    """
    Save a snapshot to *path* as indented JSON.

    Parent directories are created as needed.

    Examples
    --------
    >>> from pathlib import Path
    >>> save_snapshot(snapshot, Path("financial-data.json"))
    """
    _write_json(snapshot_to_dict(snapshot), path)
    logger.info("Saved snapshot to %s", path)


def load_snapshot(path: Path) -> FinancialSnapshot:
    """
    Load the working snapshot from *path*.

    A missing file yields an empty snapshot (no items, starting balance 0),
    so a first run needs no setup.

    Raises
    ------
    SnapshotFormatError
        If the file exists but cannot be read, parsed or validated
    """
    if not path.exists():
        logger.info("No data file at %s, starting from an empty snapshot", path)
        return FinancialSnapshot()

    snapshot = snapshot_from_dict(_read_json(path))
    logger.info("Loaded snapshot from %s", path)
    return snapshot


def export_filename(today: date) -> str:
    """Name of an export file written on *today*: ``financial-data-YYYY-MM-DD.json``."""
    return f"financial-data-{today.isoformat()}.json"


def export_snapshot(
    snapshot: FinancialSnapshot,
    directory: Path,
    *,
    today: Optional[date] = None,
) -> Path:
    """
    Export a snapshot to a dated file in *directory*.

    Parameters
    ----------
    snapshot : FinancialSnapshot
        Snapshot to export
    directory : Path
        Target directory (created if missing)
    today : date, optional
        Export date used in the file name; defaults to the current date

    Returns
    -------
    Path
        Path of the written file
    """
    path = directory / export_filename(today or date.today())
    _write_json(snapshot_to_dict(snapshot), path)
    logger.info("Exported snapshot to %s", path)
    return path


def import_snapshot(path: Path) -> FinancialSnapshot:
    """
    Import a snapshot from an exported file.

    Unlike `load_snapshot`, the file must exist.

    Raises
    ------
    SnapshotFormatError
        "Error reading file" when *path* cannot be read, "Invalid JSON
        file" when it is not JSON, or a validation message when the
        content does not describe a snapshot
    """
    snapshot = snapshot_from_dict(_read_json(path))
    logger.info("Imported snapshot from %s", path)
    return snapshot
