"""
Unit tests for serialization.py module.

Tests snapshot conversion, the working data file and export/import.
"""

import json
import warnings
from dataclasses import replace
from datetime import date

import pytest

from balancecast.exceptions import BalanceCastError, SnapshotFormatError, ValidationError
from balancecast.scenario import SellingHouseScenario
from balancecast.serialization import (
    SCHEMA_VERSION,
    export_filename,
    export_snapshot,
    import_snapshot,
    load_snapshot,
    save_snapshot,
    snapshot_from_dict,
    snapshot_to_dict,
)
from balancecast.snapshot import FinancialSnapshot


# ============================================================================
# DICT CONVERSION
# ============================================================================

class TestSnapshotFromDict:
    """Test snapshot_from_dict()."""

    def test_stored_format(self, snapshot_data):
        snapshot = snapshot_from_dict(snapshot_data)
        income = snapshot.recurring_income[0]
        assert income.iva_percent == 21
        assert income.irpf_percent == 15
        assert income.start_date == date(2024, 1, 1)
        assert income.end_date is None
        assert snapshot.recurring_expenses[1].is_professional is True
        assert snapshot.recurring_expenses[0].is_professional is False
        assert snapshot.loans[0].interest_rate_percent == 0
        assert snapshot.one_off_expenses[0].date == date(2025, 3, 10)
        assert snapshot.settings.monthly_expenses_deviation_percent == 5
        assert snapshot.settings.is_freelance_mode is True
        assert snapshot.settings.irpf_brackets[1].to_amount is None
        assert snapshot.selling_house.selling_date is None
        assert snapshot.selling_house.loan_ids == frozenset()

    def test_null_freelance_mode_is_on(self):
        snapshot = snapshot_from_dict({"settings": {"startingBalance": 0, "isFreelanceMode": None}})
        assert snapshot.settings.is_freelance_mode is True
        off = snapshot_from_dict({"settings": {"startingBalance": 0, "isFreelanceMode": False}})
        assert off.settings.is_freelance_mode is False

    def test_missing_deviation_is_zero(self):
        snapshot = snapshot_from_dict({"settings": {"startingBalance": 100}})
        assert snapshot.settings.monthly_expenses_deviation_percent == 0.0
        assert snapshot.settings.starting_balance == 100

    def test_invalid_data(self):
        with pytest.raises(SnapshotFormatError, match="Invalid snapshot data"):
            snapshot_from_dict({"loans": [{"id": "x"}]})

    def test_not_an_object(self):
        with pytest.raises(SnapshotFormatError):
            snapshot_from_dict([1, 2, 3])

    def test_error_hierarchy(self):
        assert issubclass(SnapshotFormatError, ValidationError)
        assert issubclass(SnapshotFormatError, BalanceCastError)

    def test_no_version_no_warning(self, snapshot_data):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            snapshot_from_dict(snapshot_data)

    def test_version_mismatch_warns(self, snapshot_data):
        snapshot_data["schemaVersion"] = "0.0.1"
        with pytest.warns(UserWarning, match="schema version"):
            snapshot_from_dict(snapshot_data)


class TestSnapshotToDict:
    """Test snapshot_to_dict()."""

    def test_keys(self, snapshot):
        data = snapshot_to_dict(snapshot)
        assert data["schemaVersion"] == SCHEMA_VERSION
        assert set(data) >= {
            "recurringIncome", "recurringExpenses", "loans",
            "oneOffExpenses", "oneOffIncome", "settings",
        }
        assert "sellingHouse" not in data
        assert data["recurringIncome"][0]["iva"] == 21
        assert data["loans"][0]["interestRate"] == 3.0
        assert data["loans"][0]["startDate"] == "2020-01-01"
        assert data["settings"]["isFreelanceMode"] is True

    def test_unset_fields_omitted(self, snapshot):
        data = snapshot_to_dict(snapshot)
        assert "startDate" not in data["recurringIncome"][0]
        assert "isProfessional" not in data["recurringExpenses"][0]
        assert data["recurringExpenses"][1]["isProfessional"] is True

    def test_unbounded_bracket_keeps_null(self, snapshot):
        brackets = snapshot_to_dict(snapshot)["settings"]["irpfBrackets"]
        assert brackets[-1]["toAmount"] is None
        assert brackets[0]["toAmount"] == 12_450

    def test_round_trip(self, snapshot):
        scenario = SellingHouseScenario(300_000, date(2026, 6, 1), frozenset({"loan-1", "loan-2"}))
        original = replace(snapshot, selling_house=scenario)
        assert snapshot_from_dict(snapshot_to_dict(original)) == original

    def test_json_serializable(self, snapshot):
        json.dumps(snapshot_to_dict(snapshot))


# ============================================================================
# FILES
# ============================================================================

class TestFiles:
    """Test save/load/export/import."""

    def test_save_and_load(self, snapshot, tmp_path):
        path = tmp_path / "nested" / "data.json"
        save_snapshot(snapshot, path)
        assert path.exists()
        assert load_snapshot(path) == snapshot

    def test_load_missing_file_is_empty(self, tmp_path):
        snapshot = load_snapshot(tmp_path / "missing.json")
        assert snapshot == FinancialSnapshot()
        assert snapshot.settings.starting_balance == 0

    def test_load_stored_file(self, data_file):
        assert len(load_snapshot(data_file).recurring_expenses) == 2

    def test_export_filename(self):
        assert export_filename(date(2025, 3, 7)) == "financial-data-2025-03-07.json"

    def test_export_and_import(self, snapshot, tmp_path):
        path = export_snapshot(snapshot, tmp_path / "exports", today=date(2025, 3, 7))
        assert path.name == "financial-data-2025-03-07.json"
        assert import_snapshot(path) == snapshot

    def test_import_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotFormatError, match="Invalid JSON file"):
            import_snapshot(path)

    def test_import_missing_file(self, tmp_path):
        with pytest.raises(SnapshotFormatError, match="Error reading file"):
            import_snapshot(tmp_path / "missing.json")

    def test_load_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[", encoding="utf-8")
        with pytest.raises(SnapshotFormatError):
            load_snapshot(path)
