"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
Value checks use --quiet, which prints plain lines instead of Rich tables.
"""

import json
from datetime import date

import pandas as pd
import pytest
from click.testing import CliRunner

from balancecast import __version__
from balancecast.cli import main
from balancecast.serialization import load_snapshot


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner(monkeypatch):
    """CLI runner with a clean BALANCECAST_* environment."""
    for name in ("LOG_LEVEL", "DATA_FILE", "EXPORT_DIR", "DEFAULT_HORIZON_MONTHS"):
        monkeypatch.delenv(f"BALANCECAST_{name}", raising=False)
    return CliRunner()


@pytest.fixture
def sale_file(tmp_path, snapshot_data):
    """Stored snapshot with a house sale in June 2026 repaying the car loan."""
    snapshot_data["sellingHouse"] = {
        "saleAmount": 300000,
        "selectedLoanIds": ["loan-2"],
        "sellingDate": "2026-06-01",
    }
    path = tmp_path / "sale.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return path


# ============================================================================
# MAIN
# ============================================================================

class TestMain:
    """Test the command group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("project", "month", "loans", "taxes", "house-sale", "data", "info"):
            assert command in result.output

    def test_info(self, runner, data_file):
        result = runner.invoke(main, ["-q", "--data", str(data_file), "info"])
        assert result.exit_code == 0
        assert f"BalanceCast Version: {__version__}" in result.output
        assert str(data_file) in result.output

    def test_invalid_environment(self, runner, monkeypatch):
        monkeypatch.setenv("BALANCECAST_DEFAULT_HORIZON_MONTHS", "0")
        result = runner.invoke(main, ["info"])
        assert result.exit_code == 1
        assert "Invalid environment settings" in result.output


# ============================================================================
# PROJECT
# ============================================================================

class TestProjectCommand:
    """Test the project command."""

    def test_quiet_rows(self, runner, data_file):
        """Jan pays the Q4 filing; expenses carry the 5% deviation."""
        result = runner.invoke(
            main, ["-q", "--data", str(data_file), "project", "--today", "2025-01-15", "--months", "3"]
        )
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines == [
            "2025-01 8077.50",
            "2025-02 9755.00",
            "2025-03 10232.50",
            "Final balance: 10232.50",
        ]

    def test_horizon(self, runner, data_file):
        result = runner.invoke(
            main, ["-q", "--data", str(data_file), "project", "--today", "2025-01-15", "--horizon", "2025-02-28"]
        )
        assert result.exit_code == 0
        assert result.output.count("\n") == 3

    def test_rich_output(self, runner, data_file):
        result = runner.invoke(
            main, ["--data", str(data_file), "project", "--today", "2025-01-15", "--months", "2"]
        )
        assert result.exit_code == 0
        assert "Summary" in result.output

    def test_default_horizon_empty_file(self, runner, tmp_path):
        result = runner.invoke(
            main, ["-q", "--data", str(tmp_path / "none.json"), "project", "--today", "2025-01-15"]
        )
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 13
        assert lines[-1] == "Final balance: 0.00"

    def test_saved_progress_tracking_date(self, runner, tmp_path, snapshot_data):
        snapshot_data["settings"]["progressTrackingDate"] = "2025-04-30"
        path = tmp_path / "data.json"
        path.write_text(json.dumps(snapshot_data), encoding="utf-8")
        result = runner.invoke(main, ["-q", "--data", str(path), "project", "--today", "2025-01-15"])
        assert result.exit_code == 0
        assert result.output.strip().splitlines()[-2].startswith("2025-04 ")

    def test_csv_output(self, runner, data_file, tmp_path):
        out = tmp_path / "rows.csv"
        result = runner.invoke(
            main,
            ["-q", "--data", str(data_file), "project", "--today", "2025-01-15", "--months", "3", "-o", str(out)],
        )
        assert result.exit_code == 0
        frame = pd.read_csv(out, index_col="month")
        assert len(frame) == 3
        assert frame["ending_balance"].iloc[-1] == pytest.approx(10_232.5)

    def test_json_output(self, runner, data_file, tmp_path):
        out = tmp_path / "rows.json"
        result = runner.invoke(
            main,
            ["-q", "--data", str(data_file), "project", "--today", "2025-01-15", "--months", "3", "-o", str(out)],
        )
        assert result.exit_code == 0
        rows = json.loads(out.read_text(encoding="utf-8"))
        assert [r["month"] for r in rows] == ["2025-01", "2025-02", "2025-03"]
        assert rows[0]["irpfQuarterly"] == pytest.approx(1_710)

    def test_horizon_and_months_conflict(self, runner, data_file):
        result = runner.invoke(
            main, ["--data", str(data_file), "project", "--months", "3", "--horizon", "2025-12-31"]
        )
        assert result.exit_code != 0

    def test_bad_output_suffix(self, runner, data_file, tmp_path):
        result = runner.invoke(
            main, ["--data", str(data_file), "project", "--months", "3", "-o", str(tmp_path / "rows.txt")]
        )
        assert result.exit_code != 0

    def test_invalid_data_file(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(main, ["--data", str(path), "project", "--months", "1"])
        assert result.exit_code == 1
        assert "Invalid JSON file" in result.output


# ============================================================================
# REPORTS
# ============================================================================

class TestReportCommands:
    """Test month, loans, taxes and house-sale."""

    def test_month(self, runner, data_file):
        """3,180 - 1,050 * 1.05 - 400."""
        result = runner.invoke(main, ["-q", "--data", str(data_file), "month", "--date", "2025-02-10"])
        assert result.exit_code == 0
        assert result.output.strip() == "2025-02 1677.50"

    def test_month_drops_loans_repaid_by_house_sale(self, runner, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({
            "recurringIncome": [{"id": "salary", "title": "Salary", "amount": 3000}],
            "loans": [
                {"id": "mortgage", "title": "Mortgage", "outstandingBalance": 100000,
                 "maturityDate": "2040-01-01", "monthlyPayment": 800, "interestRate": 0,
                 "startDate": "2020-01-01"},
            ],
            "settings": {"startingBalance": 0, "isFreelanceMode": False},
            "sellingHouse": {"saleAmount": 200000, "selectedLoanIds": ["mortgage"], "sellingDate": "2025-06-01"},
        }), encoding="utf-8")

        before = runner.invoke(main, ["-q", "--data", str(path), "month", "--date", "2025-05-01"])
        after = runner.invoke(main, ["-q", "--data", str(path), "month", "--date", "2025-09-01"])
        assert before.output.strip() == "2025-05 2200.00"
        assert after.output.strip() == "2025-09 3000.00"

    def test_month_rich(self, runner, data_file):
        result = runner.invoke(main, ["--data", str(data_file), "month", "--date", "2025-02-10"])
        assert result.exit_code == 0
        assert "Result" in result.output

    def test_loans(self, runner, data_file):
        result = runner.invoke(main, ["-q", "--data", str(data_file), "loans", "--date", "2025-01-01"])
        assert result.exit_code == 0
        assert result.output.strip() == "Car: 9200.00"

    def test_taxes(self, runner, data_file):
        """Tax on 34,200: 12,450 * 19% + 21,750 * 24%."""
        result = runner.invoke(main, ["-q", "--data", str(data_file), "taxes", "--year", "2025"])
        assert result.exit_code == 0
        assert result.output.strip().splitlines() == [
            "Net taxable income: 34200.00",
            "IRPF due: 7585.50",
            "Renta: 0.00",
        ]

    def test_taxes_rich(self, runner, data_file):
        result = runner.invoke(main, ["--data", str(data_file), "taxes", "--year", "2025"])
        assert result.exit_code == 0
        assert "Renta 2025" in result.output

    def test_house_sale(self, runner, sale_file):
        result = runner.invoke(main, ["-q", "--data", str(sale_file), "house-sale", "--date", "2025-01-01"])
        assert result.exit_code == 0
        assert result.output.strip() == "Final amount: 250285.50"

    def test_house_sale_save(self, runner, sale_file):
        result = runner.invoke(
            main, ["-q", "--data", str(sale_file), "house-sale", "--date", "2025-01-01", "--save"]
        )
        assert result.exit_code == 0
        saved = load_snapshot(sale_file)
        entries = [i for i in saved.one_off_income if i.is_from_house_sale]
        assert len(entries) == 1
        assert entries[0].date == date(2026, 6, 1)
        assert entries[0].amount == pytest.approx(250_285.5)

    def test_house_sale_without_scenario(self, runner, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"settings": {"startingBalance": 0}}), encoding="utf-8")
        result = runner.invoke(main, ["--data", str(path), "house-sale"])
        assert result.exit_code == 1
        assert "No house-sale scenario" in result.output


# ============================================================================
# DATA
# ============================================================================

class TestDataCommands:
    """Test the data command group."""

    def test_validate(self, runner, data_file):
        result = runner.invoke(main, ["-q", "data", "validate", str(data_file)])
        assert result.exit_code == 0
        assert result.output.strip() == "valid"

    def test_validate_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"loans": [{"id": "x"}]}), encoding="utf-8")
        result = runner.invoke(main, ["data", "validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid snapshot data" in result.output

    def test_show_json(self, runner, data_file):
        result = runner.invoke(main, ["-q", "data", "show", str(data_file)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["settings"]["startingBalance"] == 10_000

    def test_show_table(self, runner, data_file):
        result = runner.invoke(main, ["--data", str(data_file), "data", "show"])
        assert result.exit_code == 0
        assert "Settings" in result.output

    def test_create(self, runner, tmp_path):
        path = tmp_path / "new.json"
        result = runner.invoke(main, ["data", "create", str(path)])
        assert result.exit_code == 0
        snapshot = load_snapshot(path)
        assert snapshot.settings.starting_balance == 5_000
        assert len(snapshot.settings.irpf_brackets) == 6

        again = runner.invoke(main, ["data", "create", str(path)])
        assert again.exit_code == 1

    def test_export(self, runner, data_file, tmp_path):
        out_dir = tmp_path / "exports"
        result = runner.invoke(main, ["--data", str(data_file), "data", "export", "--dir", str(out_dir)])
        assert result.exit_code == 0
        files = list(out_dir.glob("financial-data-*.json"))
        assert len(files) == 1
        assert load_snapshot(files[0]) == load_snapshot(data_file)

    def test_import(self, runner, data_file, tmp_path):
        target = tmp_path / "working.json"
        result = runner.invoke(main, ["-q", "--data", str(target), "data", "import", str(data_file)])
        assert result.exit_code == 0
        assert load_snapshot(target) == load_snapshot(data_file)

    def test_import_missing_leaves_target(self, runner, tmp_path):
        target = tmp_path / "working.json"
        result = runner.invoke(main, ["--data", str(target), "data", "import", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Error reading file" in result.output
        assert not target.exists()

    def test_import_unwritable_target(self, runner, data_file, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        target = blocker / "working.json"
        result = runner.invoke(main, ["--data", str(target), "data", "import", str(data_file)])
        assert result.exit_code == 1
        assert "Error writing file" in result.output
