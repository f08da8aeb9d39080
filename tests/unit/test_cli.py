"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json

import pytest
from click.testing import CliRunner

from cashledger.cli import __version__, main


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def oversold_file(tmp_path):
    data = {
        "transactions": [
            {"date": "2024-01-01", "kind": "BUY", "quantity": 5, "unit_price": 10},
            {"date": "2024-02-01", "kind": "SELL", "quantity": 8, "unit_price": 12},
        ]
    }
    path = tmp_path / "oversold.json"
    path.write_text(json.dumps(data))
    return path


# ============================================================================
# MAIN GROUP
# ============================================================================

class TestMainGroup:

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
        assert "cashledger" in result.output

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("fifo", "schedule", "xirr", "config"):
            assert command in result.output


# ============================================================================
# FIFO COMMAND
# ============================================================================

class TestFifoCommand:

    def test_quiet_output(self, runner, transactions_file):
        result = runner.invoke(main, ["-q", "fifo", "-f", str(transactions_file)])
        assert result.exit_code == 0
        assert "Total realized gain: 192.00" in result.output
        assert "Open quantity: 6" in result.output

    def test_market_price_and_xirr(self, runner, transactions_file):
        result = runner.invoke(
            main,
            ["-q", "fifo", "-f", str(transactions_file), "--market-price", "120", "--as-of", "2024-12-31"],
        )
        assert result.exit_code == 0
        assert "Unrealized gain: 114.00" in result.output
        assert "XIRR:" in result.output

    def test_rich_output(self, runner, transactions_file):
        result = runner.invoke(main, ["fifo", "-f", str(transactions_file)])
        assert result.exit_code == 0
        assert "192.00" in result.output

    def test_output_file(self, runner, transactions_file, tmp_path):
        out = tmp_path / "result.json"
        result = runner.invoke(main, ["-q", "fifo", "-f", str(transactions_file), "-o", str(out)])
        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["instrument"] == "AAPL"
        assert data["total_realized_gain"] == pytest.approx(192.0)

    def test_partial_oversell(self, runner, oversold_file):
        result = runner.invoke(main, ["-q", "fifo", "-f", str(oversold_file)])
        assert result.exit_code == 0
        assert "Oversells: 1" in result.output

    def test_strict_oversell_fails(self, runner, oversold_file):
        result = runner.invoke(main, ["-q", "fifo", "-f", str(oversold_file), "--strict"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_policy_from_environment(self, runner, oversold_file):
        result = runner.invoke(
            main, ["-q", "fifo", "-f", str(oversold_file)], env={"CASHLEDGER_OVERSELL_POLICY": "raise"}
        )
        assert result.exit_code == 1

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["fifo", "-f", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


# ============================================================================
# SCHEDULE COMMAND
# ============================================================================

class TestScheduleCommand:

    def test_quiet_output(self, runner, contracts_file):
        result = runner.invoke(main, ["-q", "schedule", "-f", str(contracts_file)])
        assert result.exit_code == 0
        assert "c1: 12 entries" in result.output

    def test_rich_output(self, runner, contracts_file):
        result = runner.invoke(main, ["schedule", "-f", str(contracts_file)])
        assert result.exit_code == 0
        assert "c1" in result.output

    def test_output_file(self, runner, contracts_file, tmp_path):
        out = tmp_path / "schedules.json"
        result = runner.invoke(main, ["-q", "schedule", "-f", str(contracts_file), "-o", str(out)])
        assert result.exit_code == 0
        data = json.loads(out.read_text())
        entries = data["schedules"][0]["entries"]
        assert len(entries) == 12
        assert entries[3]["amount_local"] == pytest.approx(1061.208)

    def test_unknown_contract_id(self, runner, contracts_file):
        result = runner.invoke(main, ["-q", "schedule", "-f", str(contracts_file), "-c", "zzz"])
        assert result.exit_code == 1
        assert "zzz" in result.output

    def test_invalid_contract(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"contracts": [{"start_date": "2024-01-01", "duration_months": 0, "initial_amount": 1}]}))
        result = runner.invoke(main, ["-q", "schedule", "-f", str(path)])
        assert result.exit_code == 1


# ============================================================================
# XIRR COMMAND
# ============================================================================

class TestXirrCommand:

    def test_rate(self, runner, cashflows_file):
        result = runner.invoke(main, ["xirr", "-f", str(cashflows_file)])
        assert result.exit_code == 0
        assert "XIRR: 10.00%" in result.output

    def test_no_solution_is_na(self, runner, tmp_path):
        path = tmp_path / "flows.json"
        path.write_text(json.dumps({"amounts": [100, 200], "dates": ["2024-01-01", "2025-01-01"]}))
        result = runner.invoke(main, ["xirr", "-f", str(path)])
        assert result.exit_code == 0
        assert "N/A" in result.output


# ============================================================================
# CONFIG COMMAND
# ============================================================================

class TestConfigCommand:

    def test_show_json(self, runner):
        result = runner.invoke(main, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert "oversell_policy" in data

    def test_show_table(self, runner):
        result = runner.invoke(main, ["config", "show"])
        assert result.exit_code == 0
        assert "local_currency" in result.output
