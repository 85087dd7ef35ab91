"""
Tests for the CLI interface.
"""
import os
import shutil
import tempfile

import yaml
from typer.testing import CliRunner

from vehicle_analytics.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL

runner = CliRunner()

AS_OF = ["--as-of", "2025-06-01"]

SNAPSHOT = {
    "vehicle": {
        "make": "Honda",
        "model": "Civic",
        "model_year": 2021,
        "current_mileage": 40000,
        "purchase_price": 24000,
        "purchase_date": "2021-05-01",
        "current_value": 18000,
    },
    "costs": [
        {"date": "2023-01-10", "category": "maintenance", "amount": 80},
        {"date": "2024-02-15", "category": "repair", "amount": 450},
    ],
    "valuations": [
        {"date": "2024-01-01", "estimated_value": 19500},
        {"date": "2025-01-01", "estimated_value": 18000},
    ],
    "loan": {
        "principal": 20000,
        "annual_rate_percent": 5.5,
        "term_months": 60,
        "start_date": "2021-05-01",
    },
    "monthly_running_costs": 300,
}


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, data, filename: str = "vehicle.yaml") -> str:
        path = os.path.join(self.temp_dir, filename)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f)
        return path

    def test_no_command_prints_hint(self):
        """Test the bare command."""
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "--help" in result.output

    def test_deal_command(self):
        """Test scoring a deal from options."""
        result = runner.invoke(app, AS_OF + [
            "deal", "--make", "Toyota", "--model", "Camry", "--year", "2022",
            "--mileage", "36000", "--price", "15660", "--msrp", "30000",
            "--accident", "minor", "--accident", "major",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Deal Analysis" in result.output
        assert "2 accidents reported" in result.output

    def test_deal_invalid_accident(self):
        """Test that an unknown accident severity fails."""
        result = runner.invoke(app, AS_OF + [
            "deal", "--make", "Toyota", "--model", "Camry", "--year", "2022",
            "--mileage", "36000", "--price", "15000", "--accident", "scratch",
        ])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error" in result.output

    def test_deal_invalid_price(self):
        """Test that a non-positive price fails cleanly."""
        result = runner.invoke(app, AS_OF + [
            "deal", "--make", "Toyota", "--model", "Camry", "--year", "2022",
            "--mileage", "36000", "--price", "0",
        ])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "asking_price" in result.output

    def test_quality_command(self):
        """Test quality scoring from a snapshot."""
        result = runner.invoke(app, AS_OF + ["quality", self._write(SNAPSHOT)])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Quality Score" in result.output
        assert "/850" in result.output

    def test_sell_command_uses_loan_balance(self):
        """Test sell advice with the loan balance taken from the snapshot."""
        result = runner.invoke(app, AS_OF + ["sell", self._write(SNAPSHOT)])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Sell Timing" in result.output
        assert "Equity" in result.output

    def test_sell_command_underwater(self):
        """Test that an explicit large balance reports the underwater hold."""
        result = runner.invoke(app, AS_OF + ["sell", self._write(SNAPSHOT), "--loan-balance", "50000"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "holdOff" in result.output
        assert "Underwater" in result.output

    def test_maintenance_command(self):
        """Test the maintenance forecast."""
        result = runner.invoke(app, AS_OF + ["maintenance", self._write(SNAPSHOT)])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Maintenance Forecast" in result.output
        assert "Oil Change" in result.output

    def test_mistyped_snapshot_value_fails_cleanly(self):
        """Test that a quoted MSRP in a snapshot is reported as an error."""
        snapshot = dict(SNAPSHOT, vehicle=dict(SNAPSHOT["vehicle"], trim_msrp="25000"))
        result = runner.invoke(app, AS_OF + ["quality", self._write(snapshot)])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error" in result.output
        assert "trim_msrp" in result.output

    def test_missing_snapshot_fails(self):
        """Test that a missing snapshot file fails."""
        result = runner.invoke(app, AS_OF + ["quality", os.path.join(self.temp_dir, "missing.yaml")])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "not found" in result.output

    def test_loan_command(self):
        """Test the loan summary."""
        result = runner.invoke(app, AS_OF + [
            "loan", "--principal", "30000", "--rate", "6", "--term", "60", "--start", "2025-01-15",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "$579.98" in result.output

    def test_loan_with_extra_and_schedule(self):
        """Test extra payments and the schedule table."""
        result = runner.invoke(app, AS_OF + [
            "loan", "--principal", "30000", "--rate", "6", "--term", "60",
            "--start", "2025-01-15", "--extra", "2025-03-15:5000", "--schedule",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Amortization Schedule" in result.output
        assert "Extra payments save" in result.output

    def test_loan_bad_extra(self):
        """Test that a malformed extra payment fails."""
        result = runner.invoke(app, AS_OF + [
            "loan", "--principal", "30000", "--rate", "6", "--term", "60", "--extra", "5000",
        ])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "YYYY-MM-DD:AMOUNT" in result.output

    def test_loan_invalid_terms(self):
        """Test that invalid loan terms fail."""
        result = runner.invoke(app, AS_OF + ["loan", "--principal", "30000", "--rate", "6", "--term", "0"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "term_months" in result.output

    def test_project_command(self):
        """Test the value projection table."""
        result = runner.invoke(app, AS_OF + [
            "project", "--make", "Toyota", "--model", "Camry", "--value", "20000", "--months", "6",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "$20,000.00" in result.output
        assert "2025-12-01" in result.output

    def test_demo_command(self):
        """Test that the demo runs every analysis."""
        result = runner.invoke(app, AS_OF + ["demo"])
        assert result.exit_code == EXIT_CODE_PASS
        for heading in ("Deal Analysis", "Quality Score", "Sell Timing", "Maintenance Forecast"):
            assert heading in result.output

    def test_invalid_as_of(self):
        """Test that a malformed reference date fails."""
        result = runner.invoke(app, ["--as-of", "June 1st", "demo"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "--as-of" in result.output

    def test_config_file_applied(self):
        """Test that a config file changes the analysis."""
        config = self._write({"maintenance": {"horizon_years": 2}}, "engine.yaml")
        result = runner.invoke(app, AS_OF + ["--config", config, "maintenance", self._write(SNAPSHOT)])
        assert result.exit_code == EXIT_CODE_PASS
        assert "2027" in result.output
        assert "2028" not in result.output

    def test_invalid_config_fails(self):
        """Test that an invalid config file fails."""
        config = self._write({"unknown": {}}, "engine.yaml")
        result = runner.invoke(app, AS_OF + ["--config", config, "demo"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown configuration keys" in result.output
