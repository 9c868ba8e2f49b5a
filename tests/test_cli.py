"""
Tests for the CLI interface.
"""
import json
import logging
import os
import tempfile
from datetime import date, timedelta
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from invoice_insights.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from invoice_insights.core.aggregation import ReportState, ReportView, empty_analytics_report
from invoice_insights.utils.logger import LOGGER_NAME

runner = CliRunner()

START = (date.today() - timedelta(days=200)).isoformat()
END = (date.today() + timedelta(days=1)).isoformat()


@pytest.fixture
def workspace():
    """Temporary directory with a quiet config and database path."""
    temp_dir = tempfile.mkdtemp()
    config_path = os.path.join(temp_dir, "config.yaml")
    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.dump({
            "database": {"path": os.path.join(temp_dir, "test.db")},
            "logging": {"level": "WARNING"},
        }, f)
    yield temp_dir, config_path
    import shutil
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach the CLI's handler so later tests don't log to a closed stream."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def invoke(config_path, *args):
    return runner.invoke(app, ["--config", config_path, *args])


class TestCLI:
    """Test CLI commands."""

    def test_init(self, workspace):
        """Init creates the database."""
        temp_dir, config_path = workspace

        result = invoke(config_path, "init")

        assert result.exit_code == EXIT_CODE_PASS
        assert "Database initialized successfully" in result.output
        assert os.path.exists(os.path.join(temp_dir, "test.db"))

    def test_analytics_json(self, workspace):
        """Seeded data produces the analytics payload."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "analytics", "--start", START, "--end", END, "--json")

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["overview"]["totalRevenue"] == 20_350_000
        assert data["overview"]["totalInvoices"] == 4
        assert data["overview"]["paidInvoices"] == 3
        assert data["overview"]["completionRate"] == 75
        assert data["overview"]["newClients"] == 3
        assert data["overview"]["averagePaymentTime"] == 3
        assert len(data["revenueTrend"]) == 6

    def test_analytics_table(self, workspace):
        """The default output shows formatted totals."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "analytics", "--start", START, "--end", END)

        assert result.exit_code == EXIT_CODE_PASS
        assert "IDR 20.350.000" in result.output
        assert "Completion rate: 75%" in result.output

    def test_analytics_without_database(self, workspace):
        """A missing schema reports the failure and exits non-zero."""
        _, config_path = workspace

        result = invoke(config_path, "analytics", "--start", START, "--end", END)

        assert result.exit_code == EXIT_CODE_FAIL
        assert "invoice-insights init" in result.output

    def test_invalid_dates(self, workspace):
        """Dates that are not ISO or out of order are usage errors."""
        _, config_path = workspace

        assert invoke(config_path, "analytics", "--start", "yesterday", "--end", END).exit_code == 2
        assert invoke(config_path, "analytics", "--start", END, "--end", START).exit_code == 2

    def test_payments_json(self, workspace):
        """Payments payload has a 30-day trend."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "payments", "--start", START, "--end", END, "--json")

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert len(data["paymentTrend"]) == 30
        assert data["overview"]["pendingPayments"] == 1

    @pytest.mark.parametrize("fmt,magic", [("csv", b'"Report Type"'), ("pdf", b"%PDF"), ("txt", b"AKUSARA")])
    def test_export(self, workspace, fmt, magic):
        """Export writes the named file in the requested format."""
        temp_dir, config_path = workspace
        invoke(config_path, "seed-demo")
        output = os.path.join(temp_dir, "out")

        result = invoke(config_path, "export", "--format", fmt, "--start", START, "--end", END, "--output", output)

        assert result.exit_code == EXIT_CODE_PASS
        path = os.path.join(output, f"analytics-{START}-{END}.{fmt}")
        with open(path, 'rb') as f:
            assert f.read().startswith(magic)

    def test_export_invalid_format(self, workspace):
        temp_dir, config_path = workspace
        invoke(config_path, "init")

        result = invoke(config_path, "export", "--format", "xlsx", "--start", START, "--end", END,
                        "--output", temp_dir)

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid format" in result.output

    def test_export_when_store_fails(self, workspace):
        """Nothing is written when the records can't be loaded."""
        temp_dir, config_path = workspace
        failed = ReportView(state=ReportState.FAILED, report=empty_analytics_report(), error="locked")

        with patch("invoice_insights.cli.main.AnalyticsService.analytics", return_value=failed):
            result = invoke(config_path, "export", "--start", START, "--end", END, "--output", temp_dir)

        assert result.exit_code == EXIT_CODE_FAIL
        assert not any(name.endswith(".csv") for name in os.listdir(temp_dir))

    def test_checkout_result_marks_paid(self, workspace):
        """A settlement marks the invoice paid."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "checkout-result", "inv-0004-rinjani", "settlement")
        assert result.exit_code == EXIT_CODE_PASS
        assert "marked paid" in result.output

        data = json.loads(invoke(config_path, "analytics", "--start", START, "--end", END, "--json").stdout)
        assert data["overview"]["paidInvoices"] == 4

    def test_checkout_result_pending(self, workspace):
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "checkout-result", "inv-0004-rinjani", "pending")

        assert result.exit_code == EXIT_CODE_PASS
        assert "unchanged" in result.output

    def test_checkout_result_unknown_invoice(self, workspace):
        _, config_path = workspace
        invoke(config_path, "init")

        result = invoke(config_path, "checkout-result", "nope", "settlement")

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invoice not found" in result.output

    def test_invalid_config(self, workspace):
        temp_dir, _ = workspace

        result = runner.invoke(app, ["--config", os.path.join(temp_dir, "missing.yaml"), "init"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid configuration" in result.output

    def test_malformed_config(self, workspace):
        """Broken YAML is reported, not raised."""
        temp_dir, _ = workspace
        config_path = os.path.join(temp_dir, "broken.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("database: [unclosed")

        result = runner.invoke(app, ["--config", config_path, "init"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid configuration" in result.output
        assert not isinstance(result.exception, yaml.YAMLError)

    def test_payments_default_estimate(self, workspace):
        """Payments use the amount-tier estimate unless configured."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        data = json.loads(invoke(config_path, "payments", "--start", START, "--end", END, "--json").stdout)

        assert all("successRate" in method for method in data["paymentMethods"])

    def test_payments_strategy_from_config(self, workspace):
        """payment_methods.payments_strategy selects the payments estimate."""
        temp_dir, _ = workspace
        config_path = os.path.join(temp_dir, "fixed.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump({
                "database": {"path": os.path.join(temp_dir, "test.db")},
                "payment_methods": {"payments_strategy": "fixed_share"},
                "logging": {"level": "WARNING"},
            }, f)
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "payments", "--start", START, "--end", END, "--json")

        assert result.exit_code == EXIT_CODE_PASS
        methods = json.loads(result.stdout)["paymentMethods"]
        assert [method["method"] for method in methods] == ["Bank Transfer", "Credit Card", "E-Wallet"]
        assert all("successRate" not in method for method in methods)

    def test_dashboard_json(self, workspace):
        """Dashboard stats span every invoice in the store."""
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "dashboard", "--json")

        assert result.exit_code == EXIT_CODE_PASS
        data = json.loads(result.stdout)
        assert data["stats"]["totalRevenue"] == 23_350_000
        assert data["stats"]["paidRevenue"] == 20_350_000
        assert data["stats"]["unpaidRevenue"] == 3_000_000
        assert data["stats"]["totalClients"] == 3
        assert data["stats"]["averageInvoiceValue"] == 5_837_500
        assert len(data["recentInvoices"]) == 4
        assert data["recentInvoices"][0]["id"] == "inv-0004-rinjani"

    def test_dashboard_table(self, workspace):
        _, config_path = workspace
        invoke(config_path, "seed-demo")

        result = invoke(config_path, "dashboard")

        assert result.exit_code == EXIT_CODE_PASS
        assert "IDR 23.350.000" in result.output
        assert "Monthly growth" in result.output

    def test_dashboard_without_database(self, workspace):
        _, config_path = workspace

        result = invoke(config_path, "dashboard")

        assert result.exit_code == EXIT_CODE_FAIL
        assert "invoice-insights init" in result.output
