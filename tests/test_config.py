"""
Unit tests for configuration loading and validation.
"""

import logging
import os
import tempfile

import pytest
import yaml

from invoice_insights.config.loader import (
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    PaymentMethodConfig,
    ReportConfig,
    default_config,
    load_app_config,
)


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """All sections are read."""
        config_path = self._write_config({
            "database": {"path": "agency.db"},
            "report": {"agency_name": "STUDIO KITA", "currency": "IDR"},
            "payment_methods": {"strategy": "amount_tier", "payments_strategy": "fixed_share"},
            "logging": {"level": "debug"},
        })

        config = load_app_config(config_path)

        assert config.database.path == "agency.db"
        assert config.report.agency_name == "STUDIO KITA"
        assert config.payment_methods.strategy == "amount_tier"
        assert config.payment_methods.payments_strategy == "fixed_share"
        assert config.logging.numeric_level == logging.DEBUG

    def test_missing_sections_use_defaults(self):
        """Only the given sections change."""
        config = load_app_config(self._write_config({"database": {"path": "x.db"}}))

        assert config.database.path == "x.db"
        assert config.payment_methods.strategy == "fixed_share"
        assert config.payment_methods.payments_strategy == "amount_tier"
        assert config.report.agency_name == "AKUSARA DIGITAL AGENCY"
        assert config.logging.level == "INFO"

    def test_empty_file_gives_defaults(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()

        assert load_app_config(config_path) == default_config()

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_app_config(os.path.join(self.temp_dir, "nope.yaml"))

    def test_invalid_yaml_raises(self):
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("database: [unclosed")

        with pytest.raises(yaml.YAMLError):
            load_app_config(config_path)

    def test_unknown_top_level_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_app_config(self._write_config({"databse": {"path": "x.db"}}))

    def test_unknown_section_key(self):
        with pytest.raises(ValueError, match="Unknown keys in report"):
            load_app_config(self._write_config({"report": {"title": "x"}}))

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="'logging' must be a dictionary"):
            load_app_config(self._write_config({"logging": "INFO"}))

    def test_non_mapping_root(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            load_app_config(self._write_config(["database"]))

    def test_values_must_be_strings(self):
        with pytest.raises(ValueError, match="'path' in database must be a string"):
            load_app_config(self._write_config({"database": {"path": 42}}))

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="'strategy' must be one of"):
            load_app_config(self._write_config({"payment_methods": {"strategy": "observed"}}))

    def test_unknown_payments_strategy(self):
        with pytest.raises(ValueError, match="'payments_strategy' must be one of"):
            load_app_config(self._write_config({"payment_methods": {"payments_strategy": "observed"}}))

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="'level' must be one of"):
            load_app_config(self._write_config({"logging": {"level": "LOUD"}}))


class TestConfigObjects:
    """Test config dataclass validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.database == DatabaseConfig()
        assert config.payment_methods == PaymentMethodConfig("fixed_share")

    def test_empty_database_path(self):
        with pytest.raises(ValueError, match="database path cannot be empty"):
            DatabaseConfig(path=" ")

    def test_only_idr(self):
        with pytest.raises(ValueError, match="only IDR"):
            ReportConfig(currency="USD")

    def test_empty_agency_name(self):
        with pytest.raises(ValueError, match="agency_name cannot be empty"):
            ReportConfig(agency_name="")

    def test_log_level_case_insensitive(self):
        assert LoggingConfig("warning").numeric_level == logging.WARNING
