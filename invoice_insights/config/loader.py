"""
Configuration management and loading.

Handles database, report and logging settings.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Set

import yaml

from invoice_insights.core.breakdown import STRATEGIES
from invoice_insights.export.text_report import DEFAULT_AGENCY_NAME
from invoice_insights.storage.db import DEFAULT_DB_PATH

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DatabaseConfig:
    """Location of the record store."""
    path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        if not self.path or not str(self.path).strip():
            raise ValueError("database path cannot be empty")


@dataclass(frozen=True)
class ReportConfig:
    """Presentation settings for exported reports."""
    agency_name: str = DEFAULT_AGENCY_NAME
    currency: str = "IDR"

    def __post_init__(self):
        if not self.agency_name.strip():
            raise ValueError("agency_name cannot be empty")
        if self.currency != "IDR":
            raise ValueError("only IDR reports are supported")


@dataclass(frozen=True)
class PaymentMethodConfig:
    """Which estimator produces each page's payment-method breakdown."""
    strategy: str = "fixed_share"
    payments_strategy: str = "amount_tier"

    def __post_init__(self):
        for key in ("strategy", "payments_strategy"):
            if getattr(self, key) not in STRATEGIES:
                raise ValueError(f"'{key}' must be one of: {sorted(STRATEGIES)}")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self):
        if self.level.upper() not in LOG_LEVELS:
            raise ValueError(f"'level' must be one of: {sorted(LOG_LEVELS)}")

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.level.upper())


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    payment_methods: PaymentMethodConfig = field(default_factory=PaymentMethodConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def default_config() -> AppConfig:
    """Configuration used when no file is given."""
    return AppConfig()


SECTIONS = {
    "database": (DatabaseConfig, {"path"}),
    "report": (ReportConfig, {"agency_name", "currency"}),
    "payment_methods": (PaymentMethodConfig, {"strategy", "payments_strategy"}),
    "logging": (LoggingConfig, {"level"}),
}


def load_app_config(path: str) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Every section is optional and falls back to defaults, but unknown
    keys are rejected so typos never pass silently.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return default_config()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    unknown_keys = set(raw_config.keys()) - set(SECTIONS)
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    sections = {
        name: _parse_section(raw_config.get(name) or {}, name, cls, allowed)
        for name, (cls, allowed) in SECTIONS.items()
    }
    return AppConfig(**sections)


def _parse_section(data: Any, name: str, cls: type, allowed: Set[str]):
    """Validate one section's keys and value types, then build it.

    Raises:
        ValueError: If the section is not a mapping or has bad keys/values
    """
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")

    values: Dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(f"'{key}' in {name} must be a string")
        values[key] = value
    return cls(**values)
