"""Core configuration management module."""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from tradekernel.core.exceptions import ConfigError


class SystemConfig(BaseModel):
    """System-level configuration."""

    model_config = ConfigDict(use_enum_values=True)

    name: str = "tradekernel"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str | None = None


class CostConfig(BaseModel):
    """Commission and slippage applied to every fill."""

    model_config = ConfigDict(use_enum_values=True)

    commission_flat: float = 0.0
    commission_pct: float = 0.0
    slippage_pct: float = 0.0

    @field_validator("commission_flat", "commission_pct")
    @classmethod
    def validate_commission(cls, v: float) -> float:
        """Validate that commissions are not negative."""
        if v < 0:
            raise ValueError("commission values must not be negative")
        return v

    @field_validator("slippage_pct")
    @classmethod
    def validate_slippage(cls, v: float) -> float:
        """Validate that slippage is a percentage in [0, 100)."""
        if not 0 <= v < 100:
            raise ValueError("slippage_pct must be between 0 and 100")
        return v


class BacktestConfig(BaseModel):
    """Portfolio and run-level backtest configuration."""

    model_config = ConfigDict(use_enum_values=True)

    initial_capital: float = 100_000.0
    allow_shorting: bool = False
    risk_free_rate: float = 0.0
    invariant_tolerance: float = 0.01

    @field_validator("initial_capital", "invariant_tolerance")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate that capital and tolerance are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v


class Settings(BaseModel):
    """Root settings configuration."""

    model_config = ConfigDict(use_enum_values=True)

    system: SystemConfig = SystemConfig()
    costs: CostConfig = CostConfig()
    backtest: BacktestConfig = BacktestConfig()


def load_settings(path: Path | str) -> Settings:
    """Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings instance with loaded configuration. An empty file yields
        the defaults.

    Raises:
        FileNotFoundError: If configuration file does not exist.
        ConfigError: If the YAML is malformed or a value fails validation.
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if raw_config is None:
        raw_config = {}

    try:
        return Settings.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
