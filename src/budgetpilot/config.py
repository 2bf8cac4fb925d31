"""
BudgetPilot configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from budgetpilot.exceptions import ConfigError


class ValidationConfig(BaseModel):
    """Thresholds used by the budget validator."""

    high_percentage_threshold: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        le=100,
        description="Percentage items above this get a 'high percentage' warning",
    )
    under_allocation_threshold: Decimal = Field(
        default=Decimal("80"),
        ge=0,
        description="Allocating less than this percent of net income is reported as info",
    )
    min_name_length: int = Field(default=2, ge=0)


class ReconciliationConfig(BaseModel):
    """Variance thresholds (percent of expected) for reconciliation."""

    perfect_threshold: Decimal = Field(default=Decimal("0"), ge=0)
    minor_threshold: Decimal = Field(default=Decimal("5"), ge=0)
    major_threshold: Decimal = Field(default=Decimal("15"), ge=0)


class BudgetPilotConfig(BaseModel):
    """Root configuration for BudgetPilot."""

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    reconciliation: ReconciliationConfig = Field(default_factory=ReconciliationConfig)

    # Output settings
    currency: str = Field(default="USD")
    log_level: str = Field(default="WARNING")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> BudgetPilotConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                try:
                    with open(path) as f:
                        data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e
                if not isinstance(data, dict):
                    raise ConfigError(f"Config file {path} must contain a mapping", path=str(path))

        # 2. Override from environment variables
        env_level = os.environ.get("BUDGETPILOT_LOG_LEVEL")
        env_currency = os.environ.get("BUDGETPILOT_CURRENCY")
        env_minor = os.environ.get("BUDGETPILOT_MINOR_VARIANCE")
        env_major = os.environ.get("BUDGETPILOT_MAJOR_VARIANCE")

        if env_level:
            data["log_level"] = env_level.upper()
        if env_currency:
            data["currency"] = env_currency

        reconciliation = data.get("reconciliation") or {}
        if (env_minor or env_major) and isinstance(reconciliation, dict):
            if env_minor:
                reconciliation["minor_threshold"] = env_minor
            if env_major:
                reconciliation["major_threshold"] = env_major
            data["reconciliation"] = reconciliation

        # 3. Apply keyword overrides
        data.update(overrides)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid configuration: {e.error_count()} error(s)",
                errors=e.errors(include_url=False),
            ) from e
