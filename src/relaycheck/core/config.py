# src/relaycheck/core/config.py
"""Configuration schema and loading for relaycheck.

Uses Pydantic with frozen (immutable) models. Settings are layered with
precedence overrides > YAML file > preset > defaults.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from relaycheck.core.logging import configure_logging

PRESETS_DIR = Path(__file__).parent / "presets"

DEFAULT_TIMEOUT_MS = 300_000
DEFAULT_POLL_INTERVAL_MS = 2_000
DEFAULT_STABILIZATION_MS = 5_000


class CompletionSettings(BaseModel):
    """Timing for the completion detector's poll loop."""

    model_config = {"frozen": True, "extra": "forbid"}

    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        gt=0,
        description="Absolute deadline for the whole wait, in milliseconds",
    )
    poll_interval_ms: int = Field(
        default=DEFAULT_POLL_INTERVAL_MS,
        gt=0,
        description="Delay between size observations, in milliseconds",
    )
    stabilization_ms: int = Field(
        default=DEFAULT_STABILIZATION_MS,
        ge=0,
        description="How long every size must hold still before the transfer counts as done",
    )

    @property
    def required_stable_polls(self) -> int:
        """Consecutive stable polls needed: ceil(stabilization / poll), at least 1."""
        return max(1, math.ceil(self.stabilization_ms / self.poll_interval_ms))


class LoggingSettings(BaseModel):
    """Log output format and level."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Render log lines as JSON instead of console text",
    )

    def apply(self) -> None:
        """Configure process-wide logging from these settings."""
        configure_logging(json_output=self.json_output, level=self.level)


class RecordAuditSettings(BaseModel):
    """Record-level audit switches."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Run the record-level audit after byte reconciliation",
    )
    check_json: bool = Field(
        default=True,
        description="Require records that look like JSON to parse as JSON",
    )


class RelaycheckSettings(BaseModel):
    """Top-level settings for a verification run."""

    model_config = {"frozen": True, "extra": "forbid"}

    completion: CompletionSettings = Field(default_factory=CompletionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    record_audit: RecordAuditSettings = Field(default_factory=RecordAuditSettings)
    preset_name: str | None = Field(
        default=None,
        description="Preset these settings were layered on (informational)",
    )

    @model_validator(mode="after")
    def validate_poll_within_timeout(self) -> RelaycheckSettings:
        """A poll interval longer than the deadline can never observe stability."""
        completion = self.completion
        if completion.poll_interval_ms > completion.timeout_ms:
            raise ValueError(
                f"poll_interval_ms ({completion.poll_interval_ms}) must be <= timeout_ms ({completion.timeout_ms})"
            )
        return self


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, with override taking precedence.

    Returns a new dict; neither input is mutated.
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def list_presets(presets_dir: Path = PRESETS_DIR) -> list[str]:
    """Sorted preset names (YAML stems) available in ``presets_dir``."""
    if not presets_dir.exists():
        return []
    return sorted(p.stem for p in presets_dir.glob("*.yaml"))


def _read_yaml_mapping(path: Path, label: str) -> dict[str, Any]:
    with path.open() as f:
        loaded = yaml.safe_load(f)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{label} must be a YAML mapping, got {type(loaded).__name__}")
    return loaded


def load_preset(preset_name: str, presets_dir: Path = PRESETS_DIR) -> dict[str, Any]:
    """Load a preset's raw mapping by name.

    Raises:
        FileNotFoundError: If the preset does not exist.
        ValueError: If the preset is not a YAML mapping.
    """
    preset_path = presets_dir / f"{preset_name}.yaml"
    if not preset_path.exists():
        available = list_presets(presets_dir)
        raise FileNotFoundError(f"Preset '{preset_name}' not found. Available presets: {available}")
    return _read_yaml_mapping(preset_path, f"Preset '{preset_name}'")


def load_settings(
    *,
    preset: str | None = None,
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
    presets_dir: Path = PRESETS_DIR,
) -> RelaycheckSettings:
    """Load settings with precedence handling.

    Precedence (highest to lowest):
    1. overrides - values supplied by the calling harness
    2. config_file - a YAML settings file
    3. preset - a named preset shipped with relaycheck
    4. defaults - Pydantic field defaults

    Raises:
        FileNotFoundError: If the preset or config file is missing.
        yaml.YAMLError: If YAML is malformed.
        pydantic.ValidationError: If the merged settings are invalid.
    """
    config_dict: dict[str, Any] = {}

    if preset is not None:
        config_dict = load_preset(preset, presets_dir)

    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        config_dict = deep_merge(config_dict, _read_yaml_mapping(config_file, f"Config file '{config_file}'"))

    if overrides is not None:
        config_dict = deep_merge(config_dict, overrides)

    config_dict["preset_name"] = preset
    return RelaycheckSettings(**config_dict)
