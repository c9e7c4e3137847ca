"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads YAML files, merges them over the packaged defaults, applies
environment overrides and parses the result into a frozen
``PayrollEngineConfig``.  Runtime callers use
``payroll_config.get_active_config()``, not this module.

Invariants enforced
-------------------
* Unknown keys are rejected, so a typo never silently falls back to a default.
* min_year <= max_year, pool_size >= 1, money_decimal_places in 0..9,
  and the note template only uses ``{month}`` / ``{year}``.
* ``compute_checksum`` is a deterministic SHA-256 over the effective values.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values or unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import PayrollEngineConfig

DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

# Environment variable -> config key
ENV_OVERRIDES: dict[str, str] = {
    "PAYROLL_DATABASE_URL": "database_url",
    "PAYROLL_LOG_LEVEL": "log_level",
}

_FIELDS = {f.name: f for f in dataclasses.fields(PayrollEngineConfig) if f.name != "checksum"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its top-level mapping.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    # Sections are flattened: {payroll: {min_year: ...}} -> {min_year: ...}
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value
    return flat


def _coerce(name: str, value: Any) -> Any:
    field_type = _FIELDS[name].type
    if field_type == "bool":
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"{name}: expected a boolean, got {value!r}")
        return bool(value)
    if field_type == "int":
        if isinstance(value, bool):
            raise ValueError(f"{name}: expected an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name}: expected an integer, got {value!r}") from exc
    if value is None:
        raise ValueError(f"{name}: a value is required")
    return str(value)


def _validate(values: Mapping[str, Any]) -> None:
    if values["min_year"] > values["max_year"]:
        raise ValueError(
            f"min_year ({values['min_year']}) must not exceed max_year ({values['max_year']})"
        )
    if values["pool_size"] < 1:
        raise ValueError("pool_size must be at least 1")
    if not 0 <= values["money_decimal_places"] <= 9:
        raise ValueError("money_decimal_places must be between 0 and 9")
    if not values["database_url"]:
        raise ValueError("database_url is required")
    level = logging.getLevelName(values["log_level"].upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log_level {values['log_level']!r}")
    try:
        values["repayment_note_template"].format(month=1, year=2000)
    except (KeyError, IndexError) as exc:
        raise ValueError(
            "repayment_note_template may only use {month} and {year}"
        ) from exc


def compute_checksum(values: Mapping[str, Any]) -> str:
    """Deterministic SHA-256 over the effective configuration values."""
    canonical = json.dumps(dict(values), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def build_config(
    overlays: list[Mapping[str, Any]],
    environ: Mapping[str, str] | None = None,
) -> PayrollEngineConfig:
    """
    Merge defaults, overlays (in order) and environment overrides.

    Raises:
        ValueError: unknown keys or invalid values.
    """
    merged: dict[str, Any] = dict(load_yaml_file(DEFAULTS_FILE))
    for overlay in overlays:
        unknown = set(overlay) - set(_FIELDS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        merged.update(overlay)

    for env_name, key in ENV_OVERRIDES.items():
        if environ is not None and environ.get(env_name):
            merged[key] = environ[env_name]

    missing = set(_FIELDS) - set(merged)
    if missing:
        raise ValueError(f"Missing configuration keys: {sorted(missing)}")

    values = {name: _coerce(name, merged[name]) for name in _FIELDS}
    values["log_level"] = values["log_level"].upper()
    _validate(values)

    return PayrollEngineConfig(**values, checksum=compute_checksum(values))
