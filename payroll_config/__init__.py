"""
payroll_config -- single public entrypoint for payroll engine configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way to obtain configuration at
    runtime.  No other component reads configuration files or PAYROLL_*
    environment variables directly.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_services``.  The kernel MUST NEVER import from here; services
    pass the relevant values into kernel constructors.

Resolution order (later wins):
    1. packaged ``defaults.yaml``
    2. the YAML file given as ``config_path``, else the file named by
       ``PAYROLL_CONFIG_FILE``
    3. ``PAYROLL_DATABASE_URL`` and ``PAYROLL_LOG_LEVEL``

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful call emits a ``PAYROLL_CONFIG_TRACE`` log entry with
    the checksum of the effective configuration.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from payroll_config.loader import build_config, load_yaml_file
from payroll_config.schema import PayrollEngineConfig
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_FILE_ENV = "PAYROLL_CONFIG_FILE"

__all__ = ["PayrollEngineConfig", "get_active_config"]


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> PayrollEngineConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Optional YAML file overlaid on the defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Frozen, validated PayrollEngineConfig.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If validation fails.
    """
    env = os.environ if environ is None else environ

    overlays = []
    path = config_path or env.get(CONFIG_FILE_ENV)
    if path:
        overlays.append(load_yaml_file(Path(path)))

    config = build_config(overlays, environ=env)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "checksum": config.checksum,
            "config_file": str(path) if path else None,
            "min_year": config.min_year,
            "max_year": config.max_year,
        },
    )
    return config
