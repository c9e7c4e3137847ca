"""
payroll_engines.tracer -- PAYROLL_ENGINE_TRACE records for pure calculations.

``@traced_engine`` wraps an engine entry point and, after every call, logs at
DEBUG the engine name and version, a fingerprint of the selected keyword
inputs, the duration and whether the call raised.  Two calls with equal
inputs produce equal fingerprints, so a pay line in a schedule can be
matched to the trace of the calculation that produced it.

The fingerprint is the first 16 hex characters of a SHA-256 over a JSON
document with sorted keys; dataclasses are expanded and Decimals, UUIDs and
dates use their string forms.  Keyword arguments that were not passed are
recorded as null.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable
from typing import Any

from payroll_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "PAYROLL_ENGINE_TRACE"


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    document = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(document, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a pure engine function or method.

    Args:
        engine_name: e.g. "pay_line".
        engine_version: Bumped whenever the calculation changes.
        fingerprint_fields: Keyword arguments hashed into input_fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )
            outcome = "error"
            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
                outcome = "ok"
                return result
            finally:
                _logger.debug(
                    TRACE_TYPE,
                    extra={
                        "trace_type": TRACE_TYPE,
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "outcome": outcome,
                        "duration_ms": round((time.monotonic() - started) * 1000, 2),
                        "function": func.__qualname__,
                    },
                )

        return wrapper

    return decorator
