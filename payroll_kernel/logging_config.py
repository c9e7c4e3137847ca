"""
Structured logging for the payroll engine.

Every record is written as one JSON object.  Event names are snake_case
(``payroll_run_started``, ``loan_deduction_applied``) and the data of an
event travels in ``extra=``:

    logger.info("loan_deduction_applied", extra={"loan_id": ..., "amount": ...})

Run-scoped identifiers (run, period, operator, staff member) are held in
``LogContext`` and stamped onto every record emitted while they are bound,
so a single run's records can be filtered without passing ids around.
Context fields win over an ``extra`` key of the same name.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

_LOGGER_PREFIX = "payroll_kernel"

RUN_CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "run_id",
    "actor_id",
    "period",
    "staff_id",
)

_run_context: ContextVar[dict[str, str]] = ContextVar("payroll_log_context", default={})


class LogContext:
    """
    Run-scoped log fields, safe across threads and asyncio tasks.

    Only the names in RUN_CONTEXT_FIELDS are accepted; ``None`` values are
    ignored so callers can bind optional ids without branching.
    """

    @staticmethod
    def _merged(values: dict[str, Any]) -> dict[str, str]:
        unknown = set(values) - set(RUN_CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_run_context.get())
        merged.update({k: str(v) for k, v in values.items() if v is not None})
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        _run_context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_run_context.get())

    @classmethod
    def clear(cls) -> None:
        _run_context.set({})

    @classmethod
    def bind(cls, **fields: Any) -> "_BoundContext":
        """Bind fields for a ``with`` block; the previous context is restored on exit."""
        return _BoundContext(cls._merged(fields))


class _BoundContext:
    def __init__(self, values: dict[str, str]):
        self._values = values
        self._token = None

    def __enter__(self) -> type[LogContext]:
        self._token = _run_context.set(self._values)
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        _run_context.reset(self._token)
        self._token = None


_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel errors carry their data as instance attributes (loan_id, month, ...)
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger named ``payroll_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``payroll_kernel`` logger.

    Only the first call has an effect; later calls (for example from
    ``init_engine_from_url``) leave the existing setup alone.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    payroll_logger = logging.getLogger(_LOGGER_PREFIX)
    payroll_logger.setLevel(level)
    payroll_logger.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    payroll_logger.addHandler(target)


def reset_logging() -> None:
    """Undo configure_logging().  Tests only."""
    global _configured
    with _lock:
        _configured = False
    payroll_logger = logging.getLogger(_LOGGER_PREFIX)
    payroll_logger.handlers.clear()
    payroll_logger.setLevel(logging.WARNING)
