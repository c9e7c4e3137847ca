"""
Active compensation resolution -- pure.

The intended state is one active structure per staff member, but nothing in
storage forbids several.  When more than one is active the pick is:

    1. latest effective_date
    2. then latest created_at
    3. then highest compensation_id (string order)

so two runs over the same data always choose the same structure.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timezone

from payroll_kernel.domain.dtos import CompensationInfo
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.compensation")

_MIN_DATE = date.min
_MIN_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


def _as_aware(value: datetime | None) -> datetime:
    if value is None:
        return _MIN_DATETIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _sort_key(info: CompensationInfo) -> tuple[date, datetime, str]:
    return (
        info.effective_date or _MIN_DATE,
        _as_aware(info.created_at),
        str(info.compensation_id),
    )


def select_active_compensation(
    candidates: Iterable[CompensationInfo],
) -> CompensationInfo | None:
    """Pick the single active structure, or None when there is none."""
    active = [c for c in candidates if c.is_active]
    if not active:
        return None
    if len(active) > 1:
        logger.warning(
            "multiple_active_compensation_structures",
            extra={
                "staff_id": str(active[0].staff_id),
                "candidate_count": len(active),
            },
        )
    return max(active, key=_sort_key)
