"""
Module: payroll_kernel.db.base
Responsibility: Declarative base for the payroll ORM models: how ids, money,
    timestamps and operator ids are stored.
Architecture position: Kernel > DB.  Every model imports from here; this
    module imports nothing from the rest of the kernel.

Invariants enforced:
    - Ids are uuid4 values stored as 36-character strings, so the same
      schema runs on PostgreSQL and SQLite.
    - Any ``Mapped[Decimal]`` column is Numeric(38, 9).  Salaries,
      allowances, deductions and loan balances are never floats.
    - Every tracked row records who created it (created_by_id NOT NULL).

Audit relevance:
    created_by_id on schedules, loans, repayments and compensation
    structures names the operator behind each figure.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

MONEY = Numeric(38, 9)


class UUIDString(TypeDecorator):
    """UUID <-> String(36)."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """
    Declarative base for all payroll tables.

    The annotation map fixes the column type for each Python type, so a
    model writes ``Mapped[Decimal]`` and never spells out a precision.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds creation/update timestamps and operator ids.

    Contract:
        updated_at and updated_by_id may change on any row, including the
        ones db/immutability.py otherwise freezes.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    created_by_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString(), nullable=True)


UUID = PyUUID
