"""
Process startup and service wiring for the payroll engine.

``init_payroll_database`` prepares logging, the engine, the schema and the
ORM immutability listeners from one PayrollEngineConfig.  The ``build_*``
helpers construct kernel services with their configured values, the same
way ``build_payroll_orchestrator`` does for payroll runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from payroll_kernel.db.engine import create_tables, init_engine_from_url
from payroll_kernel.db.immutability import register_immutability_listeners
from payroll_kernel.domain.clock import Clock
from payroll_kernel.logging_config import configure_logging, get_logger
from payroll_kernel.services.compensation_service import CompensationService
from payroll_kernel.services.loan_service import LoanService

if TYPE_CHECKING:
    from payroll_config import PayrollEngineConfig

logger = get_logger("services.bootstrap")


def init_payroll_database(
    config: PayrollEngineConfig | None = None,
    create_schema: bool = True,
) -> Engine:
    """
    Initialize logging, the database engine and the ORM listeners.

    Args:
        config: Effective configuration; loaded via get_active_config() when
            omitted.
        create_schema: Create missing tables.

    Returns:
        The initialized Engine.
    """
    from payroll_config import get_active_config

    config = config or get_active_config()
    configure_logging(level=config.log_level)

    engine = init_engine_from_url(
        config.database_url,
        echo=config.echo_sql,
        pool_size=config.pool_size,
    )
    if create_schema:
        create_tables()
    register_immutability_listeners()

    logger.info(
        "payroll_database_ready",
        extra={
            "dialect": engine.dialect.name,
            "schema_created": create_schema,
            "config_checksum": config.checksum,
        },
    )
    return engine


def build_loan_service(
    session: Session,
    config: PayrollEngineConfig | None = None,
    clock: Clock | None = None,
) -> LoanService:
    """LoanService with the configured manual repayment method and precision."""
    from payroll_config import get_active_config

    config = config or get_active_config()
    return LoanService(
        session,
        clock=clock,
        manual_repayment_method=config.manual_repayment_method,
        money_decimal_places=config.money_decimal_places,
    )


def build_compensation_service(
    session: Session,
    clock: Clock | None = None,
) -> CompensationService:
    return CompensationService(session, clock)
