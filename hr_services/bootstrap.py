"""
Engine wiring (``hr_services.bootstrap``).

Responsibility:
    Builds a ``WorkflowEngine`` from ``EngineSettings``: picks the
    repository backend, loads the active workflow definitions and applies
    the logging level.  The only place that composes config, kernel and
    persistence.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from hr_config import EngineSettings, get_active_definitions, load_settings
from hr_kernel.db.engine import create_tables, init_engine_from_url
from hr_kernel.domain.clock import Clock
from hr_kernel.logging_config import configure_logging, get_logger
from hr_kernel.persistence.inmemory import (
    InMemoryNotificationRepository,
    InMemoryWorkflowRepository,
)
from hr_kernel.persistence.sql import (
    SqlNotificationRepository,
    SqlWorkflowRepository,
)
from hr_kernel.services.workflow_engine import WorkflowEngine

logger = get_logger("services.bootstrap")


def init_runtime(settings: EngineSettings | None = None) -> EngineSettings:
    """
    Configure logging and, when a database URL is set, the SQL engine.

    Postconditions:
        - The hr_kernel logger hierarchy emits JSON lines at the settings'
          level.
        - With a database URL, the engine is initialized and the workflow
          tables exist.
    """
    settings = settings or load_settings()
    configure_logging(level=settings.log_level)

    if settings.uses_database:
        init_engine_from_url(settings.database_url, echo=settings.sql_echo)
        create_tables()

    logger.info(
        "runtime_initialized",
        extra={
            "uses_database": settings.uses_database,
            "log_level": settings.log_level,
            "workflow_definitions": (
                str(settings.workflow_definitions)
                if settings.workflow_definitions else None
            ),
        },
    )
    return settings


def build_workflow_engine(
    settings: EngineSettings | None = None,
    session: Session | None = None,
    clock: Clock | None = None,
) -> WorkflowEngine:
    """
    Wire a WorkflowEngine.

    With a ``session`` the engine persists through the SQL repositories and
    the caller owns the transaction (see ``session_scope``); without one it
    keeps everything in memory.
    """
    settings = settings or load_settings()
    definitions = get_active_definitions(settings.workflow_definitions)

    if session is not None:
        repository = SqlWorkflowRepository(session)
        notifications = SqlNotificationRepository(session)
        backend = "sql"
    else:
        repository = InMemoryWorkflowRepository()
        notifications = InMemoryNotificationRepository()
        backend = "memory"

    logger.debug(
        "workflow_engine_built",
        extra={
            "backend": backend,
            "workflow_types": [d.workflow_type.value for d in definitions],
        },
    )
    return WorkflowEngine(
        repository=repository,
        notifications=notifications,
        clock=clock,
        definitions=definitions,
    )
