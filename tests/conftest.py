"""
Pytest fixtures for the HR workflow test suite.

Provides:
- An in-memory SQLite database (tables created once per session)
- Per-test sessions rolled back at teardown
- Deterministic clock and engine fixtures for both repository backends
- Structured log capture

Environment Variables:
- HRMS_TEST_DATABASE_URL: database URL for the SQL-backed tests.
  Defaults to in-memory SQLite.
"""

import json
import logging
import os
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from hr_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from hr_kernel.domain.clock import DeterministicClock
from hr_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from hr_kernel.persistence.sql import SqlNotificationRepository, SqlWorkflowRepository
from hr_kernel.services.workflow_engine import WorkflowEngine


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture hr_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.create_workflow("leave", 1, "emp-1")
            logs = captured_logs()
            assert any(r["message"] == "workflow_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("hr_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("HRMS_TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session whose changes are undone at teardown.

    The session is bound to a connection holding an outer transaction;
    rolling that back discards everything the test flushed.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def engine(deterministic_clock) -> WorkflowEngine:
    """In-memory workflow engine on the deterministic clock."""
    return WorkflowEngine(clock=deterministic_clock)


@pytest.fixture
def sql_engine(session, deterministic_clock) -> WorkflowEngine:
    """SQL-backed workflow engine sharing the test session."""
    return WorkflowEngine(
        repository=SqlWorkflowRepository(session),
        notifications=SqlNotificationRepository(session),
        clock=deterministic_clock,
    )


@pytest.fixture(params=["memory", "sql"])
def any_engine(request, deterministic_clock) -> WorkflowEngine:
    """The same engine over each repository backend."""
    if request.param == "memory":
        return WorkflowEngine(clock=deterministic_clock)
    return request.getfixturevalue("sql_engine")
