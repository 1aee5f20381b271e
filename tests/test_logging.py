"""Tests for the structured logging system (hr_kernel/logging_config.py)."""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from uuid import uuid4

import pytest

from hr_kernel.domain.workflow import WorkflowStatus
from hr_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "hr_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("progressed", extra={"history_length": 2, "step_id": "ops_review"})

        record = _parse_log(stream)
        assert record["history_length"] == 2
        assert record["step_id"] == "ops_review"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(workflow_id="leave_1_0", actor_id="ops-3")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["workflow_id"] == "leave_1_0"
        assert record["actor_id"] == "ops-3"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        from hr_kernel.exceptions import StepNotFoundError

        try:
            raise StepNotFoundError("leave", "hr_review")
        except StepNotFoundError:
            get_logger("test").error("lookup_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "STEP_NOT_FOUND"
        assert record["exc_type"] == "StepNotFoundError"
        assert record["exc_workflow_type"] == "leave"
        assert record["exc_step_id"] == "hr_review"
        assert "traceback" in record

    def test_uuid_datetime_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        at = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        get_logger("test").info(
            "typed", extra={"row_id": uid, "at": at, "status": WorkflowStatus.PENDING_HR},
        )

        record = _parse_log(stream)
        assert record["row_id"] == str(uid)
        assert record["at"] == at.isoformat()
        assert record["status"] == "pending_hr"

    def test_unknown_objects_fall_back_to_str(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("typed", extra={"path": Path("/tmp/workflows.yaml")})

        assert _parse_log(stream)["path"] == "/tmp/workflows.yaml"

    def test_level_filters_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second")
        logger.debug("third")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_clear(self):
        LogContext.set(correlation_id="x", request_id="42")
        assert LogContext.get_all() == {"correlation_id": "x", "request_id": "42"}
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(workflow_id="outer")
        with LogContext.bind(workflow_id="inner"):
            assert LogContext.get_all()["workflow_id"] == "inner"
        assert LogContext.get_all()["workflow_id"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(actor_id="temp"):
            assert LogContext.get_all()["actor_id"] == "temp"
        assert "actor_id" not in LogContext.get_all()

    def test_bind_stringifies_and_ignores_unknown(self):
        with LogContext.bind(request_id=42, branch="nairobi"):
            assert LogContext.get_all() == {"request_id": "42"}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)

        handlers = logging.getLogger("hr_kernel").handlers
        assert h1 in handlers
        assert h2 not in handlers

    def test_get_logger_returns_child(self):
        assert get_logger("services.workflow_engine").name == (
            "hr_kernel.services.workflow_engine"
        )

    def test_level_by_name(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="WARNING")
        logger = get_logger("deep.nested.module")
        logger.info("hidden")
        logger.warning("shown")

        record = _parse_log(stream)
        assert record["message"] == "shown"
        assert record["logger"] == "hr_kernel.deep.nested.module"
