"""
Unit Tests for Error Logging & Boundary Formatting

Tests log_failure level routing and format_for_transport renderings.
"""

import errno
import uuid

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from opsguard.core.config.constants import Stage
from opsguard.core.exceptions import (
    ClassifiedError,
    ErrorCode,
    factory,
    format_for_transport,
    generate_correlation_id,
    log_failure,
)


def _events(logs, event):
    return [entry for entry in logs if entry["event"] == event]


def _error_count(code, type_, severity):
    value = REGISTRY.get_sample_value(
        "opsguard_errors_total", {"code": code, "type": type_, "severity": severity}
    )
    return value or 0.0


def _raised(exc):
    try:
        raise exc
    except Exception as caught:
        return caught


@pytest.mark.unit
class TestLogFailureLevels:
    """Severity selects the log level."""

    @pytest.mark.parametrize(
        "error, level, event",
        [
            (factory.validation("bad"), "debug", "Low severity error"),
            (factory.conflict("Session"), "warning", "Medium severity error"),
            (factory.internal_error("boom"), "error", "High severity error"),
            (factory.database_connection_failed(), "critical", "Critical error"),
        ],
    )
    def test_level_matches_severity(self, error, level, event):
        """Test low→debug, medium→warning, high→error, critical→critical."""
        with capture_logs() as logs:
            log_failure(error)

        records = _events(logs, event)
        assert len(records) == 1
        assert records[0]["log_level"] == level
        assert records[0]["stage"] == Stage.ERROR_LOGGING.value

    def test_record_carries_error_fields_and_context(self):
        """Test the structured error payload."""
        error = factory.not_found("Session", 42).set_correlation_id("req-1")

        with capture_logs() as logs:
            log_failure(error, {"path": "/specs/42"})

        record = _events(logs, "Low severity error")[0]
        assert record["error"]["code"] == "E4001"
        assert record["error"]["type"] == "not_found"
        assert record["error"]["severity"] == "low"
        assert record["error"]["correlation_id"] == "req-1"
        assert record["error"]["metadata"] == {"resource": "Session", "id": 42}
        assert record["context"] == {"path": "/specs/42"}

    def test_high_severity_logs_stack_and_cause_chain(self):
        """Test that high/critical errors also log the cause chain."""
        cause = _raised(ValueError("root cause"))

        with capture_logs() as logs:
            log_failure(factory.internal_error("wrapped", cause))

        traces = _events(logs, "Error stack trace")
        assert len(traces) == 1
        assert traces[0]["cause_chain"]["name"] == "ValueError"
        assert traces[0]["stack"]

    def test_low_severity_does_not_log_stack(self):
        """Test that only high/critical emit the stack record."""
        with capture_logs() as logs:
            log_failure(factory.validation("bad"))

        assert _events(logs, "Error stack trace") == []

    def test_native_failure_is_classified_first(self):
        """Test that log_failure accepts unclassified input."""
        with capture_logs() as logs:
            logged = log_failure(RuntimeError("database is locked"))

        assert isinstance(logged, ClassifiedError)
        assert logged.code is ErrorCode.DATABASE_TIMEOUT
        assert _events(logs, "High severity error")

    def test_returns_the_same_classified_error(self):
        """Test identity for classified input."""
        error = factory.conflict("Session")
        with capture_logs():
            assert log_failure(error) is error

    def test_error_counter_incremented(self):
        """Test the Prometheus error counter."""
        before = _error_count("E5002", "conflict", "medium")

        with capture_logs():
            log_failure(factory.duplicate_entry("email"))

        assert _error_count("E5002", "conflict", "medium") == before + 1


@pytest.mark.unit
class TestFormatForTransport:
    """Public vs verbose rendering at the boundary."""

    def test_public_rendering_has_no_internals(self):
        """Test that stack / original_error are never public."""
        cause = _raised(ValueError("secret detail"))
        body = format_for_transport(factory.internal_error("wrapped", cause), False)

        assert "stack" not in body
        assert "original_error" not in body
        assert "developer_message" not in body
        assert "secret detail" not in str(body)

    def test_verbose_rendering_has_stack_and_cause(self):
        """Test that verbose includes both when a cause is present."""
        cause = _raised(ValueError("detail"))
        body = format_for_transport(factory.internal_error("wrapped", cause), True)

        assert "stack" in body
        assert body["original_error"]["message"] == "detail"
        assert body["developer_message"] == "wrapped"

    def test_default_is_public(self):
        """Test that verbose must be requested explicitly."""
        body = format_for_transport(factory.internal_error("wrapped", ValueError("x")))
        assert "stack" not in body

    def test_native_failure_is_coerced(self):
        """Test that an unclassified failure is classified first."""
        body = format_for_transport(ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused"))

        assert body["code"] == ErrorCode.CONNECTION_REFUSED.value
        assert body["type"] == "network"

    def test_correlation_id_is_rendered(self):
        """Test that the boundary-assigned ID reaches the body."""
        error = factory.rate_limit_exceeded(10, 1000).set_correlation_id("req-7")
        assert format_for_transport(error)["correlation_id"] == "req-7"


@pytest.mark.unit
class TestCorrelationIdGeneration:
    """generate_correlation_id."""

    def test_generates_unique_uuids(self):
        """Test format and uniqueness."""
        ids = {generate_correlation_id() for _ in range(50)}

        assert len(ids) == 50
        for value in ids:
            uuid.UUID(value)
