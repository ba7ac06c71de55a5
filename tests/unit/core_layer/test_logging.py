"""
Unit Tests for Logging Module

Tests logger configuration, correlation context, and log processors.
"""

import pytest
import structlog

from opsguard.core.logging.logger import (
    add_correlation_id,
    add_log_level_name,
    add_timestamp,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    get_logger,
    redact_pii,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture
def restore_structlog():
    """Undo setup_logging so other tests can capture logs."""
    yield
    structlog.reset_defaults()


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation."""

    def test_get_logger_returns_logger_instance(self):
        """Test that get_logger returns a logger with logging methods."""
        logger = get_logger(__name__)

        assert logger is not None
        for method in ("debug", "info", "warning", "error", "critical"):
            assert hasattr(logger, method)


@pytest.mark.unit
class TestCorrelationContext:
    """Test correlation ID context management."""

    def test_set_and_get(self):
        """Test that the ID is stored in context."""
        set_correlation_id("req-123")
        assert get_correlation_id() == "req-123"

    def test_clear(self):
        """Test that clearing removes the ID."""
        set_correlation_id("req-123")
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_processor_injects_id(self):
        """Test that add_correlation_id copies the context value."""
        set_correlation_id("req-456")
        event = add_correlation_id(None, "info", {"event": "hello"})

        assert event["correlation_id"] == "req-456"

    def test_processor_keeps_explicit_id(self):
        """Test that an explicit correlation_id field is not overwritten."""
        set_correlation_id("req-ctx")
        event = add_correlation_id(None, "info", {"event": "hello", "correlation_id": "req-explicit"})

        assert event["correlation_id"] == "req-explicit"

    def test_processor_without_context(self):
        """Test that nothing is added without an ID."""
        event = add_correlation_id(None, "info", {"event": "hello"})
        assert "correlation_id" not in event


@pytest.mark.unit
class TestProcessors:
    """Test the remaining processors."""

    def test_timestamp_is_utc_iso(self):
        """Test ISO-8601 with a Z suffix."""
        event = add_timestamp(None, "info", {"event": "x"})
        assert event["timestamp"].endswith("Z")
        assert "T" in event["timestamp"]

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("contact ops@example.com now", "contact [EMAIL] now"),
            ("key sk-abc123DEF leaked", "key [REDACTED] leaked"),
            ("key AIzaSyA-12_b leaked", "key [REDACTED] leaked"),
            ("call 555-123-4567", "call [PHONE]"),
        ],
    )
    def test_redact_pii(self, message, expected):
        """Test PII patterns are replaced."""
        assert redact_pii(None, "info", {"event": message})["event"] == expected

    def test_redact_pii_ignores_non_strings(self):
        """Test that non-string events pass through."""
        event = {"event": {"nested": "ops@example.com"}}
        assert redact_pii(None, "info", event)["event"] == {"nested": "ops@example.com"}

    def test_level_name_upper_cased(self):
        """Test level normalisation."""
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"


@pytest.mark.unit
class TestSetupLogging:
    """Test structlog configuration."""

    def test_json_renderer(self, restore_structlog):
        """Test that json format ends the chain with JSONRenderer."""
        setup_logging(log_level="INFO", log_format="json")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert add_correlation_id in processors
        assert redact_pii in processors

    def test_console_renderer(self, restore_structlog):
        """Test that console format uses the dev renderer."""
        setup_logging(log_level="DEBUG", log_format="console")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


@pytest.mark.unit
class TestCorrelationScope:
    """Test request-scoped correlation IDs."""

    def test_scope_binds_and_restores(self):
        """Test the ID is bound inside the scope only."""
        with correlation_scope("req-1") as correlation_id:
            assert correlation_id == "req-1"
            assert get_correlation_id() == "req-1"

        assert get_correlation_id() is None

    def test_nested_scope_keeps_first_id(self):
        """Test an inner scope cannot replace the request's ID."""
        with correlation_scope("req-outer"):
            with correlation_scope("req-inner") as inner:
                assert inner == "req-outer"
                assert get_correlation_id() == "req-outer"
            assert get_correlation_id() == "req-outer"

    def test_scope_restored_after_error(self):
        """Test the ID does not leak when the body raises."""
        with pytest.raises(RuntimeError):
            with correlation_scope("req-2"):
                raise RuntimeError("boom")

        assert get_correlation_id() is None

    def test_records_in_scope_carry_id(self):
        """Test the processor sees the scoped ID."""
        with correlation_scope("req-3"):
            event = add_correlation_id(None, "info", {"event": "inside"})

        assert event["correlation_id"] == "req-3"
