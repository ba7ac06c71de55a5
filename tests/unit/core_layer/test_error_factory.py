"""
Unit Tests for the Error Factory

Tests that each constructor picks the right code and populates metadata.
"""

import pytest

from opsguard.core.exceptions import ClassifiedError, ErrorCode, ErrorType, factory


@pytest.mark.unit
class TestFactoryCodes:
    """Each constructor maps to one taxonomy code."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (factory.validation("bad"), ErrorCode.VALIDATION_FAILED),
            (factory.invalid_input("age", -1), ErrorCode.INVALID_INPUT),
            (factory.missing_field("name"), ErrorCode.MISSING_REQUIRED_FIELD),
            (factory.invalid_format("date", "YYYY-MM-DD"), ErrorCode.INVALID_FORMAT),
            (factory.authentication_failed(), ErrorCode.AUTHENTICATION_FAILED),
            (factory.token_expired(), ErrorCode.TOKEN_EXPIRED),
            (factory.token_invalid(), ErrorCode.TOKEN_INVALID),
            (factory.authorization_failed("session", "delete"), ErrorCode.AUTHORIZATION_FAILED),
            (factory.access_denied("session"), ErrorCode.ACCESS_DENIED),
            (factory.not_found("Session", 1), ErrorCode.RESOURCE_NOT_FOUND),
            (factory.endpoint_not_found("/x", "GET"), ErrorCode.ENDPOINT_NOT_FOUND),
            (factory.conflict("Session"), ErrorCode.RESOURCE_CONFLICT),
            (factory.duplicate_entry("email"), ErrorCode.DUPLICATE_ENTRY),
            (factory.rate_limit_exceeded(100, 60000), ErrorCode.RATE_LIMIT_EXCEEDED),
            (factory.internal_error(), ErrorCode.INTERNAL_SERVER_ERROR),
            (factory.service_unavailable(), ErrorCode.SERVICE_UNAVAILABLE),
            (factory.configuration_error("X"), ErrorCode.CONFIGURATION_ERROR),
            (factory.unknown(), ErrorCode.UNKNOWN_ERROR),
            (factory.database_connection_failed(), ErrorCode.DATABASE_CONNECTION_FAILED),
            (factory.database_query_failed("SELECT 1"), ErrorCode.DATABASE_QUERY_FAILED),
            (factory.database_timeout("insert"), ErrorCode.DATABASE_TIMEOUT),
            (factory.external_service_error("gemini"), ErrorCode.EXTERNAL_SERVICE_ERROR),
            (factory.external_service_timeout("gemini", 30), ErrorCode.EXTERNAL_SERVICE_TIMEOUT),
            (factory.external_service_auth_failed("gemini"), ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED),
            (factory.external_service_unavailable("gemini"), ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE),
            (factory.network_error(), ErrorCode.NETWORK_ERROR),
            (factory.connection_timeout(5), ErrorCode.CONNECTION_TIMEOUT),
            (factory.connection_refused("db", 5432), ErrorCode.CONNECTION_REFUSED),
            (factory.connection_failed("handshake"), ErrorCode.CONNECTION_FAILED),
            (factory.connection_send_failed("progress"), ErrorCode.CONNECTION_SEND_FAILED),
        ],
    )
    def test_constructor_code(self, error, code):
        """Test that the constructor returns a ClassifiedError with the expected code."""
        assert isinstance(error, ClassifiedError)
        assert error.code is code


@pytest.mark.unit
class TestFactoryMetadata:
    """Constructors populate contextual metadata."""

    def test_not_found_metadata(self):
        """Test resource and id metadata."""
        error = factory.not_found("Session", 42)

        assert error.metadata == {"resource": "Session", "id": 42}
        assert error.developer_message == "Session not found"

    def test_none_values_are_omitted(self):
        """Test that absent parameters do not appear as None."""
        error = factory.not_found("Session")
        assert error.metadata == {"resource": "Session"}

        assert factory.validation("bad").metadata == {}

    def test_connection_refused_metadata(self):
        """Test host and port metadata."""
        error = factory.connection_refused("db.internal", 5432)

        assert error.type is ErrorType.NETWORK
        assert error.metadata == {"host": "db.internal", "port": 5432}

    def test_rate_limit_metadata(self):
        """Test limit, window and endpoint metadata."""
        error = factory.rate_limit_exceeded(100, 60000, "/api/run")

        assert error.metadata == {"limit": 100, "window_ms": 60000, "endpoint": "/api/run"}
        assert error.status == 429

    def test_cause_is_wrapped_not_mutated(self):
        """Test that the native failure is referenced unchanged."""
        cause = ConnectionError("reset by peer")
        error = factory.external_service_error("gemini", cause, "generate")

        assert error.cause is cause
        assert str(cause) == "reset by peer"
        assert error.metadata == {"service": "gemini", "operation": "generate"}

    def test_constructors_are_independent(self):
        """Test that two constructions never share metadata."""
        first = factory.not_found("Session", 1)
        second = factory.not_found("Session", 2)
        first.add_metadata("extra", True)

        assert "extra" not in second.metadata
