"""
Unit Tests for the Fault Taxonomy

Tests that every code resolves to exactly one type, severity, status and
message, and that lookups are total.
"""

import pytest

from opsguard.core.exceptions import (
    ErrorCode,
    ErrorType,
    Severity,
    TaxonomyError,
    error_type_for,
    message_for,
    severity_for,
    status_for,
    validate_taxonomy,
)
from opsguard.core.exceptions import taxonomy


@pytest.mark.unit
class TestTaxonomyCompleteness:
    """Every ErrorCode appears in all four tables."""

    @pytest.mark.parametrize("code", list(ErrorCode))
    def test_every_code_resolves_in_every_table(self, code):
        """Test that lookups return a concrete value for each code."""
        assert code in taxonomy.ERROR_CODE_TO_TYPE
        assert code in taxonomy.ERROR_CODE_TO_SEVERITY
        assert code in taxonomy.ERROR_CODE_TO_HTTP_STATUS
        assert code in taxonomy.USER_FRIENDLY_MESSAGES

        assert isinstance(error_type_for(code), ErrorType)
        assert isinstance(severity_for(code), Severity)
        assert 400 <= status_for(code) <= 599
        assert message_for(code)

    def test_tables_have_no_extra_keys(self):
        """Test that tables contain exactly the defined codes."""
        codes = set(ErrorCode)
        for table in (
            taxonomy.ERROR_CODE_TO_TYPE,
            taxonomy.ERROR_CODE_TO_SEVERITY,
            taxonomy.ERROR_CODE_TO_HTTP_STATUS,
            taxonomy.USER_FRIENDLY_MESSAGES,
        ):
            assert set(table) == codes

    def test_codes_are_unique(self):
        """Test that no two members share a code value."""
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_validate_taxonomy_passes(self):
        """Test that the shipped taxonomy is complete."""
        validate_taxonomy()

    def test_validate_taxonomy_reports_missing_entries(self, monkeypatch):
        """Test that a missing table entry is reported by name."""
        broken = dict(taxonomy.ERROR_CODE_TO_SEVERITY)
        del broken[ErrorCode.DATABASE_TIMEOUT]
        monkeypatch.setattr(taxonomy, "ERROR_CODE_TO_SEVERITY", broken)

        with pytest.raises(TaxonomyError) as exc_info:
            validate_taxonomy()

        assert "severity" in str(exc_info.value)
        assert "DATABASE_TIMEOUT" in str(exc_info.value)

    def test_tables_are_read_only(self):
        """Test that the tables cannot be mutated at runtime."""
        with pytest.raises(TypeError):
            taxonomy.ERROR_CODE_TO_HTTP_STATUS[ErrorCode.UNKNOWN_ERROR] = 200


@pytest.mark.unit
class TestTaxonomyFallbacks:
    """Unknown codes never break reporting."""

    @pytest.mark.parametrize("code", ["E9999", "", None, "not-a-code"])
    def test_unknown_code_falls_back(self, code):
        """Test unknown/medium/500/generic for unrecognised codes."""
        assert error_type_for(code) is ErrorType.UNKNOWN
        assert severity_for(code) is Severity.MEDIUM
        assert status_for(code) == 500
        assert message_for(code) == message_for(ErrorCode.UNKNOWN_ERROR)

    def test_string_code_resolves_like_enum(self):
        """Test that the raw code string resolves to the same entries."""
        assert status_for("E4001") == status_for(ErrorCode.RESOURCE_NOT_FOUND) == 404
        assert error_type_for("N1003") is ErrorType.NETWORK


@pytest.mark.unit
class TestTaxonomyMappings:
    """Spot checks on the mapping tables."""

    def test_lock_and_timeout_codes_are_timeout_typed(self):
        """Test that timeout-like codes share the timeout type."""
        for code in (
            ErrorCode.DATABASE_TIMEOUT,
            ErrorCode.CONNECTION_TIMEOUT,
            ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
        ):
            assert error_type_for(code) is ErrorType.TIMEOUT

    def test_validation_codes_are_low_severity_400(self):
        """Test validation codes."""
        for code in (
            ErrorCode.VALIDATION_FAILED,
            ErrorCode.INVALID_INPUT,
            ErrorCode.MISSING_REQUIRED_FIELD,
            ErrorCode.INVALID_FORMAT,
        ):
            assert severity_for(code) is Severity.LOW
            assert status_for(code) == 400

    def test_rate_limit_is_429(self):
        """Test rate limit status."""
        assert status_for(ErrorCode.RATE_LIMIT_EXCEEDED) == 429
        assert error_type_for(ErrorCode.RATE_LIMIT_EXCEEDED) is ErrorType.RATE_LIMIT


@pytest.mark.unit
class TestSeverityOrdering:
    """Severity compares by rank."""

    def test_ordering(self):
        """Test LOW < MEDIUM < HIGH < CRITICAL."""
        assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL
        assert Severity.CRITICAL >= Severity.HIGH
        assert Severity.MEDIUM <= Severity.MEDIUM

    def test_ordering_is_not_alphabetical(self):
        """Test that 'critical' ranks above 'low' despite sorting before it."""
        assert Severity.CRITICAL > Severity.LOW
        assert sorted([Severity.HIGH, Severity.LOW, Severity.CRITICAL]) == [
            Severity.LOW,
            Severity.HIGH,
            Severity.CRITICAL,
        ]

    def test_severity_is_hashable(self):
        """Test that severities can key a dict."""
        assert {Severity.LOW: 1}[Severity.LOW] == 1
