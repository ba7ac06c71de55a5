"""
Fault Taxonomy

Closed enumeration of error codes. Every code maps to exactly one error
type, one severity, one transport status and one user-facing message.

The four tables are built once at import time, wrapped in read-only
mappings, and checked for completeness by ``validate_taxonomy()`` before
the module finishes loading. Lookups are total: an unrecognised code
resolves to ``unknown`` / ``medium`` / 500 / a generic message so that
reporting a failure can never itself fail.

Code layout:
------------
- E0xxx: unknown
- E1xxx: validation
- E2xxx: authentication
- E3xxx: authorization
- E4xxx: not found
- E5xxx: conflict
- E6xxx: rate limit
- E7xxx: external service
- E8xxx: storage
- E9xxx: system
- N1xxx: network / connection

Author: System Architect
Date: 2026-10-16
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class TaxonomyError(Exception):
    """Raised at import when the taxonomy tables are incomplete."""


class ErrorType(str, Enum):
    """Classification of a failure; drives log routing and client handling."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    EXTERNAL_SERVICE = "external_service"
    STORAGE = "storage"
    SYSTEM = "system"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """
    Ordered severity levels: LOW < MEDIUM < HIGH < CRITICAL.

    Comparison uses rank, not the string value.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class ErrorCode(str, Enum):
    """Closed set of error codes."""

    UNKNOWN_ERROR = "E0000"

    VALIDATION_FAILED = "E1001"
    INVALID_INPUT = "E1002"
    MISSING_REQUIRED_FIELD = "E1003"
    INVALID_FORMAT = "E1004"

    AUTHENTICATION_FAILED = "E2001"
    TOKEN_EXPIRED = "E2002"
    TOKEN_INVALID = "E2003"

    AUTHORIZATION_FAILED = "E3001"
    ACCESS_DENIED = "E3002"

    RESOURCE_NOT_FOUND = "E4001"
    ENDPOINT_NOT_FOUND = "E4002"

    RESOURCE_CONFLICT = "E5001"
    DUPLICATE_ENTRY = "E5002"

    RATE_LIMIT_EXCEEDED = "E6001"

    EXTERNAL_SERVICE_ERROR = "E7001"
    EXTERNAL_SERVICE_TIMEOUT = "E7002"
    EXTERNAL_SERVICE_AUTH_FAILED = "E7003"
    EXTERNAL_SERVICE_UNAVAILABLE = "E7004"

    DATABASE_CONNECTION_FAILED = "E8001"
    DATABASE_QUERY_FAILED = "E8002"
    DATABASE_TIMEOUT = "E8003"

    INTERNAL_SERVER_ERROR = "E9001"
    SERVICE_UNAVAILABLE = "E9002"
    CONFIGURATION_ERROR = "E9003"

    NETWORK_ERROR = "N1001"
    CONNECTION_TIMEOUT = "N1002"
    CONNECTION_REFUSED = "N1003"
    CONNECTION_FAILED = "N1004"
    CONNECTION_SEND_FAILED = "N1005"


# ============================================================================
# Mapping tables
# ============================================================================

ERROR_CODE_TO_TYPE: Mapping[ErrorCode, ErrorType] = MappingProxyType({
    ErrorCode.UNKNOWN_ERROR: ErrorType.UNKNOWN,
    ErrorCode.VALIDATION_FAILED: ErrorType.VALIDATION,
    ErrorCode.INVALID_INPUT: ErrorType.VALIDATION,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorType.VALIDATION,
    ErrorCode.INVALID_FORMAT: ErrorType.VALIDATION,
    ErrorCode.AUTHENTICATION_FAILED: ErrorType.AUTHENTICATION,
    ErrorCode.TOKEN_EXPIRED: ErrorType.AUTHENTICATION,
    ErrorCode.TOKEN_INVALID: ErrorType.AUTHENTICATION,
    ErrorCode.AUTHORIZATION_FAILED: ErrorType.AUTHORIZATION,
    ErrorCode.ACCESS_DENIED: ErrorType.AUTHORIZATION,
    ErrorCode.RESOURCE_NOT_FOUND: ErrorType.NOT_FOUND,
    ErrorCode.ENDPOINT_NOT_FOUND: ErrorType.NOT_FOUND,
    ErrorCode.RESOURCE_CONFLICT: ErrorType.CONFLICT,
    ErrorCode.DUPLICATE_ENTRY: ErrorType.CONFLICT,
    ErrorCode.RATE_LIMIT_EXCEEDED: ErrorType.RATE_LIMIT,
    ErrorCode.EXTERNAL_SERVICE_ERROR: ErrorType.EXTERNAL_SERVICE,
    ErrorCode.EXTERNAL_SERVICE_TIMEOUT: ErrorType.TIMEOUT,
    ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED: ErrorType.EXTERNAL_SERVICE,
    ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE: ErrorType.EXTERNAL_SERVICE,
    ErrorCode.DATABASE_CONNECTION_FAILED: ErrorType.STORAGE,
    ErrorCode.DATABASE_QUERY_FAILED: ErrorType.STORAGE,
    ErrorCode.DATABASE_TIMEOUT: ErrorType.TIMEOUT,
    ErrorCode.INTERNAL_SERVER_ERROR: ErrorType.SYSTEM,
    ErrorCode.SERVICE_UNAVAILABLE: ErrorType.SYSTEM,
    ErrorCode.CONFIGURATION_ERROR: ErrorType.SYSTEM,
    ErrorCode.NETWORK_ERROR: ErrorType.NETWORK,
    ErrorCode.CONNECTION_TIMEOUT: ErrorType.TIMEOUT,
    ErrorCode.CONNECTION_REFUSED: ErrorType.NETWORK,
    ErrorCode.CONNECTION_FAILED: ErrorType.NETWORK,
    ErrorCode.CONNECTION_SEND_FAILED: ErrorType.NETWORK,
})

ERROR_CODE_TO_SEVERITY: Mapping[ErrorCode, Severity] = MappingProxyType({
    ErrorCode.UNKNOWN_ERROR: Severity.MEDIUM,
    ErrorCode.VALIDATION_FAILED: Severity.LOW,
    ErrorCode.INVALID_INPUT: Severity.LOW,
    ErrorCode.MISSING_REQUIRED_FIELD: Severity.LOW,
    ErrorCode.INVALID_FORMAT: Severity.LOW,
    ErrorCode.AUTHENTICATION_FAILED: Severity.MEDIUM,
    ErrorCode.TOKEN_EXPIRED: Severity.LOW,
    ErrorCode.TOKEN_INVALID: Severity.MEDIUM,
    ErrorCode.AUTHORIZATION_FAILED: Severity.MEDIUM,
    ErrorCode.ACCESS_DENIED: Severity.MEDIUM,
    ErrorCode.RESOURCE_NOT_FOUND: Severity.LOW,
    ErrorCode.ENDPOINT_NOT_FOUND: Severity.LOW,
    ErrorCode.RESOURCE_CONFLICT: Severity.MEDIUM,
    ErrorCode.DUPLICATE_ENTRY: Severity.MEDIUM,
    ErrorCode.RATE_LIMIT_EXCEEDED: Severity.MEDIUM,
    ErrorCode.EXTERNAL_SERVICE_ERROR: Severity.HIGH,
    ErrorCode.EXTERNAL_SERVICE_TIMEOUT: Severity.HIGH,
    ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED: Severity.CRITICAL,
    ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE: Severity.CRITICAL,
    ErrorCode.DATABASE_CONNECTION_FAILED: Severity.CRITICAL,
    ErrorCode.DATABASE_QUERY_FAILED: Severity.HIGH,
    ErrorCode.DATABASE_TIMEOUT: Severity.HIGH,
    ErrorCode.INTERNAL_SERVER_ERROR: Severity.HIGH,
    ErrorCode.SERVICE_UNAVAILABLE: Severity.CRITICAL,
    ErrorCode.CONFIGURATION_ERROR: Severity.CRITICAL,
    ErrorCode.NETWORK_ERROR: Severity.HIGH,
    ErrorCode.CONNECTION_TIMEOUT: Severity.MEDIUM,
    ErrorCode.CONNECTION_REFUSED: Severity.HIGH,
    ErrorCode.CONNECTION_FAILED: Severity.MEDIUM,
    ErrorCode.CONNECTION_SEND_FAILED: Severity.LOW,
})

ERROR_CODE_TO_HTTP_STATUS: Mapping[ErrorCode, int] = MappingProxyType({
    ErrorCode.UNKNOWN_ERROR: 500,
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.AUTHENTICATION_FAILED: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.TOKEN_INVALID: 401,
    ErrorCode.AUTHORIZATION_FAILED: 403,
    ErrorCode.ACCESS_DENIED: 403,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.ENDPOINT_NOT_FOUND: 404,
    ErrorCode.RESOURCE_CONFLICT: 409,
    ErrorCode.DUPLICATE_ENTRY: 409,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.EXTERNAL_SERVICE_TIMEOUT: 504,
    ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED: 502,
    ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE: 503,
    ErrorCode.DATABASE_CONNECTION_FAILED: 503,
    ErrorCode.DATABASE_QUERY_FAILED: 500,
    ErrorCode.DATABASE_TIMEOUT: 504,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.NETWORK_ERROR: 502,
    ErrorCode.CONNECTION_TIMEOUT: 504,
    ErrorCode.CONNECTION_REFUSED: 502,
    ErrorCode.CONNECTION_FAILED: 502,
    ErrorCode.CONNECTION_SEND_FAILED: 500,
})

USER_FRIENDLY_MESSAGES: Mapping[ErrorCode, str] = MappingProxyType({
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred. Please try again later.",
    ErrorCode.VALIDATION_FAILED: "The submitted data is invalid. Please check your input.",
    ErrorCode.INVALID_INPUT: "One of the submitted values is invalid.",
    ErrorCode.MISSING_REQUIRED_FIELD: "A required field is missing.",
    ErrorCode.INVALID_FORMAT: "One of the submitted values has an invalid format.",
    ErrorCode.AUTHENTICATION_FAILED: "Authentication failed. Please sign in again.",
    ErrorCode.TOKEN_EXPIRED: "Your session has expired. Please sign in again.",
    ErrorCode.TOKEN_INVALID: "Your credentials are invalid. Please sign in again.",
    ErrorCode.AUTHORIZATION_FAILED: "You are not allowed to perform this action.",
    ErrorCode.ACCESS_DENIED: "Access to this resource is denied.",
    ErrorCode.RESOURCE_NOT_FOUND: "The requested resource was not found.",
    ErrorCode.ENDPOINT_NOT_FOUND: "The requested endpoint does not exist.",
    ErrorCode.RESOURCE_CONFLICT: "The request conflicts with the current state of the resource.",
    ErrorCode.DUPLICATE_ENTRY: "This entry already exists.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please slow down and try again later.",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "An upstream service failed. Please try again later.",
    ErrorCode.EXTERNAL_SERVICE_TIMEOUT: "An upstream service took too long to respond.",
    ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED: "The service could not authenticate with an upstream provider.",
    ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE: "An upstream service is currently unavailable.",
    ErrorCode.DATABASE_CONNECTION_FAILED: "The data store is currently unavailable.",
    ErrorCode.DATABASE_QUERY_FAILED: "The data store could not complete the request.",
    ErrorCode.DATABASE_TIMEOUT: "The data store is busy. Please try again shortly.",
    ErrorCode.INTERNAL_SERVER_ERROR: "An internal error occurred. Please try again later.",
    ErrorCode.SERVICE_UNAVAILABLE: "The service is temporarily unavailable.",
    ErrorCode.CONFIGURATION_ERROR: "The service is misconfigured. Please contact support.",
    ErrorCode.NETWORK_ERROR: "A network error occurred. Please try again later.",
    ErrorCode.CONNECTION_TIMEOUT: "The connection timed out. Please try again.",
    ErrorCode.CONNECTION_REFUSED: "A required service refused the connection.",
    ErrorCode.CONNECTION_FAILED: "The live connection could not be established.",
    ErrorCode.CONNECTION_SEND_FAILED: "A message could not be delivered over the live connection.",
})

_FALLBACK_TYPE = ErrorType.UNKNOWN
_FALLBACK_SEVERITY = Severity.MEDIUM
_FALLBACK_STATUS = 500
_FALLBACK_MESSAGE = "An unexpected error occurred. Please try again later."


# ============================================================================
# Lookups
# ============================================================================


def resolve_code(code: ErrorCode | str | None) -> ErrorCode | None:
    """Return the ErrorCode for ``code`` or None if it is not in the taxonomy."""
    if isinstance(code, ErrorCode):
        return code
    try:
        return ErrorCode(code)
    except ValueError:
        return None


def error_type_for(code: ErrorCode | str | None) -> ErrorType:
    return ERROR_CODE_TO_TYPE.get(resolve_code(code), _FALLBACK_TYPE)


def severity_for(code: ErrorCode | str | None) -> Severity:
    return ERROR_CODE_TO_SEVERITY.get(resolve_code(code), _FALLBACK_SEVERITY)


def status_for(code: ErrorCode | str | None) -> int:
    return ERROR_CODE_TO_HTTP_STATUS.get(resolve_code(code), _FALLBACK_STATUS)


def message_for(code: ErrorCode | str | None) -> str:
    return USER_FRIENDLY_MESSAGES.get(resolve_code(code), _FALLBACK_MESSAGE)


def validate_taxonomy() -> None:
    """
    Check that every ErrorCode appears in all four mapping tables.

    Raises:
        TaxonomyError: listing each table and the codes it is missing
    """
    tables = {
        "type": ERROR_CODE_TO_TYPE,
        "severity": ERROR_CODE_TO_SEVERITY,
        "status": ERROR_CODE_TO_HTTP_STATUS,
        "message": USER_FRIENDLY_MESSAGES,
    }
    missing = {
        name: sorted(code.name for code in ErrorCode if code not in table)
        for name, table in tables.items()
    }
    missing = {name: codes for name, codes in missing.items() if codes}
    if missing:
        raise TaxonomyError(f"Error taxonomy is incomplete: {missing}")


validate_taxonomy()
