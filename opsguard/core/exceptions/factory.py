"""
Error Factory

One constructor per well-known failure situation. Callers pass only the
contextually relevant parameters and get back a fully formed
ClassifiedError with metadata already populated; no caller needs to know
which taxonomy code a situation maps to.

Metadata entries whose value is None are omitted.

Usage:
------
```python
from opsguard.core.exceptions import factory

raise factory.not_found("Session", session_id)
raise factory.connection_refused(host="db.internal", port=5432)
```
"""

from typing import Any

from opsguard.core.exceptions.base import ClassifiedError
from opsguard.core.exceptions.taxonomy import ErrorCode


def _build(
    code: ErrorCode,
    message: str,
    cause: BaseException | None = None,
    **metadata: Any,
) -> ClassifiedError:
    return ClassifiedError(
        code,
        message,
        cause=cause,
        metadata={key: value for key, value in metadata.items() if value is not None},
    )


# ============================================================================
# Validation
# ============================================================================


def validation(message: str, field: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.VALIDATION_FAILED, message, field=field)


def invalid_input(field: str, value: Any = None) -> ClassifiedError:
    return _build(ErrorCode.INVALID_INPUT, f"Invalid input for field: {field}", field=field, value=value)


def missing_field(field: str) -> ClassifiedError:
    return _build(ErrorCode.MISSING_REQUIRED_FIELD, f"Missing required field: {field}", field=field)


def invalid_format(field: str, expected_format: str | None = None) -> ClassifiedError:
    return _build(
        ErrorCode.INVALID_FORMAT,
        f"Invalid format for field: {field}",
        field=field,
        expected_format=expected_format,
    )


# ============================================================================
# Authentication / Authorization
# ============================================================================


def authentication_failed(reason: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.AUTHENTICATION_FAILED, "Authentication failed", reason=reason)


def token_expired(token_type: str = "access") -> ClassifiedError:
    return _build(ErrorCode.TOKEN_EXPIRED, "Token has expired", token_type=token_type)


def token_invalid(token_type: str = "access") -> ClassifiedError:
    return _build(ErrorCode.TOKEN_INVALID, "Token is invalid", token_type=token_type)


def authorization_failed(resource: str | None = None, action: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.AUTHORIZATION_FAILED, "Authorization failed", resource=resource, action=action)


def access_denied(resource: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.ACCESS_DENIED, "Access denied", resource=resource)


# ============================================================================
# Resources
# ============================================================================


def not_found(resource: str, id: Any = None) -> ClassifiedError:
    return _build(ErrorCode.RESOURCE_NOT_FOUND, f"{resource} not found", resource=resource, id=id)


def endpoint_not_found(path: str, method: str) -> ClassifiedError:
    return _build(
        ErrorCode.ENDPOINT_NOT_FOUND,
        f"Endpoint not found: {method} {path}",
        path=path,
        method=method,
    )


def conflict(resource: str, reason: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.RESOURCE_CONFLICT, f"Resource conflict: {resource}", resource=resource, reason=reason)


def duplicate_entry(field: str, value: Any = None) -> ClassifiedError:
    return _build(ErrorCode.DUPLICATE_ENTRY, f"Duplicate entry for field: {field}", field=field, value=value)


def rate_limit_exceeded(
    limit: int | None = None,
    window_ms: int | None = None,
    endpoint: str | None = None,
) -> ClassifiedError:
    return _build(
        ErrorCode.RATE_LIMIT_EXCEEDED,
        "Rate limit exceeded",
        limit=limit,
        window_ms=window_ms,
        endpoint=endpoint,
    )


# ============================================================================
# System
# ============================================================================


def internal_error(
    message: str = "Internal server error",
    cause: BaseException | None = None,
) -> ClassifiedError:
    return _build(ErrorCode.INTERNAL_SERVER_ERROR, message, cause)


def service_unavailable(service: str | None = None, reason: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.SERVICE_UNAVAILABLE, "Service unavailable", service=service, reason=reason)


def configuration_error(setting: str, value: Any = None) -> ClassifiedError:
    return _build(ErrorCode.CONFIGURATION_ERROR, f"Configuration error: {setting}", setting=setting, value=value)


def unknown(message: str = "Unknown error", cause: BaseException | None = None) -> ClassifiedError:
    return _build(ErrorCode.UNKNOWN_ERROR, message, cause)


# ============================================================================
# Storage
# ============================================================================


def database_connection_failed(cause: BaseException | None = None) -> ClassifiedError:
    return _build(ErrorCode.DATABASE_CONNECTION_FAILED, "Database connection failed", cause)


def database_query_failed(query: str | None = None, cause: BaseException | None = None) -> ClassifiedError:
    return _build(ErrorCode.DATABASE_QUERY_FAILED, "Database query failed", cause, query=query)


def database_timeout(operation: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.DATABASE_TIMEOUT, "Database operation timeout", operation=operation)


# ============================================================================
# External dependencies
# ============================================================================


def external_service_error(
    service: str,
    cause: BaseException | None = None,
    operation: str | None = None,
) -> ClassifiedError:
    return _build(
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        f"External service error: {service}",
        cause,
        service=service,
        operation=operation,
    )


def external_service_timeout(service: str, timeout: float | None = None) -> ClassifiedError:
    return _build(
        ErrorCode.EXTERNAL_SERVICE_TIMEOUT,
        f"External service timeout: {service}",
        service=service,
        timeout=timeout,
    )


def external_service_auth_failed(service: str, cause: BaseException | None = None) -> ClassifiedError:
    return _build(
        ErrorCode.EXTERNAL_SERVICE_AUTH_FAILED,
        f"External service authentication failed: {service}",
        cause,
        service=service,
    )


def external_service_unavailable(service: str, reason: str | None = None) -> ClassifiedError:
    return _build(
        ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
        f"External service not available: {service}",
        service=service,
        reason=reason,
    )


# ============================================================================
# Network / live connections
# ============================================================================


def network_error(cause: BaseException | None = None, host: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.NETWORK_ERROR, "Network error", cause, host=host)


def connection_timeout(timeout: float | None = None, host: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.CONNECTION_TIMEOUT, "Connection timeout", timeout=timeout, host=host)


def connection_refused(host: str | None = None, port: int | None = None) -> ClassifiedError:
    return _build(ErrorCode.CONNECTION_REFUSED, "Connection refused", host=host, port=port)


def connection_failed(reason: str | None = None, cause: BaseException | None = None) -> ClassifiedError:
    return _build(ErrorCode.CONNECTION_FAILED, "Live connection failed", cause, reason=reason)


def connection_send_failed(message_type: str | None = None) -> ClassifiedError:
    return _build(ErrorCode.CONNECTION_SEND_FAILED, "Live connection send failed", message_type=message_type)
