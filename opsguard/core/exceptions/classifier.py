"""
Error Classifier

Best-effort heuristic that turns an arbitrary native failure into a
ClassifiedError. Already-classified input is returned unchanged.

Rules are evaluated in a fixed order and the first match wins:

1. Storage signatures (unique constraint, locked/busy, missing table/column)
2. Network signatures (host not found, connection refused, timed out)
3. External dependency named in the message (timeout/auth/unavailable/quota)
4. Declared validation errors
5. Transport status hints (404/401/403/409/429)
6. Filesystem "not found"
7. Anything else: generic internal error wrapping the failure

``classify`` never raises. The native failure is referenced as ``cause``
on the result and never mutated.

Author: System Architect
Date: 2026-10-16
"""

import asyncio
import errno
import socket
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from opsguard.core.config.settings import get_settings
from opsguard.core.exceptions import factory
from opsguard.core.exceptions.base import ClassifiedError


@runtime_checkable
class FailureLike(Protocol):
    """
    Capabilities the classifier looks for on a native failure.

    Every attribute is optional; accessors below default safely when one
    is absent or has an unexpected type.
    """

    code: str | None
    message: str | None
    status: int | None


# Exception classes whose platform code is implied when errno is missing
_IMPLIED_CODES: tuple[tuple[type[BaseException], str], ...] = (
    (socket.gaierror, "ENOTFOUND"),
    (ConnectionRefusedError, "ECONNREFUSED"),
    (FileNotFoundError, "ENOENT"),
    (TimeoutError, "ETIMEDOUT"),
    (asyncio.TimeoutError, "ETIMEDOUT"),
)

# What the accessors and classify() accept
NativeFailure = FailureLike | BaseException

_HTTP_STATUS_RULES = (404, 401, 403, 409, 429)


# ============================================================================
# Defensive accessors
# ============================================================================


def failure_code(failure: NativeFailure | None) -> str | None:
    """
    Platform-specific error code of a native failure.

    Looks at ``code``, then sqlite3's ``sqlite_errorname``, then maps the
    exception class or its ``errno`` to a symbolic name (ECONNREFUSED, ...).
    """
    code = getattr(failure, "code", None)
    if isinstance(code, str) and code:
        return code

    sqlite_name = getattr(failure, "sqlite_errorname", None)
    if isinstance(sqlite_name, str) and sqlite_name:
        return sqlite_name

    if isinstance(failure, socket.gaierror):
        return "ENOTFOUND"

    err_no = getattr(failure, "errno", None)
    if isinstance(failure, OSError) and isinstance(err_no, int) and err_no in errno.errorcode:
        return errno.errorcode[err_no]

    for exc_type, implied in _IMPLIED_CODES:
        if isinstance(failure, exc_type):
            return implied

    return None


def failure_message(failure: NativeFailure | None) -> str:
    message = getattr(failure, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(failure) if failure is not None else ""
    return text or "Unknown error"


def failure_status(failure: NativeFailure | None) -> int | None:
    candidates = (
        getattr(failure, "status", None),
        getattr(failure, "status_code", None),
        getattr(getattr(failure, "response", None), "status_code", None),
    )
    for candidate in candidates:
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def _attr_or_context(failure: NativeFailure, context: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = getattr(failure, name, None)
        if value is not None:
            return value
    for name in names:
        if context.get(name) is not None:
            return context[name]
    return None


# ============================================================================
# Rules
# ============================================================================


def _storage_rule(failure, message, lowered, code, context) -> ClassifiedError | None:
    if (code or "").startswith("SQLITE_CONSTRAINT") or "unique constraint" in lowered:
        return factory.duplicate_entry(context.get("field", "unknown"), context.get("value"))
    if (code or "").startswith(("SQLITE_BUSY", "SQLITE_LOCKED")) or "database is locked" in lowered:
        return factory.database_timeout(context.get("operation", "query"))
    if "no such table" in lowered or "no such column" in lowered:
        return factory.database_query_failed(message, failure if _is_exc(failure) else None)
    return None


def _network_rule(failure, message, lowered, code, context) -> ClassifiedError | None:
    host = _attr_or_context(failure, context, "host", "address", "hostname")
    if code == "ENOTFOUND":
        return factory.network_error(failure if _is_exc(failure) else None, host=host)
    if code == "ECONNREFUSED":
        return factory.connection_refused(host, _attr_or_context(failure, context, "port"))
    if code == "ETIMEDOUT" or "timeout" in lowered:
        return factory.connection_timeout(_attr_or_context(failure, context, "timeout"), host)
    return None


def _dependency_rule(failure, message, lowered, dependencies, context) -> ClassifiedError | None:
    for service in dependencies:
        if not service or service.lower() not in lowered:
            continue
        cause = failure if _is_exc(failure) else None
        if "timed out" in lowered or "timeout" in lowered:
            return factory.external_service_timeout(service, getattr(failure, "timeout", None))
        if "auth" in lowered or "login" in lowered:
            return factory.external_service_auth_failed(service, cause)
        if "not found" in lowered:
            return factory.external_service_unavailable(service, "not installed or not reachable")
        if "rate limit" in lowered or "quota" in lowered:
            return factory.rate_limit_exceeded(endpoint=service)
        return factory.external_service_error(service, cause, context.get("operation"))
    return None


def _validation_rule(failure, message, lowered, context) -> ClassifiedError | None:
    if type(failure).__name__ == "ValidationError" or "validation" in lowered:
        return factory.validation(message, context.get("field"))
    return None


def _status_rule(failure, message, status, context) -> ClassifiedError | None:
    if status not in _HTTP_STATUS_RULES:
        return None
    if status == 404:
        return factory.not_found(context.get("resource") or "Resource", context.get("id"))
    if status == 401:
        return factory.authentication_failed(message)
    if status == 403:
        return factory.authorization_failed(context.get("resource"), context.get("action"))
    if status == 409:
        return factory.conflict(context.get("resource") or "Resource", message)
    return factory.rate_limit_exceeded(endpoint=context.get("endpoint"))


def _filesystem_rule(failure, code, context) -> ClassifiedError | None:
    if code == "ENOENT":
        return factory.not_found("File", context.get("path") or getattr(failure, "filename", None))
    return None


def _is_exc(failure: Any) -> bool:
    return isinstance(failure, BaseException)


# ============================================================================
# Public API
# ============================================================================


def classify(
    failure: NativeFailure | None,
    context: Mapping[str, Any] | None = None,
    dependencies: Iterable[str] | None = None,
) -> ClassifiedError:
    """
    Classify a native failure.

    Args:
        failure: Any raised exception or failure-like object
        context: Optional hints from the caller (field, resource, id,
            endpoint, action, path, operation, host, port)
        dependencies: External dependency names to look for in the message;
            defaults to the EXTERNAL_DEPENDENCIES setting

    Returns:
        ClassifiedError: ``failure`` itself if already classified
    """
    if isinstance(failure, ClassifiedError):
        return failure

    try:
        context = context or {}
        message = failure_message(failure)
        lowered = message.lower()
        code = failure_code(failure)
        if dependencies is None:
            dependencies = get_settings().EXTERNAL_DEPENDENCIES

        result = (
            _storage_rule(failure, message, lowered, code, context)
            or _network_rule(failure, message, lowered, code, context)
            or _dependency_rule(failure, message, lowered, list(dependencies), context)
            or _validation_rule(failure, message, lowered, context)
            or _status_rule(failure, message, failure_status(failure), context)
            or _filesystem_rule(failure, code, context)
            or factory.internal_error(message, failure if _is_exc(failure) else None)
        )
        if result.cause is None and _is_exc(failure):
            result.cause = failure
        return result
    except Exception as exc:
        fallback = factory.internal_error("Failure could not be classified", exc)
        if _is_exc(failure):
            fallback.cause = failure
        return fallback
