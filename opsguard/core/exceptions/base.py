"""
Classified Error

This module contains ONLY the classified error value type. Well-known
constructors live in ``factory.py`` and the heuristic that converts native
failures lives in ``classifier.py``.

A ClassifiedError is created at the point a failure is detected, enriched
with a correlation ID and metadata as it travels up the call stack, and
rendered (public or verbose) and logged at the system boundary. It is never
persisted or retried.

Author: System Architect
Date: 2026-10-16
"""

import traceback
from datetime import datetime, timezone
from typing import Any

from opsguard.core.exceptions.taxonomy import (
    ErrorCode,
    ErrorType,
    Severity,
    error_type_for,
    message_for,
    resolve_code,
    severity_for,
    status_for,
)

# Depth limit when serializing nested causes
MAX_CAUSE_DEPTH = 5


class ClassifiedError(Exception):
    """
    Failure normalized into the fault taxonomy.

    Type, severity and status are looked up from the code and cannot be
    changed once the code is chosen. The wrapped cause is referenced for
    verbose output only and never mutated.

    Attributes:
        code: Taxonomy code
        developer_message: Internal description for logs and verbose output
        user_message: Public message (taxonomy default unless overridden)
        cause: Original native failure, if any
        metadata: Open key-value bag
        timestamp: Creation time (UTC)
        correlation_id: Request-scoped id assigned by the boundary layer

    Example:
        raise ClassifiedError(
            ErrorCode.RESOURCE_NOT_FOUND,
            "Session 42 not found",
            metadata={"resource": "Session", "id": 42},
        )
    """

    def __init__(
        self,
        code: ErrorCode | str,
        developer_message: str,
        cause: BaseException | None = None,
        metadata: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        self._code = resolve_code(code) or code
        self.developer_message = developer_message
        self.user_message = user_message or message_for(self._code)
        self.cause = cause
        self.metadata = (metadata or {}).copy()
        self.timestamp = datetime.now(timezone.utc)
        self._correlation_id: str | None = None
        self._creation_stack = traceback.extract_stack(limit=25)[:-1]
        super().__init__(developer_message)

    # ------------------------------------------------------------------
    # Taxonomy-derived attributes
    # ------------------------------------------------------------------

    @property
    def code(self) -> ErrorCode | str:
        return self._code

    @property
    def type(self) -> ErrorType:
        return error_type_for(self._code)

    @property
    def severity(self) -> Severity:
        return severity_for(self._code)

    @property
    def status(self) -> int:
        return status_for(self._code)

    @property
    def correlation_id(self) -> str | None:
        return self._correlation_id

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def set_correlation_id(self, correlation_id: str | None) -> "ClassifiedError":
        """
        Attach the request correlation ID.

        Only the first non-empty assignment is kept; later calls are ignored.

        Returns:
            Self (for method chaining)
        """
        if self._correlation_id is None and correlation_id:
            self._correlation_id = correlation_id
        return self

    def add_metadata(self, key: str, value: Any) -> "ClassifiedError":
        """Add one metadata entry. Returns self."""
        self.metadata[key] = value
        return self

    def with_context(self, **context) -> "ClassifiedError":
        """
        Add additional context to the error metadata.

        Args:
            **context: Key-value pairs to add to metadata

        Returns:
            Self (for method chaining)
        """
        self.metadata.update(context)
        return self

    # ------------------------------------------------------------------
    # Renderings
    # ------------------------------------------------------------------

    def to_public_dict(self) -> dict[str, Any]:
        """
        Redacted rendering safe to send to clients.

        Returns:
            Dict with error, code, type, severity, timestamp, correlation_id
            and metadata (only when non-empty)
        """
        rendered = {
            "error": self.user_message,
            "code": _code_value(self._code),
            "type": self.type.value,
            "severity": self.severity.value,
            "timestamp": _iso(self.timestamp),
            "correlation_id": self._correlation_id,
        }
        if self.metadata:
            rendered["metadata"] = dict(self.metadata)
        return rendered

    def to_verbose_dict(self) -> dict[str, Any]:
        """
        Public rendering plus developer message, stack and cause chain.

        Only for non-production responses; the caller decides.
        """
        rendered = self.to_public_dict()
        rendered["developer_message"] = self.developer_message
        rendered["stack"] = self.stack_trace()
        if self.cause is not None:
            rendered["original_error"] = serialize_cause(self.cause)
        return rendered

    def stack_trace(self) -> str:
        """Traceback if the error was raised, otherwise the creation stack."""
        if self.__traceback__ is not None:
            return "".join(traceback.format_exception(type(self), self, self.__traceback__))
        lines = traceback.format_list(self._creation_stack)
        return f"{type(self).__name__}: {self.developer_message}\n" + "".join(lines)

    def __repr__(self) -> str:
        metadata_str = f", metadata={self.metadata}" if self.metadata else ""
        correlation_str = f", correlation_id='{self._correlation_id}'" if self._correlation_id else ""
        return (
            f"{self.__class__.__name__}(code='{_code_value(self._code)}', "
            f"message='{self.developer_message}'{correlation_str}{metadata_str})"
        )


def serialize_cause(cause: Any, depth: int = 0) -> dict[str, Any]:
    """
    Serialize a native failure and its chained causes.

    Follows ``__cause__`` (explicit ``raise ... from``) and then
    ``__context__`` unless suppressed, up to MAX_CAUSE_DEPTH levels.
    """
    serialized: dict[str, Any] = {
        "name": type(cause).__name__,
        "message": str(cause),
        "stack": None,
    }
    if isinstance(cause, BaseException):
        if cause.__traceback__ is not None:
            serialized["stack"] = "".join(
                traceback.format_exception(type(cause), cause, cause.__traceback__)
            )
        chained = cause.__cause__
        if chained is None and not cause.__suppress_context__:
            chained = cause.__context__
        if chained is not None and depth + 1 < MAX_CAUSE_DEPTH:
            serialized["cause"] = serialize_cause(chained, depth + 1)
    return serialized


def _code_value(code: ErrorCode | str) -> str:
    return code.value if isinstance(code, ErrorCode) else str(code)


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")
