#!/usr/bin/env python3
"""
Structured Logging Module using structlog

This module provides structured logging with:
- Correlation ID injection for request tracing
- Stage identifiers for execution flow
- JSON formatting for log aggregation
- Automatic PII redaction

structlog is the logging sink for the whole package: nothing writes to
stdout directly, every record goes through a logger obtained here.

Author: System Architect
Date: 2026-10-16
"""

import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from opsguard.core.config.settings import get_settings

# Correlation ID of the request currently being served
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def add_correlation_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add the correlation ID from context to the log event.

    STAGE-L.1: Correlation ID injection
    """
    correlation_id = correlation_id_ctx.get()
    if correlation_id and "correlation_id" not in event_dict:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_pii(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact PII from log messages.

    STAGE-L.3: PII redaction

    Patterns redacted:
    - Email addresses → [EMAIL]
    - API keys (sk-..., AIza...) → [REDACTED]
    - Phone numbers → [PHONE]
    """
    message = event_dict.get("event", "")

    if isinstance(message, str):
        message = re.sub(r"\b[\w.-]+@[\w.-]+\.\w+\b", "[EMAIL]", message)
        message = re.sub(r"\bsk-[a-zA-Z0-9]+\b", "[REDACTED]", message)
        message = re.sub(r"\bAIza[a-zA-Z0-9_-]+\b", "[REDACTED]", message)
        message = re.sub(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", "[PHONE]", message)

        event_dict["event"] = message

    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Upper-case the log level.

    STAGE-L.4: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_pii,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage=Stage.MONITOR_SAMPLING)
    """
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request context.

    Called by the boundary layer at the start of each request so every
    record logged while serving it can be traced back to the response.
    """
    correlation_id_ctx.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID, if any."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of request processing."""
    correlation_id_ctx.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """
    Bind a correlation ID for the duration of one request.

    The first ID bound in a context wins: a nested scope reuses the outer
    request's ID instead of replacing it, so every record of the request
    shares one ID. The previous value is restored on exit, so nothing
    leaks into the next request served by the same worker.

    Usage:
        with correlation_scope(request_id) as correlation_id:
            ...

    Yields:
        str: The ID in force inside the scope
    """
    bound = correlation_id_ctx.get()
    if bound:
        yield bound
        return

    token = correlation_id_ctx.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_ctx.reset(token)
