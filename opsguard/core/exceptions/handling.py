"""
Error Logging & Boundary Formatting

The only approved ways for surrounding layers to turn a failure into a
log record or an outward-facing response body:

- ``log_failure``: routes a classified error to the logger at a level
  picked from its severity; high and critical errors also get their stack
  and cause chain logged.
- ``format_for_transport``: coerces any failure into the public rendering,
  or the verbose one when the caller explicitly asks for it.
"""

import uuid
from collections.abc import Mapping
from typing import Any

from opsguard.core.config.constants import Stage
from opsguard.core.exceptions.base import ClassifiedError, serialize_cause
from opsguard.core.exceptions.classifier import classify
from opsguard.core.exceptions.taxonomy import Severity
from opsguard.core.logging.logger import get_logger
from opsguard.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

_LEVEL_BY_SEVERITY = {
    Severity.LOW: ("debug", "Low severity error"),
    Severity.MEDIUM: ("warning", "Medium severity error"),
    Severity.HIGH: ("error", "High severity error"),
    Severity.CRITICAL: ("critical", "Critical error"),
}


def generate_correlation_id() -> str:
    """New correlation ID for a request."""
    return str(uuid.uuid4())


def log_failure(error: Any, context: Mapping[str, Any] | None = None) -> ClassifiedError:
    """
    Log a failure at the level matching its severity.

    Unclassified input is classified first.

    Args:
        error: ClassifiedError (or any native failure)
        context: Caller context attached to the record

    Returns:
        ClassifiedError: the error that was logged
    """
    classified = classify(error, context)
    level, message = _LEVEL_BY_SEVERITY.get(classified.severity, ("error", "Error"))

    log_func = getattr(logger, level)
    log_func(
        message,
        stage=Stage.ERROR_LOGGING.value,
        error={
            "name": type(classified).__name__,
            "message": classified.developer_message,
            "code": classified.to_public_dict()["code"],
            "type": classified.type.value,
            "severity": classified.severity.value,
            "correlation_id": classified.correlation_id,
            "metadata": classified.metadata,
        },
        context=dict(context or {}),
    )

    if classified.severity >= Severity.HIGH:
        logger.error(
            "Error stack trace",
            stage=Stage.ERROR_LOGGING.value,
            correlation_id=classified.correlation_id,
            stack=classified.stack_trace(),
            cause_chain=serialize_cause(classified.cause) if classified.cause is not None else None,
        )

    get_metrics_collector().record_error(classified)
    return classified


def format_for_transport(error: Any, verbose: bool = False) -> dict[str, Any]:
    """
    Build the response body for a failure.

    Args:
        error: ClassifiedError or any native failure (classified first)
        verbose: True only for explicitly non-production deployments

    Returns:
        dict: public rendering, or verbose rendering with developer_message,
        stack and original_error when ``verbose`` is set
    """
    classified = classify(error)
    if verbose:
        return classified.to_verbose_dict()
    return classified.to_public_dict()
