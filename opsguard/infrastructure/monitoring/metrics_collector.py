#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides metrics collection with:
- Classified error counts by code, type and severity
- Monitor cycle outcomes
- Alert counts by kind
- Remediation outcomes by action
- Connection and heap gauges refreshed on every sampling cycle

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Efficient storage and aggregation

Author: Senior Solution Architect
Date: 2026-10-16
"""

from typing import Any

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Info,
    generate_latest,
)

from opsguard.core.config.settings import get_settings
from opsguard.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Error metrics
ERRORS = Counter(
    'opsguard_errors_total',
    'Total classified errors logged',
    ['code', 'type', 'severity']
)

# Monitor metrics
MONITOR_CYCLES = Counter(
    'opsguard_monitor_cycles_total',
    'Resource monitor sampling cycles',
    ['outcome']  # completed, failed, skipped
)

MONITOR_ALERTS = Counter(
    'opsguard_monitor_alerts_total',
    'Threshold alerts raised by the resource monitor',
    ['kind']
)

REMEDIATIONS = Counter(
    'opsguard_remediations_total',
    'Remediation actions issued against the connection service',
    ['action', 'outcome']  # succeeded, failed
)

# Connection service gauges
ACTIVE_CONNECTIONS = Gauge(
    'opsguard_active_connections',
    'Active connections at the last sample'
)

INACTIVE_CONNECTIONS = Gauge(
    'opsguard_inactive_connections',
    'Inactive connections at the last sample'
)

PROCESSING_JOBS = Gauge(
    'opsguard_processing_jobs',
    'In-flight jobs at the last sample'
)

# Process gauges
HEAP_USED_BYTES = Gauge(
    'opsguard_process_heap_used_bytes',
    'Private resident memory of the process at the last sample'
)

# App info
APP_INFO = Info(
    'opsguard_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()
        metrics.record_error(classified_error)
        metrics.record_alert("high_connection_count")
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Error Metrics
    # =========================================================================

    def record_error(self, error: Any) -> None:
        """Record a logged ClassifiedError."""
        code = getattr(error.code, "value", error.code)
        ERRORS.labels(
            code=str(code),
            type=error.type.value,
            severity=error.severity.value
        ).inc()

    # =========================================================================
    # Monitor Metrics
    # =========================================================================

    def record_cycle(self, outcome: str) -> None:
        """Record a sampling cycle outcome."""
        MONITOR_CYCLES.labels(outcome=outcome).inc()

    def record_alert(self, kind: str) -> None:
        """Record an alert."""
        MONITOR_ALERTS.labels(kind=kind).inc()

    def record_remediation(self, action: str, succeeded: bool) -> None:
        """Record a remediation attempt."""
        REMEDIATIONS.labels(action=action, outcome="succeeded" if succeeded else "failed").inc()

    def set_connection_stats(self, active: int, inactive: int, processing_jobs: int) -> None:
        """Refresh connection service gauges."""
        ACTIVE_CONNECTIONS.set(active)
        INACTIVE_CONNECTIONS.set(inactive)
        PROCESSING_JOBS.set(processing_jobs)

    def set_heap_used(self, heap_used_bytes: int) -> None:
        """Refresh the heap gauge."""
        HEAP_USED_BYTES.set(heap_used_bytes)

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
