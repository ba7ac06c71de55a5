"""
FastAPI Dependencies

Route handlers receive application singletons through these providers.
The lifespan stores them on ``app.state``; outside the lifespan (tests
that skip startup) the process-wide instances are used.
"""

from typing import Annotated

from fastapi import Depends, Request

from opsguard.core.resilience.connection_registry import get_connection_registry
from opsguard.core.resilience.connection_service import ConnectionService
from opsguard.infrastructure.monitoring.metrics_collector import MetricsCollector, get_metrics_collector
from opsguard.infrastructure.monitoring.resource_monitor import (
    ResourceHealthMonitor,
    get_resource_monitor,
)


def get_monitor(request: Request) -> ResourceHealthMonitor:
    """
    Resource monitor from application state.

    Raises:
        ClassifiedError: configuration error if no monitor was initialized
    """
    monitor = getattr(request.app.state, "resource_monitor", None)
    if monitor is not None:
        return monitor
    return get_resource_monitor()


def get_connection_service(request: Request) -> ConnectionService:
    """Connection service from application state, else the global registry."""
    service = getattr(request.app.state, "connection_service", None)
    if service is not None:
        return service
    return get_connection_registry()


MonitorDep = Annotated[ResourceHealthMonitor, Depends(get_monitor)]
ConnectionServiceDep = Annotated[ConnectionService, Depends(get_connection_service)]
MetricsDep = Annotated[MetricsCollector, Depends(get_metrics_collector)]
