"""
Monitoring Routes

Operational endpoints over the resource health monitor:

- GET   /monitoring/report          history summary (bounded)
- GET   /monitoring/stats           live process / connection view
- GET   /monitoring/health          connection service health check
- PATCH /monitoring/thresholds      partial alert threshold update
- POST  /monitoring/history/clear   drop history, re-capture baseline
- GET   /monitoring/metrics         Prometheus text exposition

In production these endpoints belong on an internal port.
"""

from typing import Any

from fastapi import APIRouter, Response, status

from opsguard.application.api.dependencies import ConnectionServiceDep, MetricsDep, MonitorDep
from opsguard.application.api.models.monitoring import (
    HistoryClearedResponse,
    ThresholdsResponse,
    ThresholdsUpdate,
)
from opsguard.core.logging.logger import get_logger
from opsguard.core.resilience.connection_service import maybe_await

logger = get_logger(__name__)

router = APIRouter(prefix="/monitoring", tags=["Monitoring"])


@router.get("/report")
async def get_monitoring_report(monitor: MonitorDep) -> dict[str, Any]:
    """
    Summary of the retained history.

    Returns 200 with ``{"error": "No monitoring data available", ...}``
    when nothing has been sampled yet.
    """
    return monitor.get_report()


@router.get("/stats")
async def get_current_stats(monitor: MonitorDep) -> dict[str, Any]:
    """Live memory and connection figures plus monitor state."""
    return await monitor.get_current_stats()


@router.get("/health")
async def get_connection_health(service: ConnectionServiceDep) -> dict[str, Any]:
    """Connection service health check, including memory-leak warnings."""
    return dict(await maybe_await(service.health_check()))


@router.patch(
    "/thresholds",
    response_model=ThresholdsResponse,
    status_code=status.HTTP_200_OK,
)
async def update_thresholds(update: ThresholdsUpdate, monitor: MonitorDep):
    """
    Merge a partial threshold update; the next sampling cycle uses it.

    Raises:
        ClassifiedError: validation error (400) for invalid values
    """
    changes = update.changes()
    logger.info("Threshold update requested", changes=changes)
    return ThresholdsResponse(thresholds=monitor.update_thresholds(changes))


@router.post(
    "/history/clear",
    response_model=HistoryClearedResponse,
    status_code=status.HTTP_200_OK,
)
async def clear_history(monitor: MonitorDep):
    """Drop all snapshots and re-capture the memory baseline."""
    monitor.clear_history()
    return HistoryClearedResponse()


@router.get("/metrics")
async def get_prometheus_metrics(metrics: MetricsDep):
    """Expose metrics in Prometheus text format for scraping."""
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())
