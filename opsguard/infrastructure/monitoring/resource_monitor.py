"""
Resource Health Monitor

Periodically samples process memory / CPU and connection-service
statistics, keeps a bounded rolling history, raises threshold alerts and
runs automatic remediation against the connection service.

STAGE-MON: Resource monitoring
------------------------------
MON.0: Lifecycle (start / stop)
MON.1: Sampling
MON.2: Alert evaluation
MON.3: Remediation
MON.4: Trend snapshot (every N cycles)
MON.5: Threshold / history configuration

Lifecycle:
    IDLE --start--> RUNNING --stop--> STOPPED --start--> RUNNING

A sampling cycle never raises: failures are classified, logged and the
cycle is abandoned without touching history. Each remediation action is
isolated so one failing action does not prevent the others.

Author: System Architect
Date: 2026-10-16
"""

import asyncio
import gc
import statistics
from collections import deque
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from opsguard.core.config.constants import (
    BYTES_PER_MB,
    AlertKind,
    MonitorState,
    Stage,
)
from opsguard.core.config.settings import get_settings
from opsguard.core.exceptions import classify, factory, log_failure
from opsguard.core.logging.logger import get_logger
from opsguard.core.resilience.connection_service import ConnectionService, maybe_await
from opsguard.infrastructure.monitoring.metrics_collector import get_metrics_collector
from opsguard.infrastructure.monitoring.models import (
    Alert,
    AlertThresholds,
    ConnectionStats,
    HealthSnapshot,
    ProcessMemory,
)
from opsguard.infrastructure.monitoring.process_sampler import ProcessSampler

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _mb(value: float) -> float:
    return round(value / BYTES_PER_MB, 2)


class ResourceHealthMonitor:
    """
    Periodic resource sampler with alerting and auto-remediation.

    STAGE-MON.0: Monitor Initialization

    Usage:
        monitor = ResourceHealthMonitor(get_connection_registry())
        await monitor.start()
        ...
        monitor.stop()
        await monitor.wait_stopped()
    """

    def __init__(
        self,
        connection_service: ConnectionService,
        thresholds: AlertThresholds | None = None,
        history_capacity: int | None = None,
        report_history_size: int | None = None,
        verbose_log_every: int | None = None,
        inactive_grace_ms: int | None = None,
        sampler: ProcessSampler | None = None,
        gc_collect: Callable[[], Any] | None = gc.collect,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the monitor. Nothing is sampled until start().

        Args:
            connection_service: Service sampled for stats and remediated
            thresholds: Initial alert thresholds (default: from settings)
            history_capacity: Rolling history size
            report_history_size: Snapshots included in get_report()
            verbose_log_every: Cycles between trend snapshot logs
            inactive_grace_ms: Idle time after which remediation disconnects
            sampler: Process counter source
            gc_collect: Garbage-collection hint for memory growth; None disables it
            clock: Timestamp source for snapshots
        """
        settings = get_settings().monitoring

        self._service = connection_service
        self._thresholds = thresholds or AlertThresholds.from_settings(settings)
        self._history: deque[HealthSnapshot] = deque(
            maxlen=history_capacity or settings.MONITOR_HISTORY_CAPACITY
        )
        self._report_history_size = report_history_size or settings.MONITOR_REPORT_HISTORY_SIZE
        self._verbose_log_every = verbose_log_every or settings.MONITOR_VERBOSE_LOG_EVERY
        self._inactive_grace_ms = (
            settings.MONITOR_INACTIVE_GRACE_MS if inactive_grace_ms is None else inactive_grace_ms
        )
        self._default_interval = settings.MONITOR_INTERVAL_SECONDS
        self._sampler = sampler or ProcessSampler()
        self._gc_collect = gc_collect
        self._clock = clock

        self._state = MonitorState.IDLE
        self._interval = self._default_interval
        self._baseline: ProcessMemory | None = None
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task | None = None
        self._cycle_in_progress = False
        self._cycle_count = 0
        self._metrics = get_metrics_collector()

        self._remediations = {
            AlertKind.HIGH_INACTIVE_RATIO: ("disconnect_inactive_connections", self._disconnect_inactive),
            AlertKind.HIGH_PROCESSING_JOBS: ("perform_periodic_cleanup", self._periodic_cleanup),
            AlertKind.HIGH_CONNECTION_COUNT: ("cleanup_rate_limits", self._cleanup_rate_limits),
            AlertKind.HIGH_MEMORY_GROWTH: ("garbage_collection", self._collect_garbage),
        }

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is MonitorState.RUNNING

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def snapshot_count(self) -> int:
        return len(self._history)

    @property
    def thresholds(self) -> AlertThresholds:
        """Copy of the active thresholds."""
        return self._thresholds.model_copy()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, interval_seconds: float | None = None) -> None:
        """
        Start periodic sampling.

        STAGE-MON.0: Lifecycle

        Captures a baseline, runs one cycle immediately, then samples every
        ``interval_seconds``. Calling start() while running logs a warning
        and changes nothing.

        Raises:
            ClassifiedError: validation error for a non-positive interval,
                or the classified failure if the baseline cannot be read
        """
        if self._state is MonitorState.RUNNING:
            logger.warning(
                "Resource monitoring is already running",
                stage=Stage.MONITOR_LIFECYCLE.value,
                interval_seconds=self._interval,
            )
            return

        interval = self._default_interval if interval_seconds is None else interval_seconds
        if interval <= 0:
            raise factory.validation("Monitoring interval must be positive", "interval_seconds")

        try:
            self._baseline = self._sampler.memory()
        except Exception as exc:
            error = log_failure(classify(exc, {"operation": "baseline_sampling"}), {
                "stage": Stage.MONITOR_LIFECYCLE.value,
            })
            raise error from exc

        self._interval = interval
        self._state = MonitorState.RUNNING
        stop_event = asyncio.Event()
        self._stop_event = stop_event

        logger.info(
            "Starting resource monitoring",
            stage=Stage.MONITOR_LIFECYCLE.value,
            interval_seconds=interval,
            thresholds=self._thresholds.model_dump(),
            baseline_heap_used_mb=_mb(self._baseline.heap_used_bytes),
        )

        await self.run_cycle()

        # stop() may have been called while the first cycle ran
        if self._state is MonitorState.RUNNING:
            self._task = asyncio.create_task(
                self._run_loop(stop_event, interval), name="resource-health-monitor"
            )

    def stop(self) -> None:
        """
        Stop periodic sampling.

        Idempotent. A cycle already in progress is allowed to finish; no
        further cycle starts after this returns.
        """
        if self._state is not MonitorState.RUNNING:
            return

        self._state = MonitorState.STOPPED
        if self._stop_event is not None:
            self._stop_event.set()

        logger.info(
            "Resource monitoring stopped",
            stage=Stage.MONITOR_LIFECYCLE.value,
            cycles=self._cycle_count,
            snapshot_count=len(self._history),
        )

    async def wait_stopped(self, timeout: float | None = None) -> None:
        """Wait for the sampling task to exit after stop()."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Resource monitor shutdown timeout, task cancelled",
                stage=Stage.MONITOR_LIFECYCLE.value,
                timeout_seconds=timeout,
            )
        finally:
            if self._task is task:
                self._task = None

    async def _run_loop(self, stop_event: asyncio.Event, interval: float) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await self.run_cycle()

    # =========================================================================
    # Sampling cycle
    # =========================================================================

    async def run_cycle(self) -> HealthSnapshot | None:
        """
        Run one sampling cycle.

        STAGE-MON.1: Sampling

        Returns:
            HealthSnapshot | None: The committed snapshot, or None if the
            cycle failed or another cycle was still in progress
        """
        if self._cycle_in_progress:
            logger.warning(
                "Sampling cycle still in progress, skipping tick",
                stage=Stage.MONITOR_SAMPLING.value,
            )
            self._metrics.record_cycle("skipped")
            return None

        self._cycle_in_progress = True
        try:
            snapshot = await self._take_snapshot()
            alerts = self.evaluate_alerts(snapshot)

            self._history.append(snapshot)
            self._cycle_count += 1
            self._metrics.set_connection_stats(
                snapshot.connections.active_connections,
                snapshot.connections.inactive_connections,
                snapshot.connections.processing_jobs,
            )
            self._metrics.set_heap_used(snapshot.memory.heap_used_bytes)

            if alerts:
                self._log_alerts(alerts, snapshot)
                await self._remediate(alerts)

            if self._cycle_count % self._verbose_log_every == 0:
                self._log_trend(snapshot)

            self._metrics.record_cycle("completed")
            return snapshot

        except Exception as exc:
            log_failure(classify(exc, {"operation": "health_sampling"}), {
                "stage": Stage.MONITOR_SAMPLING.value,
                "cycle": self._cycle_count + 1,
            })
            self._metrics.record_cycle("failed")
            return None

        finally:
            self._cycle_in_progress = False

    async def _take_snapshot(self) -> HealthSnapshot:
        memory = self._sampler.memory()
        cpu = self._sampler.cpu()
        stats = await maybe_await(self._service.get_connection_stats())
        health = await maybe_await(self._service.health_check()) or {}

        growth_bytes = None
        growth_percent = None
        if self._baseline is not None:
            growth_bytes = memory.heap_used_bytes - self._baseline.heap_used_bytes
            baseline_used = self._baseline.heap_used_bytes
            growth_percent = growth_bytes / baseline_used * 100 if baseline_used > 0 else 0.0

        return HealthSnapshot(
            timestamp=self._clock(),
            memory=memory,
            cpu=cpu,
            connections=ConnectionStats.model_validate(dict(stats)),
            uptime_ms=health.get("uptime"),
            memory_warnings=tuple(health.get("memory_warnings") or ()),
            heap_growth_bytes=growth_bytes,
            heap_growth_percent=growth_percent,
        )

    # =========================================================================
    # Alerting
    # =========================================================================

    def evaluate_alerts(self, snapshot: HealthSnapshot) -> list[Alert]:
        """
        Compare a snapshot against the active thresholds.

        STAGE-MON.2: Alert evaluation

        Alerts are produced in a fixed order: connection count, processing
        jobs, heap growth, inactive ratio. Every comparison is strict.
        """
        thresholds = self._thresholds
        stats = snapshot.connections
        alerts = []

        if stats.active_connections > thresholds.max_connections:
            alerts.append(Alert(
                kind=AlertKind.HIGH_CONNECTION_COUNT,
                value=stats.active_connections,
                threshold=thresholds.max_connections,
            ))

        if stats.processing_jobs > thresholds.max_processing_jobs:
            alerts.append(Alert(
                kind=AlertKind.HIGH_PROCESSING_JOBS,
                value=stats.processing_jobs,
                threshold=thresholds.max_processing_jobs,
            ))

        if (
            snapshot.heap_growth_percent is not None
            and snapshot.heap_growth_percent > thresholds.max_heap_growth_percent
        ):
            alerts.append(Alert(
                kind=AlertKind.HIGH_MEMORY_GROWTH,
                value=round(snapshot.heap_growth_percent, 2),
                threshold=thresholds.max_heap_growth_percent,
            ))

        if snapshot.inactive_ratio > thresholds.max_inactive_ratio:
            alerts.append(Alert(
                kind=AlertKind.HIGH_INACTIVE_RATIO,
                value=round(snapshot.inactive_ratio, 4),
                threshold=thresholds.max_inactive_ratio,
            ))

        return alerts

    def _log_alerts(self, alerts: list[Alert], snapshot: HealthSnapshot) -> None:
        for alert in alerts:
            self._metrics.record_alert(alert.kind.value)

        logger.warning(
            "Resource monitoring alerts",
            stage=Stage.MONITOR_ALERTING.value,
            alerts=[alert.model_dump(mode="json") for alert in alerts],
            snapshot=snapshot.excerpt(),
        )

    # =========================================================================
    # Remediation
    # =========================================================================

    async def _remediate(self, alerts: list[Alert]) -> None:
        """
        STAGE-MON.3: Remediation

        One action per alert, in alert order.
        """
        logger.info(
            "Performing auto-recovery measures",
            stage=Stage.MONITOR_REMEDIATION.value,
            alert_count=len(alerts),
        )

        for alert in alerts:
            action_name, action = self._remediations[alert.kind]
            try:
                await action()
            except Exception as exc:
                log_failure(classify(exc, {"operation": action_name}), {
                    "stage": Stage.MONITOR_REMEDIATION.value,
                    "alert": alert.kind.value,
                    "remediation": action_name,
                })
                self._metrics.record_remediation(action_name, False)
            else:
                self._metrics.record_remediation(action_name, True)

    async def _disconnect_inactive(self) -> None:
        disconnected = await maybe_await(
            self._service.disconnect_inactive_connections(self._inactive_grace_ms)
        )
        logger.info(
            "Disconnected inactive connections",
            stage=Stage.MONITOR_REMEDIATION.value,
            disconnected=disconnected,
            threshold_ms=self._inactive_grace_ms,
        )

    async def _periodic_cleanup(self) -> None:
        await maybe_await(self._service.perform_periodic_cleanup())
        logger.info("Performed periodic cleanup", stage=Stage.MONITOR_REMEDIATION.value)

    async def _cleanup_rate_limits(self) -> None:
        await maybe_await(self._service.cleanup_rate_limits())
        logger.info("Cleaned up rate limits", stage=Stage.MONITOR_REMEDIATION.value)

    async def _collect_garbage(self) -> None:
        if self._gc_collect is None:
            logger.debug("Garbage collection hint disabled", stage=Stage.MONITOR_REMEDIATION.value)
            return
        collected = self._gc_collect()
        logger.info(
            "Forced garbage collection",
            stage=Stage.MONITOR_REMEDIATION.value,
            collected=collected,
        )

    # =========================================================================
    # Trend log
    # =========================================================================

    def _log_trend(self, snapshot: HealthSnapshot) -> None:
        """STAGE-MON.4: Trend snapshot"""
        logger.info(
            "Resource monitoring snapshot",
            stage=Stage.MONITOR_TREND.value,
            cycle=self._cycle_count,
            connection_stats=snapshot.connections.model_dump(),
            memory_usage_mb={
                "heap_used": _mb(snapshot.memory.heap_used_bytes),
                "heap_total": _mb(snapshot.memory.heap_total_bytes),
                "external": _mb(snapshot.memory.external_bytes),
                "rss": _mb(snapshot.memory.rss_bytes),
            },
            heap_growth_percent=snapshot.heap_growth_percent,
            warnings=list(snapshot.memory_warnings),
        )

    # =========================================================================
    # Reporting
    # =========================================================================

    def get_report(self) -> dict[str, Any]:
        """
        Summarize the collected history.

        Returns the most recent snapshots (bounded), averages and trends
        between the oldest and newest retained snapshot, and the active
        thresholds. With no history, returns an explicit empty result.
        """
        thresholds = self._thresholds.model_dump()
        if not self._history:
            return {
                "error": "No monitoring data available",
                "snapshot_count": 0,
                "thresholds": thresholds,
            }

        history = list(self._history)
        oldest, latest = history[0], history[-1]
        span_ms = (latest.timestamp - oldest.timestamp).total_seconds() * 1000

        return {
            "summary": {
                "state": self._state.value,
                "monitoring_duration_ms": span_ms,
                "snapshot_count": len(history),
                "latest": latest.model_dump(mode="json"),
                "averages": {
                    "heap_used_bytes": statistics.fmean(s.memory.heap_used_bytes for s in history),
                    "active_connections": statistics.fmean(
                        s.connections.active_connections for s in history
                    ),
                    "processing_jobs": statistics.fmean(s.connections.processing_jobs for s in history),
                },
                "trends": {
                    "heap_used_change_bytes": latest.memory.heap_used_bytes - oldest.memory.heap_used_bytes,
                    "connection_change": (
                        latest.connections.active_connections - oldest.connections.active_connections
                    ),
                    "processing_jobs_change": (
                        latest.connections.processing_jobs - oldest.connections.processing_jobs
                    ),
                    "time_span_ms": span_ms,
                },
            },
            "history": [
                snapshot.model_dump(mode="json")
                for snapshot in history[-self._report_history_size:]
            ],
            "alerts": {
                "thresholds": thresholds,
                "recent_warnings": list(latest.memory_warnings),
            },
        }

    async def get_current_stats(self) -> dict[str, Any]:
        """Live view: process memory, connection stats and monitor state."""
        memory = self._sampler.memory()
        stats = await maybe_await(self._service.get_connection_stats())
        return {
            "timestamp": self._clock().isoformat(),
            "memory_mb": {
                "heap_used": _mb(memory.heap_used_bytes),
                "heap_total": _mb(memory.heap_total_bytes),
                "external": _mb(memory.external_bytes),
                "rss": _mb(memory.rss_bytes),
            },
            "connections": dict(stats),
            "monitoring": {
                "state": self._state.value,
                "is_running": self.is_running,
                "interval_seconds": self._interval,
                "snapshot_count": len(self._history),
                "thresholds": self._thresholds.model_dump(),
            },
        }

    # =========================================================================
    # Configuration
    # =========================================================================

    def update_thresholds(self, changes: Mapping[str, Any] | None = None, **fields: Any) -> AlertThresholds:
        """
        Merge partial threshold changes into the active set.

        STAGE-MON.5: Configuration

        The next cycle reads the new values. Unknown keys and invalid
        values are rejected and leave the active thresholds untouched.

        Raises:
            ClassifiedError: validation error
        """
        merged = {**self._thresholds.model_dump(), **dict(changes or {}), **fields}
        try:
            updated = AlertThresholds.model_validate(merged)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise factory.validation(
                f"Invalid alert thresholds: {first.get('msg')}", field
            ).with_context(errors=exc.errors(include_url=False, include_context=False)) from exc

        previous = self._thresholds
        self._thresholds = updated
        logger.info(
            "Alert thresholds updated",
            stage=Stage.MONITOR_CONFIG.value,
            previous=previous.model_dump(),
            thresholds=updated.model_dump(),
        )
        return updated.model_copy()

    def clear_history(self) -> None:
        """
        Drop all snapshots and re-capture the baseline.

        Raises:
            ClassifiedError: if the new baseline cannot be read
        """
        try:
            baseline = self._sampler.memory()
        except Exception as exc:
            error = log_failure(classify(exc, {"operation": "baseline_sampling"}), {
                "stage": Stage.MONITOR_CONFIG.value,
            })
            raise error from exc

        cleared = len(self._history)
        self._history.clear()
        self._cycle_count = 0
        self._baseline = baseline

        logger.info(
            "Monitoring history cleared",
            stage=Stage.MONITOR_CONFIG.value,
            cleared_snapshots=cleared,
            baseline_heap_used_mb=_mb(baseline.heap_used_bytes),
        )


# Global instance
_resource_monitor: ResourceHealthMonitor | None = None


def get_resource_monitor() -> ResourceHealthMonitor:
    """
    Get the global resource monitor.

    Raises:
        ClassifiedError: configuration error if not initialized
    """
    if _resource_monitor is None:
        raise factory.configuration_error("resource_monitor", "not initialized")
    return _resource_monitor


def initialize_resource_monitor(
    connection_service: ConnectionService,
    **kwargs: Any,
) -> ResourceHealthMonitor:
    """
    Initialize the global resource monitor.

    Args:
        connection_service: Service sampled and remediated by the monitor
        **kwargs: Forwarded to ResourceHealthMonitor

    Returns:
        ResourceHealthMonitor: Initialized instance
    """
    global _resource_monitor

    if _resource_monitor is not None:
        _resource_monitor.stop()

    _resource_monitor = ResourceHealthMonitor(connection_service, **kwargs)
    return _resource_monitor


def reset_resource_monitor() -> None:
    """Stop and drop the global resource monitor."""
    global _resource_monitor

    if _resource_monitor is not None:
        _resource_monitor.stop()
    _resource_monitor = None
