"""
Connection Registry for long-lived client connections.

Reference in-process implementation of the ConnectionService protocol.
It keeps the bookkeeping the resource health monitor observes:

- live connections with activity timestamps, subscriptions and per-event
  rate-limit windows
- in-flight jobs
- per-address rate-limit windows

STAGE-CR: Connection Registry
-----------------------------
CR.1: Connection registration / activity
CR.2: Job tracking
CR.3: Rate limiting
CR.4: Statistics and health
CR.5: Cleanup and remediation

Author: System Architect
Date: 2026-10-16
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from opsguard.core.config.constants import (
    CONNECTION_INACTIVE_AFTER_MS,
    INACTIVE_WARNING_RATIO,
    PROCESSING_JOBS_WARNING,
    RATE_LIMIT_CACHE_WARNING,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_RETENTION_MS,
    RATE_LIMIT_WINDOW_MS,
    STALE_CONNECTION_MS,
    STALE_JOB_MS,
    Stage,
)
from opsguard.core.exceptions import ErrorCode, classify, factory, log_failure
from opsguard.core.logging.logger import get_logger
from opsguard.core.resilience.connection_service import maybe_await

logger = get_logger(__name__)

DisconnectCallback = Callable[[str], Awaitable[Any] | Any]


@dataclass
class RateWindow:
    """Fixed rate-limit window."""

    count: int
    reset_time: float


@dataclass
class ConnectionRecord:
    """Bookkeeping for one live connection."""

    connection_id: str
    client_address: str | None
    connected_at: float
    last_activity: float
    subscriptions: set[str] = field(default_factory=set)
    event_rate_limits: dict[str, RateWindow] = field(default_factory=dict)
    disconnect: DisconnectCallback | None = None


@dataclass
class JobRecord:
    """An in-flight job."""

    job_id: str
    connection_id: str | None
    started_at: float


def _now_ms() -> float:
    return time.time() * 1000


class ConnectionRegistry:
    """
    Registry of live connections, in-flight jobs and rate-limit windows.

    STAGE-CR.0: Registry Initialization

    All mutations are serialized by an asyncio lock. Disconnect callbacks
    run outside the lock so they may call back into the registry.
    """

    def __init__(
        self,
        clock: Callable[[], float] = _now_ms,
        rate_limit_max: int = RATE_LIMIT_MAX_REQUESTS,
        rate_limit_window_ms: int = RATE_LIMIT_WINDOW_MS,
    ):
        """
        Initialize the registry.

        Args:
            clock: Millisecond wall clock
            rate_limit_max: Requests allowed per address per window
            rate_limit_window_ms: Window length
        """
        self._clock = clock
        self.rate_limit_max = rate_limit_max
        self.rate_limit_window_ms = rate_limit_window_ms

        self._connections: dict[str, ConnectionRecord] = {}
        self._jobs: dict[str, JobRecord] = {}
        self._address_limits: dict[str, RateWindow] = {}

        self._lock = asyncio.Lock()
        self._started_at = clock()

        logger.info(
            "Connection registry initialized",
            stage=Stage.REGISTRY_INIT.value,
            rate_limit_max=rate_limit_max,
            rate_limit_window_ms=rate_limit_window_ms,
        )

    # =========================================================================
    # Connections
    # =========================================================================

    async def register_connection(
        self,
        connection_id: str,
        client_address: str | None = None,
        disconnect: DisconnectCallback | None = None,
    ) -> None:
        """
        Track a new connection.

        STAGE-CR.1: Connection registration

        Raises:
            ClassifiedError: conflict if the id is already registered
        """
        async with self._lock:
            if connection_id in self._connections:
                raise factory.conflict("Connection", f"{connection_id} is already registered")

            now = self._clock()
            self._connections[connection_id] = ConnectionRecord(
                connection_id=connection_id,
                client_address=client_address,
                connected_at=now,
                last_activity=now,
                disconnect=disconnect,
            )

            logger.info(
                "Connection registered",
                stage=Stage.REGISTRY_CONNECTION.value,
                connection_id=connection_id,
                client_address=client_address,
                total_connections=len(self._connections),
            )

    async def touch(self, connection_id: str) -> None:
        """Record activity on a connection."""
        async with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                raise factory.not_found("Connection", connection_id)
            record.last_activity = self._clock()

    async def subscribe(self, connection_id: str, topic: str) -> None:
        """Subscribe a connection to a topic."""
        async with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                raise factory.not_found("Connection", connection_id)
            record.subscriptions.add(topic)
            record.last_activity = self._clock()

    async def unregister_connection(self, connection_id: str, reason: str = "client_disconnect") -> bool:
        """
        Stop tracking a connection.

        Returns:
            bool: False if the connection was not registered
        """
        async with self._lock:
            record = self._connections.pop(connection_id, None)

        if record is None:
            return False

        logger.info(
            "Connection unregistered",
            stage=Stage.REGISTRY_CONNECTION.value,
            connection_id=connection_id,
            reason=reason,
        )
        return True

    # =========================================================================
    # Jobs
    # =========================================================================

    async def start_job(self, job_id: str, connection_id: str | None = None) -> None:
        """
        Track an in-flight job.

        STAGE-CR.2: Job tracking
        """
        async with self._lock:
            if job_id in self._jobs:
                raise factory.conflict("Job", f"{job_id} is already in flight")
            self._jobs[job_id] = JobRecord(job_id=job_id, connection_id=connection_id, started_at=self._clock())

    async def finish_job(self, job_id: str) -> bool:
        """Stop tracking a job. Returns False if it was not in flight."""
        async with self._lock:
            return self._jobs.pop(job_id, None) is not None

    # =========================================================================
    # Rate limiting
    # =========================================================================

    async def check_rate_limit(self, client_address: str) -> int:
        """
        Count a request from ``client_address`` against its window.

        STAGE-CR.3: Rate limiting

        Returns:
            int: Requests remaining in the current window

        Raises:
            ClassifiedError: rate-limit-exceeded when the window is full
        """
        async with self._lock:
            window = self._hit(self._address_limits, client_address)

        if window.count > self.rate_limit_max:
            logger.warning(
                "Rate limit exceeded",
                stage=Stage.REGISTRY_RATE_LIMIT.value,
                client_address=client_address,
                count=window.count,
                limit=self.rate_limit_max,
            )
            raise factory.rate_limit_exceeded(
                self.rate_limit_max, self.rate_limit_window_ms, client_address
            ).with_context(retry_after_ms=max(window.reset_time - self._clock(), 0))

        return self.rate_limit_max - window.count

    async def record_event(self, connection_id: str, event: str) -> int:
        """
        Count an inbound event on a connection against its per-event window.

        Returns:
            int: Events remaining in the current window
        """
        async with self._lock:
            record = self._connections.get(connection_id)
            if record is None:
                raise factory.not_found("Connection", connection_id)
            record.last_activity = self._clock()
            window = self._hit(record.event_rate_limits, event)

        if window.count > self.rate_limit_max:
            raise factory.rate_limit_exceeded(self.rate_limit_max, self.rate_limit_window_ms, event)
        return self.rate_limit_max - window.count

    def _hit(self, windows: dict[str, RateWindow], key: str) -> RateWindow:
        now = self._clock()
        window = windows.get(key)
        if window is None or now > window.reset_time:
            window = RateWindow(count=0, reset_time=now + self.rate_limit_window_ms)
            windows[key] = window
        window.count += 1
        return window

    # =========================================================================
    # Statistics and health
    # =========================================================================

    async def get_connection_stats(self) -> dict[str, Any]:
        """
        Aggregate statistics.

        STAGE-CR.4: Statistics
        """
        async with self._lock:
            return self._stats_locked()

    def _stats_locked(self) -> dict[str, Any]:
        now = self._clock()
        inactive = sum(
            1 for record in self._connections.values()
            if now - record.last_activity > CONNECTION_INACTIVE_AFTER_MS
        )
        return {
            "active_connections": len(self._connections),
            "inactive_connections": inactive,
            "processing_jobs": len(self._jobs),
            "rate_limited_addresses": len(self._address_limits),
            "active_subscriptions": sum(len(r.subscriptions) for r in self._connections.values()),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Health summary with memory-leak warnings.

        STAGE-CR.4.1: Health
        """
        async with self._lock:
            stats = self._stats_locked()

        warnings = []
        if stats["inactive_connections"] > stats["active_connections"] * INACTIVE_WARNING_RATIO:
            warnings.append("High inactive connections ratio")
        if stats["processing_jobs"] > PROCESSING_JOBS_WARNING:
            warnings.append("Too many processing jobs")
        if stats["rate_limited_addresses"] > RATE_LIMIT_CACHE_WARNING:
            warnings.append("Rate limit cache too large")

        return {
            "status": "healthy",
            **stats,
            "memory_warnings": warnings,
            "uptime": self._clock() - self._started_at,
        }

    # =========================================================================
    # Cleanup and remediation
    # =========================================================================

    async def disconnect_inactive_connections(self, threshold_ms: int) -> int:
        """
        Disconnect connections idle for longer than ``threshold_ms``.

        STAGE-CR.5: Inactive disconnect

        A failing disconnect callback is classified and logged; the
        connection is dropped either way.

        Returns:
            int: Number of connections dropped
        """
        async with self._lock:
            now = self._clock()
            stale = [
                self._connections.pop(connection_id)
                for connection_id, record in list(self._connections.items())
                if now - record.last_activity > threshold_ms
            ]

        for record in stale:
            await self._close(record, "inactivity_timeout")

        logger.info(
            "Inactive connections cleanup completed",
            stage=Stage.REGISTRY_CLEANUP.value,
            disconnected=len(stale),
            threshold_ms=threshold_ms,
        )
        return len(stale)

    async def perform_periodic_cleanup(self) -> None:
        """
        Drop connections idle for 2 hours and jobs in flight for over 1 hour.

        STAGE-CR.5.1: Periodic cleanup
        """
        async with self._lock:
            now = self._clock()
            stale_connections = [
                self._connections.pop(connection_id)
                for connection_id, record in list(self._connections.items())
                if now - record.last_activity > STALE_CONNECTION_MS
            ]
            stale_jobs = [
                job_id for job_id, job in self._jobs.items()
                if now - job.started_at > STALE_JOB_MS
            ]
            for job_id in stale_jobs:
                del self._jobs[job_id]

        for record in stale_connections:
            await self._close(record, "periodic_cleanup_inactive")

        logger.info(
            "Periodic cleanup completed",
            stage=Stage.REGISTRY_CLEANUP.value,
            cleaned_connections=len(stale_connections),
            cleaned_jobs=len(stale_jobs),
        )

    async def cleanup_rate_limits(self) -> None:
        """
        Drop rate-limit windows whose reset time passed over a minute ago.

        STAGE-CR.5.2: Rate-limit cleanup
        """
        async with self._lock:
            now = self._clock()
            expired_addresses = [
                address for address, window in self._address_limits.items()
                if now > window.reset_time + RATE_LIMIT_RETENTION_MS
            ]
            for address in expired_addresses:
                del self._address_limits[address]

            cleaned_events = 0
            for record in self._connections.values():
                expired = [
                    key for key, window in record.event_rate_limits.items()
                    if now > window.reset_time + RATE_LIMIT_RETENTION_MS
                ]
                for key in expired:
                    del record.event_rate_limits[key]
                cleaned_events += len(expired)

        if expired_addresses or cleaned_events:
            logger.debug(
                "Rate limit records cleaned",
                stage=Stage.REGISTRY_CLEANUP.value,
                cleaned_addresses=len(expired_addresses),
                cleaned_event_limits=cleaned_events,
            )

    async def _close(self, record: ConnectionRecord, reason: str) -> None:
        if record.disconnect is None:
            return
        try:
            await maybe_await(record.disconnect(reason))
        except Exception as exc:
            error = classify(exc)
            if error.code is ErrorCode.INTERNAL_SERVER_ERROR:
                error = factory.connection_failed(reason, exc)
            log_failure(error, {"connection_id": record.connection_id, "reason": reason})


# Global instance
_connection_registry: ConnectionRegistry | None = None


def get_connection_registry() -> ConnectionRegistry:
    """
    Get the global connection registry instance.

    Returns:
        ConnectionRegistry: Global instance
    """
    global _connection_registry

    if _connection_registry is None:
        _connection_registry = ConnectionRegistry()

    return _connection_registry
