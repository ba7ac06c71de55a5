"""
Resource Monitor Models

Snapshots are frozen once built; thresholds are a mutable model that is
replaced wholesale on update so a sampling cycle always reads one
consistent threshold set.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from opsguard.core.config.constants import AlertKind


class ProcessMemory(BaseModel):
    """Process memory counters, in bytes."""

    model_config = ConfigDict(frozen=True)

    heap_used_bytes: int = Field(..., ge=0, description="Private resident memory")
    heap_total_bytes: int = Field(..., ge=0, description="Virtual memory size")
    external_bytes: int = Field(default=0, ge=0, description="Shared memory")
    rss_bytes: int = Field(..., ge=0, description="Resident set size")


class CpuTimes(BaseModel):
    """Cumulative process CPU time, in seconds."""

    model_config = ConfigDict(frozen=True)

    user_seconds: float = 0.0
    system_seconds: float = 0.0


class ConnectionStats(BaseModel):
    """
    Statistics reported by the connection service.

    Extra keys reported by the service are kept as-is.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    active_connections: int = Field(default=0, ge=0)
    inactive_connections: int = Field(default=0, ge=0)
    processing_jobs: int = Field(default=0, ge=0)


class HealthSnapshot(BaseModel):
    """
    One sampling cycle's view of the process and the connection service.

    Heap growth fields are only set once a baseline exists.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    memory: ProcessMemory
    cpu: CpuTimes = Field(default_factory=CpuTimes)
    connections: ConnectionStats
    uptime_ms: float | None = None
    memory_warnings: tuple[str, ...] = ()
    heap_growth_bytes: int | None = None
    heap_growth_percent: float | None = None

    @property
    def inactive_ratio(self) -> float:
        """Inactive over active connections; 0 when there are no active connections."""
        active = self.connections.active_connections
        if active <= 0:
            return 0.0
        return self.connections.inactive_connections / active

    def excerpt(self) -> dict[str, Any]:
        """Short form attached to alert log records."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "connections": self.connections.active_connections,
            "heap_used_bytes": self.memory.heap_used_bytes,
            "warnings": list(self.memory_warnings),
        }


class AlertThresholds(BaseModel):
    """Alert limits read by every sampling cycle."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_connections: int = Field(default=1000, ge=0)
    max_processing_jobs: int = Field(default=100, ge=0)
    max_heap_growth_percent: float = Field(default=50.0, ge=0)
    max_inactive_ratio: float = Field(default=0.4, ge=0)

    @classmethod
    def from_settings(cls, monitoring_settings) -> "AlertThresholds":
        return cls(
            max_connections=monitoring_settings.ALERT_MAX_CONNECTIONS,
            max_processing_jobs=monitoring_settings.ALERT_MAX_PROCESSING_JOBS,
            max_heap_growth_percent=monitoring_settings.ALERT_MAX_HEAP_GROWTH_PERCENT,
            max_inactive_ratio=monitoring_settings.ALERT_MAX_INACTIVE_RATIO,
        )


class Alert(BaseModel):
    """A metric that exceeded its threshold in one cycle."""

    model_config = ConfigDict(frozen=True)

    kind: AlertKind
    value: float
    threshold: float
