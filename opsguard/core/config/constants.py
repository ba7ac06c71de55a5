"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the fault classification engine and the resource health monitor.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management

Author: System Architect
Date: 2026-10-16
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages attached to log records as ``stage=...``.

    Format: {PREFIX}.{STEP}_{DESCRIPTIVE_NAME}
    """

    # Error handling
    ERROR_LOGGING = "EC.2_ERROR_LOGGING"

    # Resource monitor
    MONITOR_LIFECYCLE = "MON.0_LIFECYCLE"
    MONITOR_SAMPLING = "MON.1_SAMPLING"
    MONITOR_ALERTING = "MON.2_ALERTING"
    MONITOR_REMEDIATION = "MON.3_REMEDIATION"
    MONITOR_TREND = "MON.4_TREND_SNAPSHOT"
    MONITOR_CONFIG = "MON.5_CONFIGURATION"

    # Connection registry
    REGISTRY_INIT = "CR.0_REGISTRY_INIT"
    REGISTRY_CONNECTION = "CR.1_CONNECTION"
    REGISTRY_RATE_LIMIT = "CR.3_RATE_LIMIT"
    REGISTRY_CLEANUP = "CR.5_CLEANUP"

    # Boundary layer
    BOUNDARY = "B_BOUNDARY"


# ============================================================================
# Monitor States
# ============================================================================


class MonitorState(str, Enum):
    """
    Resource health monitor lifecycle states.

    IDLE: Never started, no timer registered
    RUNNING: Timer active, sampling on a fixed period
    STOPPED: Timer cancelled after running; may be started again
    """

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


# ============================================================================
# Alert Kinds
# ============================================================================


class AlertKind(str, Enum):
    """Threshold breaches raised by the resource health monitor."""

    HIGH_CONNECTION_COUNT = "high_connection_count"
    HIGH_PROCESSING_JOBS = "high_processing_jobs"
    HIGH_MEMORY_GROWTH = "high_memory_growth"
    HIGH_INACTIVE_RATIO = "high_inactive_ratio"


# ============================================================================
# Monitor Defaults
# ============================================================================

DEFAULT_MONITOR_INTERVAL_SECONDS = 30.0
DEFAULT_HISTORY_CAPACITY = 100
REPORT_HISTORY_SIZE = 20
VERBOSE_LOG_EVERY_N_CYCLES = 10

# Inactivity after which remediation disconnects a connection (5 minutes)
INACTIVE_CONNECTION_GRACE_MS = 5 * 60 * 1000

BYTES_PER_MB = 1024 * 1024


# ============================================================================
# Connection Registry Limits
# ============================================================================

# A connection counts as inactive after 5 minutes without activity
CONNECTION_INACTIVE_AFTER_MS = 5 * 60 * 1000

# Periodic cleanup drops connections idle for 2 hours and jobs older than 1 hour
STALE_CONNECTION_MS = 2 * 60 * 60 * 1000
STALE_JOB_MS = 60 * 60 * 1000

# Rate-limit windows are kept for 1 minute past their reset time
RATE_LIMIT_WINDOW_MS = 60 * 1000
RATE_LIMIT_MAX_REQUESTS = 100
RATE_LIMIT_RETENTION_MS = 60 * 1000

# Health warnings
INACTIVE_WARNING_RATIO = 0.3
PROCESSING_JOBS_WARNING = 100
RATE_LIMIT_CACHE_WARNING = 1000


# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_CORRELATION_ID = "X-Request-ID"
