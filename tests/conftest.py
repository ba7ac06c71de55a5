"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from opsguard.core.logging.logger import clear_correlation_id
from opsguard.infrastructure.monitoring.models import CpuTimes, ProcessMemory

# ============================================================================
# Fakes
# ============================================================================


class FakeConnectionService:
    """
    Scriptable connection service.

    Stats and health are plain attributes so tests can change them between
    cycles; every remediation call is recorded in ``calls``.
    """

    def __init__(self, active=0, inactive=0, processing_jobs=0, warnings=None, uptime=1000):
        self.stats = {
            "active_connections": active,
            "inactive_connections": inactive,
            "processing_jobs": processing_jobs,
        }
        self.warnings = list(warnings or [])
        self.uptime = uptime
        self.calls = []
        self.failures = {}
        self.disconnected = 0

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def get_connection_stats(self):
        if "get_connection_stats" in self.failures:
            raise self.failures["get_connection_stats"]
        return dict(self.stats)

    def health_check(self):
        return {"uptime": self.uptime, "memory_warnings": list(self.warnings)}

    def disconnect_inactive_connections(self, threshold_ms):
        self._maybe_fail("disconnect_inactive_connections")
        self.last_threshold_ms = threshold_ms
        return self.disconnected

    def perform_periodic_cleanup(self):
        self._maybe_fail("perform_periodic_cleanup")

    def cleanup_rate_limits(self):
        self._maybe_fail("cleanup_rate_limits")


class FakeSampler:
    """Process sampler returning a configurable heap size."""

    def __init__(self, heap_used=100 * 1024 * 1024):
        self.heap_used = heap_used
        self.memory_calls = 0

    def memory(self):
        self.memory_calls += 1
        return ProcessMemory(
            heap_used_bytes=self.heap_used,
            heap_total_bytes=self.heap_used * 2,
            external_bytes=1024,
            rss_bytes=self.heap_used + 1024,
        )

    def cpu(self):
        return CpuTimes(user_seconds=1.5, system_seconds=0.5)


class StepClock:
    """Deterministic clock advancing a fixed step on every call."""

    def __init__(self, start=None, step_seconds=30):
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step_seconds)

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


class ManualMsClock:
    """Millisecond clock driven by the test."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def advance(self, ms):
        self.now += ms

    def __call__(self):
        return self.now


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_service():
    """Connection service with no connections."""
    return FakeConnectionService()


@pytest.fixture
def fake_sampler():
    """Process sampler with a 100 MB heap."""
    return FakeSampler()


@pytest.fixture
def step_clock():
    """Snapshot clock advancing 30 seconds per call."""
    return StepClock()


@pytest.fixture
def ms_clock():
    """Manual millisecond clock for the connection registry."""
    return ManualMsClock()


@pytest.fixture
def gc_collect():
    """Garbage-collection hint that records calls."""
    return MagicMock(return_value=0)


@pytest.fixture(autouse=True)
def reset_correlation_id():
    """Never leak a correlation ID between tests."""
    clear_correlation_id()
    yield
    clear_correlation_id()
