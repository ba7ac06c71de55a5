"""
Unit Tests for Metrics Collector

Tests Prometheus counters and gauges fed by the error stack and the
resource monitor.
"""

import pytest
from prometheus_client import REGISTRY

from opsguard.core.exceptions import factory
from opsguard.infrastructure.monitoring.metrics_collector import get_metrics_collector


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.mark.unit
class TestMetricsCollector:
    """Test suite for MetricsCollector."""

    @pytest.fixture
    def metrics(self):
        return get_metrics_collector()

    def test_singleton(self, metrics):
        """Test the collector is shared."""
        assert get_metrics_collector() is metrics

    def test_record_error(self, metrics):
        """Test errors are counted by code, type and severity."""
        error = factory.not_found("Connection", "c1")
        labels = {"code": "E4001", "type": "not_found", "severity": error.severity.value}
        before = _sample("opsguard_errors_total", labels)

        metrics.record_error(error)

        assert _sample("opsguard_errors_total", labels) == before + 1

    def test_record_cycle_and_alert(self, metrics):
        """Test monitor counters."""
        cycles_before = _sample("opsguard_monitor_cycles_total", {"outcome": "skipped"})
        alerts_before = _sample("opsguard_monitor_alerts_total", {"kind": "high_inactive_ratio"})

        metrics.record_cycle("skipped")
        metrics.record_alert("high_inactive_ratio")

        assert _sample("opsguard_monitor_cycles_total", {"outcome": "skipped"}) == cycles_before + 1
        assert _sample("opsguard_monitor_alerts_total", {"kind": "high_inactive_ratio"}) == alerts_before + 1

    def test_gauges(self, metrics):
        """Test connection and heap gauges are overwritten."""
        metrics.set_connection_stats(active=12, inactive=3, processing_jobs=4)
        metrics.set_heap_used(2048)

        assert _sample("opsguard_active_connections") == 12
        assert _sample("opsguard_inactive_connections") == 3
        assert _sample("opsguard_processing_jobs") == 4
        assert _sample("opsguard_process_heap_used_bytes") == 2048

    def test_prometheus_export(self, metrics):
        """Test text exposition output."""
        metrics.record_remediation("cleanup_rate_limits", True)

        output = metrics.get_prometheus_metrics()

        assert b"opsguard_remediations_total" in output
        assert metrics.get_content_type().startswith("text/plain")
