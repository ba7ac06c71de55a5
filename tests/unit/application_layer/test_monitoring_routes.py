"""
Unit Tests for Monitoring Routes

Tests the /monitoring endpoints with TestClient. The lifespan is not run
except in TestLifespan; the monitor is placed on app.state directly.
"""

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from opsguard.application.app import create_app
from opsguard.core.exceptions import ErrorCode
from opsguard.infrastructure.monitoring.models import AlertThresholds
from opsguard.infrastructure.monitoring.resource_monitor import (
    ResourceHealthMonitor,
    reset_resource_monitor,
)


@pytest.fixture
def monitor(fake_service, fake_sampler, step_clock, gc_collect):
    return ResourceHealthMonitor(
        fake_service, sampler=fake_sampler, clock=step_clock, gc_collect=gc_collect
    )


@pytest.fixture
def client(fake_service, monitor):
    app = create_app(connection_service=fake_service)
    app.state.resource_monitor = monitor
    return TestClient(app)


@pytest.mark.unit
class TestReportRoutes:
    """Test read-only monitoring endpoints."""

    def test_root(self, client):
        """Test the service banner."""
        data = client.get("/").json()

        assert data["name"] == "opsguard"
        assert data["monitoring"] == "/monitoring/report"

    def test_empty_report(self, client):
        """Test the report before any sample."""
        response = client.get("/monitoring/report")

        assert response.status_code == 200
        assert response.json()["error"] == "No monitoring data available"
        assert response.json()["snapshot_count"] == 0

    def test_report_after_cycles(self, client, monitor, fake_service):
        """Test summary and history after sampling."""
        fake_service.stats["active_connections"] = 4
        asyncio.run(monitor.run_cycle())
        asyncio.run(monitor.run_cycle())

        data = client.get("/monitoring/report").json()

        assert data["summary"]["snapshot_count"] == 2
        assert data["summary"]["latest"]["connections"]["active_connections"] == 4
        assert len(data["history"]) == 2

    def test_current_stats(self, client, fake_service):
        """Test the live view."""
        fake_service.stats["processing_jobs"] = 7

        data = client.get("/monitoring/stats").json()

        assert data["connections"]["processing_jobs"] == 7
        assert data["monitoring"]["state"] == "idle"
        assert data["memory_mb"]["heap_used"] == 100.0

    def test_connection_health(self, client, fake_service):
        """Test the connection service health passthrough."""
        fake_service.warnings = ["Too many processing jobs"]

        data = client.get("/monitoring/health").json()

        assert data["memory_warnings"] == ["Too many processing jobs"]

    def test_prometheus_metrics(self, client):
        """Test the scrape endpoint."""
        response = client.get("/monitoring/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert b"opsguard_monitor_cycles_total" in response.content


@pytest.mark.unit
class TestConfigurationRoutes:
    """Test mutating monitoring endpoints."""

    def test_update_thresholds(self, client, monitor):
        """Test a partial update."""
        response = client.patch("/monitoring/thresholds", json={"max_connections": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "updated"
        assert data["thresholds"]["max_connections"] == 5
        assert data["thresholds"]["max_processing_jobs"] == 100
        assert monitor.thresholds.max_connections == 5

    @pytest.mark.parametrize("payload", [{"max_connections": -1}, {"max_sockets": 3}])
    def test_invalid_thresholds_rejected(self, client, monitor, payload):
        """Test invalid updates return 400 and change nothing."""
        response = client.patch("/monitoring/thresholds", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_FAILED.value
        assert monitor.thresholds == AlertThresholds()

    def test_clear_history(self, client, monitor):
        """Test clearing returns the report to its empty state."""
        asyncio.run(monitor.run_cycle())

        response = client.post("/monitoring/history/clear")

        assert response.status_code == 200
        assert response.json() == {"status": "cleared"}
        assert client.get("/monitoring/report").json()["snapshot_count"] == 0


@pytest.mark.unit
class TestLifespan:
    """Test startup and shutdown wiring."""

    def test_monitor_started_and_stopped(self, fake_service):
        """Test the lifespan runs the first cycle and stops the monitor on exit."""
        app = create_app(connection_service=fake_service)

        try:
            with patch("opsguard.application.app.setup_logging"):
                with TestClient(app) as client:
                    monitor = app.state.resource_monitor
                    assert monitor.is_running

                    data = client.get("/monitoring/report").json()
                    assert data["summary"]["snapshot_count"] == 1

            assert monitor.state.value == "stopped"
        finally:
            reset_resource_monitor()
