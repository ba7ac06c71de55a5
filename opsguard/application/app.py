#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Wires the error boundary, the connection service and the resource health
monitor into an HTTP application.

Author: System Architect
Date: 2026-10-16
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from opsguard.application.api.middleware import add_error_handling
from opsguard.application.api.routes import monitoring_router
from opsguard.core.config.settings import get_settings
from opsguard.core.logging.logger import get_logger, setup_logging
from opsguard.core.resilience.connection_registry import get_connection_registry
from opsguard.core.resilience.connection_service import ConnectionService
from opsguard.infrastructure.monitoring.resource_monitor import initialize_resource_monitor

logger = get_logger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 5.0


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    Startup: logging, connection service, resource monitor (started when
    MONITOR_ENABLED). Shutdown: monitor stopped and awaited.
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting application",
        app_name=settings.app.APP_NAME,
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    connection_service = getattr(app.state, "connection_service", None) or get_connection_registry()
    app.state.connection_service = connection_service

    monitor = initialize_resource_monitor(connection_service)
    app.state.resource_monitor = monitor

    try:
        if settings.monitoring.MONITOR_ENABLED:
            await monitor.start(settings.monitoring.MONITOR_INTERVAL_SECONDS)
        else:
            logger.info("Resource monitoring disabled")

        logger.info("Application startup complete")

        yield

    finally:
        logger.info("Shutting down application")

        monitor.stop()
        await monitor.wait_stopped(timeout=SHUTDOWN_TIMEOUT_SECONDS)

        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(connection_service: ConnectionService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        connection_service: Service the monitor samples; defaults to the
            global ConnectionRegistry

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Fault classification and resource health monitoring",
        lifespan=lifespan,
    )

    if connection_service is not None:
        app.state.connection_service = connection_service

    # Developer details only outside production
    add_error_handling(app, verbose=settings.app.verbose_errors)

    app.include_router(monitoring_router)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "monitoring": "/monitoring/report",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        create_app(),
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
