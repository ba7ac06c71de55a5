#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
fault classification engine and the resource health monitor. All
configuration is centralized here to ensure consistency across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms

Author: System Architect
Date: 2026-10-16
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from opsguard.core.config.constants import (
    DEFAULT_HISTORY_CAPACITY,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    INACTIVE_CONNECTION_GRACE_MS,
    REPORT_HISTORY_SIZE,
    VERBOSE_LOG_EVERY_N_CYCLES,
)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="opsguard", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="Bind host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Bind port")

    @property
    def verbose_errors(self) -> bool:
        """Whether error responses may carry developer details."""
        return self.ENVIRONMENT != "production"

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class MonitoringSettings(BaseSettings):
    """
    Resource health monitor configuration.

    STAGE-MON: Sampling cadence, history sizing and default alert thresholds
    """

    MONITOR_ENABLED: bool = Field(default=True, description="Start the monitor with the app")
    MONITOR_INTERVAL_SECONDS: float = Field(default=DEFAULT_MONITOR_INTERVAL_SECONDS, gt=0, description="Sampling period")
    MONITOR_HISTORY_CAPACITY: int = Field(default=DEFAULT_HISTORY_CAPACITY, ge=1, description="Rolling history size")
    MONITOR_REPORT_HISTORY_SIZE: int = Field(default=REPORT_HISTORY_SIZE, ge=1, description="Snapshots in a report")
    MONITOR_VERBOSE_LOG_EVERY: int = Field(default=VERBOSE_LOG_EVERY_N_CYCLES, ge=1, description="Cycles between trend logs")
    MONITOR_INACTIVE_GRACE_MS: int = Field(
        default=INACTIVE_CONNECTION_GRACE_MS,
        ge=0,
        description="Inactivity before remediation disconnects a connection"
    )

    ALERT_MAX_CONNECTIONS: int = Field(default=1000, ge=0, description="Max active connections")
    ALERT_MAX_PROCESSING_JOBS: int = Field(default=100, ge=0, description="Max in-flight jobs")
    ALERT_MAX_HEAP_GROWTH_PERCENT: float = Field(default=50.0, ge=0, description="Max heap growth %")
    ALERT_MAX_INACTIVE_RATIO: float = Field(default=0.4, ge=0, description="Max inactive/active ratio")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ClassifierSettings(BaseSettings):
    """
    Error classifier configuration.

    STAGE-EC: External dependency names recognised in failure messages
    """

    EXTERNAL_DEPENDENCIES: list[str] = Field(
        default=["gemini"],
        description="Dependency names that mark a failure as external-service"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from opsguard.core.config.settings import get_settings

        settings = get_settings()
        interval = settings.monitoring.MONITOR_INTERVAL_SECONDS
        verbose = settings.app.verbose_errors
    """

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="opsguard", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="Bind host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="Bind port")

    # Monitoring settings
    MONITOR_ENABLED: bool = Field(default=True, description="Start the monitor with the app")
    MONITOR_INTERVAL_SECONDS: float = Field(default=DEFAULT_MONITOR_INTERVAL_SECONDS, gt=0, description="Sampling period")
    MONITOR_HISTORY_CAPACITY: int = Field(default=DEFAULT_HISTORY_CAPACITY, ge=1, description="Rolling history size")
    MONITOR_REPORT_HISTORY_SIZE: int = Field(default=REPORT_HISTORY_SIZE, ge=1, description="Snapshots in a report")
    MONITOR_VERBOSE_LOG_EVERY: int = Field(default=VERBOSE_LOG_EVERY_N_CYCLES, ge=1, description="Cycles between trend logs")
    MONITOR_INACTIVE_GRACE_MS: int = Field(default=INACTIVE_CONNECTION_GRACE_MS, ge=0, description="Inactivity grace")
    ALERT_MAX_CONNECTIONS: int = Field(default=1000, ge=0, description="Max active connections")
    ALERT_MAX_PROCESSING_JOBS: int = Field(default=100, ge=0, description="Max in-flight jobs")
    ALERT_MAX_HEAP_GROWTH_PERCENT: float = Field(default=50.0, ge=0, description="Max heap growth %")
    ALERT_MAX_INACTIVE_RATIO: float = Field(default=0.4, ge=0, description="Max inactive/active ratio")

    # Classifier settings
    EXTERNAL_DEPENDENCIES: list[str] = Field(
        default=["gemini"],
        description="Dependency names that mark a failure as external-service"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    # Nested configuration objects
    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT
        )

    @property
    def monitoring(self) -> 'MonitoringSettings':
        """Get resource monitor settings."""
        return MonitoringSettings(
            MONITOR_ENABLED=self.MONITOR_ENABLED,
            MONITOR_INTERVAL_SECONDS=self.MONITOR_INTERVAL_SECONDS,
            MONITOR_HISTORY_CAPACITY=self.MONITOR_HISTORY_CAPACITY,
            MONITOR_REPORT_HISTORY_SIZE=self.MONITOR_REPORT_HISTORY_SIZE,
            MONITOR_VERBOSE_LOG_EVERY=self.MONITOR_VERBOSE_LOG_EVERY,
            MONITOR_INACTIVE_GRACE_MS=self.MONITOR_INACTIVE_GRACE_MS,
            ALERT_MAX_CONNECTIONS=self.ALERT_MAX_CONNECTIONS,
            ALERT_MAX_PROCESSING_JOBS=self.ALERT_MAX_PROCESSING_JOBS,
            ALERT_MAX_HEAP_GROWTH_PERCENT=self.ALERT_MAX_HEAP_GROWTH_PERCENT,
            ALERT_MAX_INACTIVE_RATIO=self.ALERT_MAX_INACTIVE_RATIO
        )

    @property
    def classifier(self) -> 'ClassifierSettings':
        """Get classifier settings."""
        return ClassifierSettings(EXTERNAL_DEPENDENCIES=list(self.EXTERNAL_DEPENDENCIES))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.1: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
