"""
Monitoring API Models

Request / response bodies for the /monitoring endpoints. Report and stats
bodies are free-form dictionaries built by the monitor itself.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from opsguard.infrastructure.monitoring.models import AlertThresholds


class ThresholdsUpdate(BaseModel):
    """
    Partial threshold update for PATCH /monitoring/thresholds.

    Omitted fields keep their current value; unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    max_connections: int | None = Field(default=None, ge=0, description="Max active connections")
    max_processing_jobs: int | None = Field(default=None, ge=0, description="Max in-flight jobs")
    max_heap_growth_percent: float | None = Field(
        default=None, ge=0, description="Max heap growth over baseline, in percent"
    )
    max_inactive_ratio: float | None = Field(
        default=None, ge=0, description="Max inactive/active connection ratio"
    )

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ThresholdsResponse(BaseModel):
    """Thresholds in force after an update."""

    status: str = Field(default="updated")
    thresholds: AlertThresholds


class HistoryClearedResponse(BaseModel):
    """Confirmation for POST /monitoring/history/clear."""

    status: str = Field(default="cleared")


__all__ = [
    "ThresholdsUpdate",
    "ThresholdsResponse",
    "HistoryClearedResponse",
]
