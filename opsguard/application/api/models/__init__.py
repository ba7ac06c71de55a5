"""API request / response models."""

from .monitoring import HistoryClearedResponse, ThresholdsResponse, ThresholdsUpdate

__all__ = [
    "HistoryClearedResponse",
    "ThresholdsResponse",
    "ThresholdsUpdate",
]
