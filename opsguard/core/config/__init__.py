"""
Configuration Module

This module provides centralized, type-safe configuration management.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, enums, and magic numbers
"""

from .settings import (
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
]
