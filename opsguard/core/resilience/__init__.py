"""
Resilience Module

COMPONENTS:
===========
- ConnectionService: Interface the resource health monitor samples and
  remediates through
- ConnectionRegistry: In-process connection / job / rate-limit bookkeeping
  implementing ConnectionService

Author: System Architect
Date: 2026-10-16
"""

from .connection_registry import (
    ConnectionRegistry,
    get_connection_registry,
)
from .connection_service import ConnectionService, maybe_await

__all__ = [
    "ConnectionService",
    "maybe_await",
    "ConnectionRegistry",
    "get_connection_registry",
]
