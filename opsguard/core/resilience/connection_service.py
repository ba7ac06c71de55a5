"""
Connection Service interface.

The resource health monitor samples and remediates a connection service
through this protocol only. Implementations may expose plain methods or
coroutines; callers pass every result through ``maybe_await``.
"""

import inspect
from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class ConnectionService(Protocol):
    """Operations the monitor relies on."""

    def get_connection_stats(self) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]:
        """Return at least active_connections, inactive_connections, processing_jobs."""

    def health_check(self) -> Mapping[str, Any] | Awaitable[Mapping[str, Any]]:
        """Return at least uptime (ms) and memory_warnings."""

    def disconnect_inactive_connections(self, threshold_ms: int) -> int | Awaitable[int]:
        """Disconnect connections idle longer than threshold_ms; return how many."""

    def perform_periodic_cleanup(self) -> None | Awaitable[None]:
        """Drop stale connection and in-flight job bookkeeping."""

    def cleanup_rate_limits(self) -> None | Awaitable[None]:
        """Drop expired rate-limit bookkeeping."""


async def maybe_await(result: T | Awaitable[T]) -> T:
    """Await ``result`` if it is awaitable, otherwise return it as-is."""
    if inspect.isawaitable(result):
        return await result
    return result
