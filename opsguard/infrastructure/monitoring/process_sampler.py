"""
Process counters via psutil.

Python exposes no V8-style heap figures, so the sampler maps the process
memory counters as follows:

- heap used: rss minus shared pages (private resident memory)
- heap total: virtual memory size
- external: shared resident pages (0 where the platform does not report it)
- rss: resident set size
"""

import os

import psutil

from opsguard.infrastructure.monitoring.models import CpuTimes, ProcessMemory


class ProcessSampler:
    """Reads memory and CPU counters for one process (default: this one)."""

    def __init__(self, pid: int | None = None):
        self._process = psutil.Process(pid or os.getpid())

    def memory(self) -> ProcessMemory:
        info = self._process.memory_info()
        shared = getattr(info, "shared", 0)
        return ProcessMemory(
            heap_used_bytes=max(info.rss - shared, 0),
            heap_total_bytes=info.vms,
            external_bytes=shared,
            rss_bytes=info.rss,
        )

    def cpu(self) -> CpuTimes:
        times = self._process.cpu_times()
        return CpuTimes(user_seconds=times.user, system_seconds=times.system)
