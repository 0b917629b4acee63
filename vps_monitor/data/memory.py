"""Memory data collection."""

from __future__ import annotations

import psutil

from vps_monitor.models import MemoryInfo


def collect_memory() -> MemoryInfo:
    mem = psutil.virtual_memory()
    active = getattr(mem, "active", None)
    if active is None:
        active = mem.total - mem.available
    return MemoryInfo(
        total_bytes=int(mem.total),
        free_bytes=int(mem.free),
        used_bytes=int(mem.used),
        active_bytes=int(active),
    )
