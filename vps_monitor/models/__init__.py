"""Models exported by VPS Monitor."""

from .history import HistoryPoint, HistoryRecord
from .resource_snapshot import (
    CPUIdentity,
    CPUInfo,
    FilesystemUsage,
    MemoryInfo,
    NetworkInterfaceRate,
    Snapshot,
)

__all__ = [
    "CPUIdentity",
    "CPUInfo",
    "FilesystemUsage",
    "HistoryPoint",
    "HistoryRecord",
    "MemoryInfo",
    "NetworkInterfaceRate",
    "Snapshot",
]
