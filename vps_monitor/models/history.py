"""History rows and their query projection."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class HistoryRecord:
    """One durably stored summary row. Never mutated after insert."""

    timestamp: float
    cpu_load: float
    mem_percent: float
    net_rx: float
    net_tx: float
    disk_usage: float


@dataclass(slots=True, frozen=True)
class HistoryPoint:
    time: str  # local HH:MM, lossy across days
    timestamp: float
    cpu: float
    mem: float
    rx: float
    tx: float
    disk: float

    @classmethod
    def from_record(cls, record: HistoryRecord) -> "HistoryPoint":
        return cls(
            time=time.strftime("%H:%M", time.localtime(record.timestamp)),
            timestamp=record.timestamp,
            cpu=record.cpu_load,
            mem=record.mem_percent,
            rx=record.net_rx,
            tx=record.net_tx,
            disk=record.disk_usage,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "timestamp": self.timestamp,
            "cpu": self.cpu,
            "mem": self.mem,
            "rx": self.rx,
            "tx": self.tx,
            "disk": self.disk,
        }
