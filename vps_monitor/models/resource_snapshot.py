"""Dataclasses representing the live telemetry snapshot.

Every facet is frozen and sequences are tuples, so a :class:`Snapshot`
handed out by the store can be shared with any reader without copying.
``to_dict`` emits the key names the dashboard consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class CPUIdentity:
    """Static CPU fields, fetched once and cached."""

    manufacturer: str = ""
    brand: str = ""
    speed_ghz: float = 0.0
    cores: int = 0


@dataclass(slots=True, frozen=True)
class CPUInfo:
    manufacturer: str = ""
    brand: str = ""
    speed_ghz: float = 0.0
    cores: int = 0
    load_percent: float = 0.0  # may briefly exceed 100 due to rounding

    @classmethod
    def from_identity(cls, identity: CPUIdentity, load_percent: float) -> "CPUInfo":
        return cls(
            manufacturer=identity.manufacturer,
            brand=identity.brand,
            speed_ghz=identity.speed_ghz,
            cores=identity.cores,
            load_percent=float(load_percent),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "manufacturer": self.manufacturer,
            "brand": self.brand,
            "speed": self.speed_ghz,
            "cores": self.cores,
            "load": self.load_percent,
        }


@dataclass(slots=True, frozen=True)
class MemoryInfo:
    total_bytes: int = 0
    free_bytes: int = 0
    used_bytes: int = 0
    active_bytes: int = 0

    @property
    def used_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.used_bytes / self.total_bytes * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total_bytes,
            "free": self.free_bytes,
            "used": self.used_bytes,
            "active": self.active_bytes,
            "percentage": self.used_percent,
        }


@dataclass(slots=True, frozen=True)
class NetworkInterfaceRate:
    name: str
    rx_bytes_per_sec: float
    tx_bytes_per_sec: float

    def to_dict(self) -> dict[str, Any]:
        return {"iface": self.name, "rx_sec": self.rx_bytes_per_sec, "tx_sec": self.tx_bytes_per_sec}


@dataclass(slots=True, frozen=True)
class FilesystemUsage:
    fs: str
    type: str
    size_bytes: int
    used_bytes: int
    available_bytes: int
    used_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "fs": self.fs,
            "type": self.type,
            "size": self.size_bytes,
            "used": self.used_bytes,
            "available": self.available_bytes,
            "use": self.used_percent,
        }


@dataclass(slots=True, frozen=True)
class Snapshot:
    """The current best-known reading of all facets."""

    cpu: CPUInfo = field(default_factory=CPUInfo)
    memory: MemoryInfo = field(default_factory=MemoryInfo)
    network: tuple[NetworkInterfaceRate, ...] = ()
    disk: tuple[FilesystemUsage, ...] = ()
    uptime: float = 0.0

    @property
    def total_rx(self) -> float:
        return sum(iface.rx_bytes_per_sec or 0.0 for iface in self.network)

    @property
    def total_tx(self) -> float:
        return sum(iface.tx_bytes_per_sec or 0.0 for iface in self.network)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpu": self.cpu.to_dict(),
            "memory": self.memory.to_dict(),
            "network": [iface.to_dict() for iface in self.network],
            "disk": [fs.to_dict() for fs in self.disk],
            "uptime": self.uptime,
        }
