"""Shared fixtures for the VPS Monitor test suite."""

from __future__ import annotations

import pytest

from vps_monitor.history import HistoryStore
from vps_monitor.models import CPUIdentity, FilesystemUsage, MemoryInfo, NetworkInterfaceRate

NOW = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock for the history store."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeObserver:
    """Collects every message pushed to it, like a connected WebSocket."""

    def __init__(self, fail: bool = False) -> None:
        self.messages: list[dict] = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise ConnectionResetError("observer went away")
        self.messages.append(data)

    def loads(self) -> list[float]:
        return [m["data"]["cpu"]["load"] for m in self.messages if m["event"] == "metrics"]


class FakeProviders(dict):
    """Provider mapping with scripted cpu loads and static readings."""

    def __init__(self, loads=(10.0,)) -> None:
        self.loads = list(loads)
        self.calls: dict[str, int] = {}
        super().__init__(
            cpu_identity=self._counted("cpu_identity", lambda: CPUIdentity("Intel", "Xeon E5", 2.4, 4)),
            cpu_load=self._counted("cpu_load", self._next_load),
            memory=self._counted("memory", lambda: MemoryInfo(8_000, 2_000, 6_000, 4_000)),
            uptime=self._counted("uptime", lambda: 120.0),
            network=self._counted(
                "network",
                lambda: (
                    NetworkInterfaceRate("eth0", 100.0, 50.0),
                    NetworkInterfaceRate("lo", 10.0, 10.0),
                ),
            ),
            disk=self._counted(
                "disk",
                lambda: (
                    FilesystemUsage("/dev/sda1", "ext4", 1000, 420, 580, 42.0),
                    FilesystemUsage("/dev/sdb1", "xfs", 2000, 200, 1800, 10.0),
                ),
            ),
        )

    def _counted(self, name, fn):
        def _wrapper():
            self.calls[name] = self.calls.get(name, 0) + 1
            return fn()

        return _wrapper

    def _next_load(self) -> float:
        if len(self.loads) > 1:
            return self.loads.pop(0)
        return self.loads[0]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def history_store(tmp_path, clock):
    return HistoryStore(tmp_path / "history.db", clock=clock)


@pytest.fixture
def providers():
    return FakeProviders()
