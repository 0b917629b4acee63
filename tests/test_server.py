"""Tests for the FastAPI surface: history endpoint, current snapshot and push channel."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, FakeProviders
from vps_monitor.core.config import HistoryConfig, SamplingIntervals
from vps_monitor.core.errors import HistoryStoreError
from vps_monitor.models import Snapshot
from vps_monitor.web.server import MonitorService, create_app


@pytest.fixture
def service(tmp_path, clock):
    return MonitorService(db_path=tmp_path / "history.db", providers=FakeProviders(loads=(10.0, 55.0, 90.0)), clock=clock)


@pytest.fixture
def client(service):
    with TestClient(create_app(service, run_tasks=False)) as c:
        yield c


class TestHistoryEndpoint:
    def test_returns_ascending_rows(self, client, service):
        """Test GET /api/history returns projected rows oldest first."""
        for offset, cpu in ((120, 1.0), (60, 2.0), (2 * 3600, 3.0)):
            service.history.insert(cpu_load=cpu, mem_percent=0.0, net_rx=0.0, net_tx=0.0, disk_usage=0.0, timestamp=NOW - offset)
        r = client.get("/api/history", params={"range": "1h"})
        assert r.status_code == 200
        assert [row["cpu"] for row in r.json()] == [1.0, 2.0]
        assert set(r.json()[0]) == {"time", "timestamp", "cpu", "mem", "rx", "tx", "disk"}

    def test_default_range_matches_one_hour(self, client, service):
        """Test a missing or unknown range behaves like 1h."""
        for offset in (60, 3 * 3600):
            service.history.insert(cpu_load=1.0, mem_percent=0.0, net_rx=0.0, net_tx=0.0, disk_usage=0.0, timestamp=NOW - offset)
        expected = client.get("/api/history?range=1h").json()
        assert client.get("/api/history").json() == expected
        assert client.get("/api/history?range=99y").json() == expected
        assert len(client.get("/api/history?range=6h").json()) == 2

    def test_storage_failure_returns_500(self, client, service, monkeypatch):
        """Test a storage read failure answers 500 with an error body."""

        def broken(_since):
            raise HistoryStoreError("disk I/O error")

        monkeypatch.setattr(service.history, "query_since", broken)
        r = client.get("/api/history?range=24h")
        assert r.status_code == 500
        assert r.json() == {"error": "Failed to fetch history"}

    def test_cors_allows_any_origin(self, client):
        """Test cross-origin requests are permitted from anywhere."""
        r = client.get("/api/history", headers={"Origin": "http://dashboard.example"})
        assert r.headers["access-control-allow-origin"] == "*"


class TestSnapshotEndpoints:
    def test_current_is_zero_before_sampling(self, client):
        """Test /api/current returns the default snapshot before any run."""
        assert client.get("/api/current").json() == Snapshot().to_dict()

    def test_health_reports_tasks(self, client):
        """Test /api/health exposes the scheduler and history task diagnostics."""
        body = client.get("/api/health").json()
        assert body["status"] == "ok"
        assert set(body["tasks"]) == {"fast", "network", "disk", "record", "cleanup"}
        assert body["observers"] == 0


class TestPushChannel:
    def test_connect_receives_zero_snapshot(self, client):
        """Test a WebSocket observer gets the current snapshot on connect."""
        with client.websocket_connect("/ws") as ws:
            message = ws.receive_json()
        assert message == {"event": "metrics", "data": Snapshot().to_dict()}

    def test_fast_runs_are_pushed_in_order(self, client, service):
        """Test every fast completion is pushed to the connected observer."""
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json()["data"]["cpu"]["load"] == 0.0
            for _ in range(3):
                client.portal.call(service.scheduler.refresh_fast)
            loads = [ws.receive_json()["data"]["cpu"]["load"] for _ in range(3)]
        assert loads == [10.0, 55.0, 90.0]


@pytest.mark.asyncio
async def test_service_start_stop_runs_background_tasks(tmp_path, clock):
    """Test the service samples, records and shuts down cleanly."""
    service = MonitorService(
        db_path=tmp_path / "history.db",
        providers=FakeProviders(loads=(33.0,)),
        intervals=SamplingIntervals(fast=0.05, network=0.05, disk=0.05),
        history_config=HistoryConfig(record_interval=0.05, cleanup_interval=0.05),
        clock=clock,
    )
    await service.start()
    assert service.started
    await asyncio.sleep(0.2)
    await service.stop()
    assert not service.started
    assert service.store.read().cpu.load_percent == 33.0
    assert service.history.count() >= 1
    assert service.diagnostics()["tasks"]["record"]["runs"] >= 1


@pytest.mark.asyncio
async def test_loop_exception_handler_keeps_running(tmp_path, clock, caplog):
    """Test an unhandled task error is logged by the last-resort handler."""
    service = MonitorService(db_path=tmp_path / "history.db", providers=FakeProviders(), clock=clock)
    await service.start()
    try:
        loop = asyncio.get_running_loop()
        loop.call_exception_handler({"message": "boom", "exception": RuntimeError("boom")})
        assert "Excepción no controlada" in caplog.text
    finally:
        await service.stop()
