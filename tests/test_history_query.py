"""Tests for range-token history queries."""

import time

import pytest

from conftest import NOW
from vps_monitor.core.errors import HistoryStoreError, HistoryUnavailableError
from vps_monitor.history import HistoryQueryService, resolve_range

HOUR = 3600.0
DAY = 24 * HOUR


def _insert(store, ts, cpu=1.0):
    store.insert(cpu_load=cpu, mem_percent=2.0, net_rx=3.0, net_tx=4.0, disk_usage=5.0, timestamp=ts)


class TestResolveRange:
    @pytest.mark.parametrize(
        "token,window",
        [("1h", HOUR), ("6h", 6 * HOUR), ("24h", DAY), ("7d", 7 * DAY)],
    )
    def test_known_tokens(self, token, window):
        """Test each symbolic token maps to its lookback window."""
        assert resolve_range(token) == window

    @pytest.mark.parametrize("token", [None, "", "2h", "1H", "30d"])
    def test_unknown_tokens_default_to_one_hour(self, token):
        """Test missing or unknown tokens fall back to one hour."""
        assert resolve_range(token) == HOUR


class TestQuery:
    @pytest.mark.asyncio
    async def test_relative_time_scenario(self, history_store):
        """Test rows at -30min, -2h, -25h, -8d against every range."""
        for offset in (30 * 60, 2 * HOUR, 25 * HOUR, 8 * DAY):
            _insert(history_store, NOW - offset, cpu=offset)
        service = HistoryQueryService(history_store)

        one_hour = await service.query("1h")
        assert [p.cpu for p in one_hour] == [30 * 60]

        day = await service.query("24h")
        assert [p.cpu for p in day] == [2 * HOUR, 30 * 60]

        week = await service.query("7d")
        assert [p.cpu for p in week] == [25 * HOUR, 2 * HOUR, 30 * 60]

    @pytest.mark.asyncio
    async def test_window_boundary_is_exclusive(self, history_store):
        """Test a row exactly at now - window is excluded, one second later included."""
        _insert(history_store, NOW - HOUR, cpu=1.0)
        _insert(history_store, NOW - HOUR + 1, cpu=2.0)
        points = await HistoryQueryService(history_store).query("1h")
        assert [p.cpu for p in points] == [2.0]

    @pytest.mark.asyncio
    async def test_repeated_queries_are_identical(self, history_store):
        """Test the same query with no writes in between returns the same rows."""
        for offset in (100, 200, 300):
            _insert(history_store, NOW - offset)
        service = HistoryQueryService(history_store)
        assert await service.query("6h") == await service.query("6h")

    @pytest.mark.asyncio
    async def test_unknown_token_matches_one_hour(self, history_store):
        """Test an unknown or absent token gives the same output as 1h."""
        for offset in (60, 2 * HOUR):
            _insert(history_store, NOW - offset)
        service = HistoryQueryService(history_store)
        expected = await service.query("1h")
        assert await service.query("bogus") == expected
        assert await service.query(None) == expected

    @pytest.mark.asyncio
    async def test_projection_fields(self, history_store):
        """Test a row is projected to a local HH:MM label plus the values."""
        _insert(history_store, NOW - 60)
        (point,) = await HistoryQueryService(history_store).query("1h")
        assert point.time == time.strftime("%H:%M", time.localtime(NOW - 60))
        assert point.to_dict() == {
            "time": point.time,
            "timestamp": NOW - 60,
            "cpu": 1.0,
            "mem": 2.0,
            "rx": 3.0,
            "tx": 4.0,
            "disk": 5.0,
        }

    @pytest.mark.asyncio
    async def test_query_is_read_only(self, history_store):
        """Test querying never changes the stored rows."""
        _insert(history_store, NOW - 8 * DAY)
        await HistoryQueryService(history_store).query("7d")
        assert history_store.count() == 1

    @pytest.mark.asyncio
    async def test_storage_failure_raises_unavailable(self, history_store, monkeypatch):
        """Test a storage read failure becomes HistoryUnavailableError, not partial rows."""

        def broken(_since):
            raise HistoryStoreError("disk I/O error")

        monkeypatch.setattr(history_store, "query_since", broken)
        with pytest.raises(HistoryUnavailableError):
            await HistoryQueryService(history_store).query("1h")
