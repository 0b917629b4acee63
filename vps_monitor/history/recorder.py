"""Condenses the live snapshot into one durable history row per interval."""

from __future__ import annotations

import logging
from typing import Any

from vps_monitor.core.errors import HistoryStoreError
from vps_monitor.core.snapshot_store import SnapshotStore
from vps_monitor.history.store import HistoryStore
from vps_monitor.models import HistoryRecord, Snapshot

logger = logging.getLogger(__name__)


def summarize(snapshot: Snapshot) -> dict[str, float]:
    """Scalar summary of a snapshot: network rates summed, first disk only."""

    disk_usage = snapshot.disk[0].used_percent if snapshot.disk else 0.0
    return {
        "cpu_load": snapshot.cpu.load_percent or 0.0,
        "mem_percent": snapshot.memory.used_percent or 0.0,
        "net_rx": snapshot.total_rx,
        "net_tx": snapshot.total_tx,
        "disk_usage": disk_usage or 0.0,
    }


class HistoryRecorder:
    def __init__(self, snapshots: SnapshotStore, history: HistoryStore) -> None:
        self._snapshots = snapshots
        self._history = history
        self.recorded = 0
        self.skipped = 0

    async def record(self) -> HistoryRecord | None:
        """Append one row; a storage failure skips this cycle."""

        # an unsampled snapshot still produces a zero row
        values = summarize(self._snapshots.read())
        try:
            record = await self._history.append(**values)
        except HistoryStoreError:
            self.skipped += 1
            logger.exception("Error registrando el histórico; se omite este ciclo")
            return None
        self.recorded += 1
        return record

    def diagnostics(self) -> dict[str, Any]:
        return {"recorded": self.recorded, "skipped": self.skipped}
