"""Periodic purge of history rows past the retention horizon."""

from __future__ import annotations

import logging
from typing import Any

from vps_monitor.core.config import HISTORY
from vps_monitor.core.errors import HistoryStoreError
from vps_monitor.history.store import HistoryStore

logger = logging.getLogger(__name__)


class RetentionJanitor:
    def __init__(self, history: HistoryStore, retention_seconds: float = HISTORY.retention_seconds) -> None:
        self._history = history
        self.retention_seconds = float(retention_seconds)
        self.last_deleted = 0
        self.failures = 0

    async def cleanup(self) -> int:
        """Delete rows older than the horizon relative to the store clock now.

        Failures are logged and reported as zero deletions.
        """

        try:
            deleted = await self._history.purge_older_than(self.retention_seconds)
        except HistoryStoreError:
            self.failures += 1
            logger.exception("Error limpiando el histórico")
            return 0
        self.last_deleted = deleted
        if deleted:
            logger.info("Histórico: %d filas eliminadas por retención", deleted)
        return deleted

    def diagnostics(self) -> dict[str, Any]:
        return {
            "retention_seconds": self.retention_seconds,
            "last_deleted": self.last_deleted,
            "failures": self.failures,
        }
