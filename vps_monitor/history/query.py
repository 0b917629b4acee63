"""Range-token queries over the durable history."""

from __future__ import annotations

import logging

from vps_monitor.core.errors import HistoryStoreError, HistoryUnavailableError
from vps_monitor.history.store import HistoryStore
from vps_monitor.models import HistoryPoint

logger = logging.getLogger(__name__)

RANGE_WINDOWS: dict[str, float] = {
    "1h": 3600.0,
    "6h": 6 * 3600.0,
    "24h": 24 * 3600.0,
    "7d": 7 * 24 * 3600.0,
}
DEFAULT_RANGE = "1h"


def resolve_range(token: str | None) -> float:
    """Lookback window in seconds; unknown or missing tokens mean one hour."""

    return RANGE_WINDOWS.get(token or DEFAULT_RANGE, RANGE_WINDOWS[DEFAULT_RANGE])


class HistoryQueryService:
    def __init__(self, history: HistoryStore) -> None:
        self._history = history

    async def query(self, token: str | None) -> list[HistoryPoint]:
        """Rows newer than ``now - window``, ascending. Never partial."""

        since = self._history.now() - resolve_range(token)
        try:
            records = await self._history.records_since(since)
        except HistoryStoreError as exc:
            logger.error("Error consultando el histórico: %s", exc)
            raise HistoryUnavailableError("Failed to fetch history") from exc
        return [HistoryPoint.from_record(record) for record in records]
