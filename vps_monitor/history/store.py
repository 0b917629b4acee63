"""SQLite-backed store for the downsampled metrics history."""

from __future__ import annotations

import asyncio
import contextlib
import os
import sqlite3
import time
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from vps_monitor.core.config import LIMITS
from vps_monitor.core.errors import HistoryStoreError
from vps_monitor.models import HistoryRecord

Clock = Callable[[], float]
T = TypeVar("T")


class HistoryStore:
    """Append-only table of :class:`HistoryRecord` rows.

    NOTES:
    - one short-lived connection per operation, so the store can be used
      from worker threads
    - WAL journal: readers never wait behind the writer, sqlite serializes
      concurrent writers itself
    - timestamps come from the store clock at insert time (epoch seconds)
    - the async surface runs on the store's own thread pool, never on the
      loop default executor shared with the providers
    """

    def __init__(
        self,
        path: str | Path,
        *,
        clock: Clock = time.time,
        workers: int = LIMITS.history_workers,
    ) -> None:
        self.path = str(path)
        self._clock = clock
        self._workers = workers
        self._executor: ThreadPoolExecutor | None = None
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._init()

    def now(self) -> float:
        return float(self._clock())

    @contextlib.contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.path, timeout=30.0)
        except sqlite3.Error as exc:
            raise HistoryStoreError(f"cannot open {self.path}: {exc}") from exc
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise HistoryStoreError(str(exc)) from exc
        finally:
            conn.close()

    def _init(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS metrics (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  timestamp REAL NOT NULL,
                  cpu_load REAL NOT NULL DEFAULT 0,
                  mem_percentage REAL NOT NULL DEFAULT 0,
                  net_rx REAL NOT NULL DEFAULT 0,
                  net_tx REAL NOT NULL DEFAULT 0,
                  disk_usage REAL NOT NULL DEFAULT 0
                )
                """
            )
            c.execute("CREATE INDEX IF NOT EXISTS idx_metrics_ts ON metrics(timestamp);")

    def journal_mode(self) -> str:
        with self._conn() as c:
            row = c.execute("PRAGMA journal_mode;").fetchone()
        return str(row[0]).lower() if row else ""

    def insert(
        self,
        *,
        cpu_load: float,
        mem_percent: float,
        net_rx: float,
        net_tx: float,
        disk_usage: float,
        timestamp: float | None = None,
    ) -> HistoryRecord:
        """Append one row stamped with the store clock (or ``timestamp`` when given)."""

        record = HistoryRecord(
            timestamp=self.now() if timestamp is None else float(timestamp),
            cpu_load=float(cpu_load),
            mem_percent=float(mem_percent),
            net_rx=float(net_rx),
            net_tx=float(net_tx),
            disk_usage=float(disk_usage),
        )
        with self._conn() as c:
            c.execute(
                """
                INSERT INTO metrics(timestamp, cpu_load, mem_percentage, net_rx, net_tx, disk_usage)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.timestamp,
                    record.cpu_load,
                    record.mem_percent,
                    record.net_rx,
                    record.net_tx,
                    record.disk_usage,
                ),
            )
        return record

    def query_since(self, since: float) -> list[HistoryRecord]:
        """Rows strictly newer than ``since``, oldest first."""

        with self._conn() as c:
            rows = c.execute(
                """
                SELECT timestamp, cpu_load, mem_percentage, net_rx, net_tx, disk_usage
                FROM metrics
                WHERE timestamp > ?
                ORDER BY timestamp ASC, id ASC
                """,
                (float(since),),
            ).fetchall()
        return [HistoryRecord(*row) for row in rows]

    def delete_older_than(self, cutoff: float) -> int:
        with self._conn() as c:
            cur = c.execute("DELETE FROM metrics WHERE timestamp < ?", (float(cutoff),))
            return int(cur.rowcount or 0)

    def count(self) -> int:
        with self._conn() as c:
            row = c.execute("SELECT COUNT(1) FROM metrics").fetchone()
        return int(row[0] if row else 0)

    # ---- async surface (suspension points for the event loop) ----
    async def _run(self, func: Callable[[], T]) -> T:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="history")
        return await asyncio.get_running_loop().run_in_executor(self._executor, func)

    def close(self) -> None:
        """Release the worker threads; the store can still be used afterwards."""

        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    async def append(self, **values: float) -> HistoryRecord:
        return await self._run(lambda: self.insert(**values))

    async def records_since(self, since: float) -> list[HistoryRecord]:
        return await self._run(lambda: self.query_since(since))

    async def purge_older_than(self, age_seconds: float) -> int:
        return await self._run(lambda: self.delete_older_than(self.now() - age_seconds))
