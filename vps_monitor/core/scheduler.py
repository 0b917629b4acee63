"""asyncio scheduler that polls the telemetry providers on independent cadences."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any

from vps_monitor.core.config import LIMITS, SAMPLING, ConcurrencyLimits, SamplingIntervals
from vps_monitor.core.snapshot_store import SnapshotStore
from vps_monitor.data import DEFAULT_PROVIDERS
from vps_monitor.models import CPUIdentity, CPUInfo, Snapshot

logger = logging.getLogger(__name__)

FastListener = Callable[[Snapshot], Awaitable[None]]


async def call_provider(provider: Callable[[], Any], executor: Executor | None = None) -> Any:
    """Run a provider as a suspension point.

    Coroutine providers are awaited; blocking ones run in a worker thread of
    ``executor`` (the loop default when omitted) so the event loop keeps
    serving timers and connections meanwhile.
    """

    if inspect.iscoroutinefunction(provider):
        return await provider()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, provider)


class PeriodicTask:
    """Run ``action`` every ``interval`` seconds.

    Every tick starts a new run even if the previous one has not finished
    yet; whichever run completes last is the one whose result sticks. At
    most ``max_inflight`` runs overlap: a tick that finds the task at the cap
    is skipped and counted. A failed run is logged and counted, never
    propagated.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], Awaitable[Any]],
        *,
        run_immediately: bool = False,
        max_inflight: int = LIMITS.max_inflight,
    ) -> None:
        self.name = name
        self._interval = max(0.05, float(interval))
        self._max_inflight = max(1, int(max_inflight))
        self._action = action
        self._run_immediately = run_immediately
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[bool]] = set()
        self.runs = 0
        self.failures = 0
        self.skipped = 0
        self.last_error: dict[str, Any] | None = None
        self.last_success_at: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(self) -> None:
        if self.is_running:
            return
        self._loop_task = asyncio.create_task(self._tick_loop(), name=f"periodic:{self.name}")

    async def stop(self) -> None:
        pending: list[asyncio.Task[Any]] = list(self._inflight)
        if self._loop_task is not None:
            pending.append(self._loop_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._loop_task = None
        self._inflight.clear()

    async def _tick_loop(self) -> None:
        if self._run_immediately:
            self._spawn()
        while True:
            await asyncio.sleep(self._interval)
            self._spawn()

    def _spawn(self) -> None:
        if len(self._inflight) >= self._max_inflight:
            self.skipped += 1
            logger.warning(
                "Tarea '%s' con %d ejecuciones pendientes; se omite el tick",
                self.name,
                len(self._inflight),
            )
            return
        task = asyncio.create_task(self.run_once(), name=f"run:{self.name}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def run_once(self) -> bool:
        """Execute the action once; returns whether it succeeded."""

        try:
            await self._action()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.failures += 1
            self.last_error = {
                "message": str(exc),
                "type": exc.__class__.__name__,
                "timestamp": time.time(),
            }
            logger.exception("Tarea '%s' falló; se conserva el último valor", self.name)
            return False
        self.runs += 1
        self.last_success_at = time.time()
        return True

    def diagnostics(self) -> dict[str, Any]:
        return {
            "interval": self._interval,
            "running": self.is_running,
            "inflight": self.inflight,
            "runs": self.runs,
            "failures": self.failures,
            "skipped": self.skipped,
            "last_success_at": self.last_success_at,
            "last_error": self.last_error,
        }


class SamplerScheduler:
    """Keeps the snapshot store fresh from the telemetry providers.

    * ``fast``: cpu load (plus cached identity), memory and uptime, then
      notifies the fast listeners with the whole snapshot.
    * ``network``: per-interface rates.
    * ``disk``: filesystem usage.

    All three also run once immediately when started. The CPU identity is
    fetched once and cached; a failed fetch is retried on the next fast run.

    Each blocking provider gets its own small thread pool, so a provider that
    hangs only ties up its own workers. Listeners are notified in their own
    tasks and never hold up a fast run.
    """

    def __init__(
        self,
        store: SnapshotStore,
        providers: Mapping[str, Callable[[], Any]] | None = None,
        intervals: SamplingIntervals = SAMPLING,
        limits: ConcurrencyLimits = LIMITS,
    ) -> None:
        self._store = store
        self._providers: dict[str, Callable[[], Any]] = {**DEFAULT_PROVIDERS, **(providers or {})}
        self._limits = limits
        self._executors: dict[str, ThreadPoolExecutor] = {}
        self._identity: CPUIdentity | None = None
        self._fast_listeners: list[FastListener] = []
        self._notifications: set[asyncio.Task[None]] = set()
        self.tasks: dict[str, PeriodicTask] = {
            name: PeriodicTask(
                name,
                interval,
                action,
                run_immediately=True,
                max_inflight=limits.max_inflight,
            )
            for name, interval, action in (
                ("fast", intervals.fast, self.refresh_fast),
                ("network", intervals.network, self.refresh_network),
                ("disk", intervals.disk, self.refresh_disk),
            )
        }

    def add_fast_listener(self, listener: FastListener) -> None:
        self._fast_listeners.append(listener)

    async def start(self) -> None:
        await self.cpu_identity()
        for task in self.tasks.values():
            task.start()

    async def stop(self) -> None:
        await asyncio.gather(*(task.stop() for task in self.tasks.values()))
        await self.drain()
        for executor in self._executors.values():
            # hung provider threads are abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)
        self._executors.clear()

    async def drain(self) -> None:
        """Wait until every pending listener notification has finished."""

        while self._notifications:
            await asyncio.gather(*list(self._notifications), return_exceptions=True)

    def _executor(self, name: str) -> ThreadPoolExecutor:
        executor = self._executors.get(name)
        if executor is None:
            executor = ThreadPoolExecutor(
                max_workers=self._limits.provider_workers,
                thread_name_prefix=f"provider-{name}",
            )
            self._executors[name] = executor
        return executor

    async def _call(self, name: str) -> Any:
        return await call_provider(self._providers[name], self._executor(name))

    async def cpu_identity(self) -> CPUIdentity:
        if self._identity is not None:
            return self._identity
        try:
            identity = await self._call("cpu_identity")
        except Exception:
            logger.exception("No se pudo obtener la identidad de la CPU")
            return CPUIdentity()
        self._identity = identity
        return identity

    async def refresh_fast(self) -> None:
        load, memory, uptime = await asyncio.gather(
            self._call("cpu_load"),
            self._call("memory"),
            self._call("uptime"),
        )
        identity = await self.cpu_identity()
        self._store.update_many(
            cpu=CPUInfo.from_identity(identity, load),
            memory=memory,
            uptime=uptime,
        )
        self._notify_fast(self._store.read())

    async def refresh_network(self) -> None:
        rates = await self._call("network")
        self._store.update("network", rates)

    async def refresh_disk(self) -> None:
        filesystems = await self._call("disk")
        self._store.update("disk", filesystems)

    def _notify_fast(self, snapshot: Snapshot) -> None:
        for listener in list(self._fast_listeners):
            task = asyncio.create_task(self._run_listener(listener, snapshot))
            self._notifications.add(task)
            task.add_done_callback(self._notifications.discard)

    async def _run_listener(self, listener: FastListener, snapshot: Snapshot) -> None:
        try:
            await listener(snapshot)
        except Exception:
            logger.exception("Listener de métricas falló")

    def diagnostics(self) -> dict[str, Any]:
        return {name: task.diagnostics() for name, task in self.tasks.items()}
