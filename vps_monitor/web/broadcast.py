"""Push channel delivering the current snapshot to every connected observer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, Protocol

from vps_monitor.core.config import LIMITS
from vps_monitor.core.snapshot_store import SnapshotStore
from vps_monitor.models import Snapshot

logger = logging.getLogger(__name__)

METRICS_EVENT = "metrics"


class Observer(Protocol):
    async def send_json(self, data: Any) -> None: ...


def envelope(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": data}


class _Subscription:
    """One observer plus the lock that keeps its sends in order."""

    __slots__ = ("observer", "lock")

    def __init__(self, observer: Observer) -> None:
        self.observer = observer
        self.lock = asyncio.Lock()

    async def send(self, message: dict[str, Any]) -> None:
        async with self.lock:
            await self.observer.send_json(message)


class BroadcastChannel:
    """Best-effort fan-out. No buffering, no replay, no acknowledgements.

    Every observer is served independently: a send that fails or takes
    longer than ``send_timeout`` drops that observer and nobody else.
    """

    def __init__(self, store: SnapshotStore, *, send_timeout: float = LIMITS.send_timeout) -> None:
        self._store = store
        self._send_timeout = send_timeout
        self._subscriptions: list[_Subscription] = []
        self._lock = asyncio.Lock()
        self.pushes = 0
        self.dropped = 0

    @property
    def observer_count(self) -> int:
        return len(self._subscriptions)

    async def register(self, observer: Observer) -> bool:
        """Add ``observer`` and send it the current snapshot right away."""

        subscription = _Subscription(observer)
        # pushes racing with the connect queue up behind the initial snapshot
        await subscription.lock.acquire()
        try:
            async with self._lock:
                self._subscriptions.append(subscription)
            message = envelope(METRICS_EVENT, self._store.read().to_dict())
            delivered = await self._deliver(subscription, observer.send_json(message))
        finally:
            subscription.lock.release()
        if not delivered:
            return False
        logger.info("Cliente conectado (%d activos)", self.observer_count)
        return True

    async def unregister(self, observer: Observer) -> None:
        async with self._lock:
            for subscription in self._subscriptions:
                if subscription.observer is observer:
                    self._subscriptions.remove(subscription)
                    logger.info("Cliente desconectado (%d activos)", self.observer_count)
                    break

    async def broadcast(self, event: str, data: Any) -> int:
        """Send one event to all observers; returns how many received it."""

        message = envelope(event, data)
        async with self._lock:
            subscriptions = list(self._subscriptions)
        results = await asyncio.gather(
            *(self._deliver(subscription, subscription.send(message)) for subscription in subscriptions)
        )
        self.pushes += 1
        return sum(results)

    async def _deliver(self, subscription: _Subscription, send: Awaitable[None]) -> bool:
        try:
            await asyncio.wait_for(send, self._send_timeout)
        except asyncio.TimeoutError:
            logger.warning("Observador descartado: sin respuesta en %.1fs", self._send_timeout)
        except Exception as exc:
            logger.debug("Observador descartado durante el envío: %s", exc)
        else:
            return True
        await self._drop(subscription)
        return False

    async def _drop(self, subscription: _Subscription) -> None:
        async with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
                self.dropped += 1

    async def publish_snapshot(self, snapshot: Snapshot) -> int:
        """Fast-task listener: push the entire snapshot as ``metrics``."""

        return await self.broadcast(METRICS_EVENT, snapshot.to_dict())
