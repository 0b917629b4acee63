"""HTTP/WebSocket server exposing the live metrics and the recorded history."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vps_monitor.core.config import (
    APP_NAME,
    DATA_DIR,
    HISTORY,
    LIMITS,
    SAMPLING,
    ConcurrencyLimits,
    HistoryConfig,
    SamplingIntervals,
    ServerConfig,
    load_server_config,
)
from vps_monitor.core.errors import HistoryUnavailableError
from vps_monitor.core.logger import setup_logging
from vps_monitor.core.scheduler import PeriodicTask, SamplerScheduler
from vps_monitor.core.snapshot_store import SnapshotStore
from vps_monitor.history import HistoryQueryService, HistoryRecorder, HistoryStore, RetentionJanitor
from vps_monitor.web.broadcast import BroadcastChannel

logger = logging.getLogger(__name__)


def _handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    # Último recurso: registrar y seguir; un proceso caído deja de monitorizar
    exc = context.get("exception")
    logger.error(
        "Excepción no controlada en el loop: %s",
        context.get("message", "sin mensaje"),
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )


def install_exception_handler(loop: asyncio.AbstractEventLoop) -> None:
    loop.set_exception_handler(_handle_loop_exception)


class MonitorService:
    """Wires the snapshot store, samplers, push channel and history together."""

    def __init__(
        self,
        *,
        db_path: str | Path | None = None,
        providers: Mapping[str, Callable[[], Any]] | None = None,
        intervals: SamplingIntervals = SAMPLING,
        history_config: HistoryConfig = HISTORY,
        limits: ConcurrencyLimits = LIMITS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if db_path is None:
            db_path = DATA_DIR / history_config.db_filename
        self.store = SnapshotStore()
        self.scheduler = SamplerScheduler(self.store, providers, intervals, limits)
        self.broadcast = BroadcastChannel(self.store, send_timeout=limits.send_timeout)
        self.scheduler.add_fast_listener(self.broadcast.publish_snapshot)

        self.history = HistoryStore(db_path, clock=clock, workers=limits.history_workers)
        self.recorder = HistoryRecorder(self.store, self.history)
        self.janitor = RetentionJanitor(self.history, history_config.retention_seconds)
        self.queries = HistoryQueryService(self.history)
        self.history_tasks: dict[str, PeriodicTask] = {
            "record": PeriodicTask(
                "record", history_config.record_interval, self.recorder.record, max_inflight=limits.max_inflight
            ),
            "cleanup": PeriodicTask(
                "cleanup", history_config.cleanup_interval, self.janitor.cleanup, max_inflight=limits.max_inflight
            ),
        }
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        install_exception_handler(asyncio.get_running_loop())
        await self.scheduler.start()
        for task in self.history_tasks.values():
            task.start()
        self._started = True
        logger.info("Tareas de muestreo iniciadas (histórico en %s)", self.history.path)

    async def stop(self) -> None:
        await self.scheduler.stop()
        await asyncio.gather(*(task.stop() for task in self.history_tasks.values()))
        self.history.close()
        if self._started:
            self._started = False
            logger.info("Tareas de muestreo detenidas")

    def diagnostics(self) -> dict[str, Any]:
        return {
            "observers": self.broadcast.observer_count,
            "dropped_observers": self.broadcast.dropped,
            "tasks": {
                **self.scheduler.diagnostics(),
                **{name: task.diagnostics() for name, task in self.history_tasks.items()},
            },
            "recorder": self.recorder.diagnostics(),
            "janitor": self.janitor.diagnostics(),
        }


def create_app(
    service: Optional[MonitorService] = None,
    *,
    run_tasks: bool = True,
    config: Optional[ServerConfig] = None,
) -> FastAPI:
    """Factory helper used by the CLI entry point, scripts and tests."""

    monitor = service or MonitorService()
    server_config = config or ServerConfig()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if run_tasks:
            await monitor.start()
        try:
            yield
        finally:
            await monitor.stop()

    app = FastAPI(title=APP_NAME, lifespan=lifespan)
    app.state.monitor = monitor
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(server_config.allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(HistoryUnavailableError)
    async def _history_unavailable(_request: Request, exc: HistoryUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": str(exc) or "Failed to fetch history"})

    @app.get("/api/history")
    async def history(range: Optional[str] = None) -> list[dict[str, Any]]:  # noqa: A002 - query name
        points = await monitor.queries.query(range)
        return [point.to_dict() for point in points]

    @app.get("/api/current")
    async def current() -> dict[str, Any]:
        return monitor.store.read().to_dict()

    @app.get("/api/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", **monitor.diagnostics()}

    @app.websocket("/ws")
    async def metrics_stream(websocket: WebSocket) -> None:
        await websocket.accept()
        if not await monitor.broadcast.register(websocket):
            return
        try:
            while True:
                # clients never send anything meaningful; wait for disconnect
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            await monitor.broadcast.unregister(websocket)

    return app


def main() -> None:
    setup_logging()
    config = load_server_config()
    app = create_app(config=config)
    print(f"🚀 {APP_NAME}")
    print(f"🌐 Servidor disponible en http://{config.host}:{config.port}")
    print("⏹️  Presiona Ctrl+C para detener")
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


if __name__ == "__main__":
    main()
