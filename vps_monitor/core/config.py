"""Global configuration values for the VPS Monitor backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3001


@dataclass(frozen=True)
class SamplingIntervals:
    """Polling intervals (in seconds) for the sampler tasks."""

    fast: float = 1.0  # cpu load, memory, uptime
    network: float = 1.0
    disk: float = 10.0  # slowly changing


@dataclass(frozen=True)
class HistoryConfig:
    """Downsampling and retention for the durable history."""

    record_interval: float = 60.0
    cleanup_interval: float = 3600.0
    retention_seconds: float = 7 * 24 * 3600.0
    db_filename: str = "history.db"


@dataclass(frozen=True)
class ConcurrencyLimits:
    """Per-task and per-observer concurrency bounds."""

    max_inflight: int = 4  # overlapping runs per periodic task; extra ticks are skipped
    provider_workers: int = 4  # threads per provider
    history_workers: int = 2
    send_timeout: float = 5.0  # seconds per observer send


@dataclass(frozen=True)
class ServerConfig:
    """Listening address for the HTTP/WebSocket server."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    allowed_origins: tuple[str, ...] = field(default=("*",))


def _parse_port(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        logger.warning("PORT inválido %r, usando %d", raw, DEFAULT_PORT)
        return DEFAULT_PORT
    if not 0 <= port <= 65535:
        logger.warning("PORT fuera de rango %d, usando %d", port, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


def load_server_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Build the server configuration from the environment (only ``PORT``)."""

    env = os.environ if environ is None else environ
    return ServerConfig(port=_parse_port(env.get("PORT")))


APP_NAME = "VPS Monitor"
DATA_DIR = Path.home() / ".vps_monitor"
SAMPLING = SamplingIntervals()
HISTORY = HistoryConfig()
LIMITS = ConcurrencyLimits()
