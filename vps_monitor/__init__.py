"""VPS Monitor telemetry backend."""

from __future__ import annotations

__all__ = [
    "MonitorService",
    "create_app",
    "core",
    "data",
    "history",
    "models",
]

from .web import MonitorService, create_app  # noqa: E402
