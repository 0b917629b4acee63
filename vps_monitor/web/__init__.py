"""Web application package for VPS Monitor."""

from __future__ import annotations

__all__ = [
    "MonitorService",
    "create_app",
]

from .server import MonitorService, create_app  # noqa: E402
